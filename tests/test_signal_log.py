"""Tests for stockrec.storage.signal_log -- dedup, persistence, performance."""

import sqlite3
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from stockrec.analysis.recommendation import generate_recommendation
from stockrec.analysis.signals import SignalType
from stockrec.exceptions import NotAuthenticatedError
from stockrec.storage.signal_log import SignalLogStore, SignalScope, calculate_win_rate

START = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


class TestSignalLogStore:

    def setup_method(self):
        self.now = [START]
        self.scope = SignalScope.portfolio("pf-1")

    def _store(self, tmp_path, user_id="user-1"):
        return SignalLogStore(tmp_path / "signals.db", user_id=user_id, clock=lambda: self.now[0])

    def test_log_and_read_back(self, tmp_path, quality_holding):
        store = self._store(tmp_path)
        rec = generate_recommendation(quality_holding)
        entry = store.log_signal(self.scope, rec)

        assert entry["ticker"] == "QUAL"
        assert entry["signal_type"] == "CONVICTION_HOLD"
        assert entry["signal_strength"] == 79
        assert entry["price_at_signal"] == 100
        assert entry["user_id"] == "user-1"
        assert entry["price_1w"] is None
        assert entry["metadata"]["rsi_value"] == 55
        assert entry["metadata"]["target_source"] == "analyst"

        recent = store.get_recent_signals(self.scope)
        assert [e["id"] for e in recent] == [entry["id"]]
        assert store.get_signals_for_ticker(self.scope, "QUAL")[0]["id"] == entry["id"]
        assert store.get_signals_by_type(self.scope, SignalType.CONVICTION_HOLD)
        assert store.get_signals_by_type(self.scope, SignalType.MOMENTUM) == []

    def test_duplicate_within_window_is_skipped(self, tmp_path, quality_holding):
        store = self._store(tmp_path)
        rec = generate_recommendation(quality_holding)
        assert store.log_signal(self.scope, rec) is not None

        self.now[0] = START + timedelta(days=6)
        assert store.log_signal(self.scope, rec) is None
        assert len(store.get_recent_signals(self.scope)) == 1

    def test_duplicate_after_window_is_logged(self, tmp_path, quality_holding):
        store = self._store(tmp_path)
        rec = generate_recommendation(quality_holding)
        store.log_signal(self.scope, rec)

        self.now[0] = START + timedelta(days=7, seconds=1)
        assert store.log_signal(self.scope, rec) is not None
        assert len(store.get_recent_signals(self.scope)) == 2

    def test_other_scope_not_deduplicated(self, tmp_path, quality_holding):
        store = self._store(tmp_path)
        rec = generate_recommendation(quality_holding)
        store.log_signal(self.scope, rec)
        assert store.log_signal(SignalScope.research("user-1"), rec) is not None

    def test_explicit_signal_type(self, tmp_path, oversold_quality):
        store = self._store(tmp_path)
        rec = generate_recommendation(oversold_quality)
        entry = store.log_signal(self.scope, rec, SignalType.DIP_OPPORTUNITY)
        assert entry["signal_type"] == "DIP_OPPORTUNITY"
        assert entry["signal_strength"] == 85

    def test_requires_user(self, tmp_path, quality_holding):
        store = self._store(tmp_path, user_id=None)
        with pytest.raises(NotAuthenticatedError):
            store.log_signal(self.scope, generate_recommendation(quality_holding))
        assert store.get_recent_signals(self.scope) == []

    def test_existence_check_fails_open(self, tmp_path):
        store = self._store(tmp_path)
        with patch.object(store, "_connect", side_effect=sqlite3.OperationalError("locked")):
            assert store.signal_exists(self.scope, "QUAL", SignalType.NEUTRAL) is False

    def test_insert_error_propagates(self, tmp_path, bare_inputs):
        store = self._store(tmp_path)
        rec = generate_recommendation(bare_inputs)  # no price
        with pytest.raises(sqlite3.IntegrityError):
            store.log_signal(self.scope, rec)

    def test_log_multiple_signals(self, tmp_path, quality_holding, oversold_quality, bare_inputs):
        store = self._store(tmp_path)
        recs = [generate_recommendation(i) for i in (quality_holding, oversold_quality, bare_inputs)]

        # bare_inputs has no price, so its insert fails and counts as skipped
        assert store.log_multiple_signals(self.scope, recs) == {"logged": 2, "skipped": 1}
        assert store.log_multiple_signals(self.scope, recs[:2]) == {"logged": 0, "skipped": 2}

    def test_log_multiple_by_type(self, tmp_path, quality_holding, oversold_quality):
        store = self._store(tmp_path)
        recs = [generate_recommendation(i) for i in (quality_holding, oversold_quality)]
        counts = store.log_multiple_signals(self.scope, recs, signal_types=[SignalType.DIP_OPPORTUNITY])
        assert counts == {"logged": 1, "skipped": 0}

    def test_signal_performance(self, tmp_path, quality_holding):
        store = self._store(tmp_path)
        base = generate_recommendation(quality_holding)
        ids = []
        for i in range(10):
            entry = store.log_signal(self.scope, replace(base, ticker=f"T{i}"))
            ids.append(entry["id"])
        for i, signal_id in enumerate(ids):
            store.record_evaluation(signal_id, "1w", 110.0 if i < 7 else 90.0)

        perf = store.get_signal_performance(self.scope)
        assert len(perf) == 1
        row = perf[0]
        assert row["signal_type"] == "CONVICTION_HOLD"
        assert row["total_signals"] == 10
        assert row["evaluated_1w"] == 10
        assert row["winners_1w"] == 7
        assert row["avg_return_1w"] == pytest.approx(4.0)
        assert row["evaluated_1d"] == 0
        assert row["avg_return_1d"] is None
        assert row["avg_composite_score"] == pytest.approx(68.65, abs=0.06)
        assert calculate_win_rate(row, "1w") == 70
        assert calculate_win_rate(row, "1d") is None

    def test_performance_empty(self, tmp_path):
        assert self._store(tmp_path).get_signal_performance(self.scope) == []

    def test_record_evaluation_rejects_unknown_horizon(self, tmp_path):
        with pytest.raises(ValueError):
            self._store(tmp_path).record_evaluation("x", "2y", 1.0)

    def test_delete_and_clear(self, tmp_path, quality_holding, oversold_quality):
        store = self._store(tmp_path)
        first = store.log_signal(self.scope, generate_recommendation(quality_holding))
        store.log_signal(self.scope, generate_recommendation(oversold_quality))

        store.delete_signal(first["id"])
        assert [e["ticker"] for e in store.get_recent_signals(self.scope)] == ["DIPQ"]
        assert store.clear_all_signals(self.scope) == 1
        assert store.get_recent_signals(self.scope) == []


class TestSignalScope:

    def test_constructors(self):
        assert SignalScope.portfolio("p") == SignalScope("portfolio", "p")
        assert SignalScope.research("u").kind == "research"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            SignalScope("watchlist", "x")

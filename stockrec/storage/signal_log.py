"""SQLite-backed signal log for backtesting signal quality.

Every logged signal snapshots the scores and price at signal time.  The
``price_1d`` .. ``price_3m`` slots are filled later by
``record_evaluation`` and feed the per-signal-type win rates returned by
``get_signal_performance``.

Deduplication is check-then-insert with no lock: two writers racing on the
same (scope, ticker, type) can both insert.  The existence check fails open
so a flaky store never blocks logging.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Literal, Optional, Sequence

import pandas as pd

from stockrec.analysis.recommendation import StockRecommendation
from stockrec.analysis.signals import SignalType
from stockrec.exceptions import NotAuthenticatedError
from stockrec.utils.logger import setup_logger

logger = setup_logger("signal_log")

ScopeKind = Literal["portfolio", "research"]
Horizon = Literal["1d", "1w", "1m", "3m"]

HORIZONS: Sequence[str] = ("1d", "1w", "1m", "3m")
DEFAULT_DEDUP_WINDOW_DAYS = 7

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS signal_log (
        id TEXT PRIMARY KEY,
        created_at TEXT NOT NULL,
        user_id TEXT NOT NULL,
        scope_kind TEXT NOT NULL,
        scope_id TEXT NOT NULL,
        ticker TEXT NOT NULL,
        stock_name TEXT,
        signal_type TEXT NOT NULL,
        signal_strength REAL,
        composite_score REAL,
        fundamental_score REAL,
        technical_score REAL,
        analyst_score REAL,
        news_score REAL,
        insider_score REAL,
        portfolio_score REAL,
        conviction_score REAL,
        conviction_level TEXT,
        dip_score REAL,
        price_at_signal REAL NOT NULL,
        price_1d REAL,
        price_1w REAL,
        price_1m REAL,
        price_3m REAL,
        evaluated_1d_at TEXT,
        evaluated_1w_at TEXT,
        evaluated_1m_at TEXT,
        evaluated_3m_at TEXT,
        rsi_value REAL,
        macd_histogram REAL,
        metadata TEXT NOT NULL DEFAULT '{}'
    );
    CREATE INDEX IF NOT EXISTS idx_signal_log_dedup
        ON signal_log(scope_kind, scope_id, ticker, signal_type, created_at);
    CREATE INDEX IF NOT EXISTS idx_signal_log_created ON signal_log(created_at);
"""


@dataclass(frozen=True)
class SignalScope:
    """Which book a signal belongs to: a portfolio id or a user's research list."""

    kind: ScopeKind
    id: str

    def __post_init__(self) -> None:
        if self.kind not in ("portfolio", "research"):
            raise ValueError(f"Unknown scope kind: {self.kind!r}")

    @classmethod
    def portfolio(cls, portfolio_id: str) -> "SignalScope":
        return cls("portfolio", portfolio_id)

    @classmethod
    def research(cls, user_id: str) -> "SignalScope":
        return cls("research", user_id)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _stamp(moment: datetime) -> str:
    # Fixed-width so string comparison in SQL orders correctly
    return moment.isoformat(timespec="microseconds")


def _row_to_entry(row: sqlite3.Row) -> dict:
    entry = dict(row)
    entry["metadata"] = json.loads(entry.get("metadata") or "{}")
    return entry


def calculate_win_rate(perf: Dict, period: str) -> Optional[int]:
    """Percent of evaluated signals that closed above the signal price."""
    evaluated = perf.get(f"evaluated_{period}") or 0
    if evaluated == 0:
        return None
    winners = perf.get(f"winners_{period}") or 0
    return int(round(winners / evaluated * 100))


class SignalLogStore:
    """Signal persistence for one authenticated user.

    ``user_id`` is whoever the surrounding app authenticated; without one,
    reads still work but ``log_signal`` raises ``NotAuthenticatedError``.
    """

    def __init__(
        self,
        db_path,
        user_id: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db_path = Path(db_path)
        self.user_id = user_id
        self.clock = clock
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA)
            conn.commit()
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Dedup + insert
    # ------------------------------------------------------------------

    def signal_exists(
        self,
        scope: SignalScope,
        ticker: str,
        signal_type: SignalType,
        window_days: int = DEFAULT_DEDUP_WINDOW_DAYS,
    ) -> bool:
        """True when the same signal was logged within *window_days*.

        Store errors are logged and reported as "not found".
        """
        cutoff = _stamp(self.clock() - timedelta(days=window_days))
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT 1 FROM signal_log WHERE scope_kind = ? AND scope_id = ? "
                    "AND ticker = ? AND signal_type = ? AND created_at >= ? LIMIT 1",
                    (scope.kind, scope.id, ticker, SignalType(signal_type).value, cutoff),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.warning("Signal existence check failed, allowing insert: %s", e)
            return False
        return row is not None

    def log_signal(
        self,
        scope: SignalScope,
        recommendation: StockRecommendation,
        signal_type: Optional[SignalType] = None,
        window_days: int = DEFAULT_DEDUP_WINDOW_DAYS,
    ) -> Optional[dict]:
        """Persist one signal; returns the stored entry or None if deduplicated."""
        if not self.user_id:
            raise NotAuthenticatedError("Cannot log signals without an authenticated user")

        rec = recommendation
        stype = SignalType(signal_type) if signal_type is not None else rec.primary_signal.type
        if self.signal_exists(scope, rec.ticker, stype, window_days):
            logger.info("Signal %s for %s already logged (deduplicated)", stype.value, rec.ticker)
            return None

        strength = next((s.strength for s in rec.signals if s.type == stype), rec.primary_signal.strength)
        metadata = {
            **rec.metadata,
            "is_dip": rec.is_dip,
            "dip_quality_check": rec.dip_quality_check,
            "technical_bias": rec.technical_bias,
            "target_price": rec.target_price,
            "target_upside": rec.target_upside,
            "target_source": rec.target.source,
            "weight": rec.weight,
            "gain_pct": rec.gain_pct,
        }
        entry = {
            "id": str(uuid.uuid4()),
            "created_at": _stamp(self.clock()),
            "user_id": self.user_id,
            "scope_kind": scope.kind,
            "scope_id": scope.id,
            "ticker": rec.ticker,
            "stock_name": rec.stock_name,
            "signal_type": stype.value,
            "signal_strength": strength,
            "composite_score": rec.composite_score,
            "fundamental_score": rec.fundamental_score,
            "technical_score": rec.technical_score,
            "analyst_score": rec.analyst_score,
            "news_score": rec.news_score,
            "insider_score": rec.insider_score,
            "portfolio_score": rec.portfolio_score,
            "conviction_score": rec.conviction_score,
            "conviction_level": rec.conviction_level,
            "dip_score": rec.dip_score,
            "price_at_signal": rec.current_price,
            "rsi_value": rec.metadata.get("rsi_value"),
            "macd_histogram": rec.metadata.get("macd_histogram"),
            "metadata": json.dumps(metadata, default=str),
        }
        columns = ", ".join(entry)
        placeholders = ", ".join("?" for _ in entry)

        conn = self._connect()
        try:
            conn.execute(
                f"INSERT INTO signal_log ({columns}) VALUES ({placeholders})",
                tuple(entry.values()),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM signal_log WHERE id = ?", (entry["id"],)).fetchone()
        finally:
            conn.close()

        logger.info("Logged %s for %s (%s:%s)", stype.value, rec.ticker, scope.kind, scope.id)
        return _row_to_entry(row)

    def log_multiple_signals(
        self,
        scope: SignalScope,
        recommendations: Iterable[StockRecommendation],
        signal_types: Optional[Iterable[SignalType]] = None,
        window_days: int = DEFAULT_DEDUP_WINDOW_DAYS,
    ) -> Dict[str, int]:
        """Log the primary signal of each recommendation, or every signal of
        the listed types.  A failed insert counts as skipped.
        """
        wanted = {SignalType(t) for t in signal_types} if signal_types is not None else None
        logged = skipped = 0

        for rec in recommendations:
            if wanted is None:
                types = [rec.primary_signal.type]
            else:
                types = [s.type for s in rec.signals if s.type in wanted]
            for stype in types:
                try:
                    result = self.log_signal(scope, rec, stype, window_days)
                except sqlite3.Error as e:
                    logger.error("Failed to log %s for %s: %s", stype.value, rec.ticker, e)
                    skipped += 1
                    continue
                if result is None:
                    skipped += 1
                else:
                    logged += 1

        return {"logged": logged, "skipped": skipped}

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def record_evaluation(self, signal_id: str, horizon: Horizon, price: float) -> None:
        """Fill the price slot for *horizon* once that much time has passed."""
        if horizon not in HORIZONS:
            raise ValueError(f"Unknown horizon: {horizon!r}")
        conn = self._connect()
        try:
            conn.execute(
                f"UPDATE signal_log SET price_{horizon} = ?, evaluated_{horizon}_at = ? WHERE id = ?",
                (price, _stamp(self.clock()), signal_id),
            )
            conn.commit()
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _select(self, where: str, params: tuple, limit: int) -> List[dict]:
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT * FROM signal_log WHERE {where} ORDER BY created_at DESC LIMIT ?",
                params + (limit,),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_entry(r) for r in rows]

    def get_recent_signals(self, scope: SignalScope, limit: int = 50) -> List[dict]:
        return self._select("scope_kind = ? AND scope_id = ?", (scope.kind, scope.id), limit)

    def get_signals_for_ticker(self, scope: SignalScope, ticker: str, limit: int = 20) -> List[dict]:
        return self._select(
            "scope_kind = ? AND scope_id = ? AND ticker = ?", (scope.kind, scope.id, ticker), limit,
        )

    def get_signals_by_type(self, scope: SignalScope, signal_type: SignalType, limit: int = 50) -> List[dict]:
        return self._select(
            "scope_kind = ? AND scope_id = ? AND signal_type = ?",
            (scope.kind, scope.id, SignalType(signal_type).value),
            limit,
        )

    def get_signal_performance(self, scope: SignalScope) -> List[dict]:
        """Per signal type: totals, evaluated/winners/avg return per horizon."""
        conn = self._connect()
        try:
            df = pd.read_sql_query(
                "SELECT * FROM signal_log WHERE scope_kind = ? AND scope_id = ?",
                conn,
                params=(scope.kind, scope.id),
            )
        finally:
            conn.close()

        if df.empty:
            return []

        results = []
        for signal_type, group in df.groupby("signal_type", sort=True):
            perf = {
                "scope_kind": scope.kind,
                "scope_id": scope.id,
                "signal_type": signal_type,
                "total_signals": int(len(group)),
            }
            base = group["price_at_signal"].astype(float)
            for horizon in HORIZONS:
                prices = group[f"price_{horizon}"].astype(float)
                evaluated = prices.notna()
                returns = ((prices - base) / base * 100)[evaluated]
                perf[f"evaluated_{horizon}"] = int(evaluated.sum())
                perf[f"winners_{horizon}"] = int((prices[evaluated] > base[evaluated]).sum())
                perf[f"avg_return_{horizon}"] = round(float(returns.mean()), 2) if not returns.empty else None
            perf["avg_composite_score"] = _mean(group["composite_score"], 1)
            perf["avg_signal_strength"] = _mean(group["signal_strength"], 1)
            results.append(perf)
        return results

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    def delete_signal(self, signal_id: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM signal_log WHERE id = ?", (signal_id,))
            conn.commit()
        finally:
            conn.close()

    def clear_all_signals(self, scope: SignalScope) -> int:
        conn = self._connect()
        try:
            cur = conn.execute(
                "DELETE FROM signal_log WHERE scope_kind = ? AND scope_id = ?", (scope.kind, scope.id),
            )
            conn.commit()
            deleted = cur.rowcount
        finally:
            conn.close()
        logger.info("Cleared %d signals for %s:%s", deleted, scope.kind, scope.id)
        return deleted


def _mean(series: pd.Series, digits: int) -> Optional[float]:
    values = series.dropna().astype(float)
    if values.empty:
        return None
    return round(float(values.mean()), digits)

"""Tests for stockrec.analysis.conviction and stockrec.analysis.dip."""

from dataclasses import replace

import pytest

from stockrec.analysis.conviction import ConvictionEngine, round_half_up
from stockrec.analysis.dip import DipEngine
from stockrec.analysis.models import ScoreInputs, TechnicalIndicators


def _points(result, name):
    return next(c.points for c in result.components if c.name == name)


# ---------------------------------------------------------------------------
# Conviction
# ---------------------------------------------------------------------------

class TestConvictionEngine:

    def setup_method(self):
        self.engine = ConvictionEngine()

    def test_quality_holding_is_high(self, quality_holding):
        result = self.engine.evaluate(quality_holding, insider_score=60, upside_pct=25)
        # stability 12 + 7 + 7 + 5, position 7 + 7 + 8, momentum 8 + 10 + 8
        assert _points(result, "consensus") == 7
        assert result.score == 79
        assert result.level == "HIGH"

    def test_bare_inputs_are_low(self, bare_inputs):
        result = self.engine.evaluate(bare_inputs, insider_score=50, upside_pct=None)
        # only the neutral insider score earns points (>45)
        assert result.score == 4
        assert result.level == "LOW"

    @pytest.mark.parametrize("score, level", [(70, "HIGH"), (69.9, "MEDIUM"), (45, "MEDIUM"), (44.9, "LOW")])
    def test_level_boundaries(self, score, level):
        assert self.engine.level_for(score) == level

    def test_consensus_points_cap_at_12(self, quality_holding):
        from stockrec.analysis.models import AnalystRatings
        inputs = replace(quality_holding, analysts=AnalystRatings(strong_buy=10))
        result = self.engine.evaluate(inputs, insider_score=50, upside_pct=None)
        assert _points(result, "consensus") == 12

    def test_weak_consensus_earns_nothing(self, quality_holding):
        from stockrec.analysis.models import AnalystRatings
        inputs = replace(quality_holding, analysts=AnalystRatings(buy=1, hold=1))
        result = self.engine.evaluate(inputs, insider_score=50, upside_pct=None)
        assert _points(result, "consensus") == 0

    @pytest.mark.parametrize("rsi, expected", [(50, 8), (60, 8), (35, 5), (68, 5), (27, 2), (74, 2), (20, 0), (80, 0)])
    def test_rsi_health_bands(self, rsi, expected):
        inputs = ScoreInputs(ticker="T", technicals=TechnicalIndicators(rsi14=rsi))
        result = self.engine.evaluate(inputs, insider_score=0, upside_pct=None)
        assert _points(result, "rsi_health") == expected

    def test_round_half_up(self):
        assert round_half_up(4.5) == 5
        assert round_half_up(7.44) == 7
        assert round_half_up(2.5) == 3


# ---------------------------------------------------------------------------
# Dip + quality gate
# ---------------------------------------------------------------------------

class TestDipEngine:

    def setup_method(self):
        self.engine = DipEngine()

    def test_oversold_quality_passes(self, oversold_quality):
        result = self.engine.evaluate(oversold_quality, 72, 88, 65)
        assert result.score == 85
        assert result.is_dip
        assert result.quality_check
        assert result.is_opportunity
        assert result.failure_reasons == ()

    def test_gate_rejects_weak_fundamentals(self, value_trap):
        result = self.engine.evaluate(value_trap, 30, 88, 65)
        assert result.is_dip
        assert not result.quality_check
        assert not result.is_opportunity
        assert len(result.failure_reasons) == 1
        assert "fundamentals" in result.failure_reasons[0]

    def test_gate_lists_every_failure(self, oversold_quality):
        result = self.engine.evaluate(oversold_quality, 10, 10, 10)
        assert len(result.failure_reasons) == 3

    def test_gate_bounds_are_inclusive(self, oversold_quality):
        assert self.engine.evaluate(oversold_quality, 35, 25, 20).quality_check

    def test_steady_chart_is_not_a_dip(self, quality_holding):
        result = self.engine.evaluate(quality_holding, 72, 88, 65)
        # only the 13% drop from the 52w high scores
        assert result.score == 4
        assert not result.is_dip

    def test_sma50_fallback(self):
        tech = TechnicalIndicators(sma50=90, price=80)
        result = self.engine.evaluate(ScoreInputs(ticker="T", technicals=tech), 50, 50, 50)
        # -11.1% below SMA50
        assert _points(result, "sma_distance") == 15

    def test_no_technicals_scores_zero(self, bare_inputs):
        result = self.engine.evaluate(bare_inputs, 50, 50, 50)
        assert result.score == 0
        assert not result.is_dip

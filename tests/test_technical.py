"""Tests for stockrec.analysis.technical -- indicator tiers, votes and bias."""

from dataclasses import replace

import pytest

from stockrec.analysis.models import ScoreInputs, TechnicalIndicators
from stockrec.analysis.technical import TechnicalScorer, bias_from_sentiment


def _score(tech, price=None):
    return TechnicalScorer().score(ScoreInputs(ticker="TEST", current_price=price, technicals=tech))


def _points(result, name):
    return next(c.points for c in result.components if c.name == name)


class TestTechnicalScorer:

    def test_absent_block_is_neutral(self):
        result = TechnicalScorer().score(ScoreInputs(ticker="TEST"))
        assert result.score == 50.0
        assert result.sentiment == "neutral"
        assert bias_from_sentiment(result.sentiment) == "NEUTRAL"

    def test_steady_fixture(self, steady_technicals):
        result = _score(steady_technicals)
        assert _points(result, "rsi") == 12
        assert _points(result, "macd") == 20
        assert _points(result, "bollinger") == 9
        assert _points(result, "adx") == 10
        assert _points(result, "stochastic") == 8
        assert result.score == 59
        assert result.sentiment == "bullish"

    def test_all_bullish_extremes(self):
        tech = TechnicalIndicators(
            rsi14=15, macd=1.0, macd_histogram=0.5,
            bollinger_upper=115, bollinger_middle=105, bollinger_lower=95, price=90,
            adx=45, plus_di=30, minus_di=10,
            stoch_k=10, stoch_d=5,
        )
        result = _score(tech)
        # 25 + 20 + 16 + 15 + 20
        assert result.score == 96
        assert bias_from_sentiment(result.sentiment) == "BULLISH"

    def test_bearish_votes_win(self):
        tech = TechnicalIndicators(rsi14=85, macd=-1.0, macd_histogram=-1.0, stoch_k=90, stoch_d=95)
        result = _score(tech)
        assert result.score == 1 + 2 + 2
        assert result.sentiment == "bearish"

    def test_tied_votes_are_neutral(self):
        tech = TechnicalIndicators(rsi14=25, stoch_k=90, stoch_d=95)
        assert _score(tech).sentiment == "neutral"

    def test_histogram_derived_from_lines(self):
        tech = TechnicalIndicators(macd=1.0, macd_signal=1.3)
        assert tech.histogram == pytest.approx(-0.3)
        assert _points(_score(tech), "macd") == 9

    @pytest.mark.parametrize("hist, macd, expected", [
        (0.4, 1.0, 20), (0.4, -1.0, 16), (0.0, 1.0, 9), (-0.5, -1.0, 2), (-0.8, 0.5, 5),
    ])
    def test_macd_tiers(self, hist, macd, expected):
        tech = TechnicalIndicators(macd=macd, macd_histogram=hist)
        assert _points(_score(tech), "macd") == expected

    def test_bollinger_squeeze_bonus(self):
        # %b 0.25 -> 12, bandwidth 4% -> +2
        tech = TechnicalIndicators(bollinger_upper=102, bollinger_middle=100, bollinger_lower=98, price=99)
        assert _points(_score(tech), "bollinger") == 14

    def test_bollinger_squeeze_capped_at_20(self):
        # %b -0.75 -> 18, squeeze would give 20 anyway
        tech = TechnicalIndicators(bollinger_upper=102, bollinger_middle=100, bollinger_lower=98, price=95)
        assert _points(_score(tech), "bollinger") == 20

    def test_bollinger_uses_quoted_price_when_snapshot_has_none(self):
        tech = TechnicalIndicators(bollinger_upper=110, bollinger_middle=100, bollinger_lower=90)
        assert _points(_score(tech, price=95), "bollinger") == 12

    @pytest.mark.parametrize("adx, plus_di, minus_di, expected", [
        (45, 10, 30, 15), (35, 30, 10, 13), (35, 10, 30, 8), (27, 30, 10, 10),
        (27, 10, 30, 6), (22, 30, 10, 4), (15, 30, 10, 2),
    ])
    def test_adx_tiers(self, adx, plus_di, minus_di, expected):
        tech = TechnicalIndicators(adx=adx, plus_di=plus_di, minus_di=minus_di)
        assert _points(_score(tech), "adx") == expected

    def test_very_strong_downtrend_votes_bearish(self):
        tech = TechnicalIndicators(adx=45, plus_di=10, minus_di=30)
        assert _score(tech).sentiment == "bearish"

    @pytest.mark.parametrize("k, d, expected", [
        (15, 10, 20), (15, 18, 16), (15, None, 16), (40, 30, 12), (70, 60, 8), (85, 90, 2), (85, 80, 4),
    ])
    def test_stochastic_tiers(self, k, d, expected):
        tech = TechnicalIndicators(stoch_k=k, stoch_d=d)
        assert _points(_score(tech), "stochastic") == expected

    def test_score_stays_in_bounds(self, steady_technicals):
        for rsi in (0, 19, 50, 79, 100):
            result = _score(replace(steady_technicals, rsi14=rsi))
            assert 0 <= result.score <= 100

"""Technical scorer: RSI, MACD, Bollinger, ADX and Stochastic.

Each indicator contributes points and, at the extremes, a bullish or
bearish vote.  The vote tally becomes the technical bias used by the exit
planner.  A missing indicator simply contributes nothing.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple

from stockrec.analysis.base import BaseScorer
from stockrec.analysis.models import (
    CategoryScore,
    ScoreComponent,
    ScoreInputs,
    TechnicalBias,
    TechnicalIndicators,
)
from stockrec.analysis.thresholds import DEFAULT_CONFIG, TechnicalConfig
from stockrec.utils.logger import setup_logger

logger = setup_logger("technical")

# (component, vote) where vote is "bullish", "bearish" or None
_Scored = Tuple[ScoreComponent, Optional[str]]


def bias_from_sentiment(sentiment: str) -> TechnicalBias:
    return {"bullish": "BULLISH", "bearish": "BEARISH"}.get(sentiment, "NEUTRAL")


class TechnicalScorer(BaseScorer):

    def __init__(self, config: TechnicalConfig = DEFAULT_CONFIG.technical):
        self.config = config

    @property
    def name(self) -> str:
        return "technical"

    @property
    def on_absent(self) -> str:
        return "neutral"

    def score(self, inputs: ScoreInputs) -> CategoryScore:
        tech = inputs.technicals
        if tech is None:
            return self.absent("No technical data available")

        # The snapshot may lack a close; fall back to the quoted price
        if tech.price is None and inputs.current_price is not None:
            tech = replace(tech, price=inputs.current_price)

        scored: List[_Scored] = []
        for part in (self._rsi, self._macd, self._bollinger, self._adx, self._stochastic):
            result = part(tech)
            if result is not None:
                scored.append(result)

        components = tuple(c for c, _ in scored)
        bullish = sum(1 for _, vote in scored if vote == "bullish")
        bearish = sum(1 for _, vote in scored if vote == "bearish")
        if bullish > bearish:
            sentiment = "bullish"
        elif bearish > bullish:
            sentiment = "bearish"
        else:
            sentiment = "neutral"

        total = sum(c.points for c in components)
        logger.debug(
            "%s technical=%.1f bull=%d bear=%d", inputs.ticker, total, bullish, bearish,
        )
        return CategoryScore(
            category=self.name,
            score=total,
            components=components,
            details=tuple(c.detail for c in components),
            sentiment=sentiment,
        )

    # ------------------------------------------------------------------
    # Indicators
    # ------------------------------------------------------------------

    def _rsi(self, tech: TechnicalIndicators) -> Optional[_Scored]:
        if tech.rsi14 is None:
            return None
        cfg = self.config
        tier = cfg.rsi.lookup(tech.rsi14)
        points = tier.points if tier else cfg.rsi.default
        vote = tier.tag if tier else "bearish"
        return ScoreComponent("rsi", points, cfg.rsi_max, f"RSI {tech.rsi14:.0f}"), vote

    def _macd(self, tech: TechnicalIndicators) -> Optional[_Scored]:
        hist = tech.histogram
        if hist is None:
            return None
        cfg = self.config
        macd = tech.macd
        if hist > 0 and macd is not None and macd > 0:
            points, vote, label = cfg.macd_strong_bull, "bullish", "strong bullish momentum"
        elif hist > 0:
            points, vote, label = cfg.macd_bull, "bullish", "bullish"
        elif hist > cfg.macd_flat_floor:
            points, vote, label = cfg.macd_flat, None, "slightly below signal"
        elif macd is not None and macd < 0:
            points, vote, label = cfg.macd_strong_bear, "bearish", "strong bearish momentum"
        else:
            points, vote, label = cfg.macd_bear, "bearish", "bearish"
        return ScoreComponent("macd", points, cfg.macd_max, f"MACD {label}"), vote

    def _bollinger(self, tech: TechnicalIndicators) -> Optional[_Scored]:
        pct_b = tech.bollinger_position
        if pct_b is None:
            return None
        cfg = self.config
        tier = cfg.bollinger.lookup(pct_b)
        points = tier.points if tier else cfg.bollinger.default
        vote = tier.tag if tier else "bearish"
        detail = f"Bollinger %b {pct_b:.2f}"

        bandwidth = tech.bollinger_bandwidth_pct
        if bandwidth is not None and bandwidth < cfg.bollinger_squeeze_pct:
            points = min(cfg.bollinger_max, points + cfg.bollinger_squeeze_bonus)
            detail += " (squeeze)"
        return ScoreComponent("bollinger", points, cfg.bollinger_max, detail), vote

    def _adx(self, tech: TechnicalIndicators) -> Optional[_Scored]:
        if tech.adx is None or tech.plus_di is None or tech.minus_di is None:
            return None
        cfg = self.config
        adx = tech.adx
        uptrend = tech.plus_di > tech.minus_di
        direction = "uptrend" if uptrend else "downtrend"
        trend_vote = "bullish" if uptrend else "bearish"

        if adx > cfg.adx_very_strong:
            points, vote, label = cfg.adx_very_strong_points, trend_vote, f"very strong {direction}"
        elif adx >= cfg.adx_strong:
            points = cfg.adx_strong_up if uptrend else cfg.adx_strong_down
            vote, label = trend_vote, f"strong {direction}"
        elif adx >= cfg.adx_moderate:
            points = cfg.adx_moderate_up if uptrend else cfg.adx_moderate_down
            vote, label = None, f"moderate {direction}"
        elif adx >= cfg.adx_weak:
            points, vote, label = cfg.adx_weak_points, None, "weak trend"
        else:
            points, vote, label = cfg.adx_sideways_points, None, "sideways"
        return ScoreComponent("adx", points, cfg.adx_max, f"ADX {adx:.0f} - {label}"), vote

    def _stochastic(self, tech: TechnicalIndicators) -> Optional[_Scored]:
        k = tech.stoch_k
        if k is None:
            return None
        cfg = self.config
        d = tech.stoch_d
        crossing_up = d is not None and k > d
        crossing_down = d is not None and k < d

        if k < cfg.stoch_oversold and crossing_up:
            points, vote = cfg.stoch_oversold_cross, "bullish"
        elif k < cfg.stoch_oversold:
            points, vote = cfg.stoch_oversold_points, "bullish"
        elif k < cfg.stoch_mid:
            points, vote = cfg.stoch_lower_points, None
        elif k < cfg.stoch_overbought:
            points, vote = cfg.stoch_upper_points, None
        elif crossing_down:
            points, vote = cfg.stoch_overbought_cross, "bearish"
        else:
            points, vote = cfg.stoch_overbought_points, "bearish"
        return ScoreComponent("stochastic", points, cfg.stoch_max, f"Stochastic %K {k:.0f}"), vote

"""Buy-the-dip detection and the quality gate that guards it."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from stockrec.analysis.models import ScoreComponent, ScoreInputs
from stockrec.analysis.thresholds import DEFAULT_CONFIG, DipConfig
from stockrec.utils.logger import setup_logger

logger = setup_logger("dip")


@dataclass(frozen=True)
class DipResult:
    score: float
    is_dip: bool
    quality_check: bool
    failure_reasons: Tuple[str, ...] = ()
    components: Tuple[ScoreComponent, ...] = ()

    @property
    def is_opportunity(self) -> bool:
        return self.is_dip and self.quality_check

    def to_dict(self) -> dict:
        return {
            "score": round(self.score, 2),
            "is_dip": self.is_dip,
            "quality_check": self.quality_check,
            "failure_reasons": list(self.failure_reasons),
            "components": [c.to_dict() for c in self.components],
        }


class DipEngine:
    """Sum five oversold signals, then gate on business quality.

    An oversold chart on a broken business is a value trap, so a dip only
    counts as an opportunity when fundamentals, analysts and news all clear
    their minimums.
    """

    def __init__(self, config: DipConfig = DEFAULT_CONFIG.dip):
        self.config = config

    def evaluate(
        self,
        inputs: ScoreInputs,
        fundamental_score: float,
        analyst_score: float,
        news_score: float,
    ) -> DipResult:
        cfg = self.config
        tech = inputs.technicals
        price = inputs.price

        if tech is not None and tech.price is None and price is not None:
            tech = replace(tech, price=price)

        rsi = tech.rsi14 if tech else None
        pct_b = tech.bollinger_position if tech else None
        # SMA200 when available, SMA50 otherwise
        sma = (tech.sma200 or tech.sma50) if tech else None
        sma_distance = distance_pct(price, sma)
        drop = None
        high = inputs.fifty_two_week_high
        if high and price is not None:
            drop = -distance_pct(price, high)

        components = (
            ScoreComponent("rsi", cfg.rsi.points(rsi), cfg.rsi.max_points),
            ScoreComponent("bollinger", cfg.bollinger.points(pct_b), cfg.bollinger.max_points),
            ScoreComponent("sma_distance", cfg.sma_distance.points(sma_distance), cfg.sma_distance.max_points),
            ScoreComponent("drop_from_high", cfg.drop_from_high.points(drop), cfg.drop_from_high.max_points),
            ScoreComponent("stochastic", cfg.stochastic.points(tech.stoch_k if tech else None),
                           cfg.stochastic.max_points),
        )
        score = sum(c.points for c in components)

        reasons = []
        if fundamental_score < cfg.min_fundamental:
            reasons.append(f"Weak fundamentals ({fundamental_score:.0f} < {cfg.min_fundamental:.0f})")
        if analyst_score < cfg.min_analyst:
            reasons.append(f"Weak analyst support ({analyst_score:.0f} < {cfg.min_analyst:.0f})")
        if news_score < cfg.min_news:
            reasons.append(f"Negative news flow ({news_score:.0f} < {cfg.min_news:.0f})")

        result = DipResult(
            score=score,
            is_dip=score >= cfg.trigger,
            quality_check=not reasons,
            failure_reasons=tuple(reasons),
            components=components,
        )
        if result.is_dip and not result.quality_check:
            logger.info("%s dip %.0f rejected by quality gate: %s", inputs.ticker, score, "; ".join(reasons))
        return result


def distance_pct(value: Optional[float], reference: Optional[float]) -> Optional[float]:
    if value is None or not reference:
        return None
    return (value - reference) / reference * 100

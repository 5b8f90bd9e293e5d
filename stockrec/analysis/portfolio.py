"""Portfolio-context scorer for held positions.

Answers "is this a good moment to add to *this* position": upside left to
target, price versus the average cost, concentration, and how much gain is
already banked.
"""

from __future__ import annotations

from typing import Optional

from stockrec.analysis.base import BaseScorer
from stockrec.analysis.models import (
    CategoryScore,
    ScoreComponent,
    ScoreInputs,
    sentiment_from_percent,
)
from stockrec.analysis.target import TargetResolution, resolve_for
from stockrec.analysis.thresholds import DEFAULT_CONFIG, PortfolioConfig, TargetConfig
from stockrec.utils.logger import setup_logger

logger = setup_logger("portfolio")


class PortfolioScorer(BaseScorer):

    def __init__(
        self,
        config: PortfolioConfig = DEFAULT_CONFIG.portfolio,
        target_config: TargetConfig = DEFAULT_CONFIG.target,
    ):
        self.config = config
        self.target_config = target_config

    @property
    def name(self) -> str:
        return "portfolio"

    @property
    def on_absent(self) -> str:
        return "neutral"

    def score(self, inputs: ScoreInputs, target: Optional[TargetResolution] = None) -> CategoryScore:
        position = inputs.position
        if position is None:
            return self.absent("Research ticker, no position")

        cfg = self.config
        if target is None:
            target = resolve_for(inputs, self.target_config)

        if target.upside_pct is None:
            upside = ScoreComponent("target_upside", cfg.no_target_points, cfg.target_upside.max_points, "No target")
        else:
            upside = ScoreComponent(
                "target_upside",
                cfg.target_upside.points(target.upside_pct),
                cfg.target_upside.max_points,
                f"{target.upside_pct:+.1f}% to {target.source} target",
            )

        distance = inputs.distance_from_avg
        dist = ScoreComponent(
            "distance_from_avg",
            cfg.distance_from_avg.points(distance) if distance is not None else 0.0,
            cfg.distance_from_avg.max_points,
            f"{distance:+.1f}% vs avg buy" if distance is not None else "",
        )

        weight = ScoreComponent(
            "position_weight",
            cfg.weight_pct.points(position.weight_pct),
            cfg.weight_pct.max_points,
            f"{position.weight_pct:.1f}% of portfolio",
        )

        gain_pct = position.gain_pct if position.gain_pct is not None else distance
        gain = ScoreComponent(
            "unrealized_gain",
            cfg.unrealized_gain.points(gain_pct) if gain_pct is not None else 0.0,
            cfg.unrealized_gain.max_points,
            f"Unrealized {gain_pct:+.1f}%" if gain_pct is not None else "",
        )

        components = (upside, dist, weight, gain)
        total = sum(c.points for c in components)
        logger.debug("%s portfolio=%.1f", inputs.ticker, total)
        return CategoryScore(
            category=self.name,
            score=total,
            components=components,
            details=tuple(c.detail for c in components if c.detail),
            sentiment=sentiment_from_percent(total),
        )

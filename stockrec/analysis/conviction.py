"""Conviction engine: how much to trust a position over a long horizon.

Three pillars, 100 points total:

* fundamental stability (40): ROE, 5y revenue CAGR, margin, low debt
* market position (30): analyst consensus, upside to target, earnings beats
* momentum & sentiment (30): insider score, price vs SMA200, RSI health
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from stockrec.analysis.models import ConvictionLevel, ScoreComponent, ScoreInputs
from stockrec.analysis.thresholds import ConvictionConfig, DEFAULT_CONFIG
from stockrec.utils.logger import setup_logger

logger = setup_logger("conviction")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ConvictionResult:
    score: float
    level: ConvictionLevel
    components: Tuple[ScoreComponent, ...] = ()

    def to_dict(self) -> dict:
        return {
            "score": round(self.score, 2),
            "level": self.level,
            "components": [c.to_dict() for c in self.components],
        }


class ConvictionEngine:

    def __init__(self, config: ConvictionConfig = DEFAULT_CONFIG.conviction):
        self.config = config

    def level_for(self, score: float) -> ConvictionLevel:
        if score >= self.config.high:
            return "HIGH"
        if score >= self.config.medium:
            return "MEDIUM"
        return "LOW"

    def evaluate(
        self,
        inputs: ScoreInputs,
        insider_score: float,
        upside_pct: Optional[float],
    ) -> ConvictionResult:
        """Score conviction from raw inputs plus two upstream results.

        ``insider_score`` is the insider category score and ``upside_pct``
        comes from the target resolver.
        """
        cfg = self.config
        f = inputs.fundamentals
        tech = inputs.technicals
        analysts = inputs.analysts

        def comp(name: str, table, value: Optional[float]) -> ScoreComponent:
            return ScoreComponent(name, table.points(value), table.max_points)

        # --- Fundamental stability ---
        components = [
            comp("roe", cfg.roe, f.roe if f else None),
            comp("revenue_cagr_5y", cfg.revenue_cagr, f.revenue_growth_5y if f else None),
            comp("net_margin", cfg.net_margin, f.net_margin if f else None),
            comp("low_debt", cfg.low_debt, f.debt_to_equity if f else None),
        ]

        # --- Market position ---
        consensus = analysts.consensus() if analysts else None
        consensus_points = 0.0
        if consensus is not None and consensus > cfg.consensus_min:
            consensus_points = float(
                min(cfg.consensus_max, round_half_up(consensus * cfg.consensus_multiplier))
            )
        components.append(ScoreComponent("consensus", consensus_points, cfg.consensus_max))
        components.append(comp("target_upside", cfg.target_upside, upside_pct))
        components.append(comp("earnings_beats", cfg.earnings_beats, f.earnings_beats if f else None))

        # --- Momentum & sentiment ---
        components.append(comp("insider", cfg.insider_score, insider_score))

        price = inputs.price
        ratio = None
        if tech is not None and tech.sma200 and price is not None:
            ratio = price / tech.sma200
        components.append(comp("price_vs_sma200", cfg.price_vs_sma200, ratio))
        components.append(
            ScoreComponent("rsi_health", self._rsi_points(tech.rsi14 if tech else None), cfg.rsi_core_points)
        )

        score = max(0.0, min(100.0, sum(c.points for c in components)))
        level = self.level_for(score)
        logger.debug("%s conviction=%.0f (%s)", inputs.ticker, score, level)
        return ConvictionResult(score, level, tuple(components))

    def _rsi_points(self, rsi: Optional[float]) -> float:
        if rsi is None:
            return 0.0
        cfg = self.config
        for (lo, hi), points in (
            (cfg.rsi_core, cfg.rsi_core_points),
            (cfg.rsi_shoulder, cfg.rsi_shoulder_points),
            (cfg.rsi_edge, cfg.rsi_edge_points),
        ):
            if lo <= rsi <= hi:
                return points
        return 0.0

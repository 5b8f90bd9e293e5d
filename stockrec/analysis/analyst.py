"""Analyst consensus scorer."""

from __future__ import annotations

from stockrec.analysis.base import BaseScorer
from stockrec.analysis.models import (
    CategoryScore,
    ScoreComponent,
    ScoreInputs,
    sentiment_from_percent,
)
from stockrec.analysis.thresholds import AnalystConfig, DEFAULT_CONFIG
from stockrec.utils.logger import setup_logger

logger = setup_logger("analyst")


class AnalystScorer(BaseScorer):
    """Consensus strength (70 pts) plus breadth of coverage (30 pts)."""

    def __init__(self, config: AnalystConfig = DEFAULT_CONFIG.analyst):
        self.config = config

    @property
    def name(self) -> str:
        return "analyst"

    @property
    def on_absent(self) -> str:
        return "zero"

    def score(self, inputs: ScoreInputs) -> CategoryScore:
        ratings = inputs.analysts
        if ratings is None:
            return self.absent("No analyst coverage")

        cfg = self.config
        consensus = ratings.consensus()
        count = ratings.analyst_count()

        consensus_detail = f"Consensus {consensus:+.2f}" if consensus is not None else ""
        coverage_detail = f"{count} analysts" if count else ""
        components = (
            ScoreComponent(
                "consensus", cfg.consensus.points(consensus), cfg.consensus.max_points, consensus_detail,
            ),
            ScoreComponent(
                "coverage", cfg.coverage.points(count), cfg.coverage.max_points, coverage_detail,
            ),
        )
        total = sum(c.points for c in components)
        logger.debug("%s analyst=%.1f consensus=%s", inputs.ticker, total, consensus)
        return CategoryScore(
            category=self.name,
            score=total,
            components=components,
            details=tuple(c.detail for c in components if c.detail),
            sentiment=sentiment_from_percent(total),
        )

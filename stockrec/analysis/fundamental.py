"""Fundamental quality scorer: valuation, profitability, growth and leverage."""

from __future__ import annotations

from typing import List, Optional

from stockrec.analysis.base import BaseScorer
from stockrec.analysis.models import (
    CategoryScore,
    ScoreComponent,
    ScoreInputs,
    sentiment_from_percent,
)
from stockrec.analysis.thresholds import DEFAULT_CONFIG, FundamentalConfig, TierTable
from stockrec.utils.logger import setup_logger

logger = setup_logger("fundamental")


class FundamentalScorer(BaseScorer):
    """Five equally weighted 20-point slices.

    Each slice is 0 when its metric is missing, so a company with no
    reported fundamentals scores 0 rather than a neutral 50.
    """

    def __init__(self, config: FundamentalConfig = DEFAULT_CONFIG.fundamental):
        self.config = config

    @property
    def name(self) -> str:
        return "fundamental"

    @property
    def on_absent(self) -> str:
        return "zero"

    def score(self, inputs: ScoreInputs) -> CategoryScore:
        f = inputs.fundamentals
        if f is None:
            return self.absent("No fundamental data available")

        cfg = self.config
        components: List[ScoreComponent] = []

        # Negative or zero earnings: no valuation credit at all
        if f.pe_ratio is not None and f.pe_ratio <= 0:
            components.append(ScoreComponent("pe_ratio", 0.0, cfg.slice_max, "Loss-making (P/E <= 0)"))
        else:
            components.append(self._slice("pe_ratio", f.pe_ratio, cfg.pe, "P/E {:.1f}"))

        components.append(self._slice("roe", f.roe, cfg.roe, "ROE {:.1f}%"))
        components.append(self._slice("net_margin", f.net_margin, cfg.net_margin, "Net margin {:.1f}%"))
        components.append(
            self._slice("revenue_growth", f.revenue_growth, cfg.revenue_growth, "Revenue growth {:.1f}%")
        )
        components.append(
            self._slice("debt_to_equity", f.debt_to_equity, cfg.debt_to_equity, "D/E {:.2f}")
        )

        total = sum(c.points for c in components)
        logger.debug("%s fundamental=%.1f", inputs.ticker, total)
        return CategoryScore(
            category=self.name,
            score=total,
            components=tuple(components),
            details=tuple(c.detail for c in components if c.detail),
            sentiment=sentiment_from_percent(total),
        )

    def _slice(self, name: str, value: Optional[float], table: TierTable, fmt: str) -> ScoreComponent:
        if value is None:
            return ScoreComponent(name, 0.0, self.config.slice_max, "")
        return ScoreComponent(name, table.points(value), self.config.slice_max, fmt.format(value))

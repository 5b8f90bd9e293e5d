"""Composite score: weighted blend of the six category scores.

Research tickers have no portfolio-context score.  ``research_mode``
decides what happens to its weight:

* ``renormalize`` -- drop it and rescale the other five weights to 1.0
* ``neutral``     -- keep the weight and substitute a neutral 50
"""

from __future__ import annotations

from typing import Dict, Optional

from stockrec.analysis.models import ScoreSet
from stockrec.analysis.thresholds import CompositeWeights, DEFAULT_CONFIG, ResearchMode
from stockrec.utils.logger import setup_logger

logger = setup_logger("scoring")

_NEUTRAL_SCORE: float = 50.0


class CompositeScorer:
    """Blend category scores into one 0-100 number (2 decimals)."""

    def __init__(
        self,
        weights: CompositeWeights = DEFAULT_CONFIG.weights,
        research_mode: ResearchMode = DEFAULT_CONFIG.research_mode,
    ):
        self.weights = weights
        self.research_mode = research_mode

    def effective_weights(self, has_position: bool) -> Dict[str, float]:
        weights = self.weights.as_dict()
        if has_position or self.research_mode == "neutral":
            return weights
        weights.pop("portfolio")
        total = sum(weights.values())
        return {k: v / total for k, v in weights.items()}

    def combine(self, values: Dict[str, Optional[float]]) -> float:
        has_position = values.get("portfolio") is not None
        weights = self.effective_weights(has_position)

        composite = 0.0
        for category, weight in weights.items():
            value = values.get(category)
            if value is None:
                value = _NEUTRAL_SCORE
            composite += value * weight

        composite = round(max(0.0, min(100.0, composite)), 2)
        logger.debug("composite=%.2f (mode=%s, position=%s)", composite, self.research_mode, has_position)
        return composite

    def score(self, scores: ScoreSet) -> float:
        return self.combine(scores.values())

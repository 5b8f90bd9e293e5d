"""Base class for all category scorers."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Literal

from stockrec.analysis.models import CategoryScore, ScoreInputs

AbsentPolicy = Literal["zero", "neutral"]


class BaseScorer(ABC):
    """Interface every category scorer must implement.

    To add a scorer:
    1. Create a module in stockrec/analysis/ (e.g., valuation.py)
    2. Define a class that extends BaseScorer
    3. Implement name, on_absent and score()
    4. Add its weight to CompositeWeights in thresholds.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Category key used in CompositeWeights and the breakdown."""
        ...

    @property
    @abstractmethod
    def on_absent(self) -> AbsentPolicy:
        """What a missing input block scores: 0 or the neutral 50."""
        ...

    @abstractmethod
    def score(self, inputs: ScoreInputs) -> CategoryScore:
        """Score one ticker. Never raises on missing data."""
        ...

    def absent(self, reason: str = "No data available") -> CategoryScore:
        value = 50.0 if self.on_absent == "neutral" else 0.0
        return CategoryScore(category=self.name, score=value, details=(reason,))

"""Target price resolution: personal target, then analyst, then an estimate."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from stockrec.analysis.models import ScoreInputs
from stockrec.analysis.thresholds import DEFAULT_CONFIG, TargetConfig

TargetSource = Literal["personal", "analyst", "estimated"]


@dataclass(frozen=True)
class TargetResolution:
    price: Optional[float] = None
    upside_pct: Optional[float] = None
    source: Optional[TargetSource] = None

    @property
    def concrete_upside(self) -> Optional[float]:
        """Upside to a real price target; None for a consensus estimate."""
        return self.upside_pct if self.price is not None else None

    def to_dict(self) -> dict:
        return {
            "price": round(self.price, 2) if self.price is not None else None,
            "upside_pct": round(self.upside_pct, 2) if self.upside_pct is not None else None,
            "source": self.source,
        }


def _upside(target: float, current: Optional[float]) -> Optional[float]:
    if current is None or current <= 0:
        return None
    return (target - current) / current * 100


def resolve_target(
    current_price: Optional[float],
    personal: Optional[float] = None,
    analyst_target: Optional[float] = None,
    consensus_score: Optional[float] = None,
    config: TargetConfig = DEFAULT_CONFIG.target,
) -> TargetResolution:
    """Pick the first available target source.

    A personal target beats the analyst mean target.  With neither, the
    upside is estimated from the consensus score and no price is reported;
    a weak consensus still reports ``source="estimated"`` with no upside.
    """
    if personal is not None and personal > 0:
        return TargetResolution(personal, _upside(personal, current_price), "personal")

    if analyst_target is not None and analyst_target > 0:
        return TargetResolution(analyst_target, _upside(analyst_target, current_price), "analyst")

    if consensus_score is not None:
        tier = config.estimated_upside.lookup(consensus_score)
        if tier is None:
            return TargetResolution(source="estimated")
        # Upside only: scoring may use it, but there is no price to plan against
        return TargetResolution(upside_pct=tier.points, source="estimated")

    return TargetResolution()


def resolve_for(inputs: ScoreInputs, config: TargetConfig = DEFAULT_CONFIG.target) -> TargetResolution:
    personal = inputs.position.target_price if inputs.position else None
    analyst_target = inputs.analysts.target_price if inputs.analysts else None
    consensus = inputs.analysts.consensus() if inputs.analysts else None
    return resolve_target(inputs.price, personal, analyst_target, consensus, config)

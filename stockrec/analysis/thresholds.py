"""Point tiers, weights and signal thresholds for the recommendation engine.

Every number a scorer uses lives here, grouped into one frozen dataclass per
engine component. Scorers receive their group at construction, so tests can
swap in alternate thresholds without touching scoring logic.

A ``TierTable`` is an ordered tuple of ``Tier`` rows evaluated top-to-bottom;
the first row whose comparison holds supplies the points (and an optional
bullish/bearish tag).  ``default`` applies when nothing matches.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Literal, Mapping, Optional, Tuple

from stockrec.exceptions import ConfigError

Comparison = Literal[">", ">=", "<", "<="]
ResearchMode = Literal["renormalize", "neutral"]

_OPS: Dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


@dataclass(frozen=True)
class Tier:
    op: Comparison
    bound: float
    points: float
    tag: Optional[str] = None  # "bullish" / "bearish" for technical tiers

    def matches(self, value: float) -> bool:
        return _OPS[self.op](value, self.bound)


@dataclass(frozen=True)
class TierTable:
    tiers: Tuple[Tier, ...]
    default: float = 0.0

    def lookup(self, value: Optional[float]) -> Optional[Tier]:
        """Return the first matching tier, or ``None``."""
        if value is None:
            return None
        for tier in self.tiers:
            if tier.matches(value):
                return tier
        return None

    def points(self, value: Optional[float]) -> float:
        tier = self.lookup(value)
        return tier.points if tier is not None else self.default

    @property
    def max_points(self) -> float:
        return max([t.points for t in self.tiers] + [self.default])


def _table(*rows: Tuple, default: float = 0.0) -> TierTable:
    return TierTable(tuple(Tier(*row) for row in rows), default)


# ===================================================================
# Category scorers
# ===================================================================

@dataclass(frozen=True)
class FundamentalConfig:
    pe: TierTable = _table(("<", 12, 20), ("<", 20, 15), ("<", 30, 10), ("<", 50, 5))
    roe: TierTable = _table((">", 25, 20), (">", 18, 16), (">", 12, 12), (">", 5, 6))
    net_margin: TierTable = _table((">", 25, 20), (">", 15, 15), (">", 8, 10), (">", 0, 5))
    revenue_growth: TierTable = _table((">", 25, 20), (">", 15, 15), (">", 5, 10), (">", 0, 5))
    debt_to_equity: TierTable = _table(("<", 0.3, 20), ("<", 0.7, 16), ("<", 1.5, 10), ("<", 2.5, 4))
    slice_max: float = 20.0


@dataclass(frozen=True)
class TechnicalConfig:
    neutral_score: float = 50.0
    rsi: TierTable = _table(
        ("<", 20, 25, "bullish"),
        ("<", 30, 22, "bullish"),
        ("<", 40, 18),
        ("<", 50, 15),
        ("<", 60, 12),
        ("<", 70, 8),
        ("<", 80, 4, "bearish"),
        default=1,
    )
    rsi_max: float = 25.0
    # MACD (max 20)
    macd_strong_bull: float = 20.0
    macd_bull: float = 16.0
    macd_flat: float = 9.0
    macd_flat_floor: float = -0.5
    macd_strong_bear: float = 2.0
    macd_bear: float = 5.0
    macd_max: float = 20.0
    # Bollinger %b (max 20); "far" means half a band-width outside
    bollinger: TierTable = _table(
        ("<", -0.5, 18, "bullish"),
        ("<", 0.0, 16, "bullish"),
        ("<", 0.5, 12),
        ("<", 1.0, 9),
        ("<", 1.5, 5, "bearish"),
        default=2,
    )
    bollinger_squeeze_pct: float = 5.0
    bollinger_squeeze_bonus: float = 2.0
    bollinger_max: float = 20.0
    # ADX (max 15)
    adx_very_strong: float = 40.0
    adx_strong: float = 30.0
    adx_moderate: float = 25.0
    adx_weak: float = 20.0
    adx_very_strong_points: float = 15.0
    adx_strong_up: float = 13.0
    adx_strong_down: float = 8.0
    adx_moderate_up: float = 10.0
    adx_moderate_down: float = 6.0
    adx_weak_points: float = 4.0
    adx_sideways_points: float = 2.0
    adx_max: float = 15.0
    # Stochastic (max 20)
    stoch_oversold: float = 20.0
    stoch_mid: float = 50.0
    stoch_overbought: float = 80.0
    stoch_oversold_cross: float = 20.0
    stoch_oversold_points: float = 16.0
    stoch_lower_points: float = 12.0
    stoch_upper_points: float = 8.0
    stoch_overbought_cross: float = 2.0
    stoch_overbought_points: float = 4.0
    stoch_max: float = 20.0


@dataclass(frozen=True)
class AnalystConfig:
    consensus: TierTable = _table(
        (">", 1.5, 70), (">", 1.0, 58), (">", 0.5, 45), (">", 0.0, 35),
        (">", -0.5, 22), (">", -1.0, 11),
    )
    coverage: TierTable = _table((">=", 20, 30), (">=", 10, 24), (">=", 5, 16), (">=", 1, 8))


@dataclass(frozen=True)
class SentimentConfig:
    news_neutral: float = 50.0
    insider_neutral: float = 50.0


@dataclass(frozen=True)
class PortfolioConfig:
    target_upside: TierTable = _table(
        (">", 30, 30), (">", 20, 24), (">", 10, 18), (">", 5, 12), (">", 0, 6),
    )
    no_target_points: float = 15.0
    distance_from_avg: TierTable = _table(
        ("<", -15, 25), ("<", -10, 20), ("<", 0, 15), ("<", 25, 10), ("<", 50, 5),
        default=2,
    )
    weight_pct: TierTable = _table((">", 12, 4), (">", 6, 12), (">=", 3, 20), default=15)
    unrealized_gain: TierTable = _table(
        (">", 75, 12), (">", 40, 16), (">", 15, 20), (">", 0, 25), (">", -15, 18), (">", -30, 12),
        default=5,
    )


# ===================================================================
# Aggregation, target, conviction, dip
# ===================================================================

@dataclass(frozen=True)
class CompositeWeights:
    fundamental: float = 0.20
    technical: float = 0.25
    analyst: float = 0.15
    news: float = 0.10
    insider: float = 0.10
    portfolio: float = 0.20

    def __post_init__(self) -> None:
        total = sum(self.as_dict().values())
        if abs(total - 1.0) > 1e-6:
            raise ConfigError(f"Composite weights must sum to 1.0, got {total:.4f}")

    def as_dict(self) -> Dict[str, float]:
        return {
            "fundamental": self.fundamental,
            "technical": self.technical,
            "analyst": self.analyst,
            "news": self.news,
            "insider": self.insider,
            "portfolio": self.portfolio,
        }


@dataclass(frozen=True)
class TargetConfig:
    # Consensus score -> estimated upside % when no concrete target exists
    estimated_upside: TierTable = _table((">=", 1.5, 25), (">=", 1.0, 15), (">=", 0.5, 8))


@dataclass(frozen=True)
class ConvictionConfig:
    roe: TierTable = _table((">", 20, 12), (">", 15, 9), (">", 10, 5))
    revenue_cagr: TierTable = _table((">", 15, 10), (">", 10, 7), (">", 5, 4))
    net_margin: TierTable = _table((">", 20, 10), (">", 12, 7), (">", 5, 3))
    low_debt: TierTable = _table(("<", 0.5, 8), ("<", 1.0, 5), ("<", 2.0, 2))
    consensus_min: float = 0.5
    consensus_multiplier: float = 6.0
    consensus_max: float = 12.0
    target_upside: TierTable = _table((">", 25, 10), (">", 15, 7), (">", 5, 3))
    earnings_beats: TierTable = _table((">=", 4, 8), (">=", 3, 6), (">=", 2, 3))
    insider_score: TierTable = _table((">", 65, 12), (">", 55, 8), (">", 45, 4))
    price_vs_sma200: TierTable = _table((">", 1.05, 10), (">", 1.0, 7), (">", 0.95, 3))
    # RSI bands (max 8): healthy middle, then widening shoulders
    rsi_core: Tuple[float, float] = (40.0, 60.0)
    rsi_core_points: float = 8.0
    rsi_shoulder: Tuple[float, float] = (30.0, 70.0)
    rsi_shoulder_points: float = 5.0
    rsi_edge: Tuple[float, float] = (25.0, 75.0)
    rsi_edge_points: float = 2.0
    high: float = 70.0
    medium: float = 45.0


@dataclass(frozen=True)
class DipConfig:
    rsi: TierTable = _table(("<", 25, 25), ("<", 30, 20), ("<", 35, 15), ("<", 40, 8))
    bollinger: TierTable = _table(("<", -0.5, 20), ("<", 0.0, 15), ("<", 0.2, 8))
    sma_distance: TierTable = _table(("<", -15, 20), ("<", -10, 15), ("<", -5, 10), ("<", 0, 5))
    drop_from_high: TierTable = _table((">", 35, 15), (">", 25, 12), (">", 15, 8), (">", 10, 4))
    stochastic: TierTable = _table(("<", 10, 10), ("<", 20, 7), ("<", 30, 3))
    trigger: float = 50.0
    min_fundamental: float = 35.0
    min_analyst: float = 25.0
    min_news: float = 20.0


# ===================================================================
# Signals & strategy
# ===================================================================

@dataclass(frozen=True)
class SignalConfig:
    dip_trigger: float = 50.0
    momentum_technical: float = 70.0
    momentum_rsi: Tuple[float, float] = (50.0, 70.0)
    near_target_pct: float = 8.0
    trim_technical_below: float = 40.0
    trim_rsi_above: float = 70.0
    trim_weight_pct_above: float = 8.0
    trim_upside_below: float = 5.0
    watch_fundamental: Tuple[float, float] = (20.0, 35.0)
    watch_insider_below: float = 35.0
    watch_news: Tuple[float, float] = (15.0, 30.0)
    accumulate_dip: Tuple[float, float] = (20.0, 40.0)
    accumulate_fundamental: float = 50.0


@dataclass(frozen=True)
class StrategyConfig:
    buy_zone_fallback: float = 0.90
    avg_price_tolerance: float = 1.05
    # (weight % strictly above, plan, max add % of portfolio)
    dca_no_add_above: float = 12.0
    dca_cautious_above: float = 8.0
    dca_normal_from: float = 3.0
    dca_cautious_max_add: float = 0.5
    dca_normal_max_add: float = 1.0
    dca_aggressive_max_add: float = 2.0
    tp1_bullish: float = 0.12
    tp1_default: float = 0.08
    tp2_bullish: float = 0.25
    tp2_default: float = 0.18
    tp3_high: float = 0.50
    tp3_default: float = 0.35
    target_snap: float = 1.10
    target_extension: float = 1.15
    stop_loss_drawdown: Mapping[str, float] = field(
        default_factory=lambda: {"HIGH": 0.15, "MEDIUM": 0.12, "LOW": 0.08}
    )
    technical_stop_buffer: float = 0.97
    trailing_by_gain: TierTable = _table((">=", 50, 6), (">=", 30, 8), (">=", 20, 10))
    trailing_by_conviction: Mapping[str, float] = field(
        default_factory=lambda: {"HIGH": 15.0, "MEDIUM": 12.0, "LOW": 10.0}
    )
    swing_gain_pct: float = 50.0


# ===================================================================
# Engine-wide bundle
# ===================================================================

@dataclass(frozen=True)
class EngineConfig:
    fundamental: FundamentalConfig = field(default_factory=FundamentalConfig)
    technical: TechnicalConfig = field(default_factory=TechnicalConfig)
    analyst: AnalystConfig = field(default_factory=AnalystConfig)
    sentiment: SentimentConfig = field(default_factory=SentimentConfig)
    portfolio: PortfolioConfig = field(default_factory=PortfolioConfig)
    weights: CompositeWeights = field(default_factory=CompositeWeights)
    research_mode: ResearchMode = "renormalize"
    target: TargetConfig = field(default_factory=TargetConfig)
    conviction: ConvictionConfig = field(default_factory=ConvictionConfig)
    dip: DipConfig = field(default_factory=DipConfig)
    signals: SignalConfig = field(default_factory=SignalConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)

    def __post_init__(self) -> None:
        if self.research_mode not in ("renormalize", "neutral"):
            raise ConfigError(f"Unknown research_mode: {self.research_mode!r}")


DEFAULT_CONFIG = EngineConfig()


def load_engine_config(settings: Optional[Mapping[str, Any]] = None) -> EngineConfig:
    """Build an ``EngineConfig`` from the ``engine`` section of settings.yaml.

    Only weights, ``research_mode`` and ``dip_trigger`` are overridable from
    YAML; everything else keeps its coded default.
    """
    engine = dict((settings or {}).get("engine") or {})
    config = EngineConfig()

    weights = engine.get("weights")
    if weights:
        config = replace(config, weights=CompositeWeights(**{k: float(v) for k, v in weights.items()}))

    if "research_mode" in engine:
        config = replace(config, research_mode=engine["research_mode"])

    if "dip_trigger" in engine:
        trigger = float(engine["dip_trigger"])
        config = replace(
            config,
            dip=replace(config.dip, trigger=trigger),
            signals=replace(config.signals, dip_trigger=trigger),
        )

    return config

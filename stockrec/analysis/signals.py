"""Signal generator: an ordered rule table folded once per ticker.

Each rule pairs a predicate over ``SignalContext`` with a strength function
and a priority (lower is more urgent).  Every matching rule emits a signal;
the primary signal is the lowest priority, ties going to table order.
NEUTRAL fires only when nothing else matched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Literal, Optional, Tuple

from stockrec.analysis.models import ConvictionLevel
from stockrec.analysis.thresholds import DEFAULT_CONFIG, SignalConfig
from stockrec.utils.logger import setup_logger

logger = setup_logger("signals")

SignalCategory = Literal["action", "quality"]


class SignalType(str, Enum):
    DIP_OPPORTUNITY = "DIP_OPPORTUNITY"
    MOMENTUM = "MOMENTUM"
    CONVICTION_HOLD = "CONVICTION_HOLD"
    NEAR_TARGET = "NEAR_TARGET"
    CONSIDER_TRIM = "CONSIDER_TRIM"
    WATCH_CLOSELY = "WATCH_CLOSELY"
    ACCUMULATE = "ACCUMULATE"
    NEUTRAL = "NEUTRAL"


BUY_SIGNALS = frozenset({SignalType.DIP_OPPORTUNITY, SignalType.ACCUMULATE})


@dataclass(frozen=True)
class StockSignal:
    type: SignalType
    category: SignalCategory
    strength: float
    title: str
    description: str
    priority: int

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "category": self.category,
            "strength": round(self.strength, 2),
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class SignalContext:
    """Everything the rules look at, computed upstream."""

    fundamental: float
    technical: float
    analyst: float
    news: float
    insider: float
    dip_score: float
    dip_quality: bool
    conviction_score: float
    conviction_level: ConvictionLevel
    rsi: Optional[float] = None
    upside_pct: Optional[float] = None
    weight_pct: Optional[float] = None


@dataclass(frozen=True)
class SignalRule:
    type: SignalType
    category: SignalCategory
    priority: int
    title: str
    when: Callable[[SignalContext, SignalConfig], bool]
    strength: Callable[[SignalContext], float]
    describe: Callable[[SignalContext, SignalConfig], str]


def _between(value: Optional[float], bounds: Tuple[float, float]) -> bool:
    return value is not None and bounds[0] <= value <= bounds[1]


def _watch(ctx: SignalContext, cfg: SignalConfig) -> bool:
    return (
        _between(ctx.fundamental, cfg.watch_fundamental)
        or ctx.insider < cfg.watch_insider_below
        or _between(ctx.news, cfg.watch_news)
    )


def _watch_reason(ctx: SignalContext, cfg: SignalConfig) -> str:
    reasons = []
    if _between(ctx.fundamental, cfg.watch_fundamental):
        reasons.append(f"borderline fundamentals ({ctx.fundamental:.0f})")
    if ctx.insider < cfg.watch_insider_below:
        reasons.append(f"insider selling ({ctx.insider:.0f})")
    if _between(ctx.news, cfg.watch_news):
        reasons.append(f"negative news ({ctx.news:.0f})")
    return "Monitor: " + (", ".join(reasons) if reasons else "mixed signals")


def _trim(ctx: SignalContext, cfg: SignalConfig) -> bool:
    return (
        ctx.technical < cfg.trim_technical_below
        and ctx.rsi is not None and ctx.rsi > cfg.trim_rsi_above
        and ctx.weight_pct is not None and ctx.weight_pct > cfg.trim_weight_pct_above
        and ctx.upside_pct is not None and ctx.upside_pct < cfg.trim_upside_below
    )


RULES: Tuple[SignalRule, ...] = (
    SignalRule(
        SignalType.DIP_OPPORTUNITY, "action", 1, "Buy the dip",
        lambda c, cfg: c.dip_score >= cfg.dip_trigger and c.dip_quality,
        lambda c: c.dip_score,
        lambda c, cfg: f"Oversold (dip score {c.dip_score:.0f}) with fundamentals intact",
    ),
    SignalRule(
        SignalType.MOMENTUM, "action", 2, "Strong momentum",
        lambda c, cfg: c.technical >= cfg.momentum_technical and _between(c.rsi, cfg.momentum_rsi),
        lambda c: c.technical,
        lambda c, cfg: f"Technical score {c.technical:.0f} with healthy RSI {c.rsi:.0f}",
    ),
    SignalRule(
        SignalType.CONVICTION_HOLD, "quality", 3, "High conviction hold",
        lambda c, cfg: c.conviction_level == "HIGH",
        lambda c: c.conviction_score,
        lambda c, cfg: f"Conviction {c.conviction_score:.0f}/100, long-term quality",
    ),
    SignalRule(
        SignalType.NEAR_TARGET, "action", 4, "Near target price",
        lambda c, cfg: c.upside_pct is not None and abs(c.upside_pct) <= cfg.near_target_pct,
        lambda c: 100 - 5 * abs(c.upside_pct),
        lambda c, cfg: f"Only {c.upside_pct:+.1f}% from target",
    ),
    SignalRule(
        SignalType.CONSIDER_TRIM, "action", 5, "Consider trimming",
        _trim,
        lambda c: 70.0,
        lambda c, cfg: f"Overbought (RSI {c.rsi:.0f}), {c.weight_pct:.1f}% weight, little upside left",
    ),
    SignalRule(
        SignalType.WATCH_CLOSELY, "quality", 6, "Watch closely",
        _watch,
        lambda c: 50.0,
        _watch_reason,
    ),
    SignalRule(
        SignalType.ACCUMULATE, "action", 7, "Accumulate",
        lambda c, cfg: (
            c.conviction_level != "LOW"
            and _between(c.dip_score, cfg.accumulate_dip)
            and c.fundamental >= cfg.accumulate_fundamental
        ),
        lambda c: 60.0,
        lambda c, cfg: f"Mild pullback (dip {c.dip_score:.0f}) on a solid business",
    ),
)

NEUTRAL_RULE = SignalRule(
    SignalType.NEUTRAL, "quality", 10, "No action",
    lambda c, cfg: True,
    lambda c: 50.0,
    lambda c, cfg: "No strong signal in either direction",
)


def _emit(rule: SignalRule, ctx: SignalContext, cfg: SignalConfig) -> StockSignal:
    strength = max(0.0, min(100.0, rule.strength(ctx)))
    return StockSignal(rule.type, rule.category, strength, rule.title, rule.describe(ctx, cfg), rule.priority)


class SignalGenerator:

    def __init__(self, config: SignalConfig = DEFAULT_CONFIG.signals, rules: Tuple[SignalRule, ...] = RULES):
        self.config = config
        self.rules = rules

    def generate(self, ctx: SignalContext) -> Tuple[List[StockSignal], StockSignal]:
        """Return (signals sorted by priority, primary signal)."""
        signals = [_emit(rule, ctx, self.config) for rule in self.rules if rule.when(ctx, self.config)]
        if not signals:
            signals = [_emit(NEUTRAL_RULE, ctx, self.config)]
        # sorted() is stable, so equal priorities keep table order
        signals = sorted(signals, key=lambda s: s.priority)
        primary = signals[0]
        logger.debug("signals=%s primary=%s", [s.type.value for s in signals], primary.type.value)
        return signals, primary

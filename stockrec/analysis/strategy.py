"""Buy and exit planning from support/resistance levels and position context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

from stockrec.analysis.models import ConvictionLevel, ScoreInputs, TechnicalBias
from stockrec.analysis.signals import BUY_SIGNALS, SignalType
from stockrec.analysis.thresholds import DEFAULT_CONFIG, StrategyConfig
from stockrec.utils.logger import setup_logger

logger = setup_logger("strategy")

DcaPlan = Literal["AGGRESSIVE", "NORMAL", "CAUTIOUS", "NO_DCA"]
HoldingPeriod = Literal["SWING", "MEDIUM", "LONG"]


def _r2(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BuyStrategy:
    buy_zone_low: Optional[float]
    buy_zone_high: Optional[float]
    in_buy_zone: bool
    dca_recommendation: DcaPlan
    dca_reason: str
    max_add_percent: float
    risk_reward_ratio: Optional[float]
    support_price: Optional[float]

    def to_dict(self) -> dict:
        return {
            "buy_zone_low": _r2(self.buy_zone_low),
            "buy_zone_high": _r2(self.buy_zone_high),
            "in_buy_zone": self.in_buy_zone,
            "dca_recommendation": self.dca_recommendation,
            "dca_reason": self.dca_reason,
            "max_add_percent": self.max_add_percent,
            "risk_reward_ratio": self.risk_reward_ratio,
            "support_price": _r2(self.support_price),
        }


@dataclass(frozen=True)
class ExitStrategy:
    take_profit_1: Optional[float]
    take_profit_2: Optional[float]
    take_profit_3: Optional[float]
    stop_loss: Optional[float]
    trailing_stop_percent: float
    holding_period: HoldingPeriod
    holding_reason: str
    resistance_level: Optional[float]

    def to_dict(self) -> dict:
        return {
            "take_profit_1": _r2(self.take_profit_1),
            "take_profit_2": _r2(self.take_profit_2),
            "take_profit_3": _r2(self.take_profit_3),
            "stop_loss": _r2(self.stop_loss),
            "trailing_stop_percent": self.trailing_stop_percent,
            "holding_period": self.holding_period,
            "holding_reason": self.holding_reason,
            "resistance_level": _r2(self.resistance_level),
        }


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------

def support_level(inputs: ScoreInputs) -> Optional[float]:
    """Second-lowest of BB lower, SMA200 and 52w low (lowest if only one)."""
    tech = inputs.technicals
    levels: List[float] = [
        v for v in (
            tech.bollinger_lower if tech else None,
            tech.sma200 if tech else None,
            inputs.fifty_two_week_low,
        )
        if v is not None
    ]
    if not levels:
        return None
    levels.sort()
    return levels[1] if len(levels) > 1 else levels[0]


def resistance_level(inputs: ScoreInputs) -> Optional[float]:
    """Lowest of BB upper and 52w high that sits above the current price."""
    price = inputs.price
    if price is None:
        return None
    tech = inputs.technicals
    above = [
        v for v in (tech.bollinger_upper if tech else None, inputs.fifty_two_week_high)
        if v is not None and v > price
    ]
    return min(above) if above else None


class StrategyPlanner:

    def __init__(self, config: StrategyConfig = DEFAULT_CONFIG.strategy):
        self.config = config

    # ------------------------------------------------------------------
    # Buy side
    # ------------------------------------------------------------------

    def buy_strategy(
        self,
        inputs: ScoreInputs,
        primary_signal: SignalType,
        target_price: Optional[float],
    ) -> BuyStrategy:
        cfg = self.config
        price = inputs.price
        position = inputs.position
        support = support_level(inputs)

        low: Optional[float] = None
        high: Optional[float] = None
        if price is not None and price > 0:
            if support is not None and support < price:
                low = support
            else:
                low = price * cfg.buy_zone_fallback
            if position is not None and position.avg_buy_price > 0:
                high = min(position.avg_buy_price * cfg.avg_price_tolerance, price)
            else:
                high = price
            if low >= high:
                low = high * cfg.buy_zone_fallback

        in_zone = low is not None and high is not None and low <= price <= high

        weight_pct = position.weight_pct if position else 0.0
        if weight_pct > cfg.dca_no_add_above:
            plan, reason, max_add = "NO_DCA", f"Overweight (>{cfg.dca_no_add_above:.0f}%)", 0.0
        elif weight_pct > cfg.dca_cautious_above:
            plan = "CAUTIOUS"
            reason = f"Slightly overweight ({cfg.dca_cautious_above:.0f}-{cfg.dca_no_add_above:.0f}%)"
            max_add = cfg.dca_cautious_max_add
        elif weight_pct >= cfg.dca_normal_from:
            plan = "NORMAL"
            reason = f"Balanced position ({cfg.dca_normal_from:.0f}-{cfg.dca_cautious_above:.0f}%)"
            max_add = cfg.dca_normal_max_add
        else:
            plan = "AGGRESSIVE"
            reason = f"Underweight (<{cfg.dca_normal_from:.0f}%)"
            max_add = cfg.dca_aggressive_max_add

        if primary_signal not in BUY_SIGNALS and plan != "NO_DCA":
            plan, reason = "CAUTIOUS", "No strong buy signal"
            max_add = min(max_add, cfg.dca_cautious_max_add)

        risk_reward = None
        if target_price and price and support is not None and support < price:
            downside = price - support
            if downside > 0:
                risk_reward = round((target_price - price) / downside, 1)

        return BuyStrategy(low, high, in_zone, plan, reason, max_add, risk_reward, support)

    # ------------------------------------------------------------------
    # Exit side
    # ------------------------------------------------------------------

    def exit_strategy(
        self,
        inputs: ScoreInputs,
        conviction: ConvictionLevel,
        bias: TechnicalBias,
        target_price: Optional[float],
    ) -> ExitStrategy:
        cfg = self.config
        price = inputs.price
        position = inputs.position
        resistance = resistance_level(inputs)
        high_52w = inputs.fifty_two_week_high

        tp1 = tp2 = tp3 = None
        if price is not None and price > 0:
            bullish = bias == "BULLISH"
            tp1 = round(price * (1 + (cfg.tp1_bullish if bullish else cfg.tp1_default)), 2)
            if resistance is not None and resistance < tp1:
                tp1 = resistance
            tp2 = round(price * (1 + (cfg.tp2_bullish if bullish else cfg.tp2_default)), 2)

            if target_price and target_price > price:
                if target_price <= tp1 * cfg.target_snap:
                    tp1 = target_price
                    tp2 = round(target_price * cfg.target_extension, 2)
                elif target_price <= tp2 * cfg.target_snap:
                    tp2 = target_price

            tp3 = round(price * (1 + (cfg.tp3_high if conviction == "HIGH" else cfg.tp3_default)), 2)
            if target_price and target_price > tp2:
                tp3 = target_price
            if high_52w and high_52w > tp3:
                tp3 = high_52w

        stop = None
        if position is not None and position.avg_buy_price > 0 and price:
            stop = position.avg_buy_price * (1 - cfg.stop_loss_drawdown[conviction])
            tech = inputs.technicals
            if price < position.avg_buy_price and tech is not None and tech.bollinger_lower:
                stop = max(stop, tech.bollinger_lower * cfg.technical_stop_buffer)
            stop = round(stop, 2)
        elif position is None:
            support = support_level(inputs)
            if support is not None:
                stop = round(support * cfg.technical_stop_buffer, 2)

        gain = 0.0
        if position is not None:
            if position.gain_pct is not None:
                gain = position.gain_pct
            elif inputs.distance_from_avg is not None:
                gain = inputs.distance_from_avg
        tier = cfg.trailing_by_gain.lookup(gain)
        trailing = tier.points if tier else cfg.trailing_by_conviction[conviction]

        if conviction == "HIGH" and bias != "BEARISH":
            period, reason = "LONG", "Strong fundamentals and positive outlook"
        elif bias == "BEARISH":
            period, reason = "SWING", "Bearish technicals, consider a quick exit"
        elif conviction == "LOW":
            period, reason = "SWING", "Weak fundamentals, trade momentum only"
        else:
            period, reason = "MEDIUM", "Hold for target, reassess quarterly"

        if gain > cfg.swing_gain_pct and conviction != "HIGH":
            period, reason = "SWING", "Large unrealized gain, consider taking profits"

        return ExitStrategy(tp1, tp2, tp3, stop, trailing, period, reason, resistance)

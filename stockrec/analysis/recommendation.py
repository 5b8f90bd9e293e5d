"""Recommendation engine: runs the full scoring pipeline for one ticker.

Pipeline (data flows forward only)::

    category scorers -> target resolver -> composite -> conviction
        -> dip + quality gate -> signals -> buy/exit strategy

Every stage is pure, so tickers can be scored in parallel by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from stockrec.analysis.analyst import AnalystScorer
from stockrec.analysis.conviction import ConvictionEngine, ConvictionResult
from stockrec.analysis.dip import DipEngine, DipResult
from stockrec.analysis.fundamental import FundamentalScorer
from stockrec.analysis.models import (
    CategoryScore,
    ScoreInputs,
    ScoreSet,
    TechnicalBias,
)
from stockrec.analysis.portfolio import PortfolioScorer
from stockrec.analysis.scoring import CompositeScorer
from stockrec.analysis.sentiment import InsiderScorer, NewsScorer
from stockrec.analysis.signals import SignalContext, SignalGenerator, SignalType, StockSignal
from stockrec.analysis.strategy import BuyStrategy, ExitStrategy, StrategyPlanner
from stockrec.analysis.target import TargetResolution, resolve_for
from stockrec.analysis.technical import TechnicalScorer, bias_from_sentiment
from stockrec.analysis.thresholds import DEFAULT_CONFIG, EngineConfig
from stockrec.utils.logger import setup_logger

logger = setup_logger("recommendation")

_MAX_STRENGTHS = 4
_MAX_CONCERNS = 4
_MAX_ACTIONS = 3


@dataclass(frozen=True)
class StockRecommendation:
    ticker: str
    stock_name: str

    # Position context (None for research tickers)
    current_price: Optional[float]
    weight: Optional[float]
    avg_buy_price: Optional[float]
    gain_pct: Optional[float]
    distance_from_avg: Optional[float]

    fundamental_score: float
    technical_score: float
    analyst_score: float
    news_score: float
    insider_score: float
    portfolio_score: Optional[float]
    composite_score: float

    conviction: ConvictionResult
    dip: DipResult
    target: TargetResolution
    technical_bias: TechnicalBias

    signals: Tuple[StockSignal, ...]
    primary_signal: StockSignal
    buy_strategy: BuyStrategy
    exit_strategy: ExitStrategy

    strengths: Tuple[str, ...] = ()
    concerns: Tuple[str, ...] = ()
    action_items: Tuple[str, ...] = ()

    fifty_two_week_high: Optional[float] = None
    fifty_two_week_low: Optional[float] = None
    distance_from_52w_high: Optional[float] = None

    breakdown: Tuple[CategoryScore, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        # Read-only view so the recommendation stays immutable
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    # -- convenience accessors -------------------------------------------

    @property
    def is_research(self) -> bool:
        return self.portfolio_score is None

    @property
    def conviction_score(self) -> float:
        return self.conviction.score

    @property
    def conviction_level(self) -> str:
        return self.conviction.level

    @property
    def dip_score(self) -> float:
        return self.dip.score

    @property
    def is_dip(self) -> bool:
        return self.dip.is_dip

    @property
    def dip_quality_check(self) -> bool:
        return self.dip.quality_check

    @property
    def target_price(self) -> Optional[float]:
        return self.target.price

    @property
    def target_upside(self) -> Optional[float]:
        return self.target.concrete_upside

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "stock_name": self.stock_name,
            "current_price": self.current_price,
            "weight": self.weight,
            "avg_buy_price": self.avg_buy_price,
            "gain_pct": self.gain_pct,
            "distance_from_avg": round(self.distance_from_avg, 2) if self.distance_from_avg is not None else None,
            "scores": {
                "composite": self.composite_score,
                "fundamental": round(self.fundamental_score, 2),
                "technical": round(self.technical_score, 2),
                "analyst": round(self.analyst_score, 2),
                "news": round(self.news_score, 2),
                "insider": round(self.insider_score, 2),
                "portfolio": round(self.portfolio_score, 2) if self.portfolio_score is not None else None,
            },
            "conviction": self.conviction.to_dict(),
            "dip": self.dip.to_dict(),
            "target": self.target.to_dict(),
            "technical_bias": self.technical_bias,
            "signals": [s.to_dict() for s in self.signals],
            "primary_signal": self.primary_signal.to_dict(),
            "buy_strategy": self.buy_strategy.to_dict(),
            "exit_strategy": self.exit_strategy.to_dict(),
            "strengths": list(self.strengths),
            "concerns": list(self.concerns),
            "action_items": list(self.action_items),
            "fifty_two_week_high": self.fifty_two_week_high,
            "fifty_two_week_low": self.fifty_two_week_low,
            "distance_from_52w_high": (
                round(self.distance_from_52w_high, 2) if self.distance_from_52w_high is not None else None
            ),
            "breakdown": [c.to_dict() for c in self.breakdown],
            "metadata": dict(self.metadata),
        }


class RecommendationEngine:
    """Wires every component together from one ``EngineConfig``."""

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config
        self.fundamental = FundamentalScorer(config.fundamental)
        self.technical = TechnicalScorer(config.technical)
        self.analyst = AnalystScorer(config.analyst)
        self.news = NewsScorer(config.sentiment)
        self.insider = InsiderScorer(config.sentiment)
        self.portfolio = PortfolioScorer(config.portfolio, config.target)
        self.composite = CompositeScorer(config.weights, config.research_mode)
        self.conviction = ConvictionEngine(config.conviction)
        self.dip = DipEngine(config.dip)
        self.signals = SignalGenerator(config.signals)
        self.planner = StrategyPlanner(config.strategy)

    def score_categories(self, inputs: ScoreInputs, target: TargetResolution) -> ScoreSet:
        return ScoreSet(
            fundamental=self.fundamental.score(inputs),
            technical=self.technical.score(inputs),
            analyst=self.analyst.score(inputs),
            news=self.news.score(inputs),
            insider=self.insider.score(inputs),
            portfolio=None if inputs.is_research else self.portfolio.score(inputs, target),
        )

    def evaluate(self, inputs: ScoreInputs) -> StockRecommendation:
        target = resolve_for(inputs, self.config.target)
        scores = self.score_categories(inputs, target)
        composite = self.composite.score(scores)

        conviction = self.conviction.evaluate(inputs, scores.insider.score, target.upside_pct)
        dip = self.dip.evaluate(inputs, scores.fundamental.score, scores.analyst.score, scores.news.score)
        bias = bias_from_sentiment(scores.technical.sentiment)

        tech = inputs.technicals
        position = inputs.position
        ctx = SignalContext(
            fundamental=scores.fundamental.score,
            technical=scores.technical.score,
            analyst=scores.analyst.score,
            news=scores.news.score,
            insider=scores.insider.score,
            dip_score=dip.score,
            dip_quality=dip.quality_check,
            conviction_score=conviction.score,
            conviction_level=conviction.level,
            rsi=tech.rsi14 if tech else None,
            upside_pct=target.concrete_upside,
            weight_pct=position.weight_pct if position else None,
        )
        signals, primary = self.signals.generate(ctx)

        buy = self.planner.buy_strategy(inputs, primary.type, target.price)
        exit_ = self.planner.exit_strategy(inputs, conviction.level, bias, target.price)

        price = inputs.price
        high = inputs.fifty_two_week_high
        distance_from_high = None
        if high and price is not None:
            distance_from_high = (high - price) / high * 100

        rec = StockRecommendation(
            ticker=inputs.ticker,
            stock_name=inputs.stock_name or inputs.ticker,
            current_price=price,
            weight=position.weight if position else None,
            avg_buy_price=position.avg_buy_price if position else None,
            gain_pct=position.gain_pct if position else None,
            distance_from_avg=inputs.distance_from_avg,
            fundamental_score=scores.fundamental.score,
            technical_score=scores.technical.score,
            analyst_score=scores.analyst.score,
            news_score=scores.news.score,
            insider_score=scores.insider.score,
            portfolio_score=scores.portfolio.score if scores.portfolio else None,
            composite_score=composite,
            conviction=conviction,
            dip=dip,
            target=target,
            technical_bias=bias,
            signals=tuple(signals),
            primary_signal=primary,
            buy_strategy=buy,
            exit_strategy=exit_,
            strengths=tuple(_strengths(scores, conviction, dip)[:_MAX_STRENGTHS]),
            concerns=tuple(_concerns(scores, inputs)[:_MAX_CONCERNS]),
            action_items=tuple(_action_items(primary, inputs)[:_MAX_ACTIONS]),
            fifty_two_week_high=high,
            fifty_two_week_low=inputs.fifty_two_week_low,
            distance_from_52w_high=distance_from_high,
            breakdown=tuple(scores.breakdown()),
            metadata=_metadata(inputs),
        )
        logger.debug(
            "%s composite=%.2f conviction=%s primary=%s",
            rec.ticker, rec.composite_score, conviction.level, primary.type.value,
        )
        return rec


# ---------------------------------------------------------------------------
# Narrative helpers
# ---------------------------------------------------------------------------

def _strengths(scores: ScoreSet, conviction: ConvictionResult, dip: DipResult) -> List[str]:
    out = []
    if scores.fundamental.score >= 65:
        out.append("Strong fundamentals")
    if scores.technical.score >= 65:
        out.append("Bullish technicals")
    if scores.analyst.score >= 65:
        out.append("Positive analyst sentiment")
    if scores.insider.score >= 60:
        out.append("Insider buying")
    if conviction.level == "HIGH":
        out.append("High conviction quality")
    if dip.is_opportunity:
        out.append("Dip opportunity")
    return out


def _concerns(scores: ScoreSet, inputs: ScoreInputs) -> List[str]:
    out = []
    if scores.fundamental.score < 35:
        out.append("Weak fundamentals")
    if scores.technical.score < 35:
        out.append("Bearish technicals")
    if scores.analyst.score < 35:
        out.append("Negative analyst sentiment")
    if scores.insider.score < 40:
        out.append("Insider selling")
    if scores.news.score < 35:
        out.append("Negative news sentiment")
    if inputs.position is not None and inputs.position.weight_pct > 12:
        out.append("Overweight position")
    return out


def _action_items(primary: StockSignal, inputs: ScoreInputs) -> List[str]:
    out = []
    if primary.type == SignalType.DIP_OPPORTUNITY:
        out.append("Consider adding to position")
        distance = inputs.distance_from_avg
        if distance is not None and distance < -10:
            out.append("Good DCA opportunity")
    elif primary.type == SignalType.CONVICTION_HOLD:
        out.append("Hold through short-term volatility")
    elif primary.type == SignalType.CONSIDER_TRIM:
        out.append("Consider taking partial profits")
    elif primary.type == SignalType.WATCH_CLOSELY:
        out.append("Monitor upcoming earnings")
        out.append("Set price alerts")
    return out


def _metadata(inputs: ScoreInputs) -> Dict[str, Any]:
    tech = inputs.technicals
    hist = tech.histogram if tech else None
    macd_direction = None
    if hist is not None:
        macd_direction = "bullish" if hist > 0 else "bearish"

    bollinger = None
    price = inputs.price
    if tech is not None and price is not None and tech.bollinger_lower is not None and tech.bollinger_upper is not None:
        if price < tech.bollinger_lower:
            bollinger = "below"
        elif price > tech.bollinger_upper:
            bollinger = "above"
        else:
            bollinger = "within"

    return {
        "rsi_value": tech.rsi14 if tech else None,
        "macd_histogram": hist,
        "macd_signal": macd_direction,
        "bollinger_position": bollinger,
        "news_sentiment": inputs.news.average_sentiment if inputs.news else None,
        "insider_mspr": inputs.insider.mspr if inputs.insider else None,
    }


# ---------------------------------------------------------------------------
# Module-level API
# ---------------------------------------------------------------------------

def generate_recommendation(
    inputs: ScoreInputs, config: EngineConfig = DEFAULT_CONFIG,
) -> StockRecommendation:
    return RecommendationEngine(config).evaluate(inputs)


def generate_all_recommendations(
    inputs_list: Iterable[ScoreInputs], config: EngineConfig = DEFAULT_CONFIG,
) -> List[StockRecommendation]:
    """Score a batch, most urgent primary signal first, then by composite."""
    engine = RecommendationEngine(config)
    recs = [engine.evaluate(inputs) for inputs in inputs_list]
    recs.sort(key=lambda r: (r.primary_signal.priority, -r.composite_score))
    logger.info("Generated %d recommendations", len(recs))
    return recs

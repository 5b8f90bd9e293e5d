"""Input bundles and score value types shared by all scorers.

Every category block on ``ScoreInputs`` is either present (a frozen
dataclass) or absent (``None``).  Inside a block each metric is optional as
well; scorers decide what absence means for their own slice.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple

Sentiment = Literal["bullish", "bearish", "neutral"]
ConvictionLevel = Literal["HIGH", "MEDIUM", "LOW"]
TechnicalBias = Literal["BULLISH", "BEARISH", "NEUTRAL"]
InsiderWindow = Literal[1, 2, 3, 6, 12]

_INSIDER_WINDOWS = (1, 2, 3, 6, 12)


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


# ===================================================================
# Per-category input blocks
# ===================================================================

@dataclass(frozen=True)
class FundamentalMetrics:
    """Ratios in percent (roe=18.5 means 18.5%), debt_to_equity as a plain ratio."""

    pe_ratio: Optional[float] = None
    roe: Optional[float] = None
    net_margin: Optional[float] = None
    revenue_growth: Optional[float] = None
    debt_to_equity: Optional[float] = None
    revenue_growth_5y: Optional[float] = None
    earnings_beats: Optional[int] = None  # beats in the last four quarters


@dataclass(frozen=True)
class TechnicalIndicators:
    rsi14: Optional[float] = None
    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    bollinger_upper: Optional[float] = None
    bollinger_middle: Optional[float] = None
    bollinger_lower: Optional[float] = None
    adx: Optional[float] = None
    plus_di: Optional[float] = None
    minus_di: Optional[float] = None
    stoch_k: Optional[float] = None
    stoch_d: Optional[float] = None
    sma50: Optional[float] = None
    sma200: Optional[float] = None
    price: Optional[float] = None
    fifty_two_week_high: Optional[float] = None
    fifty_two_week_low: Optional[float] = None

    @property
    def histogram(self) -> Optional[float]:
        """MACD histogram, derived from the two lines when not supplied."""
        if self.macd_histogram is not None:
            return self.macd_histogram
        if self.macd is not None and self.macd_signal is not None:
            return self.macd - self.macd_signal
        return None

    @property
    def bollinger_position(self) -> Optional[float]:
        """%b: 0 at the lower band, 1 at the upper band."""
        if self.price is None or self.bollinger_upper is None or self.bollinger_lower is None:
            return None
        width = self.bollinger_upper - self.bollinger_lower
        if width <= 0:
            return None
        return (self.price - self.bollinger_lower) / width

    @property
    def bollinger_bandwidth_pct(self) -> Optional[float]:
        if self.bollinger_upper is None or self.bollinger_lower is None:
            return None
        middle = self.bollinger_middle
        if middle is None:
            middle = (self.bollinger_upper + self.bollinger_lower) / 2
        if middle <= 0:
            return None
        return (self.bollinger_upper - self.bollinger_lower) / middle * 100


@dataclass(frozen=True)
class AnalystRatings:
    strong_buy: int = 0
    buy: int = 0
    hold: int = 0
    sell: int = 0
    strong_sell: int = 0
    number_of_analysts: Optional[int] = None
    target_price: Optional[float] = None
    consensus_score: Optional[float] = None

    @property
    def total_ratings(self) -> int:
        return self.strong_buy + self.buy + self.hold + self.sell + self.strong_sell

    def consensus(self) -> Optional[float]:
        """Weighted rating average on the -2 (strong sell) .. +2 (strong buy) scale."""
        total = self.total_ratings
        if total <= 0:
            return self.consensus_score
        weighted = (
            2 * self.strong_buy + self.buy - self.sell - 2 * self.strong_sell
        )
        return weighted / total

    def analyst_count(self) -> Optional[int]:
        if self.number_of_analysts is not None:
            return self.number_of_analysts
        return self.total_ratings or None


@dataclass(frozen=True)
class NewsSentiment:
    average_sentiment: Optional[float] = None  # -1 .. +1
    article_count: int = 0

    @classmethod
    def from_articles(cls, ticker: str, articles: Iterable[Mapping[str, Any]]) -> "NewsSentiment":
        """Aggregate article sentiment for *ticker*.

        Articles match on ``ticker`` or membership in ``related_tickers``;
        an article without a ``sentiment`` score counts as 0.
        """
        scores: List[float] = []
        for article in articles:
            related = article.get("related_tickers") or ()
            if article.get("ticker") != ticker and ticker not in related:
                continue
            scores.append(float(article.get("sentiment") or 0.0))
        if not scores:
            return cls()
        return cls(average_sentiment=sum(scores) / len(scores), article_count=len(scores))


@dataclass(frozen=True)
class InsiderSentiment:
    mspr: Optional[float] = None  # -100 .. +100
    change: Optional[float] = None  # net shares bought (+) / sold (-)
    months: InsiderWindow = 3

    @classmethod
    def from_monthly(
        cls,
        rows: Iterable[Mapping[str, Any]],
        months: InsiderWindow = 3,
        today: Optional[date] = None,
    ) -> "InsiderSentiment":
        """Average monthly MSPR rows over the trailing *months* window.

        Rows carry ``year``, ``month``, ``mspr`` and ``change``.  When no row
        falls inside the window the first *months* rows are used instead.
        """
        if months not in _INSIDER_WINDOWS:
            raise ValueError(f"months must be one of {_INSIDER_WINDOWS}, got {months}")
        rows = list(rows)
        if not rows:
            return cls(months=months)

        today = today or date.today()
        in_window = [
            r for r in rows
            if 0 <= (today.year - int(r["year"])) * 12 + (today.month - int(r["month"])) < months
        ]
        used = in_window or rows[:months]

        avg_mspr = sum(float(r["mspr"]) for r in used) / len(used)
        total_change = sum(float(r.get("change") or 0.0) for r in used)
        return cls(mspr=round(avg_mspr, 2), change=total_change, months=months)


@dataclass(frozen=True)
class PortfolioPosition:
    shares: float
    avg_buy_price: float
    weight: float  # fraction of the portfolio, 0..1
    target_price: Optional[float] = None  # personal target
    gain_pct: Optional[float] = None  # unrealized gain, %

    @property
    def weight_pct(self) -> float:
        # Rounded so 0.06 compares as exactly 6%
        return round(self.weight * 100, 6)


@dataclass(frozen=True)
class ScoreInputs:
    ticker: str
    stock_name: str = ""
    current_price: Optional[float] = None
    fundamentals: Optional[FundamentalMetrics] = None
    technicals: Optional[TechnicalIndicators] = None
    analysts: Optional[AnalystRatings] = None
    news: Optional[NewsSentiment] = None
    insider: Optional[InsiderSentiment] = None
    position: Optional[PortfolioPosition] = None

    @property
    def price(self) -> Optional[float]:
        """Current price, falling back to the technical snapshot's close."""
        if self.current_price is not None:
            return self.current_price
        if self.technicals is not None:
            return self.technicals.price
        return None

    @property
    def is_research(self) -> bool:
        return self.position is None

    @property
    def fifty_two_week_high(self) -> Optional[float]:
        return self.technicals.fifty_two_week_high if self.technicals else None

    @property
    def fifty_two_week_low(self) -> Optional[float]:
        return self.technicals.fifty_two_week_low if self.technicals else None

    @property
    def distance_from_avg(self) -> Optional[float]:
        """% distance of the current price from the average buy price."""
        price = self.price
        if self.position is None or price is None or self.position.avg_buy_price <= 0:
            return None
        return (price - self.position.avg_buy_price) / self.position.avg_buy_price * 100


# ===================================================================
# Score outputs
# ===================================================================

@dataclass(frozen=True)
class ScoreComponent:
    name: str
    points: float
    max_points: float
    detail: str = ""

    @property
    def percent(self) -> float:
        if self.max_points <= 0:
            return 0.0
        return self.points / self.max_points * 100

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "points": round(self.points, 2),
            "max_points": self.max_points,
            "percent": round(self.percent, 2),
            "detail": self.detail,
        }


@dataclass(frozen=True)
class CategoryScore:
    category: str
    score: float
    components: Tuple[ScoreComponent, ...] = ()
    details: Tuple[str, ...] = ()
    sentiment: Sentiment = "neutral"

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", _clamp(self.score))

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "score": round(self.score, 2),
            "sentiment": self.sentiment,
            "components": [c.to_dict() for c in self.components],
            "details": list(self.details),
        }


def sentiment_from_percent(percent: float) -> Sentiment:
    if percent >= 65:
        return "bullish"
    if percent <= 35:
        return "bearish"
    return "neutral"


@dataclass(frozen=True)
class ScoreSet:
    """The six category scores for one ticker (portfolio is None for research)."""

    fundamental: CategoryScore
    technical: CategoryScore
    analyst: CategoryScore
    news: CategoryScore
    insider: CategoryScore
    portfolio: Optional[CategoryScore] = None

    def values(self) -> Dict[str, Optional[float]]:
        return {
            "fundamental": self.fundamental.score,
            "technical": self.technical.score,
            "analyst": self.analyst.score,
            "news": self.news.score,
            "insider": self.insider.score,
            "portfolio": self.portfolio.score if self.portfolio is not None else None,
        }

    def breakdown(self) -> List[CategoryScore]:
        cats = [self.fundamental, self.technical, self.analyst, self.news, self.insider]
        if self.portfolio is not None:
            cats.append(self.portfolio)
        return cats

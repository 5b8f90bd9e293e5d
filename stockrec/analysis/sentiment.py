"""News and insider sentiment scorers.

Both map a signed sentiment onto 0-100 around a neutral 50, so a missing
feed neither helps nor hurts the composite.
"""

from __future__ import annotations

from stockrec.analysis.base import BaseScorer
from stockrec.analysis.models import (
    CategoryScore,
    ScoreComponent,
    ScoreInputs,
    sentiment_from_percent,
)
from stockrec.analysis.thresholds import DEFAULT_CONFIG, SentimentConfig


class NewsScorer(BaseScorer):

    def __init__(self, config: SentimentConfig = DEFAULT_CONFIG.sentiment):
        self.config = config

    @property
    def name(self) -> str:
        return "news"

    @property
    def on_absent(self) -> str:
        return "neutral"

    def score(self, inputs: ScoreInputs) -> CategoryScore:
        news = inputs.news
        if news is None or news.article_count == 0 or news.average_sentiment is None:
            return CategoryScore(self.name, self.config.news_neutral, details=("No recent news",))

        avg = max(-1.0, min(1.0, news.average_sentiment))
        value = (avg + 1) * 50
        component = ScoreComponent(
            "news_sentiment", value, 100.0,
            f"{news.article_count} articles, avg sentiment {avg:+.2f}",
        )
        return CategoryScore(
            self.name, value, (component,), (component.detail,), sentiment_from_percent(value),
        )


class InsiderScorer(BaseScorer):
    """Monthly Share Purchase Ratio: -100 (all selling) .. +100 (all buying)."""

    def __init__(self, config: SentimentConfig = DEFAULT_CONFIG.sentiment):
        self.config = config

    @property
    def name(self) -> str:
        return "insider"

    @property
    def on_absent(self) -> str:
        return "neutral"

    def score(self, inputs: ScoreInputs) -> CategoryScore:
        insider = inputs.insider
        if insider is None or insider.mspr is None:
            return CategoryScore(self.name, self.config.insider_neutral, details=("No insider activity",))

        value = 50 + insider.mspr / 2
        detail = f"MSPR {insider.mspr:+.1f} over {insider.months}m"
        if insider.change:
            verb = "bought" if insider.change > 0 else "sold"
            detail += f", net {abs(insider.change):,.0f} shares {verb}"
        component = ScoreComponent("mspr", max(0.0, min(100.0, value)), 100.0, detail)
        return CategoryScore(
            self.name, value, (component,), (detail,), sentiment_from_percent(component.points),
        )

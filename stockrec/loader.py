"""Build ``ScoreInputs`` from plain mappings (YAML/JSON documents).

Document shape::

    stocks:
      - ticker: AAPL
        stock_name: Apple
        current_price: 190.5
        fundamentals: {pe_ratio: 28, roe: 150, ...}
        technicals: {rsi14: 55, ...}          # or ohlcv_csv: data/AAPL.csv
        analysts: {strong_buy: 20, buy: 10, ...}
        news: {average_sentiment: 0.2, article_count: 12}
        insider: {mspr: 15}                    # or insider_monthly: [...]
        position: {shares: 10, avg_buy_price: 150, weight: 0.05}
    news_articles: [...]                       # optional shared feed
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
import yaml

from stockrec.analysis.indicators import compute_indicators
from stockrec.analysis.models import (
    AnalystRatings,
    FundamentalMetrics,
    InsiderSentiment,
    NewsSentiment,
    PortfolioPosition,
    ScoreInputs,
    TechnicalIndicators,
)
from stockrec.exceptions import ConfigError


def _build(cls, data: Optional[Mapping[str, Any]]):
    if data is None:
        return None
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown {cls.__name__} fields: {', '.join(sorted(unknown))}")
    return cls(**data)


def inputs_from_dict(
    data: Mapping[str, Any],
    news_articles: Optional[List[Mapping[str, Any]]] = None,
    base_dir: Optional[Path] = None,
) -> ScoreInputs:
    ticker = data.get("ticker")
    if not ticker:
        raise ConfigError("Every stock entry needs a ticker")

    technicals = _build(TechnicalIndicators, data.get("technicals"))
    if technicals is None and data.get("ohlcv_csv"):
        path = Path(data["ohlcv_csv"])
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        technicals = compute_indicators(pd.read_csv(path, index_col=0, parse_dates=True))

    news = _build(NewsSentiment, data.get("news"))
    if news is None and news_articles:
        news = NewsSentiment.from_articles(ticker, news_articles)

    insider = _build(InsiderSentiment, data.get("insider"))
    if insider is None and data.get("insider_monthly"):
        insider = InsiderSentiment.from_monthly(
            data["insider_monthly"], months=data.get("insider_months", 3),
        )

    return ScoreInputs(
        ticker=ticker,
        stock_name=data.get("stock_name", ""),
        current_price=data.get("current_price"),
        fundamentals=_build(FundamentalMetrics, data.get("fundamentals")),
        technicals=technicals,
        analysts=_build(AnalystRatings, data.get("analysts")),
        news=news,
        insider=insider,
        position=_build(PortfolioPosition, data.get("position")),
    )


def load_inputs(path) -> List[ScoreInputs]:
    """Read a YAML (or JSON) inputs document."""
    path = Path(path)
    with open(path) as f:
        doc: Dict[str, Any] = yaml.safe_load(f) or {}
    articles = doc.get("news_articles") or []
    return [inputs_from_dict(s, articles, path.parent) for s in doc.get("stocks") or []]

"""Shared pytest fixtures for the stockrec test suite.

Score expectations in the tests are worked out by hand from these inputs;
keep the numbers in sync if a fixture changes.
"""

import numpy as np
import pandas as pd
import pytest

from stockrec.analysis.models import (
    AnalystRatings,
    FundamentalMetrics,
    InsiderSentiment,
    NewsSentiment,
    PortfolioPosition,
    ScoreInputs,
    TechnicalIndicators,
)


# ---------------------------------------------------------------------------
# 1. OHLCV fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_ohlcv():
    """Synthetic OHLCV DataFrame with 252 rows, seeded at 42.

    Geometric Brownian motion starting ~150, daily drift ~0.04%, vol ~1.5%.
    """
    np.random.seed(42)
    n = 252
    dates = pd.bdate_range(start="2023-01-02", periods=n)
    log_returns = np.random.normal(0.0004, 0.015, n)
    close = 150.0 * np.exp(np.cumsum(log_returns))
    high = close * (1 + np.abs(np.random.normal(0.002, 0.005, n)))
    low = close * (1 - np.abs(np.random.normal(0.002, 0.005, n)))
    open_ = close * (1 + np.random.normal(0, 0.003, n))
    volume = np.random.randint(1_000_000, 10_000_000, n).astype(float)
    return pd.DataFrame(
        {"Open": open_, "High": high, "Low": low, "Close": close, "Volume": volume},
        index=dates,
    )


# ---------------------------------------------------------------------------
# 2. Category blocks
# ---------------------------------------------------------------------------

@pytest.fixture
def solid_fundamentals():
    """Scores 15 + 16 + 15 + 10 + 16 = 72."""
    return FundamentalMetrics(
        pe_ratio=18, roe=22, net_margin=18, revenue_growth=12, debt_to_equity=0.5,
        revenue_growth_5y=12, earnings_beats=4,
    )


@pytest.fixture
def weak_fundamentals():
    """Scores 10 + 6 + 5 + 5 + 4 = 30."""
    return FundamentalMetrics(
        pe_ratio=25, roe=8, net_margin=5, revenue_growth=3, debt_to_equity=2.0,
    )


@pytest.fixture
def steady_technicals():
    """RSI 12 + MACD 20 (bull) + BB 9 + ADX 10 + Stoch 8 = 59, bias BULLISH."""
    return TechnicalIndicators(
        rsi14=55, macd=1.2, macd_signal=0.8,
        bollinger_upper=110, bollinger_middle=100, bollinger_lower=90,
        adx=28, plus_di=25, minus_di=15,
        stoch_k=60, stoch_d=55,
        sma50=98, sma200=90, price=100,
        fifty_two_week_high=115, fifty_two_week_low=75,
    )


@pytest.fixture
def oversold_technicals():
    """Dip score 25 + 15 + 20 + 15 + 10 = 85."""
    return TechnicalIndicators(
        rsi14=22, macd=-1.5, macd_signal=-1.0,
        bollinger_upper=105, bollinger_middle=95, bollinger_lower=85,
        adx=18, plus_di=12, minus_di=22,
        stoch_k=8, stoch_d=5,
        sma50=92, sma200=100, price=80,
        fifty_two_week_high=130, fifty_two_week_low=78,
    )


@pytest.fixture
def bullish_analysts():
    """Consensus 31/25 = 1.24 -> 58, coverage 25 -> 30, total 88."""
    return AnalystRatings(strong_buy=12, buy=8, hold=4, sell=1, strong_sell=0, target_price=125)


@pytest.fixture
def positive_news():
    return NewsSentiment(average_sentiment=0.3, article_count=10)  # -> 65


@pytest.fixture
def insider_buying():
    return InsiderSentiment(mspr=20, change=15000)  # -> 60


# ---------------------------------------------------------------------------
# 3. Full inputs
# ---------------------------------------------------------------------------

@pytest.fixture
def quality_holding(solid_fundamentals, steady_technicals, bullish_analysts, positive_news, insider_buying):
    """Held position at 100 (avg 80, 6% weight).

    fundamental 72, technical 59, analyst 88, news 65, insider 60,
    portfolio 24 + 5 + 20 + 20 = 69, composite 68.65, conviction 79 HIGH.
    """
    return ScoreInputs(
        ticker="QUAL",
        stock_name="Quality Corp",
        current_price=100,
        fundamentals=solid_fundamentals,
        technicals=steady_technicals,
        analysts=bullish_analysts,
        news=positive_news,
        insider=insider_buying,
        position=PortfolioPosition(shares=50, avg_buy_price=80, weight=0.06, gain_pct=25),
    )


@pytest.fixture
def quality_research(quality_holding):
    """Same ticker without a position; renormalized composite 68.56."""
    from dataclasses import replace
    return replace(quality_holding, ticker="QRES", position=None)


@pytest.fixture
def oversold_quality(solid_fundamentals, oversold_technicals, bullish_analysts, positive_news, insider_buying):
    """Oversold chart on a sound business: DIP_OPPORTUNITY."""
    return ScoreInputs(
        ticker="DIPQ",
        stock_name="Dip Quality",
        current_price=80,
        fundamentals=solid_fundamentals,
        technicals=oversold_technicals,
        analysts=bullish_analysts,
        news=positive_news,
        insider=insider_buying,
        position=PortfolioPosition(shares=20, avg_buy_price=100, weight=0.04, gain_pct=-20),
    )


@pytest.fixture
def value_trap(weak_fundamentals, oversold_technicals, bullish_analysts, positive_news, insider_buying):
    """Same oversold chart, fundamentals 30: the gate must reject the dip."""
    return ScoreInputs(
        ticker="TRAP",
        current_price=80,
        fundamentals=weak_fundamentals,
        technicals=oversold_technicals,
        analysts=bullish_analysts,
        news=positive_news,
        insider=insider_buying,
    )


@pytest.fixture
def bare_inputs():
    """Ticker only: every block absent."""
    return ScoreInputs(ticker="NADA")

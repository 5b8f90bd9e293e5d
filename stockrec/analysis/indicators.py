"""Build a ``TechnicalIndicators`` snapshot from OHLCV price history.

Pure pandas/numpy: rolling means for SMA/Bollinger, EWM for MACD and the
Wilder-smoothed RSI/ADX.  Columns follow the usual ``Open/High/Low/Close``
capitalisation; lower-case names are accepted too.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from stockrec.analysis.models import TechnicalIndicators
from stockrec.utils.logger import setup_logger

logger = setup_logger("indicators")

TRADING_DAYS_PER_YEAR = 252


def safe_val(v) -> Optional[float]:
    """Convert numpy/pandas scalars to float, NaN/inf to None."""
    if v is None:
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    if np.isnan(f) or np.isinf(f):
        return None
    return f


def _last(series: pd.Series) -> Optional[float]:
    if series.empty:
        return None
    return safe_val(series.iloc[-1])


def _column(df: pd.DataFrame, name: str) -> pd.Series:
    if name in df.columns:
        return df[name].astype(float)
    if name.lower() in df.columns:
        return df[name.lower()].astype(float)
    raise KeyError(f"OHLCV frame is missing a '{name}' column")


def _wilder(series: pd.Series, period: int) -> pd.Series:
    return series.ewm(alpha=1 / period, adjust=False, min_periods=period).mean()


def rsi(close: pd.Series, period: int = 14) -> pd.Series:
    delta = close.diff()
    gain = _wilder(delta.clip(lower=0), period)
    loss = _wilder(-delta.clip(upper=0), period)
    rs = gain / loss
    out = 100 - (100 / (1 + rs))
    # No losses in the window: fully overbought
    return out.where(loss != 0, 100.0)


def macd(close: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9):
    ema_fast = close.ewm(span=fast, adjust=False).mean()
    ema_slow = close.ewm(span=slow, adjust=False).mean()
    line = ema_fast - ema_slow
    signal_line = line.ewm(span=signal, adjust=False).mean()
    return line, signal_line, line - signal_line


def bollinger(close: pd.Series, period: int = 20, num_std: float = 2.0):
    middle = close.rolling(period).mean()
    std = close.rolling(period).std()
    return middle + num_std * std, middle, middle - num_std * std


def adx(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 14):
    """Return (ADX, +DI, -DI) series."""
    up = high.diff()
    down = -low.diff()
    plus_dm = pd.Series(np.where((up > down) & (up > 0), up, 0.0), index=high.index)
    minus_dm = pd.Series(np.where((down > up) & (down > 0), down, 0.0), index=high.index)

    prev_close = close.shift(1)
    tr = pd.concat(
        [high - low, (high - prev_close).abs(), (low - prev_close).abs()], axis=1,
    ).max(axis=1)

    atr = _wilder(tr, period)
    plus_di = 100 * _wilder(plus_dm, period) / atr
    minus_di = 100 * _wilder(minus_dm, period) / atr
    dx = 100 * (plus_di - minus_di).abs() / (plus_di + minus_di).replace(0, np.nan)
    return _wilder(dx, period), plus_di, minus_di


def stochastic(high: pd.Series, low: pd.Series, close: pd.Series, k_period: int = 14, d_period: int = 3):
    lowest = low.rolling(k_period).min()
    highest = high.rolling(k_period).max()
    k = 100 * (close - lowest) / (highest - lowest).replace(0, np.nan)
    return k, k.rolling(d_period).mean()


def compute_indicators(ohlcv: pd.DataFrame) -> TechnicalIndicators:
    """Latest-bar indicator snapshot; any indicator lacking history is None."""
    if ohlcv is None or ohlcv.empty:
        return TechnicalIndicators()

    close = _column(ohlcv, "Close")
    high = _column(ohlcv, "High")
    low = _column(ohlcv, "Low")

    macd_line, signal_line, hist = macd(close)
    bb_upper, bb_middle, bb_lower = bollinger(close)
    adx_line, plus_di, minus_di = adx(high, low, close)
    stoch_k, stoch_d = stochastic(high, low, close)

    window = close.tail(TRADING_DAYS_PER_YEAR)
    year_high = high.tail(TRADING_DAYS_PER_YEAR)
    year_low = low.tail(TRADING_DAYS_PER_YEAR)

    snapshot = TechnicalIndicators(
        rsi14=_last(rsi(close)),
        macd=_last(macd_line),
        macd_signal=_last(signal_line),
        macd_histogram=_last(hist),
        bollinger_upper=_last(bb_upper),
        bollinger_middle=_last(bb_middle),
        bollinger_lower=_last(bb_lower),
        adx=_last(adx_line),
        plus_di=_last(plus_di),
        minus_di=_last(minus_di),
        stoch_k=_last(stoch_k),
        stoch_d=_last(stoch_d),
        sma50=_last(close.rolling(50).mean()),
        sma200=_last(close.rolling(200).mean()),
        price=_last(close),
        fifty_two_week_high=safe_val(max(year_high.max(), window.max())),
        fifty_two_week_low=safe_val(min(year_low.min(), window.min())),
    )
    logger.debug("Computed indicators over %d bars", len(close))
    return snapshot

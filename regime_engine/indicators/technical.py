"""
Technical indicators used by the regime classifier and strategy archetypes.

Series functions accept either pandas Series or lists and return pandas Series.
The last_* helpers return the most recent value as a float, which is what the
per-day decision code needs.

Example:
    from regime_engine.indicators.technical import last_sma, rsi_wilder

    sma_20 = last_sma(prices, period=20)
    rsi_14 = rsi_wilder(prices, period=14)
"""
from typing import List, Sequence, Tuple, Union

import numpy as np
import pandas as pd

TRADING_DAYS_PER_YEAR = 252


def _to_series(data: Union[pd.Series, Sequence[float]]) -> pd.Series:
    """
    Convert input data to pandas Series.

    Args:
        data: Price data as Series or list

    Returns:
        pandas Series with float values
    """
    if isinstance(data, pd.Series):
        return data.astype(float).reset_index(drop=True)
    return pd.Series(list(data), dtype=float)


def ema(data: Union[pd.Series, List], period: int) -> pd.Series:
    """
    Calculate Exponential Moving Average (EMA).

    Seeded with the first value (no bias adjustment), alpha = 2 / (period + 1).
    Updated as ema += alpha * (x - ema), so a flat series stays exactly flat.

    Args:
        data: Price data (typically close prices)
        period: Number of periods for moving average

    Returns:
        pandas Series with EMA values
    """
    values = _to_series(data).to_numpy()
    if len(values) == 0:
        return pd.Series([], dtype=float)

    alpha = 2.0 / (period + 1)
    out = np.empty(len(values))
    out[0] = values[0]
    for i in range(1, len(values)):
        out[i] = out[i - 1] + alpha * (values[i] - out[i - 1])
    return pd.Series(out)


def last_sma(data: Union[pd.Series, List], period: int) -> float:
    """
    Mean of the most recent `period` values.

    Falls back to the mean of all values when fewer than `period` exist,
    and to 0.0 for empty input.
    """
    series = _to_series(data)
    if series.empty:
        return 0.0
    return float(series.tail(period).mean())


def last_ema(data: Union[pd.Series, List], period: int) -> float:
    """Most recent EMA value, 0.0 for empty input."""
    series = _to_series(data)
    if series.empty:
        return 0.0
    return float(ema(series, period).iloc[-1])


def rsi_wilder(data: Union[pd.Series, List], period: int = 14) -> float:
    """
    Relative Strength Index with Wilder smoothing, as a single value.

    The first `period` changes seed simple averages; later changes are
    smoothed as avg = (avg * (period - 1) + x) / period.

    Returns:
        RSI in [0, 100]. 50.0 when there are fewer than period + 1 prices,
        100.0 when there are no losses.
    """
    values = _to_series(data).to_numpy()
    if len(values) < period + 1:
        return 50.0

    changes = np.diff(values)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss <= 0:
        return 100.0
    rs = avg_gain / avg_loss
    return float(100 - 100 / (1 + rs))


def _windowed_macd(values: List[float], end: int, fast_period: int, slow_period: int) -> float:
    """EMA(fast) of the last fast_period points minus EMA(slow) of the last slow_period, up to `end`."""
    window = values[max(0, end - slow_period + 1): end + 1]
    return last_ema(window[-fast_period:], fast_period) - last_ema(window, slow_period)


def macd(
    data: Union[pd.Series, List],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> Tuple[float, float]:
    """
    MACD and signal line at the most recent point, over fixed windows.

    Each EMA only sees its own window (the last fast_period / slow_period
    points), not the full history. The signal is an EMA over the windowed
    MACD values of the last signal_period points, taken newest first.

    Example:
        macd([1.0, 2.0, 4.0, 8.0], 2, 3, 2)   # (7/6, 7/9)

    Returns:
        Tuple of (macd_value, signal_value); (0.0, 0.0) for empty input
    """
    values = _to_series(data).tolist()
    if not values:
        return 0.0, 0.0

    last = len(values) - 1
    recent = [
        _windowed_macd(values, last - i, fast_period, slow_period)
        for i in range(min(signal_period, len(values)))
    ]
    return recent[0], last_ema(recent, signal_period)


def realized_volatility(data: Union[pd.Series, List], period: int = 20) -> float:
    """
    Annualized realized volatility from log returns.

    Population standard deviation of the last `period` log returns,
    scaled by sqrt(252). Returns 0.0 with fewer than period + 1 prices.

    Example:
        realized_volatility([100.0] * 60)   # 0.0
    """
    series = _to_series(data)
    if len(series) < period + 1:
        return 0.0

    log_returns = np.log(series / series.shift(1)).dropna()
    recent = log_returns.tail(period)
    return float(recent.std(ddof=0) * np.sqrt(TRADING_DAYS_PER_YEAR))

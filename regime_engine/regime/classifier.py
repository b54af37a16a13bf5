"""
Market regime classification.

The engine only depends on the RegimeClassifier protocol. The
TechnicalRegimeClassifier here is the default implementation, built from
realized volatility, moving-average trend and RSI/MACD momentum.
"""
from typing import Protocol, Sequence

from regime_engine.core.regime import (
    MarketRegime,
    MomentumRegime,
    TrendRegime,
    VolatilityRegime,
)
from regime_engine.indicators.technical import (
    last_sma,
    macd,
    realized_volatility,
    rsi_wilder,
)


class RegimeClassifier(Protocol):
    """Classifies history up to day_index into a MarketRegime."""

    def classify(
        self,
        prices: Sequence[float],
        volumes: Sequence[float],
        day_index: int,
        current_price: float,
    ) -> MarketRegime:
        ...


# Regime score contributions, starting from a neutral 50
VOLATILITY_SCORE = {
    VolatilityRegime.EXTREME_HIGH: 20,
    VolatilityRegime.HIGH: 10,
    VolatilityRegime.VERY_LOW: -10,
}
TREND_SCORE = {
    TrendRegime.STRONG_UPTREND: 15,
    TrendRegime.UPTREND: 8,
    TrendRegime.STRONG_DOWNTREND: -15,
    TrendRegime.DOWNTREND: -8,
}
MOMENTUM_SCORE = {
    MomentumRegime.STRONG_MOMENTUM: 15,
    MomentumRegime.MOMENTUM: 8,
    MomentumRegime.STRONG_REVERSAL: -15,
    MomentumRegime.REVERSAL: -8,
}


def classify_volatility(realized_vol: float) -> VolatilityRegime:
    if realized_vol > 1.0:
        return VolatilityRegime.EXTREME_HIGH
    if realized_vol > 0.6:
        return VolatilityRegime.HIGH
    if realized_vol > 0.35:
        return VolatilityRegime.MEDIUM
    if realized_vol > 0.2:
        return VolatilityRegime.LOW
    return VolatilityRegime.VERY_LOW


def classify_trend(price: float, sma20: float, sma50: float, sma200: float) -> TrendRegime:
    """
    Trend bucket from the spread between price and three moving averages.

    Strong trends need all three spreads to agree; moderate trends need the
    short and medium spreads; weak trends only the short one.
    """
    short_trend = (price - sma20) / sma20 if sma20 else 0.0
    medium_trend = (sma20 - sma50) / sma50 if sma50 else 0.0
    long_trend = (sma50 - sma200) / sma200 if sma200 else 0.0

    if short_trend > 0.05 and medium_trend > 0.03 and long_trend > 0.02:
        return TrendRegime.STRONG_UPTREND
    if short_trend < -0.05 and medium_trend < -0.03 and long_trend < -0.02:
        return TrendRegime.STRONG_DOWNTREND
    if short_trend > 0.02 and medium_trend > 0.01:
        return TrendRegime.UPTREND
    if short_trend < -0.02 and medium_trend < -0.01:
        return TrendRegime.DOWNTREND
    if short_trend > 0.005:
        return TrendRegime.WEAK_UPTREND
    if short_trend < -0.005:
        return TrendRegime.WEAK_DOWNTREND
    return TrendRegime.SIDEWAYS


def classify_momentum(
    rsi: float, momentum: float, macd_line: float, signal_line: float
) -> MomentumRegime:
    """Momentum bucket combining RSI zone, price change and MACD vs signal."""
    if rsi > 75:
        rsi_zone = 'OVERBOUGHT'
    elif rsi < 25:
        rsi_zone = 'OVERSOLD'
    else:
        rsi_zone = 'NEUTRAL'

    if momentum > 0.01:
        price_momentum = 'STRONG_POSITIVE'
    elif momentum > 0:
        price_momentum = 'POSITIVE'
    elif momentum < -0.01:
        price_momentum = 'STRONG_NEGATIVE'
    else:
        price_momentum = 'NEGATIVE'

    if macd_line > signal_line * 1.1:
        macd_momentum = 'STRONG_POSITIVE'
    elif macd_line > signal_line:
        macd_momentum = 'POSITIVE'
    elif macd_line < signal_line * 0.9:
        macd_momentum = 'STRONG_NEGATIVE'
    else:
        macd_momentum = 'NEGATIVE'

    if rsi_zone == 'NEUTRAL':
        if price_momentum == 'STRONG_POSITIVE' and macd_momentum == 'STRONG_POSITIVE':
            return MomentumRegime.STRONG_MOMENTUM
        if price_momentum == 'STRONG_NEGATIVE' and macd_momentum == 'STRONG_NEGATIVE':
            return MomentumRegime.STRONG_REVERSAL

    if price_momentum == 'POSITIVE' and macd_momentum == 'POSITIVE':
        return MomentumRegime.MOMENTUM
    if price_momentum == 'NEGATIVE' and macd_momentum == 'NEGATIVE':
        return MomentumRegime.REVERSAL

    if rsi_zone == 'OVERBOUGHT' and price_momentum == 'NEGATIVE':
        return MomentumRegime.REVERSAL
    if rsi_zone == 'OVERSOLD' and price_momentum == 'POSITIVE':
        return MomentumRegime.MOMENTUM

    return MomentumRegime.NEUTRAL


def regime_score(
    volatility: VolatilityRegime, trend: TrendRegime, momentum: MomentumRegime
) -> float:
    score = 50 + VOLATILITY_SCORE.get(volatility, 0) + TREND_SCORE.get(trend, 0)
    score += MOMENTUM_SCORE.get(momentum, 0)
    return float(max(0, min(100, score)))


class TechnicalRegimeClassifier:
    """
    Default RegimeClassifier.

    Example:
        classifier = TechnicalRegimeClassifier()
        regime = classifier.classify(prices, volumes, len(prices) - 1, prices[-1])
        # constant prices -> VERY_LOW / SIDEWAYS / REVERSAL, score 32
    """

    def __init__(self, volatility_period: int = 20, momentum_lookback: int = 10):
        self.volatility_period = volatility_period
        self.momentum_lookback = momentum_lookback

    def classify(
        self,
        prices: Sequence[float],
        volumes: Sequence[float],
        day_index: int,
        current_price: float,
    ) -> MarketRegime:
        history = list(prices[: day_index + 1])

        realized_vol = realized_volatility(history, self.volatility_period)
        volatility = classify_volatility(realized_vol)

        trend = classify_trend(
            current_price,
            last_sma(history, 20),
            last_sma(history, 50),
            last_sma(history, 200),
        )

        if day_index >= self.momentum_lookback:
            price_change = current_price - history[day_index - self.momentum_lookback]
        else:
            price_change = 0.0
        macd_value, signal_value = macd(history)
        momentum = classify_momentum(
            rsi_wilder(history),
            price_change,
            macd_value,
            signal_value,
        )

        return MarketRegime(
            volatility_regime=volatility,
            trend_regime=trend,
            momentum_regime=momentum,
            realized_volatility=realized_vol,
            regime_score=regime_score(volatility, trend, momentum),
        )

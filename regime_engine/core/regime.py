"""
Market regime and strategy archetype types.

MarketRegime values are produced once per time step by a RegimeClassifier
and never mutated afterwards.
"""
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict


class VolatilityRegime(str, Enum):
    EXTREME_HIGH = 'EXTREME_HIGH'
    HIGH = 'HIGH'
    MEDIUM = 'MEDIUM'
    LOW = 'LOW'
    VERY_LOW = 'VERY_LOW'


class TrendRegime(str, Enum):
    STRONG_UPTREND = 'STRONG_UPTREND'
    UPTREND = 'UPTREND'
    WEAK_UPTREND = 'WEAK_UPTREND'
    SIDEWAYS = 'SIDEWAYS'
    WEAK_DOWNTREND = 'WEAK_DOWNTREND'
    DOWNTREND = 'DOWNTREND'
    STRONG_DOWNTREND = 'STRONG_DOWNTREND'


class MomentumRegime(str, Enum):
    STRONG_MOMENTUM = 'STRONG_MOMENTUM'
    MOMENTUM = 'MOMENTUM'
    NEUTRAL = 'NEUTRAL'
    REVERSAL = 'REVERSAL'
    STRONG_REVERSAL = 'STRONG_REVERSAL'


class StrategyType(str, Enum):
    """Strategy archetypes. Values double as StrategyWeights field names."""
    MOMENTUM = 'momentum'
    MEAN_REVERSION = 'mean_reversion'
    BREAKOUT = 'breakout'
    TREND_FOLLOWING = 'trend_following'


@dataclass(frozen=True)
class MarketRegime:
    """
    Classification of recent price/volume behaviour.

    Attributes:
        volatility_regime: Realized volatility bucket
        trend_regime: Price vs moving-average trend bucket
        momentum_regime: RSI/MACD/price-change momentum bucket
        realized_volatility: Annualized realized volatility
        regime_score: Confidence in the classification, 0-100
    """
    volatility_regime: VolatilityRegime
    trend_regime: TrendRegime
    momentum_regime: MomentumRegime
    realized_volatility: float
    regime_score: float

    def __post_init__(self):
        if not 0.0 <= self.regime_score <= 100.0:
            raise ValueError(f"regime_score must be within [0, 100], got {self.regime_score}")


@dataclass
class StrategyWeights:
    """
    Non-negative weight per strategy archetype.

    Field order is the fixed cumulative-draw order used by StrategySelector:
    momentum, mean_reversion, breakout, trend_following.
    """
    momentum: float = 0.25
    mean_reversion: float = 0.25
    breakout: float = 0.25
    trend_following: float = 0.25

    def total(self) -> float:
        return self.momentum + self.mean_reversion + self.breakout + self.trend_following

    def normalized(self) -> 'StrategyWeights':
        """Return a copy whose weights sum to 1."""
        total = self.total()
        if total <= 0:
            raise ValueError("Cannot normalize strategy weights with a non-positive sum")
        return StrategyWeights(
            momentum=self.momentum / total,
            mean_reversion=self.mean_reversion / total,
            breakout=self.breakout / total,
            trend_following=self.trend_following / total,
        )

    def get(self, strategy: StrategyType) -> float:
        return getattr(self, strategy.value)

    def as_dict(self) -> Dict[StrategyType, float]:
        """Weights keyed by StrategyType, in draw order."""
        return {StrategyType(f.name): getattr(self, f.name) for f in fields(self)}

    def argmax(self) -> StrategyType:
        """Highest-weight strategy; ties go to the earliest in draw order."""
        best = None
        best_weight = float('-inf')
        for strategy, weight in self.as_dict().items():
            if weight > best_weight:
                best, best_weight = strategy, weight
        return best

"""
Regime -> strategy weight mapping.

Three passes over lookup tables, then normalization:

1. Volatility: wholesale reassignment from VOLATILITY_PROFILES.
2. Trend: WeightAdjustment floors (max) and ceilings (min).
3. Momentum: same raise/cap pattern; NEUTRAL has no entry.

Floors and ceilings only bound the running weights, so a trend or momentum
signal can pull weight away from the volatility default but never zero out
a strategy the volatility pass favoured.

Example:
    weights = calculate_strategy_weights(regime)
    weights.mean_reversion   # 0.4 under VERY_LOW / SIDEWAYS / REVERSAL
"""
from dataclasses import dataclass, field
from typing import Dict

from regime_engine.core.regime import (
    MarketRegime,
    MomentumRegime,
    StrategyType,
    StrategyWeights,
    TrendRegime,
    VolatilityRegime,
)
from regime_engine.utils.logging_config import get_logger

logger = get_logger('REGIME')

MOMENTUM = StrategyType.MOMENTUM
MEAN_REVERSION = StrategyType.MEAN_REVERSION
BREAKOUT = StrategyType.BREAKOUT
TREND_FOLLOWING = StrategyType.TREND_FOLLOWING


@dataclass(frozen=True)
class WeightAdjustment:
    """
    Raise/cap record for one regime value.

    Attributes:
        raise_to: strategy -> floor, applied as max(current, floor)
        cap_at: strategy -> ceiling, applied as min(current, ceiling)
    """
    raise_to: Dict[StrategyType, float] = field(default_factory=dict)
    cap_at: Dict[StrategyType, float] = field(default_factory=dict)

    def apply(self, weights: StrategyWeights) -> StrategyWeights:
        values = weights.as_dict()
        for strategy, floor in self.raise_to.items():
            values[strategy] = max(values[strategy], floor)
        for strategy, ceiling in self.cap_at.items():
            values[strategy] = min(values[strategy], ceiling)
        return StrategyWeights(**{s.value: w for s, w in values.items()})


VOLATILITY_PROFILES: Dict[VolatilityRegime, StrategyWeights] = {
    VolatilityRegime.EXTREME_HIGH: StrategyWeights(
        momentum=0.25, mean_reversion=0.15, breakout=0.45, trend_following=0.15
    ),
    VolatilityRegime.HIGH: StrategyWeights(
        momentum=0.3, mean_reversion=0.2, breakout=0.35, trend_following=0.15
    ),
    VolatilityRegime.MEDIUM: StrategyWeights(
        momentum=0.3, mean_reversion=0.25, breakout=0.25, trend_following=0.2
    ),
    VolatilityRegime.LOW: StrategyWeights(
        momentum=0.25, mean_reversion=0.35, breakout=0.15, trend_following=0.25
    ),
    VolatilityRegime.VERY_LOW: StrategyWeights(
        momentum=0.2, mean_reversion=0.4, breakout=0.1, trend_following=0.3
    ),
}

TREND_ADJUSTMENTS: Dict[TrendRegime, WeightAdjustment] = {
    TrendRegime.STRONG_UPTREND: WeightAdjustment(
        raise_to={TREND_FOLLOWING: 0.4, MOMENTUM: 0.3},
        cap_at={MEAN_REVERSION: 0.2, BREAKOUT: 0.1},
    ),
    TrendRegime.UPTREND: WeightAdjustment(
        raise_to={TREND_FOLLOWING: 0.35, MOMENTUM: 0.3},
        cap_at={MEAN_REVERSION: 0.25, BREAKOUT: 0.1},
    ),
    TrendRegime.WEAK_UPTREND: WeightAdjustment(
        raise_to={TREND_FOLLOWING: 0.3, MOMENTUM: 0.25},
        cap_at={MEAN_REVERSION: 0.3, BREAKOUT: 0.15},
    ),
    TrendRegime.SIDEWAYS: WeightAdjustment(
        raise_to={MEAN_REVERSION: 0.4, BREAKOUT: 0.3},
        cap_at={MOMENTUM: 0.2, TREND_FOLLOWING: 0.1},
    ),
    TrendRegime.WEAK_DOWNTREND: WeightAdjustment(
        raise_to={TREND_FOLLOWING: 0.3, MEAN_REVERSION: 0.3},
        cap_at={MOMENTUM: 0.25, BREAKOUT: 0.15},
    ),
    TrendRegime.DOWNTREND: WeightAdjustment(
        raise_to={TREND_FOLLOWING: 0.35, MEAN_REVERSION: 0.3},
        cap_at={MOMENTUM: 0.25, BREAKOUT: 0.1},
    ),
    TrendRegime.STRONG_DOWNTREND: WeightAdjustment(
        raise_to={TREND_FOLLOWING: 0.4, MEAN_REVERSION: 0.3},
        cap_at={MOMENTUM: 0.2, BREAKOUT: 0.1},
    ),
}

MOMENTUM_ADJUSTMENTS: Dict[MomentumRegime, WeightAdjustment] = {
    MomentumRegime.STRONG_MOMENTUM: WeightAdjustment(
        raise_to={MOMENTUM: 0.4, TREND_FOLLOWING: 0.3},
        cap_at={BREAKOUT: 0.2, MEAN_REVERSION: 0.1},
    ),
    MomentumRegime.MOMENTUM: WeightAdjustment(
        raise_to={MOMENTUM: 0.35, TREND_FOLLOWING: 0.25},
        cap_at={BREAKOUT: 0.25, MEAN_REVERSION: 0.15},
    ),
    MomentumRegime.REVERSAL: WeightAdjustment(
        raise_to={MEAN_REVERSION: 0.35, BREAKOUT: 0.25},
        cap_at={MOMENTUM: 0.25, TREND_FOLLOWING: 0.15},
    ),
    MomentumRegime.STRONG_REVERSAL: WeightAdjustment(
        raise_to={MEAN_REVERSION: 0.4, BREAKOUT: 0.3},
        cap_at={MOMENTUM: 0.2, TREND_FOLLOWING: 0.1},
    ),
}


def calculate_strategy_weights(regime: MarketRegime) -> StrategyWeights:
    """
    Map a market regime to normalized strategy weights.

    Args:
        regime: Classified market regime

    Returns:
        StrategyWeights summing to 1
    """
    weights = VOLATILITY_PROFILES.get(regime.volatility_regime, StrategyWeights())

    trend_adjustment = TREND_ADJUSTMENTS.get(regime.trend_regime)
    if trend_adjustment is not None:
        weights = trend_adjustment.apply(weights)

    momentum_adjustment = MOMENTUM_ADJUSTMENTS.get(regime.momentum_regime)
    if momentum_adjustment is not None:
        weights = momentum_adjustment.apply(weights)

    normalized = weights.normalized()
    logger.debug(
        f"Strategy weights: momentum={normalized.momentum:.2f}, "
        f"mean_reversion={normalized.mean_reversion:.2f}, "
        f"breakout={normalized.breakout:.2f}, "
        f"trend_following={normalized.trend_following:.2f}"
    )
    return normalized

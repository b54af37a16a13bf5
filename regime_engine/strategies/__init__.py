"""
Strategy archetypes, one per StrategyType.

Example:
    from regime_engine.strategies import build_strategies

    strategies = build_strategies()
    strategies[StrategyType.BREAKOUT].evaluate_buy(ctx)
"""
from typing import Dict

from regime_engine.core.regime import StrategyType
from regime_engine.core.strategy_base import ArchetypeStrategy
from regime_engine.strategies.breakout import BreakoutStrategy
from regime_engine.strategies.mean_reversion import MeanReversionStrategy
from regime_engine.strategies.momentum import MomentumStrategy
from regime_engine.strategies.trend_following import TrendFollowingStrategy

STRATEGY_CLASSES = {
    StrategyType.MOMENTUM: MomentumStrategy,
    StrategyType.MEAN_REVERSION: MeanReversionStrategy,
    StrategyType.BREAKOUT: BreakoutStrategy,
    StrategyType.TREND_FOLLOWING: TrendFollowingStrategy,
}


def build_strategies() -> Dict[StrategyType, ArchetypeStrategy]:
    """Fresh instance of every archetype, keyed by StrategyType."""
    return {strategy_type: cls() for strategy_type, cls in STRATEGY_CLASSES.items()}


__all__ = [
    'BreakoutStrategy',
    'MeanReversionStrategy',
    'MomentumStrategy',
    'TrendFollowingStrategy',
    'STRATEGY_CLASSES',
    'build_strategies',
]

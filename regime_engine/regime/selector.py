"""
Active strategy selection from regime confidence and strategy weights.

Score bands (regime_score):
    > 75        70% argmax(weights), 30% weighted draw
    (50, 75]    weighted draw
    (25, 50]    weighted draw over stability-biased weights
    <= 25       MeanReversion

Randomness comes from an injected source so a seed reproduces a backtest.
"""
import random
from typing import Optional, Protocol

from regime_engine.core.regime import StrategyType, StrategyWeights
from regime_engine.utils.logging_config import get_logger

logger = get_logger('REGIME')

HIGH_CONFIDENCE_SCORE = 75
MEDIUM_CONFIDENCE_SCORE = 50
LOW_CONFIDENCE_SCORE = 25
ARGMAX_PROBABILITY = 0.7

# Multipliers favouring the steadier archetypes when the regime is unclear
STABILITY_BIAS = StrategyWeights(
    momentum=0.5, mean_reversion=1.5, breakout=0.3, trend_following=1.2
)


class RandomSource(Protocol):
    """Anything with random() -> float in [0, 1), e.g. random.Random."""

    def random(self) -> float:
        ...


def weighted_draw(weights: StrategyWeights, draw: float) -> StrategyType:
    """
    Pick the strategy whose cumulative-weight bucket contains `draw`.

    Buckets follow the fixed order momentum, mean_reversion, breakout,
    trend_following; anything past the last boundary falls to
    trend_following.
    """
    cumulative = 0.0
    for strategy, weight in weights.as_dict().items():
        cumulative += weight
        if draw < cumulative:
            return strategy
    return StrategyType.TREND_FOLLOWING


def stability_biased(weights: StrategyWeights) -> StrategyWeights:
    """Scale weights by STABILITY_BIAS and renormalize."""
    return StrategyWeights(
        momentum=weights.momentum * STABILITY_BIAS.momentum,
        mean_reversion=weights.mean_reversion * STABILITY_BIAS.mean_reversion,
        breakout=weights.breakout * STABILITY_BIAS.breakout,
        trend_following=weights.trend_following * STABILITY_BIAS.trend_following,
    ).normalized()


class StrategySelector:
    """
    Chooses the active StrategyType for one decision.

    Example:
        selector = StrategySelector(seed=42)
        strategy = selector.select(regime.regime_score, weights)
    """

    def __init__(self, rng: Optional[RandomSource] = None, seed: Optional[int] = None):
        """
        Args:
            rng: Random source to draw from (takes precedence over seed)
            seed: Seed for a private random.Random when rng is not given
        """
        self.rng = rng if rng is not None else random.Random(seed)

    def select(self, regime_score: float, weights: StrategyWeights) -> StrategyType:
        if regime_score > HIGH_CONFIDENCE_SCORE:
            if self.rng.random() < ARGMAX_PROBABILITY:
                selected = weights.argmax()
            else:
                selected = weighted_draw(weights, self.rng.random())
        elif regime_score > MEDIUM_CONFIDENCE_SCORE:
            selected = weighted_draw(weights, self.rng.random())
        elif regime_score > LOW_CONFIDENCE_SCORE:
            selected = weighted_draw(stability_biased(weights), self.rng.random())
        else:
            selected = StrategyType.MEAN_REVERSION

        logger.debug(f"Selected strategy {selected.value} (regime score {regime_score:.1f})")
        return selected

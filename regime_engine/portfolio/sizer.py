"""
Position sizing for new lots.

The fraction of capital committed to a Buy is the regime-adapted base size
scaled by a stack of independent boosts, each gated on its own threshold,
then clamped to [position_size_min, position_size_max].

Example:
    sizer = PositionSizer(min_fraction=0.008, max_fraction=0.25)
    fraction = sizer.fraction(prediction, base_position_size=0.1)
    # confidence 0.6, atr 0.02, everything else quiet:
    # 0.1 * 1.3 * 1.1 = 0.143
"""
from dataclasses import dataclass
from typing import Dict

from regime_engine.core.events import PredictionSnapshot


@dataclass(frozen=True)
class SizingBoosts:
    """Threshold/multiplier pairs for each sizing factor."""
    confidence_threshold: float = 0.52
    confidence_boost: float = 1.3
    high_atr_threshold: float = 0.05
    high_atr_adjustment: float = 0.9
    low_atr_adjustment: float = 1.1
    trend_threshold: float = 0.1
    trend_boost: float = 1.2
    momentum_threshold: float = 0.02
    momentum_boost: float = 1.15
    buy_prob_threshold: float = 0.52
    buy_prob_boost: float = 1.1


class PositionSizer:
    """Computes the capital fraction for a Buy."""

    def __init__(
        self,
        min_fraction: float = 0.008,
        max_fraction: float = 0.25,
        boosts: SizingBoosts = SizingBoosts(),
    ):
        if min_fraction > max_fraction:
            raise ValueError(
                f"min_fraction ({min_fraction}) must not exceed max_fraction ({max_fraction})"
            )
        self.min_fraction = min_fraction
        self.max_fraction = max_fraction
        self.boosts = boosts

    def factors(self, prediction: PredictionSnapshot) -> Dict[str, float]:
        """Individual multipliers, keyed by name (useful for logging)."""
        b = self.boosts
        return {
            'confidence': (
                b.confidence_boost if prediction.confidence > b.confidence_threshold else 1.0
            ),
            'volatility': (
                b.high_atr_adjustment
                if prediction.atr > b.high_atr_threshold
                else b.low_atr_adjustment
            ),
            'trend': b.trend_boost if prediction.trend_strength > b.trend_threshold else 1.0,
            'momentum': b.momentum_boost if prediction.momentum > b.momentum_threshold else 1.0,
            'buy_prob': b.buy_prob_boost if prediction.buy_prob > b.buy_prob_threshold else 1.0,
        }

    def fraction(self, prediction: PredictionSnapshot, base_position_size: float) -> float:
        """
        Bounded capital fraction for a new lot.

        Args:
            prediction: Predictor snapshot of the Buy step
            base_position_size: Regime-adapted base fraction

        Returns:
            Fraction in [min_fraction, max_fraction]
        """
        size = base_position_size
        for factor in self.factors(prediction).values():
            size *= factor
        return max(self.min_fraction, min(size, self.max_fraction))

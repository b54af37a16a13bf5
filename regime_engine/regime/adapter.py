"""
Regime-driven rescaling of position size and confidence gating.

Position-size multiplier: 0.7 EXTREME_HIGH vol, 0.85 HIGH, 1.3 VERY_LOW, else 1.0.
Confidence multiplier: 0.9 under STRONG_MOMENTUM or STRONG_UPTREND,
1.2 under STRONG_REVERSAL or EXTREME_HIGH vol, else 1.0.

By default the multipliers are applied to canonical base values on every
call, so repeated regime changes never compound. compound=True multiplies
the running values instead, which drifts over a long backtest.
"""
from dataclasses import dataclass
from typing import Optional

from regime_engine.core.regime import (
    MarketRegime,
    MomentumRegime,
    TrendRegime,
    VolatilityRegime,
)

POSITION_SIZE_MULTIPLIERS = {
    VolatilityRegime.EXTREME_HIGH: 0.7,
    VolatilityRegime.HIGH: 0.85,
    VolatilityRegime.VERY_LOW: 1.3,
}


@dataclass(frozen=True)
class AdaptedParameters:
    min_confidence: float
    base_position_size: float


def position_size_multiplier(regime: MarketRegime) -> float:
    return POSITION_SIZE_MULTIPLIERS.get(regime.volatility_regime, 1.0)


def confidence_multiplier(regime: MarketRegime) -> float:
    if (
        regime.momentum_regime == MomentumRegime.STRONG_MOMENTUM
        or regime.trend_regime == TrendRegime.STRONG_UPTREND
    ):
        return 0.9
    if (
        regime.momentum_regime == MomentumRegime.STRONG_REVERSAL
        or regime.volatility_regime == VolatilityRegime.EXTREME_HIGH
    ):
        return 1.2
    return 1.0


class ParameterAdapter:
    """
    Produces the min_confidence and base_position_size for one decision.

    Example:
        adapter = ParameterAdapter()
        params = adapter.adapt(regime, base_min_confidence=0.05, base_position_size=0.1)
    """

    def __init__(self, compound: bool = False):
        self.compound = compound
        self._running: Optional[AdaptedParameters] = None

    def adapt(
        self,
        regime: MarketRegime,
        base_min_confidence: float,
        base_position_size: float,
    ) -> AdaptedParameters:
        """
        Args:
            regime: Current market regime
            base_min_confidence: Canonical min_confidence of the active strategy
            base_position_size: Canonical base position size

        Returns:
            AdaptedParameters for this decision cycle
        """
        if self.compound and self._running is not None:
            min_confidence = self._running.min_confidence
            position_size = self._running.base_position_size
        else:
            min_confidence = base_min_confidence
            position_size = base_position_size

        adapted = AdaptedParameters(
            min_confidence=min_confidence * confidence_multiplier(regime),
            base_position_size=position_size * position_size_multiplier(regime),
        )
        self._running = adapted
        return adapted

    def reset(self) -> None:
        """Forget compounded values (used when the active strategy changes)."""
        self._running = None

"""
Unit tests for regime-driven parameter adaptation.
"""
import pytest

from regime_engine.core.regime import (
    MarketRegime,
    MomentumRegime,
    TrendRegime,
    VolatilityRegime,
)
from regime_engine.regime.adapter import (
    ParameterAdapter,
    confidence_multiplier,
    position_size_multiplier,
)


def regime(
    volatility=VolatilityRegime.MEDIUM,
    trend=TrendRegime.SIDEWAYS,
    momentum=MomentumRegime.NEUTRAL,
):
    return MarketRegime(
        volatility_regime=volatility,
        trend_regime=trend,
        momentum_regime=momentum,
        realized_volatility=0.4,
        regime_score=50.0,
    )


class TestMultipliers:

    @pytest.mark.parametrize('volatility,expected', [
        (VolatilityRegime.EXTREME_HIGH, 0.7),
        (VolatilityRegime.HIGH, 0.85),
        (VolatilityRegime.MEDIUM, 1.0),
        (VolatilityRegime.LOW, 1.0),
        (VolatilityRegime.VERY_LOW, 1.3),
    ])
    def test_position_size_multiplier(self, volatility, expected):
        assert position_size_multiplier(regime(volatility=volatility)) == expected

    def test_strong_momentum_lowers_confidence_bar(self):
        assert confidence_multiplier(regime(momentum=MomentumRegime.STRONG_MOMENTUM)) == 0.9
        assert confidence_multiplier(regime(trend=TrendRegime.STRONG_UPTREND)) == 0.9

    def test_stress_raises_confidence_bar(self):
        assert confidence_multiplier(regime(momentum=MomentumRegime.STRONG_REVERSAL)) == 1.2
        assert confidence_multiplier(regime(volatility=VolatilityRegime.EXTREME_HIGH)) == 1.2

    def test_strong_momentum_wins_over_extreme_volatility(self):
        """The lowering branch is checked first."""
        mixed = regime(
            volatility=VolatilityRegime.EXTREME_HIGH,
            momentum=MomentumRegime.STRONG_MOMENTUM,
        )
        assert confidence_multiplier(mixed) == 0.9

    def test_quiet_regime_has_no_effect(self):
        assert confidence_multiplier(regime()) == 1.0


class TestParameterAdapter:
    """Tests for canonical vs compounding adaptation."""

    def test_adapts_from_canonical_values(self):
        adapter = ParameterAdapter()
        stressed = regime(volatility=VolatilityRegime.EXTREME_HIGH)

        params = adapter.adapt(stressed, base_min_confidence=0.05, base_position_size=0.1)

        assert params.min_confidence == pytest.approx(0.06)
        assert params.base_position_size == pytest.approx(0.07)

    def test_repeated_calls_do_not_compound(self):
        adapter = ParameterAdapter()
        stressed = regime(volatility=VolatilityRegime.EXTREME_HIGH)

        for _ in range(20):
            params = adapter.adapt(stressed, 0.05, 0.1)

        assert params.min_confidence == pytest.approx(0.06)
        assert params.base_position_size == pytest.approx(0.07)

    def test_compound_mode_multiplies_running_values(self):
        adapter = ParameterAdapter(compound=True)
        stressed = regime(volatility=VolatilityRegime.EXTREME_HIGH)

        adapter.adapt(stressed, 0.05, 0.1)
        params = adapter.adapt(stressed, 0.05, 0.1)

        assert params.min_confidence == pytest.approx(0.05 * 1.2 * 1.2)
        assert params.base_position_size == pytest.approx(0.1 * 0.7 * 0.7)

    def test_reset_restarts_compounding_from_base(self):
        adapter = ParameterAdapter(compound=True)
        stressed = regime(volatility=VolatilityRegime.EXTREME_HIGH)

        adapter.adapt(stressed, 0.05, 0.1)
        adapter.reset()
        params = adapter.adapt(stressed, 0.05, 0.1)

        assert params.min_confidence == pytest.approx(0.06)

"""
Unit tests for MarketRegime and StrategyWeights.
"""
import pytest

from regime_engine.core.regime import (
    MarketRegime,
    MomentumRegime,
    StrategyType,
    StrategyWeights,
    TrendRegime,
    VolatilityRegime,
)


class TestMarketRegime:

    def test_score_bounds_are_inclusive(self):
        for score in (0.0, 100.0):
            regime = MarketRegime(
                VolatilityRegime.LOW, TrendRegime.SIDEWAYS, MomentumRegime.NEUTRAL, 0.25, score
            )
            assert regime.regime_score == score

    @pytest.mark.parametrize('score', [-0.1, 100.1])
    def test_score_out_of_range(self, score):
        with pytest.raises(ValueError, match="regime_score"):
            MarketRegime(
                VolatilityRegime.LOW, TrendRegime.SIDEWAYS, MomentumRegime.NEUTRAL, 0.25, score
            )

    def test_is_immutable(self):
        regime = MarketRegime(
            VolatilityRegime.LOW, TrendRegime.SIDEWAYS, MomentumRegime.NEUTRAL, 0.25, 50.0
        )
        with pytest.raises(AttributeError):
            regime.regime_score = 60.0


class TestStrategyWeights:

    def test_defaults_are_uniform(self):
        weights = StrategyWeights()
        assert weights.total() == pytest.approx(1.0)
        assert set(weights.as_dict().values()) == {0.25}

    def test_normalized(self):
        weights = StrategyWeights(momentum=1, mean_reversion=1, breakout=2, trend_following=0)
        normalized = weights.normalized()

        assert normalized.breakout == pytest.approx(0.5)
        assert normalized.trend_following == 0.0
        # Original left untouched
        assert weights.breakout == 2

    def test_normalizing_zero_weights_fails(self):
        with pytest.raises(ValueError):
            StrategyWeights(0, 0, 0, 0).normalized()

    def test_as_dict_follows_draw_order(self):
        assert list(StrategyWeights().as_dict()) == [
            StrategyType.MOMENTUM,
            StrategyType.MEAN_REVERSION,
            StrategyType.BREAKOUT,
            StrategyType.TREND_FOLLOWING,
        ]

    def test_get_by_strategy_type(self):
        weights = StrategyWeights(breakout=0.7)
        assert weights.get(StrategyType.BREAKOUT) == 0.7

    def test_argmax(self):
        weights = StrategyWeights(momentum=0.1, mean_reversion=0.2, breakout=0.3, trend_following=0.4)
        assert weights.argmax() == StrategyType.TREND_FOLLOWING

    def test_argmax_ties_pick_earliest(self):
        weights = StrategyWeights(momentum=0.1, mean_reversion=0.4, breakout=0.4, trend_following=0.1)
        assert weights.argmax() == StrategyType.MEAN_REVERSION

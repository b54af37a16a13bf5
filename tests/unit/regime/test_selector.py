"""
Unit tests for strategy selection.
"""
import random

import pytest

from conftest import FixedRandom
from regime_engine.core.regime import StrategyType, StrategyWeights
from regime_engine.regime.selector import (
    StrategySelector,
    stability_biased,
    weighted_draw,
)

FLAT_MARKET_WEIGHTS = StrategyWeights(
    momentum=0.2, mean_reversion=0.4, breakout=0.3, trend_following=0.1
)


class TestWeightedDraw:
    """Tests for the cumulative-bucket draw."""

    @pytest.mark.parametrize('draw,expected', [
        (0.0, StrategyType.MOMENTUM),
        (0.19, StrategyType.MOMENTUM),
        (0.21, StrategyType.MEAN_REVERSION),
        (0.59, StrategyType.MEAN_REVERSION),
        (0.61, StrategyType.BREAKOUT),
        (0.89, StrategyType.BREAKOUT),
        (0.91, StrategyType.TREND_FOLLOWING),
        (0.999, StrategyType.TREND_FOLLOWING),
    ])
    def test_bucket_boundaries(self, draw, expected):
        assert weighted_draw(FLAT_MARKET_WEIGHTS, draw) == expected

    def test_draw_past_total_falls_to_trend_following(self):
        weights = StrategyWeights(momentum=0.1, mean_reversion=0.1, breakout=0.1, trend_following=0.1)
        assert weighted_draw(weights, 0.95) == StrategyType.TREND_FOLLOWING


class TestStabilityBias:

    def test_flat_market_biased_weights(self):
        biased = stability_biased(FLAT_MARKET_WEIGHTS)

        assert biased.total() == pytest.approx(1.0)
        assert biased.momentum == pytest.approx(0.10 / 0.91)
        assert biased.mean_reversion == pytest.approx(0.60 / 0.91)
        assert biased.breakout == pytest.approx(0.09 / 0.91)
        assert biased.trend_following == pytest.approx(0.12 / 0.91)

    def test_bias_favours_mean_reversion(self):
        biased = stability_biased(StrategyWeights())
        assert biased.argmax() == StrategyType.MEAN_REVERSION


class TestStrategySelector:
    """Tests for score-banded selection."""

    def test_low_score_forces_mean_reversion(self):
        rng = FixedRandom(0.0)
        selector = StrategySelector(rng=rng)
        weights = StrategyWeights(momentum=1.0, mean_reversion=0.0, breakout=0.0, trend_following=0.0)

        assert selector.select(25.0, weights) == StrategyType.MEAN_REVERSION
        assert selector.select(0.0, weights) == StrategyType.MEAN_REVERSION
        assert rng.calls == 0

    def test_high_score_argmax_branch(self):
        selector = StrategySelector(rng=FixedRandom(0.69))

        assert selector.select(90.0, FLAT_MARKET_WEIGHTS) == StrategyType.MEAN_REVERSION

    def test_high_score_weighted_branch(self):
        """First draw >= 0.7 skips argmax; second draw picks the bucket."""
        selector = StrategySelector(rng=FixedRandom(0.95, 0.05))

        assert selector.select(76.0, FLAT_MARKET_WEIGHTS) == StrategyType.MOMENTUM

    def test_argmax_tie_goes_to_first_in_draw_order(self):
        weights = StrategyWeights(momentum=0.3, mean_reversion=0.25, breakout=0.15, trend_following=0.3)
        selector = StrategySelector(rng=FixedRandom(0.0))

        assert selector.select(80.0, weights) == StrategyType.MOMENTUM

    def test_medium_score_weighted_draw(self):
        selector = StrategySelector(rng=FixedRandom(0.65))

        assert selector.select(60.0, FLAT_MARKET_WEIGHTS) == StrategyType.BREAKOUT

    def test_low_medium_score_uses_stability_bias(self):
        """0.65 is breakout on raw weights but mean reversion once biased."""
        selector = StrategySelector(rng=FixedRandom(0.65))

        assert selector.select(32.0, FLAT_MARKET_WEIGHTS) == StrategyType.MEAN_REVERSION

    def test_band_edges(self):
        rng = FixedRandom(0.0)
        selector = StrategySelector(rng=rng)

        # 75 is not > 75: single weighted draw, no argmax draw
        assert selector.select(75.0, FLAT_MARKET_WEIGHTS) == StrategyType.MOMENTUM
        assert rng.calls == 1
        # 50 is not > 50: stability-biased draw
        assert selector.select(50.0, FLAT_MARKET_WEIGHTS) == StrategyType.MOMENTUM
        assert rng.calls == 2

    def test_same_seed_same_sequence(self):
        weights = StrategyWeights()
        first = StrategySelector(seed=7)
        second = StrategySelector(seed=7)

        picks_a = [first.select(60.0, weights) for _ in range(50)]
        picks_b = [second.select(60.0, weights) for _ in range(50)]

        assert picks_a == picks_b

    def test_accepts_random_instance(self):
        selector = StrategySelector(rng=random.Random(3))
        assert selector.select(60.0, StrategyWeights()) in set(StrategyType)

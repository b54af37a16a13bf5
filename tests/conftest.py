"""
Global pytest fixtures for the regime engine test suite.

Provides deterministic stand-ins for the engine's injected collaborators:
a predictor returning fixed snapshots, a classifier returning a fixed
regime and a random source returning fixed draws.
"""
import math
import os
import tempfile
from datetime import datetime, timedelta, timezone

# Keep session log files out of the working tree
os.environ.setdefault('REGIME_LOG_DIR', os.path.join(tempfile.gettempdir(), 'regime_engine_test_logs'))

import pytest

from regime_engine.core.events import PositionState, PredictionSnapshot
from regime_engine.core.regime import (
    MarketRegime,
    MomentumRegime,
    TrendRegime,
    VolatilityRegime,
)
from regime_engine.core.strategy_base import BuyContext, SellContext
from regime_engine.utils.config import StrategyConfig

ANCHOR = datetime(2000, 1, 1, tzinfo=timezone.utc)

QUIET_PREDICTION = dict(
    buy_prob=0.0,
    sell_prob=0.0,
    confidence=0.3,
    momentum=0.0,
    short_momentum=0.0,
    trend_slope=0.0,
    atr=0.01,
    momentum_divergence=0.0,
    volatility_adjusted_momentum=0.0,
    trend_strength=0.0,
    atr_breakout=0.0,
)


def make_snapshot(**overrides) -> PredictionSnapshot:
    """PredictionSnapshot with every signal quiet unless overridden."""
    values = dict(QUIET_PREDICTION)
    values.update(overrides)
    return PredictionSnapshot(**values)


def day(index: int) -> datetime:
    return ANCHOR + timedelta(days=index)


class StubPredictor:
    """
    Predictor returning the same snapshot on every call.

    Pass a list to return one snapshot per call instead (the last one
    repeats once the list is exhausted).
    """

    def __init__(self, snapshot):
        self._snapshots = snapshot if isinstance(snapshot, list) else [snapshot]
        self.calls = 0

    def predict(self, prices, volumes):
        index = min(self.calls, len(self._snapshots) - 1)
        self.calls += 1
        return self._snapshots[index]


class FailingPredictor:
    """Predictor that raises from the given call onwards (0-based)."""

    def __init__(self, snapshot, fail_from: int = 0):
        self.snapshot = snapshot
        self.fail_from = fail_from
        self.calls = 0

    def predict(self, prices, volumes):
        call = self.calls
        self.calls += 1
        if call >= self.fail_from:
            raise RuntimeError("model unavailable")
        return self.snapshot


class FixedRegimeClassifier:
    """RegimeClassifier returning one fixed MarketRegime."""

    def __init__(self, regime: MarketRegime):
        self.regime = regime
        self.calls = 0

    def classify(self, prices, volumes, day_index, current_price):
        self.calls += 1
        return self.regime


class FixedRandom:
    """Random source returning the given draws in a cycle."""

    def __init__(self, *values: float):
        self.values = values or (0.0,)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture
def snapshot_factory():
    """Factory for PredictionSnapshots with quiet defaults."""
    return make_snapshot


@pytest.fixture
def strategy_config():
    """Default engine constants."""
    return StrategyConfig()


@pytest.fixture
def medium_regime():
    """
    MEDIUM / WEAK_UPTREND / NEUTRAL at high confidence.

    Weights normalize to momentum .3, mean_reversion .25, breakout .15,
    trend_following .3, so argmax (first on ties) is momentum. Neither
    adapter multiplier applies.
    """
    return MarketRegime(
        volatility_regime=VolatilityRegime.MEDIUM,
        trend_regime=TrendRegime.WEAK_UPTREND,
        momentum_regime=MomentumRegime.NEUTRAL,
        realized_volatility=0.4,
        regime_score=90.0,
    )


@pytest.fixture
def low_confidence_regime():
    """Any regime scored at or below 25 forces mean reversion."""
    return MarketRegime(
        volatility_regime=VolatilityRegime.MEDIUM,
        trend_regime=TrendRegime.SIDEWAYS,
        momentum_regime=MomentumRegime.NEUTRAL,
        realized_volatility=0.4,
        regime_score=20.0,
    )


@pytest.fixture
def flat_position():
    return PositionState()


@pytest.fixture
def long_position():
    """Lot of 10 units bought at 100 on day 0."""
    return PositionState(
        holdings=10.0,
        last_buy_price=100.0,
        peak_price=100.0,
        buy_timestamp=day(0),
    )


def make_buy_context(prediction=None, prices=None, volumes=None, **overrides):
    """
    BuyContext for a FLAT step at the last price of `prices`.

    Defaults: 30 flat closes at 100, flat volume 1000, breakout threshold
    0.1 and the canonical probability/confidence thresholds.
    """
    prices = list(prices) if prices is not None else [100.0] * 30
    volumes = list(volumes) if volumes is not None else [1000.0] * len(prices)
    values = dict(
        prediction=prediction if prediction is not None else make_snapshot(),
        price=prices[-1],
        prices=prices,
        volumes=volumes,
        breakout_threshold=0.1,
        buy_prob_threshold=0.05,
        min_confidence=0.05,
    )
    values.update(overrides)
    return BuyContext(**values)


def make_sell_context(prediction=None, price_change=0.0, entry=100.0, **overrides):
    """
    SellContext for a LONG lot bought at `entry`, trailing stop not armed
    and take-profit far away unless overridden.
    """
    values = dict(
        prediction=prediction if prediction is not None else make_snapshot(),
        price=entry * (1 + price_change),
        price_change=price_change,
        stop_loss_multiplier=3.0,
        trailing_stop_price=math.inf,
        take_profit_price=entry * 3.0,
        sell_prob_threshold=0.05,
    )
    values.update(overrides)
    return SellContext(**values)

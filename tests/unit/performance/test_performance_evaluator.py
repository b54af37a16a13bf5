"""
Unit tests for PerformanceEvaluator.
"""
import math

import numpy as np
import pytest

from conftest import day
from regime_engine.core.events import BacktestTrade, Recommendation
from regime_engine.core.regime import StrategyType
from regime_engine.performance.analyzer import (
    CONFIDENCE_BUCKETS,
    EvaluationResult,
    PerformanceEvaluator,
    confidence_bucket,
)


def logged(kind, price, index, usd, buy_price=None, confidence=0.55,
           strategy=StrategyType.MOMENTUM):
    return BacktestTrade(
        type=kind,
        price=price,
        timestamp=day(index),
        btc_amount=1.0,
        usd_value=usd,
        confidence=confidence,
        buy_prob=0.3,
        strategy=strategy,
        atr_adjusted_hold=5.0,
        buy_price=buy_price,
    )


@pytest.fixture
def round_trips():
    """A +10% win over 4 days, then a -5% loss over 2 days."""
    return [
        logged(Recommendation.BUY, 100.0, 0, 1000.0),
        logged(Recommendation.SELL, 110.0, 4, 1100.0, buy_price=100.0, confidence=0.82),
        logged(Recommendation.BUY, 100.0, 10, 1000.0),
        logged(Recommendation.SELL, 95.0, 12, 950.0, buy_price=100.0,
               strategy=StrategyType.BREAKOUT),
    ]


class TestConfidenceBucket:

    @pytest.mark.parametrize('confidence,bucket', [
        (0.0, '0.4-0.5'),
        (0.45, '0.4-0.5'),
        (0.5, '0.5-0.6'),
        (0.65, '0.6-0.7'),
        (0.7, '0.7-0.8'),
        (0.8, '0.8+'),
        (1.0, '0.8+'),
    ])
    def test_buckets(self, confidence, bucket):
        assert confidence_bucket(confidence) == bucket


class TestPerformanceEvaluator:
    """Tests for the single-pass evaluation."""

    def test_empty_log(self):
        result = PerformanceEvaluator([], 10000.0).evaluate()

        assert result == EvaluationResult()
        assert set(result.strategy_distribution) == {s.value for s in StrategyType}
        assert set(result.confidence_distribution) == set(CONFIDENCE_BUCKETS)

    def test_buys_only_count_nothing(self):
        result = PerformanceEvaluator([logged(Recommendation.BUY, 100.0, 0, 1000.0)], 10000.0).evaluate()

        assert result.total_trades == 0
        assert result.total_return == 0.0

    def test_round_trips(self, round_trips):
        result = PerformanceEvaluator(round_trips, 10000.0).evaluate()

        assert result.total_trades == 2
        assert result.winning_trades == 1
        assert result.losing_trades == 1
        assert result.win_rate == pytest.approx(50.0)
        assert result.total_return == pytest.approx(50.0 / 10000.0)
        assert result.average_holding_days == pytest.approx(3.0)

    def test_drawdown_on_realized_capital(self, round_trips):
        result = PerformanceEvaluator(round_trips, 10000.0).evaluate()

        # Peak 10100 after the win, 10050 after the loss
        assert result.max_drawdown == pytest.approx(50.0 / 10100.0)

    def test_annualized_return(self, round_trips):
        result = PerformanceEvaluator(round_trips, 10000.0).evaluate()

        expected = ((1 + 0.005) ** (365 / 3.0) - 1) * 100
        assert result.annualized_return == pytest.approx(expected)

    def test_sharpe_uses_population_std(self, round_trips):
        result = PerformanceEvaluator(round_trips, 10000.0).evaluate()

        returns = [0.1, -0.05]
        expected = np.mean(returns) / np.std(returns) * math.sqrt(365)
        assert result.sharpe_ratio == pytest.approx(expected)

    def test_identical_returns_have_zero_sharpe(self):
        trades = [
            logged(Recommendation.BUY, 100.0, 0, 1000.0),
            logged(Recommendation.SELL, 110.0, 2, 1100.0, buy_price=100.0),
        ]
        assert PerformanceEvaluator(trades, 10000.0).evaluate().sharpe_ratio == 0.0

    def test_distributions_count_sells(self, round_trips):
        result = PerformanceEvaluator(round_trips, 10000.0).evaluate()

        assert result.strategy_distribution == {
            'momentum': 1,
            'mean_reversion': 0,
            'breakout': 1,
            'trend_following': 0,
        }
        assert result.confidence_distribution['0.8+'] == 1
        assert result.confidence_distribution['0.5-0.6'] == 1

    def test_break_even_counts_as_loss(self):
        trades = [
            logged(Recommendation.BUY, 100.0, 0, 1000.0),
            logged(Recommendation.SELL, 100.0, 1, 1000.0, buy_price=100.0),
        ]
        result = PerformanceEvaluator(trades, 10000.0).evaluate()

        assert result.losing_trades == 1
        assert result.win_rate == 0.0

    def test_to_dict(self, round_trips):
        data = PerformanceEvaluator(round_trips, 10000.0).evaluate().to_dict()

        assert data['total_trades'] == 2
        assert data['strategy_distribution']['breakout'] == 1

    def test_report(self, round_trips):
        report = PerformanceEvaluator(round_trips, 10000.0).generate_report()

        assert "BACKTEST PERFORMANCE REPORT" in report
        assert "Win Rate:" in report
        assert "trend_following" in report

"""
Performance evaluation for backtest trade logs.

Reduces a completed BacktestTrade log to aggregate statistics in a single
pass. Capital is replayed from the log itself (Buys subtract usd_value,
Sells add it), and drawdown/total return are updated after every Sell,
i.e. on realized capital only.

Formulas:
    profit          = (price - buy_price) / buy_price           per Sell
    win_rate        = winning / total * 100
    annualized      = ((1 + total_return) ** (365 / avg_hold_days) - 1) * 100
    sharpe          = mean(profits) / pstdev(profits) * sqrt(365)
    max_drawdown    = max over Sells of (peak_capital - capital) / peak_capital

Example:
    from regime_engine.performance.analyzer import PerformanceEvaluator

    evaluator = PerformanceEvaluator(trades, initial_capital=10000.0)
    result = evaluator.evaluate()
    print(f"Sharpe Ratio: {result.sharpe_ratio:.2f}")
    print(evaluator.generate_report())
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

from regime_engine.core.events import BacktestTrade, Recommendation
from regime_engine.core.regime import StrategyType
from regime_engine.utils.logging_config import get_logger

logger = get_logger('PERFORMANCE')

DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 86400.0

CONFIDENCE_BUCKETS = ('0.4-0.5', '0.5-0.6', '0.6-0.7', '0.7-0.8', '0.8+')


def confidence_bucket(confidence: float) -> str:
    """Histogram bucket for a trade's confidence; everything below 0.5 lands in 0.4-0.5."""
    if confidence >= 0.8:
        return '0.8+'
    if confidence >= 0.7:
        return '0.7-0.8'
    if confidence >= 0.6:
        return '0.6-0.7'
    if confidence >= 0.5:
        return '0.5-0.6'
    return '0.4-0.5'


def _empty_confidence_distribution() -> Dict[str, int]:
    return {bucket: 0 for bucket in CONFIDENCE_BUCKETS}


def _empty_strategy_distribution() -> Dict[str, int]:
    return {strategy.value: 0 for strategy in StrategyType}


@dataclass
class EvaluationResult:
    """
    Aggregate statistics of one backtest run.

    total_return and max_drawdown are fractions; annualized_return and
    win_rate are percentages.
    """
    total_return: float = 0.0
    annualized_return: float = 0.0
    win_rate: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    average_holding_days: float = 0.0
    strategy_distribution: Dict[str, int] = field(default_factory=_empty_strategy_distribution)
    confidence_distribution: Dict[str, int] = field(default_factory=_empty_confidence_distribution)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PerformanceEvaluator:
    """
    Computes EvaluationResult from a BacktestTrade log.

    Attributes:
        trades: Trade log in chronological order
        initial_capital: Starting capital of the run
    """

    def __init__(self, trades: List[BacktestTrade], initial_capital: float):
        self.trades = trades
        self.initial_capital = initial_capital

        logger.info(f"PerformanceEvaluator initialized: {len(trades)} trades")

    def evaluate(self) -> EvaluationResult:
        """
        Run the single pass over the trade log.

        Returns:
            EvaluationResult (all zeros when the log has no Sells)
        """
        result = EvaluationResult()
        capital = self.initial_capital
        peak_capital = capital
        returns: List[float] = []
        total_days_held = 0.0
        open_timestamp: Optional[datetime] = None

        for trade in self.trades:
            if trade.type == Recommendation.BUY:
                capital -= trade.usd_value
                open_timestamp = trade.timestamp
                continue
            if trade.type != Recommendation.SELL:
                continue

            capital += trade.usd_value
            profit = (trade.price - trade.buy_price) / trade.buy_price if trade.buy_price else 0.0
            returns.append(profit)

            peak_capital = max(peak_capital, capital)
            drawdown = (peak_capital - capital) / peak_capital if peak_capital > 0 else 0.0
            result.max_drawdown = max(result.max_drawdown, drawdown)
            result.total_return = (capital - self.initial_capital) / self.initial_capital

            if profit > 0:
                result.winning_trades += 1
            else:
                result.losing_trades += 1

            if open_timestamp is not None:
                total_days_held += (
                    (trade.timestamp - open_timestamp).total_seconds() / SECONDS_PER_DAY
                )
                open_timestamp = None

            result.confidence_distribution[confidence_bucket(trade.confidence)] += 1
            result.strategy_distribution[StrategyType(trade.strategy).value] += 1

        result.total_trades = result.winning_trades + result.losing_trades
        if result.total_trades > 0:
            result.win_rate = result.winning_trades / result.total_trades * 100
            result.average_holding_days = total_days_held / result.total_trades

        if result.average_holding_days > 0:
            result.annualized_return = float(
                (np.power(1 + result.total_return, DAYS_PER_YEAR / result.average_holding_days) - 1)
                * 100
            )

        if returns:
            std = float(np.std(returns))
            if std > 0:
                result.sharpe_ratio = float(np.mean(returns)) / std * float(np.sqrt(DAYS_PER_YEAR))

        logger.info(
            f"Performance: Return={result.total_return:.2%}, "
            f"Sharpe={result.sharpe_ratio:.2f}, "
            f"MaxDD={result.max_drawdown:.2%}, "
            f"Trades={result.total_trades}"
        )
        return result

    def generate_report(self, result: Optional[EvaluationResult] = None) -> str:
        """
        Generate formatted performance report.

        Args:
            result: Precomputed result (evaluated on demand when omitted)

        Returns:
            Multi-line report string
        """
        if result is None:
            result = self.evaluate()

        report = []
        report.append("=" * 60)
        report.append("BACKTEST PERFORMANCE REPORT")
        report.append("=" * 60)
        report.append("")

        report.append("RETURNS:")
        report.append(f"  Initial Capital:      ${self.initial_capital:>15,.2f}")
        report.append(f"  Total Return:         {result.total_return:>16.2%}")
        report.append(f"  Annualized Return:    {result.annualized_return:>15.2f}%")
        report.append("")

        report.append("RISK METRICS:")
        report.append(f"  Sharpe Ratio:         {result.sharpe_ratio:>16.2f}")
        report.append(f"  Max Drawdown:         {result.max_drawdown:>16.2%}")
        report.append("")

        report.append("TRADE STATISTICS:")
        report.append(f"  Total Trades:         {result.total_trades:>16}")
        report.append(f"  Winning Trades:       {result.winning_trades:>16}")
        report.append(f"  Losing Trades:        {result.losing_trades:>16}")
        report.append(f"  Win Rate:             {result.win_rate:>15.2f}%")
        report.append(f"  Avg Holding Days:     {result.average_holding_days:>16.2f}")
        report.append("")

        report.append("CONFIDENCE DISTRIBUTION:")
        for bucket, count in result.confidence_distribution.items():
            report.append(f"  {bucket:<22}{count:>16}")
        report.append("")

        report.append("STRATEGY DISTRIBUTION:")
        for strategy, count in result.strategy_distribution.items():
            report.append(f"  {strategy:<22}{count:>16}")
        report.append("=" * 60)

        return "\n".join(report)

"""
High-level API for running backtests.

Replays the TradeDecisionEngine day by day over aligned price/volume
arrays:
- Validates inputs before any step runs
- Feeds the engine history [0..i] and the ledger's PositionState
- Applies each Trade to the PositionLedger and appends a BacktestTrade
- Force-liquidates a still-open lot at the final price ("End of Backtest")
- Evaluates performance and optionally exports the trade log

Example:
    from regime_engine.application.backtest_runner import BacktestRunner
    from regime_engine.core.decision_engine import TradeDecisionEngine

    engine = TradeDecisionEngine(predictor=model, seed=42)
    runner = BacktestRunner(engine, initial_capital=10000.0)
    results = runner.run_with_results(prices, volumes, start_index=30, end_index=499)

    print(f"Total Return: {results['total_return']:.2%}")
    print(f"Sharpe Ratio: {results['sharpe_ratio']:.2f}")
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from regime_engine.core.decision_engine import TradeDecisionEngine
from regime_engine.core.events import BacktestTrade, Recommendation
from regime_engine.core.exceptions import InputShapeError, RegimeEngineError
from regime_engine.performance.analyzer import PerformanceEvaluator
from regime_engine.performance.trade_logger import TradeLogger
from regime_engine.portfolio.ledger import PositionLedger
from regime_engine.utils.logging_config import get_logger

logger = get_logger('BACKTEST')

DEFAULT_ANCHOR = datetime(2000, 1, 1, tzinfo=timezone.utc)
END_OF_BACKTEST = 'End of Backtest'


class BacktestRunner:
    """
    Sequential replay of one decision engine over historical data.

    Each runner owns its ledger; do not drive one runner from several
    threads or over overlapping ranges at once.

    Attributes:
        engine: TradeDecisionEngine being replayed
        initial_capital: Starting capital
        anchor: Timestamp of day 0; day i is anchor + i days
        ledger: PositionLedger of the last run
        trades: BacktestTrade log of the last run
        trade_logger: TradeLogger of the last run
    """

    def __init__(
        self,
        engine: TradeDecisionEngine,
        initial_capital: float = 10000.0,
        anchor: datetime = DEFAULT_ANCHOR,
        run_name: str = 'backtest',
    ):
        """
        Initialize backtest runner.

        Args:
            engine: Decision engine (owns predictor, classifier and random source)
            initial_capital: Starting capital
            anchor: Synthetic timestamp of index 0
            run_name: Prefix for exported trade logs
        """
        if initial_capital <= 0:
            raise ValueError(f"initial_capital must be positive, got {initial_capital}")

        self.engine = engine
        self.initial_capital = initial_capital
        self.anchor = anchor
        self.run_name = run_name

        self.ledger = PositionLedger(initial_capital, commission=engine.config.commission)
        self.trades: List[BacktestTrade] = []
        self.trade_logger = TradeLogger(initial_capital)

        logger.info(
            f"BacktestRunner initialized: capital=${initial_capital:,.2f}, "
            f"anchor={anchor.date()}"
        )

    def timestamp_for(self, index: int) -> datetime:
        return self.anchor + timedelta(days=index)

    @staticmethod
    def _validate_inputs(
        prices: Sequence[float], volumes: Sequence[float], start_index: int, end_index: int
    ) -> None:
        """Raise InputShapeError for unusable arrays or indices."""
        if len(prices) != len(volumes):
            raise InputShapeError(
                f"Input data arrays must have equal lengths "
                f"(prices={len(prices)}, volumes={len(volumes)})"
            )
        if end_index >= len(prices):
            raise InputShapeError(
                f"end_index {end_index} exceeds data length {len(prices)}"
            )
        if start_index < 0:
            raise InputShapeError(f"start_index must be >= 0, got {start_index}")
        if start_index > end_index:
            raise InputShapeError(
                f"start_index {start_index} is after end_index {end_index}"
            )

    def _record(self, trade: BacktestTrade, cash_before: float, price: float) -> None:
        self.trades.append(trade)
        self.trade_logger.log_trade(
            trade,
            cash_before=cash_before,
            cash_after=self.ledger.capital,
            portfolio_value_after=self.ledger.get_portfolio_value(price),
        )

    def run(
        self,
        prices: Sequence[float],
        volumes: Sequence[float],
        start_index: int,
        end_index: Optional[int] = None,
    ) -> List[BacktestTrade]:
        """
        Replay days start_index..end_index (inclusive).

        Args:
            prices: Close prices, chronological
            volumes: Volumes aligned with prices
            start_index: First replayed day
            end_index: Last replayed day (default: last index)

        Returns:
            Append-only BacktestTrade log; the run always ends FLAT

        Raises:
            InputShapeError: Before any step, for bad arrays or indices
            PredictorFailure: From the failing day; the ledger keeps its
                state from the previous day
        """
        prices = [float(p) for p in prices]
        volumes = [float(v) for v in volumes]
        if end_index is None:
            end_index = len(prices) - 1
        self._validate_inputs(prices, volumes, start_index, end_index)

        self.ledger = PositionLedger(self.initial_capital, commission=self.engine.config.commission)
        self.trades = []
        self.trade_logger = TradeLogger(self.initial_capital)

        logger.info("=" * 60)
        logger.info(f"Starting backtest: days {start_index}..{end_index} of {len(prices)}")
        logger.info("=" * 60)

        final_price = prices[end_index]

        for i in range(start_index, end_index + 1):
            timestamp = self.timestamp_for(i)
            price = prices[i]

            try:
                decision = self.engine.decide(
                    prices[: i + 1],
                    volumes[: i + 1],
                    self.ledger.capital,
                    self.ledger.position,
                    timestamp,
                )
            except RegimeEngineError as e:
                logger.error(f"Backtest aborted on day {i} ({timestamp.date()}): {e}")
                raise

            trade = decision.trade
            if trade is not None:
                entry_price = self.ledger.position.last_buy_price
                cash_before = self.ledger.capital
                if self.ledger.apply_trade(trade):
                    hold_to_end_profit = None
                    if trade.type == Recommendation.SELL:
                        hold_to_end_profit = (final_price - entry_price) / entry_price * 100
                        logger.info(
                            f"Trade Closed: Entry={entry_price:.4f}, Exit={trade.price:.4f}, "
                            f"Profit={(trade.price - entry_price) / entry_price * 100:.2f}%, "
                            f"Reason={decision.reason}, Strategy={decision.strategy.value}"
                        )
                    else:
                        logger.info(
                            f"Trade Opened: Price={trade.price:.4f}, "
                            f"BuyProb={decision.buy_prob:.4f}, Confidence={decision.confidence:.4f}, "
                            f"Strategy={decision.strategy.value}, Units={trade.btc_amount:.6f}"
                        )
                    self._record(
                        BacktestTrade.from_trade(
                            trade,
                            confidence=decision.confidence,
                            buy_prob=decision.buy_prob,
                            strategy=decision.strategy,
                            atr_adjusted_hold=decision.atr_adjusted_hold,
                            hold_to_end_profit=hold_to_end_profit,
                            reason=decision.reason,
                        ),
                        cash_before,
                        price,
                    )

            self.ledger.mark_to_market(timestamp, price)

        if self.ledger.position.is_long:
            self._liquidate(final_price, self.timestamp_for(end_index))

        logger.info(
            f"Backtest complete: {len(self.trades)} trades, "
            f"final capital ${self.ledger.capital:,.2f}"
        )
        return self.trades

    def _liquidate(self, final_price: float, timestamp: datetime) -> None:
        """Close the open lot at the final price as an End of Backtest Sell."""
        entry_price = self.ledger.position.last_buy_price
        trade = self.ledger.liquidation_trade(final_price, timestamp)
        cash_before = self.ledger.capital
        self.ledger.apply_trade(trade)

        profit = (final_price - entry_price) / entry_price * 100
        logger.info(
            f"Trade Closed ({END_OF_BACKTEST}): Entry={entry_price:.4f}, "
            f"Exit={final_price:.4f}, Profit={profit:.2f}%, "
            f"Strategy={self.engine.current_strategy.value}"
        )
        self._record(
            BacktestTrade.from_trade(
                trade,
                confidence=0.0,
                buy_prob=0.0,
                strategy=self.engine.current_strategy,
                atr_adjusted_hold=0.0,
                hold_to_end_profit=profit,
                reason=END_OF_BACKTEST,
            ),
            cash_before,
            final_price,
        )

    def get_equity_curve(self):
        return self.ledger.get_equity_curve()

    def run_with_results(
        self,
        prices: Sequence[float],
        volumes: Sequence[float],
        start_index: int,
        end_index: Optional[int] = None,
        export_trades: bool = False,
        trades_output_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run, evaluate and (optionally) export the trade log.

        Returns:
            EvaluationResult fields plus 'final_capital', 'trades' and
            'trades_csv_path' (None unless exported)
        """
        trades = self.run(prices, volumes, start_index, end_index)

        evaluator = PerformanceEvaluator(trades, self.initial_capital)
        result = evaluator.evaluate()

        results = result.to_dict()
        results['initial_capital'] = self.initial_capital
        results['final_capital'] = self.ledger.capital
        results['trades'] = trades
        results['report'] = evaluator.generate_report(result)
        results['trades_csv_path'] = None

        if export_trades or trades_output_path is not None:
            results['trades_csv_path'] = self.trade_logger.export_csv(
                trades_output_path, run_name=self.run_name
            )

        return results

"""
Trade logging for CSV export.

Captures one record per realized trade of a backtest:
- Decision context (strategy, confidence, buy probability, exit reason)
- Execution details (price after slippage, units, USD value)
- Ledger state (cash before/after, portfolio value after)
- Performance (cumulative return %)

The runner logs each BacktestTrade right after the ledger applies it.
"""
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from regime_engine.core.events import BacktestTrade
from regime_engine.utils.logging_config import get_logger

logger = get_logger('PERFORMANCE', 'trade_logger')


@dataclass
class TradeRecord:
    """
    Complete trade record combining decision context and ledger state.

    Attributes:
        trade_id: Sequential trade number (1-based)
        trade: The BacktestTrade as appended to the log
        cash_before: Ledger capital before the trade
        cash_after: Ledger capital after the trade
        portfolio_value_after: Capital plus open lot marked at the trade price
        cumulative_return_pct: Return on initial capital after the trade, in %
    """
    trade_id: int
    trade: BacktestTrade
    cash_before: float
    cash_after: float
    portfolio_value_after: float
    cumulative_return_pct: float


class TradeLogger:
    """
    Collects TradeRecords and exports them as a DataFrame or CSV.

    Example:
        >>> trade_logger = TradeLogger(initial_capital=10000.0)
        >>> trade_logger.log_trade(trade, cash_before=10000.0, cash_after=8570.0,
        ...                        portfolio_value_after=9992.85)
        >>> df = trade_logger.to_dataframe()
        >>> trade_logger.export_csv('trades/run.csv')
    """

    def __init__(self, initial_capital: float):
        """
        Initialize TradeLogger.

        Args:
            initial_capital: Starting capital for cumulative return calculation
        """
        self._initial_capital = initial_capital
        self._trade_records: List[TradeRecord] = []

        logger.info(f"TradeLogger initialized with initial_capital={initial_capital}")

    def log_trade(
        self,
        trade: BacktestTrade,
        cash_before: float,
        cash_after: float,
        portfolio_value_after: float,
    ) -> TradeRecord:
        """Record one applied trade."""
        record = TradeRecord(
            trade_id=len(self._trade_records) + 1,
            trade=trade,
            cash_before=cash_before,
            cash_after=cash_after,
            portfolio_value_after=portfolio_value_after,
            cumulative_return_pct=(
                (portfolio_value_after - self._initial_capital) / self._initial_capital * 100
            ),
        )
        self._trade_records.append(record)
        logger.debug(
            f"Trade {record.trade_id} logged: {trade.type.value} {trade.strategy.value} "
            f"@ {trade.price:.2f}"
        )
        return record

    def get_trade_records(self) -> List[TradeRecord]:
        return self._trade_records.copy()

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert trade records to DataFrame for CSV export.

        Returns:
            DataFrame with one row per trade (empty if nothing was logged)
        """
        if not self._trade_records:
            logger.warning("No trade records to export")
            return pd.DataFrame()

        rows = []
        for record in self._trade_records:
            trade = record.trade
            rows.append({
                'Trade_ID': record.trade_id,
                'Date': trade.timestamp,
                'Decision': trade.type.value,
                'Strategy': trade.strategy.value,
                'Decision_Reason': trade.reason,
                'Price': trade.price,
                'Units': trade.btc_amount,
                'USD_Value': trade.usd_value,
                'Buy_Price': trade.buy_price,
                'Confidence': trade.confidence,
                'Buy_Prob': trade.buy_prob,
                'ATR_Adjusted_Hold': trade.atr_adjusted_hold,
                'Hold_To_End_Profit_Pct': trade.hold_to_end_profit,
                'Cash_Before': record.cash_before,
                'Cash_After': record.cash_after,
                'Portfolio_Value_After': record.portfolio_value_after,
                'Cumulative_Return_Pct': record.cumulative_return_pct,
            })

        df = pd.DataFrame(rows)
        logger.info(f"Generated DataFrame: {len(df)} rows, {len(df.columns)} columns")
        return df

    def export_csv(self, path: Optional[str] = None, run_name: str = 'backtest') -> str:
        """
        Write the trade log to CSV.

        Args:
            path: Output file (default: trades/<run_name>_<timestamp>.csv)
            run_name: Prefix for the generated default path

        Returns:
            Path the CSV was written to
        """
        if path is None:
            timestamp = datetime.now().strftime('%Y-%m-%d_%H%M%S')
            path = f'trades/{run_name}_{timestamp}.csv'

        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        self.to_dataframe().to_csv(output_path, index=False)
        logger.info(f"Trade log exported to: {output_path}")
        return str(output_path)

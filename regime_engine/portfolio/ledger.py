"""
Capital/position ledger for backtesting.

Applies the Trades emitted by the TradeDecisionEngine to a single-lot
position, tracks the peak close of the open lot and records the equity
curve. The ledger is the only place PositionState changes.

Example:
    from regime_engine.portfolio.ledger import PositionLedger

    ledger = PositionLedger(initial_capital=10000.0)
    ledger.apply_trade(buy_trade)
    ledger.mark_to_market(timestamp, close)

    print(f"Capital: ${ledger.capital:,.2f}")
    print(f"Value: ${ledger.get_portfolio_value(close):,.2f}")
"""
from datetime import datetime
from typing import List, Optional, Tuple

from regime_engine.core.events import PositionState, Recommendation, Trade
from regime_engine.utils.logging_config import get_logger

logger = get_logger('PORTFOLIO')


class PositionLedger:
    """
    Tracks capital and the single open lot during a backtest.

    Attributes:
        initial_capital: Starting cash amount
        capital: Cash not committed to the open lot
        position: Current PositionState (replaced, never mutated in place)
        trades: Every Trade applied, in order
        equity_history: List of (timestamp, capital + holdings * close)
    """

    def __init__(self, initial_capital: float, commission: float = 0.005):
        """
        Initialize ledger.

        Args:
            initial_capital: Starting cash amount
            commission: Commission rate used for forced liquidation
        """
        self.initial_capital = initial_capital
        self.capital = initial_capital
        self.commission = commission
        self.position = PositionState()

        self.trades: List[Trade] = []
        self.equity_history: List[Tuple[datetime, float]] = []
        self._last_price: Optional[float] = None

        logger.info(f"Ledger initialized with ${initial_capital:,.2f}, commission: {commission*100}%")

    def _validate_trade(self, trade: Trade) -> Tuple[bool, str]:
        """
        Check a trade against the single-lot rules.

        Returns:
            (is_valid, rejection_reason) tuple
        """
        if trade.type == Recommendation.BUY:
            if self.position.is_long:
                return False, "Cannot open a second lot while LONG"
            if self.capital <= 0:
                return False, f"No capital available (capital=${self.capital:,.2f})"
            if trade.usd_value > self.capital:
                return False, (
                    f"Insufficient capital for BUY: "
                    f"Need ${trade.usd_value:,.2f}, have ${self.capital:,.2f}"
                )
        elif trade.type == Recommendation.SELL:
            if not self.position.is_long:
                return False, "Cannot SELL while FLAT"
        else:
            return False, f"Not an executable trade type: {trade.type}"
        return True, ''

    def apply_trade(self, trade: Trade) -> bool:
        """
        Apply a Buy or Sell to capital and position.

        Args:
            trade: Trade emitted by the decision engine

        Returns:
            True if applied, False if rejected (rejections are logged)
        """
        is_valid, rejection_reason = self._validate_trade(trade)
        if not is_valid:
            logger.warning(f"Trade rejected: {rejection_reason}")
            return False

        if trade.type == Recommendation.BUY:
            self.capital -= trade.usd_value
            self.position = PositionState(
                holdings=trade.btc_amount,
                last_buy_price=trade.price,
                peak_price=trade.price,
                buy_timestamp=trade.timestamp,
                win_streak=self.position.win_streak,
            )
        else:
            entry = self.position.last_buy_price
            profit = (trade.price - entry) / entry
            self.capital += trade.usd_value
            self.position = PositionState(
                win_streak=self.position.win_streak + 1 if profit > 0 else 0,
            )

        self.trades.append(trade)
        logger.info(
            f"Fill: {trade.type.value} {trade.btc_amount:.6f} @ ${trade.price:.2f}, "
            f"usd: ${trade.usd_value:,.2f}, capital: ${self.capital:,.2f}"
        )
        return True

    def mark_to_market(self, timestamp: datetime, price: float) -> None:
        """
        End-of-day update: raise the lot's peak and record equity.

        Args:
            timestamp: Timestamp of the replayed day
            price: Close of the replayed day
        """
        self._last_price = price
        if self.position.is_long and price > (self.position.peak_price or 0.0):
            self.position = PositionState(
                holdings=self.position.holdings,
                last_buy_price=self.position.last_buy_price,
                peak_price=price,
                buy_timestamp=self.position.buy_timestamp,
                win_streak=self.position.win_streak,
            )
        self.equity_history.append((timestamp, self.get_portfolio_value(price)))

    def liquidation_trade(self, price: float, timestamp: datetime) -> Trade:
        """
        Build the forced Sell that closes the open lot at `price`.

        No slippage is applied; commission is charged on the gross value.

        Raises:
            ValueError: If the ledger is FLAT
        """
        if not self.position.is_long:
            raise ValueError("No open lot to liquidate")

        gross = self.position.holdings * price
        return Trade(
            type=Recommendation.SELL,
            price=price,
            timestamp=timestamp,
            btc_amount=self.position.holdings,
            usd_value=gross - gross * self.commission,
            buy_price=self.position.last_buy_price,
        )

    def get_portfolio_value(self, price: Optional[float] = None) -> float:
        """Capital plus the open lot marked at `price` (defaults to the last mark)."""
        mark = price if price is not None else self._last_price
        if not self.position.is_long or mark is None:
            return self.capital
        return self.capital + self.position.holdings * mark

    def get_equity_curve(self) -> List[Tuple[datetime, float]]:
        return self.equity_history

    def get_total_return(self, price: Optional[float] = None) -> float:
        """Total return as decimal (0.15 for 15%)."""
        return (self.get_portfolio_value(price) - self.initial_capital) / self.initial_capital

    def __repr__(self) -> str:
        state = 'LONG' if self.position.is_long else 'FLAT'
        return (
            f"PositionLedger("
            f"capital=${self.capital:,.2f}, "
            f"holdings={self.position.holdings:.6f}, "
            f"state={state})"
        )

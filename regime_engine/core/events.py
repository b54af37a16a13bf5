"""
Value objects flowing between the predictor, the decision engine and the ledger.

PredictionSnapshot comes from the external predictor, Decision from the
TradeDecisionEngine, BacktestTrade from the BacktestRunner's append-only log.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from regime_engine.core.regime import StrategyType


class Recommendation(str, Enum):
    BUY = 'BUY'
    SELL = 'SELL'
    HOLD = 'HOLD'


@dataclass(frozen=True)
class PredictionSnapshot:
    """
    Predictor output for one decision.

    buy_prob/sell_prob/confidence come from the model, the remaining fields
    are the momentum/trend/volatility features it derived from history.
    """
    buy_prob: float
    sell_prob: float
    confidence: float
    momentum: float
    short_momentum: float
    trend_slope: float
    atr: float
    momentum_divergence: float
    volatility_adjusted_momentum: float
    trend_strength: float
    atr_breakout: float


@dataclass
class PositionState:
    """
    Current single-lot position.

    Invariant: holdings > 0 exactly when last_buy_price is set.
    """
    holdings: float = 0.0
    last_buy_price: Optional[float] = None
    peak_price: Optional[float] = None
    buy_timestamp: Optional[datetime] = None
    win_streak: int = 0

    def __post_init__(self):
        if self.holdings < 0:
            raise ValueError(f"holdings must be >= 0, got {self.holdings}")
        if self.win_streak < 0:
            raise ValueError(f"win_streak must be >= 0, got {self.win_streak}")
        if (self.holdings > 0) != (self.last_buy_price is not None):
            raise ValueError(
                "holdings > 0 requires last_buy_price and vice versa "
                f"(holdings={self.holdings}, last_buy_price={self.last_buy_price})"
            )

    @property
    def is_long(self) -> bool:
        return self.holdings > 0


@dataclass(frozen=True)
class Trade:
    """
    A realized Buy or Sell.

    price is the execution price after slippage. For a Buy, usd_value is the
    capital spent (commission included); for a Sell, the capital received
    after commission.
    """
    type: Recommendation
    price: float
    timestamp: datetime
    btc_amount: float
    usd_value: float
    buy_price: Optional[float] = None


@dataclass(frozen=True)
class Decision:
    """Outcome of one TradeDecisionEngine call. trade is None for Hold."""
    trade: Optional[Trade]
    confidence: float
    buy_prob: float
    sell_prob: float
    strategy: StrategyType
    atr_adjusted_hold: float = 0.0
    reason: str = ''

    @property
    def is_hold(self) -> bool:
        return self.trade is None


@dataclass(frozen=True)
class BacktestTrade:
    """Trade enriched with decision context, as logged by a backtest."""
    type: Recommendation
    price: float
    timestamp: datetime
    btc_amount: float
    usd_value: float
    confidence: float
    buy_prob: float
    strategy: StrategyType
    atr_adjusted_hold: float
    buy_price: Optional[float] = None
    hold_to_end_profit: Optional[float] = None
    reason: str = ''

    @classmethod
    def from_trade(
        cls,
        trade: Trade,
        confidence: float,
        buy_prob: float,
        strategy: StrategyType,
        atr_adjusted_hold: float,
        hold_to_end_profit: Optional[float] = None,
        reason: str = '',
    ) -> 'BacktestTrade':
        return cls(
            type=trade.type,
            price=trade.price,
            timestamp=trade.timestamp,
            btc_amount=trade.btc_amount,
            usd_value=trade.usd_value,
            buy_price=trade.buy_price,
            confidence=confidence,
            buy_prob=buy_prob,
            strategy=strategy,
            atr_adjusted_hold=atr_adjusted_hold,
            hold_to_end_profit=hold_to_end_profit,
            reason=reason,
        )

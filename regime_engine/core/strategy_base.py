"""
Base interface for the strategy archetypes driven by the TradeDecisionEngine.

An archetype is "dumb": it only answers two questions for the engine.

- evaluate_buy(ctx): should a FLAT position be opened now?
- evaluate_sell(ctx): should the open lot be closed now, and why?

Archetypes never size positions, never touch the ledger and never look at
the regime. The engine builds the context objects, applies the gates that
are common to every archetype (confidence/ATR gate, minimum hold,
trade quality, profit potential) and turns a positive answer into a Trade.

Example:
    class AlwaysIn(ArchetypeStrategy):
        strategy_type = StrategyType.MOMENTUM

        def evaluate_buy(self, ctx: BuyContext) -> bool:
            return self.probability_confirms_buy(ctx)

        def evaluate_sell(self, ctx: SellContext) -> Optional[str]:
            return self.risk_exit_reason(ctx)
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from regime_engine.core.events import PredictionSnapshot
from regime_engine.core.regime import StrategyType
from regime_engine.indicators.technical import last_sma
from regime_engine.utils.config import StrategyConfig
from regime_engine.utils.logging_config import get_logger

# Sell reasons, in the order they are checked
STOP_LOSS = 'stop_loss'
TRAILING_STOP = 'trailing_stop'
TAKE_PROFIT = 'take_profit'
TRAILING_PROFIT = 'trailing_profit'
REVERSION_TARGET = 'reversion_target'
PROBABILITY = 'probability'
MOMENTUM_REVERSAL = 'momentum_reversal'
TREND_DECAY = 'trend_decay'

# Extra sell-probability margin for archetypes that ride trends
STRICT_SELL_MARGIN = 0.05

# Short-momentum collapse while the trend is no longer strong
MOMENTUM_COLLAPSE_SHORT = -0.01
MOMENTUM_COLLAPSE_TREND = 0.05


@dataclass
class StrategyParameters:
    """
    Hyperparameters reset to canonical defaults whenever the active
    strategy changes.
    """
    min_hold_days: float
    stop_loss_multiplier: float
    trailing_stop: float
    profit_take_multiplier: float
    min_confidence: float
    buy_prob_threshold: float

    @classmethod
    def from_config(cls, config: StrategyConfig) -> 'StrategyParameters':
        return cls(
            min_hold_days=config.min_hold_days,
            stop_loss_multiplier=config.stop_loss_multiplier,
            trailing_stop=config.trailing_stop,
            profit_take_multiplier=config.profit_take_multiplier,
            min_confidence=config.min_confidence,
            buy_prob_threshold=config.buy_prob_threshold,
        )


@dataclass
class BuyContext:
    """
    Everything an archetype may look at when FLAT.

    Attributes:
        prediction: Predictor snapshot for this step
        price: Current close
        prices: Close history up to and including this step
        volumes: Volume history aligned with prices
        breakout_threshold: ATR breakout threshold in force this step
        buy_prob_threshold: Active strategy's buy probability threshold
        min_confidence: Regime-adapted minimum confidence
        config: Static engine configuration
    """
    prediction: PredictionSnapshot
    price: float
    prices: List[float]
    volumes: List[float]
    breakout_threshold: float
    buy_prob_threshold: float
    min_confidence: float
    config: StrategyConfig = field(default_factory=StrategyConfig)

    @property
    def sma_period(self) -> int:
        return self.config.sma_period

    @property
    def sma(self) -> float:
        """SMA over the last sma_period closes; the current price on shorter history."""
        if len(self.prices) < self.sma_period:
            return self.price
        return last_sma(self.prices, self.sma_period)

    @property
    def current_volume(self) -> float:
        return float(self.volumes[-1]) if self.volumes else 0.0

    @property
    def average_volume(self) -> float:
        return last_sma(self.volumes, self.sma_period)

    @property
    def volume_confirms(self) -> bool:
        """Current volume is not negligible next to the recent average."""
        return self.current_volume > self.average_volume * self.config.volume_multiplier


@dataclass
class SellContext:
    """
    Everything an archetype may look at when LONG.

    Attributes:
        prediction: Predictor snapshot for this step
        price: Current close
        price_change: (price - last_buy_price) / last_buy_price
        stop_loss_multiplier: Stop-loss ATR multiple after confidence widening
        trailing_stop_price: Trailing stop level, inf while not yet armed
        take_profit_price: last_buy_price scaled by the profit-take fraction
        sell_prob_threshold: Sell probability threshold
        config: Static engine configuration
    """
    prediction: PredictionSnapshot
    price: float
    price_change: float
    stop_loss_multiplier: float
    trailing_stop_price: float
    take_profit_price: float
    sell_prob_threshold: float
    config: StrategyConfig = field(default_factory=StrategyConfig)


class ArchetypeStrategy(ABC):
    """
    Abstract base class for strategy archetypes.

    Subclasses set strategy_type and implement evaluate_buy/evaluate_sell.
    Shared checks live here so each archetype only states what is
    specific to it.
    """

    strategy_type: StrategyType
    uses_take_profit: bool = True

    def __init__(self):
        self.name = self.__class__.__name__
        self.logger = get_logger('STRATEGY', self.strategy_type.value)

    def default_parameters(self, config: StrategyConfig) -> StrategyParameters:
        """Canonical hyperparameters for this archetype."""
        return StrategyParameters.from_config(config)

    @abstractmethod
    def evaluate_buy(self, ctx: BuyContext) -> bool:
        """
        Decide whether to open a position.

        Args:
            ctx: Snapshot of the FLAT decision step

        Returns:
            True when the archetype's entry conditions all hold
        """
        pass

    @abstractmethod
    def evaluate_sell(self, ctx: SellContext) -> Optional[str]:
        """
        Decide whether to close the open lot.

        Args:
            ctx: Snapshot of the LONG decision step (minimum hold already met)

        Returns:
            Reason string of the first trigger that fired, None to keep holding
        """
        pass

    # Shared predicates

    @staticmethod
    def probability_confirms_buy(ctx: BuyContext) -> bool:
        return (
            ctx.prediction.buy_prob > ctx.buy_prob_threshold
            and ctx.prediction.confidence >= ctx.min_confidence
        )

    def risk_exit_reason(self, ctx: SellContext) -> Optional[str]:
        """Stop-loss, trailing stop and (where used) take-profit, in that order."""
        if ctx.price_change <= -(ctx.stop_loss_multiplier * ctx.prediction.atr):
            return STOP_LOSS
        if math.isfinite(ctx.trailing_stop_price) and ctx.price <= ctx.trailing_stop_price:
            return TRAILING_STOP
        if self.uses_take_profit and ctx.price >= ctx.take_profit_price:
            return TAKE_PROFIT
        return None

    @staticmethod
    def momentum_collapsed(prediction: PredictionSnapshot) -> bool:
        return (
            prediction.short_momentum < MOMENTUM_COLLAPSE_SHORT
            and prediction.trend_strength < MOMENTUM_COLLAPSE_TREND
        )

    def __repr__(self) -> str:
        return f"{self.name}(strategy_type={self.strategy_type.value})"

"""
TradeDecisionEngine: the FLAT/LONG state machine.

Per call:
    predictor -> gate -> classify regime -> weights -> select strategy
    -> adapt parameters -> dynamic thresholds -> FLAT or LONG branch

The gate (confidence below min_confidence or ATR above max_atr_threshold)
returns Hold before any regime work is done. In the LONG branch nothing is
sold before the ATR-adjusted minimum hold has elapsed. The engine never
mutates the PositionState it is given; the caller applies the returned
Trade to its ledger.

Example:
    engine = TradeDecisionEngine(predictor=model, seed=42)
    decision = engine.decide(prices, volumes, capital, position, timestamp)
    if decision.trade:
        ledger.apply_trade(decision.trade)
"""
import math
from datetime import datetime
from typing import Optional, Protocol, Sequence

from regime_engine.core.events import (
    Decision,
    PositionState,
    PredictionSnapshot,
    Recommendation,
    Trade,
)
from regime_engine.core.exceptions import InputShapeError, PredictorFailure
from regime_engine.core.regime import StrategyType
from regime_engine.core.strategy_base import (
    ArchetypeStrategy,
    BuyContext,
    SellContext,
    StrategyParameters,
)
from regime_engine.portfolio.sizer import PositionSizer
from regime_engine.regime.adapter import ParameterAdapter
from regime_engine.regime.classifier import RegimeClassifier, TechnicalRegimeClassifier
from regime_engine.regime.selector import RandomSource, StrategySelector
from regime_engine.regime.weighting import calculate_strategy_weights
from regime_engine.strategies import build_strategies
from regime_engine.utils.config import StrategyConfig, get_config
from regime_engine.utils.logging_config import get_logger

logger = get_logger('ENGINE')

SECONDS_PER_DAY = 86400.0

DEFAULT_STRATEGY = StrategyType.MEAN_REVERSION

# Dynamic threshold adjustments
STOP_LOSS_WIDENING = 1.2
TRAILING_TIGHTENING = 0.8
PROFIT_BOOST_MOMENTUM = 0.1

# Minimum hold clamp, in days
MEAN_REVERSION_HOLD_FLOOR = 3.0
DEFAULT_HOLD_FLOOR = 5.0
MAX_HOLD_DAYS = 12.0


class Predictor(Protocol):
    """External model producing a PredictionSnapshot from history up to now."""

    def predict(self, prices: Sequence[float], volumes: Sequence[float]) -> PredictionSnapshot:
        ...


def days_between(start: Optional[datetime], end: datetime) -> float:
    """Fractional days from start to end; inf when start is unknown."""
    if start is None:
        return math.inf
    return (end - start).total_seconds() / SECONDS_PER_DAY


class TradeDecisionEngine:
    """
    Regime-aware Buy/Sell/Hold decisions for a single asset.

    Attributes:
        predictor: External prediction oracle
        classifier: RegimeClassifier used after the gate
        config: Static StrategyConfig
        selector: StrategySelector owning the random source
        adapter: ParameterAdapter for min_confidence / base position size
        sizer: PositionSizer for new lots
    """

    def __init__(
        self,
        predictor: Predictor,
        classifier: Optional[RegimeClassifier] = None,
        config: Optional[StrategyConfig] = None,
        rng: Optional[RandomSource] = None,
        seed: Optional[int] = None,
        compound_adaptation: bool = False,
    ):
        """
        Initialize engine.

        Args:
            predictor: Object with predict(prices, volumes) -> PredictionSnapshot
            classifier: Regime classifier (default: TechnicalRegimeClassifier)
            config: Strategy constants (default: global config's strategy section)
            rng: Random source for strategy selection (takes precedence over seed)
            seed: Seed for a private random.Random
            compound_adaptation: Multiply running parameters instead of canonical ones
        """
        self.predictor = predictor
        self.classifier = classifier if classifier is not None else TechnicalRegimeClassifier()
        self.config = config if config is not None else get_config().strategy
        self.selector = StrategySelector(rng=rng, seed=seed)
        self.adapter = ParameterAdapter(compound=compound_adaptation)
        self.sizer = PositionSizer(
            min_fraction=self.config.position_size_min,
            max_fraction=self.config.position_size_max,
        )
        self.strategies = build_strategies()

        self._current = DEFAULT_STRATEGY
        self._trade_count = 0
        self._parameters = self.strategy.default_parameters(self.config)
        self._base_position_size = self.config.base_position_size

        logger.info(f"TradeDecisionEngine initialized, strategy: {self._current.value}")

    @property
    def current_strategy(self) -> StrategyType:
        return self._current

    @property
    def strategy(self) -> ArchetypeStrategy:
        return self.strategies[self._current]

    @property
    def strategy_trade_count(self) -> int:
        """Trades emitted since the active strategy was last changed."""
        return self._trade_count

    @property
    def parameters(self) -> StrategyParameters:
        return self._parameters

    @property
    def base_position_size(self) -> float:
        return self._base_position_size

    def set_strategy(self, strategy_type: StrategyType) -> None:
        """
        Force the active strategy.

        Resets the trade counter and hyperparameters even when the strategy
        is unchanged.
        """
        self._switch_to(strategy_type)
        logger.info(f"Strategy manually set to: {strategy_type.value}")

    def _switch_to(self, strategy_type: StrategyType) -> None:
        self._current = strategy_type
        self._trade_count = 0
        self._parameters = self.strategy.default_parameters(self.config)
        self.adapter.reset()

    def _predict(self, prices: Sequence[float], volumes: Sequence[float]) -> PredictionSnapshot:
        try:
            return self.predictor.predict(prices, volumes)
        except Exception as e:
            raise PredictorFailure(
                f"Predictor failed on history of {len(prices)} points: {e}"
            ) from e

    def _decision(
        self,
        prediction: PredictionSnapshot,
        trade: Optional[Trade] = None,
        atr_adjusted_hold: float = 0.0,
        reason: str = '',
    ) -> Decision:
        return Decision(
            trade=trade,
            confidence=prediction.confidence,
            buy_prob=prediction.buy_prob,
            sell_prob=prediction.sell_prob,
            strategy=self._current,
            atr_adjusted_hold=atr_adjusted_hold,
            reason=reason,
        )

    def decide(
        self,
        prices: Sequence[float],
        volumes: Sequence[float],
        capital: float,
        position: PositionState,
        timestamp: datetime,
    ) -> Decision:
        """
        Decide Buy, Sell or Hold for the last point of `prices`.

        Args:
            prices: Close history up to and including now
            volumes: Volume history aligned with prices
            capital: Cash available for a new lot
            position: Current position (not modified)
            timestamp: Timestamp of the current point

        Returns:
            Decision with trade=None for Hold

        Raises:
            InputShapeError: If history is empty or misaligned
            PredictorFailure: If the predictor raises
        """
        prices = list(prices)
        volumes = list(volumes)
        if not prices:
            raise InputShapeError("Price history is empty")
        if len(prices) != len(volumes):
            raise InputShapeError(
                f"Price/volume length mismatch: {len(prices)} vs {len(volumes)}"
            )

        cfg = self.config
        price = prices[-1]
        prediction = self._predict(prices, volumes)

        if (
            prediction.confidence < self._parameters.min_confidence
            or prediction.atr > cfg.max_atr_threshold
        ):
            logger.debug(
                f"Gate: confidence={prediction.confidence:.4f}, atr={prediction.atr:.4f}, "
                f"min_confidence={self._parameters.min_confidence:.4f}"
            )
            return self._decision(prediction)

        regime = self.classifier.classify(prices, volumes, len(prices) - 1, price)
        weights = calculate_strategy_weights(regime)
        selected = self.selector.select(regime.regime_score, weights)
        if selected != self._current:
            logger.info(f"Strategy change: {self._current.value} -> {selected.value}")
            self._switch_to(selected)

        canonical = self.strategy.default_parameters(cfg)
        adapted = self.adapter.adapt(regime, canonical.min_confidence, cfg.base_position_size)
        self._parameters.min_confidence = adapted.min_confidence
        self._base_position_size = adapted.base_position_size

        logger.debug(
            f"Regime: {regime.volatility_regime.value}/{regime.trend_regime.value}/"
            f"{regime.momentum_regime.value} score={regime.regime_score:.1f}, "
            f"strategy={self._current.value}"
        )

        params = self._parameters
        days_since_trade = days_between(position.buy_timestamp, timestamp)
        breakout_threshold = (
            cfg.dynamic_breakout_threshold
            if days_since_trade > cfg.days_since_trade_threshold
            else cfg.breakout_threshold
        )
        stop_loss_multiplier = params.stop_loss_multiplier
        if prediction.confidence > cfg.high_confidence_threshold:
            stop_loss_multiplier *= STOP_LOSS_WIDENING
        trailing_stop = params.trailing_stop
        if prediction.momentum > cfg.momentum_multiplier:
            trailing_stop *= TRAILING_TIGHTENING
        boost = (
            cfg.confidence_boost_multiplier
            if prediction.momentum > PROFIT_BOOST_MOMENTUM
            else 1.0
        )
        profit_take_fraction = min(params.profit_take_multiplier * boost, cfg.max_profit_take)

        hold_floor = (
            MEAN_REVERSION_HOLD_FLOOR
            if self._current == StrategyType.MEAN_REVERSION
            else DEFAULT_HOLD_FLOOR
        )
        atr_adjusted_hold = max(
            hold_floor, min(MAX_HOLD_DAYS, params.min_hold_days * (1 + prediction.atr))
        )

        if position.is_long:
            days_held = days_between(position.buy_timestamp, timestamp)
            if days_held < atr_adjusted_hold:
                return self._decision(prediction, atr_adjusted_hold=atr_adjusted_hold)

            entry = position.last_buy_price
            price_change = (price - entry) / entry
            trailing_stop_price = (
                (position.peak_price or entry) * (1 - trailing_stop)
                if price_change >= cfg.min_profit_threshold
                else math.inf
            )
            ctx = SellContext(
                prediction=prediction,
                price=price,
                price_change=price_change,
                stop_loss_multiplier=stop_loss_multiplier,
                trailing_stop_price=trailing_stop_price,
                take_profit_price=entry * (1 + profit_take_fraction),
                sell_prob_threshold=cfg.sell_prob_threshold,
                config=cfg,
            )
            reason = self.strategy.evaluate_sell(ctx)
            if reason is None:
                return self._decision(prediction, atr_adjusted_hold=atr_adjusted_hold)

            trade = self._sell(position, price, timestamp)
            self._trade_count += 1
            logger.info(
                f"SELL ({reason}): price_change={price_change:.4f}, "
                f"stop_loss={stop_loss_multiplier * prediction.atr:.4f}, "
                f"trailing={trailing_stop_price:.4f}, strategy={self._current.value}"
            )
            return self._decision(prediction, trade, atr_adjusted_hold, reason)

        ctx = BuyContext(
            prediction=prediction,
            price=price,
            prices=prices,
            volumes=volumes,
            breakout_threshold=breakout_threshold,
            buy_prob_threshold=params.buy_prob_threshold,
            min_confidence=params.min_confidence,
            config=cfg,
        )
        profit_take_price = price * (1 + profit_take_fraction)
        profit_potential = (profit_take_price - price) / price

        if not (
            self.strategy.evaluate_buy(ctx)
            and prediction.buy_prob * prediction.confidence > cfg.min_trade_quality
            and profit_potential >= cfg.min_profit_potential
            and capital > 0
        ):
            return self._decision(prediction, atr_adjusted_hold=atr_adjusted_hold)

        fraction = self.sizer.fraction(prediction, self._base_position_size)
        trade = self._buy(capital, fraction, price, timestamp)
        self._trade_count += 1
        logger.info(
            f"BUY: fraction={fraction:.4f}, amount=${trade.usd_value:,.2f}, "
            f"units={trade.btc_amount:.6f}, atr={prediction.atr:.4f}, "
            f"min_confidence={params.min_confidence:.3f}, strategy={self._current.value}"
        )
        return self._decision(prediction, trade, atr_adjusted_hold)

    def _buy(self, capital: float, fraction: float, price: float, timestamp: datetime) -> Trade:
        trade_amount = min(capital * fraction, capital)
        execution_price = price * (1 + self.config.slippage)
        commission = trade_amount * self.config.commission
        return Trade(
            type=Recommendation.BUY,
            price=execution_price,
            timestamp=timestamp,
            btc_amount=(trade_amount - commission) / execution_price,
            usd_value=trade_amount,
        )

    def _sell(self, position: PositionState, price: float, timestamp: datetime) -> Trade:
        execution_price = price * (1 - self.config.slippage)
        gross = position.holdings * execution_price
        return Trade(
            type=Recommendation.SELL,
            price=execution_price,
            timestamp=timestamp,
            btc_amount=position.holdings,
            usd_value=gross - gross * self.config.commission,
            buy_price=position.last_buy_price,
        )

"""Breakout archetype: enter on an ATR expansion backed by volume."""
from typing import Optional

from regime_engine.core.regime import StrategyType
from regime_engine.core.strategy_base import (
    MOMENTUM_REVERSAL,
    PROBABILITY,
    ArchetypeStrategy,
    BuyContext,
    SellContext,
)


class BreakoutStrategy(ArchetypeStrategy):

    strategy_type = StrategyType.BREAKOUT

    def evaluate_buy(self, ctx: BuyContext) -> bool:
        p = ctx.prediction
        cfg = ctx.config
        return (
            self.probability_confirms_buy(ctx)
            and p.atr_breakout > ctx.breakout_threshold
            and p.short_momentum > cfg.short_momentum_threshold
            and p.trend_slope > cfg.trend_strength_threshold
            and ctx.volume_confirms
        )

    def evaluate_sell(self, ctx: SellContext) -> Optional[str]:
        reason = self.risk_exit_reason(ctx)
        if reason:
            return reason
        if ctx.prediction.sell_prob > ctx.sell_prob_threshold:
            return PROBABILITY
        if ctx.prediction.momentum < ctx.config.negative_short_momentum_threshold:
            return MOMENTUM_REVERSAL
        return None

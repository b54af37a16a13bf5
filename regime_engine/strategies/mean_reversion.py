"""
Mean reversion archetype: buy a stretched dip, sell the snap-back.

This is the engine's default strategy and the one forced when the regime
classification is unreliable. It takes profit through its reversion
target and trailing-profit ladder, never through the generic take-profit
level.
"""
from typing import Optional

from regime_engine.core.regime import StrategyType
from regime_engine.core.strategy_base import (
    MOMENTUM_REVERSAL,
    PROBABILITY,
    REVERSION_TARGET,
    TRAILING_PROFIT,
    ArchetypeStrategy,
    BuyContext,
    SellContext,
)


class MeanReversionStrategy(ArchetypeStrategy):
    """Dip buying below the SMA with positive momentum divergence."""

    strategy_type = StrategyType.MEAN_REVERSION
    uses_take_profit = False

    STRONG_TREND = 0.1
    PROFIT_TARGET_TRENDING = 0.18
    PROFIT_TARGET = 0.1
    LARGE_GAIN = 0.12
    GIVE_BACK_LARGE = 0.06
    GIVE_BACK = 0.04
    TRAILING_PROFIT_FLOOR = 0.08

    @staticmethod
    def deviation(ctx: BuyContext) -> float:
        """Relative distance of price from its SMA (zero on short history)."""
        sma = ctx.sma
        if sma == 0:
            return 0.0
        return (ctx.price - sma) / sma

    def evaluate_buy(self, ctx: BuyContext) -> bool:
        p = ctx.prediction
        cfg = ctx.config
        return (
            self.probability_confirms_buy(ctx)
            and self.deviation(ctx) < cfg.negative_deviation_threshold
            and p.short_momentum > cfg.negative_short_momentum_min
            and p.momentum_divergence > 0
        )

    def trailing_profit_hit(self, ctx: SellContext) -> bool:
        target = (
            self.PROFIT_TARGET_TRENDING
            if ctx.prediction.trend_strength > self.STRONG_TREND
            else self.PROFIT_TARGET
        )
        give_back = self.GIVE_BACK_LARGE if ctx.price_change > self.LARGE_GAIN else self.GIVE_BACK
        return ctx.price_change >= target or (
            self.TRAILING_PROFIT_FLOOR < ctx.price_change < target - give_back
        )

    def evaluate_sell(self, ctx: SellContext) -> Optional[str]:
        p = ctx.prediction
        cfg = ctx.config

        reason = self.risk_exit_reason(ctx)
        if reason:
            return reason
        if self.trailing_profit_hit(ctx):
            return TRAILING_PROFIT
        if ctx.price_change >= cfg.mean_reversion_threshold or p.momentum > cfg.momentum_max:
            return REVERSION_TARGET
        if p.sell_prob > ctx.sell_prob_threshold:
            return PROBABILITY
        if self.momentum_collapsed(p):
            return MOMENTUM_REVERSAL
        return None

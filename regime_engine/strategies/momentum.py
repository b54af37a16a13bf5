"""
Momentum archetype: ride short-term strength, exit fast when it fades.

Entry needs the predictor's buy signal plus non-negative short/volatility
adjusted momentum and trend strength, an ATR breakout (or a fresh move
back above the SMA on a rising slope) and non-trivial volume.

Exit fires on the first of: risk exits (stop-loss, trailing stop,
take-profit), the trailing-profit ladder, a strong sell probability,
momentum reversal or trend decay.
"""
from typing import Optional

from regime_engine.core.regime import StrategyType
from regime_engine.core.strategy_base import (
    MOMENTUM_REVERSAL,
    PROBABILITY,
    STRICT_SELL_MARGIN,
    TRAILING_PROFIT,
    TREND_DECAY,
    ArchetypeStrategy,
    BuyContext,
    SellContext,
)


class MomentumStrategy(ArchetypeStrategy):
    """Trend-continuation entries with a two-tier trailing profit exit."""

    strategy_type = StrategyType.MOMENTUM

    # Profit ladder: target widens with momentum, give-back widens with gains
    STRONG_MOMENTUM = 0.02
    PROFIT_TARGET_STRONG = 0.2
    PROFIT_TARGET = 0.12
    LARGE_GAIN = 0.15
    GIVE_BACK_LARGE = 0.08
    GIVE_BACK = 0.05
    TRAILING_PROFIT_FLOOR = 0.1

    def trend_reversal(self, ctx: BuyContext) -> bool:
        """Price moved back above its full-window SMA with a rising slope."""
        if len(ctx.prices) <= ctx.sma_period:
            return False
        return ctx.sma < ctx.price and ctx.prediction.trend_slope > 0

    def evaluate_buy(self, ctx: BuyContext) -> bool:
        p = ctx.prediction
        cfg = ctx.config
        return (
            self.probability_confirms_buy(ctx)
            and p.short_momentum > cfg.short_momentum_threshold
            and p.volatility_adjusted_momentum > cfg.volatility_adjusted_momentum_threshold
            and p.trend_strength > cfg.trend_strength_threshold
            and (p.atr_breakout > ctx.breakout_threshold or self.trend_reversal(ctx))
            and ctx.current_volume > ctx.average_volume * cfg.volume_boost_threshold
        )

    def trailing_profit_hit(self, ctx: SellContext) -> bool:
        target = (
            self.PROFIT_TARGET_STRONG
            if ctx.prediction.momentum > self.STRONG_MOMENTUM
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
        if p.sell_prob > ctx.sell_prob_threshold + STRICT_SELL_MARGIN:
            return PROBABILITY
        if (
            p.momentum < cfg.negative_momentum_threshold
            or p.short_momentum < cfg.negative_short_momentum_threshold
            or self.momentum_collapsed(p)
        ):
            return MOMENTUM_REVERSAL
        if p.trend_strength < cfg.trend_strength_reversal_threshold:
            return TREND_DECAY
        return None

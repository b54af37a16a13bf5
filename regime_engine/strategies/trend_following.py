"""
Trend following archetype.

Entry: the EMA over half the SMA window sits above the EMA over the full
window, with neither slope nor trend strength turning negative. Exit on a
strong sell probability, trend decay or negative momentum, besides the
shared risk exits.
"""
from typing import Optional

from regime_engine.core.regime import StrategyType
from regime_engine.core.strategy_base import (
    MOMENTUM_REVERSAL,
    PROBABILITY,
    STRICT_SELL_MARGIN,
    TREND_DECAY,
    ArchetypeStrategy,
    BuyContext,
    SellContext,
)
from regime_engine.indicators.technical import last_ema


class TrendFollowingStrategy(ArchetypeStrategy):

    strategy_type = StrategyType.TREND_FOLLOWING

    @staticmethod
    def ema_crossover(ctx: BuyContext) -> bool:
        long_period = ctx.sma_period
        short_period = max(1, ctx.sma_period // 2)
        ema_long = last_ema(ctx.prices[-long_period:], long_period)
        ema_short = last_ema(ctx.prices[-short_period:], short_period)
        return ema_short > ema_long

    def evaluate_buy(self, ctx: BuyContext) -> bool:
        p = ctx.prediction
        cfg = ctx.config
        return (
            self.probability_confirms_buy(ctx)
            and self.ema_crossover(ctx)
            and p.trend_slope > cfg.trend_slope_threshold
            and p.trend_strength > cfg.trend_strength_threshold
        )

    def evaluate_sell(self, ctx: SellContext) -> Optional[str]:
        p = ctx.prediction
        cfg = ctx.config

        reason = self.risk_exit_reason(ctx)
        if reason:
            return reason
        if p.sell_prob > ctx.sell_prob_threshold + STRICT_SELL_MARGIN:
            return PROBABILITY
        if p.trend_strength < cfg.trend_strength_reversal_threshold:
            return TREND_DECAY
        if p.momentum < cfg.negative_short_momentum_threshold:
            return MOMENTUM_REVERSAL
        return None

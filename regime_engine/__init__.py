"""
Regime Engine - adaptive, regime-aware single-asset trading decisions.

Packages:
    core: Data model, exceptions, strategy interface and TradeDecisionEngine
    regime: Regime classification, strategy weighting, selection, adaptation
    strategies: Momentum, MeanReversion, Breakout, TrendFollowing archetypes
    portfolio: Position sizing and the capital/position ledger
    application: BacktestRunner
    performance: PerformanceEvaluator and trade log export
    indicators: Technical indicators
    utils: Configuration and logging
    cli: `regime` command-line entry point
"""
__version__ = '0.1.0'

"""
Indicators module for the regime engine.

Stateless indicators (technical.py):
    - Moving Averages: ema, last_sma, last_ema
    - Momentum: rsi_wilder, macd
    - Volatility: realized_volatility
"""

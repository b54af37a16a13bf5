"""Backtest evaluation and trade log export."""

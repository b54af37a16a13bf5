"""
Regime engine exceptions.

Defines the failure conditions that abort a decision or a whole backtest run.
No component retries on any of these; they propagate to the caller.
"""


class RegimeEngineError(Exception):
    """Base class for all regime engine errors."""
    pass


class InputShapeError(RegimeEngineError, ValueError):
    """
    Historical input arrays or replay indices are unusable.

    Raised before any simulation step runs, e.g. when price and volume
    arrays differ in length or the end index lies outside the data.
    """
    pass


class PredictorFailure(RegimeEngineError):
    """
    The external predictor raised while producing a snapshot.

    The underlying exception is chained as __cause__. Aborts the decision
    and, inside a backtest, the entire run.
    """
    pass


class ConfigError(RegimeEngineError):
    """
    Configuration values failed validation.

    Raised when a YAML file or environment override cannot be parsed into
    a valid StrategyConfig.
    """
    pass

"""
Logging configuration for the regime engine.

Every logger writes to one rotating file per process,
<REGIME_LOG_DIR or ./logs>/regime_engine_log_<datetime>.log, using the
format "YYYY-MM-DD HH:MM:SS | NAME | LEVEL | Message".

Loggers are named after the part of the engine they report on:

    ENGINE          TradeDecisionEngine
    STRATEGY.<X>    one strategy archetype, e.g. STRATEGY.MOMENTUM
    REGIME          weighting and strategy selection
    PORTFOLIO       PositionLedger fills and rejections
    PERFORMANCE     PerformanceEvaluator and TradeLogger
    BACKTEST        BacktestRunner (also echoed to the console)
    CLI             command-line driver (also echoed to the console)

REGIME_LOG_LEVEL (DEBUG, INFO, ...) sets the default level; regime,
weight and selection details are only written at DEBUG.
"""
import logging
import logging.handlers
import os
from pathlib import Path
from datetime import datetime
from typing import Optional

LOG_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

DOMAINS = ('ENGINE', 'STRATEGY', 'REGIME', 'PORTFOLIO', 'PERFORMANCE', 'BACKTEST', 'CLI')

_log_file: Optional[Path] = None


def log_file_path() -> Path:
    """Path of this process's log file; the directory is created on first call."""
    global _log_file

    if _log_file is None:
        log_dir = Path(os.getenv('REGIME_LOG_DIR', 'logs'))
        log_dir.mkdir(parents=True, exist_ok=True)
        _log_file = log_dir / f"regime_engine_log_{datetime.now():%Y-%m-%d_%H%M%S}.log"
    return _log_file


def default_level() -> int:
    """Level from REGIME_LOG_LEVEL, INFO when unset or unknown."""
    level = logging.getLevelName(os.getenv('REGIME_LOG_LEVEL', 'INFO').strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(
    name: str, level: Optional[int] = None, log_to_console: bool = False
) -> logging.Logger:
    """
    Attach the shared file handler (and optionally a console handler).

    Calling it again for a logger that already has handlers only returns it.

    Args:
        name: Full logger name, e.g. 'BACKTEST' or 'STRATEGY.BREAKOUT'
        level: Logging level (default: default_level())
        log_to_console: Also write to stderr

    Example:
        logger = setup_logger('BACKTEST', log_to_console=True)
        logger.info("Replaying days 30..499")
        # 2025-11-07 14:30:22 | BACKTEST | INFO | Replaying days 30..499
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = default_level() if level is None else level
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = [
        logging.handlers.RotatingFileHandler(
            log_file_path(), maxBytes=50 * 1024 * 1024, backupCount=10
        )
    ]
    if log_to_console:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(domain: str, component: Optional[str] = None) -> logging.Logger:
    """
    Logger for one engine domain, optionally narrowed to a component.

    Handlers live on the domain logger only; component loggers propagate
    to it, so each record is written once.

    Args:
        domain: One of DOMAINS (case-insensitive)
        component: Optional suffix, e.g. a strategy type value

    Raises:
        ValueError: If domain is not one of DOMAINS

    Example:
        get_logger('strategy', 'mean_reversion').name   # 'STRATEGY.MEAN_REVERSION'
    """
    domain = domain.upper()
    if domain not in DOMAINS:
        raise ValueError(f"Unknown logging domain '{domain}', expected one of {DOMAINS}")

    logger = setup_logger(domain, log_to_console=domain in ('BACKTEST', 'CLI'))
    if component:
        return logger.getChild(component.upper())
    return logger

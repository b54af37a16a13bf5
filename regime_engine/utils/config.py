"""
Configuration management for the regime engine.

Loads configuration from environment variables and YAML files.

Precedence (highest first):
1. Environment variables (REGIME_<FIELD>, e.g. REGIME_MIN_CONFIDENCE)
2. YAML config file (strategy: / backtest: sections)
3. Defaults declared on StrategyConfig / BacktestSettings
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from regime_engine.core.exceptions import ConfigError

ENV_PREFIX = 'REGIME_'
DEFAULT_CONFIG_FILE = 'config/config.yaml'


class StrategyConfig(BaseModel):
    """
    Every tunable constant of the decision engine.

    Fractions are plain floats (0.001 = 0.1%). Defaults are the canonical
    per-strategy values the engine resets to on a strategy switch.
    """
    model_config = ConfigDict(frozen=True, extra='forbid')

    # Canonical strategy hyperparameters
    min_confidence: float = Field(0.05, ge=0.0, le=1.0)
    profit_take_multiplier: float = Field(2.0, gt=0.0)
    base_position_size: float = Field(0.1, gt=0.0, le=1.0)
    stop_loss_multiplier: float = Field(3.0, gt=0.0)
    trailing_stop: float = Field(0.08, ge=0.0, lt=1.0)
    min_hold_days: float = Field(2.0, ge=0.0)
    buy_prob_threshold: float = Field(0.05, ge=0.0, le=1.0)
    sell_prob_threshold: float = Field(0.05, ge=0.0, le=1.0)
    sma_period: int = Field(20, ge=2)
    breakout_threshold: float = 0.1

    # Execution costs
    slippage: float = Field(0.001, ge=0.0, lt=1.0)
    commission: float = Field(0.005, ge=0.0, lt=1.0)

    # Gates and dynamic thresholds
    max_atr_threshold: float = 2.0
    min_profit_threshold: float = 0.002
    days_since_trade_threshold: float = 3.0
    dynamic_breakout_threshold: float = 0.1
    high_confidence_threshold: float = 0.5
    momentum_multiplier: float = 0.06
    max_profit_take: float = Field(2.5, gt=0.0)
    confidence_boost_multiplier: float = 1.5
    min_profit_potential: float = 0.001
    min_trade_quality: float = 0.01

    # Position sizing
    position_size_min: float = Field(0.008, ge=0.0, le=1.0)
    position_size_max: float = Field(0.25, gt=0.0, le=1.0)

    # Archetype predicate thresholds
    short_momentum_threshold: float = -0.05
    volatility_adjusted_momentum_threshold: float = -0.1
    trend_strength_threshold: float = -0.1
    trend_slope_threshold: float = -0.1
    volume_boost_threshold: float = 0.1
    negative_deviation_threshold: float = -0.1
    negative_short_momentum_min: float = -0.006
    volume_multiplier: float = 0.1
    negative_momentum_threshold: float = -0.025
    negative_short_momentum_threshold: float = -0.008
    trend_strength_reversal_threshold: float = -0.015
    mean_reversion_threshold: float = 0.015
    momentum_max: float = 0.025


class BacktestSettings(BaseModel):
    """Defaults for the backtest driver."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    initial_capital: float = Field(10000.0, gt=0.0)
    start_index: int = Field(30, ge=0)
    end_index: Optional[int] = None
    seed: Optional[int] = None


class Config:
    """
    Application configuration manager.

    Loads settings from:
    1. .env file (environment variables)
    2. config/config.yaml (application config)
    3. Environment variables (override everything)

    Example:
        config = Config(config_file='config/config.yaml')
        strategy_config = config.strategy
        capital = config.backtest.initial_capital
    """

    def __init__(self, env_file: str = '.env', config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            env_file: Path to .env file
            config_file: Path to config YAML file (defaults to config/config.yaml)

        Raises:
            ConfigError: If any value fails validation
        """
        load_dotenv(env_file)

        if config_file is None:
            config_file = os.getenv(f'{ENV_PREFIX}CONFIG_FILE', DEFAULT_CONFIG_FILE)

        self._config = self._load_yaml(config_file)
        self.strategy = self._build(StrategyConfig, 'strategy')
        self.backtest = self._build(BacktestSettings, 'backtest')

    def _load_yaml(self, config_file: str) -> Dict[str, Any]:
        """Load configuration from YAML file (empty when missing)."""
        config_path = Path(config_file)
        if not config_path.exists():
            return {}

        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"{config_file} must contain a mapping at top level")
        return data

    def _build(self, model: type, section: str) -> BaseModel:
        """Merge YAML section and environment overrides into a validated model."""
        values: Dict[str, Any] = dict(self._config.get(section) or {})

        for name in model.model_fields:
            env_value = os.getenv(f'{ENV_PREFIX}{name.upper()}')
            if env_value is not None:
                values[name] = env_value

        try:
            return model(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid '{section}' configuration: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a raw configuration value using dot notation.

        Example:
            config.get('strategy.min_confidence', 0.05)
        """
        value: Any = self._config
        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get global configuration instance.

    Creates singleton Config instance on first call.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config(config_file: Optional[str] = None) -> Config:
    """Reload configuration (useful for testing)."""
    global _config
    _config = Config(config_file=config_file)
    return _config

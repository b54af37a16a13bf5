"""
Unit tests for configuration loading.
"""
import pytest

from regime_engine.core.exceptions import ConfigError
from regime_engine.utils import config as config_module
from regime_engine.utils.config import BacktestSettings, Config, StrategyConfig


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No REGIME_ overrides and no .env file in play."""
    names = list(StrategyConfig.model_fields) + list(BacktestSettings.model_fields) + ['config_file']
    for name in names:
        # setenv first so values loaded from .env files are removed on teardown
        monkeypatch.setenv(f'REGIME_{name.upper()}', '')
        monkeypatch.delenv(f'REGIME_{name.upper()}')
    return str(tmp_path / 'missing.env')


def write_yaml(tmp_path, text):
    path = tmp_path / 'config.yaml'
    path.write_text(text)
    return str(path)


class TestConfig:

    def test_defaults_without_file(self, clean_env, tmp_path):
        config = Config(env_file=clean_env, config_file=str(tmp_path / 'nope.yaml'))

        assert config.strategy == StrategyConfig()
        assert config.backtest.initial_capital == 10000.0
        assert config.backtest.start_index == 30
        assert config.backtest.seed is None

    def test_yaml_sections(self, clean_env, tmp_path):
        path = write_yaml(tmp_path, (
            "strategy:\n"
            "  min_confidence: 0.1\n"
            "  commission: 0.002\n"
            "backtest:\n"
            "  seed: 42\n"
            "  end_index: 499\n"
        ))

        config = Config(env_file=clean_env, config_file=path)

        assert config.strategy.min_confidence == 0.1
        assert config.strategy.commission == 0.002
        assert config.strategy.slippage == 0.001
        assert config.backtest.seed == 42
        assert config.backtest.end_index == 499

    def test_environment_beats_yaml(self, clean_env, tmp_path, monkeypatch):
        path = write_yaml(tmp_path, "strategy:\n  min_confidence: 0.1\n")
        monkeypatch.setenv('REGIME_MIN_CONFIDENCE', '0.2')
        monkeypatch.setenv('REGIME_SEED', '7')

        config = Config(env_file=clean_env, config_file=path)

        assert config.strategy.min_confidence == 0.2
        assert config.backtest.seed == 7

    def test_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / '.env'
        env_file.write_text("REGIME_SLIPPAGE=0.002\n")

        config = Config(env_file=str(env_file), config_file=str(tmp_path / 'nope.yaml'))

        assert config.strategy.slippage == 0.002

    def test_config_file_from_environment(self, clean_env, tmp_path, monkeypatch):
        path = write_yaml(tmp_path, "strategy:\n  sma_period: 30\n")
        monkeypatch.setenv('REGIME_CONFIG_FILE', path)

        assert Config(env_file=clean_env).strategy.sma_period == 30

    @pytest.mark.parametrize('text', [
        "strategy:\n  min_confidence: 2.0\n",
        "strategy:\n  commission: -0.1\n",
        "strategy:\n  no_such_constant: 1\n",
        "backtest:\n  initial_capital: 0\n",
    ])
    def test_invalid_values(self, clean_env, tmp_path, text):
        with pytest.raises(ConfigError):
            Config(env_file=clean_env, config_file=write_yaml(tmp_path, text))

    def test_invalid_environment_value(self, clean_env, tmp_path, monkeypatch):
        monkeypatch.setenv('REGIME_COMMISSION', 'lots')
        with pytest.raises(ConfigError, match="strategy"):
            Config(env_file=clean_env, config_file=str(tmp_path / 'nope.yaml'))

    def test_top_level_must_be_mapping(self, clean_env, tmp_path):
        with pytest.raises(ConfigError):
            Config(env_file=clean_env, config_file=write_yaml(tmp_path, "- a\n- b\n"))

    def test_dot_notation_get(self, clean_env, tmp_path):
        path = write_yaml(tmp_path, "strategy:\n  min_confidence: 0.1\n")
        config = Config(env_file=clean_env, config_file=path)

        assert config.get('strategy.min_confidence') == 0.1
        assert config.get('strategy.unknown', 'fallback') == 'fallback'


class TestStrategyConfig:

    def test_is_frozen(self):
        with pytest.raises(Exception):
            StrategyConfig().min_confidence = 0.5

    def test_canonical_values(self):
        config = StrategyConfig()
        assert config.profit_take_multiplier == 2.0
        assert config.stop_loss_multiplier == 3.0
        assert config.trailing_stop == 0.08
        assert config.max_atr_threshold == 2.0


class TestGlobalConfig:

    def test_reload_replaces_singleton(self, clean_env, tmp_path, monkeypatch):
        monkeypatch.setattr(config_module, '_config', None)
        path = write_yaml(tmp_path, "strategy:\n  min_confidence: 0.3\n")

        reloaded = config_module.reload_config(path)

        assert config_module.get_config() is reloaded
        assert reloaded.strategy.min_confidence == 0.3

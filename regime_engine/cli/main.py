"""
Command-line interface for the regime engine.

Usage:
    # Replay the engine over a CSV of closes/volumes
    regime backtest --data prices.csv --predictor mypkg.model:build_predictor

    # Show the regime and strategy weights at one point of the data
    regime classify --data prices.csv --index 250
"""
import importlib
import inspect
import sys
from typing import Any, List, Optional, Tuple

import click
import pandas as pd

from regime_engine.application.backtest_runner import BacktestRunner
from regime_engine.core.decision_engine import TradeDecisionEngine
from regime_engine.core.exceptions import ConfigError, InputShapeError, PredictorFailure
from regime_engine.regime.classifier import TechnicalRegimeClassifier
from regime_engine.regime.weighting import calculate_strategy_weights
from regime_engine.utils.config import get_config, reload_config
from regime_engine.utils.logging_config import get_logger

logger = get_logger('CLI')

EXIT_PREDICTOR_FAILURE = 1
EXIT_INPUT_SHAPE = 2


def load_price_data(path: str) -> Tuple[List[float], List[float]]:
    """
    Read close prices and volumes from a CSV file.

    Column names are matched case-insensitively; rows stay in file order.

    Raises:
        InputShapeError: If the close or volume column is missing
    """
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]

    missing = [c for c in ('close', 'volume') if c not in df.columns]
    if missing:
        raise InputShapeError(f"{path} is missing column(s): {', '.join(missing)}")

    return df['close'].astype(float).tolist(), df['volume'].astype(float).tolist()


def load_predictor(import_path: str) -> Any:
    """
    Resolve a predictor from 'package.module:attribute'.

    The attribute may be a predictor instance (has predict()), a class or
    a zero-argument factory returning one.
    """
    if ':' not in import_path:
        raise click.BadParameter(
            f"Expected 'module:attribute', got '{import_path}'", param_hint='--predictor'
        )
    module_name, attr = import_path.split(':', 1)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(
            f"Cannot import module '{module_name}': {e}", param_hint='--predictor'
        ) from e
    if not hasattr(module, attr):
        raise click.BadParameter(
            f"Module '{module_name}' has no attribute '{attr}'", param_hint='--predictor'
        )

    target = getattr(module, attr)
    if hasattr(target, 'predict') and not inspect.isclass(target):
        predictor = target
    elif callable(target):
        predictor = target()
    else:
        predictor = None
    if not hasattr(predictor, 'predict'):
        raise click.BadParameter(
            f"'{import_path}' did not produce an object with predict()", param_hint='--predictor'
        )
    return predictor


@click.group()
@click.version_option(version='0.1.0', prog_name='regime')
def cli():
    """
    Regime engine - adaptive, regime-aware single-asset backtesting.
    """
    pass


@cli.command()
@click.option('--data', 'data_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='CSV with close and volume columns')
@click.option('--predictor', 'predictor_path', required=True,
              help='Predictor import path, e.g. mypkg.model:build_predictor')
@click.option('--initial-capital', type=float, default=None,
              help='Starting capital (default: backtest.initial_capital from config)')
@click.option('--start', 'start_index', type=int, default=None, help='First replayed index')
@click.option('--end', 'end_index', type=int, default=None, help='Last replayed index (inclusive)')
@click.option('--seed', type=int, default=None, help='Seed for strategy selection')
@click.option('--export-trades', is_flag=True, default=False, help='Write the trade log CSV')
@click.option('--trades-output', default=None, help='Trade log CSV path (implies --export-trades)')
@click.option('--config', 'config_file', default=None, type=click.Path(dir_okay=False),
              help='YAML config file')
def backtest(
    data_path: str,
    predictor_path: str,
    initial_capital: Optional[float],
    start_index: Optional[int],
    end_index: Optional[int],
    seed: Optional[int],
    export_trades: bool,
    trades_output: Optional[str],
    config_file: Optional[str],
):
    """Replay the decision engine over historical closes and volumes."""
    try:
        config = reload_config(config_file) if config_file else get_config()
    except ConfigError as e:
        click.echo(click.style(f"✗ Invalid configuration: {e}", fg='red'))
        raise click.Abort()

    settings = config.backtest
    initial_capital = initial_capital if initial_capital is not None else settings.initial_capital
    start_index = start_index if start_index is not None else settings.start_index
    end_index = end_index if end_index is not None else settings.end_index
    seed = seed if seed is not None else settings.seed

    predictor = load_predictor(predictor_path)

    try:
        prices, volumes = load_price_data(data_path)
        engine = TradeDecisionEngine(predictor=predictor, config=config.strategy, seed=seed)
        runner = BacktestRunner(engine, initial_capital=initial_capital)

        click.echo(
            f"Backtesting {data_path}: {len(prices)} points, "
            f"days {start_index}..{end_index if end_index is not None else len(prices) - 1}"
        )
        results = runner.run_with_results(
            prices,
            volumes,
            start_index=start_index,
            end_index=end_index,
            export_trades=export_trades,
            trades_output_path=trades_output,
        )
    except InputShapeError as e:
        logger.error(f"Input error: {e}")
        click.echo(click.style(f"✗ Input error: {e}", fg='red'))
        sys.exit(EXIT_INPUT_SHAPE)
    except PredictorFailure as e:
        logger.error(f"Predictor failure: {e}")
        click.echo(click.style(f"✗ Predictor failure: {e}", fg='red'))
        sys.exit(EXIT_PREDICTOR_FAILURE)

    click.echo(results['report'])
    click.echo(f"Final Capital: ${results['final_capital']:,.2f}")
    if results['trades_csv_path']:
        click.echo(click.style(f"✓ Trade log exported to {results['trades_csv_path']}", fg='green'))


@cli.command()
@click.option('--data', 'data_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='CSV with close and volume columns')
@click.option('--index', 'day_index', type=int, default=None, help='Index to classify (default: last)')
def classify(data_path: str, day_index: Optional[int]):
    """Print the market regime and strategy weights at one index."""
    try:
        prices, volumes = load_price_data(data_path)
    except InputShapeError as e:
        click.echo(click.style(f"✗ Input error: {e}", fg='red'))
        sys.exit(EXIT_INPUT_SHAPE)

    if day_index is None:
        day_index = len(prices) - 1
    if not 0 <= day_index < len(prices):
        click.echo(click.style(f"✗ Index {day_index} outside 0..{len(prices) - 1}", fg='red'))
        sys.exit(EXIT_INPUT_SHAPE)

    regime = TechnicalRegimeClassifier().classify(prices, volumes, day_index, prices[day_index])
    weights = calculate_strategy_weights(regime)

    click.echo("=" * 60)
    click.echo(f"Index:                {day_index}")
    click.echo(f"Volatility Regime:    {regime.volatility_regime.value}")
    click.echo(f"Trend Regime:         {regime.trend_regime.value}")
    click.echo(f"Momentum Regime:      {regime.momentum_regime.value}")
    click.echo(f"Realized Volatility:  {regime.realized_volatility:.4f}")
    click.echo(f"Regime Score:         {regime.regime_score:.1f}")
    click.echo("-" * 60)
    for strategy, weight in weights.as_dict().items():
        click.echo(f"{strategy.value:<22}{weight:>10.2%}")
    click.echo("=" * 60)


if __name__ == '__main__':
    cli()

"""Command line interface for portvol."""

from pathlib import Path

import click
import pandas as pd

from .config import load_vol_config
from .logging import get_logger
from .optimize import efficient_frontier, maximum_sharpe, minimum_variance
from .portfolio import summarize
from .returns import load_prices, select_assets, simple_returns
from .rolling import rolling_portfolio_volatility, rolling_volatility
from .settings import settings
from .stats import covariance_matrix
from .utils import parse_bounds, parse_mapping

logger = get_logger(__name__, settings.log_level)


def _returns(prices_path: str, tickers: list[str] | None = None) -> pd.DataFrame:
    prices = load_prices(prices_path)
    if tickers:
        prices = select_assets(prices, tickers)
    return simple_returns(prices).dropna(how="any")


def _weights(text: str) -> dict[str, float]:
    try:
        return parse_mapping(text)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--weights") from None


def _bounds(text: str | None):
    if text is None:
        return None
    try:
        return parse_bounds(text)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--bounds") from None


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default="conf/portvol.yaml",
    show_default=True,
    help="YAML file with analysis defaults",
)
@click.pass_context
def cli(ctx, config_path):
    """Portfolio volatility CLI."""

    try:
        ctx.obj = load_vol_config(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from None


@cli.command()
@click.pass_obj
def info(cfg):
    """Display current settings."""

    click.echo(f"Environment: {settings.env_name}")
    click.echo(f"Periods per year: {cfg.periods_per_year}")
    click.echo(f"Window: {cfg.window}")
    click.echo(f"Long only: {cfg.long_only}")
    click.echo(f"Bounds: {cfg.bounds}")


@cli.command("portfolio-vol")
@click.option("--prices", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--weights", required=True, type=str, help="Comma separated NAME=WEIGHT pairs")
@click.pass_obj
def portfolio_vol_cmd(cfg, prices, weights):
    """Print variance, standard deviation and risk contributions."""

    w = _weights(weights)
    try:
        rets = _returns(prices, list(w))
        risk = summarize(w, covariance_matrix(rets), cfg.periods_per_year)
    except (ValueError, KeyError) as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"Variance: {risk.variance:.8f}")
    click.echo(f"Std: {risk.std:.6f}")
    click.echo(f"Annualized std: {risk.annualized_std:.6f}")
    click.echo("Risk contributions:")
    for name, value in risk.contributions.items():
        click.echo(f"  {name}: {value:.6f}")


@cli.command("rolling-vol")
@click.option("--prices", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--window", type=int, default=None, help="Defaults to the configured window")
@click.option("--weights", type=str, default=None, help="Portfolio NAME=WEIGHT pairs")
@click.option("--annualize/--no-annualize", default=True, show_default=True)
@click.option("--out", type=click.Path(dir_okay=False), default=None, help="CSV output")
@click.option("--plot", "plot_path", type=click.Path(dir_okay=False), default=None)
@click.pass_obj
def rolling_vol_cmd(cfg, prices, window, weights, annualize, out, plot_path):
    """Rolling volatility per asset, or for a weighted portfolio."""

    window = cfg.window if window is None else window
    try:
        if weights:
            w = _weights(weights)
            rets = _returns(prices, list(w))
            vol = rolling_portfolio_volatility(
                rets, w, window, annualize=annualize, periods_per_year=cfg.periods_per_year
            ).to_frame()
        else:
            rets = _returns(prices)
            vol = rolling_volatility(
                rets, window, annualize=annualize, periods_per_year=cfg.periods_per_year
            )
    except (ValueError, KeyError) as exc:
        raise click.ClickException(str(exc)) from None

    if out:
        vol.to_csv(out)
        click.echo(f"Wrote {len(vol)} rows to {out}")
    else:
        click.echo(vol.tail().to_string())
    if plot_path:
        from .plotting import plot_rolling_volatility

        plot_rolling_volatility(vol, path=Path(plot_path), title=f"{window}-period rolling volatility")
        click.echo(f"Saved chart to {plot_path}")


@cli.command("min-variance")
@click.option("--prices", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--long-only/--allow-short", default=None, help="Overrides the configured value")
@click.option("--bounds", type=str, default=None, help="Per-asset 'lo,hi'")
@click.pass_obj
def min_variance_cmd(cfg, prices, long_only, bounds):
    """Minimum-variance weights from historical returns."""

    long_only = cfg.long_only if long_only is None else long_only
    box = _bounds(bounds) or cfg.bounds
    try:
        rets = _returns(prices)
        result = minimum_variance(
            covariance_matrix(rets), bounds=box, long_only=long_only,
            expected_returns=rets.mean(),
        )
    except (ValueError, KeyError) as exc:
        raise click.ClickException(str(exc)) from None
    if not result.success:
        logger.warning("Solver reported: %s", result.message)
    for name, value in result.weights.items():
        click.echo(f"{name}: {value:.6f}")
    click.echo(f"Std: {result.std:.6f}")
    click.echo(f"Expected return: {result.expected_return:.6f}")


@cli.command()
@click.option("--prices", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--points", type=int, default=None, help="Defaults to the configured count")
@click.option("--long-only/--allow-short", default=None)
@click.option("--bounds", type=str, default=None, help="Per-asset 'lo,hi'")
@click.option("--out", type=click.Path(dir_okay=False), default=None, help="CSV output")
@click.option("--plot", "plot_path", type=click.Path(dir_okay=False), default=None)
@click.pass_obj
def frontier(cfg, prices, points, long_only, bounds, out, plot_path):
    """Efficient frontier from historical mean returns and covariance."""

    long_only = cfg.long_only if long_only is None else long_only
    box = _bounds(bounds) or cfg.bounds
    try:
        rets = _returns(prices)
        mu = rets.mean()
        cov = covariance_matrix(rets)
        table = efficient_frontier(
            mu, cov, n_points=points or cfg.frontier_points, bounds=box, long_only=long_only
        )
        mvp = minimum_variance(cov, bounds=box, long_only=long_only, expected_returns=mu)
    except (ValueError, KeyError) as exc:
        raise click.ClickException(str(exc)) from None

    try:
        tangent = maximum_sharpe(
            mu, cov, risk_free=cfg.risk_free, bounds=box, long_only=long_only
        )
    except ValueError as exc:
        logger.warning("No tangency portfolio: %s", exc)
        tangent = None

    if out:
        table.to_csv(out, index=False)
        click.echo(f"Wrote {len(table)} frontier points to {out}")
    else:
        click.echo(table[["target_return", "std"]].to_string(index=False))
    click.echo(f"Minimum variance: std={mvp.std:.6f} return={mvp.expected_return:.6f}")
    if tangent is not None:
        sharpe = "n/a" if tangent.sharpe is None else f"{tangent.sharpe:.4f}"
        click.echo(
            f"Maximum Sharpe: std={tangent.std:.6f} return={tangent.expected_return:.6f} "
            f"sharpe={sharpe}"
        )
    if plot_path:
        from .plotting import plot_efficient_frontier

        assets = pd.DataFrame({"std": rets.std(), "return": mu})
        plot_efficient_frontier(
            table,
            path=Path(plot_path),
            assets=assets,
            highlight=(mvp.std, mvp.expected_return),
        )
        click.echo(f"Saved chart to {plot_path}")


@cli.command()
@click.option("--prices", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8050, show_default=True, type=int)
@click.option("--debug", is_flag=True)
@click.pass_obj
def dashboard(cfg, prices, host, port, debug):
    """Serve the interactive volatility dashboard."""

    from .dashboard import create_app

    try:
        app = create_app(load_prices(prices), cfg)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from None
    logger.info("Dashboard running", extra={"host": host, "port": port})
    app.run(debug=debug, host=host, port=port)


if __name__ == "__main__":
    cli()

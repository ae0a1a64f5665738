"""Interactive rolling-volatility dashboard.

Tickers, weights and the window length are read only when the Recompute
button is pressed; the chart and summary then refresh together.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import dash
import numpy as np
import pandas as pd
import plotly.graph_objects as go
from dash import Input, Output, State, dcc, html

from .config import VolConfig
from .portfolio import portfolio_returns, portfolio_std, validate_weights
from .returns import select_assets, simple_returns
from .rolling import rolling_volatility
from .stats import annualize_volatility, covariance_matrix

logger = logging.getLogger(__name__)

TEXT_MUTED = "#8b949e"
ERROR_RED = "#f85149"


def empty_figure(message: str = "No data available") -> go.Figure:
    """Return an empty figure with a centred message."""

    fig = go.Figure()
    fig.update_layout(
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        annotations=[dict(
            text=message,
            xref="paper", yref="paper",
            x=0.5, y=0.5,
            showarrow=False,
            font=dict(size=14, color=TEXT_MUTED),
        )],
        height=400,
    )
    return fig


def parse_tickers(text: str | None) -> List[str]:
    """Split a comma or space separated ticker list, upper-cased and de-duplicated."""

    if not text:
        raise ValueError("enter at least one ticker")
    seen: List[str] = []
    for raw in text.replace(",", " ").split():
        t = raw.strip().upper()
        if t and t not in seen:
            seen.append(t)
    if not seen:
        raise ValueError("enter at least one ticker")
    return seen


def parse_weights(text: str | None, n: int) -> np.ndarray:
    """Parse weights for ``n`` tickers; blank input means equal weights."""

    if not text or not text.strip():
        return np.full(n, 1.0 / n)
    try:
        values = [float(v) for v in text.replace(",", " ").split()]
    except ValueError:
        raise ValueError(f"weights must be numbers, got {text!r}") from None
    if len(values) != n:
        raise ValueError(f"expected {n} weights, got {len(values)}")
    return validate_weights(values, atol=1e-4)


def resolve_tickers(prices: pd.DataFrame, tickers: Sequence[str]) -> List[str]:
    """Map typed tickers onto the column names of ``prices`` ignoring case.

    Names with no matching column are passed through unchanged so
    :func:`select_assets` can report them.
    """

    columns = {str(c).upper(): c for c in prices.columns}
    return [columns.get(str(t).upper(), t) for t in tickers]


def build_figure(
    prices: pd.DataFrame,
    tickers: Sequence[str],
    weights: np.ndarray,
    window: int,
    periods_per_year: float = 252,
) -> Tuple[go.Figure, float]:
    """Annualised rolling volatility per asset and for the weighted portfolio.

    Returns the figure and the full-sample annualised portfolio volatility.
    """

    selected = select_assets(prices, resolve_tickers(prices, tickers))
    rets = simple_returns(selected).dropna(how="any")
    asset_vol = rolling_volatility(rets, window, annualize=True, periods_per_year=periods_per_year)
    port = portfolio_returns(rets, weights)
    port_vol = rolling_volatility(port, window, annualize=True, periods_per_year=periods_per_year)
    full_vol = annualize_volatility(
        portfolio_std(weights, covariance_matrix(rets).to_numpy()), periods_per_year
    )

    fig = go.Figure()
    for col in asset_vol.columns:
        fig.add_trace(go.Scatter(x=asset_vol.index, y=asset_vol[col], mode="lines", name=col))
    fig.add_trace(
        go.Scatter(
            x=port_vol.index,
            y=port_vol.values,
            mode="lines",
            name="Portfolio",
            line=dict(width=3),
        )
    )
    fig.update_layout(
        title=f"{window}-period rolling volatility (annualised)",
        yaxis_title="Volatility",
        yaxis_tickformat=".0%",
        legend=dict(orientation="h"),
        height=450,
    )
    return fig, float(full_vol)


def recompute(
    prices: pd.DataFrame,
    tickers_text: str | None,
    weights_text: str | None,
    window,
    periods_per_year: float = 252,
) -> Tuple[go.Figure, str, dict]:
    """Callback body: figure, summary text and summary style."""

    try:
        tickers = parse_tickers(tickers_text)
        weights = parse_weights(weights_text, len(tickers))
        if window is None:
            raise ValueError("enter a window length")
        fig, full_vol = build_figure(prices, tickers, weights, int(window), periods_per_year)
    except (ValueError, KeyError) as exc:
        message = exc.args[0] if exc.args else str(exc)
        logger.warning("Dashboard input rejected: %s", message)
        return empty_figure(str(message)), f"Error: {message}", {"color": ERROR_RED}
    summary = f"Full-sample annualised portfolio volatility: {full_vol:.2%}"
    return fig, summary, {"color": TEXT_MUTED}


def create_app(prices: pd.DataFrame, cfg: VolConfig | None = None) -> dash.Dash:
    """Create the dashboard for the assets in ``prices``.

    The window input starts at ``cfg.window`` and volatilities are annualised
    with ``cfg.periods_per_year``.
    """

    cfg = cfg or VolConfig()
    default_tickers = ", ".join(map(str, prices.columns[:3]))

    app = dash.Dash(__name__, title="Portfolio volatility")
    app.layout = html.Div(
        [
            html.H2("Portfolio volatility"),
            html.Div(
                [
                    html.Label("Tickers"),
                    dcc.Input(id="tickers-input", type="text", value=default_tickers),
                    html.Label("Weights"),
                    dcc.Input(id="weights-input", type="text", value="", placeholder="equal"),
                    html.Label("Window"),
                    dcc.Input(
                        id="window-input",
                        type="number",
                        min=2,
                        step=1,
                        value=cfg.window,
                    ),
                    html.Button("Recompute", id="recompute-btn", n_clicks=0),
                ],
                style={"display": "flex", "gap": "8px", "alignItems": "center"},
            ),
            html.Div(id="summary", style={"color": TEXT_MUTED, "margin": "8px 0"}),
            dcc.Loading(dcc.Graph(id="vol-chart", figure=empty_figure("Press Recompute"))),
        ],
        style={"padding": "16px"},
    )

    @app.callback(
        Output("vol-chart", "figure"),
        Output("summary", "children"),
        Output("summary", "style"),
        Input("recompute-btn", "n_clicks"),
        State("tickers-input", "value"),
        State("weights-input", "value"),
        State("window-input", "value"),
        prevent_initial_call=True,
    )
    def _on_recompute(n_clicks, tickers_text, weights_text, window):
        return recompute(prices, tickers_text, weights_text, window, cfg.periods_per_year)

    return app


__all__ = [
    "empty_figure",
    "parse_tickers",
    "parse_weights",
    "resolve_tickers",
    "build_figure",
    "recompute",
    "create_app",
]

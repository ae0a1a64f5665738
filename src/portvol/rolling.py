"""Rolling-window aggregation over time-indexed return series."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator

import numpy as np
import pandas as pd

from .portfolio import align_weights, portfolio_std, validate_weights
from .stats import annualize_volatility
from .utils import timer

logger = logging.getLogger(__name__)


def _check_window(n: int, window: int, min_window: int = 1) -> None:
    if isinstance(window, bool) or not isinstance(window, (int, np.integer)):
        raise ValueError(f"window must be an integer, got {window!r}")
    if window < min_window:
        raise ValueError(f"window must be at least {min_window}, got {window}")
    if window >= n:
        raise ValueError(f"window ({window}) must be shorter than the series ({n})")


def _window_ends(n: int, window: int, min_periods: int | None, step: int) -> Iterator[int]:
    if step < 1:
        raise ValueError(f"step must be at least 1, got {step}")
    first = window if min_periods is None else min_periods
    if not 1 <= first <= window:
        raise ValueError(f"min_periods must be between 1 and {window}, got {min_periods}")
    return iter(range(first - 1, n, step))


def rolling_apply(
    series: pd.Series | pd.DataFrame,
    window: int,
    reducer: Callable,
    *,
    min_periods: int | None = None,
    step: int = 1,
) -> pd.Series:
    """Apply ``reducer`` to each trailing ``window`` of ``series``.

    Parameters
    ----------
    series : Series or DataFrame
        Time-indexed observations. A DataFrame hands each window's sub-frame
        to ``reducer``; a Series hands the window's Series.
    window : int
        Number of observations per window; must be shorter than the series.
    reducer : callable
        Maps one window to a scalar.
    min_periods : int, optional
        Allow shorter windows at the start of the series once this many
        observations are available. Defaults to ``window``.
    step : int
        Evaluate every ``step``-th window end only.

    Returns
    -------
    pd.Series
        Reducer output stored at each window's last label, NaN elsewhere.
    """

    if not callable(reducer):
        raise ValueError("reducer must be callable")
    n = len(series)
    _check_window(n, window)
    out = np.full(n, np.nan)
    for end in _window_ends(n, window, min_periods, step):
        start = max(0, end - window + 1)
        out[end] = float(reducer(series.iloc[start : end + 1]))
    name = series.name if isinstance(series, pd.Series) else None
    return pd.Series(out, index=series.index, name=name)


def rolling_volatility(
    returns: pd.Series | pd.DataFrame,
    window: int,
    *,
    annualize: bool = False,
    periods_per_year: float = 252,
) -> pd.Series | pd.DataFrame:
    """Sample standard deviation over each trailing ``window``.

    ``window`` must be at least 2. The warm-up rows before the first full
    window are dropped.
    """

    _check_window(len(returns), window, min_window=2)
    vol = returns.rolling(window).std().iloc[window - 1 :]
    if annualize:
        vol = annualize_volatility(vol, periods_per_year)
    return vol


def rolling_covariance(returns: pd.DataFrame, window: int) -> Dict[object, pd.DataFrame]:
    """Covariance matrix of each trailing ``window`` (at least 2) keyed by its last label."""

    _check_window(len(returns), window, min_window=2)
    covs: Dict[object, pd.DataFrame] = {}
    for end in range(window - 1, len(returns)):
        chunk = returns.iloc[end - window + 1 : end + 1]
        covs[returns.index[end]] = chunk.cov()
    return covs


def rolling_portfolio_volatility(
    returns: pd.DataFrame,
    weights,
    window: int,
    *,
    annualize: bool = False,
    periods_per_year: float = 252,
) -> pd.Series:
    """Portfolio standard deviation from each window's covariance matrix."""

    w = validate_weights(align_weights(weights, returns))
    if w.size != returns.shape[1]:
        raise ValueError(f"{w.size} weights for {returns.shape[1]} assets")
    _check_window(len(returns), window, min_window=2)
    values = []
    with timer("rolling_portfolio_volatility"):
        for end in range(window - 1, len(returns)):
            chunk = returns.iloc[end - window + 1 : end + 1]
            if chunk.isna().to_numpy().any():
                logger.warning(
                    "Skipping window ending %s with missing returns", returns.index[end]
                )
                values.append(np.nan)
                continue
            values.append(portfolio_std(w, chunk.cov().to_numpy()))
    vol = pd.Series(values, index=returns.index[window - 1 :], name="portfolio")
    if annualize:
        vol = annualize_volatility(vol, periods_per_year)
    return vol


__all__ = [
    "rolling_apply",
    "rolling_volatility",
    "rolling_covariance",
    "rolling_portfolio_volatility",
]

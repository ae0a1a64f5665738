"""Descriptive statistics worked out by hand.

These follow the textbook formulas step by step (mean, deviations, squared
deviations, divide by ``n - ddof``) and agree with the equivalent pandas
calls, which the rest of the package uses for bulk work. Missing values are
skipped as pandas does.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def _as_floats(values: Iterable[float], *, skipna: bool = True) -> list[float]:
    if isinstance(values, (pd.Series, pd.DataFrame)):
        values = values.to_numpy().ravel()
    xs = [float(v) for v in values]
    if skipna:
        xs = [x for x in xs if not math.isnan(x)]
    return xs


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean."""

    xs = _as_floats(values)
    if not xs:
        raise ValueError("mean requires at least one observation")
    return sum(xs) / len(xs)


def sample_variance(values: Iterable[float], ddof: int = 1) -> float:
    """Sum of squared deviations from the mean divided by ``n - ddof``."""

    xs = _as_floats(values)
    n = len(xs)
    if n <= ddof:
        raise ValueError(f"need more than {ddof} observations, got {n}")
    mu = sum(xs) / n
    squared = [(x - mu) ** 2 for x in xs]
    return sum(squared) / (n - ddof)


def sample_std(values: Iterable[float], ddof: int = 1) -> float:
    """Standard deviation by hand: square root of :func:`sample_variance`."""

    return math.sqrt(sample_variance(values, ddof=ddof))


def sample_covariance(x: Sequence[float], y: Sequence[float], ddof: int = 1) -> float:
    """Sum of products of paired deviations divided by ``n - ddof``.

    Pairs where either value is missing are skipped.
    """

    xs = _as_floats(x, skipna=False)
    ys = _as_floats(y, skipna=False)
    if len(xs) != len(ys):
        raise ValueError(f"length mismatch: {len(xs)} != {len(ys)}")
    pairs = [(a, b) for a, b in zip(xs, ys) if not (math.isnan(a) or math.isnan(b))]
    xs = [a for a, _ in pairs]
    ys = [b for _, b in pairs]
    n = len(xs)
    if n <= ddof:
        raise ValueError(f"need more than {ddof} observations, got {n}")
    mx = sum(xs) / n
    my = sum(ys) / n
    return sum((a - mx) * (b - my) for a, b in zip(xs, ys)) / (n - ddof)


def covariance_matrix(returns: pd.DataFrame, ddof: int = 1) -> pd.DataFrame:
    """Sample covariance matrix labelled by asset on both axes.

    Rows with any missing value are dropped so every entry is estimated on the
    same observations, which keeps the result positive semi-definite.
    """

    clean = returns.dropna(how="any")
    dropped = len(returns) - len(clean)
    if dropped:
        logger.warning("Dropped %d rows with missing returns", dropped)
    if len(clean) < 2:
        raise ValueError("need at least two complete observations")
    return clean.cov(ddof=ddof)


def correlation_matrix(returns: pd.DataFrame) -> pd.DataFrame:
    """Covariance normalised by the outer product of standard deviations."""

    cov = covariance_matrix(returns)
    std = np.sqrt(np.diag(cov.to_numpy()))
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = cov.to_numpy() / np.outer(std, std)
    return pd.DataFrame(corr, index=cov.index, columns=cov.columns)


def annualize_volatility(vol, periods_per_year: float = 252):
    """Scale a per-period volatility by ``sqrt(periods_per_year)``."""

    if periods_per_year <= 0:
        raise ValueError("periods_per_year must be positive")
    return vol * math.sqrt(periods_per_year)


def annualize_variance(var, periods_per_year: float = 252):
    """Scale a per-period variance by ``periods_per_year``."""

    if periods_per_year <= 0:
        raise ValueError("periods_per_year must be positive")
    return var * periods_per_year


__all__ = [
    "mean",
    "sample_variance",
    "sample_std",
    "sample_covariance",
    "covariance_matrix",
    "correlation_matrix",
    "annualize_volatility",
    "annualize_variance",
]

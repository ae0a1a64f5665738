"""Portfolio variance, standard deviation and risk contributions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import numpy as np
import pandas as pd

from .stats import annualize_volatility


def validate_weights(weights, *, atol: float = 1e-6) -> np.ndarray:
    """Return ``weights`` as a float vector after checking it sums to one."""

    w = np.asarray(weights, dtype=float)
    if w.ndim != 1:
        raise ValueError(f"weights must be one-dimensional, got shape {w.shape}")
    if w.size == 0:
        raise ValueError("weights are empty")
    if not np.all(np.isfinite(w)):
        raise ValueError("weights contain non-finite values")
    total = float(w.sum())
    if abs(total - 1.0) > atol:
        raise ValueError(f"weights must sum to 1, got {total:.6f}")
    return w


def validate_covariance(cov, *, tol: float = 1e-10) -> np.ndarray:
    """Return ``cov`` as a float matrix after checking it is symmetric PSD."""

    c = np.asarray(cov, dtype=float)
    if c.ndim != 2 or c.shape[0] != c.shape[1]:
        raise ValueError(f"covariance must be square, got shape {c.shape}")
    if c.shape[0] == 0:
        raise ValueError("covariance is empty")
    if not np.all(np.isfinite(c)):
        raise ValueError("covariance contains non-finite values")
    if not np.allclose(c, c.T, atol=1e-10, rtol=1e-8):
        raise ValueError("covariance matrix is not symmetric")
    min_eig = float(np.linalg.eigvalsh(c).min())
    if min_eig < -tol:
        raise ValueError(
            f"covariance matrix is not positive semi-definite (min eigenvalue {min_eig:.3e})"
        )
    return c


def align_weights(weights, cov) -> np.ndarray:
    """Order labelled ``weights`` to match the columns of ``cov``.

    ``cov`` may be a covariance matrix or a returns frame; only its columns
    are used. Assets without a weight get zero. Weight labels unknown to
    ``cov`` raise ``KeyError``. Unlabelled inputs are returned as arrays.
    """

    if isinstance(weights, (Mapping, pd.Series)) and isinstance(cov, pd.DataFrame):
        w = pd.Series(weights, dtype=float)
        unknown = [k for k in w.index if k not in cov.columns]
        if unknown:
            raise KeyError(f"weights for unknown assets: {', '.join(map(str, unknown))}")
        return w.reindex(cov.columns, fill_value=0.0).to_numpy()
    if isinstance(weights, Mapping):
        return np.asarray(list(weights.values()), dtype=float)
    return np.asarray(weights, dtype=float)


def _prepare(weights, cov) -> tuple[np.ndarray, np.ndarray]:
    w = validate_weights(align_weights(weights, cov))
    c = validate_covariance(cov)
    if c.shape[0] != w.size:
        raise ValueError(f"{w.size} weights for a {c.shape[0]}x{c.shape[0]} covariance")
    return w, c


def portfolio_variance(weights, cov) -> float:
    """Closed-form portfolio variance ``w' Sigma w``."""

    w, c = _prepare(weights, cov)
    return float(w @ c @ w)


def portfolio_std(weights, cov) -> float:
    """Portfolio standard deviation ``sqrt(w' Sigma w)``."""

    return float(np.sqrt(max(portfolio_variance(weights, cov), 0.0)))


def portfolio_variance_expanded(weights, cov) -> float:
    """Portfolio variance written out term by term.

    ``sum_i w_i^2 s_i^2 + 2 * sum_{i<j} w_i w_j s_ij``: the weighted asset
    variances plus every pairwise covariance counted twice.
    """

    w, c = _prepare(weights, cov)
    n = w.size
    total = 0.0
    for i in range(n):
        total += w[i] ** 2 * c[i, i]
    for i in range(n):
        for j in range(i + 1, n):
            total += 2.0 * w[i] * w[j] * c[i, j]
    return float(total)


def risk_contributions(weights, cov):
    """Component contributions ``w_i (Sigma w)_i / sigma_p``.

    The contributions add up to the portfolio standard deviation. A
    zero-variance portfolio returns zeros. Labelled inputs give a Series.
    """

    w, c = _prepare(weights, cov)
    marginal = c @ w
    sigma = float(np.sqrt(max(w @ marginal, 0.0)))
    if sigma == 0.0:
        contrib = np.zeros_like(w)
    else:
        contrib = w * marginal / sigma
    if isinstance(cov, pd.DataFrame):
        return pd.Series(contrib, index=cov.columns, name="risk_contribution")
    return contrib


def portfolio_returns(returns: pd.DataFrame, weights) -> pd.Series:
    """Weighted portfolio return for each row of ``returns``."""

    if isinstance(weights, (Mapping, pd.Series)):
        w = pd.Series(weights, dtype=float)
        missing = [k for k in w.index if k not in returns.columns]
        if missing:
            raise KeyError(f"no returns for: {', '.join(map(str, missing))}")
        w = validate_weights(w.reindex(returns.columns, fill_value=0.0).to_numpy())
    else:
        w = validate_weights(weights)
        if w.size != returns.shape[1]:
            raise ValueError(f"{w.size} weights for {returns.shape[1]} assets")
    return pd.Series(returns.to_numpy() @ w, index=returns.index, name="portfolio")


@dataclass
class PortfolioRisk:
    """Risk summary of a weighted portfolio."""

    variance: float
    std: float
    annualized_std: float
    contributions: pd.Series | np.ndarray


def summarize(weights, cov, periods_per_year: float = 252) -> PortfolioRisk:
    """Bundle variance, std, annualised std and risk contributions."""

    var = portfolio_variance(weights, cov)
    std = float(np.sqrt(max(var, 0.0)))
    return PortfolioRisk(
        variance=var,
        std=std,
        annualized_std=annualize_volatility(std, periods_per_year),
        contributions=risk_contributions(weights, cov),
    )


__all__ = [
    "validate_weights",
    "validate_covariance",
    "align_weights",
    "portfolio_variance",
    "portfolio_std",
    "portfolio_variance_expanded",
    "risk_contributions",
    "portfolio_returns",
    "PortfolioRisk",
    "summarize",
]

"""Minimum-variance portfolios and the efficient frontier.

Unconstrained problems (weights only required to sum to one) use the
closed-form Lagrangian solutions. Box-constrained problems are solved as
quadratic programs with SLSQP:

    minimise  w' Sigma w
    subject to  sum(w) = 1,  mu' w = target (frontier only),  lo_i <= w_i <= hi_i
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.optimize import minimize

from .portfolio import validate_covariance
from .utils import timer

logger = logging.getLogger(__name__)

Bounds = Optional[List[Tuple[float, float]]]


@dataclass
class OptimizationResult:
    """Weights and risk of an optimised portfolio."""

    weights: pd.Series | np.ndarray
    variance: float
    std: float
    expected_return: float | None = None
    sharpe: float | None = None
    success: bool = True
    message: str = ""


def _prepare_cov(cov) -> Tuple[np.ndarray, Optional[List[str]]]:
    names = list(cov.columns) if isinstance(cov, pd.DataFrame) else None
    c = np.asarray(cov, dtype=float)
    if c.ndim == 2 and c.shape[0] == c.shape[1]:
        sym = 0.5 * (c + c.T)
        if not np.allclose(sym, c):
            logger.warning("Covariance matrix is not symmetric, symmetrising")
        c = sym
    return validate_covariance(c), names


def _prepare_mu(expected_returns, names: Optional[List[str]], n: int) -> np.ndarray:
    if isinstance(expected_returns, pd.Series) and names is not None:
        missing = [a for a in names if a not in expected_returns.index]
        if missing:
            raise KeyError(f"no expected return for: {', '.join(map(str, missing))}")
        mu = expected_returns.reindex(names).to_numpy(dtype=float)
    else:
        mu = np.asarray(expected_returns, dtype=float).ravel()
    if mu.size != n:
        raise ValueError(f"{mu.size} expected returns for {n} assets")
    if not np.all(np.isfinite(mu)):
        raise ValueError("expected returns contain non-finite values")
    return mu


def _resolve_bounds(n: int, bounds, long_only: bool) -> Bounds:
    """Expand ``bounds`` to one ``(lo, hi)`` pair per asset and check feasibility."""

    if bounds is None:
        if not long_only:
            return None
        pairs = [(0.0, 1.0)] * n
    elif len(bounds) == 2 and np.isscalar(bounds[0]) and np.isscalar(bounds[1]):
        pairs = [(float(bounds[0]), float(bounds[1]))] * n
    else:
        if len(bounds) != n:
            raise ValueError(f"{len(bounds)} bounds for {n} assets")
        pairs = [(float(lo), float(hi)) for lo, hi in bounds]
    if long_only:
        pairs = [(max(lo, 0.0), hi) for lo, hi in pairs]
    for i, (lo, hi) in enumerate(pairs):
        if lo > hi:
            raise ValueError(f"lower bound {lo} exceeds upper bound {hi} for asset {i}")
    lo_sum = sum(lo for lo, _ in pairs)
    hi_sum = sum(hi for _, hi in pairs)
    if lo_sum > 1.0 + 1e-12 or hi_sum < 1.0 - 1e-12:
        raise ValueError(
            f"bounds are infeasible: lower bounds sum to {lo_sum:.4f}, "
            f"upper bounds sum to {hi_sum:.4f}, weights must sum to 1"
        )
    return pairs


def _feasible_start(pairs: List[Tuple[float, float]]) -> np.ndarray:
    """Lower bounds plus the remaining budget spread in proportion to room."""

    lo = np.array([p[0] for p in pairs])
    hi = np.array([p[1] for p in pairs])
    room = hi - lo
    remaining = 1.0 - lo.sum()
    if room.sum() <= 0:
        return lo
    return lo + room * (remaining / room.sum())


def _max_return_weights(mu: np.ndarray, pairs: List[Tuple[float, float]]) -> np.ndarray:
    """Greedy solution of ``max mu'w`` over the box and budget constraint."""

    w = np.array([p[0] for p in pairs], dtype=float)
    remaining = 1.0 - w.sum()
    for i in np.argsort(-mu):
        if remaining <= 0:
            break
        add = min(pairs[i][1] - w[i], remaining)
        w[i] += add
        remaining -= add
    return w


def _label(w: np.ndarray, names: Optional[List[str]]):
    if names is None:
        return w
    return pd.Series(w, index=names, name="weight")


def _result(w: np.ndarray, c: np.ndarray, names, mu=None, risk_free: float = 0.0,
            success: bool = True, message: str = "") -> OptimizationResult:
    var = float(w @ c @ w)
    std = float(np.sqrt(max(var, 0.0)))
    ret = None if mu is None else float(mu @ w)
    sharpe = None
    if ret is not None and std > 0:
        sharpe = (ret - risk_free) / std
    return OptimizationResult(
        weights=_label(w, names),
        variance=var,
        std=std,
        expected_return=ret,
        sharpe=sharpe,
        success=success,
        message=message,
    )


def _solve_qp(c: np.ndarray, pairs, x0: np.ndarray, extra: Sequence[dict] = ()):
    constraints = [
        {"type": "eq", "fun": lambda w: float(np.sum(w) - 1.0), "jac": lambda w: np.ones_like(w)}
    ]
    constraints.extend(extra)
    return minimize(
        lambda w: float(w @ c @ w),
        x0,
        jac=lambda w: 2.0 * c @ w,
        method="SLSQP",
        bounds=pairs,
        constraints=constraints,
        options={"ftol": 1e-12, "maxiter": 1000},
    )


def minimum_variance(cov, *, bounds=None, long_only: bool = False,
                     expected_returns=None) -> OptimizationResult:
    """Weights minimising portfolio variance subject to summing to one.

    Parameters
    ----------
    cov : array-like or DataFrame
        Covariance matrix. A labelled frame gives labelled weights.
    bounds : (lo, hi) or sequence of (lo, hi), optional
        Box constraint for every asset or per asset.
    long_only : bool
        Forbid short positions; equivalent to bounds ``(0, 1)``.
    expected_returns : array-like or Series, optional
        When given, the result also reports the portfolio's expected return.
    """

    c, names = _prepare_cov(cov)
    n = c.shape[0]
    mu = None if expected_returns is None else _prepare_mu(expected_returns, names, n)
    pairs = _resolve_bounds(n, bounds, long_only)

    if pairs is None:
        ones = np.ones(n)
        inv_ones = np.linalg.pinv(c) @ ones
        denom = float(ones @ inv_ones)
        if denom <= 0:
            raise ValueError("covariance matrix is degenerate, no minimum-variance solution")
        return _result(inv_ones / denom, c, names, mu, message="closed form")

    res = _solve_qp(c, pairs, _feasible_start(pairs))
    if not res.success:
        logger.warning("Minimum-variance solver did not converge: %s", res.message)
    return _result(np.asarray(res.x), c, names, mu, success=bool(res.success),
                   message=str(res.message))


def _frontier_point_closed_form(c_inv: np.ndarray, mu: np.ndarray, target: float) -> np.ndarray:
    a = np.vstack([np.ones_like(mu), mu])
    m = a @ c_inv @ a.T
    lam = np.linalg.pinv(m) @ np.array([1.0, target])
    return c_inv @ a.T @ lam


def efficient_frontier(expected_returns, cov, *, n_points: int = 50, bounds=None,
                       long_only: bool = False) -> pd.DataFrame:
    """Minimum-variance portfolio for a grid of target returns.

    Targets run from the minimum-variance portfolio's return up to the
    highest return reachable under the constraints (the best single asset when
    unconstrained). Points where the solver fails are dropped.

    Returns
    -------
    pd.DataFrame
        Columns ``target_return``, ``std`` and one weight column per asset.
    """

    if n_points < 2:
        raise ValueError(f"n_points must be at least 2, got {n_points}")
    c, names = _prepare_cov(cov)
    n = c.shape[0]
    mu = _prepare_mu(expected_returns, names, n)
    if names is None:
        names_out = list(expected_returns.index) if isinstance(expected_returns, pd.Series) \
            else [f"asset_{i}" for i in range(n)]
    else:
        names_out = names
    pairs = _resolve_bounds(n, bounds, long_only)

    mvp = minimum_variance(c, bounds=pairs)
    w_mvp = np.asarray(mvp.weights)
    r_min = float(mu @ w_mvp)
    r_max = float(mu.max()) if pairs is None else float(mu @ _max_return_weights(mu, pairs))
    if r_max < r_min:
        r_max = r_min

    rows = []
    with timer("efficient_frontier"):
        if pairs is None:
            c_inv = np.linalg.pinv(c)
            for target in np.linspace(r_min, r_max, n_points):
                w = _frontier_point_closed_form(c_inv, mu, float(target))
                rows.append([float(target), float(np.sqrt(max(w @ c @ w, 0.0))), *w])
        else:
            x0 = w_mvp
            for target in np.linspace(r_min, r_max, n_points):
                target = float(target)
                ret_con = {
                    "type": "eq",
                    "fun": lambda w, t=target: float(mu @ w - t),
                    "jac": lambda w: mu,
                }
                res = _solve_qp(c, pairs, x0, extra=[ret_con])
                if not res.success:
                    logger.warning(
                        "Dropping frontier point at target %.6f: %s", target, res.message
                    )
                    continue
                x0 = res.x
                rows.append([target, float(np.sqrt(max(res.x @ c @ res.x, 0.0))), *res.x])

    frontier = pd.DataFrame(rows, columns=["target_return", "std", *names_out])
    logger.info("Computed efficient frontier with %d of %d points", len(frontier), n_points)
    return frontier


def maximum_sharpe(expected_returns, cov, *, risk_free: float = 0.0, bounds=None,
                   long_only: bool = False) -> OptimizationResult:
    """Tangency portfolio maximising ``(mu'w - rf) / sqrt(w' Sigma w)``."""

    c, names = _prepare_cov(cov)
    n = c.shape[0]
    mu = _prepare_mu(expected_returns, names, n)
    excess = mu - risk_free
    if not np.any(excess > 0):
        raise ValueError("no asset has an expected return above the risk-free rate")
    pairs = _resolve_bounds(n, bounds, long_only)

    if pairs is None:
        z = np.linalg.pinv(c) @ excess
        total = float(z.sum())
        if total <= 0:
            raise ValueError("tangency portfolio is undefined for these inputs")
        return _result(z / total, c, names, mu, risk_free, message="closed form")

    def neg_sharpe(w: np.ndarray) -> float:
        std = np.sqrt(max(w @ c @ w, 1e-18))
        return -float((mu @ w - risk_free) / std)

    res = minimize(
        neg_sharpe,
        _feasible_start(pairs),
        method="SLSQP",
        bounds=pairs,
        constraints=[{"type": "eq", "fun": lambda w: float(np.sum(w) - 1.0)}],
        options={"ftol": 1e-12, "maxiter": 1000},
    )
    if not res.success:
        logger.warning("Maximum-Sharpe solver did not converge: %s", res.message)
    return _result(np.asarray(res.x), c, names, mu, risk_free, success=bool(res.success),
                   message=str(res.message))


class PortfolioOptimizer:
    """Object-style access to the optimisers for a fixed set of assets.

    Parameters
    ----------
    expected_returns : array-like or Series
        Expected return per asset.
    cov : array-like or DataFrame
        Covariance matrix of asset returns.
    asset_names : list of str, optional
        Labels used when the inputs are unlabelled.
    risk_free : float
        Risk-free rate used by :meth:`maximum_sharpe`.
    """

    def __init__(self, expected_returns, cov, asset_names: Optional[List[str]] = None,
                 risk_free: float = 0.0) -> None:
        c, names = _prepare_cov(cov)
        if names is None:
            if asset_names is not None:
                names = list(asset_names)
            elif isinstance(expected_returns, pd.Series):
                names = list(expected_returns.index)
            else:
                names = [f"asset_{i}" for i in range(c.shape[0])]
        if len(names) != c.shape[0]:
            raise ValueError(f"{len(names)} asset names for {c.shape[0]} assets")
        self.asset_names = names
        self.cov = pd.DataFrame(c, index=names, columns=names)
        self.expected_returns = pd.Series(
            _prepare_mu(expected_returns, names, len(names)), index=names
        )
        self.risk_free = risk_free

    def minimum_variance(self, **kwargs) -> OptimizationResult:
        return minimum_variance(self.cov, expected_returns=self.expected_returns, **kwargs)

    def efficient_frontier(self, **kwargs) -> pd.DataFrame:
        return efficient_frontier(self.expected_returns, self.cov, **kwargs)

    def maximum_sharpe(self, **kwargs) -> OptimizationResult:
        kwargs.setdefault("risk_free", self.risk_free)
        return maximum_sharpe(self.expected_returns, self.cov, **kwargs)


__all__ = [
    "OptimizationResult",
    "minimum_variance",
    "efficient_frontier",
    "maximum_sharpe",
    "PortfolioOptimizer",
]

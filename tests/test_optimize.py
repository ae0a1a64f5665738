import logging

import numpy as np
import pandas as pd
import pytest

from portvol.optimize import (
    PortfolioOptimizer,
    efficient_frontier,
    maximum_sharpe,
    minimum_variance,
)

DIAG = np.diag([0.04, 0.09])
# sigma 10% and 20%, correlation 0.9: the unconstrained minimum shorts asset 2
CORRELATED = np.array([[0.01, 0.018], [0.018, 0.04]])


def _cov(n=4, seed=0):
    rng = np.random.default_rng(seed)
    a = rng.normal(size=(n, n)) * 0.1
    return a @ a.T + np.eye(n) * 0.01


def test_minimum_variance_closed_form_inverse_variance():
    res = minimum_variance(DIAG)
    expected = np.array([1 / 0.04, 1 / 0.09])
    expected /= expected.sum()
    assert np.allclose(res.weights, expected)
    assert res.variance == pytest.approx(expected @ DIAG @ expected)
    assert res.std == pytest.approx(np.sqrt(res.variance))
    assert res.success


def test_minimum_variance_singular_covariance():
    # perfectly correlated assets with equal variance
    res = minimum_variance(np.array([[0.04, 0.04], [0.04, 0.04]]))
    assert np.allclose(res.weights, [0.5, 0.5])
    assert res.weights.sum() == pytest.approx(1.0)
    assert res.std == pytest.approx(0.2)


def test_minimum_variance_qp_agrees_with_closed_form_for_loose_bounds():
    cov = _cov()
    closed = minimum_variance(cov)
    boxed = minimum_variance(cov, bounds=(-10.0, 10.0))
    assert boxed.success
    assert np.allclose(boxed.weights, closed.weights, atol=1e-4)


def test_long_only_removes_short_position():
    unconstrained = minimum_variance(CORRELATED)
    assert unconstrained.weights[1] < 0
    assert unconstrained.weights[0] == pytest.approx(0.022 / 0.014)
    long_only = minimum_variance(CORRELATED, long_only=True)
    assert np.allclose(long_only.weights, [1.0, 0.0], atol=1e-5)
    assert long_only.std == pytest.approx(0.1, abs=1e-5)


def test_bounds_are_respected_and_sum_to_one():
    cov = _cov(5, seed=2)
    res = minimum_variance(cov, bounds=(0.1, 0.3))
    w = np.asarray(res.weights)
    assert w.sum() == pytest.approx(1.0)
    assert np.all(w >= 0.1 - 1e-8)
    assert np.all(w <= 0.3 + 1e-8)


def test_infeasible_bounds():
    cov = _cov(3)
    with pytest.raises(ValueError, match="infeasible"):
        minimum_variance(cov, bounds=(0.0, 0.3))
    with pytest.raises(ValueError, match="infeasible"):
        minimum_variance(cov, bounds=(0.4, 1.0))
    with pytest.raises(ValueError, match="exceeds"):
        minimum_variance(cov, bounds=[(0.0, 1.0), (0.5, 0.2), (0.0, 1.0)])
    with pytest.raises(ValueError):
        minimum_variance(cov, bounds=[(0.0, 1.0)])


def test_labelled_covariance_gives_labelled_weights():
    cov = pd.DataFrame(DIAG, index=["A", "B"], columns=["A", "B"])
    mu = pd.Series({"B": 0.02, "A": 0.01})
    res = minimum_variance(cov, expected_returns=mu)
    assert list(res.weights.index) == ["A", "B"]
    assert res.expected_return == pytest.approx(res.weights["A"] * 0.01 + res.weights["B"] * 0.02)


def test_asymmetric_covariance_is_symmetrised(caplog):
    cov = np.array([[0.04, 0.01], [0.0102, 0.09]])
    with caplog.at_level(logging.WARNING):
        res = minimum_variance(cov)
    assert "symmetrising" in caplog.text
    assert np.asarray(res.weights).sum() == pytest.approx(1.0)


def test_non_psd_covariance_rejected():
    with pytest.raises(ValueError, match="positive semi-definite"):
        minimum_variance(np.array([[1.0, 2.0], [2.0, 1.0]]))


def test_efficient_frontier_unconstrained():
    cov = _cov()
    mu = np.array([0.05, 0.08, 0.11, 0.07])
    frontier = efficient_frontier(mu, cov, n_points=20)
    assert len(frontier) == 20
    assert list(frontier.columns) == ["target_return", "std", "asset_0", "asset_1", "asset_2", "asset_3"]
    weights = frontier[["asset_0", "asset_1", "asset_2", "asset_3"]].to_numpy()
    assert np.allclose(weights.sum(axis=1), 1.0)
    assert np.allclose(weights @ mu, frontier["target_return"].to_numpy())
    mvp = minimum_variance(cov)
    assert frontier["std"].iloc[0] == pytest.approx(mvp.std)
    assert frontier["target_return"].iloc[-1] == pytest.approx(mu.max())
    assert np.all(np.diff(frontier["std"].to_numpy()) >= -1e-12)


def test_efficient_frontier_long_only():
    cov = pd.DataFrame(_cov(3, seed=5), index=list("XYZ"), columns=list("XYZ"))
    mu = pd.Series({"X": 0.04, "Y": 0.06, "Z": 0.09})
    frontier = efficient_frontier(mu, cov, n_points=10, long_only=True)
    assert 0 < len(frontier) <= 10
    weights = frontier[["X", "Y", "Z"]].to_numpy()
    assert np.all(weights >= -1e-6)
    assert np.allclose(weights.sum(axis=1), 1.0, atol=1e-6)
    mvp = minimum_variance(cov, long_only=True)
    assert frontier["std"].min() >= mvp.std - 1e-6
    assert frontier["target_return"].max() <= 0.09 + 1e-9


def test_efficient_frontier_validation():
    with pytest.raises(ValueError):
        efficient_frontier([0.1, 0.2], DIAG, n_points=1)
    with pytest.raises(ValueError):
        efficient_frontier([0.1, 0.2, 0.3], DIAG)


def test_maximum_sharpe_closed_form():
    mu = np.array([0.1, 0.2])
    res = maximum_sharpe(mu, DIAG)
    expected = np.array([0.1 / 0.04, 0.2 / 0.09])
    expected /= expected.sum()
    assert np.allclose(res.weights, expected)
    frontier = efficient_frontier(mu, DIAG, n_points=25)
    sharpe = frontier["target_return"] / frontier["std"]
    assert res.sharpe >= sharpe.max() - 1e-9


def test_maximum_sharpe_long_only():
    cov = _cov(3, seed=7)
    mu = np.array([0.03, 0.07, 0.05])
    res = maximum_sharpe(mu, cov, long_only=True, risk_free=0.01)
    w = np.asarray(res.weights)
    assert np.all(w >= -1e-8)
    assert w.sum() == pytest.approx(1.0)
    single = (mu - 0.01) / np.sqrt(np.diag(cov))
    assert res.sharpe >= single.max() - 1e-6


def test_maximum_sharpe_requires_positive_excess_return():
    with pytest.raises(ValueError, match="risk-free"):
        maximum_sharpe([0.01, 0.02], DIAG, risk_free=0.05)


def test_portfolio_optimizer_object():
    opt = PortfolioOptimizer([0.1, 0.2], DIAG, asset_names=["A", "B"])
    mvp = opt.minimum_variance()
    assert list(mvp.weights.index) == ["A", "B"]
    assert mvp.expected_return is not None
    assert list(opt.efficient_frontier(n_points=5).columns[2:]) == ["A", "B"]
    assert opt.maximum_sharpe().sharpe > 0
    with pytest.raises(ValueError):
        PortfolioOptimizer([0.1, 0.2], DIAG, asset_names=["A"])

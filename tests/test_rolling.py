import logging

import numpy as np
import pandas as pd
import pytest

from portvol.portfolio import portfolio_returns
from portvol.rolling import (
    rolling_apply,
    rolling_covariance,
    rolling_portfolio_volatility,
    rolling_volatility,
)
from portvol.stats import sample_std


def _returns(n=30, cols=("A", "B"), seed=0):
    rng = np.random.default_rng(seed)
    index = pd.bdate_range("2024-01-01", periods=n)
    return pd.DataFrame(rng.normal(0, 0.01, size=(n, len(cols))), index=index, columns=list(cols))


def test_rolling_apply_matches_rolling_volatility():
    series = _returns()["A"]
    out = rolling_apply(series, 5, sample_std)
    assert out.index.equals(series.index)
    assert out.iloc[:4].isna().all()
    values = out.dropna()
    assert len(values) == len(series) - 5 + 1
    assert np.allclose(values.values, rolling_volatility(series, 5).values)


def test_rolling_apply_step_and_min_periods():
    series = _returns()["A"]
    stepped = rolling_apply(series, 5, np.mean, step=2)
    assert stepped.notna().sum() == len(range(4, 30, 2))
    early = rolling_apply(series, 5, np.mean, min_periods=2)
    assert np.isnan(early.iloc[0])
    assert early.iloc[1] == pytest.approx(series.iloc[:2].mean())
    assert early.iloc[10] == pytest.approx(series.iloc[6:11].mean())


def test_rolling_apply_frame_reducer():
    rets = _returns()
    corr = rolling_apply(rets, 10, lambda df: df["A"].corr(df["B"]))
    assert corr.iloc[9] == pytest.approx(rets.iloc[:10]["A"].corr(rets.iloc[:10]["B"]))


@pytest.mark.parametrize("window", [0, 30, 31, 2.5, True])
def test_rolling_apply_rejects_bad_window(window):
    with pytest.raises(ValueError):
        rolling_apply(_returns()["A"], window, np.mean)


def test_volatility_helpers_require_two_observations_per_window():
    rets = _returns()
    with pytest.raises(ValueError, match="at least 2"):
        rolling_volatility(rets, 1)
    with pytest.raises(ValueError, match="at least 2"):
        rolling_covariance(rets, 1)
    with pytest.raises(ValueError, match="at least 2"):
        rolling_portfolio_volatility(rets, [0.5, 0.5], 1)
    # a one-observation window is still fine for reducers that accept it
    out = rolling_apply(rets["A"], 1, np.mean)
    assert np.allclose(out.values, rets["A"].values)


def test_rolling_apply_rejects_bad_reducer_and_step():
    series = _returns()["A"]
    with pytest.raises(ValueError):
        rolling_apply(series, 5, "std")
    with pytest.raises(ValueError):
        rolling_apply(series, 5, np.mean, step=0)
    with pytest.raises(ValueError):
        rolling_apply(series, 5, np.mean, min_periods=6)


def test_rolling_volatility_annualized():
    rets = _returns()
    plain = rolling_volatility(rets, 10)
    annual = rolling_volatility(rets, 10, annualize=True, periods_per_year=252)
    assert len(plain) == 21
    assert np.allclose(annual.values, plain.values * np.sqrt(252))


def test_rolling_covariance_windows():
    rets = _returns()
    covs = rolling_covariance(rets, 10)
    assert len(covs) == 21
    last = covs[rets.index[-1]]
    assert np.allclose(last.to_numpy(), rets.iloc[-10:].cov().to_numpy())


def test_rolling_portfolio_volatility_matches_portfolio_returns():
    rets = _returns(cols=("A", "B", "C"))
    weights = {"A": 0.5, "B": 0.3, "C": 0.2}
    vol = rolling_portfolio_volatility(rets, weights, 8)
    expected = portfolio_returns(rets, weights).rolling(8).std().iloc[7:]
    assert vol.index.equals(expected.index)
    assert np.allclose(vol.values, expected.values)


def test_rolling_portfolio_volatility_skips_missing_windows(caplog):
    rets = _returns()
    rets.iloc[3, 0] = np.nan
    with caplog.at_level(logging.WARNING):
        vol = rolling_portfolio_volatility(rets, [0.5, 0.5], 3)
    assert vol.isna().any()
    assert "missing returns" in caplog.text

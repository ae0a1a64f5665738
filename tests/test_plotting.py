import numpy as np
import pandas as pd

from portvol.optimize import efficient_frontier
from portvol.plotting import (
    plot_covariance_heatmap,
    plot_efficient_frontier,
    plot_rolling_volatility,
)


def test_plot_rolling_volatility(tmp_path):
    index = pd.bdate_range("2024-01-01", periods=30)
    vol = pd.DataFrame({"A": np.linspace(0.1, 0.2, 30), "B": np.linspace(0.2, 0.1, 30)}, index=index)
    out = tmp_path / "charts" / "vol.png"
    fig = plot_rolling_volatility(vol, path=out)
    assert out.exists()
    assert len(fig.axes[0].lines) == 2


def test_plot_efficient_frontier(tmp_path):
    cov = np.diag([0.04, 0.09])
    mu = np.array([0.05, 0.1])
    frontier = efficient_frontier(mu, cov, n_points=10)
    assets = pd.DataFrame({"std": [0.2, 0.3], "return": mu}, index=["A", "B"])
    out = tmp_path / "frontier.png"
    plot_efficient_frontier(frontier, path=out, assets=assets, highlight=(0.166, 0.065))
    assert out.exists()


def test_plot_covariance_heatmap_without_path_returns_figure():
    cov = pd.DataFrame(np.diag([0.04, 0.09]), index=["A", "B"], columns=["A", "B"])
    fig = plot_covariance_heatmap(cov)
    assert fig.axes[0].get_title() == "Covariance"

"""Matplotlib charts for volatility series, frontiers and covariance."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402


def _finish(fig: Figure, path: Optional[Path]) -> Figure:
    fig.tight_layout()
    if path is not None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path)
        plt.close(fig)
    return fig


def plot_rolling_volatility(
    vol: pd.Series | pd.DataFrame,
    *,
    path: Optional[Path] = None,
    title: str = "Rolling volatility",
) -> Figure:
    """Line chart of one or more rolling volatility series."""

    frame = vol.to_frame() if isinstance(vol, pd.Series) else vol
    fig, ax = plt.subplots(figsize=(10, 4))
    for col in frame.columns:
        ax.plot(frame.index, frame[col], label=str(col))
    ax.set_title(title)
    ax.set_ylabel("Standard deviation")
    ax.legend(loc="upper left")
    return _finish(fig, path)


def plot_efficient_frontier(
    frontier: pd.DataFrame,
    *,
    path: Optional[Path] = None,
    assets: Optional[pd.DataFrame] = None,
    highlight: Optional[tuple[float, float]] = None,
) -> Figure:
    """Plot return against standard deviation along the frontier.

    Parameters
    ----------
    frontier : pd.DataFrame
        Output of :func:`portvol.optimize.efficient_frontier`.
    assets : pd.DataFrame, optional
        Individual assets with ``std`` and ``return`` columns, indexed by name.
    highlight : (std, return), optional
        A point to mark, typically the minimum-variance portfolio.
    """

    fig, ax = plt.subplots()
    ax.plot(frontier["std"], frontier["target_return"], label="Efficient frontier")
    if assets is not None:
        ax.scatter(assets["std"], assets["return"], marker="o", label="Assets")
        for name, row in assets.iterrows():
            ax.annotate(str(name), (row["std"], row["return"]))
    if highlight is not None:
        ax.scatter([highlight[0]], [highlight[1]], marker="*", s=150, label="Minimum variance")
    ax.set_xlabel("Standard deviation")
    ax.set_ylabel("Expected return")
    ax.set_title("Efficient frontier")
    ax.legend()
    return _finish(fig, path)


def plot_covariance_heatmap(cov: pd.DataFrame, *, path: Optional[Path] = None) -> Figure:
    """Annotated heatmap of a covariance (or correlation) matrix."""

    values = cov.to_numpy()
    fig, ax = plt.subplots()
    im = ax.imshow(values, cmap="viridis")
    ax.set_xticks(np.arange(len(cov.columns)))
    ax.set_yticks(np.arange(len(cov.index)))
    ax.set_xticklabels([str(c) for c in cov.columns], rotation=45, ha="right")
    ax.set_yticklabels([str(i) for i in cov.index])
    for i in range(values.shape[0]):
        for j in range(values.shape[1]):
            ax.text(j, i, f"{values[i, j]:.2g}", ha="center", va="center", color="w")
    fig.colorbar(im, ax=ax)
    ax.set_title("Covariance")
    return _finish(fig, path)


__all__ = ["plot_rolling_volatility", "plot_efficient_frontier", "plot_covariance_heatmap"]

"""Price loading and return conversion."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def simple_returns(prices: pd.Series | pd.DataFrame) -> pd.Series | pd.DataFrame:
    """Period-over-period percentage change with the first row dropped."""

    return prices.pct_change().iloc[1:]


def log_returns(prices: pd.Series | pd.DataFrame) -> pd.Series | pd.DataFrame:
    """Natural log of consecutive price ratios with the first row dropped."""

    values = prices.to_numpy(dtype=float)
    if np.any(values[~np.isnan(values)] <= 0):
        raise ValueError("log returns require strictly positive prices")
    return np.log(prices / prices.shift(1)).iloc[1:]


def load_prices(path: str | Path, date_column: str = "date") -> pd.DataFrame:
    """Load a wide price table (one column per asset) indexed by date.

    Parameters
    ----------
    path : str or Path
        CSV or parquet file. The ``date_column`` becomes the index; all other
        columns are treated as asset prices.
    date_column : str
        Name of the column holding observation dates.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    suffix = p.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(p)
    elif suffix in {".parquet", ".pq"}:
        df = pd.read_parquet(p)
    else:
        raise ValueError(f"unsupported price file type: {suffix or p.name}")

    if date_column not in df.columns:
        raise ValueError(f"missing date column {date_column!r} in {p.name}")
    df[date_column] = pd.to_datetime(df[date_column])
    df = df.set_index(date_column).sort_index()
    df.index.name = date_column
    df = df.apply(pd.to_numeric, errors="coerce").astype(float)
    logger.info("Loaded %d rows for %d assets from %s", len(df), df.shape[1], p.name)
    return df


def select_assets(prices: pd.DataFrame, tickers: Iterable[str]) -> pd.DataFrame:
    """Return the ``tickers`` columns, raising ``KeyError`` for unknown names."""

    names = list(tickers)
    missing = [t for t in names if t not in prices.columns]
    if missing:
        raise KeyError(f"unknown tickers: {', '.join(missing)}")
    return prices[names]


__all__ = ["simple_returns", "log_returns", "load_prices", "select_assets"]

"""Analysis defaults loaded from ``conf/portvol.yaml`` and ``PORTVOL_*`` variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv


@dataclass
class VolConfig:
    window: int = 21
    periods_per_year: int = 252
    long_only: bool = False
    lower_bound: float | None = None
    upper_bound: float | None = None
    frontier_points: int = 50
    risk_free: float = 0.0

    @property
    def bounds(self) -> tuple[float, float] | None:
        """Box constraint shared by all assets, or ``None`` when unset."""

        if self.lower_bound is None and self.upper_bound is None:
            return None
        lo = -1.0 if self.lower_bound is None else float(self.lower_bound)
        hi = 1.0 if self.upper_bound is None else float(self.upper_bound)
        return lo, hi


_ENV_KEYS = {
    "window": "PORTVOL_WINDOW",
    "periods_per_year": "PORTVOL_PERIODS_PER_YEAR",
    "long_only": "PORTVOL_LONG_ONLY",
    "lower_bound": "PORTVOL_LOWER_BOUND",
    "upper_bound": "PORTVOL_UPPER_BOUND",
    "frontier_points": "PORTVOL_FRONTIER_POINTS",
    "risk_free": "PORTVOL_RISK_FREE",
}

_FIELD_TYPES = {
    "window": int,
    "periods_per_year": int,
    "long_only": bool,
    "lower_bound": float,
    "upper_bound": float,
    "frontier_points": int,
    "risk_free": float,
}


def _coerce(key: str, value: str) -> object:
    kind = _FIELD_TYPES[key]
    if kind is bool:
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return kind(value)


def load_vol_config(path: str | Path = Path("conf/portvol.yaml")) -> VolConfig:
    """Load analysis config from YAML and environment variables.

    Environment variables prefixed with ``PORTVOL_`` override the YAML values.
    Missing fields fall back to dataclass defaults.
    """
    dotenv_path = Path(".env")
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path, override=False)

    cfg = VolConfig()
    cfg_path = Path(path)
    if cfg_path.exists():
        with open(cfg_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        for key, value in data.items():
            if hasattr(cfg, key) and value is not None:
                setattr(cfg, key, value)

    for key, env_name in _ENV_KEYS.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        setattr(cfg, key, _coerce(key, val))

    if int(cfg.window) < 2:
        raise ValueError(f"window must be at least 2, got {cfg.window}")
    if int(cfg.periods_per_year) <= 0:
        raise ValueError("periods_per_year must be positive")
    return cfg


__all__ = ["VolConfig", "load_vol_config"]

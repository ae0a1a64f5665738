"""Utility helpers: execution timer and label parsing."""

import time
from contextlib import contextmanager
from typing import Dict

from .logging import get_logger

logger = get_logger(__name__)


@contextmanager
def timer(name: str):
    """Context manager measuring execution time."""

    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        logger.info(f"{name} took {duration:.3f}s", extra={"duration": duration})


def parse_mapping(text: str) -> Dict[str, float]:
    """Parse ``"AAA=0.5,BBB=0.5"`` into ``{"AAA": 0.5, "BBB": 0.5}``."""

    out: Dict[str, float] = {}
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ValueError(f"expected NAME=VALUE, got {item!r}")
        name, value = item.split("=", 1)
        name = name.strip()
        if not name:
            raise ValueError(f"missing name in {item!r}")
        try:
            out[name] = float(value)
        except ValueError:
            raise ValueError(f"invalid number for {name}: {value!r}") from None
    if not out:
        raise ValueError("no NAME=VALUE pairs found")
    return out


def parse_bounds(text: str) -> tuple[float, float]:
    """Parse ``"lo,hi"`` into a float pair."""

    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise ValueError(f"bounds must be 'lo,hi', got {text!r}")
    try:
        lo, hi = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValueError(f"bounds must be numeric, got {text!r}") from None
    return lo, hi


__all__ = ["timer", "parse_mapping", "parse_bounds"]

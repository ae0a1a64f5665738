"""Core package for portvol."""

from .optimize import PortfolioOptimizer, efficient_frontier, maximum_sharpe, minimum_variance
from .portfolio import portfolio_std, portfolio_variance, risk_contributions
from .rolling import rolling_apply, rolling_volatility

__all__ = [
    "__version__",
    "PortfolioOptimizer",
    "efficient_frontier",
    "maximum_sharpe",
    "minimum_variance",
    "portfolio_std",
    "portfolio_variance",
    "risk_contributions",
    "rolling_apply",
    "rolling_volatility",
]
__version__ = "0.1.0"

"""Distribution strategies — host setup per Linux distribution (and macOS)."""

from homestack.adapters.distribution.base import DistributionStrategy
from homestack.adapters.distribution.strategy import (
    RecipeDistribution,
    available_distributions,
    get_strategy,
)

__all__ = [
    "DistributionStrategy",
    "RecipeDistribution",
    "available_distributions",
    "get_strategy",
]

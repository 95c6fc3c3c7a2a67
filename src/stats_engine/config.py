"""Configuration for the statistics engine."""

import os
from dataclasses import dataclass

# Defaults (can be overridden via environment variables)
DEFAULT_ALPHA = float(os.getenv("EPI_STATS_ALPHA", "0.05"))
DEFAULT_MAX_CATEGORIES = int(os.getenv("EPI_STATS_MAX_CATEGORIES", "20"))


@dataclass(frozen=True)
class EngineConfig:
    """Policy parameters shared by every test."""

    # Significance threshold applied to p-values
    alpha: float = DEFAULT_ALPHA
    # Normal quantile used for 95% confidence intervals
    confidence_z: float = 1.96
    # A variable with more distinct labels than this is not used as a grouping variable
    max_categories: int = DEFAULT_MAX_CATEGORIES
    # Share of present values that must be numeric for a variable to be numeric-capable
    numeric_share: float = 0.5
    # Rounding applied when result records are built
    statistic_digits: int = 4
    estimate_digits: int = 3

    def __post_init__(self):
        if not 0 < self.alpha < 1:
            raise ValueError("alpha must be between 0 and 1")
        if self.max_categories < 2:
            raise ValueError("max_categories must be at least 2")
        if not 0 <= self.numeric_share < 1:
            raise ValueError("numeric_share must be in [0, 1)")


def get_default_config() -> EngineConfig:
    """
    Get the default engine configuration.

    The significance threshold and category limit can be overridden via the
    EPI_STATS_ALPHA and EPI_STATS_MAX_CATEGORIES environment variables.
    """
    return EngineConfig()

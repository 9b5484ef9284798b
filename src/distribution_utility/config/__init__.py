"""Configuration models and loading."""

from distribution_utility.config.service import PROPERTY_PREFIX, DistributionUtilityConfig
from distribution_utility.config.loader import load_config

__all__ = [
    "PROPERTY_PREFIX",
    "DistributionUtilityConfig",
    "load_config",
]

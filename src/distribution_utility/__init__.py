"""Distribution utility — capacity, meter and transport fees for a simulated grid."""

from distribution_utility.config import DistributionUtilityConfig, load_config
from distribution_utility.engine import ActivationResult, DistributionUtilityEngine
from distribution_utility.errors import (
    ConfigurationError,
    DistributionUtilityError,
    EngineNotInitializedError,
    TimeslotOrderError,
)

__all__ = [
    "DistributionUtilityConfig",
    "load_config",
    "ActivationResult",
    "DistributionUtilityEngine",
    "ConfigurationError",
    "DistributionUtilityError",
    "EngineNotInitializedError",
    "TimeslotOrderError",
]

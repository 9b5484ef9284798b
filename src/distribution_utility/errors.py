"""Exception types raised by the distribution-utility engine."""


class DistributionUtilityError(Exception):
    """Base class for all engine errors."""
    pass


class ConfigurationError(DistributionUtilityError, ValueError):
    """Raised when the service configuration is invalid.

    The engine refuses to initialise rather than run with undefined
    per-tick behaviour.
    """
    pass


class EngineNotInitializedError(DistributionUtilityError, RuntimeError):
    """Raised when ``activate`` is called before ``initialize``."""
    pass


class TimeslotOrderError(DistributionUtilityError, ValueError):
    """Raised when a timeslot is not strictly after the previous one."""
    pass

"""Domain records — engine inputs and ledger transactions."""

from distribution_utility.models.records import (
    Broker,
    CapacityTransaction,
    CustomerBootstrapData,
    CustomerClass,
    CustomerInfo,
    DistributionTransaction,
    TariffSubscription,
    UsageType,
)

__all__ = [
    "Broker",
    "CapacityTransaction",
    "CustomerBootstrapData",
    "CustomerClass",
    "CustomerInfo",
    "DistributionTransaction",
    "TariffSubscription",
    "UsageType",
]

"""Collaborator protocols — what the engine consumes from the simulation.

The engine never owns these services; they are passed in at construction
so the engine can be driven by a real simulation or by in-memory fakes.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence

from distribution_utility.models.records import (
    Broker,
    CustomerBootstrapData,
    TariffSubscription,
    UsageType,
)

SupplyDemandReport = Mapping[Broker, Optional[Mapping[UsageType, float]]]
"""broker → {usage type → kWh}.  A ``None`` entry means "no data this tick"."""


class Accounting(Protocol):
    """Accounting ledger: current energy totals in, transactions out."""

    def get_current_supply_demand_by_broker(self) -> SupplyDemandReport:
        ...

    def add_capacity_transaction(
        self,
        broker: Broker,
        peak_timeslot: int,
        threshold: float,
        kwh: float,
        fee: float,
    ) -> object:
        ...

    def add_distribution_transaction(
        self,
        broker: Broker,
        small_count: int,
        large_count: int,
        kwh: float,
        fee: float,
    ) -> object:
        ...


class BootstrapDataRepo(Protocol):
    """Historical customer usage recorded before live operation."""

    def get_customer_bootstrap_data(self) -> Sequence[CustomerBootstrapData]:
        ...


class BrokerRepo(Protocol):
    def find_retail_brokers(self) -> Sequence[Broker]:
        ...


class TariffSubscriptionRepo(Protocol):
    def find_active_subscriptions_for_broker(self, broker: Broker) -> Sequence[TariffSubscription]:
        ...

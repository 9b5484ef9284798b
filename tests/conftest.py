"""Shared test fixtures — in-memory collaborators and reference data.

The bootstrap record and broker set reproduce the reference scenario:
  customer Podunk (small) : [-3, -4, -5, -6]
  customer Acme   (large) : [-2, -4, -6, -8]
  → magnitudes [5, 8, 11, 14], mean 9.5, sigma 3.8729833
"""

from __future__ import annotations

from typing import Any

import pytest

from distribution_utility.engine.orchestrator import DistributionUtilityEngine
from distribution_utility.models.records import (
    Broker,
    CustomerBootstrapData,
    CustomerClass,
    CustomerInfo,
    TariffSubscription,
    UsageType,
)


# ═══════════════════════════════════════════════════════════════════════════
# Fake collaborators
# ═══════════════════════════════════════════════════════════════════════════

class FakeAccounting:
    """Serves a mutable supply/demand report and records every posting."""

    def __init__(self) -> None:
        self.report: dict[Broker, dict[UsageType, float] | None] = {}
        self.capacity_calls: list[tuple[Broker, int, float, float, float]] = []
        self.distribution_calls: list[tuple[Broker, int, int, float, float]] = []

    def get_current_supply_demand_by_broker(self):
        return self.report

    def add_capacity_transaction(self, broker, peak_timeslot, threshold, kwh, fee):
        self.capacity_calls.append((broker, peak_timeslot, threshold, kwh, fee))

    def add_distribution_transaction(self, broker, small_count, large_count, kwh, fee):
        self.distribution_calls.append((broker, small_count, large_count, kwh, fee))

    def set_usage(self, broker: Broker, consume: float | None, produce: float = 0.0) -> None:
        """Set a broker's flows for the next tick; ``consume=None`` means no data."""
        if consume is None:
            self.report[broker] = None
        else:
            self.report[broker] = {UsageType.CONSUME: consume, UsageType.PRODUCE: produce}

    def capacity_for(self, broker: Broker) -> list[tuple[Broker, int, float, float, float]]:
        return [c for c in self.capacity_calls if c[0] == broker]


class FakeBootstrapRepo:
    def __init__(self, records: list[CustomerBootstrapData] | None = None) -> None:
        self.records = records or []

    def get_customer_bootstrap_data(self):
        return self.records


class FakeBrokerRepo:
    def __init__(self, brokers: list[Broker]) -> None:
        self.brokers = brokers

    def find_retail_brokers(self):
        return self.brokers


class FakeSubscriptionRepo:
    def __init__(self, subscriptions: dict[Broker, list[TariffSubscription]] | None = None) -> None:
        self.subscriptions = subscriptions or {}

    def find_active_subscriptions_for_broker(self, broker):
        return self.subscriptions.get(broker, [])


class FailingAccounting(FakeAccounting):
    """Rejects the first ``failures`` capacity postings, then records normally."""

    def __init__(self, failures: int = 1) -> None:
        super().__init__()
        self.failures = failures

    def add_capacity_transaction(self, *args: Any):
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("ledger unavailable")
        super().add_capacity_transaction(*args)


# ═══════════════════════════════════════════════════════════════════════════
# Reference data
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def broker1() -> Broker:
    return Broker(username="testBroker1")


@pytest.fixture
def broker2() -> Broker:
    return Broker(username="testBroker2")


@pytest.fixture
def broker3() -> Broker:
    return Broker(username="testBroker3")


@pytest.fixture
def brokers(broker1: Broker, broker2: Broker, broker3: Broker) -> list[Broker]:
    return [broker1, broker2, broker3]


@pytest.fixture
def small_customer() -> CustomerInfo:
    return CustomerInfo(name="Podunk", population=10, customer_class=CustomerClass.SMALL)


@pytest.fixture
def large_customer() -> CustomerInfo:
    return CustomerInfo(name="Acme", population=1, customer_class=CustomerClass.LARGE)


@pytest.fixture
def boot_records(small_customer: CustomerInfo, large_customer: CustomerInfo) -> list[CustomerBootstrapData]:
    return [
        CustomerBootstrapData(customer=small_customer, net_usage=[-3.0, -4.0, -5.0, -6.0]),
        CustomerBootstrapData(customer=large_customer, net_usage=[-2.0, -4.0, -6.0, -8.0]),
    ]


@pytest.fixture
def accounting() -> FakeAccounting:
    return FakeAccounting()


@pytest.fixture
def subscription_repo() -> FakeSubscriptionRepo:
    return FakeSubscriptionRepo()


@pytest.fixture
def engine(
    accounting: FakeAccounting,
    boot_records: list[CustomerBootstrapData],
    brokers: list[Broker],
    subscription_repo: FakeSubscriptionRepo,
) -> DistributionUtilityEngine:
    """Uninitialised engine wired to the fakes."""
    return DistributionUtilityEngine(
        accounting,
        FakeBootstrapRepo(boot_records),
        FakeBrokerRepo(brokers),
        subscription_repo,
    )

"""Distribution charges — per-meter and per-kWh transport fees.

Both are stateless, per-tick computations producing ``DistributionTransaction``
records of the same shape:

  meter fee     : fee = small × m_small + large × m_large,   kwh = 0
  transport fee : fee = rate_fn(broker, kwh_delivered),      counts = 0

When both are enabled, a broker's two charges for a tick are merged into a
single transaction (counts from the meter charge, kWh from transport, fees
summed).
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from distribution_utility.interfaces import SupplyDemandReport, TariffSubscriptionRepo
from distribution_utility.models.records import (
    Broker,
    CustomerClass,
    DistributionTransaction,
    UsageType,
)

logger = logging.getLogger(__name__)

TransportRate = Callable[[Broker, float], float]
"""(broker, delivered kWh) → transport fee."""


def flat_transport_rate(rate_per_kwh: float) -> TransportRate:
    """Rate schedule charging the same price for every delivered kWh."""

    def _rate(broker: Broker, kwh: float) -> float:
        return rate_per_kwh * kwh

    return _rate


# ═══════════════════════════════════════════════════════════════════════════
# Meter fee
# ═══════════════════════════════════════════════════════════════════════════

class MeterFeeCalculator:
    """Charges each broker per subscribed meter, by customer size class."""

    def __init__(self, m_small: float, m_large: float) -> None:
        self._rates = {CustomerClass.SMALL: m_small, CustomerClass.LARGE: m_large}

    def meter_counts(
        self,
        broker: Broker,
        subscriptions: TariffSubscriptionRepo,
    ) -> tuple[int, int] | None:
        """(small, large) committed meters, or None without active subscriptions."""
        subs = subscriptions.find_active_subscriptions_for_broker(broker)
        if not subs:
            return None
        counts = {CustomerClass.SMALL: 0, CustomerClass.LARGE: 0}
        for sub in subs:
            counts[sub.customer.customer_class] += sub.customers_committed
        return counts[CustomerClass.SMALL], counts[CustomerClass.LARGE]

    def compute(
        self,
        brokers: Iterable[Broker],
        subscriptions: TariffSubscriptionRepo,
    ) -> list[DistributionTransaction]:
        transactions: list[DistributionTransaction] = []
        for broker in brokers:
            counts = self.meter_counts(broker, subscriptions)
            if counts is None:
                continue
            small, large = counts
            fee = small * self._rates[CustomerClass.SMALL] + large * self._rates[CustomerClass.LARGE]
            logger.debug("Meter fee %s: %d small, %d large, fee %.4f", broker, small, large, fee)
            transactions.append(DistributionTransaction(
                broker=broker, small_count=small, large_count=large, kwh=0.0, fee=fee,
            ))
        return transactions


# ═══════════════════════════════════════════════════════════════════════════
# Transport fee
# ═══════════════════════════════════════════════════════════════════════════

class TransportFeeCalculator:
    """Charges each broker for the energy delivered to its customers.

    Delivered energy is the magnitude of the broker's CONSUME total; the
    price comes from a pluggable rate function.
    """

    def __init__(self, rate: TransportRate) -> None:
        self._rate = rate

    def compute(self, report: SupplyDemandReport) -> list[DistributionTransaction]:
        transactions: list[DistributionTransaction] = []
        for broker, flows in report.items():
            if not flows:
                continue
            kwh = abs(float(flows.get(UsageType.CONSUME, 0.0)))
            if kwh == 0.0:
                continue
            fee = self._rate(broker, kwh)
            logger.debug("Transport fee %s: %.4f kWh, fee %.4f", broker, kwh, fee)
            transactions.append(DistributionTransaction(broker=broker, kwh=kwh, fee=fee))
        return transactions


def merge_distribution_charges(
    *charge_sets: Sequence[DistributionTransaction],
) -> list[DistributionTransaction]:
    """Combine per-broker charges into one transaction per broker.

    Brokers keep the order of their first appearance.
    """
    merged: dict[Broker, DistributionTransaction] = {}
    for charges in charge_sets:
        for tx in charges:
            prev = merged.get(tx.broker)
            if prev is None:
                merged[tx.broker] = tx
                continue
            merged[tx.broker] = DistributionTransaction(
                broker=tx.broker,
                small_count=prev.small_count + tx.small_count,
                large_count=prev.large_count + tx.large_count,
                kwh=prev.kwh + tx.kwh,
                fee=prev.fee + tx.fee,
            )
    return list(merged.values())

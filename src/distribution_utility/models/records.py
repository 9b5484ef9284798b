"""Domain records — the contract between the engine and its collaborators.

Inputs (supplied by the simulation around the engine):
  - ``Broker``, ``CustomerInfo``, ``TariffSubscription``
  - ``CustomerBootstrapData`` — historical per-customer net usage
  - ``UsageType`` — keys of the accounting supply/demand report

Outputs (posted to the accounting ledger):
  - ``CapacityTransaction``    — one per (broker, billed peak)
  - ``DistributionTransaction`` — one per broker per tick (meter + transport)

All records are frozen so that emitted transactions cannot be altered
after they leave the engine.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════════════════
# Market participants & customers
# ═══════════════════════════════════════════════════════════════════════════

class Broker(BaseModel):
    """A retail market participant whose net usage is tracked and billed."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(description="Unique broker name")

    def __str__(self) -> str:
        return self.username


class CustomerClass(str, Enum):
    """Customer size class — selects the per-meter fee rate."""

    SMALL = "small"
    LARGE = "large"


class CustomerInfo(BaseModel):
    """A customer model (a population of identical meters)."""

    model_config = ConfigDict(frozen=True)

    name: str
    population: int = Field(default=1, ge=1, description="Number of meters in the model")
    customer_class: CustomerClass = CustomerClass.SMALL


class TariffSubscription(BaseModel):
    """Active subscription of part of a customer population to a broker's tariff."""

    model_config = ConfigDict(frozen=True)

    customer: CustomerInfo
    broker: Broker
    customers_committed: int = Field(default=0, ge=0)
    """Number of meters of ``customer`` currently on this tariff."""


class CustomerBootstrapData(BaseModel):
    """Historical net-usage series for one customer, one value per timeslot.

    Negative values are net consumption.
    """

    model_config = ConfigDict(frozen=True)

    customer: CustomerInfo
    net_usage: list[float] = Field(default_factory=list)


class UsageType(str, Enum):
    """Energy-flow categories in the accounting supply/demand report."""

    CONSUME = "consume"
    PRODUCE = "produce"


# ═══════════════════════════════════════════════════════════════════════════
# Ledger transactions
# ═══════════════════════════════════════════════════════════════════════════

class CapacityTransaction(BaseModel):
    """Capacity charge for one broker's share of one billed peak."""

    model_config = ConfigDict(frozen=True)

    broker: Broker
    peak_timeslot: int
    """Timeslot of the peak being billed (not the tick that billed it)."""

    threshold: float
    """mean + stdCoefficient × sigma at assessment time, shared by every broker of the peak."""

    kwh: float = Field(ge=0)
    """Broker's share of the excess above ``threshold``."""

    fee: float
    """kwh × feePerPoint."""


class DistributionTransaction(BaseModel):
    """Per-tick meter and transport charge for one broker."""

    model_config = ConfigDict(frozen=True)

    broker: Broker
    small_count: int = Field(default=0, ge=0)
    large_count: int = Field(default=0, ge=0)
    kwh: float = Field(default=0.0, ge=0)
    """Energy transported to the broker's customers this tick."""

    fee: float = 0.0

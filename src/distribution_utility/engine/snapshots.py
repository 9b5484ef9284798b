"""Per-timeslot broker usage snapshots.

A snapshot maps each broker *with data* to its signed net usage (kWh,
negative = net consumption) for one timeslot.  A broker missing from the
mapping had no data that tick: it takes no part in the timeslot's total
and cannot be billed for a peak there.  It is not the same as 0.0 kWh.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping

from distribution_utility.errors import TimeslotOrderError
from distribution_utility.interfaces import SupplyDemandReport
from distribution_utility.models.records import Broker


def net_usage_by_broker(report: SupplyDemandReport) -> dict[Broker, float]:
    """Collapse the accounting report into net kWh per broker.

    Brokers whose entry is ``None`` are left out.  An empty entry means the
    broker reported and had no energy flow, so it is kept at 0.0.
    """
    usage: dict[Broker, float] = {}
    for broker, flows in report.items():
        if flows is None:
            continue
        usage[broker] = float(sum(flows.values()))
    return usage


@dataclass(frozen=True)
class UsageSnapshot:
    """Net usage of every broker with data in one timeslot."""

    timeslot: int
    usage: Mapping[Broker, float] = field(default_factory=dict)

    @property
    def total_magnitude(self) -> float:
        """|Σ net usage| over present brokers."""
        return abs(sum(self.usage.values()))

    @property
    def is_empty(self) -> bool:
        return not self.usage

    def __contains__(self, broker: object) -> bool:
        return broker in self.usage


class UsageSnapshotStore:
    """Ordered, timeslot-indexed record of usage snapshots.

    Timeslots must be recorded in strictly increasing order.  Old snapshots
    are dropped with ``prune`` once no open assessment window needs them.
    """

    def __init__(self) -> None:
        self._snapshots: dict[int, UsageSnapshot] = {}
        self._latest: int | None = None

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[UsageSnapshot]:
        return iter(self._snapshots.values())

    @property
    def latest_timeslot(self) -> int | None:
        return self._latest

    def record(self, timeslot: int, usage_by_broker: Mapping[Broker, float]) -> UsageSnapshot:
        if self._latest is not None and timeslot <= self._latest:
            raise TimeslotOrderError(
                f"timeslot {timeslot} recorded after timeslot {self._latest}"
            )
        snapshot = UsageSnapshot(timeslot=timeslot, usage=dict(usage_by_broker))
        self._snapshots[timeslot] = snapshot
        self._latest = timeslot
        return snapshot

    def get(self, timeslot: int) -> UsageSnapshot | None:
        return self._snapshots.get(timeslot)

    def total_magnitude(self, timeslot: int) -> float:
        snapshot = self._snapshots.get(timeslot)
        return snapshot.total_magnitude if snapshot is not None else 0.0

    def prune(self, before: int) -> int:
        """Drop snapshots with timeslot < ``before``; returns how many were dropped."""
        stale = [ts for ts in self._snapshots if ts < before]
        for ts in stale:
            del self._snapshots[ts]
        return len(stale)

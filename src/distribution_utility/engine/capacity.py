"""Capacity fee — bill brokers for their share of a confirmed peak.

For a peak with total magnitude P and threshold T = mean + k·sigma:

  total_excess = max(0, P − T)
  share_b      = |u_b| / Σ|u|          over brokers present at the peak
  kwh_b        = share_b × total_excess
  fee_b        = kwh_b × fee_per_point

When every present broker's usage has the same sign, Σ|u| = P, so
share_b = |u_b| / P.  With mixed signs the shares still sum to 1, which
keeps each broker's kWh within the peak's total excess.

Worked example (threshold 14.272903):
  usage {B1: 5, B2: 4, B3: 5.5} → P = 14.5, excess = 0.227097
  B1: 5 / 14.5 × 0.227097 = 0.078309
"""

from __future__ import annotations

import logging
from typing import Sequence

from distribution_utility.engine.peaks import PeakEvent
from distribution_utility.models.records import Broker, CapacityTransaction

logger = logging.getLogger(__name__)


class CapacityFeeAllocator:
    """Turns confirmed peaks into per-broker capacity transactions.

    Parameters
    ----------
    fee_per_point : float
        Currency per kWh of excess.
    record_zero_assessments : bool
        If True, a peak at or below the threshold still produces a zero-kWh,
        zero-fee transaction for each broker in ``roster``.
    """

    def __init__(self, fee_per_point: float, record_zero_assessments: bool = True) -> None:
        self._fee_per_point = fee_per_point
        self._record_zero = record_zero_assessments

    @property
    def fee_per_point(self) -> float:
        return self._fee_per_point

    def allocate(
        self,
        peak: PeakEvent,
        threshold: float,
        roster: Sequence[Broker] = (),
    ) -> list[CapacityTransaction]:
        """Apportion one peak's excess over the brokers present at it."""
        usage = peak.snapshot.usage
        abs_total = sum(abs(u) for u in usage.values())
        total_excess = max(0.0, peak.magnitude - threshold)

        if peak.magnitude <= 0.0 or total_excess <= 0.0 or abs_total <= 0.0:
            logger.debug(
                "Peak ts=%d magnitude=%.4f within threshold %.4f; no capacity charge",
                peak.timeslot, peak.magnitude, threshold,
            )
            if not self._record_zero:
                return []
            return [
                CapacityTransaction(
                    broker=broker,
                    peak_timeslot=peak.timeslot,
                    threshold=threshold,
                    kwh=0.0,
                    fee=0.0,
                )
                for broker in roster
            ]

        transactions: list[CapacityTransaction] = []
        for broker, broker_usage in usage.items():
            kwh = abs(broker_usage) / abs_total * total_excess
            fee = kwh * self._fee_per_point
            logger.debug(
                "Capacity charge %s ts=%d: %.6f kWh, fee %.6f",
                broker, peak.timeslot, kwh, fee,
            )
            transactions.append(CapacityTransaction(
                broker=broker,
                peak_timeslot=peak.timeslot,
                threshold=threshold,
                kwh=kwh,
                fee=fee,
            ))
        return transactions

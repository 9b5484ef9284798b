"""Running statistics of total grid-usage magnitude.

One observation per timeslot: |Σ net usage of all brokers|.  The capacity
threshold is derived from the sample mean and sample standard deviation of
every observation so far, including the bootstrap history.

Update (Welford), O(1) per observation, no history kept:
  count += 1
  delta  = x − mean
  mean  += delta / count
  m2    += delta × (x − mean)

  sigma     = sqrt(m2 / (count − 1))        (0.0 while count < 2)
  threshold = mean + coefficient × sigma

Accumulating m2 from deviations avoids the cancellation of the naive
Σx² − n·mean² formula when magnitudes are large and variance is small.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from distribution_utility.models.records import CustomerBootstrapData


@dataclass(frozen=True)
class RunningStatState:
    """Sufficient statistics for sample mean and sample variance."""

    count: int
    mean: float
    m2: float
    """Sum of squared deviations from the running mean."""


def bootstrap_magnitudes(records: Sequence[CustomerBootstrapData]) -> list[float]:
    """Total-usage magnitude per historical timeslot.

    Sums every customer's net usage at each index, then takes the absolute
    value.  Shorter series contribute only to the indices they cover.
    """
    if not records:
        return []
    length = max(len(r.net_usage) for r in records)
    totals = np.zeros(length, dtype=np.float64)
    for r in records:
        if r.net_usage:
            totals[: len(r.net_usage)] += np.asarray(r.net_usage, dtype=np.float64)
    return [float(v) for v in np.abs(totals)]


class RunningStatistics:
    """Online mean / sample-sigma accumulator.

    Usage::

        stats = RunningStatistics()
        stats.seed([5.0, 8.0, 11.0, 14.0])
        stats.mean()            # 9.5
        stats.sigma()           # 3.8729833...
        stats.observe(14.5)
        stats.threshold(1.1)    # mean + 1.1 × sigma
    """

    def __init__(self) -> None:
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0

    # ── Public API ──────────────────────────────────────────────────────

    @property
    def count(self) -> int:
        return self._count

    @property
    def state(self) -> RunningStatState:
        return RunningStatState(count=self._count, mean=self._mean, m2=self._m2)

    def seed(self, magnitudes: Iterable[float]) -> None:
        """Fold a historical series of magnitudes, in order."""
        for value in magnitudes:
            self.observe(value)

    def observe(self, magnitude: float) -> None:
        """Fold one new total-usage magnitude into the running state."""
        x = float(magnitude)
        self._count += 1
        delta = x - self._mean
        self._mean += delta / self._count
        self._m2 += delta * (x - self._mean)

    def mean(self) -> float:
        return self._mean

    def sigma(self) -> float:
        """Sample standard deviation (N − 1 denominator); 0.0 below two samples."""
        if self._count < 2:
            return 0.0
        return math.sqrt(max(self._m2, 0.0) / (self._count - 1))

    def threshold(self, coefficient: float) -> float:
        return self.mean() + coefficient * self.sigma()

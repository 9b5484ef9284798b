"""Assessment windows — deferred peak selection.

Timeslots are grouped into consecutive, non-overlapping windows of
``assessment_interval`` slots, anchored at the first timeslot ever seen:

  window k covers [anchor + k·interval, anchor + (k+1)·interval)

A window is OPEN while its timeslots are still arriving.  It becomes
ASSESSED when the first timeslot past its end arrives: only then is every
candidate known, so a peak is never billed and later superseded.  On
assessment the top ``assessment_count`` snapshots by total magnitude are
returned (ties → earliest timeslot).  Snapshots in which no broker had data
are not candidates, so a window may yield fewer peaks, or none.

Example, interval = 2, ticks 4, 5, 6:
  tick 4 → window [4, 6) open, no peaks
  tick 5 → no peaks
  tick 6 → window [4, 6) assessed → larger of ticks 4 / 5; window [6, 8) opens
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from distribution_utility.engine.snapshots import UsageSnapshot
from distribution_utility.errors import TimeslotOrderError

logger = logging.getLogger(__name__)


class WindowState(str, Enum):
    OPEN = "open"
    ASSESSED = "assessed"


@dataclass(frozen=True)
class PeakEvent:
    """A candidate peak handed to the capacity-fee allocator."""

    timeslot: int
    snapshot: UsageSnapshot
    magnitude: float


@dataclass
class AssessmentWindow:
    """Mutable state of one assessment window."""

    start: int
    length: int
    snapshots: list[UsageSnapshot] = field(default_factory=list)
    state: WindowState = WindowState.OPEN

    @property
    def end(self) -> int:
        """First timeslot after the window."""
        return self.start + self.length

    def covers(self, timeslot: int) -> bool:
        return self.start <= timeslot < self.end

    @property
    def is_full(self) -> bool:
        return len(self.snapshots) >= self.length


class PeakWindowAssessor:
    """Drives windows from OPEN to ASSESSED as snapshots arrive.

    Parameters
    ----------
    assessment_interval : int
        Window length in timeslots.
    assessment_count : int
        Maximum number of peaks selected per window.
    """

    def __init__(self, assessment_interval: int, assessment_count: int = 1) -> None:
        if assessment_interval < 1:
            raise ValueError("assessment_interval must be at least 1")
        if assessment_count < 1:
            raise ValueError("assessment_count must be at least 1")
        self._interval = assessment_interval
        self._count = assessment_count
        self._window: AssessmentWindow | None = None
        self._last_timeslot: int | None = None
        self._assessed = 0

    # ── Public API ──────────────────────────────────────────────────────

    @property
    def open_window(self) -> AssessmentWindow | None:
        return self._window

    @property
    def assessed_windows(self) -> int:
        """Number of windows assessed so far (including empty ones)."""
        return self._assessed

    def advance(self, snapshot: UsageSnapshot) -> list[PeakEvent]:
        """Offer the next timeslot's snapshot.

        Returns the peaks of every window that elapsed before this timeslot,
        in assessment order; usually empty.
        """
        ts = snapshot.timeslot
        if self._last_timeslot is not None and ts <= self._last_timeslot:
            raise TimeslotOrderError(
                f"timeslot {ts} offered after timeslot {self._last_timeslot}"
            )
        self._last_timeslot = ts

        if self._window is None:
            self._window = AssessmentWindow(start=ts, length=self._interval)

        peaks: list[PeakEvent] = []
        while not self._window.covers(ts):
            peaks.extend(self.assess(self._window))
            self._window = AssessmentWindow(start=self._window.end, length=self._interval)

        self._window.snapshots.append(snapshot)
        return peaks

    def assess(self, window: AssessmentWindow) -> list[PeakEvent]:
        """Close ``window`` and return its top peaks, largest first."""
        if window.state is WindowState.ASSESSED:
            raise ValueError(f"window starting at {window.start} already assessed")
        window.state = WindowState.ASSESSED
        self._assessed += 1

        candidates = [s for s in window.snapshots if not s.is_empty]
        if not candidates:
            if window.snapshots:
                logger.warning(
                    "No broker data in window [%d, %d); no peaks assessed",
                    window.start, window.end,
                )
            return []

        magnitudes = np.array([s.total_magnitude for s in candidates], dtype=np.float64)
        timeslots = np.array([s.timeslot for s in candidates], dtype=np.int64)
        # lexsort: last key is primary → descending magnitude, then earliest timeslot
        order = np.lexsort((timeslots, -magnitudes))[: self._count]

        peaks = [
            PeakEvent(
                timeslot=candidates[i].timeslot,
                snapshot=candidates[i],
                magnitude=float(magnitudes[i]),
            )
            for i in order
        ]
        logger.info(
            "Assessed window [%d, %d): peaks at %s",
            window.start, window.end, [p.timeslot for p in peaks],
        )
        return peaks

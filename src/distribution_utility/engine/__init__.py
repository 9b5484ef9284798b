"""Engine — online statistics, peak windows, fee allocation and orchestration."""

from distribution_utility.engine.statistics import RunningStatistics, RunningStatState, bootstrap_magnitudes
from distribution_utility.engine.snapshots import UsageSnapshot, UsageSnapshotStore, net_usage_by_broker
from distribution_utility.engine.peaks import AssessmentWindow, PeakEvent, PeakWindowAssessor, WindowState
from distribution_utility.engine.capacity import CapacityFeeAllocator
from distribution_utility.engine.distribution import (
    MeterFeeCalculator,
    TransportFeeCalculator,
    flat_transport_rate,
    merge_distribution_charges,
)
from distribution_utility.engine.orchestrator import ActivationResult, DistributionUtilityEngine

__all__ = [
    "RunningStatistics",
    "RunningStatState",
    "bootstrap_magnitudes",
    "UsageSnapshot",
    "UsageSnapshotStore",
    "net_usage_by_broker",
    "AssessmentWindow",
    "PeakEvent",
    "PeakWindowAssessor",
    "WindowState",
    "CapacityFeeAllocator",
    "MeterFeeCalculator",
    "TransportFeeCalculator",
    "flat_transport_rate",
    "merge_distribution_charges",
    # Orchestration
    "ActivationResult",
    "DistributionUtilityEngine",
]

"""Distribution-utility engine — per-timeslot orchestration.

Wires together the fee components:
  1. Usage snapshots       — net kWh per broker, "no data" brokers omitted
  2. Running statistics    — mean / sigma of total usage magnitude
  3. Peak window assessor  — top-K peaks of each elapsed window
  4. Capacity allocator    — peak excess → per-broker capacity transactions
  5. Meter / transport fee — per-tick distribution transactions

Each ``activate`` call follows this sequence:
  supply/demand → snapshot → assess elapsed window (threshold as of the end
  of that window) → fold this tick's magnitude into the statistics → prune
  → post capacity charges → meter + transport charges → post

Entry points: ``initialize(config)`` once, then ``activate(time, timeslot)``
once per timeslot in strictly increasing order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from distribution_utility.config.service import DistributionUtilityConfig
from distribution_utility.engine.capacity import CapacityFeeAllocator
from distribution_utility.engine.distribution import (
    MeterFeeCalculator,
    TransportFeeCalculator,
    TransportRate,
    flat_transport_rate,
    merge_distribution_charges,
)
from distribution_utility.engine.peaks import PeakWindowAssessor
from distribution_utility.engine.snapshots import (
    UsageSnapshot,
    UsageSnapshotStore,
    net_usage_by_broker,
)
from distribution_utility.engine.statistics import RunningStatistics, bootstrap_magnitudes
from distribution_utility.errors import ConfigurationError, EngineNotInitializedError
from distribution_utility.interfaces import (
    Accounting,
    BootstrapDataRepo,
    BrokerRepo,
    SupplyDemandReport,
    TariffSubscriptionRepo,
)
from distribution_utility.models.records import CapacityTransaction, DistributionTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivationResult:
    """Transactions posted by one ``activate`` call."""

    timeslot: int
    capacity_transactions: list[CapacityTransaction] = field(default_factory=list)
    distribution_transactions: list[DistributionTransaction] = field(default_factory=list)


class DistributionUtilityEngine:
    """Per-tick capacity and distribution fee engine.

    Usage::

        engine = DistributionUtilityEngine(accounting, bootstrap_repo,
                                           broker_repo, subscription_repo)
        engine.initialize({"useCapacityFee": "true", "assessmentInterval": "24"})
        for ts in range(start, end):
            engine.activate(now, ts)

    Parameters
    ----------
    accounting : Accounting
        Source of per-broker supply/demand and sink for transactions.
    bootstrap_repo : BootstrapDataRepo
        Historical customer usage used to seed the statistics.
    broker_repo : BrokerRepo
        Retail brokers charged meter fees and zero-excess bookkeeping entries.
    subscription_repo : TariffSubscriptionRepo
        Active subscriptions for the meter fee.
    transport_rate : TransportRate | None
        Transport rate schedule; defaults to ``config.transport_rate`` per kWh.
    """

    def __init__(
        self,
        accounting: Accounting,
        bootstrap_repo: BootstrapDataRepo,
        broker_repo: BrokerRepo,
        subscription_repo: TariffSubscriptionRepo,
        transport_rate: TransportRate | None = None,
    ) -> None:
        self._accounting = accounting
        self._bootstrap_repo = bootstrap_repo
        self._broker_repo = broker_repo
        self._subscription_repo = subscription_repo
        self._transport_rate = transport_rate

        self._config: DistributionUtilityConfig | None = None
        self._dependencies: tuple[str, ...] = ()
        self._stats = RunningStatistics()
        self._store = UsageSnapshotStore()
        self._assessor: PeakWindowAssessor | None = None
        self._allocator: CapacityFeeAllocator | None = None
        self._meter: MeterFeeCalculator | None = None
        self._transport: TransportFeeCalculator | None = None

    # ── Initialisation ──────────────────────────────────────────────────

    def initialize(
        self,
        config: DistributionUtilityConfig | Mapping[str, Any],
        dependent_services: Sequence[str] = (),
    ) -> DistributionUtilityConfig:
        """Validate the configuration and seed the statistics.

        Raises ``ConfigurationError`` on invalid settings; the engine is then
        left uninitialised.
        """
        if not isinstance(config, DistributionUtilityConfig):
            try:
                config = DistributionUtilityConfig.from_properties(config)
            except ValidationError as exc:
                raise ConfigurationError(str(exc)) from exc

        stats = RunningStatistics()
        stats.seed(bootstrap_magnitudes(self._bootstrap_repo.get_customer_bootstrap_data()))

        self._config = config
        self._dependencies = tuple(dependent_services)
        self._stats = stats
        self._store = UsageSnapshotStore()
        self._assessor = PeakWindowAssessor(config.assessment_interval, config.assessment_count)
        self._allocator = CapacityFeeAllocator(config.fee_per_point, config.record_zero_assessments)
        self._meter = MeterFeeCalculator(config.m_small, config.m_large)
        self._transport = TransportFeeCalculator(
            self._transport_rate or flat_transport_rate(config.transport_rate)
        )

        logger.info(
            "Distribution utility initialised: capacity=%s meter=%s transport=%s "
            "interval=%d count=%d; seeded %d samples (mean %.4f, sigma %.4f)",
            config.use_capacity_fee, config.use_meter_fee, config.use_transport_fee,
            config.assessment_interval, config.assessment_count,
            stats.count, stats.mean(), stats.sigma(),
        )
        return config

    # ── Per-tick activation ─────────────────────────────────────────────

    def activate(self, current_time: Any, timeslot: int) -> ActivationResult:
        """Process one timeslot and post its transactions to the ledger.

        Every tick is recorded and folded into the statistics before any
        transaction is posted.  Ledger errors propagate to the caller unchanged;
        non-increasing timeslots raise ``TimeslotOrderError`` before any state
        changes.
        """
        config = self._require_config()
        logger.debug("Activate at %s, timeslot %d", current_time, timeslot)

        report = self._accounting.get_current_supply_demand_by_broker() or {}
        snapshot = self._store.record(timeslot, net_usage_by_broker(report))

        capacity_txs: list[CapacityTransaction] = []
        if config.use_capacity_fee:
            capacity_txs = self._assess_capacity(config, snapshot)

        self._stats.observe(snapshot.total_magnitude)
        window = self._assessor.open_window
        self._store.prune(window.start if window is not None else timeslot)

        for tx in capacity_txs:
            self._accounting.add_capacity_transaction(
                tx.broker, tx.peak_timeslot, tx.threshold, tx.kwh, tx.fee,
            )

        distribution_txs: list[DistributionTransaction] = []
        if config.use_meter_fee or config.use_transport_fee:
            distribution_txs = self._process_distribution(config, report)

        return ActivationResult(
            timeslot=timeslot,
            capacity_transactions=capacity_txs,
            distribution_transactions=distribution_txs,
        )

    def _assess_capacity(
        self,
        config: DistributionUtilityConfig,
        snapshot: UsageSnapshot,
    ) -> list[CapacityTransaction]:
        peaks = self._assessor.advance(snapshot)
        if not peaks:
            return []

        # statistics still end at the elapsed window's last timeslot
        threshold = self._stats.threshold(config.std_coefficient)
        roster = list(self._broker_repo.find_retail_brokers())
        transactions: list[CapacityTransaction] = []
        for peak in peaks:
            transactions.extend(self._allocator.allocate(peak, threshold, roster))
        logger.info(
            "Timeslot %d: %d peak(s) billed against threshold %.4f, %d transaction(s)",
            snapshot.timeslot, len(peaks), threshold, len(transactions),
        )
        return transactions

    def _process_distribution(
        self,
        config: DistributionUtilityConfig,
        report: SupplyDemandReport,
    ) -> list[DistributionTransaction]:
        meter_txs: list[DistributionTransaction] = []
        if config.use_meter_fee:
            meter_txs = self._meter.compute(
                self._broker_repo.find_retail_brokers(), self._subscription_repo,
            )
        transport_txs: list[DistributionTransaction] = []
        if config.use_transport_fee:
            transport_txs = self._transport.compute(report)

        transactions = merge_distribution_charges(meter_txs, transport_txs)
        for tx in transactions:
            self._accounting.add_distribution_transaction(
                tx.broker, tx.small_count, tx.large_count, tx.kwh, tx.fee,
            )
        return transactions

    def _require_config(self) -> DistributionUtilityConfig:
        if self._config is None:
            raise EngineNotInitializedError("initialize() must be called before activate()")
        return self._config

    # ── Accessors ───────────────────────────────────────────────────────

    @property
    def config(self) -> DistributionUtilityConfig:
        return self._require_config()

    @property
    def dependent_services(self) -> tuple[str, ...]:
        return self._dependencies

    @property
    def using_capacity_fee(self) -> bool:
        return self.config.use_capacity_fee

    @property
    def using_meter_fee(self) -> bool:
        return self.config.use_meter_fee

    @property
    def using_transport_fee(self) -> bool:
        return self.config.use_transport_fee

    @property
    def statistics(self) -> RunningStatistics:
        return self._stats

    @property
    def snapshots(self) -> UsageSnapshotStore:
        return self._store

    @property
    def assessor(self) -> PeakWindowAssessor | None:
        return self._assessor

    @property
    def running_mean(self) -> float:
        return self._stats.mean()

    @property
    def running_sigma(self) -> float:
        return self._stats.sigma()

    @property
    def running_count(self) -> int:
        return self._stats.count

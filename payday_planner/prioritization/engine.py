"""
Payment Prioritizer

The single entry point to the scheduling engine. It:
1. Validates raw inputs into models
2. Screens bills (pending only, no negative amounts)
3. Scores and ranks bills
4. Routes them to paydays with the configured strategy

DESIGN DECISION: The engine is pure. It never reads the system clock,
never mutates its inputs and keeps nothing between calls. `now` is a
required argument of every operation.
"""

from datetime import date, datetime
from typing import Any, Iterable, Optional, Union

import structlog

from payday_planner.config.settings import SchedulerSettings
from payday_planner.models.bill import (
    PaymentAssignment,
    PrioritizationResult,
    PriorityUpdateMode,
    PriorityUpdateResult,
    ScheduleResult,
    SchedulingStrategy,
)
from payday_planner.prioritization.allocation import (
    DEFAULT_OVERLOAD_THRESHOLD,
    allocate_by_period,
    allocate_load_balanced,
)
from payday_planner.prioritization.month_risk import MonthRiskIndex
from payday_planner.prioritization.scoring import (
    PERIOD_BUCKETING_WEIGHTS,
    PriorityScorer,
    apply_priority_floor,
    weights_for,
)
from payday_planner.validation.validator import (
    BillScreen,
    InvalidBillPolicy,
    coerce_bills,
    coerce_month_risks,
    coerce_paydays,
    to_date,
)


logger = structlog.get_logger(__name__)

Now = Union[date, datetime]


class PaymentPrioritizer:
    """
    Configurable scheduling engine.

    Usage:
        engine = PaymentPrioritizer(SchedulingStrategy.LOAD_BALANCED)
        result = engine.schedule(bills, paydays, month_risks, now=date(2025, 4, 1))
    """

    def __init__(
        self,
        strategy: SchedulingStrategy = SchedulingStrategy.PERIOD_BUCKETING,
        overload_threshold: int = DEFAULT_OVERLOAD_THRESHOLD,
        invalid_bill_policy: InvalidBillPolicy = InvalidBillPolicy.REJECT_BILL,
    ):
        if overload_threshold < 0:
            raise ValueError("overload_threshold must not be negative")
        self._strategy = strategy
        self._overload_threshold = overload_threshold
        self._screen = BillScreen(invalid_bill_policy)
        self._scorer = PriorityScorer(weights_for(strategy))

    @classmethod
    def from_settings(cls, settings: SchedulerSettings, strategy: Optional[SchedulingStrategy] = None) -> "PaymentPrioritizer":
        """
        Build an engine from SchedulerSettings.

        Args:
            settings: Scheduler section of the application settings
            strategy: Overrides the configured strategy
        """
        return cls(
            strategy=strategy or settings.strategy,
            overload_threshold=settings.overload_threshold,
            invalid_bill_policy=settings.invalid_bill_policy,
        )

    @property
    def strategy(self) -> SchedulingStrategy:
        return self._strategy

    @property
    def scorer(self) -> PriorityScorer:
        return self._scorer

    def prioritize(
        self,
        bills: Iterable[Any],
        month_risks: Iterable[Any],
        now: Now,
    ) -> PrioritizationResult:
        """
        Rank pending bills without assigning paydays.

        Returns:
            PrioritizationResult with bills ordered highest priority first
        """
        today = to_date(now)
        valid, rejected = self._screen.screen(coerce_bills(bills))
        risk_index = MonthRiskIndex(coerce_month_risks(month_risks))

        return PrioritizationResult(
            prioritized=self._scorer.rank(valid, today, risk_index),
            rejected=rejected,
        )

    def schedule(
        self,
        bills: Iterable[Any],
        paydays: Iterable[Any],
        month_risks: Iterable[Any],
        now: Now,
    ) -> ScheduleResult:
        """
        Rank pending bills and route them to paydays.

        Period bucketing only considers paydays strictly after today.
        Load balancing considers every payday (its fallback may pick a
        past one).
        """
        today = to_date(now)
        valid, rejected = self._screen.screen(coerce_bills(bills))
        payday_dates = coerce_paydays(paydays)
        risk_index = MonthRiskIndex(coerce_month_risks(month_risks))

        if self._strategy == SchedulingStrategy.LOAD_BALANCED:
            assignments, unassigned = allocate_load_balanced(
                valid,
                payday_dates,
                risk_index,
                today,
                scorer=self._scorer,
                overload_threshold=self._overload_threshold,
            )
            result = ScheduleResult(
                strategy=self._strategy,
                today=today,
                assignments=assignments,
                unassigned=unassigned,
                rejected=rejected,
            )
        else:
            future_paydays = sorted(p for p in payday_dates if p > today)
            buckets = allocate_by_period(
                self._scorer.rank(valid, today, risk_index),
                future_paydays,
            )
            flattened: list[PaymentAssignment] = [
                assignment
                for bucket in buckets
                for assignment in bucket.assignments
            ]
            result = ScheduleResult(
                strategy=self._strategy,
                today=today,
                buckets=buckets,
                assignments=flattened,
                rejected=rejected,
            )

        logger.info(
            "schedule_computed",
            strategy=self._strategy.value,
            today=today.isoformat(),
            assigned=len(result.assignments),
            unassigned=len(result.unassigned),
            rejected=len(result.rejected),
        )
        return result

    def update_priorities(
        self,
        bills: Iterable[Any],
        month_risks: Iterable[Any],
        now: Now,
        mode: PriorityUpdateMode = PriorityUpdateMode.SCORE,
    ) -> PriorityUpdateResult:
        """
        Compute new stored priorities for pending bills.

        Returns updated copies in input order, plus the bills screened out
        as invalid; the inputs are untouched.
        SCORE mode always uses the period-bucketing weighting table,
        whatever strategy this engine schedules with.
        """
        today = to_date(now)
        valid, rejected = self._screen.screen(coerce_bills(bills))
        risk_index = MonthRiskIndex(coerce_month_risks(month_risks))

        if mode == PriorityUpdateMode.FLOOR:
            new_priority = apply_priority_floor
        else:
            new_priority = PriorityScorer(PERIOD_BUCKETING_WEIGHTS).score

        updated = [
            bill.model_copy(update={
                "priority": new_priority(bill, today, risk_index.for_date(bill.due_date)),
            })
            for bill in valid
        ]
        return PriorityUpdateResult(updated=updated, rejected=rejected)

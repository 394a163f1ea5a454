"""
Main Orchestrator for Payday Planner

This module ties the pure engine to its collaborators and defines the
end-to-end flows for:
1. Ranking (fetch bills + month risks -> score -> ranked list)
2. Scheduling (fetch bills + paydays + month risks -> schedule)
3. Priority write-back (fetch -> recompute -> update stored bills)

DESIGN DECISION: Only fetching and writing are asynchronous. Once the
inputs are in hand, the engine runs to completion without suspending.
Every run is audited under a single correlation ID.
"""

import asyncio
from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from payday_planner.audit import AuditLogger, configure_logging, create_correlation_id
from payday_planner.config import SchedulerSettings, get_settings
from payday_planner.models.bill import (
    Bill,
    BillStatus,
    MonthRisk,
    Payday,
    PrioritizationResult,
    PriorityUpdateMode,
    PriorityUpdateResult,
    RejectedBill,
    ScheduleResult,
    SchedulingStrategy,
)
from payday_planner.prioritization import PaymentPrioritizer
from payday_planner.services.storage import (
    AuditStorageInterface,
    BillSource,
    MonthRiskSource,
    PaydaySource,
    SourceUnavailableError,
    StorageError,
)
from payday_planner.validation import SchedulingError, to_date


_fetch_retry = retry(
    retry=retry_if_exception_type(SourceUnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class PrioritizationService:
    """
    Fetches inputs, runs the engine, audits the outcome.

    Usage:
        service = create_prioritization_service(bills, paydays, risks)
        schedule = await service.distribute_bills(now=datetime.now())
    """

    def __init__(
        self,
        bill_source: BillSource,
        payday_source: PaydaySource,
        month_risk_source: MonthRiskSource,
        settings: Optional[SchedulerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._bill_source = bill_source
        self._payday_source = payday_source
        self._month_risk_source = month_risk_source
        self._settings = settings or get_settings().scheduler
        self._audit_logger = audit_logger

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    @_fetch_retry
    async def _fetch_bills(self) -> list[Bill]:
        return await self._bill_source.fetch_bills(status=BillStatus.PENDING)

    @_fetch_retry
    async def _fetch_paydays(self) -> list[Payday]:
        return await self._payday_source.fetch_paydays()

    @_fetch_retry
    async def _fetch_month_risks(self) -> list[MonthRisk]:
        return await self._month_risk_source.fetch_month_risks()

    async def _guarded(self, source: str, fetch, correlation_id: UUID):
        """Run a fetch; audit and re-raise storage failures."""
        try:
            return await fetch()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_source_fetch_failed(
                    source=source,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    # -------------------------------------------------------------------------
    # Flows
    # -------------------------------------------------------------------------

    async def prioritize_bills(
        self,
        now: Union[date, datetime],
        correlation_id: Optional[UUID] = None,
    ) -> PrioritizationResult:
        """
        Rank pending bills without assigning paydays.

        Uses the period-bucketing weighting table.
        """
        correlation_id = correlation_id or create_correlation_id()

        bills, month_risks = await asyncio.gather(
            self._guarded("bills", self._fetch_bills, correlation_id),
            self._guarded("month_risks", self._fetch_month_risks, correlation_id),
        )

        engine = PaymentPrioritizer.from_settings(
            self._settings,
            strategy=SchedulingStrategy.PERIOD_BUCKETING,
        )
        try:
            result = engine.prioritize(bills, month_risks, now)
        except SchedulingError as e:
            await self._audit_engine_error(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_rejected(result.rejected, correlation_id)
            await self._audit_logger.log_priorities_computed(
                bill_count=len(result.prioritized),
                rejected_count=len(result.rejected),
                correlation_id=correlation_id,
            )

        return result

    async def distribute_bills(
        self,
        now: Union[date, datetime],
        strategy: Optional[SchedulingStrategy] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ScheduleResult:
        """
        Build a payment schedule.

        Args:
            now: Current date or time, supplied by the host
            strategy: Overrides the configured strategy
            correlation_id: Ties audit events of this run together

        Returns:
            ScheduleResult. Unassigned and rejected bills are data, not errors.
        """
        correlation_id = correlation_id or create_correlation_id()
        engine = PaymentPrioritizer.from_settings(self._settings, strategy=strategy)

        if self._audit_logger:
            await self._audit_logger.log_schedule_requested(
                strategy=engine.strategy.value,
                today=to_date(now),
                correlation_id=correlation_id,
            )

        bills, paydays, month_risks = await asyncio.gather(
            self._guarded("bills", self._fetch_bills, correlation_id),
            self._guarded("paydays", self._fetch_paydays, correlation_id),
            self._guarded("month_risks", self._fetch_month_risks, correlation_id),
        )

        try:
            result = engine.schedule(bills, paydays, month_risks, now)
        except SchedulingError as e:
            await self._audit_engine_error(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_outcome(result, correlation_id)

        return result

    async def update_bill_priorities(
        self,
        now: Union[date, datetime],
        mode: Optional[PriorityUpdateMode] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PriorityUpdateResult:
        """
        Recompute and store priorities of pending bills.

        Payment dates are left untouched. Bills screened out as invalid
        are not written; they are audited and returned in `rejected`.

        Returns:
            PriorityUpdateResult; `updated` holds the bills as written
        """
        correlation_id = correlation_id or create_correlation_id()
        mode = mode or self._settings.update_mode

        bills, month_risks = await asyncio.gather(
            self._guarded("bills", self._fetch_bills, correlation_id),
            self._guarded("month_risks", self._fetch_month_risks, correlation_id),
        )

        engine = PaymentPrioritizer.from_settings(self._settings)
        try:
            result = engine.update_priorities(bills, month_risks, now, mode=mode)
        except SchedulingError as e:
            await self._audit_engine_error(e, correlation_id)
            raise

        if result.updated:
            await self._bill_source.update_bills(result.updated)

        if self._audit_logger:
            await self._audit_rejected(result.rejected, correlation_id)
            await self._audit_logger.log_priorities_updated(
                mode=mode.value,
                bill_count=len(result.updated),
                correlation_id=correlation_id,
            )

        return result

    # -------------------------------------------------------------------------
    # Auditing
    # -------------------------------------------------------------------------

    async def _audit_engine_error(self, error: SchedulingError, correlation_id: UUID) -> None:
        if self._audit_logger:
            await self._audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def _audit_rejected(self, rejected: list[RejectedBill], correlation_id: UUID) -> None:
        for item in rejected:
            await self._audit_logger.log_bill_rejected(
                bill_id=item.bill.id,
                title=item.bill.title,
                reason=item.reason,
                correlation_id=correlation_id,
            )

    async def _audit_outcome(self, result: ScheduleResult, correlation_id: UUID) -> None:
        await self._audit_rejected(result.rejected, correlation_id)

        for unassigned in result.unassigned:
            await self._audit_logger.log_bill_unassigned(
                bill_id=unassigned.bill.id,
                title=unassigned.bill.title,
                reason=unassigned.reason,
                correlation_id=correlation_id,
            )

        for assignment in result.assignments:
            if assignment.deflected_from is not None:
                await self._audit_logger.log_bill_deflected(
                    bill_id=assignment.bill.id,
                    from_payday=assignment.deflected_from,
                    to_payday=assignment.payment_date,
                    correlation_id=correlation_id,
                )

        await self._audit_logger.log_schedule_generated(
            strategy=result.strategy.value,
            assigned_count=len(result.assignments),
            unassigned_count=len(result.unassigned),
            correlation_id=correlation_id,
        )


def create_prioritization_service(
    bill_source: BillSource,
    payday_source: PaydaySource,
    month_risk_source: MonthRiskSource,
    audit_storage: Optional[AuditStorageInterface] = None,
    settings: Optional[SchedulerSettings] = None,
) -> PrioritizationService:
    """
    Factory function wiring sources, settings and audit logging.

    Args:
        audit_storage: Where audit events are persisted.
                      If None, events are only logged locally.
        settings: Scheduler settings; read from the environment if None
    """
    configure_logging()

    return PrioritizationService(
        bill_source=bill_source,
        payday_source=payday_source,
        month_risk_source=month_risk_source,
        settings=settings,
        audit_logger=AuditLogger(audit_storage),
    )

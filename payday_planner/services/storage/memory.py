"""
In-Memory Source Implementations

Dict- and list-backed implementations of the source interfaces.
Used in tests and by hosts that already hold their records in memory.

Records are stored and returned as-is; callers that need isolation
should pass copies.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from payday_planner.models.audit import AuditEvent
from payday_planner.models.bill import Bill, BillStatus, MonthRisk, Payday
from payday_planner.services.storage.interface import (
    AuditStorageInterface,
    BillSource,
    MonthRiskSource,
    NotFoundError,
    PaydaySource,
)


class InMemoryBillSource(BillSource):
    """Bills keyed by ID, insertion order preserved."""

    def __init__(self, bills: Optional[Iterable[Bill]] = None):
        self._bills: dict[UUID, Bill] = {bill.id: bill for bill in bills or ()}

    async def fetch_bills(
        self,
        status: Optional[BillStatus] = None,
    ) -> list[Bill]:
        return [
            bill for bill in self._bills.values()
            if status is None or bill.status == status
        ]

    async def update_bills(self, bills: list[Bill]) -> int:
        missing = [str(bill.id) for bill in bills if bill.id not in self._bills]
        if missing:
            raise NotFoundError(f"Bills not found: {', '.join(missing)}")

        for bill in bills:
            self._bills[bill.id] = bill
        return len(bills)

    def get(self, bill_id: UUID) -> Bill:
        try:
            return self._bills[bill_id]
        except KeyError:
            raise NotFoundError(f"Bill not found: {bill_id}") from None


class InMemoryPaydaySource(PaydaySource):

    def __init__(self, paydays: Optional[Iterable[Payday]] = None):
        self._paydays = list(paydays or ())

    async def fetch_paydays(self) -> list[Payday]:
        return list(self._paydays)


class InMemoryMonthRiskSource(MonthRiskSource):

    def __init__(self, records: Optional[Iterable[MonthRisk]] = None):
        self._records = list(records or ())

    async def fetch_month_risks(
        self,
        date_from: Optional[date] = None,
    ) -> list[MonthRisk]:
        if date_from is None:
            return list(self._records)
        cutoff = (date_from.year, date_from.month)
        return [record for record in self._records if record.key >= cutoff]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

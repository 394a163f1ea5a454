"""Service tests with in-memory sources"""

import asyncio
from datetime import date, datetime
from decimal import Decimal

import pytest
from tenacity import wait_none

from payday_planner.audit import AuditLogger, create_correlation_id
from payday_planner.config import SchedulerSettings
from payday_planner.models.audit import AuditEvent, AuditEventType
from payday_planner.models.bill import (
    BillStatus,
    MonthRisk,
    Payday,
    PriorityUpdateMode,
    SchedulingStrategy,
)
from payday_planner.orchestrator import PrioritizationService, create_prioritization_service
from payday_planner.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryBillSource,
    InMemoryMonthRiskSource,
    InMemoryPaydaySource,
    NotFoundError,
    PaydaySource,
    SourceUnavailableError,
    StorageError,
)
from payday_planner.validation import InvalidBillError, InvalidBillPolicy


NOW = datetime(2025, 3, 30, 8, 0)
PAYDAYS = [Payday(date=date(2025, 4, 1)), Payday(date=date(2025, 4, 15))]


class BrokenPaydaySource(PaydaySource):

    async def fetch_paydays(self):
        raise StorageError("payday calendar is offline")


class FlakyPaydaySource(PaydaySource):
    """Unavailable for the first `failures` calls."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    async def fetch_paydays(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise SourceUnavailableError("try again later")
        return list(PAYDAYS)


class BrokenAuditStorage(AuditStorageInterface):

    async def append_event(self, event):
        raise RuntimeError("disk full")

    async def get_events_by_correlation_id(self, correlation_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


def _service(bills, paydays=PAYDAYS, risks=(), settings=None, payday_source=None):
    audit_storage = InMemoryAuditStorage()
    bill_source = InMemoryBillSource(bills)
    service = PrioritizationService(
        bill_source=bill_source,
        payday_source=payday_source or InMemoryPaydaySource(paydays),
        month_risk_source=InMemoryMonthRiskSource(risks),
        settings=settings or SchedulerSettings(),
        audit_logger=AuditLogger(audit_storage),
    )
    return service, bill_source, audit_storage


def _event_types(storage, correlation_id):
    events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
    return [e.event_type for e in events]


class TestDistributeBills:
    """Tests for the scheduling flow."""

    def test_schedule_and_audit_trail(self, bill_factory):
        bills = [bill_factory(title="Rent", amount="1200", due_date=date(2025, 4, 3))]
        service, _, storage = _service(bills)
        correlation_id = create_correlation_id()

        result = asyncio.run(service.distribute_bills(now=NOW, correlation_id=correlation_id))

        assert result.strategy == SchedulingStrategy.PERIOD_BUCKETING
        assert result.today == date(2025, 3, 30)
        assert result.assignments[0].payment_date == date(2025, 4, 1)
        assert _event_types(storage, correlation_id) == [
            AuditEventType.SCHEDULE_REQUESTED,
            AuditEventType.SCHEDULE_GENERATED,
        ]

    def test_settled_bills_are_not_fetched(self, bill_factory):
        bills = [
            bill_factory(title="Paid", status=BillStatus.PAID),
            bill_factory(title="Open"),
        ]
        service, _, _ = _service(bills)

        result = asyncio.run(service.distribute_bills(now=NOW))

        assert [a.bill.title for a in result.assignments] == ["Open"]

    def test_unassigned_bills_are_audited(self, bill_factory):
        bills = [bill_factory(title="Early", due_date=date(2025, 3, 31))]
        service, _, storage = _service(bills)
        correlation_id = create_correlation_id()

        result = asyncio.run(service.distribute_bills(
            now=NOW,
            strategy=SchedulingStrategy.LOAD_BALANCED,
            correlation_id=correlation_id,
        ))

        assert [u.bill.title for u in result.unassigned] == ["Early"]
        assert _event_types(storage, correlation_id) == [
            AuditEventType.SCHEDULE_REQUESTED,
            AuditEventType.BILL_UNASSIGNED,
            AuditEventType.SCHEDULE_GENERATED,
        ]

    def test_deflections_are_audited(self, bill_factory):
        early = [bill_factory(due_date=date(2025, 4, 5)) for _ in range(2)]
        late = [bill_factory(due_date=date(2025, 4, 20)) for _ in range(7)]
        settings = SchedulerSettings(strategy=SchedulingStrategy.LOAD_BALANCED)
        service, _, storage = _service(early + late, settings=settings)
        correlation_id = create_correlation_id()

        result = asyncio.run(service.distribute_bills(now=NOW, correlation_id=correlation_id))

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        deflected = [e for e in events if e.event_type == AuditEventType.BILL_DEFLECTED]
        assert len(deflected) == 1
        assert deflected[0].details == {"from_payday": "2025-04-15", "to_payday": "2025-04-01"}
        assert events[-1].details["assigned_count"] == len(result.assignments) == 9

    def test_rejected_bills_are_audited(self, bill_factory):
        bills = [bill_factory(title="Bad", amount="-1"), bill_factory(title="Good")]
        service, _, storage = _service(bills)
        correlation_id = create_correlation_id()

        result = asyncio.run(service.distribute_bills(now=NOW, correlation_id=correlation_id))

        assert [r.bill.title for r in result.rejected] == ["Bad"]
        assert AuditEventType.BILL_REJECTED in _event_types(storage, correlation_id)

    def test_batch_rejection_is_raised_and_audited(self, bill_factory):
        settings = SchedulerSettings(invalid_bill_policy=InvalidBillPolicy.REJECT_BATCH)
        service, _, storage = _service([bill_factory(amount="-1")], settings=settings)
        correlation_id = create_correlation_id()

        with pytest.raises(InvalidBillError):
            asyncio.run(service.distribute_bills(now=NOW, correlation_id=correlation_id))

        assert _event_types(storage, correlation_id) == [
            AuditEventType.SCHEDULE_REQUESTED,
            AuditEventType.SYSTEM_ERROR,
        ]

    def test_month_risks_are_used(self, bill_factory):
        bills = [bill_factory(amount="1500", due_date=date(2025, 3, 31))]
        risks = [MonthRisk(year=2025, month=3, is_critical=True)]
        service, _, _ = _service(bills, risks=risks)

        result = asyncio.run(service.distribute_bills(now=NOW))

        assert result.assignments[0].priority == 11


class TestSourceFailures:
    """Tests for collaborator failures."""

    def test_failing_source_is_raised_and_audited(self, bill_factory):
        service, _, storage = _service([bill_factory()], payday_source=BrokenPaydaySource())
        correlation_id = create_correlation_id()

        with pytest.raises(StorageError, match="offline"):
            asyncio.run(service.distribute_bills(now=NOW, correlation_id=correlation_id))

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        failed = [e for e in events if e.event_type == AuditEventType.SOURCE_FETCH_FAILED]
        assert len(failed) == 1
        assert failed[0].details == {"source": "paydays"}
        assert failed[0].error_message == "payday calendar is offline"

    def test_unavailable_source_is_retried(self, bill_factory, monkeypatch):
        monkeypatch.setattr(PrioritizationService._fetch_paydays.retry, "wait", wait_none())
        source = FlakyPaydaySource(failures=2)
        service, _, _ = _service([bill_factory()], payday_source=source)

        result = asyncio.run(service.distribute_bills(now=NOW))

        assert source.calls == 3
        assert len(result.assignments) == 1

    def test_retries_give_up_after_three_attempts(self, bill_factory, monkeypatch):
        monkeypatch.setattr(PrioritizationService._fetch_paydays.retry, "wait", wait_none())
        source = FlakyPaydaySource(failures=5)
        service, _, storage = _service([bill_factory()], payday_source=source)
        correlation_id = create_correlation_id()

        with pytest.raises(SourceUnavailableError):
            asyncio.run(service.distribute_bills(now=NOW, correlation_id=correlation_id))

        assert source.calls == 3
        assert _event_types(storage, correlation_id).count(AuditEventType.SOURCE_FETCH_FAILED) == 1


class TestPrioritizeAndUpdate:
    """Tests for ranking and write-back flows."""

    def test_prioritize_bills(self, bill_factory):
        bills = [
            bill_factory(title="Later", due_date=date(2025, 6, 1)),
            bill_factory(title="Sooner", due_date=date(2025, 4, 1)),
        ]
        service, _, storage = _service(bills)
        correlation_id = create_correlation_id()

        result = asyncio.run(service.prioritize_bills(now=NOW, correlation_id=correlation_id))

        assert [p.bill.title for p in result.prioritized] == ["Sooner", "Later"]
        assert _event_types(storage, correlation_id) == [AuditEventType.PRIORITIES_COMPUTED]

    def test_update_writes_priorities_back(self, bill_factory):
        bill = bill_factory(amount="600", due_date=date(2025, 4, 1), priority=1)
        service, bill_source, storage = _service([bill])
        correlation_id = create_correlation_id()

        result = asyncio.run(service.update_bill_priorities(now=NOW, correlation_id=correlation_id))

        assert result.updated[0].priority == 1 + 5 + 2
        assert bill_source.get(bill.id).priority == 8
        assert bill_source.get(bill.id).payment_date is None
        assert bill.priority == 1
        assert _event_types(storage, correlation_id) == [AuditEventType.PRIORITIES_UPDATED]

    def test_update_floor_mode(self, bill_factory):
        bill = bill_factory(due_date=date(2025, 4, 4), priority=0)
        service, bill_source, _ = _service([bill])

        asyncio.run(service.update_bill_priorities(now=NOW, mode=PriorityUpdateMode.FLOOR))

        assert bill_source.get(bill.id).priority == 4

    def test_update_with_no_pending_bills(self):
        service, _, storage = _service([])

        result = asyncio.run(service.update_bill_priorities(now=NOW))

        assert result.updated == []
        events = asyncio.run(storage.get_recent_events())
        assert events[0].details["bill_count"] == 0

    def test_update_audits_rejected_bills(self, bill_factory):
        """Invalid bills are kept out of the write and show up in the audit trail."""
        bad = bill_factory(title="Bad", amount="-5", priority=2)
        good = bill_factory(title="Good", due_date=date(2025, 4, 1))
        service, bill_source, storage = _service([bad, good])
        correlation_id = create_correlation_id()

        result = asyncio.run(service.update_bill_priorities(now=NOW, correlation_id=correlation_id))

        assert [r.bill.id for r in result.rejected] == [bad.id]
        assert bill_source.get(bad.id).priority == 2
        assert bill_source.get(good.id).priority == 5
        assert _event_types(storage, correlation_id) == [
            AuditEventType.BILL_REJECTED,
            AuditEventType.PRIORITIES_UPDATED,
        ]

    def test_update_batch_rejection_is_audited(self, bill_factory):
        settings = SchedulerSettings(invalid_bill_policy=InvalidBillPolicy.REJECT_BATCH)
        bad = bill_factory(amount="-5", priority=2)
        service, bill_source, storage = _service([bad, bill_factory()], settings=settings)
        correlation_id = create_correlation_id()

        with pytest.raises(InvalidBillError):
            asyncio.run(service.update_bill_priorities(now=NOW, correlation_id=correlation_id))

        assert bill_source.get(bad.id).priority == 2
        assert _event_types(storage, correlation_id) == [AuditEventType.SYSTEM_ERROR]

    def test_prioritize_batch_rejection_is_audited(self, bill_factory):
        settings = SchedulerSettings(invalid_bill_policy=InvalidBillPolicy.REJECT_BATCH)
        service, _, storage = _service([bill_factory(amount="-5")], settings=settings)
        correlation_id = create_correlation_id()

        with pytest.raises(InvalidBillError):
            asyncio.run(service.prioritize_bills(now=NOW, correlation_id=correlation_id))

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in events] == [AuditEventType.SYSTEM_ERROR]
        assert events[0].description == "System error: InvalidBillError"


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_storage_failure_does_not_raise(self):
        logger = AuditLogger(BrokenAuditStorage())
        event = AuditEvent(
            event_type=AuditEventType.SCHEDULE_REQUESTED,
            description="Schedule requested",
        )

        assert asyncio.run(logger.log(event)) is False

    def test_without_storage(self):
        logger = AuditLogger()
        event = AuditEvent(
            event_type=AuditEventType.SCHEDULE_REQUESTED,
            description="Schedule requested",
        )

        assert asyncio.run(logger.log(event)) is True

    def test_recent_events_newest_first(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        asyncio.run(logger.log_schedule_requested("load_balanced", date(2025, 3, 30), correlation_id))
        asyncio.run(logger.log_schedule_generated("load_balanced", 2, 0, correlation_id))

        recent = asyncio.run(storage.get_recent_events(limit=1))
        assert [e.event_type for e in recent] == [AuditEventType.SCHEDULE_GENERATED]


class TestFactory:

    def test_create_prioritization_service(self, bill_factory):
        storage = InMemoryAuditStorage()
        service = create_prioritization_service(
            InMemoryBillSource([bill_factory(amount="75.25")]),
            InMemoryPaydaySource(PAYDAYS),
            InMemoryMonthRiskSource(),
            audit_storage=storage,
            settings=SchedulerSettings(),
        )

        result = asyncio.run(service.distribute_bills(now=date(2025, 3, 30)))

        assert result.total_amount == Decimal("75.25")
        assert len(asyncio.run(storage.get_recent_events())) == 2


class TestInMemorySources:
    """Tests for the in-memory source implementations."""

    def test_month_risks_from_date(self):
        source = InMemoryMonthRiskSource([
            MonthRisk(year=2025, month=2, is_critical=True),
            MonthRisk(year=2025, month=3, is_low_income=True),
            MonthRisk(year=2026, month=1, is_critical=True),
        ])

        records = asyncio.run(source.fetch_month_risks(date_from=date(2025, 3, 31)))

        assert [r.key for r in records] == [(2025, 3), (2026, 1)]

    def test_update_unknown_bill(self, bill_factory):
        source = InMemoryBillSource([bill_factory()])

        with pytest.raises(NotFoundError):
            asyncio.run(source.update_bills([bill_factory(title="Stranger")]))

    def test_fetch_by_status(self, bill_factory):
        source = InMemoryBillSource([
            bill_factory(title="Paid", status=BillStatus.PAID),
            bill_factory(title="Open"),
        ])

        everything = asyncio.run(source.fetch_bills())
        pending = asyncio.run(source.fetch_bills(status=BillStatus.PENDING))

        assert len(everything) == 2
        assert [b.title for b in pending] == ["Open"]

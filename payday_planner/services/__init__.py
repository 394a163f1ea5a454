"""Services package."""

from payday_planner.services.storage import (
    AuditStorageInterface,
    BillSource,
    InMemoryAuditStorage,
    InMemoryBillSource,
    InMemoryMonthRiskSource,
    InMemoryPaydaySource,
    MonthRiskSource,
    NotFoundError,
    PaydaySource,
    SourceUnavailableError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "BillSource",
    "InMemoryAuditStorage",
    "InMemoryBillSource",
    "InMemoryMonthRiskSource",
    "InMemoryPaydaySource",
    "MonthRiskSource",
    "NotFoundError",
    "PaydaySource",
    "SourceUnavailableError",
    "StorageError",
]

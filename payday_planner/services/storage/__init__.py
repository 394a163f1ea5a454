"""
Storage Services Package

Provides the abstract source interfaces the orchestrator reads from,
plus in-memory implementations. Designed to be swappable.
"""

from payday_planner.services.storage.interface import (
    AuditStorageInterface,
    BillSource,
    MonthRiskSource,
    NotFoundError,
    PaydaySource,
    SourceUnavailableError,
    StorageError,
)
from payday_planner.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryBillSource,
    InMemoryMonthRiskSource,
    InMemoryPaydaySource,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BillSource",
    "MonthRiskSource",
    "PaydaySource",
    # Exceptions
    "NotFoundError",
    "SourceUnavailableError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryBillSource",
    "InMemoryMonthRiskSource",
    "InMemoryPaydaySource",
]

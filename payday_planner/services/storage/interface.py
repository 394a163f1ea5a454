"""
Abstract Source Interfaces

DESIGN DECISION: The engine never talks to storage. Bills, paydays and
month risk records are fetched by collaborators behind these interfaces.
This allows us to:
1. Keep the engine pure and synchronous
2. Use in-memory sources for testing and embedding
3. Swap in a database or remote API later

Fetches may be asynchronous; the scheduling computation itself is not.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from payday_planner.models.audit import AuditEvent
from payday_planner.models.bill import Bill, BillStatus, MonthRisk, Payday


class BillSource(ABC):
    """
    Abstract interface for reading and updating bills.
    """

    @abstractmethod
    async def fetch_bills(
        self,
        status: Optional[BillStatus] = None,
    ) -> list[Bill]:
        """
        Fetch bills.

        Args:
            status: Only return bills with this status (None = all)

        Returns:
            List of bills

        Raises:
            SourceUnavailableError: If the backend is temporarily unreachable
        """
        pass

    @abstractmethod
    async def update_bills(self, bills: list[Bill]) -> int:
        """
        Persist updated copies of existing bills.

        Args:
            bills: Bills carrying new field values

        Returns:
            Number of bills written

        Raises:
            NotFoundError: If a bill doesn't exist
        """
        pass


class PaydaySource(ABC):
    """Abstract interface for income dates."""

    @abstractmethod
    async def fetch_paydays(self) -> list[Payday]:
        """
        Fetch all known paydays, in any order.

        Raises:
            SourceUnavailableError: If the backend is temporarily unreachable
        """
        pass


class MonthRiskSource(ABC):
    """Abstract interface for critical / low-income month flags."""

    @abstractmethod
    async def fetch_month_risks(
        self,
        date_from: Optional[date] = None,
    ) -> list[MonthRisk]:
        """
        Fetch month risk records.

        Args:
            date_from: Skip months ending before this date

        Raises:
            SourceUnavailableError: If the backend is temporarily unreachable
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (one scheduling call).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for source and storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class SourceUnavailableError(StorageError):
    """Backend temporarily unreachable; the call may be retried."""
    pass

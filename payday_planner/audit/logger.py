"""
Audit Logger

DESIGN DECISION: Every scheduling run is logged.
This provides:
1. Traceability of every assignment, deflection and gap
2. Debugging capability
3. A record the user can review

The audit logger:
- Is async so hosts can await storage writes alongside their fetches
- Gracefully handles failures (a failing audit store never breaks a run)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from datetime import date
from typing import Optional
from uuid import UUID, uuid4

import structlog

from payday_planner.config import LoggingSettings, get_settings
from payday_planner.models.audit import AuditEvent, AuditEventBuilder
from payday_planner.services.storage import AuditStorageInterface


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    JSON lines by default; console rendering when json_output is off.
    """
    settings = settings or get_settings().logging

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.level),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("payday_planner.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_schedule_requested(
        self,
        strategy: str,
        today: date,
        correlation_id: UUID,
    ) -> None:
        """Log the start of a scheduling run."""
        event = AuditEventBuilder.schedule_requested(
            strategy=strategy,
            today=today,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_schedule_generated(
        self,
        strategy: str,
        assigned_count: int,
        unassigned_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log schedule completion."""
        event = AuditEventBuilder.schedule_generated(
            strategy=strategy,
            assigned_count=assigned_count,
            unassigned_count=unassigned_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_bill_rejected(
        self,
        bill_id: UUID,
        title: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a bill screened out as invalid."""
        event = AuditEventBuilder.bill_rejected(
            bill_id=bill_id,
            title=title,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_bill_unassigned(
        self,
        bill_id: UUID,
        title: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a bill no payday could take."""
        event = AuditEventBuilder.bill_unassigned(
            bill_id=bill_id,
            title=title,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_bill_deflected(
        self,
        bill_id: UUID,
        from_payday: date,
        to_payday: date,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.bill_deflected(
            bill_id=bill_id,
            from_payday=from_payday,
            to_payday=to_payday,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_priorities_computed(
        self,
        bill_count: int,
        rejected_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.priorities_computed(
            bill_count=bill_count,
            rejected_count=rejected_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_priorities_updated(
        self,
        mode: str,
        bill_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.priorities_updated(
            mode=mode,
            bill_count=bill_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_source_fetch_failed(
        self,
        source: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a collaborator that could not be read."""
        event = AuditEventBuilder.source_fetch_failed(
            source=source,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a scheduling call and pass it through
    every event of that call.
    """
    return uuid4()

"""
Audit Models for Payday Planner

Every scheduling run leaves a trail of audit events.
This provides:
1. Traceability of why a bill landed on a given payday
2. Visibility of bills that were rejected or left unassigned
3. Debugging information when a source fails

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Scheduling runs
    SCHEDULE_REQUESTED = "schedule_requested"
    SCHEDULE_GENERATED = "schedule_generated"

    # Per-bill outcomes
    BILL_REJECTED = "bill_rejected"
    BILL_UNASSIGNED = "bill_unassigned"
    BILL_DEFLECTED = "bill_deflected"

    # Ranking and write-back
    PRIORITIES_COMPUTED = "priorities_computed"
    PRIORITIES_UPDATED = "priorities_updated"

    # Collaborators
    SOURCE_FETCH_FAILED = "source_fetch_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event was recorded (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'bill', 'schedule')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate all events of one scheduling call"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.bill_unassigned(bill_id, title, reason, correlation_id)
        event = AuditEventBuilder.schedule_generated(strategy, 12, 1, correlation_id)
    """

    @staticmethod
    def schedule_requested(
        strategy: str,
        today: date,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_REQUESTED,
            entity_type="schedule",
            correlation_id=correlation_id,
            description=f"Payment schedule requested ({strategy})",
            details={
                "strategy": strategy,
                "today": today.isoformat(),
            },
        )

    @staticmethod
    def schedule_generated(
        strategy: str,
        assigned_count: int,
        unassigned_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_GENERATED,
            entity_type="schedule",
            correlation_id=correlation_id,
            description=(
                f"Schedule generated: {assigned_count} assigned, "
                f"{unassigned_count} unassigned"
            ),
            details={
                "strategy": strategy,
                "assigned_count": assigned_count,
                "unassigned_count": unassigned_count,
            },
        )

    @staticmethod
    def bill_rejected(
        bill_id: UUID,
        title: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Bill rejected: {title}",
            details={
                "reason": reason,
            },
        )

    @staticmethod
    def bill_unassigned(
        bill_id: UUID,
        title: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_UNASSIGNED,
            severity=AuditSeverity.WARNING,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"No payday available for bill: {title}",
            details={
                "reason": reason,
            },
        )

    @staticmethod
    def bill_deflected(
        bill_id: UUID,
        from_payday: date,
        to_payday: date,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_DEFLECTED,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Bill moved from {from_payday} to lighter payday {to_payday}",
            details={
                "from_payday": from_payday.isoformat(),
                "to_payday": to_payday.isoformat(),
            },
        )

    @staticmethod
    def priorities_computed(
        bill_count: int,
        rejected_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRIORITIES_COMPUTED,
            entity_type="bill",
            correlation_id=correlation_id,
            description=f"Priorities computed for {bill_count} bills",
            details={
                "bill_count": bill_count,
                "rejected_count": rejected_count,
            },
        )

    @staticmethod
    def priorities_updated(
        mode: str,
        bill_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRIORITIES_UPDATED,
            entity_type="bill",
            correlation_id=correlation_id,
            description=f"Stored priorities updated for {bill_count} bills ({mode})",
            details={
                "mode": mode,
                "bill_count": bill_count,
            },
        )

    @staticmethod
    def source_fetch_failed(
        source: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SOURCE_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Could not fetch from source: {source}",
            error_message=error_message,
            details={
                "source": source,
            },
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

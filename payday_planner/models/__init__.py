"""
Data Models Package

This package contains all Pydantic models used by Payday Planner.
Everything the scheduling engine reads or returns conforms to these schemas.
"""

from payday_planner.models.bill import (
    Bill,
    BillStatus,
    MonthRisk,
    MonthRiskFlags,
    Payday,
    PaydayBucket,
    PaymentAssignment,
    PrioritizationResult,
    PrioritizedBill,
    PriorityUpdateMode,
    PriorityUpdateResult,
    RejectedBill,
    ScheduleResult,
    SchedulingStrategy,
    UnassignedBill,
)
from payday_planner.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Bill models
    "Bill",
    "BillStatus",
    "MonthRisk",
    "MonthRiskFlags",
    "Payday",
    "PaydayBucket",
    "PaymentAssignment",
    "PrioritizationResult",
    "PrioritizedBill",
    "PriorityUpdateMode",
    "PriorityUpdateResult",
    "RejectedBill",
    "ScheduleResult",
    "SchedulingStrategy",
    "UnassignedBill",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

"""
Core Data Models for Payday Planner

These models define the schemas for everything the scheduling engine
consumes and produces. They are designed to:
1. Enforce type safety at runtime
2. Keep engine outputs immutable (every run builds fresh records)
3. Be serializable for storage and logging

DESIGN DECISION: Input records (Bill, Payday, MonthRisk) belong to the
caller. Derived records (PrioritizedBill, PaymentAssignment, PaydayBucket)
are frozen and owned by the engine. Nothing the engine returns is ever
mutated in place.
"""

from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BillStatus(str, Enum):
    """
    Payment status of a bill.

    CRITICAL: The engine only ever schedules PENDING bills.
    """
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class SchedulingStrategy(str, Enum):
    """
    Named payday allocation strategies.

    DESIGN DECISION: Both strategies are kept side by side. They use
    different weighting tables and different fallback rules, and callers
    choose between them explicitly.
    """
    PERIOD_BUCKETING = "period_bucketing"  # Strategy A
    LOAD_BALANCED = "load_balanced"        # Strategy B


class PriorityUpdateMode(str, Enum):
    """How a priority write-back pass computes the new stored priority."""
    SCORE = "score"  # Replace with the computed period-bucketing score
    FLOOR = "floor"  # Raise to a floor for bills due soon, +1 in critical months


# =============================================================================
# INPUT RECORDS
# =============================================================================

class Bill(BaseModel):
    """
    A bill (invoice) supplied by the caller.

    The amount is deliberately NOT constrained here. A negative amount is
    an engine-level InvalidInput, handled according to the caller's
    rejection policy instead of failing model construction.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique bill ID"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Short bill title"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    amount: Decimal = Field(
        ...,
        description="Amount to pay"
    )
    due_date: date = Field(
        ...,
        description="Payment due date"
    )
    priority: int = Field(
        default=0,
        ge=0,
        description="Caller-assigned base priority (higher = more urgent)"
    )
    status: BillStatus = Field(
        default=BillStatus.PENDING,
        description="Payment status"
    )
    payment_date: Optional[date] = None
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    @property
    def is_pending(self) -> bool:
        return self.status == BillStatus.PENDING


class Payday(BaseModel):
    """An income event. Only the date matters to the engine."""

    id: UUID = Field(default_factory=uuid4)
    date: date

    @property
    def is_weekend(self) -> bool:
        return self.date.weekday() >= 5

    @property
    def day_of_month(self) -> int:
        return self.date.day


class MonthRisk(BaseModel):
    """
    Caller-flagged risk for one calendar month.

    At most one record should exist per (year, month). When more are
    supplied the first one wins.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)
    is_critical: bool = False
    is_low_income: bool = False
    note: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free text, passed through untouched"
    )

    @property
    def key(self) -> tuple[int, int]:
        return (self.year, self.month)


class MonthRiskFlags(BaseModel):
    """Result of a month-risk lookup."""
    model_config = ConfigDict(frozen=True)

    is_critical: bool = False
    is_low_income: bool = False

    @property
    def is_risky(self) -> bool:
        """Critical or low income."""
        return self.is_critical or self.is_low_income


# =============================================================================
# DERIVED RECORDS (engine-owned)
# =============================================================================

class PrioritizedBill(BaseModel):
    """
    A bill together with its computed priority.

    Created fresh on every scoring pass.
    """
    model_config = ConfigDict(frozen=True)

    bill: Bill
    priority: int
    payment_date: Optional[date] = None
    notes: Optional[str] = None


class PaymentAssignment(BaseModel):
    """
    One bill routed to one payday.

    The weekend adjustment is display-only: `adjusted_payment_date` is
    computed on access and `payment_date` itself never changes.
    """
    model_config = ConfigDict(frozen=True)

    bill: Bill
    payment_date: date
    priority: int
    deflected_from: Optional[date] = Field(
        default=None,
        description="Nearest payday the bill moved away from due to load"
    )
    notes: Optional[str] = None

    @property
    def is_weekend_payment(self) -> bool:
        return self.payment_date.weekday() >= 5

    @property
    def adjusted_payment_date(self) -> date:
        """Saturday and Sunday move back to the preceding Friday."""
        weekday = self.payment_date.weekday()
        if weekday == 5:
            return self.payment_date - timedelta(days=1)
        if weekday == 6:
            return self.payment_date - timedelta(days=2)
        return self.payment_date

    @property
    def was_deflected(self) -> bool:
        return self.deflected_from is not None


class PaydayBucket(BaseModel):
    """All assignments routed to a single payday, highest priority first."""
    model_config = ConfigDict(frozen=True)

    payday: date
    assignments: list[PaymentAssignment] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")

    @property
    def bill_count(self) -> int:
        return len(self.assignments)


class RejectedBill(BaseModel):
    """A bill screened out as invalid input."""
    model_config = ConfigDict(frozen=True)

    bill: Bill
    reason: str


class UnassignedBill(BaseModel):
    """
    A bill that no payday could take.

    This is an expected outcome of the load-balanced strategy, not an
    error. Callers should surface these to the user.
    """
    model_config = ConfigDict(frozen=True)

    bill: Bill
    priority: int
    reason: str


# =============================================================================
# RESULTS
# =============================================================================

class PrioritizationResult(BaseModel):
    """Ranking-only output: scored bills, highest priority first."""
    model_config = ConfigDict(frozen=True)

    prioritized: list[PrioritizedBill] = Field(default_factory=list)
    rejected: list[RejectedBill] = Field(default_factory=list)


class PriorityUpdateResult(BaseModel):
    """Write-back output: updated copies of pending bills plus rejected ones."""
    model_config = ConfigDict(frozen=True)

    updated: list[Bill] = Field(default_factory=list)
    rejected: list[RejectedBill] = Field(default_factory=list)


class ScheduleResult(BaseModel):
    """
    Output of one scheduling run.

    - Period bucketing fills `buckets`; `assignments` holds the same
      entries flattened in bucket order.
    - Load balancing fills `assignments` and `unassigned`.
    """
    model_config = ConfigDict(frozen=True)

    strategy: SchedulingStrategy
    today: date
    buckets: list[PaydayBucket] = Field(default_factory=list)
    assignments: list[PaymentAssignment] = Field(default_factory=list)
    unassigned: list[UnassignedBill] = Field(default_factory=list)
    rejected: list[RejectedBill] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.assignments and not self.unassigned

    @property
    def scheduled_bill_ids(self) -> list[UUID]:
        return [assignment.bill.id for assignment in self.assignments]

    @property
    def total_amount(self) -> Decimal:
        return sum(
            (assignment.bill.amount for assignment in self.assignments),
            Decimal("0"),
        )

"""
Input Screening for the Scheduling Engine

DESIGN DECISION: Screening happens in two distinct stages:

STAGE 1 - STRUCTURAL VALIDATION:
- Raw dicts are validated into models
- A missing or malformed required field is a typed failure
  (InvalidInputError) for the whole call

STAGE 2 - SEMANTIC SCREENING:
- Only pending bills continue
- Negative amounts are InvalidInput; the caller's policy decides whether
  that rejects the single bill or the whole batch

IMPORTANT: Screening NEVER silently fixes issues.
A negative amount is never zeroed; it is reported.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Type, TypeVar

from pydantic import BaseModel, ValidationError

from payday_planner.models.bill import Bill, MonthRisk, Payday, RejectedBill


ModelT = TypeVar("ModelT", bound=BaseModel)


class SchedulingError(Exception):
    """Base exception for the scheduling engine."""
    pass


class InvalidInputError(SchedulingError):
    """A record is structurally invalid (e.g. a required field is missing)."""
    pass


class InvalidBillError(SchedulingError):
    """One or more bills failed screening under the reject-batch policy."""

    def __init__(self, message: str, rejected: list[RejectedBill]):
        super().__init__(message)
        self.rejected = rejected


class InvalidBillPolicy(str, Enum):
    """What to do with a bill that fails semantic screening."""
    REJECT_BILL = "reject_bill"    # Drop the bill, report it in the result
    REJECT_BATCH = "reject_batch"  # Fail the whole call


def _coerce(items: Iterable[Any], model: Type[ModelT], label: str) -> list[ModelT]:
    coerced = []
    for index, item in enumerate(items):
        if isinstance(item, model):
            coerced.append(item)
            continue
        try:
            coerced.append(model.model_validate(item))
        except ValidationError as e:
            raise InvalidInputError(f"Invalid {label} at position {index}: {e}") from e
    return coerced


def coerce_bills(items: Iterable[Any]) -> list[Bill]:
    """Validate bills supplied as models or dicts."""
    return _coerce(items, Bill, "bill")


def coerce_month_risks(items: Iterable[Any]) -> list[MonthRisk]:
    """Validate month risk records supplied as models or dicts."""
    return _coerce(items, MonthRisk, "month risk")


def to_date(value: Any) -> date:
    """
    Normalize a payday or timestamp to a date-only value.

    Accepts Payday models, datetimes (time of day is dropped), dates and
    ISO formatted strings.
    """
    if isinstance(value, Payday):
        return value.date
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as e:
            raise InvalidInputError(f"Invalid date: {value!r}") from e
    if value is None:
        raise InvalidInputError("Date is required")
    raise InvalidInputError(f"Unsupported date value: {value!r}")


def coerce_paydays(items: Iterable[Any]) -> list[date]:
    """
    Normalize paydays to dates, preserving order and duplicates.

    Dicts are validated as Payday records first.
    """
    dates = []
    for index, item in enumerate(items):
        if isinstance(item, dict):
            try:
                item = Payday.model_validate(item)
            except ValidationError as e:
                raise InvalidInputError(f"Invalid payday at position {index}: {e}") from e
        dates.append(to_date(item))
    return dates


class BillScreen:
    """
    Semantic screening of bills before scoring.

    Usage:
        screen = BillScreen(InvalidBillPolicy.REJECT_BILL)
        valid, rejected = screen.screen(bills)
    """

    def __init__(self, policy: InvalidBillPolicy = InvalidBillPolicy.REJECT_BILL):
        self._policy = policy

    @property
    def policy(self) -> InvalidBillPolicy:
        return self._policy

    def check(self, bill: Bill) -> list[str]:
        """Return the problems found with a single bill."""
        problems = []
        if not bill.amount.is_finite():
            problems.append("Amount must be a finite number")
        elif bill.amount < Decimal("0"):
            problems.append(f"Amount must not be negative (got {bill.amount})")
        return problems

    def screen(self, bills: Iterable[Bill]) -> tuple[list[Bill], list[RejectedBill]]:
        """
        Split bills into (pending valid bills, rejected bills).

        Non-pending bills are skipped without being reported; they are not
        the engine's concern.

        Raises:
            InvalidBillError: under REJECT_BATCH, if any pending bill fails
        """
        valid = []
        rejected = []

        for bill in bills:
            if not bill.is_pending:
                continue
            problems = self.check(bill)
            if problems:
                rejected.append(RejectedBill(bill=bill, reason="; ".join(problems)))
            else:
                valid.append(bill)

        if rejected and self._policy == InvalidBillPolicy.REJECT_BATCH:
            raise InvalidBillError(
                f"{len(rejected)} bill(s) failed validation; batch rejected",
                rejected,
            )

        return valid, rejected

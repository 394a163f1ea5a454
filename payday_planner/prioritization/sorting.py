"""Schedule ordering shared by both allocation strategies."""

from typing import Iterable, TypeVar

from payday_planner.models.bill import PaymentAssignment, PrioritizedBill


RankedT = TypeVar("RankedT", PrioritizedBill, PaymentAssignment)


def schedule_sort_key(assignment: PaymentAssignment) -> tuple:
    """Earlier payment date first, then higher priority."""
    return (assignment.payment_date, -assignment.priority)


def sort_schedule(assignments: Iterable[PaymentAssignment]) -> list[PaymentAssignment]:
    """
    Order assignments by payment date ascending, then priority descending.

    Full ties keep their input order.
    """
    return sorted(assignments, key=schedule_sort_key)


def sort_by_priority(items: Iterable[RankedT]) -> list[RankedT]:
    """Highest priority first; ties keep their input order."""
    return sorted(items, key=lambda item: item.priority, reverse=True)

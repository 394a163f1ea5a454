"""Input validation package."""

from payday_planner.validation.validator import (
    BillScreen,
    InvalidBillError,
    InvalidBillPolicy,
    InvalidInputError,
    SchedulingError,
    coerce_bills,
    coerce_month_risks,
    coerce_paydays,
    to_date,
)

__all__ = [
    "BillScreen",
    "InvalidBillError",
    "InvalidBillPolicy",
    "InvalidInputError",
    "SchedulingError",
    "coerce_bills",
    "coerce_month_risks",
    "coerce_paydays",
    "to_date",
]

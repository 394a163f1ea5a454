"""
Priority Scoring

Turns a bill into an integer urgency score:

    score = base priority
          + due-date band      (first matching band only)
          + amount band        (first matching band only)
          + month-risk bonus

Two weighting tables exist and are kept distinct on purpose:

- PERIOD_BUCKETING_WEIGHTS: due in <= 2/5/10 days -> +5/+3/+1,
  critical month +3 and low-income month +2 (additive).
- LOAD_BALANCED_WEIGHTS: due in <= 3/7/14 days -> +3/+2/+1,
  a month that is critical OR low-income earns +2 once.

Both share the amount bands: > 1000 / > 500 / > 100 -> +3/+2/+1.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable

import structlog
from pydantic import BaseModel, ConfigDict

from payday_planner.models.bill import (
    Bill,
    MonthRiskFlags,
    PrioritizedBill,
    SchedulingStrategy,
)
from payday_planner.prioritization.month_risk import MonthRiskIndex
from payday_planner.prioritization.sorting import sort_by_priority


logger = structlog.get_logger(__name__)


class PriorityWeights(BaseModel):
    """
    A weighting table.

    Bands are evaluated in order and only the first match applies.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    due_bands: tuple[tuple[int, int], ...]          # (max days until due, points)
    amount_bands: tuple[tuple[Decimal, int], ...]   # (exclusive lower bound, points)
    critical_bonus: int
    low_income_bonus: int
    merge_risk_flags: bool = False

    def due_points(self, days_until_due: int) -> int:
        for max_days, points in self.due_bands:
            if days_until_due <= max_days:
                return points
        return 0

    def amount_points(self, amount: Decimal) -> int:
        for threshold, points in self.amount_bands:
            if amount > threshold:
                return points
        return 0

    def risk_points(self, flags: MonthRiskFlags) -> int:
        if self.merge_risk_flags:
            return self.critical_bonus if flags.is_risky else 0

        points = 0
        if flags.is_critical:
            points += self.critical_bonus
        if flags.is_low_income:
            points += self.low_income_bonus
        return points


_AMOUNT_BANDS = (
    (Decimal("1000"), 3),
    (Decimal("500"), 2),
    (Decimal("100"), 1),
)

PERIOD_BUCKETING_WEIGHTS = PriorityWeights(
    name="period_bucketing",
    due_bands=((2, 5), (5, 3), (10, 1)),
    amount_bands=_AMOUNT_BANDS,
    critical_bonus=3,
    low_income_bonus=2,
)

LOAD_BALANCED_WEIGHTS = PriorityWeights(
    name="load_balanced",
    due_bands=((3, 3), (7, 2), (14, 1)),
    amount_bands=_AMOUNT_BANDS,
    critical_bonus=2,
    low_income_bonus=0,
    merge_risk_flags=True,
)


def weights_for(strategy: SchedulingStrategy) -> PriorityWeights:
    """Weighting table used by a strategy."""
    if strategy == SchedulingStrategy.LOAD_BALANCED:
        return LOAD_BALANCED_WEIGHTS
    return PERIOD_BUCKETING_WEIGHTS


def days_until(today: date, due_date: date) -> int:
    """Whole days from today to the due date; negative when overdue."""
    return (due_date - today).days


class PriorityScorer:
    """
    Scores bills with one weighting table.

    Holds no state between calls: identical inputs always give identical
    scores.
    """

    def __init__(self, weights: PriorityWeights = PERIOD_BUCKETING_WEIGHTS):
        self._weights = weights

    @property
    def weights(self) -> PriorityWeights:
        return self._weights

    def score(self, bill: Bill, today: date, month_risk: MonthRiskFlags) -> int:
        """Urgency score for one bill."""
        return (
            bill.priority
            + self._weights.due_points(days_until(today, bill.due_date))
            + self._weights.amount_points(bill.amount)
            + self._weights.risk_points(month_risk)
        )

    def rank(
        self,
        bills: Iterable[Bill],
        today: date,
        risk_index: MonthRiskIndex,
    ) -> list[PrioritizedBill]:
        """
        Score every bill and order by priority, highest first.

        The sort is stable, so equal scores keep their input order.
        """
        prioritized = sort_by_priority(
            PrioritizedBill(
                bill=bill,
                priority=self.score(bill, today, risk_index.for_date(bill.due_date)),
            )
            for bill in bills
        )

        logger.debug(
            "bills_ranked",
            weights=self._weights.name,
            bill_count=len(prioritized),
        )
        return prioritized


def apply_priority_floor(bill: Bill, today: date, month_risk: MonthRiskFlags) -> int:
    """
    Legacy floor rule for refreshing stored priorities.

    Due in <= 3 days raises the priority to at least 5, due in <= 7 days
    to at least 4. A critical month (the low-income flag does not count)
    then adds 1.
    """
    priority = bill.priority
    remaining = days_until(today, bill.due_date)

    if remaining <= 3:
        priority = max(priority, 5)
    elif remaining <= 7:
        priority = max(priority, 4)

    if month_risk.is_critical:
        priority += 1

    return priority

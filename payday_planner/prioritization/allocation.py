"""
Payday Allocation Strategies

Two independent ways of routing bills to paydays:

PERIOD BUCKETING (Strategy A):
- Each payday owns the period up to the next payday
- A bill goes to the payday whose period contains its due date
- Leftovers go to the latest payday on or before the due date,
  and failing that to the first payday
- Every bill is always assigned

LOAD BALANCED (Strategy B):
- Bills are taken in due-date order
- Each goes to the latest payday between today and its due date
- An overloaded payday deflects the bill to an earlier, lighter one
- A bill with no payday before its due date is left UNASSIGNED

IMPORTANT: The two fallback rules differ on purpose. Period bucketing
always forces an assignment; load balancing reports the gap instead.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from payday_planner.models.bill import (
    Bill,
    PaydayBucket,
    PaymentAssignment,
    PrioritizedBill,
    UnassignedBill,
)
from payday_planner.prioritization.month_risk import MonthRiskIndex
from payday_planner.prioritization.scoring import LOAD_BALANCED_WEIGHTS, PriorityScorer
from payday_planner.prioritization.sorting import sort_by_priority, sort_schedule


logger = structlog.get_logger(__name__)

DEFAULT_OVERLOAD_THRESHOLD = 5

NO_PAYDAY_BEFORE_DUE = "No payday falls before the due date"


# =============================================================================
# STRATEGY A - PERIOD BUCKETING
# =============================================================================

def _fallback_index(paydays: Sequence[date], due_date: date) -> int:
    """Index of the latest payday on or before the due date, else 0."""
    latest: Optional[date] = None
    for payday in paydays:
        if payday <= due_date:
            latest = payday
    if latest is None:
        return 0
    return paydays.index(latest)


def allocate_by_period(
    prioritized: Sequence[PrioritizedBill],
    paydays: Sequence[date],
) -> list[PaydayBucket]:
    """
    Route ranked bills into one bucket per payday.

    Args:
        prioritized: Bills already scored, highest priority first
        paydays: Future paydays in ascending order (duplicates allowed,
                 each one gets its own bucket)

    Returns:
        One bucket per payday, in payday order. Empty if either input is empty.
    """
    if not prioritized or not paydays:
        return []

    routed: list[list[PrioritizedBill]] = [[] for _ in paydays]
    remaining = list(prioritized)

    # Sweep: each payday takes the bills due within its period
    for index, payday in enumerate(paydays):
        next_payday = paydays[index + 1] if index + 1 < len(paydays) else None

        still_remaining = []
        for item in remaining:
            due_date = item.bill.due_date
            if due_date >= payday and (next_payday is None or due_date < next_payday):
                routed[index].append(item)
            else:
                still_remaining.append(item)
        remaining = still_remaining

    # Leftovers: latest payday on or before the due date, else the first one
    for item in remaining:
        index = _fallback_index(paydays, item.bill.due_date)
        routed[index].append(item)
        logger.debug(
            "bill_routed_by_fallback",
            bill_id=str(item.bill.id),
            payday=paydays[index].isoformat(),
        )

    buckets = []
    for payday, items in zip(paydays, routed):
        assignments = [
            PaymentAssignment(
                bill=item.bill,
                payment_date=payday,
                priority=item.priority,
                notes=item.notes,
            )
            for item in sort_by_priority(items)
        ]
        buckets.append(PaydayBucket(
            payday=payday,
            assignments=assignments,
            total_amount=sum((a.bill.amount for a in assignments), Decimal("0")),
        ))

    return buckets


# =============================================================================
# STRATEGY B - LOAD BALANCED NEAREST PRIOR
# =============================================================================

def _pick_lighter_payday(
    eligible: Sequence[date],
    candidate: date,
    loads: dict[date, int],
) -> Optional[date]:
    """Latest eligible payday whose load is below the candidate's load minus one."""
    candidate_load = loads.get(candidate, 0)
    for payday in reversed(eligible):
        if payday == candidate:
            continue
        if loads.get(payday, 0) < candidate_load - 1:
            return payday
    return None


def allocate_load_balanced(
    bills: Sequence[Bill],
    paydays: Sequence[date],
    risk_index: MonthRiskIndex,
    today: date,
    scorer: Optional[PriorityScorer] = None,
    overload_threshold: int = DEFAULT_OVERLOAD_THRESHOLD,
) -> tuple[list[PaymentAssignment], list[UnassignedBill]]:
    """
    Assign each bill to the nearest payday at or before its due date.

    Args:
        bills: Pending bills, any order
        paydays: Paydays, any order
        risk_index: Month risk flags used for scoring
        today: Date-only "now"; paydays before it are not eligible
        scorer: Defaults to the load-balanced weighting table
        overload_threshold: A payday with more bills than this triggers
                            a search for a lighter one

    Returns:
        (assignments sorted by payment date then priority, unassigned bills)
    """
    if not bills or not paydays:
        return [], []

    scorer = scorer or PriorityScorer(LOAD_BALANCED_WEIGHTS)
    ordered_paydays = sorted(paydays)

    loads: dict[date, int] = {}
    assignments: list[PaymentAssignment] = []
    unassigned: list[UnassignedBill] = []

    for bill in sorted(bills, key=lambda b: b.due_date):
        priority = scorer.score(bill, today, risk_index.for_date(bill.due_date))

        eligible = [p for p in ordered_paydays if today <= p <= bill.due_date]
        deflected_from: Optional[date] = None

        if not eligible:
            # Any earlier payday will do, even one already in the past
            earlier = [p for p in ordered_paydays if p < bill.due_date]
            if not earlier:
                unassigned.append(UnassignedBill(
                    bill=bill,
                    priority=priority,
                    reason=NO_PAYDAY_BEFORE_DUE,
                ))
                logger.debug("bill_unassigned", bill_id=str(bill.id))
                continue
            chosen = earlier[-1]
        else:
            chosen = eligible[-1]
            if loads.get(chosen, 0) > overload_threshold:
                lighter = _pick_lighter_payday(eligible, chosen, loads)
                if lighter is not None:
                    logger.debug(
                        "bill_deflected",
                        bill_id=str(bill.id),
                        from_payday=chosen.isoformat(),
                        to_payday=lighter.isoformat(),
                    )
                    deflected_from, chosen = chosen, lighter

        loads[chosen] = loads.get(chosen, 0) + 1
        assignments.append(PaymentAssignment(
            bill=bill,
            payment_date=chosen,
            priority=priority,
            deflected_from=deflected_from,
        ))

    return sort_schedule(assignments), unassigned

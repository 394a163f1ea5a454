"""Prioritization and payday scheduling engine."""

from payday_planner.prioritization.allocation import (
    DEFAULT_OVERLOAD_THRESHOLD,
    allocate_by_period,
    allocate_load_balanced,
)
from payday_planner.prioritization.engine import PaymentPrioritizer
from payday_planner.prioritization.month_risk import MonthRiskIndex
from payday_planner.prioritization.scoring import (
    LOAD_BALANCED_WEIGHTS,
    PERIOD_BUCKETING_WEIGHTS,
    PriorityScorer,
    PriorityWeights,
    apply_priority_floor,
    days_until,
    weights_for,
)
from payday_planner.prioritization.sorting import sort_by_priority, sort_schedule

__all__ = [
    "DEFAULT_OVERLOAD_THRESHOLD",
    "LOAD_BALANCED_WEIGHTS",
    "MonthRiskIndex",
    "PERIOD_BUCKETING_WEIGHTS",
    "PaymentPrioritizer",
    "PriorityScorer",
    "PriorityWeights",
    "allocate_by_period",
    "allocate_load_balanced",
    "apply_priority_floor",
    "days_until",
    "sort_by_priority",
    "sort_schedule",
    "weights_for",
]

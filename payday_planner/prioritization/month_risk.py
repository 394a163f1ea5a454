"""
Month Risk Index

Maps (year, month) to the caller's risk flags for that month.
Built once per run in O(n); lookups are O(1).
"""

from datetime import date
from typing import Iterable, Optional

from payday_planner.models.bill import MonthRisk, MonthRiskFlags


_NO_RISK = MonthRiskFlags()


class MonthRiskIndex:
    """
    Lookup of month risk flags keyed by (year, month).

    When several records share a key, the first one supplied wins.
    Months without a record report no risk.
    """

    def __init__(self, records: Optional[Iterable[MonthRisk]] = None):
        self._flags: dict[tuple[int, int], MonthRiskFlags] = {}
        for record in records or ():
            if record.key in self._flags:
                continue
            self._flags[record.key] = MonthRiskFlags(
                is_critical=record.is_critical,
                is_low_income=record.is_low_income,
            )

    def lookup(self, year: int, month: int) -> MonthRiskFlags:
        return self._flags.get((year, month), _NO_RISK)

    def for_date(self, day: date) -> MonthRiskFlags:
        """Flags for the month a date falls in."""
        return self.lookup(day.year, day.month)

    def __len__(self) -> int:
        return len(self._flags)

    def __contains__(self, key: object) -> bool:
        return key in self._flags

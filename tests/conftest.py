"""Pytest fixtures for testing"""

from datetime import date
from decimal import Decimal
from typing import Callable

import pytest

from payday_planner.config import get_settings
from payday_planner.models.bill import Bill, BillStatus


# Sunday. 2025-04-01 and 2025-04-15 are Tuesdays.
TODAY = date(2025, 3, 30)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def bill_factory() -> Callable[..., Bill]:
    """Build bills with sensible defaults."""

    def make(
        title: str = "Electricity",
        amount: str = "50",
        due_date: date = date(2025, 4, 20),
        priority: int = 0,
        status: BillStatus = BillStatus.PENDING,
    ) -> Bill:
        return Bill(
            title=title,
            amount=Decimal(amount),
            due_date=due_date,
            priority=priority,
            status=status,
        )

    return make


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; make every test read the environment anew."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

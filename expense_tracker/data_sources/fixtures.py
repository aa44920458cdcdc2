"""
Sample Records.

Seed data for the in-memory data sources (previews, demos and tests).
Dates are relative to *today* so the samples always land in the current
and previous month.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from expense_tracker.models.records import (
    DATE_FORMAT,
    DatabaseExpense,
    DatabaseIncome,
    DatabaseUser,
)


def _shift_month(day: dt.date, months: int) -> dt.date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp to the 28th so every month is valid.
    return dt.date(year, month, min(day.day, 28))


def _fmt(day: dt.date) -> str:
    return day.strftime(DATE_FORMAT)


def sample_expenses(today: Optional[dt.date] = None) -> list[DatabaseExpense]:
    """Three expenses in the current month."""
    first = (today or dt.date.today()).replace(day=1)
    return [
        DatabaseExpense(
            name="Groceries", amount=2100.50, date=_fmt(first),
            category="Food", note="",
        ),
        DatabaseExpense(
            name="Movie", amount=1000.50, date=_fmt(first + dt.timedelta(days=4)),
            category="Entertainment", note="The Dark Knight Rises",
        ),
        DatabaseExpense(
            name="Cab", amount=500.00, date=_fmt(first + dt.timedelta(days=5)),
            category="Travel", note="To office",
        ),
    ]


def previous_month_expenses(today: Optional[dt.date] = None) -> list[DatabaseExpense]:
    """Expenses one month back, for month-filter previews."""
    base = _shift_month(today or dt.date.today(), -1)
    return [
        DatabaseExpense(name="Groceries", amount=2000.50, date=_fmt(base), category="Food"),
        DatabaseExpense(name="Coffee", amount=50.0, date=_fmt(base), category="Food", note="4 cups"),
    ]


def sample_incomes(today: Optional[dt.date] = None) -> list[DatabaseIncome]:
    """Three incomes in the current month."""
    today = today or dt.date.today()
    first = today.replace(day=1)
    return [
        DatabaseIncome(amount=10000.0, date=_fmt(first), source="Salary"),
        DatabaseIncome(amount=5000.0, date=_fmt(first + dt.timedelta(days=14)), source="Business"),
        DatabaseIncome(amount=2000.0, date=_fmt(first + dt.timedelta(days=19)), source="Investment"),
    ]


def sample_user() -> DatabaseUser:
    return DatabaseUser(
        id="preview-user",
        email="johndoe@example.com",
        first_name="John",
        last_name="Doe",
    )

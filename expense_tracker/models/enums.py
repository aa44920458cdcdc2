"""
Shared Enumerations for Expense Tracker Models.

String enumerations for categorical fields.  ``StrEnum`` values compare
equal to their raw strings, and the raw strings are exactly what storage
records hold (``"Food"``, ``"Salary"`` ...).
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum, StrEnum
from typing import Optional


class Category(StrEnum):
    """Expense category.

    Storage records keep the raw string; unknown or legacy values only
    resolve to ``OTHER`` when promoted to a domain ``Expense``.
    """

    FOOD = "Food"
    ENTERTAINMENT = "Entertainment"
    TRAVEL = "Travel"
    SHOPPING = "Shopping"
    HEALTH = "Health"
    OTHER = "Other"

    @classmethod
    def parse(cls, raw: str) -> Category:
        """Return the member for *raw*, or ``OTHER`` when unrecognised."""
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER


class IncomeSource(StrEnum):
    """Income source.  Unknown values resolve to ``OTHER``."""

    SALARY = "Salary"
    RENTAL = "Rental"
    BUSINESS = "Business"
    INVESTMENT = "Investment"
    OTHER = "Other"

    @classmethod
    def parse(cls, raw: str) -> IncomeSource:
        """Return the member for *raw*, or ``OTHER`` when unrecognised."""
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER


class SortingOption(StrEnum):
    """Sort keys offered by transaction lists."""

    DATE = "Date"
    AMOUNT = "Amount"
    NAME = "Name"


class AmountRange(Enum):
    """Amount buckets used by the transaction filters.

    Each value is ``(lower, upper)``; ``upper`` is ``None`` for the
    open-ended top bucket.
    """

    UP_TO_200 = (Decimal("0"), Decimal("200"))
    FROM_200_TO_500 = (Decimal("200"), Decimal("500"))
    FROM_500_TO_2000 = (Decimal("500"), Decimal("2000"))
    ABOVE_2000 = (Decimal("2000"), None)

    @property
    def lower(self) -> Decimal:
        return self.value[0]

    @property
    def upper(self) -> Optional[Decimal]:
        return self.value[1]

    def contains(self, amount: Decimal) -> bool:
        """Closed-interval membership test, matching the UI filter."""
        if amount < self.lower:
            return False
        return self.upper is None or amount <= self.upper


class DatabaseType(StrEnum):
    """Which store the app was last running against."""

    IN_MEMORY = "InMemory"
    LOCAL = "Local"
    REMOTE = "Remote"


class NotificationType(StrEnum):
    """Kinds of scheduled reminders."""

    DAILY_EXPENSE = "dailyExpense"
    MONTHLY_SALARY = "monthlySalary"


class StoreMode(StrEnum):
    """``DatabaseManager`` routing mode."""

    LOCAL_ONLY = "LOCAL_ONLY"
    LINKED = "LINKED"

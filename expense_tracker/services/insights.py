"""
Transaction Insights.

Free functions over anything shaped like a
:class:`~expense_tracker.models.transaction.Transaction`: sorting, month
and amount-range filters, and the totals shown on the dashboard.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import TypeVar

from expense_tracker.models.enums import AmountRange, Category, IncomeSource, SortingOption
from expense_tracker.models.expense import Expense
from expense_tracker.models.income import Income
from expense_tracker.models.transaction import Transaction

TransactionT = TypeVar("TransactionT", bound=Transaction)


def sort_expenses(
    expenses: Iterable[Expense],
    option: SortingOption = SortingOption.DATE,
    descending: bool = True,
) -> list[Expense]:
    """Sort by date, amount or case-insensitive name.  Newest/largest first by default."""
    if option == SortingOption.NAME:
        return sorted(expenses, key=lambda e: e.name.casefold(), reverse=descending)
    return _sort_transactions(expenses, option, descending)


def sort_incomes(
    incomes: Iterable[Income],
    option: SortingOption = SortingOption.DATE,
    descending: bool = True,
) -> list[Income]:
    """Sort by date or amount.

    Raises:
        ValueError: ``SortingOption.NAME``; incomes carry no name.
    """
    if option == SortingOption.NAME:
        raise ValueError("Incomes cannot be sorted by name.")
    return _sort_transactions(incomes, option, descending)


def _sort_transactions(
    items: Iterable[TransactionT], option: SortingOption, descending: bool,
) -> list[TransactionT]:
    if option == SortingOption.AMOUNT:
        return sorted(items, key=lambda t: t.amount, reverse=descending)
    return sorted(items, key=lambda t: t.date, reverse=descending)


def filter_by_month(items: Iterable[TransactionT], year: int, month: int) -> list[TransactionT]:
    return [t for t in items if t.date.year == year and t.date.month == month]


def filter_by_amount_range(
    items: Iterable[TransactionT], amount_range: AmountRange,
) -> list[TransactionT]:
    return [t for t in items if amount_range.contains(t.amount)]


def totals_by_category(expenses: Iterable[Expense]) -> dict[Category, Decimal]:
    """Sum per category, in enum order, omitting empty categories."""
    totals: dict[Category, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, Decimal("0")) + expense.amount
    return {category: totals[category] for category in Category if category in totals}


def totals_by_source(incomes: Iterable[Income]) -> dict[IncomeSource, Decimal]:
    """Sum per income source, in enum order, omitting empty sources."""
    totals: dict[IncomeSource, Decimal] = {}
    for income in incomes:
        totals[income.source] = totals.get(income.source, Decimal("0")) + income.amount
    return {source: totals[source] for source in IncomeSource if source in totals}


def total_amount(items: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in items), Decimal("0"))


def net_balance(incomes: Iterable[Income], expenses: Iterable[Expense]) -> Decimal:
    """Total income minus total expenses."""
    return total_amount(incomes) - total_amount(expenses)

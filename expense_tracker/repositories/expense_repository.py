"""
Expense Repository.

Wraps one expense data source; reads promote ``DatabaseExpense`` records
to ``Expense`` (unknown categories become ``Category.OTHER``) and writes
demote them again.
"""

from __future__ import annotations

from expense_tracker.models.expense import Expense
from expense_tracker.models.records import DatabaseExpense
from expense_tracker.repositories.base_repository import TransactionRepository
from expense_tracker.repositories.conversions import expense_to_record, record_to_expense


class ExpenseRepository(TransactionRepository[Expense, DatabaseExpense]):
    """Data access layer for Expense entities."""

    ENTITY = "Expense"

    _to_record = staticmethod(expense_to_record)
    _to_domain = staticmethod(record_to_expense)

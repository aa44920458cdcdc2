"""
Repository Package.

Translation layer between domain entities and storage records.  Each
repository wraps exactly one data source; :class:`RepositoryHandler`
composes the three of them into "a store".
"""

from expense_tracker.repositories.base_repository import (
    BaseRepository,
    TransactionRepository,
    UserRepository,
)
from expense_tracker.repositories.conversions import (
    expense_to_record,
    income_to_record,
    record_to_expense,
    record_to_income,
    record_to_user,
    user_to_record,
)
from expense_tracker.repositories.expense_repository import ExpenseRepository
from expense_tracker.repositories.income_repository import IncomeRepository
from expense_tracker.repositories.repository_handler import RepositoryHandler

__all__ = [
    "BaseRepository",
    "ExpenseRepository",
    "IncomeRepository",
    "RepositoryHandler",
    "TransactionRepository",
    "UserRepository",
    "expense_to_record",
    "income_to_record",
    "record_to_expense",
    "record_to_income",
    "record_to_user",
    "user_to_record",
]

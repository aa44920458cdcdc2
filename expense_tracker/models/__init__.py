"""
Data Models Package.

Re-exports the domain entities, storage records and enumerations:
    from expense_tracker.models import Expense, Income, User
    from expense_tracker.models import DatabaseExpense, DatabaseIncome, DatabaseUser
    from expense_tracker.models import Category, IncomeSource
"""

from expense_tracker.models.enums import (
    AmountRange,
    Category,
    DatabaseType,
    IncomeSource,
    NotificationType,
    SortingOption,
    StoreMode,
)
from expense_tracker.models.expense import Expense
from expense_tracker.models.income import Income
from expense_tracker.models.user import User
from expense_tracker.models.transaction import Transaction
from expense_tracker.models.records import (
    DatabaseExpense,
    DatabaseIncome,
    DatabaseUser,
    StorageRecord,
)
from expense_tracker.models.sync_models import FamilySyncResult, SyncReport
from expense_tracker.models.notification import NotificationSetting
from expense_tracker.models.auth_models import AuthErrorCode, AuthResult

__all__ = [
    "AmountRange",
    "AuthErrorCode",
    "AuthResult",
    "Category",
    "DatabaseExpense",
    "DatabaseIncome",
    "DatabaseType",
    "DatabaseUser",
    "Expense",
    "FamilySyncResult",
    "Income",
    "IncomeSource",
    "NotificationSetting",
    "NotificationType",
    "SortingOption",
    "StorageRecord",
    "StoreMode",
    "SyncReport",
    "Transaction",
    "User",
]

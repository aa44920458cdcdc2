"""
Data Source Package.

Storage adapters implementing raw CRUD on storage records:

    in_memory  previews and tests
    local      device-local key/value store (SQLite)
    remote     per-user Supabase document collections
"""

from expense_tracker.data_sources.base import (
    BaseDataSource,
    ExpenseDataSource,
    IncomeDataSource,
    TransactionDataSource,
    UserDataSource,
)
from expense_tracker.data_sources.in_memory import (
    InMemoryExpenseDataSource,
    InMemoryIncomeDataSource,
    InMemoryUserDataSource,
)
from expense_tracker.data_sources.local import (
    LocalExpenseDataSource,
    LocalIncomeDataSource,
    LocalUserDataSource,
    load_collection,
    load_user,
)
from expense_tracker.data_sources.remote import (
    RemoteCollection,
    RemoteExpenseDataSource,
    RemoteIncomeDataSource,
    RemoteUserDataSource,
)

__all__ = [
    "BaseDataSource",
    "ExpenseDataSource",
    "IncomeDataSource",
    "InMemoryExpenseDataSource",
    "InMemoryIncomeDataSource",
    "InMemoryUserDataSource",
    "LocalExpenseDataSource",
    "LocalIncomeDataSource",
    "LocalUserDataSource",
    "RemoteCollection",
    "RemoteExpenseDataSource",
    "RemoteIncomeDataSource",
    "RemoteUserDataSource",
    "TransactionDataSource",
    "UserDataSource",
    "load_collection",
    "load_user",
]

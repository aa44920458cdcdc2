"""
Data Source Contracts.

A data source is the lowest storage adapter: raw CRUD on storage records
against one physical backend.  Three backends implement the same
contracts (in-memory, the local key/value store and the Supabase
document store), and a repository holds exactly one of them, chosen at
construction.

All operations are coroutines and may raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from expense_tracker.errors import DataNotFoundError, DuplicateRecordError
from expense_tracker.models.records import (
    DatabaseExpense,
    DatabaseIncome,
    DatabaseUser,
    StorageRecord,
)

ItemT = TypeVar("ItemT", bound=StorageRecord)


class BaseDataSource(ABC, Generic[ItemT]):
    """Create / update / delete shared by every data source."""

    @abstractmethod
    async def create(self, item: ItemT) -> None:
        """Persist a new item."""

    @abstractmethod
    async def update(self, item: ItemT) -> None:
        """Replace the stored item whose ``id`` equals ``item.id``."""

    @abstractmethod
    async def delete(self, item: ItemT) -> None:
        """Remove the stored item whose ``id`` equals ``item.id``."""


class TransactionDataSource(BaseDataSource[ItemT]):
    """Collection-shaped store (expenses, incomes)."""

    @abstractmethod
    async def read_all(self) -> list[ItemT]:
        """Return every stored item."""

    @abstractmethod
    async def delete_all(self) -> None:
        """Remove every stored item."""


class UserDataSource(BaseDataSource[DatabaseUser]):
    """Singleton store: holds at most one user record."""

    @abstractmethod
    async def read(self) -> Optional[DatabaseUser]:
        """Return the stored user, or ``None``."""


ExpenseDataSource = TransactionDataSource[DatabaseExpense]
IncomeDataSource = TransactionDataSource[DatabaseIncome]


# ---------------------------------------------------------------------------
# List helpers shared by the in-process backends.  Each returns a new list
# so that callers can persist first and swap state only on success.
# ---------------------------------------------------------------------------

def _index_of(items: list[ItemT], item_id: str) -> Optional[int]:
    for index, existing in enumerate(items):
        if existing.id == item_id:
            return index
    return None


def with_added(items: list[ItemT], item: ItemT, entity: str) -> list[ItemT]:
    if _index_of(items, item.id) is not None:
        raise DuplicateRecordError(entity, item.id)
    return [*items, item]


def with_replaced(items: list[ItemT], item: ItemT, entity: str) -> list[ItemT]:
    index = _index_of(items, item.id)
    if index is None:
        raise DataNotFoundError(entity, item.id)
    updated = list(items)
    updated[index] = item
    return updated


def without(items: list[ItemT], item: ItemT, entity: str) -> list[ItemT]:
    index = _index_of(items, item.id)
    if index is None:
        raise DataNotFoundError(entity, item.id)
    return items[:index] + items[index + 1:]


def require_same_user(current: Optional[DatabaseUser], item: DatabaseUser) -> None:
    """Raise ``DataNotFoundError`` unless *current* is the user *item* targets."""
    if current is None or current.id != item.id:
        raise DataNotFoundError("User", item.id)

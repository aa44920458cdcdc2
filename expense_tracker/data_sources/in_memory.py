"""
In-Memory Data Sources.

Process-local storage for previews and tests.  Nothing survives a
restart.  ``update`` and ``delete`` locate items by ``id`` and raise
``DataNotFoundError`` when the id is absent.
"""

from __future__ import annotations

from typing import ClassVar, Iterable, Optional

from expense_tracker.data_sources.base import (
    ItemT,
    TransactionDataSource,
    UserDataSource,
    require_same_user,
    with_added,
    with_replaced,
    without,
)
from expense_tracker.models.records import DatabaseExpense, DatabaseIncome, DatabaseUser


class InMemoryTransactionDataSource(TransactionDataSource[ItemT]):
    """Ordered list held in process memory."""

    ENTITY: ClassVar[str] = "Record"

    def __init__(self, items: Optional[Iterable[ItemT]] = None) -> None:
        self._items: list[ItemT] = list(items or [])

    async def create(self, item: ItemT) -> None:
        self._items = with_added(self._items, item, self.ENTITY)

    async def read_all(self) -> list[ItemT]:
        return list(self._items)

    async def update(self, item: ItemT) -> None:
        self._items = with_replaced(self._items, item, self.ENTITY)

    async def delete(self, item: ItemT) -> None:
        self._items = without(self._items, item, self.ENTITY)

    async def delete_all(self) -> None:
        self._items = []


class InMemoryExpenseDataSource(InMemoryTransactionDataSource[DatabaseExpense]):
    ENTITY = "Expense"


class InMemoryIncomeDataSource(InMemoryTransactionDataSource[DatabaseIncome]):
    ENTITY = "Income"


class InMemoryUserDataSource(UserDataSource):
    """Optional scalar held in process memory."""

    def __init__(self, user: Optional[DatabaseUser] = None) -> None:
        self._user: Optional[DatabaseUser] = user

    async def read(self) -> Optional[DatabaseUser]:
        return self._user

    async def create(self, item: DatabaseUser) -> None:
        # A store holds one user; creating replaces whoever was there.
        self._user = item

    async def update(self, item: DatabaseUser) -> None:
        require_same_user(self._user, item)
        self._user = item

    async def delete(self, item: DatabaseUser) -> None:
        require_same_user(self._user, item)
        self._user = None

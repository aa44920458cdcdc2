"""
Local Key/Value Data Sources.

Device-local durability on top of :class:`KeyValueStore`.  Each entity
family is one serialized blob under a fixed key:

    expenses     JSON array of DatabaseExpense
    incomes      JSON array of DatabaseIncome
    userDetails  single DatabaseUser object

Every mutation rewrites the whole blob.  That is O(n) per write, which is
fine for a personal ledger of a few thousand rows.  Mutations on one data
source are serialized by an ``asyncio.Lock``: the new snapshot is built,
written, and only then swapped into memory, so two concurrent ``create``
calls cannot overwrite each other and a failed write leaves the cached
collection untouched.

Loading is separate from construction.  :func:`load_collection` and
:func:`load_user` raise ``StorageDecodeError`` on a corrupt blob; the
composition root decides to fall back to an empty collection.
"""

from __future__ import annotations

import asyncio
from typing import ClassVar, Iterable, Optional

from pydantic import ValidationError

from expense_tracker.data_sources.base import (
    ItemT,
    TransactionDataSource,
    UserDataSource,
    require_same_user,
    with_added,
    with_replaced,
    without,
)
from expense_tracker.errors import StorageDecodeError
from expense_tracker.key_value_store import KeyValueStore
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.records import (
    DatabaseExpense,
    DatabaseIncome,
    DatabaseUser,
    decode_collection,
    encode_collection,
)

EXPENSES_KEY: str = "expenses"
INCOMES_KEY: str = "incomes"
USER_DETAILS_KEY: str = "userDetails"


def load_collection(
    store: KeyValueStore, key: str, record_type: type[ItemT],
) -> list[ItemT]:
    """Decode the collection stored under *key*.

    Returns an empty list when the key is absent.

    Raises:
        StorageDecodeError: The stored blob is not a valid collection.
    """
    raw = store.get(key)
    if raw is None:
        return []
    try:
        return decode_collection(raw, record_type)
    except ValidationError as exc:
        raise StorageDecodeError(f"local store key {key!r}", str(exc)) from exc


def load_user(store: KeyValueStore) -> Optional[DatabaseUser]:
    """Decode the user stored under ``userDetails``, if any.

    Raises:
        StorageDecodeError: The stored blob is not a valid user record.
    """
    raw = store.get(USER_DETAILS_KEY)
    if raw is None:
        return None
    try:
        return DatabaseUser.decode(raw)
    except ValidationError as exc:
        raise StorageDecodeError(f"local store key {USER_DETAILS_KEY!r}", str(exc)) from exc


class LocalTransactionDataSource(TransactionDataSource[ItemT]):
    """Whole-collection persistence under one key."""

    KEY: ClassVar[str]
    ENTITY: ClassVar[str]
    RECORD_TYPE: ClassVar[type]

    def __init__(
        self,
        store: KeyValueStore,
        logger: StructuredLogger,
        items: Optional[Iterable[ItemT]] = None,
    ) -> None:
        self._store = store
        self._logger = logger
        self._items: list[ItemT] = list(items or [])
        self._lock = asyncio.Lock()

    async def create(self, item: ItemT) -> None:
        async with self._lock:
            await self._commit(with_added(self._items, item, self.ENTITY))

    async def read_all(self) -> list[ItemT]:
        return list(self._items)

    async def update(self, item: ItemT) -> None:
        async with self._lock:
            await self._commit(with_replaced(self._items, item, self.ENTITY))

    async def delete(self, item: ItemT) -> None:
        async with self._lock:
            await self._commit(without(self._items, item, self.ENTITY))

    async def delete_all(self) -> None:
        async with self._lock:
            await self._commit([])

    async def _commit(self, items: list[ItemT]) -> None:
        blob = encode_collection(items, self.RECORD_TYPE).decode("utf-8")
        await asyncio.to_thread(self._store.set, self.KEY, blob)
        self._items = items
        self._logger.debug("Persisted %d %s record(s).", len(items), self.ENTITY.lower())


class LocalExpenseDataSource(LocalTransactionDataSource[DatabaseExpense]):
    KEY = EXPENSES_KEY
    ENTITY = "Expense"
    RECORD_TYPE = DatabaseExpense


class LocalIncomeDataSource(LocalTransactionDataSource[DatabaseIncome]):
    KEY = INCOMES_KEY
    ENTITY = "Income"
    RECORD_TYPE = DatabaseIncome


class LocalUserDataSource(UserDataSource):
    """Single user object under ``userDetails``; delete removes the key."""

    def __init__(
        self,
        store: KeyValueStore,
        logger: StructuredLogger,
        user: Optional[DatabaseUser] = None,
    ) -> None:
        self._store = store
        self._logger = logger
        self._user: Optional[DatabaseUser] = user
        self._lock = asyncio.Lock()

    async def read(self) -> Optional[DatabaseUser]:
        return self._user

    async def create(self, item: DatabaseUser) -> None:
        async with self._lock:
            await self._commit(item)

    async def update(self, item: DatabaseUser) -> None:
        async with self._lock:
            require_same_user(self._user, item)
            await self._commit(item)

    async def delete(self, item: DatabaseUser) -> None:
        async with self._lock:
            require_same_user(self._user, item)
            await self._commit(None)

    async def _commit(self, user: Optional[DatabaseUser]) -> None:
        if user is None:
            await asyncio.to_thread(self._store.remove, USER_DETAILS_KEY)
        else:
            await asyncio.to_thread(
                self._store.set, USER_DETAILS_KEY, user.encode().decode("utf-8"),
            )
        self._user = user

"""
Base Repository.

Provides shared infrastructure for all repositories:
- The injected data source (exactly one backend, chosen at construction)
- Logger reference
- Conversion hooks between domain entities and storage records

Repositories never catch backend errors; they propagate unchanged.
"""

from __future__ import annotations

from typing import Callable, Generic, Optional, TypeVar

from expense_tracker.data_sources.base import TransactionDataSource, UserDataSource
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.records import DatabaseUser, StorageRecord
from expense_tracker.models.user import User
from expense_tracker.repositories.conversions import record_to_user, user_to_record

DomainT = TypeVar("DomainT")
RecordT = TypeVar("RecordT", bound=StorageRecord)


class BaseRepository:
    """Base class for all repositories.  Receives dependencies via __init__."""

    ENTITY: str = ""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger = logger


class TransactionRepository(BaseRepository, Generic[DomainT, RecordT]):
    """CRUD on a collection of domain entities.

    Subclasses bind the two conversion functions.
    """

    _to_record: Callable[[DomainT], RecordT]
    _to_domain: Callable[[RecordT], DomainT]

    def __init__(
        self,
        data_source: TransactionDataSource[RecordT],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._data_source = data_source

    @property
    def data_source(self) -> TransactionDataSource[RecordT]:
        return self._data_source

    async def create(self, item: DomainT) -> None:
        await self._data_source.create(self._to_record(item))

    async def read_all(self) -> list[DomainT]:
        records = await self._data_source.read_all()
        return [self._to_domain(record) for record in records]

    async def update(self, item: DomainT) -> None:
        await self._data_source.update(self._to_record(item))

    async def delete(self, item: DomainT) -> None:
        await self._data_source.delete(self._to_record(item))

    async def delete_all(self) -> None:
        await self._data_source.delete_all()
        self._logger.debug("Deleted all %s records.", self.ENTITY.lower())


class UserRepository(BaseRepository):
    """Singleton user store, in terms of the domain ``User``."""

    ENTITY = "User"

    def __init__(self, data_source: UserDataSource, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._data_source = data_source

    @property
    def data_source(self) -> UserDataSource:
        return self._data_source

    async def create(self, user: User) -> None:
        await self._data_source.create(user_to_record(user))

    async def read(self) -> Optional[User]:
        record: Optional[DatabaseUser] = await self._data_source.read()
        return record_to_user(record) if record is not None else None

    async def update(self, user: User) -> None:
        await self._data_source.update(user_to_record(user))

    async def delete(self, user: User) -> None:
        await self._data_source.delete(user_to_record(user))

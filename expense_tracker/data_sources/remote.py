"""
Remote Document Data Sources (Supabase).

Cloud durability for a signed-in user.  The document namespace

    users/{userId}/expenses
    users/{userId}/incomes
    users/{userId}/user_details

is laid onto one Supabase table per family.  Each row is a "document":
a server-generated ``doc_id`` primary key, the owning ``user_id``, and the
storage record's wire fields verbatim::

    create table expenses (
        doc_id  uuid primary key default gen_random_uuid(),
        user_id text not null,
        id      text not null,
        name    text not null,
        amount  double precision not null,
        date    text not null,
        type    text not null,
        note    text not null default ''
    );
    -- incomes:      doc_id, user_id, id, amount, date, source, note
    -- user_details: doc_id, user_id, id, email, "firstName", "lastName"

The record ``id`` is logically unique but not a key: ``update`` and
``delete`` look up every document whose ``id`` matches and mutate each
one.  A missing target is not an error here.

Documents are encoded by serializing the record to JSON bytes and parsing
those bytes back into a generic dict, so the record's own field mapping is
the only one.  A decode failure on read raises ``StorageDecodeError``:
malformed cloud data is surfaced, never silently dropped.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar, Optional

from pydantic import ValidationError
from supabase import AsyncClient

from expense_tracker.data_sources.base import ItemT, TransactionDataSource, UserDataSource
from expense_tracker.errors import InvalidDataError, StorageDecodeError
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.records import (
    DatabaseExpense,
    DatabaseIncome,
    DatabaseUser,
    StorageRecord,
)

EXPENSES_COLLECTION: str = "expenses"
INCOMES_COLLECTION: str = "incomes"
USER_DETAILS_COLLECTION: str = "user_details"


def to_document(record: StorageRecord) -> dict[str, Any]:
    """Encode *record* as a wire dictionary.

    Raises:
        InvalidDataError: The record could not be serialized to a JSON object.
    """
    try:
        data = json.loads(record.encode())
    except (ValueError, TypeError) as exc:
        raise InvalidDataError(f"Could not encode {type(record).__name__}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidDataError(f"{type(record).__name__} did not encode to an object.")
    return data


class RemoteCollection:
    """One user's sub-collection, backed by a Supabase table.

    Parameters
    ----------
    client:
        Connected async Supabase client.
    user_id:
        Owner of the namespace (authentication provider id).
    name:
        Collection / table name.
    """

    def __init__(self, client: AsyncClient, user_id: str, name: str) -> None:
        self._client = client
        self._user_id = user_id
        self._name = name

    @property
    def path(self) -> str:
        return f"users/{self._user_id}/{self._name}"

    async def get_documents(self) -> list[dict[str, Any]]:
        response = await (
            self._client.table(self._name)
            .select("*")
            .eq("user_id", self._user_id)
            .execute()
        )
        return list(response.data or [])

    async def find_document_ids(self, record_id: str) -> list[str]:
        response = await (
            self._client.table(self._name)
            .select("doc_id")
            .eq("user_id", self._user_id)
            .eq("id", record_id)
            .execute()
        )
        return [row["doc_id"] for row in response.data or []]

    async def add_document(self, data: dict[str, Any]) -> None:
        await self._client.table(self._name).insert(
            {**data, "user_id": self._user_id}
        ).execute()

    async def update_document(self, doc_id: str, data: dict[str, Any]) -> None:
        await (
            self._client.table(self._name)
            .update(data)
            .eq("user_id", self._user_id)
            .eq("doc_id", doc_id)
            .execute()
        )

    async def delete_document(self, doc_id: str) -> None:
        await (
            self._client.table(self._name)
            .delete()
            .eq("user_id", self._user_id)
            .eq("doc_id", doc_id)
            .execute()
        )

    async def delete_all_documents(self) -> None:
        await (
            self._client.table(self._name)
            .delete()
            .eq("user_id", self._user_id)
            .execute()
        )


class _RemoteDocuments:
    """Create/update/delete by record id, shared by every remote source."""

    COLLECTION: ClassVar[str]
    RECORD_TYPE: ClassVar[type]

    def __init__(self, client: AsyncClient, user_id: str, logger: StructuredLogger) -> None:
        self._collection = RemoteCollection(client, user_id, self.COLLECTION)
        self._logger = logger.bind(collection=self._collection.path)

    @property
    def path(self) -> str:
        return self._collection.path

    async def _add(self, item: StorageRecord) -> None:
        await self._collection.add_document(to_document(item))

    async def _update_matching(self, item: StorageRecord) -> None:
        doc_ids = await self._collection.find_document_ids(item.id)
        data = to_document(item)
        if not doc_ids:
            self._logger.debug("No document with id %s to update.", item.id)
        for doc_id in doc_ids:
            await self._collection.update_document(doc_id, data)

    async def _delete_matching(self, item: StorageRecord) -> None:
        doc_ids = await self._collection.find_document_ids(item.id)
        if len(doc_ids) > 1:
            self._logger.warning(
                "Found %d documents with id %s; deleting all of them.",
                len(doc_ids), item.id,
            )
        for doc_id in doc_ids:
            await self._collection.delete_document(doc_id)

    def _decode(self, document: dict[str, Any]) -> Any:
        try:
            return self.RECORD_TYPE.model_validate(document)
        except ValidationError as exc:
            raise StorageDecodeError(self.path, str(exc)) from exc


class RemoteTransactionDataSource(_RemoteDocuments, TransactionDataSource[ItemT]):
    """Collection-shaped remote store."""

    async def create(self, item: ItemT) -> None:
        await self._add(item)

    async def read_all(self) -> list[ItemT]:
        documents = await self._collection.get_documents()
        return [self._decode(document) for document in documents]

    async def update(self, item: ItemT) -> None:
        await self._update_matching(item)

    async def delete(self, item: ItemT) -> None:
        await self._delete_matching(item)

    async def delete_all(self) -> None:
        await self._collection.delete_all_documents()


class RemoteExpenseDataSource(RemoteTransactionDataSource[DatabaseExpense]):
    COLLECTION = EXPENSES_COLLECTION
    RECORD_TYPE = DatabaseExpense


class RemoteIncomeDataSource(RemoteTransactionDataSource[DatabaseIncome]):
    COLLECTION = INCOMES_COLLECTION
    RECORD_TYPE = DatabaseIncome


class RemoteUserDataSource(_RemoteDocuments, UserDataSource):
    """``user_details`` sub-collection; the first document is the user."""

    COLLECTION = USER_DETAILS_COLLECTION
    RECORD_TYPE = DatabaseUser

    async def read(self) -> Optional[DatabaseUser]:
        documents = await self._collection.get_documents()
        if not documents:
            return None
        return self._decode(documents[0])

    async def create(self, item: DatabaseUser) -> None:
        await self._add(item)

    async def update(self, item: DatabaseUser) -> None:
        await self._update_matching(item)

    async def delete(self, item: DatabaseUser) -> None:
        await self._delete_matching(item)

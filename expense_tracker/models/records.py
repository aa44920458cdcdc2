"""
Storage Records.

Flat, string-keyed persistence representations of the domain entities.
They keep ``category`` / ``source`` / ``date`` as raw strings
so that decoding never fails on a value the current enums do not know:
an older or newer client can write such a value without corrupting the
record.  Promotion to a domain entity (see the repositories) is where
unknown values resolve to ``OTHER``.

Field names on the wire are part of the storage contract and must not be
renamed without a migration.  ``DatabaseExpense.category`` is written as
``"type"``, and ``DatabaseUser`` uses camelCase names.

Example::

    record = DatabaseExpense(name="Lunch", amount=12.5, date="2025-04-01",
                             category="Food", note="")
    payload = record.encode()          # b'{"id": ..., "type": "Food", ...}'
    DatabaseExpense.decode(payload) == record   # True
"""

from __future__ import annotations

from typing import Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

DATE_FORMAT: str = "%Y-%m-%d"

RecordT = TypeVar("RecordT", bound="StorageRecord")


def _new_record_id() -> str:
    return str(uuid4()).upper()


class StorageRecord(BaseModel):
    """Common JSON codec for every storage record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=_new_record_id)

    def encode(self) -> bytes:
        """Serialize to JSON bytes using the wire field names."""
        return self.model_dump_json(by_alias=True).encode("utf-8")

    def to_wire(self) -> dict[str, object]:
        """Return the record as a plain dict keyed by wire field names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def decode(cls: type[RecordT], data: bytes | str) -> RecordT:
        """Parse JSON produced by :meth:`encode`.

        Raises ``pydantic.ValidationError`` on malformed input.
        """
        return cls.model_validate_json(data)


class DatabaseExpense(StorageRecord):
    name: str
    amount: float
    date: str
    category: str = Field(alias="type")
    note: str = ""


class DatabaseIncome(StorageRecord):
    amount: float
    date: str
    source: str
    note: str = ""


class DatabaseUser(StorageRecord):
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel,
    )

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


def encode_collection(records: list[RecordT], record_type: type[RecordT]) -> bytes:
    """Serialize a whole collection as one JSON array."""
    return TypeAdapter(list[record_type]).dump_json(records, by_alias=True)


def decode_collection(data: bytes | str, record_type: type[RecordT]) -> list[RecordT]:
    """Parse a JSON array written by :func:`encode_collection`.

    Raises ``pydantic.ValidationError`` on malformed input.
    """
    return TypeAdapter(list[record_type]).validate_json(data)

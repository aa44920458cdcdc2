"""
Session State Persistence.

Remembers, across restarts, which store the app was running against and
whether a user was signed in.  Both values live in the
:class:`KeyValueStore` beside the local data:

    DatabaseType  "InMemory" | "Local" | "Remote-<userId>"
    IsSignedIn    "true" | "false"
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from expense_tracker.key_value_store import KeyValueStore
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.enums import DatabaseType
from expense_tracker.services.base_service import BaseService

DATABASE_TYPE_KEY: str = "DatabaseType"
IS_SIGNED_IN_KEY: str = "IsSignedIn"

_REMOTE_PREFIX: str = f"{DatabaseType.REMOTE.value}-"


class StoredDatabaseType(BaseModel):
    """Decoded ``DatabaseType`` value."""

    model_config = ConfigDict(frozen=True)

    type: DatabaseType
    user_id: Optional[str] = None

    def encode(self) -> str:
        if self.type == DatabaseType.REMOTE:
            return f"{_REMOTE_PREFIX}{self.user_id or ''}"
        return self.type.value

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional[StoredDatabaseType]:
        """Decode a stored value; ``None`` when absent or unrecognised."""
        if raw is None:
            return None
        if raw.startswith(_REMOTE_PREFIX) and len(raw) > len(_REMOTE_PREFIX):
            return cls(type=DatabaseType.REMOTE, user_id=raw[len(_REMOTE_PREFIX):])
        if raw in (DatabaseType.IN_MEMORY.value, DatabaseType.LOCAL.value):
            return cls(type=DatabaseType(raw))
        return None


class SessionStateStore(BaseService):
    """Reads and writes the persisted session flags."""

    def __init__(self, store: KeyValueStore, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._store = store

    @property
    def database_type(self) -> StoredDatabaseType:
        """The last active store.  Defaults to ``Local``."""
        raw = self._store.get(DATABASE_TYPE_KEY)
        parsed = StoredDatabaseType.parse(raw)
        if parsed is None:
            if raw is not None:
                self._logger.warning("Ignoring unrecognised %s value %r.", DATABASE_TYPE_KEY, raw)
            return StoredDatabaseType(type=DatabaseType.LOCAL)
        return parsed

    @property
    def is_signed_in(self) -> bool:
        return self._store.get_bool(IS_SIGNED_IN_KEY)

    def set_database_type(self, db_type: DatabaseType, user_id: Optional[str] = None) -> None:
        if db_type == DatabaseType.REMOTE and not user_id:
            raise ValueError("A remote database type requires a user id.")
        value = StoredDatabaseType(type=db_type, user_id=user_id)
        self._store.set(DATABASE_TYPE_KEY, value.encode())

    def set_signed_in(self, signed_in: bool) -> None:
        self._store.set_bool(IS_SIGNED_IN_KEY, signed_in)

    def mark_signed_in(self, user_id: str) -> None:
        self.set_database_type(DatabaseType.REMOTE, user_id)
        self.set_signed_in(True)

    def mark_signed_out(self) -> None:
        self.set_database_type(DatabaseType.LOCAL)
        self.set_signed_in(False)

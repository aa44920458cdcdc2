"""
Error Taxonomy.

The data-access layer only ever raises the exceptions below on its own
account.  Backend exceptions (``sqlite3.Error``, PostgREST / HTTP errors
from the Supabase client) propagate unchanged through data sources,
repositories, the repository handler and the ``DatabaseManager``.
"""

from __future__ import annotations


class ExpenseTrackerError(Exception):
    """Base class for errors raised by the expense tracker core."""


class DataNotFoundError(ExpenseTrackerError):
    """An update or delete targeted an id that is absent from the store."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} with id {entity_id!r} was not found.")
        self.entity = entity
        self.entity_id = entity_id


class InvalidDataError(ExpenseTrackerError):
    """A record could not be encoded for a remote write.

    Indicates a schema or programming bug, not a user-recoverable state.
    """


class StorageDecodeError(ExpenseTrackerError):
    """Persisted data could not be decoded into a storage record."""

    def __init__(self, source: str, detail: str) -> None:
        super().__init__(f"Could not decode data from {source}: {detail}")
        self.source = source
        self.detail = detail


class AuthenticationError(ExpenseTrackerError):
    """Generic failure reported by the authentication provider."""


class SessionExpiredError(AuthenticationError):
    """The operation requires the user to re-authenticate first."""

    def __init__(self, message: str = "Your session has expired. Please sign in again.") -> None:
        super().__init__(message)


class DuplicateRecordError(ExpenseTrackerError):
    """A create targeted an id that already exists in a local collection."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} with id {entity_id!r} already exists.")
        self.entity = entity
        self.entity_id = entity_id

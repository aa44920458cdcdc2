"""
Shared fixtures and fakes.

No test talks to the network: the Supabase client, the authenticator and
the notification center are replaced by the in-process fakes below.
"""

import os

# Console-only logging for the whole test run; read when AppConfig loads.
os.environ["LOG_FILE"] = ""

import itertools
from types import SimpleNamespace
from typing import Any, Optional
from uuid import uuid4

import pytest

from expense_tracker.data_sources.in_memory import InMemoryExpenseDataSource
from expense_tracker.database import ConnectionManager
from expense_tracker.errors import AuthenticationError
from expense_tracker.key_value_store import KeyValueStore
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.records import DatabaseExpense
from expense_tracker.models.user import User
from expense_tracker.schema import initialize_schema

_logger_ids = itertools.count()


# ---------------------------------------------------------------------------
# Supabase fake
# ---------------------------------------------------------------------------

class FakeQuery:
    """Chainable stand-in for a PostgREST request builder."""

    def __init__(self, client: "FakeSupabaseClient", table: str) -> None:
        self._client = client
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._payload: Optional[dict[str, Any]] = None
        self._filters: list[tuple[str, Any]] = []

    def select(self, columns: str = "*") -> "FakeQuery":
        self._op = "select"
        self._columns = columns
        return self

    def insert(self, payload: dict[str, Any]) -> "FakeQuery":
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self._op = "update"
        self._payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    async def execute(self) -> SimpleNamespace:
        self._client.calls.append((self._table, self._op))
        if self._client.offline:
            raise ConnectionError("network is unreachable")
        failure = self._client.failures.get((self._table, self._op))
        if failure is not None:
            raise failure

        rows = self._client.tables.setdefault(self._table, [])
        matches = [row for row in rows if all(row.get(c) == v for c, v in self._filters)]

        if self._op == "select":
            if self._columns == "*":
                return SimpleNamespace(data=[dict(row) for row in matches])
            wanted = [c.strip() for c in self._columns.split(",")]
            return SimpleNamespace(data=[{c: row.get(c) for c in wanted} for row in matches])
        if self._op == "insert":
            row = {"doc_id": str(uuid4()), **(self._payload or {})}
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])
        if self._op == "update":
            for row in matches:
                row.update(self._payload or {})
            return SimpleNamespace(data=[dict(row) for row in matches])
        for row in matches:
            rows.remove(row)
        return SimpleNamespace(data=[dict(row) for row in matches])


class FakeSupabaseClient:
    """Tables are plain lists of row dicts keyed by table name."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.offline = False

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, table: str, user_id: str) -> list[dict[str, Any]]:
        return [row for row in self.tables.get(table, []) if row.get("user_id") == user_id]


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------

class FakeAuthenticator:
    """Email/password accounts held in a dict."""

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, User]] = {}
        self.signed_in: Optional[User] = None
        self.fail_with: Optional[Exception] = None
        self.sign_out_calls = 0
        self.updated: dict[str, str] = {}

    def add_account(self, email: str, password: str, user: User) -> None:
        self.accounts[email] = (password, user)

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def current_user(self) -> Optional[User]:
        self._check_failure()
        return self.signed_in

    async def sign_in(self, email: str, password: str) -> User:
        self._check_failure()
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationError("invalid_credentials: Invalid login credentials")
        self.signed_in = account[1]
        return account[1]

    async def sign_up(self, email: str, password: str, first_name: str, last_name: str) -> User:
        self._check_failure()
        if email in self.accounts:
            raise AuthenticationError("user_already_exists: User already registered")
        user = User(id=f"uid-{len(self.accounts) + 1}", email=email)
        self.accounts[email] = (password, user)
        self.signed_in = user
        return user

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self._check_failure()
        self.signed_in = None

    async def sign_in_with_provider(self, provider: str, id_token: str) -> User:
        self._check_failure()
        user = User(id=f"{provider}-{id_token}", email=f"{id_token}@{provider}.example")
        self.signed_in = user
        return user

    async def update_email(self, email: str) -> None:
        self._check_failure()
        self.updated["email"] = email

    async def update_password(self, password: str) -> None:
        self._check_failure()
        self.updated["password"] = password

    async def reauthenticate(self, email: str, password: str) -> None:
        await self.sign_in(email, password)


class FakeNotificationCenter:
    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self.scheduled: Optional[tuple[int, int]] = None
        self.cancelled = 0

    async def request_permission(self) -> bool:
        return self.granted

    async def schedule_daily(self, hour: int, minute: int) -> None:
        self.scheduled = (hour, minute)

    async def cancel_daily(self) -> None:
        self.cancelled += 1
        self.scheduled = None


class FlakyExpenseDataSource(InMemoryExpenseDataSource):
    """In-memory expenses whose ``create`` fails for chosen ids."""

    def __init__(self, items=None, failing_ids: frozenset[str] = frozenset()) -> None:
        super().__init__(items)
        self.failing_ids = failing_ids

    async def create(self, item: DatabaseExpense) -> None:
        if item.id in self.failing_ids:
            raise ConnectionError(f"write of {item.id} timed out")
        await super().create(item)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name=f"expense_tracker.tests.{next(_logger_ids)}", log_file="")


@pytest.fixture
def connections(tmp_path, logger):
    manager = ConnectionManager(
        supabase_url="",
        supabase_key="",
        sqlite_path=tmp_path / "local.db",
        logger=logger,
    )
    yield manager
    manager.close()


@pytest.fixture
def kv_store(connections, logger) -> KeyValueStore:
    initialize_schema(connections.sqlite, logger)
    return KeyValueStore(connections, logger)


@pytest.fixture
def supabase() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def authenticator() -> FakeAuthenticator:
    return FakeAuthenticator()


@pytest.fixture
def notification_center() -> FakeNotificationCenter:
    return FakeNotificationCenter()

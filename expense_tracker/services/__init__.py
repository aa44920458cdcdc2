"""
Business Logic Services Package.

Contains the store orchestrator, the account flows, session state,
the reminder manager and the insight helpers.

The ``create_services()`` factory wires every data source, repository and
service together, returning a typed dict that the application layer can
consume without knowing the internal dependency graph.  The
``build_*_handler`` helpers construct one "store" each.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional, TypedDict, TypeVar

from supabase import AsyncClient

from expense_tracker.config import AppConfig
from expense_tracker.data_sources import fixtures
from expense_tracker.data_sources.in_memory import (
    InMemoryExpenseDataSource,
    InMemoryIncomeDataSource,
    InMemoryUserDataSource,
)
from expense_tracker.data_sources.local import (
    EXPENSES_KEY,
    INCOMES_KEY,
    LocalExpenseDataSource,
    LocalIncomeDataSource,
    LocalUserDataSource,
    load_collection,
    load_user,
)
from expense_tracker.data_sources.remote import (
    RemoteExpenseDataSource,
    RemoteIncomeDataSource,
    RemoteUserDataSource,
)
from expense_tracker.database import ConnectionManager
from expense_tracker.errors import StorageDecodeError
from expense_tracker.key_value_store import KeyValueStore
from expense_tracker.logger import StructuredLogger, get_logger
from expense_tracker.models.enums import DatabaseType
from expense_tracker.models.records import DatabaseExpense, DatabaseIncome
from expense_tracker.repositories.base_repository import UserRepository
from expense_tracker.repositories.expense_repository import ExpenseRepository
from expense_tracker.repositories.income_repository import IncomeRepository
from expense_tracker.repositories.repository_handler import RepositoryHandler
from expense_tracker.schema import initialize_schema
from expense_tracker.services.account_service import AccountService
from expense_tracker.services.authenticator import Authenticator, SupabaseAuthenticator
from expense_tracker.services.database_manager import DatabaseManager
from expense_tracker.services.notification_manager import NotificationCenter, NotificationManager
from expense_tracker.services.session_state import SessionStateStore

T = TypeVar("T")


class ServiceContainer(TypedDict, total=False):
    """Typed container for all application services.

    ``account_service`` is ``None`` when no authenticator is available
    (Supabase not configured and none injected).
    """

    # --- Infrastructure ---
    key_value_store: KeyValueStore
    session_state: SessionStateStore

    # --- Core ---
    database_manager: DatabaseManager
    notification_manager: NotificationManager
    account_service: Optional[AccountService]


# ----------------------------------------------------------------------
# Store builders
# ----------------------------------------------------------------------

def _load_or_empty(load: Callable[[], T], fallback: T, label: str, logger: StructuredLogger) -> T:
    """Coerce a corrupt local blob into an empty value, loudly."""
    try:
        return load()
    except StorageDecodeError as exc:
        logger.warning(
            "Local %s data is unreadable; starting empty: %s", label, exc,
            extra={"event": "LOCAL_DECODE_FAILED", "key": label},
        )
        return fallback


def build_local_handler(store: KeyValueStore, logger: StructuredLogger) -> RepositoryHandler:
    """Handler over the device-local key/value store.

    Each family is loaded once here; an undecodable blob is logged and
    replaced by an empty collection (it is overwritten on the next write).
    """
    expenses = _load_or_empty(
        lambda: load_collection(store, EXPENSES_KEY, DatabaseExpense), [], EXPENSES_KEY, logger,
    )
    incomes = _load_or_empty(
        lambda: load_collection(store, INCOMES_KEY, DatabaseIncome), [], INCOMES_KEY, logger,
    )
    user = _load_or_empty(lambda: load_user(store), None, "userDetails", logger)

    return RepositoryHandler(
        expenses=ExpenseRepository(LocalExpenseDataSource(store, logger, expenses), logger),
        incomes=IncomeRepository(LocalIncomeDataSource(store, logger, incomes), logger),
        user=UserRepository(LocalUserDataSource(store, logger, user), logger),
        name="local",
    )


def build_in_memory_handler(
    seed: bool = False,
    today: Optional[dt.date] = None,
    logger: Optional[StructuredLogger] = None,
) -> RepositoryHandler:
    """Process-local handler, optionally seeded with the sample records."""
    logger = logger or get_logger("data_sources")
    expenses = (
        fixtures.sample_expenses(today) + fixtures.previous_month_expenses(today) if seed else []
    )
    incomes = fixtures.sample_incomes(today) if seed else []
    user = fixtures.sample_user() if seed else None

    return RepositoryHandler(
        expenses=ExpenseRepository(InMemoryExpenseDataSource(expenses), logger),
        incomes=IncomeRepository(InMemoryIncomeDataSource(incomes), logger),
        user=UserRepository(InMemoryUserDataSource(user), logger),
        name="in_memory",
    )


def build_remote_handler(
    client: AsyncClient,
    user_id: str,
    logger: Optional[StructuredLogger] = None,
) -> RepositoryHandler:
    """Handler over ``users/{user_id}/...`` in the Supabase document store."""
    logger = logger or get_logger("data_sources")
    return RepositoryHandler(
        expenses=ExpenseRepository(RemoteExpenseDataSource(client, user_id, logger), logger),
        incomes=IncomeRepository(RemoteIncomeDataSource(client, user_id, logger), logger),
        user=UserRepository(RemoteUserDataSource(client, user_id, logger), logger),
        name="remote",
    )


# ----------------------------------------------------------------------
# Composition root
# ----------------------------------------------------------------------

def create_services(
    connections: ConnectionManager,
    config: AppConfig,
    authenticator: Optional[Authenticator] = None,
    notification_center: Optional[NotificationCenter] = None,
) -> ServiceContainer:
    """
    Wire all stores and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup, after
    ``ConnectionManager.connect_remote()``, and passes the returned dict
    to the presentation layer.

    Args:
        connections: Open SQLite connection and, when configured, Supabase.
        config: Application configuration.
        authenticator: Identity provider.  Defaults to Supabase auth when
            the Supabase client is connected.
        notification_center: Platform notification scheduler.  Required
            for ``notification_manager`` to be present.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Infrastructure
    # ------------------------------------------------------------------
    initialize_schema(connections.sqlite, logger)
    key_value_store = KeyValueStore(connections, logger)
    session_state = SessionStateStore(key_value_store, logger)

    # ------------------------------------------------------------------
    # 2. Local store + orchestrator
    # ------------------------------------------------------------------
    if session_state.database_type.type == DatabaseType.IN_MEMORY:
        local_handler = build_in_memory_handler(seed=True, logger=logger)
    else:
        local_handler = build_local_handler(key_value_store, logger)
    database_manager = DatabaseManager(local_handler=local_handler, logger=logger)

    # ------------------------------------------------------------------
    # 3. Account flows (need an identity provider)
    # ------------------------------------------------------------------
    if authenticator is None and connections.is_online:
        authenticator = SupabaseAuthenticator(connections.supabase, logger)

    account_service: Optional[AccountService] = None
    if authenticator is not None:
        account_service = AccountService(
            authenticator=authenticator,
            database_manager=database_manager,
            session_state=session_state,
            remote_handler_factory=lambda user_id: build_remote_handler(
                connections.supabase, user_id, logger,
            ),
            logger=logger,
        )
    else:
        logger.warning("No authenticator available; sign-in is disabled.")

    container = ServiceContainer(
        key_value_store=key_value_store,
        session_state=session_state,
        database_manager=database_manager,
        account_service=account_service,
    )

    # ------------------------------------------------------------------
    # 4. Reminders
    # ------------------------------------------------------------------
    if notification_center is not None:
        container["notification_manager"] = NotificationManager(
            center=notification_center,
            store=key_value_store,
            config=config,
            logger=logger,
        )

    return container


__all__ = [
    "ServiceContainer",
    "build_in_memory_handler",
    "build_local_handler",
    "build_remote_handler",
    "create_services",
]

"""
Database Manager (Sync Orchestrator).

Owns the local repository handler and, while a user is signed in, a
remote one.  Two modes:

    LOCAL_ONLY  every call goes to the local handler
    LINKED      reads and writes are satisfied by the remote handler;
                the local handler keeps a mirror for offline display

Mode transitions (:meth:`link`, :meth:`unlink`, :meth:`sync`) form one
critical section guarded by a single ``asyncio.Lock``: a second sign-in
or sign-out waits for an in-flight merge to finish.

Merge policy
------------
A merge pass runs per entity family (expenses, incomes, user details):

1. push every local record whose id the remote store lacks;
2. pull every remote record whose id the local store lacks.

Presence is decided by id only and the merge never overwrites an existing
record, so a second pass over reconciled stores writes nothing.  When
the same id exists on both sides with different content, the remote copy
is what linked-mode reads return ("remote wins").

User details are reconciled separately: an existing remote user replaces
the local one; otherwise the signed-in identity (completed with any
names held locally) is written to both sides.

A failure on a single record is logged at WARNING, counted in the
family's ``failed`` total and the batch continues.  Errors while reading
either store abort the pass and propagate.

Routing in linked mode
----------------------
* Reads go to remote.  A transport failure (anything that is not an
  ``ExpenseTrackerError``) is logged and the local copy is returned.
* Writes go to remote first and propagate its errors, leaving local
  untouched.  On success the write is mirrored into local; a failed
  mirror is logged, never raised.
* A create whose id the remote store already holds raises
  ``DuplicateRecordError`` and an update whose id it lacks raises
  ``DataNotFoundError``, exactly as in local-only mode.  Neither store
  is touched in that case.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from expense_tracker.errors import DataNotFoundError, DuplicateRecordError, ExpenseTrackerError
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.enums import StoreMode
from expense_tracker.models.expense import Expense
from expense_tracker.models.income import Income
from expense_tracker.models.sync_models import FamilySyncResult, SyncReport
from expense_tracker.models.user import User
from expense_tracker.repositories.repository_handler import RepositoryHandler
from expense_tracker.services.base_service import BaseService

T = TypeVar("T")


class _Identified(Protocol):
    @property
    def id(self) -> str: ...


ItemT = TypeVar("ItemT", bound=_Identified)


class DatabaseManager(BaseService):
    """Routes data access to the active store and reconciles stores.

    Parameters
    ----------
    local_handler:
        Handler over the device-local store.  Always present.
    logger:
        Structured JSON logger.
    """

    def __init__(self, local_handler: RepositoryHandler, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._local: RepositoryHandler = local_handler
        self._remote: Optional[RepositoryHandler] = None
        self._user: Optional[User] = None
        self._transition_lock: asyncio.Lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def mode(self) -> StoreMode:
        return StoreMode.LOCAL_ONLY if self._remote is None else StoreMode.LINKED

    @property
    def is_linked(self) -> bool:
        return self._remote is not None

    @property
    def local_handler(self) -> RepositoryHandler:
        return self._local

    @property
    def remote_handler(self) -> Optional[RepositoryHandler]:
        return self._remote

    @property
    def linked_user(self) -> Optional[User]:
        """Identity the remote store belongs to, while linked."""
        return self._user

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def link(
        self,
        remote_handler: RepositoryHandler,
        user: User,
        merge: bool = True,
    ) -> SyncReport:
        """Switch to linked mode (sign-in completed).

        With ``merge=True`` the local and remote stores are reconciled
        before the call returns.  If reading either store fails the
        manager stays in local-only mode and the error propagates.
        """
        async with self._transition_lock:
            if self._remote is not None:
                self._logger.info(
                    "Replacing remote store for user %s with user %s.",
                    self._user.id if self._user else "unknown", user.id,
                )

            report = SyncReport()
            if merge:
                try:
                    report = await self._merge(remote_handler, user)
                except Exception:
                    self._remote = None
                    self._user = None
                    self._logger.error("Merge failed; staying in local-only mode.")
                    raise

            self._remote = remote_handler
            self._user = user
            self._logger.info(
                "Linked to remote store.",
                extra={
                    "event": "STORE_LINKED",
                    "user_id": user.id,
                    "changes": report.total_changes,
                    "failed": report.total_failed,
                },
            )
            return report

    async def unlink(self, purge_local: bool = True) -> None:
        """Switch to local-only mode (sign-out).

        With ``purge_local=True`` the local copy of the departing account's
        expenses, incomes and user details is wiped.
        """
        async with self._transition_lock:
            user_id = self._user.id if self._user else None
            self._remote = None
            self._user = None

            if purge_local:
                await self._local.delete_all_expenses()
                await self._local.delete_all_incomes()
                local_user = await self._local.fetch_user()
                if local_user is not None:
                    await self._local.delete_user(local_user)

            self._logger.info(
                "Unlinked remote store.",
                extra={"event": "STORE_UNLINKED", "user_id": user_id, "purged": purge_local},
            )

    async def sync(self) -> SyncReport:
        """Re-run the merge against the linked remote store.

        Returns an empty report in local-only mode.
        """
        async with self._transition_lock:
            if self._remote is None or self._user is None:
                self._logger.debug("sync() called in local-only mode; nothing to do.")
                return SyncReport()
            return await self._merge(self._remote, self._user)

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def fetch_expenses(self) -> list[Expense]:
        return await self._read(
            "fetch_expenses",
            lambda handler: handler.fetch_expenses(),
        )

    async def save_expense(self, expense: Expense) -> None:
        await self._write(
            "save_expense",
            lambda handler: handler.save_expense(expense),
            guard=lambda handler: _require_absent(handler.fetch_expenses, expense, "Expense"),
        )

    async def update_expense(self, expense: Expense) -> None:
        await self._write(
            "update_expense",
            lambda handler: handler.update_expense(expense),
            mirror=lambda handler: _update_or_create(
                handler.update_expense, handler.save_expense, expense,
            ),
            guard=lambda handler: _require_present(handler.fetch_expenses, expense, "Expense"),
        )

    async def delete_expense(self, expense: Expense) -> None:
        await self._write(
            "delete_expense",
            lambda handler: handler.delete_expense(expense),
            mirror=lambda handler: _delete_if_present(handler.delete_expense, expense),
        )

    async def delete_all_expenses(self) -> None:
        await self._write(
            "delete_all_expenses",
            lambda handler: handler.delete_all_expenses(),
        )

    # ------------------------------------------------------------------
    # Incomes
    # ------------------------------------------------------------------

    async def fetch_incomes(self) -> list[Income]:
        return await self._read(
            "fetch_incomes",
            lambda handler: handler.fetch_incomes(),
        )

    async def save_income(self, income: Income) -> None:
        await self._write(
            "save_income",
            lambda handler: handler.save_income(income),
            guard=lambda handler: _require_absent(handler.fetch_incomes, income, "Income"),
        )

    async def update_income(self, income: Income) -> None:
        await self._write(
            "update_income",
            lambda handler: handler.update_income(income),
            mirror=lambda handler: _update_or_create(
                handler.update_income, handler.save_income, income,
            ),
            guard=lambda handler: _require_present(handler.fetch_incomes, income, "Income"),
        )

    async def delete_income(self, income: Income) -> None:
        await self._write(
            "delete_income",
            lambda handler: handler.delete_income(income),
            mirror=lambda handler: _delete_if_present(handler.delete_income, income),
        )

    async def delete_all_incomes(self) -> None:
        await self._write(
            "delete_all_incomes",
            lambda handler: handler.delete_all_incomes(),
        )

    # ------------------------------------------------------------------
    # User details
    # ------------------------------------------------------------------

    async def fetch_user(self) -> Optional[User]:
        return await self._read(
            "fetch_user",
            lambda handler: handler.fetch_user(),
        )

    async def save_user(self, user: User) -> None:
        await self._write(
            "save_user",
            lambda handler: handler.save_user(user),
        )

    async def update_user(self, user: User) -> None:
        await self._write(
            "update_user",
            lambda handler: handler.update_user(user),
            # The local user store is a singleton: create replaces.
            mirror=lambda handler: handler.save_user(user),
        )

    async def delete_user(self, user: User) -> None:
        await self._write(
            "delete_user",
            lambda handler: handler.delete_user(user),
            mirror=lambda handler: _delete_if_present(handler.delete_user, user),
        )

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def _read(
        self,
        operation_name: str,
        op: Callable[[RepositoryHandler], Awaitable[T]],
    ) -> T:
        remote = self._remote
        if remote is None:
            return await op(self._local)

        try:
            return await op(remote)
        except ExpenseTrackerError:
            raise
        except Exception as exc:
            self._logger.warning(
                "Remote store unavailable for %s: %s. Serving local copy.",
                operation_name, exc,
            )
        return await op(self._local)

    async def _write(
        self,
        operation_name: str,
        op: Callable[[RepositoryHandler], Awaitable[None]],
        mirror: Optional[Callable[[RepositoryHandler], Awaitable[None]]] = None,
        guard: Optional[Callable[[RepositoryHandler], Awaitable[None]]] = None,
    ) -> None:
        remote = self._remote
        if remote is None:
            await op(self._local)
            return

        # Remote documents are not keyed by id, so creates and updates are
        # checked against the remote collection before they are sent.
        if guard is not None:
            await guard(remote)
        await op(remote)

        try:
            await (mirror or op)(self._local)
        except Exception as exc:
            self._logger.warning(
                "Local mirror failed for %s: %s", operation_name, exc,
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    async def _merge(self, remote: RepositoryHandler, user: User) -> SyncReport:
        self._logger.info("Starting merge for user %s.", user.id)

        expenses = await self._merge_family(
            "expenses",
            self._local.fetch_expenses,
            remote.fetch_expenses,
            self._local.save_expense,
            remote.save_expense,
        )
        incomes = await self._merge_family(
            "incomes",
            self._local.fetch_incomes,
            remote.fetch_incomes,
            self._local.save_income,
            remote.save_income,
        )
        user_result = await self._merge_user(remote, user)

        report = SyncReport(expenses=expenses, incomes=incomes, user=user_result)
        self._logger.info(
            "Merge finished: %d change(s), %d failure(s).",
            report.total_changes, report.total_failed,
            extra={"event": "SYNC", "user_id": user.id},
        )
        return report

    async def _merge_family(
        self,
        family: str,
        fetch_local: Callable[[], Awaitable[list[ItemT]]],
        fetch_remote: Callable[[], Awaitable[list[ItemT]]],
        save_local: Callable[[ItemT], Awaitable[None]],
        save_remote: Callable[[ItemT], Awaitable[None]],
    ) -> FamilySyncResult:
        local_items = await fetch_local()
        remote_items = await fetch_remote()
        local_ids = {item.id for item in local_items}
        remote_ids = {item.id for item in remote_items}

        pushed = pulled = failed = 0

        for item in local_items:
            if item.id in remote_ids:
                continue
            try:
                await save_remote(item)
                pushed += 1
            except Exception as exc:
                failed += 1
                self._logger.warning(
                    "Failed to push %s record %s: %s", family, item.id, exc,
                    exc_info=True,
                )

        for item in remote_items:
            if item.id in local_ids:
                continue
            try:
                await save_local(item)
                pulled += 1
            except Exception as exc:
                failed += 1
                self._logger.warning(
                    "Failed to pull %s record %s: %s", family, item.id, exc,
                    exc_info=True,
                )

        self._logger.debug(
            "Merged %s: pushed=%d pulled=%d failed=%d", family, pushed, pulled, failed,
        )
        return FamilySyncResult(pushed=pushed, pulled=pulled, failed=failed)

    async def _merge_user(self, remote: RepositoryHandler, user: User) -> FamilySyncResult:
        local_user = await self._local.fetch_user()
        remote_user = await remote.fetch_user()

        if remote_user is not None:
            if remote_user == local_user:
                return FamilySyncResult()
            try:
                await self._local.save_user(remote_user)
            except Exception as exc:
                self._logger.warning(
                    "Failed to pull user details for %s: %s", remote_user.id, exc,
                    exc_info=True,
                )
                return FamilySyncResult(failed=1)
            return FamilySyncResult(pulled=1)

        merged = User(
            id=user.id,
            email=user.email or (local_user.email if local_user else None),
            first_name=user.first_name or (local_user.first_name if local_user else None),
            last_name=user.last_name or (local_user.last_name if local_user else None),
        )
        try:
            await remote.save_user(merged)
        except Exception as exc:
            self._logger.warning(
                "Failed to push user details for %s: %s", merged.id, exc,
                exc_info=True,
            )
            return FamilySyncResult(failed=1)

        if merged != local_user:
            try:
                await self._local.save_user(merged)
            except Exception as exc:
                self._logger.warning(
                    "Failed to store user details locally for %s: %s", merged.id, exc,
                    exc_info=True,
                )
                return FamilySyncResult(pushed=1, failed=1)
        return FamilySyncResult(pushed=1)


async def _require_absent(
    fetch: Callable[[], Awaitable[list[ItemT]]], item: ItemT, entity: str,
) -> None:
    if any(existing.id == item.id for existing in await fetch()):
        raise DuplicateRecordError(entity, item.id)


async def _require_present(
    fetch: Callable[[], Awaitable[list[ItemT]]], item: ItemT, entity: str,
) -> None:
    if not any(existing.id == item.id for existing in await fetch()):
        raise DataNotFoundError(entity, item.id)


async def _update_or_create(
    update: Callable[[T], Awaitable[None]],
    create: Callable[[T], Awaitable[None]],
    item: T,
) -> None:
    """Mirror an update into a store that may not hold the record yet."""
    try:
        await update(item)
    except DataNotFoundError:
        await create(item)


async def _delete_if_present(delete: Callable[[T], Awaitable[None]], item: T) -> None:
    try:
        await delete(item)
    except DataNotFoundError:
        pass  # already absent locally

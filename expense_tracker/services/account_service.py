"""
Account Service.

Single orchestrator for the account flows: sign-in, sign-up, provider
sign-in, sign-out, session restore and profile changes.  It sits between
the presentation layer and the :class:`Authenticator` /
:class:`DatabaseManager` pair.

All public methods return an :class:`AuthResult`; the UI never inspects
raw exceptions.  A ``SessionExpiredError`` from the authenticator is
reported as ``AuthErrorCode.SESSION_EXPIRED`` so callers can prompt for
re-authentication instead of showing a plain error banner.
"""

from __future__ import annotations

from typing import Callable, Optional

from expense_tracker.errors import AuthenticationError, SessionExpiredError
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.auth_models import AUTH_ERROR_MAP, AuthErrorCode, AuthResult
from expense_tracker.models.enums import DatabaseType
from expense_tracker.models.user import User
from expense_tracker.repositories.repository_handler import RepositoryHandler
from expense_tracker.services.authenticator import Authenticator
from expense_tracker.services.base_service import BaseService
from expense_tracker.services.database_manager import DatabaseManager
from expense_tracker.services.session_state import SessionStateStore

RemoteHandlerFactory = Callable[[str], RepositoryHandler]


class AccountService(BaseService):
    """Account flows on top of the authenticator and the store manager.

    Parameters
    ----------
    authenticator:
        Identity provider.
    database_manager:
        Store router; linked on sign-in and unlinked on sign-out.
    session_state:
        Persisted ``DatabaseType`` / ``IsSignedIn`` flags.
    remote_handler_factory:
        Builds the remote repository handler for a user id.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        database_manager: DatabaseManager,
        session_state: SessionStateStore,
        remote_handler_factory: RemoteHandlerFactory,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._auth = authenticator
        self._manager = database_manager
        self._session_state = session_state
        self._remote_handler_factory = remote_handler_factory

    # ==================================================================
    # Sign-in
    # ==================================================================

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password, then link and merge stores."""
        email = email.strip().lower()
        try:
            user = await self._auth.sign_in(email, password)
        except Exception as exc:
            return self._classify_error(exc, "sign_in")
        return await self._complete_sign_in(user)

    async def sign_up(
        self, email: str, password: str, first_name: str, last_name: str,
    ) -> AuthResult:
        """Create an account, then link and merge stores."""
        email = email.strip().lower()
        first_name = first_name.strip()
        last_name = last_name.strip()
        try:
            user = await self._auth.sign_up(email, password, first_name, last_name)
        except Exception as exc:
            return self._classify_error(exc, "sign_up")

        # The provider may not echo the profile back.
        user = user.model_copy(update={
            "first_name": user.first_name or first_name or None,
            "last_name": user.last_name or last_name or None,
        })
        return await self._complete_sign_in(user)

    async def sign_in_with_provider(self, provider: str, id_token: str) -> AuthResult:
        """Authenticate with a third-party identity token (e.g. ``"google"``)."""
        try:
            user = await self._auth.sign_in_with_provider(provider, id_token)
        except Exception as exc:
            return self._classify_error(exc, "sign_in_with_provider")
        return await self._complete_sign_in(user)

    async def _complete_sign_in(self, user: User) -> AuthResult:
        try:
            remote_handler = self._remote_handler_factory(user.id)
            report = await self._manager.link(remote_handler, user)
        except Exception as exc:
            self._logger.error(
                "Signed in as %s but linking the remote store failed: %s", user.id, exc,
                exc_info=True,
                extra={"event": "LINK_FAILED", "user_id": user.id},
            )
            try:
                await self._auth.sign_out()
            except Exception as sign_out_exc:
                self._logger.warning("Rollback sign_out failed: %s", sign_out_exc)
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.NETWORK_ERROR,
                error_message="Your data could not be synced. Check your connection and try again.",
            )

        self._session_state.mark_signed_in(user.id)
        self._logger.info(
            "User signed in: %s", user.email,
            extra={"event": "SIGN_IN", "user_id": user.id},
        )
        return AuthResult(
            success=True,
            user_id=user.id,
            email=user.email,
            sync_report=report,
        )

    # ==================================================================
    # Sign-out / restore
    # ==================================================================

    async def sign_out(self) -> AuthResult:
        """Sign out, unlink the remote store and purge the local copy.

        A provider-side failure is logged and does not stop the local
        cleanup, so sign-out also works offline.
        """
        user = self._manager.linked_user
        try:
            await self._auth.sign_out()
        except Exception as exc:
            self._logger.warning("Server-side sign_out failed: %s", exc)

        await self._manager.unlink(purge_local=True)
        self._session_state.mark_signed_out()

        self._logger.info(
            "User signed out.",
            extra={"event": "SIGN_OUT", "user_id": user.id if user else None},
        )
        return AuthResult(success=True, user_id=user.id if user else None)

    async def restore_session(self) -> AuthResult:
        """Re-link at startup when the stored session is still valid.

        No merge runs: the stores were reconciled when the user signed in.
        """
        stored = self._session_state.database_type
        if stored.type != DatabaseType.REMOTE or not stored.user_id:
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.NOT_SIGNED_IN,
                error_message="No remote session to restore.",
            )

        try:
            user = await self._auth.current_user()
        except Exception as exc:
            return self._classify_error(exc, "restore_session")

        if user is None or user.id != stored.user_id:
            self._logger.info(
                "Stored session for %s is no longer valid; staying local.", stored.user_id,
            )
            # The local mirror still holds that account's data.
            await self._manager.unlink(purge_local=True)
            self._session_state.mark_signed_out()
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.SESSION_EXPIRED,
                error_message=SessionExpiredError().args[0],
            )

        try:
            await self._manager.link(self._remote_handler_factory(user.id), user, merge=False)
        except Exception as exc:
            self._logger.error("Could not restore remote store for %s: %s", user.id, exc)
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.NETWORK_ERROR,
                error_message="Cannot reach the server. Check your internet connection.",
            )
        return AuthResult(success=True, user_id=user.id, email=user.email)

    # ==================================================================
    # Profile
    # ==================================================================

    async def update_email(self, email: str) -> AuthResult:
        """Change the login email and mirror it into the user details."""
        email = email.strip().lower()
        try:
            await self._auth.update_email(email)
            current = await self._manager.fetch_user()
            if current is not None:
                await self._manager.update_user(current.model_copy(update={"email": email}))
        except Exception as exc:
            return self._classify_error(exc, "update_email")
        return AuthResult(success=True, user_id=current.id if current else None, email=email)

    async def update_password(self, password: str) -> AuthResult:
        try:
            await self._auth.update_password(password)
        except Exception as exc:
            return self._classify_error(exc, "update_password")
        return AuthResult(success=True)

    async def reauthenticate(self, email: str, password: str) -> AuthResult:
        try:
            await self._auth.reauthenticate(email.strip().lower(), password)
        except Exception as exc:
            return self._classify_error(exc, "reauthenticate")
        return AuthResult(success=True, email=email.strip().lower())

    async def update_name(self, first_name: str, last_name: str) -> AuthResult:
        """Rename the stored user (remote and local mirror while linked)."""
        try:
            current = await self._manager.fetch_user()
            if current is None:
                return AuthResult(
                    success=False,
                    error_code=AuthErrorCode.NOT_SIGNED_IN,
                    error_message="There is no user profile to update.",
                )
            updated = current.model_copy(update={
                "first_name": first_name.strip() or None,
                "last_name": last_name.strip() or None,
            })
            await self._manager.update_user(updated)
        except Exception as exc:
            return self._classify_error(exc, "update_name")
        return AuthResult(success=True, user_id=updated.id, email=updated.email)

    # ==================================================================
    # Error classification
    # ==================================================================

    def _classify_error(self, exc: Exception, operation: str) -> AuthResult:
        """Map an authenticator or backend exception to an ``AuthResult``."""
        if isinstance(exc, SessionExpiredError):
            self._logger.info(
                "%s requires re-authentication.", operation,
                extra={"event": "SESSION_EXPIRED"},
            )
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.SESSION_EXPIRED,
                error_message=str(exc),
            )

        if isinstance(exc, (ConnectionError, TimeoutError)):
            self._logger.warning("Network error during %s: %s", operation, exc)
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.NETWORK_ERROR,
                error_message="Cannot reach the server. Check your internet connection.",
            )

        if isinstance(exc, AuthenticationError):
            error_str = str(exc).lower()
            for code_key, (error_code, human_message) in AUTH_ERROR_MAP.items():
                if code_key in error_str:
                    self._logger.warning(
                        "Auth error during %s (%s): %s", operation, code_key, exc,
                        extra={"event": "AUTH_FAILED", "error_code": code_key},
                    )
                    return AuthResult(
                        success=False,
                        error_code=error_code,
                        error_message=human_message,
                    )

        self._logger.warning(
            "Unknown error during %s: %s", operation, exc,
            extra={"event": "AUTH_FAILED", "error_code": "unknown"},
        )
        return AuthResult(
            success=False,
            error_code=AuthErrorCode.UNKNOWN_ERROR,
            error_message="An unexpected error occurred. Please try again later.",
        )

"""
Authenticator Collaborator.

The account flows only need a narrow contract from the identity
provider, captured by :class:`Authenticator`.  Every method is a
coroutine and raises:

* ``SessionExpiredError`` when the provider requires a fresh sign-in
  (missing or expired session, reauthentication needed).  Callers must
  show a re-authentication prompt for this case.
* ``AuthenticationError`` for every other provider-reported failure.

Transport errors (``ConnectionError`` / ``TimeoutError``) propagate
unchanged.

:class:`SupabaseAuthenticator` implements the contract on top of the
async Supabase auth client.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from supabase import AsyncClient

from expense_tracker.errors import AuthenticationError, SessionExpiredError
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.user import User


@runtime_checkable
class Authenticator(Protocol):
    """Identity provider as seen by :class:`AccountService`."""

    async def current_user(self) -> Optional[User]: ...

    async def sign_in(self, email: str, password: str) -> User: ...

    async def sign_up(
        self, email: str, password: str, first_name: str, last_name: str,
    ) -> User: ...

    async def sign_out(self) -> None: ...

    async def sign_in_with_provider(self, provider: str, id_token: str) -> User: ...

    async def update_email(self, email: str) -> None: ...

    async def update_password(self, password: str) -> None: ...

    async def reauthenticate(self, email: str, password: str) -> None: ...


# Provider error codes / message fragments that mean "sign in again".
_SESSION_EXPIRED_MARKERS: tuple[str, ...] = (
    "session_not_found",
    "session_expired",
    "auth session missing",
    "refresh_token_not_found",
    "refresh token not found",
    "jwt expired",
    "reauthentication_needed",
    "missing_app_credential",
)


def classify_auth_error(exc: Exception) -> AuthenticationError:
    """Translate a provider exception into the core's error taxonomy."""
    code: str = str(getattr(exc, "code", "") or "")
    message: str = str(getattr(exc, "message", "") or exc)
    haystack = f"{code} {message}".lower()

    if any(marker in haystack for marker in _SESSION_EXPIRED_MARKERS):
        return SessionExpiredError()
    if code:
        return AuthenticationError(f"{code}: {message}")
    return AuthenticationError(message)


def _user_from_response(user: Any) -> User:
    metadata: dict[str, Any] = getattr(user, "user_metadata", None) or {}
    return User(
        id=user.id,
        email=getattr(user, "email", None),
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
    )


class SupabaseAuthenticator:
    """:class:`Authenticator` backed by ``AsyncClient.auth``.

    Parameters
    ----------
    client:
        Connected async Supabase client.
    logger:
        Structured JSON logger.
    """

    def __init__(self, client: AsyncClient, logger: StructuredLogger) -> None:
        self._client = client
        self._logger = logger

    async def current_user(self) -> Optional[User]:
        try:
            session = await self._client.auth.get_session()
        except (ConnectionError, TimeoutError):
            raise
        except Exception as exc:
            raise classify_auth_error(exc) from exc
        if session is None or session.user is None:
            return None
        return _user_from_response(session.user)

    async def sign_in(self, email: str, password: str) -> User:
        try:
            response = await self._client.auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except (ConnectionError, TimeoutError):
            raise
        except Exception as exc:
            raise classify_auth_error(exc) from exc
        return self._require_user(response, "sign_in")

    async def sign_up(
        self, email: str, password: str, first_name: str, last_name: str,
    ) -> User:
        try:
            response = await self._client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {
                    "data": {
                        "first_name": first_name,
                        "last_name": last_name,
                    },
                },
            })
        except (ConnectionError, TimeoutError):
            raise
        except Exception as exc:
            raise classify_auth_error(exc) from exc
        return self._require_user(response, "sign_up")

    async def sign_out(self) -> None:
        try:
            await self._client.auth.sign_out()
        except (ConnectionError, TimeoutError):
            raise
        except Exception as exc:
            raise classify_auth_error(exc) from exc

    async def sign_in_with_provider(self, provider: str, id_token: str) -> User:
        try:
            response = await self._client.auth.sign_in_with_id_token({
                "provider": provider,
                "token": id_token,
            })
        except (ConnectionError, TimeoutError):
            raise
        except Exception as exc:
            raise classify_auth_error(exc) from exc
        return self._require_user(response, "sign_in_with_provider")

    async def update_email(self, email: str) -> None:
        await self._update_user({"email": email})

    async def update_password(self, password: str) -> None:
        await self._update_user({"password": password})

    async def reauthenticate(self, email: str, password: str) -> None:
        await self.sign_in(email, password)

    async def _update_user(self, attributes: dict[str, str]) -> None:
        try:
            await self._client.auth.update_user(attributes)
        except (ConnectionError, TimeoutError):
            raise
        except Exception as exc:
            raise classify_auth_error(exc) from exc

    def _require_user(self, response: Any, operation: str) -> User:
        user = getattr(response, "user", None)
        if user is None:
            self._logger.warning("%s returned no user.", operation)
            raise AuthenticationError(f"{operation} did not return a user.")
        return _user_from_response(user)

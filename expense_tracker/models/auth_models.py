"""
Authentication Result Models.

Pydantic models and enumerations for the contract between
``AccountService`` and the presentation layer.  Every account operation
returns a structured, inspectable result rather than raising into the UI.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel

from expense_tracker.models.sync_models import SyncReport


class AuthErrorCode(StrEnum):
    """Error categories surfaced to the presentation layer.

    ``SESSION_EXPIRED`` must trigger a re-authentication prompt instead of
    a plain error banner.
    """

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_ALREADY_EXISTS = "email_already_exists"
    NETWORK_ERROR = "network_error"
    SESSION_EXPIRED = "session_expired"
    NOT_SIGNED_IN = "not_signed_in"
    UNKNOWN_ERROR = "unknown_error"


# Substrings of provider error codes/messages mapped to result codes.
AUTH_ERROR_MAP: dict[str, tuple[AuthErrorCode, str]] = {
    "invalid_credentials": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "invalid login credentials": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "user_already_exists": (
        AuthErrorCode.EMAIL_ALREADY_EXISTS,
        "An account with this email already exists. Try signing in.",
    ),
    "already registered": (
        AuthErrorCode.EMAIL_ALREADY_EXISTS,
        "An account with this email already exists. Try signing in.",
    ),
}


class AuthResult(BaseModel):
    """Outcome of an account operation."""

    success: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    sync_report: Optional[SyncReport] = None

    @property
    def requires_reauthentication(self) -> bool:
        return self.error_code == AuthErrorCode.SESSION_EXPIRED

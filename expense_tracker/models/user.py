"""
User Model.

``id`` is the identifier issued by the authentication provider.  A store
holds at most one user record at a time.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Represents the signed-in (or last signed-in) account holder."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        """First and last name joined, skipping missing parts."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)

"""
Notification Setting Model.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.enums import NotificationType


class NotificationSetting(BaseModel):
    """A persisted reminder schedule."""

    model_config = ConfigDict(frozen=True)

    type: NotificationType
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)

    @property
    def formatted_time(self) -> str:
        """12-hour clock display, e.g. ``"9:00 PM"``."""
        clock = dt.time(self.hour, self.minute)
        suffix = "AM" if self.hour < 12 else "PM"
        hour_12 = clock.hour % 12 or 12
        return f"{hour_12}:{clock.minute:02d} {suffix}"

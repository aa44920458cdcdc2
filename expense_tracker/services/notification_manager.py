"""
Daily Expense Reminder.

The core does not deliver notifications itself; it drives an injected
:class:`NotificationCenter` and remembers the chosen schedule under the
``DailyExpenseNotification`` key so it can be re-armed at startup.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from expense_tracker.config import AppConfig
from expense_tracker.key_value_store import KeyValueStore
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.enums import NotificationType
from expense_tracker.models.notification import NotificationSetting
from expense_tracker.services.base_service import BaseService

DAILY_EXPENSE_NOTIFICATION_KEY: str = "DailyExpenseNotification"


@runtime_checkable
class NotificationCenter(Protocol):
    """Platform notification scheduler."""

    async def request_permission(self) -> bool: ...

    async def schedule_daily(self, hour: int, minute: int) -> None: ...

    async def cancel_daily(self) -> None: ...


class NotificationManager(BaseService):
    """Enables, disables and restores the daily expense reminder.

    Parameters
    ----------
    center:
        Platform notification scheduler.
    store:
        Key/value store holding the persisted setting.
    config:
        Supplies the default reminder time.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        center: NotificationCenter,
        store: KeyValueStore,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._center = center
        self._store = store
        self._config = config

    @property
    def default_setting(self) -> NotificationSetting:
        return NotificationSetting(
            type=NotificationType.DAILY_EXPENSE,
            hour=self._config.DAILY_REMINDER_HOUR,
            minute=self._config.DAILY_REMINDER_MINUTE,
        )

    def load_setting(self) -> Optional[NotificationSetting]:
        """Return the persisted reminder, or ``None`` when disabled.

        A corrupt value is logged and treated as disabled.
        """
        raw = self._store.get(DAILY_EXPENSE_NOTIFICATION_KEY)
        if raw is None:
            return None
        try:
            return NotificationSetting.model_validate_json(raw)
        except ValidationError as exc:
            self._logger.warning("Discarding unreadable reminder setting: %s", exc)
            return None

    @property
    def is_enabled(self) -> bool:
        return self.load_setting() is not None

    async def enable_daily_reminder(
        self, hour: Optional[int] = None, minute: Optional[int] = None,
    ) -> Optional[NotificationSetting]:
        """Ask for permission, schedule the reminder and persist it.

        Returns the active setting, or ``None`` when permission is denied.
        """
        setting = NotificationSetting(
            type=NotificationType.DAILY_EXPENSE,
            hour=self.default_setting.hour if hour is None else hour,
            minute=self.default_setting.minute if minute is None else minute,
        )

        if not await self._center.request_permission():
            self._logger.info("Notification permission denied; reminder not scheduled.")
            return None

        await self._center.schedule_daily(setting.hour, setting.minute)
        self._store.set(DAILY_EXPENSE_NOTIFICATION_KEY, setting.model_dump_json())
        self._logger.info("Daily reminder scheduled at %s.", setting.formatted_time)
        return setting

    async def disable_daily_reminder(self) -> None:
        await self._center.cancel_daily()
        self._store.remove(DAILY_EXPENSE_NOTIFICATION_KEY)
        self._logger.info("Daily reminder cancelled.")

    async def restore(self) -> Optional[NotificationSetting]:
        """Re-arm a persisted reminder at startup."""
        setting = self.load_setting()
        if setting is not None:
            await self._center.schedule_daily(setting.hour, setting.minute)
        return setting

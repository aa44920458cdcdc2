"""
Tests for persisted session flags and the daily reminder.
"""

import asyncio

import pytest

from expense_tracker.config import AppConfig
from expense_tracker.models import DatabaseType, NotificationSetting, NotificationType
from expense_tracker.services.notification_manager import (
    DAILY_EXPENSE_NOTIFICATION_KEY,
    NotificationManager,
)
from expense_tracker.services.session_state import (
    DATABASE_TYPE_KEY,
    IS_SIGNED_IN_KEY,
    SessionStateStore,
    StoredDatabaseType,
)


class TestSessionState:
    """``DatabaseType`` / ``IsSignedIn`` persistence."""

    def test_defaults_to_local(self, kv_store, logger):
        state = SessionStateStore(kv_store, logger)
        assert state.database_type.type == DatabaseType.LOCAL
        assert not state.is_signed_in

    def test_remote_type_carries_user_id(self, kv_store, logger):
        state = SessionStateStore(kv_store, logger)
        state.mark_signed_in("abc-123")

        assert kv_store.get(DATABASE_TYPE_KEY) == "Remote-abc-123"
        assert kv_store.get(IS_SIGNED_IN_KEY) == "true"
        assert state.database_type == StoredDatabaseType(type=DatabaseType.REMOTE, user_id="abc-123")

    def test_mark_signed_out(self, kv_store, logger):
        state = SessionStateStore(kv_store, logger)
        state.mark_signed_in("abc")
        state.mark_signed_out()
        assert kv_store.get(DATABASE_TYPE_KEY) == "Local"
        assert not state.is_signed_in

    def test_unrecognised_value_falls_back_to_local(self, kv_store, logger):
        kv_store.set(DATABASE_TYPE_KEY, "Cloud")
        assert SessionStateStore(kv_store, logger).database_type.type == DatabaseType.LOCAL

    @pytest.mark.parametrize("raw, expected", [
        ("InMemory", StoredDatabaseType(type=DatabaseType.IN_MEMORY)),
        ("Local", StoredDatabaseType(type=DatabaseType.LOCAL)),
        ("Remote-u1", StoredDatabaseType(type=DatabaseType.REMOTE, user_id="u1")),
        ("Remote-", None),
        (None, None),
    ])
    def test_parse(self, raw, expected):
        assert StoredDatabaseType.parse(raw) == expected

    def test_remote_requires_user_id(self, kv_store, logger):
        with pytest.raises(ValueError):
            SessionStateStore(kv_store, logger).set_database_type(DatabaseType.REMOTE)


class TestNotificationManager:
    """Scheduling goes through the injected center; the setting is persisted."""

    @pytest.fixture
    def manager(self, notification_center, kv_store, logger):
        return NotificationManager(notification_center, kv_store, AppConfig(), logger)

    def test_enable_uses_configured_default(self, manager, notification_center, kv_store):
        setting = asyncio.run(manager.enable_daily_reminder())

        assert notification_center.scheduled == (21, 0)
        assert setting.formatted_time == "9:00 PM"
        assert manager.load_setting() == setting
        assert kv_store.get(DAILY_EXPENSE_NOTIFICATION_KEY) is not None

    def test_permission_denied(self, manager, notification_center):
        notification_center.granted = False

        assert asyncio.run(manager.enable_daily_reminder(8, 30)) is None
        assert notification_center.scheduled is None
        assert not manager.is_enabled

    def test_disable(self, manager, notification_center):
        asyncio.run(manager.enable_daily_reminder(7, 5))
        asyncio.run(manager.disable_daily_reminder())

        assert notification_center.cancelled == 1
        assert manager.load_setting() is None

    def test_restore_rearms_persisted_reminder(self, manager, notification_center, kv_store):
        kv_store.set(
            DAILY_EXPENSE_NOTIFICATION_KEY,
            NotificationSetting(type=NotificationType.DAILY_EXPENSE, hour=0, minute=15).model_dump_json(),
        )

        setting = asyncio.run(manager.restore())

        assert notification_center.scheduled == (0, 15)
        assert setting.formatted_time == "12:15 AM"

    def test_corrupt_setting_is_ignored(self, manager, kv_store):
        kv_store.set(DAILY_EXPENSE_NOTIFICATION_KEY, "{oops")
        assert manager.load_setting() is None

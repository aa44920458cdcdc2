"""
Application Configuration.

Pydantic Settings model for the expense tracker core.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase (cloud store + authentication) ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Local store ---
    LOCAL_DATABASE_PATH: Path = Path("expense_tracker_local.db")

    # --- Logging ---
    LOG_FILE: str = "expense_tracker.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    # --- Daily expense reminder ---
    DAILY_REMINDER_HOUR: int = Field(default=21, ge=0, le=23)
    DAILY_REMINDER_MINUTE: int = Field(default=0, ge=0, le=59)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when the cloud store is not configured.

        Without Supabase credentials the application still works, but
        signing in (and therefore linked mode) is unavailable.
        """
        _log = logging.getLogger("expense_tracker.config")

        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY.get_secret_value():
            _log.warning(
                "Supabase credentials are empty. The app will operate "
                "in local-only mode."
            )

        return self

    @property
    def remote_enabled(self) -> bool:
        """``True`` when both Supabase settings are present."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY.get_secret_value())


_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.

    Prefer direct constructor injection of ``AppConfig`` in new code;
    this factory exists for modules such as the logger that are created
    before the composition root runs.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance

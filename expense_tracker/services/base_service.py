"""
Base Service Class.

Every service receives its collaborators through ``__init__``; this base
only fixes where the injected logger lives.
"""

from __future__ import annotations

from expense_tracker.logger import StructuredLogger


class BaseService:
    """Holds the injected :class:`StructuredLogger` as ``self._logger``."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger

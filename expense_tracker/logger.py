"""
Structured JSON Logging Module.

One JSON object per line, on stdout and (unless ``LOG_FILE`` is empty) in a
rotating log file.  Loggers are injected, never looked up globally; a
logger can carry bound context (for example the remote collection a data
source writes to) that is merged into every entry it emits.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping, Optional, TextIO, Union

JsonScalar = Union[str, int, float, bool, None]


def _json_safe(value: Any) -> JsonScalar:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    """Formats log records as structured JSON objects.

    Each log entry contains:
        - timestamp  (ISO-8601, UTC)
        - level
        - logger_name
        - message
        - extra      (caller-supplied and bound context, JSON scalars kept as-is)
        - exception  (formatted traceback, when ``exc_info`` was given)
    """

    # Standard LogRecord attribute names, computed once.
    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra_fields = {
            key: _json_safe(value)
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if extra_fields:
            entry["extra"] = extra_fields

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


def _file_handler(
    path: str, max_bytes: int, backup_count: int, level: int, formatter: logging.Formatter,
) -> RotatingFileHandler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


class StructuredLogger:
    """Injectable logger.

    Handlers are attached once per logger *name*; constructing the same
    name twice reuses them.  ``log_file=None`` falls back to
    ``AppConfig.LOG_FILE``, and an empty string disables the file.

    Usage::

        log = StructuredLogger(name="expense_tracker")
        log.info("Store linked", extra={"user_id": "abc"})

        remote_log = log.bind(collection="users/abc/expenses")
        remote_log.warning("Duplicate document ids")   # carries collection=...
    """

    def __init__(
        self,
        name: str = "expense_tracker",
        level: int = logging.INFO,
        stream: Union[TextIO, None] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._context: dict[str, Any] = {}

        if self._logger.handlers:
            return

        # Lazy import to avoid circular dependency at module level
        from expense_tracker.config import get_config
        cfg = get_config()

        formatter = JSONFormatter()
        stream_handler = logging.StreamHandler(stream or sys.stdout)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        resolved_log_file = log_file if log_file is not None else cfg.LOG_FILE
        if not resolved_log_file:
            return
        try:
            self._logger.addHandler(_file_handler(
                resolved_log_file,
                max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
                level,
                formatter,
            ))
        except OSError as exc:
            self._logger.warning(
                "Could not create log file '%s': %s. Continuing with console logging only.",
                resolved_log_file, exc,
            )

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying ``logging.Logger`` directly."""
        return self._logger

    @property
    def context(self) -> Mapping[str, Any]:
        return dict(self._context)

    def bind(self, **context: Any) -> "StructuredLogger":
        """Return a logger sharing these handlers with *context* added to every entry."""
        bound = object.__new__(StructuredLogger)
        bound._logger = self._logger
        bound._context = {**self._context, **context}
        return bound

    def _log(self, level: int, msg: str, args: tuple[object, ...], kwargs: dict[str, Any]) -> None:
        if self._context:
            kwargs["extra"] = {**self._context, **(kwargs.get("extra") or {})}
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, args, kwargs)

    def critical(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, args, kwargs)


def get_logger(name: str = "expense_tracker") -> StructuredLogger:
    """Create and return a ``StructuredLogger`` instance with the given *name*."""
    return StructuredLogger(name=name)

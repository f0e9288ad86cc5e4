import json
import logging
import math
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from surfcalc.logger.base import Logger

# LogRecord attributes that are never treated as structured fields
_RESERVED_KEYS = frozenset({
    "args", "asctime", "created", "exc_info", "exc_text", "filename",
    "funcName", "levelname", "levelno", "lineno", "module",
    "msecs", "message", "msg", "name", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "thread",
    "threadName", "taskName",
})


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_KEYS and key != "session_id"
    }


def _json_safe(value: Any) -> Any:
    """Replace NaN and infinities, which analysis results carry, with None."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


class JsonFormatter(logging.Formatter):
    """JSON formatter for logging records"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        session_id = getattr(record, "session_id", None)
        if session_id:
            log_data["session_id"] = str(session_id)

        log_data.update(_extra_fields(record))

        return json.dumps(_json_safe(log_data), default=str, allow_nan=False)


class TextFormatter(logging.Formatter):
    """Text formatter that appends extra kwargs to the message"""

    def format(self, record: logging.LogRecord) -> str:
        s = super().format(record)

        extra_args = _extra_fields(record)
        if extra_args:
            s += " " + " ".join(f"{k}={v}" for k, v in extra_args.items())

        return s


class StructuredLogger(Logger):
    """
    Logger implementation that supports structured JSON logging and file output.
    """

    def __init__(
        self,
        name: str = "surfcalc",
        level: int = logging.INFO,
        log_file: Optional[str] = None,
        json_format: bool = False,
    ):
        self._session_id = str(uuid.uuid4())[:8]
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        # Clear existing handlers to avoid duplication if re-initialized
        if self._logger.hasHandlers():
            self._logger.handlers.clear()

        self._logger.propagate = False

        if json_format:
            formatter: logging.Formatter = JsonFormatter()
        else:
            formatter = TextFormatter(
                "%(asctime)s [%(levelname)s] [session:%(session_id)s] %(message)s"
            )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        self._logger.addHandler(console_handler)

        if log_file:
            try:
                file_handler = logging.FileHandler(log_file)
                file_handler.setFormatter(formatter)
                self._logger.addHandler(file_handler)
            except OSError as e:
                # Console handler stays in place
                self._logger.warning(
                    "Failed to open log file",
                    extra={"session_id": self._session_id, "log_file": log_file, "error": str(e)},
                )

    def get_session_id(self) -> str:
        return self._session_id

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return

        extra = {"session_id": self._session_id}

        # Reserved LogRecord attributes would raise "Attempt to overwrite"
        for k, v in kwargs.items():
            if k in _RESERVED_KEYS:
                extra[f"_{k}"] = v
            else:
                extra[k] = v

        self._logger.log(level, message, extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, message, **kwargs)

from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

_CONTEXT_KEYS = (
    "location",
    "request_seq",
    "risk_level",
    "from_level",
    "to_level",
    "heat_index",
    "status",
    "reason",
    "history_size",
)

# Provider clients log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Append selected ``extra=`` attributes to the message as ``key=value`` pairs."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _CONTEXT_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts = [
            f"{key}={_render(value)}"
            for key in self._extra_keys
            if (value := getattr(record, key, None)) is not None
        ]
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def _render(value: Any) -> str:
    # Enum members log by value so RiskLevel.high reads as "High".
    return str(getattr(value, "value", value))


def configure_logging(level: str | int | None = None) -> None:
    """Configure process-wide logging once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_CONTEXT_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in _NOISY_LOGGERS},
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True

"""
Logging setup.

Console output for development, JSON lines for log aggregation.
Controlled by ``LOG_LEVEL`` and ``LOG_FORMAT`` in settings.
"""
from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone

from ledgerbook.app.core.config import settings


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def get_logging_config(level: str | None = None, fmt: str | None = None) -> dict:
    level = (level or settings.LOG_LEVEL).upper()
    fmt = fmt or settings.LOG_FORMAT

    formatter: dict[str, object]
    if fmt == "json":
        formatter = {"()": "ledgerbook.app.core.logging_config.JsonFormatter"}
    else:
        formatter = {"format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "ledgerbook": {"handlers": ["console"], "level": level, "propagate": False},
            "sqlalchemy.engine": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
    }


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    logging.config.dictConfig(get_logging_config(level, fmt))

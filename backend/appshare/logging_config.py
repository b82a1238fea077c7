"""JSON structured logging configuration."""
from __future__ import annotations

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from appshare.config import Settings, settings as default_settings

# Loggers that install their own handlers; records are sent to the root
# JSON handler instead.
_ADOPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def build_formatter(config: Settings = default_settings) -> JsonFormatter:
    return JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger",
        },
        static_fields={"service": config.APP_NAME, "env": config.APP_ENV},
    )


def setup_logging(config: Settings = default_settings) -> None:
    """Send every record, uvicorn's included, to stdout as one JSON object per line."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(config))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(config.APP_LOG_LEVEL)

    for name in _ADOPTED_LOGGERS:
        adopted = logging.getLogger(name)
        adopted.handlers.clear()
        adopted.propagate = True

    # Quieten noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if config.APP_ENV == "development" else logging.WARNING
    )

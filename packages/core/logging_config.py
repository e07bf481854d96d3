from __future__ import annotations

import logging
import logging.config
import os
import sys
from typing import Optional


def _log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def _scheduler_log_level() -> str:
    return os.getenv("SCHEDULER_LOG_LEVEL", "WARNING").upper()


def _log_destination() -> str:
    return os.getenv("LOG_DESTINATION", "stdout").lower()


def _log_file_path() -> Optional[str]:
    return os.getenv("LOG_FILE")


def _handler() -> dict:
    destination = _log_destination()
    if destination == "file":
        log_file = _log_file_path()
        if not log_file:
            raise RuntimeError("LOG_FILE is required when LOG_DESTINATION=file")
        return {
            "class": "logging.FileHandler",
            "level": _log_level(),
            "filename": log_file,
            "formatter": "standard",
        }
    return {
        "class": "logging.StreamHandler",
        "level": _log_level(),
        "stream": sys.stdout if destination == "stdout" else sys.stderr,
        "formatter": "standard",
    }


def configure_logging() -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
                }
            },
            "handlers": {"default": _handler()},
            "loggers": {
                # APScheduler logs every job submission at INFO.
                "apscheduler": {"level": _scheduler_log_level()},
                "mynote": {"level": _log_level()},
            },
            "root": {"handlers": ["default"], "level": _log_level()},
        }
    )

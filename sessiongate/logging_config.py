"""
Logging setup for the session service.

Application loggers live under ``sessiongate`` and propagate to the root
handler. Uvicorn keeps its own handlers; its access log drops GET requests
to quiet paths such as ``/health`` so readiness polling does not drown out
session activity.
"""

import logging
from typing import Any, Dict, Iterable

QUIET_PATHS = ("/health",)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class QuietPathFilter(logging.Filter):
    """Drop uvicorn access records for GET requests to the given paths."""

    def __init__(self, paths: Iterable[str] = QUIET_PATHS):
        super().__init__()
        self.paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True

        # uvicorn passes (client, method, path, http_version, status)
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            method, path = args[1], str(args[2]).split("?", 1)[0]
            return not (method == "GET" and path in self.paths)

        message = record.getMessage()
        return not any(f'"GET {path} ' in message or f'"GET {path}?' in message for path in self.paths)


def get_logging_config(level: str = "INFO", quiet_paths: Iterable[str] = QUIET_PATHS) -> Dict[str, Any]:
    """Build a ``dictConfig`` mapping for the service and for uvicorn."""
    uvicorn_handlers = {"uvicorn": "console", "uvicorn.error": "console", "uvicorn.access": "access"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "quiet_paths": {"()": QuietPathFilter, "paths": list(quiet_paths)},
        },
        "formatters": {
            "console": {"format": LOG_FORMAT},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["quiet_paths"],
            },
        },
        "loggers": {
            **{
                name: {"handlers": [handler], "level": "INFO", "propagate": False}
                for name, handler in uvicorn_handlers.items()
            },
            "sessiongate": {"level": level, "propagate": True},
        },
        "root": {"level": level, "handlers": ["console"]},
    }

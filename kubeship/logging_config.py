"""
Logging configuration for the API process.

Health check traffic is dropped from the access log and the Kubernetes client's
own chatter is held at WARNING so convergence steps stay readable.
"""

import logging
from typing import Any, Dict, Iterable

HEALTH_CHECK_PATHS = ("/health",)

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("kubernetes_asyncio", "aiohttp.access", "websockets")


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access lines for readiness and liveness check requests."""

    def __init__(self, paths: Iterable[str] = HEALTH_CHECK_PATHS):
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        return not ("GET" in message and any(path in message for path in self.paths))


def _logger(handler: str, level: str) -> Dict[str, Any]:
    return {"handlers": [handler], "level": level, "propagate": False}


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """
    Build a dictConfig mapping for uvicorn and the kubeship loggers.

    Args:
        level: Level for uvicorn and kubeship loggers (case-insensitive)
    """
    level = level.upper()
    loggers = {
        "uvicorn": _logger("default", level),
        "uvicorn.error": _logger("default", level),
        "uvicorn.access": _logger("access", level),
        "kubeship": _logger("default", level),
    }
    for name in QUIET_LOGGERS:
        loggers[name] = _logger("default", "WARNING")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"health_check_filter": {"()": HealthCheckFilter}},
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"],
            },
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["default"]},
    }

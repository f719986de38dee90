"""Application logging utilities."""

import logging
import warnings
from logging.config import dictConfig
from typing import Any

warnings.filterwarnings(
    "ignore",
    message="pythonjsonlogger.jsonlogger has been moved",
    category=DeprecationWarning,
)

FORMATTERS = {
    "json": {
        "()": "pythonjsonlogger.json.JsonFormatter",
        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
    },
    "console": {
        "format": "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    },
}

# Chatty third-party loggers that drown out pipeline progress at INFO.
QUIET_LOGGERS = ("httpx", "urllib3", "botocore", "sentence_transformers")


def build_logging_config(log_format: str = "console", level: str = "INFO") -> dict[str, Any]:
    """Build a dictConfig mapping for the requested formatter and level."""
    if log_format not in FORMATTERS:
        raise ValueError(f"Unknown log format {log_format!r}; expected one of {sorted(FORMATTERS)}")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": FORMATTERS,
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": log_format,
            },
        },
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        "root": {
            "handlers": ["default"],
            "level": level.upper(),
        },
    }


DEFAULT_LOGGING_CONFIG = build_logging_config()


def configure_logging(config: dict | None = None) -> None:
    """Configure logging for the application."""
    dictConfig(config or DEFAULT_LOGGING_CONFIG)


def get_logger(name: str) -> logging.Logger:
    """Retrieve a logger with the given name."""
    return logging.getLogger(name)

"""Process-wide logging setup."""
from __future__ import annotations

import logging
import logging.config
import os
from typing import Any, Dict

SENSITIVE_FIELDS = ("password", "token", "secret", "key", "authorization")
REDACTED = "***REDACTED***"

_FORMAT = "%(asctime)s [%(environment)s] %(levelname)s %(name)s: %(message)s"


class EnvironmentFilter(logging.Filter):
    """Stamp every record with the deployment environment."""

    def __init__(self, environment: str = "development"):
        super().__init__()
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.environment = self.environment
        return True


def sanitize(data: Any) -> Any:
    """Return a copy of *data* with sensitive-looking keys redacted (recursively)."""
    if isinstance(data, dict):
        clean: Dict[str, Any] = {}
        for k, v in data.items():
            if any(field in str(k).lower() for field in SENSITIVE_FIELDS):
                clean[k] = REDACTED
            else:
                clean[k] = sanitize(v)
        return clean
    if isinstance(data, list):
        return [sanitize(item) for item in data]
    return data


def configure_logging(environment: str, level: str, log_dir: str = "logs") -> None:
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "filters": ["environment"],
        },
    }

    # file output only outside development
    if environment != "development":
        os.makedirs(log_dir, exist_ok=True)
        for name, file_level in (("error", "ERROR"), ("combined", level)):
            handlers[f"{name}_file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": os.path.join(log_dir, f"{environment}-{name}.log"),
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 5,
                "encoding": "utf-8",
                "level": file_level,
                "formatter": "default",
                "filters": ["environment"],
            }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "environment": {"()": EnvironmentFilter, "environment": environment},
        },
        "formatters": {
            "default": {"format": _FORMAT},
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {
            "sqlalchemy.engine.Engine": {"level": "WARNING"},
            "sqlalchemy.pool": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
            "botocore": {"level": "WARNING"},
        },
    })
    logging.getLogger(__name__).info(f"Logging configured: env={environment} level={level}")

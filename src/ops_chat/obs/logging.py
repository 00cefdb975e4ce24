"""Structured logging configuration."""

from __future__ import annotations

import logging
import sys
from typing import Any

from ops_chat.config import get_settings


class StructuredFormatter(logging.Formatter):
    """Formats records as `key=value` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, dict):
            log_data.update(extra)
        if record.exc_info:
            log_data["exc"] = self.formatException(record.exc_info)
        return " ".join(f"{key}={value}" for key, value in log_data.items())


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a stdout structured handler attached once.

    The level is DEBUG in the `dev` environment and INFO otherwise, including
    when settings cannot be loaded.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        try:
            env = get_settings().env
            logger.setLevel(logging.DEBUG if env == "dev" else logging.INFO)
        except Exception:
            logger.setLevel(logging.INFO)
    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **fields: Any) -> None:
    """Log `msg` with additional structured fields (tenant_id, intent, ...)."""
    logger.log(level, msg, extra={"extra_data": fields})

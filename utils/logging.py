"""Project-wide logging utilities."""
from __future__ import annotations

import json
import logging
from logging import Logger
from typing import Optional

# ``extra`` keys copied into the JSON payload when present on a record.
_CONTEXT_FIELDS = ("component", "port", "field", "pipe")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload = {
            "level": record.levelname,
            "name": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logger(name: str, level: str = "INFO", json_output: bool = True) -> Logger:
    """Configure and return a project logger."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logging_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(logging_level)
    handler = logging.StreamHandler()

    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"
        )
        handler.setFormatter(formatter)

    logger.addHandler(handler)
    return logger


def get_logger(name: Optional[str] = None) -> Logger:
    """Return a configured logger."""
    logger_name = name or "textflow"
    return configure_logger(logger_name)

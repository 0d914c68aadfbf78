"""Logging helpers shared by the CLI and the certificate services."""

from __future__ import annotations

import json
import logging
import sys
from typing import Optional, TextIO

__all__ = ["setup_logging", "JsonFormatter", "mask_token"]

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _json_payload(record: logging.LogRecord) -> str:
    base = {
        "level": record.levelname,
        "logger": record.name,
        "msg": record.getMessage(),
    }
    timestamp = getattr(record, "asctime", None)
    if timestamp:
        base["time"] = timestamp
    extra = getattr(record, "extra", None)
    if isinstance(extra, dict):
        base.update(extra)
    if record.exc_info:
        base["exc"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(base, ensure_ascii=False)


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        record.asctime = self.formatTime(record, self.datefmt)
        return _json_payload(record)


def setup_logging(
    level: Optional[str] = None,
    *,
    json_output: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the ``ghcert`` logger hierarchy for a CLI invocation."""

    resolved_level = (level or "WARNING").upper()
    numeric_level = getattr(logging, resolved_level, logging.WARNING)

    logger = logging.getLogger("ghcert")
    logger.setLevel(numeric_level)
    logger.handlers.clear()
    logger.propagate = False

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(_PLAIN_FORMAT))
    logger.addHandler(handler)
    return logger


def mask_token(token: str) -> str:
    if len(token) <= 4:
        return "*" * len(token)
    return token[:4] + "…"

"""Structured JSON logging.

Every line is a single JSON object. Request correlation (``request_id``) and the
authenticated principal are picked up from context variables set by the
request middleware and the auth dependency, so call sites only pass their own
fields through ``extra={"extra_data": {...}}``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var

# Keys owned by the formatter; event fields may not shadow them.
RESERVED_KEYS = frozenset({"timestamp", "level", "logger", "event", "request_id", "principal", "exception"})

# Per-request lines come from RequestIdMiddleware already.
QUIET_LOGGERS = ("uvicorn.access",)


class JsonLogFormatter(logging.Formatter):
    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        if self.service:
            payload["service"] = self.service
        request_id = request_id_ctx_var.get()
        if request_id:
            payload["request_id"] = request_id
        principal = principal_ctx_var.get()
        if principal:
            payload["principal"] = principal
        fields = getattr(record, "extra_data", None)
        if isinstance(fields, Mapping):
            for key, value in fields.items():
                payload[f"data_{key}" if key in RESERVED_KEYS else key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO", service: str | None = None) -> None:
    """Route the root logger to stdout as JSON. Safe to call more than once."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonLogFormatter(service=service))
    logging.root.handlers = [handler]
    logging.root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

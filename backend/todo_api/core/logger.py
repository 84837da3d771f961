"""JSON logging for the todo API.

Every record is one JSON object on stdout carrying the request id of the
request that produced it. Auth code logs user ids, ledger ids and failure
reasons through ``extra=``; only the keys in :data:`EXTRA_KEYS` make it into
the output, so a stray ``extra={"password": ...}`` is dropped rather than
written out.
"""

from __future__ import annotations

import json
import logging
import re
import sys
import time
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# Client-supplied ids are echoed into logs and headers; anything else is replaced.
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

EXTRA_KEYS = (
    "method",
    "path",
    "status",
    "endpoint",
    "elapsed_ms",
    "user_id",
    "reason",
    "token_id",
    "purged",
)


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp the current request id (or ``None``) on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """Return the id of the current request, adopting a safe inbound header."""

    if not has_request_context():
        return str(uuid4())
    if hasattr(g, "request_id"):
        return g.request_id  # type: ignore[return-value]
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header, "")
        if _SAFE_REQUEST_ID.match(value):
            g.request_id = value
            return value
    g.request_id = str(uuid4())
    return g.request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Send root logging to stdout as JSON at ``level``."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root.setLevel(level)
    # Werkzeug's own access lines duplicate ours.
    logging.getLogger("werkzeug").setLevel(max(level, logging.WARNING))


def init_app(app: Flask) -> None:
    """Seed request ids, echo them back and write one access line per request.

    The access line holds method, path (no query string), status and timing;
    headers and bodies, which may carry tokens, are never logged.
    """

    app.logger.addFilter(RequestIdFilter())
    access_log = logging.getLogger("todo_api.access")

    @app.before_request
    def _start_request() -> None:
        ensure_request_id()
        g.request_started = time.perf_counter()

    @app.after_request
    def _finish_request(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        started = g.get("request_started")
        elapsed = round((time.perf_counter() - started) * 1000, 2) if started else None
        access_log.info(
            "request",
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "elapsed_ms": elapsed,
            },
        )
        return response


__all__ = ["configure_logging", "init_app", "ensure_request_id", "JSONFormatter"]

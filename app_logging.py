"""JSON logging configuration and per-request context helpers.

Every record is rendered as a single line of JSON on stdout so the output of
the form server can be shipped to any log aggregator without a parser. The
module also keeps per-request context (correlation ID, route, timings) in
context variables; the formatter merges it into each record emitted while the
request is being handled.

Report fields that identify people by hand (signatures) are redacted before
they reach the log stream.
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

# ---------------------------------------------------------------------------
# Context management
# ---------------------------------------------------------------------------

_request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
_request_context_ctx: contextvars.ContextVar[Optional[Dict[str, Any]]] = (
    contextvars.ContextVar("request_context", default=None)
)

_REDACTED = "[REDACTED]"
_SENSITIVE_FIELDS = {
    field.strip().lower()
    for field in os.environ.get(
        "SENSITIVE_FIELDS", "password,token,secret_key,signature,receivedby"
    ).split(",")
    if field.strip()
}

_JSON_LOG_FIELDS = (
    "ts",
    "level",
    "logger",
    "msg",
    "request_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "client_ip",
    "user_agent",
    "route",
    "draft_time_ms",
    "error_type",
    "error",
    "stack",
    "extra_context",
)

# Record attributes promoted to top-level keys when present.
_PROMOTED_FIELDS = (
    "method",
    "path",
    "status",
    "duration_ms",
    "client_ip",
    "user_agent",
    "route",
    "draft_time_ms",
    "error_type",
    "error",
)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def set_request_id(request_id: str) -> None:
    """Associate a correlation ID with the current context."""

    _request_id_ctx.set(request_id)
    merge_request_context(request_id=request_id)


def clear_request_id() -> None:
    _request_id_ctx.set(None)


def get_request_context() -> Dict[str, Any]:
    ctx = _request_context_ctx.get()
    if ctx is None:
        ctx = {}
        _request_context_ctx.set(ctx)
    return ctx


def merge_request_context(**kwargs: Any) -> None:
    """Merge non-None key/value pairs into the current request context."""

    ctx = dict(get_request_context())
    ctx.update((key, value) for key, value in kwargs.items() if value is not None)
    _request_context_ctx.set(ctx)


def clear_request_context() -> None:
    _request_context_ctx.set({})


# ---------------------------------------------------------------------------
# Redaction helpers
# ---------------------------------------------------------------------------

def sensitive_fields() -> Iterable[str]:
    return _SENSITIVE_FIELDS


def redact_sensitive_data(data: Any, fields: Optional[Iterable[str]] = None) -> Any:
    """Redact sensitive values from mappings or sequences.

    Nested dictionaries and lists are walked recursively; keys are compared
    case-insensitively, so ``receivedBy`` matches ``receivedby``.
    """

    fields_set = {field.lower() for field in (fields or sensitive_fields())}

    if isinstance(data, Mapping):
        return {
            key: _REDACTED if str(key).lower() in fields_set
            else redact_sensitive_data(value, fields_set)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple, set)):
        return [redact_sensitive_data(item, fields_set) for item in data]
    return data


# ---------------------------------------------------------------------------
# JSON logging infrastructure
# ---------------------------------------------------------------------------

class JSONFormatter(logging.Formatter):
    """Formatter that renders log records as single-line JSON objects."""

    # Attributes of every LogRecord that are not worth surfacing
    _RESERVED = {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": timestamp.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "request_id": get_request_id(),
            "stack": None,
            "extra_context": None,
        }

        for key, value in get_request_context().items():
            if payload.get(key) is None:
                payload[key] = value

        for field in _PROMOTED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["error_type"] = record.exc_info[0].__name__
            payload["error"] = str(record.exc_info[1])
            payload["stack"] = self.formatException(record.exc_info)
        elif record.stack_info:
            payload["stack"] = record.stack_info

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._RESERVED and key not in payload and not key.startswith("_")
        }
        if extra:
            payload["extra_context"] = redact_sensitive_data(extra)

        for field in _JSON_LOG_FIELDS:
            payload.setdefault(field, None)

        return json.dumps(payload, default=_json_default, separators=(",", ":"))


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


_configured = False


def configure_logging() -> None:
    """Install the JSON formatter on the root logger once."""

    global _configured
    if _configured:
        return

    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    logging.captureWarnings(True)

    # Request/response lines come from the middleware, not the servers.
    for noisy_logger in ("werkzeug", "gunicorn", "gunicorn.access", "gunicorn.error"):
        log = logging.getLogger(noisy_logger)
        log.handlers = []
        log.propagate = True
        log.setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)


class DraftTimer:
    """Measure a draft write and expose it as ``draft_time_ms`` in logs."""

    def __enter__(self) -> "DraftTimer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed_ms = round((time.perf_counter() - self._start) * 1000, 2)
        merge_request_context(draft_time_ms=self.elapsed_ms)


__all__ = [
    "DraftTimer",
    "JSONFormatter",
    "clear_request_context",
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_context",
    "get_request_id",
    "merge_request_context",
    "redact_sensitive_data",
    "sensitive_fields",
    "set_request_id",
]

"""Correlation ID handling for the report form server."""

from __future__ import annotations

import re
import uuid
from typing import Optional

from flask import Flask, g, request

from app_logging import clear_request_context, clear_request_id, set_request_id

HEADER_NAME = "X-Request-ID"

# Browser-supplied IDs are echoed into logs and headers.
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _incoming_request_id() -> Optional[str]:
    header_val = request.headers.get(HEADER_NAME, "").strip()
    if header_val and _VALID_ID.match(header_val):
        return header_val
    return None


def init_correlation_id(app: Flask) -> None:
    """Attach a correlation ID to each request and echo it in the response."""

    @app.before_request
    def _assign_request_id() -> None:
        request_id = _incoming_request_id() or uuid.uuid4().hex
        set_request_id(request_id)
        g.request_id = request_id

    @app.after_request
    def _append_request_id(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers[HEADER_NAME] = request_id
        return response

    @app.teardown_request
    def _teardown_request(_exc):
        clear_request_id()
        clear_request_context()


__all__ = ["init_correlation_id", "HEADER_NAME"]

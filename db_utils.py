"""Start-up helpers for the draft database."""

from __future__ import annotations

import time
from typing import Callable, TypeVar

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from app_logging import get_logger
from models import db

T = TypeVar("T")

_logger = get_logger("report.db")


def retry_with_backoff(
    func: Callable[[], T],
    attempts: int = 3,
    base_delay: float = 0.1,
    max_total_delay: float = 2.0,
    retry_on: tuple = (SQLAlchemyError,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``func``, retrying ``retry_on`` errors with exponential backoff.

    The total time spent sleeping never exceeds ``max_total_delay`` so a dead
    database cannot hold up start-up for long. The last error is re-raised.
    """

    total_delay = 0.0
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as exc:
            _logger.warning(
                "transient database failure", extra={"attempt": attempt, "error": str(exc)}
            )
            if attempt >= attempts or total_delay >= max_total_delay:
                raise
            delay = min(base_delay * (2 ** (attempt - 1)), max_total_delay - total_delay)
            if delay > 0:
                sleep(delay)
                total_delay += delay
    raise RuntimeError("retry_with_backoff called with attempts < 1")


def ensure_schema(app: Flask) -> bool:
    """Create the draft table if needed.

    Returns False instead of raising when the database stays unreachable; the
    form still loads and the failure shows up on the first draft write.
    """

    with app.app_context():
        try:
            retry_with_backoff(db.create_all)
        except SQLAlchemyError as exc:
            _logger.error("draft database unavailable", extra={"error": str(exc)})
            return False
    return True


__all__ = ["ensure_schema", "retry_with_backoff"]

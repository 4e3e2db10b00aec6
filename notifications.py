"""Ephemeral status messages shown to the teacher.

The notifier holds a single slot. Showing a message replaces whatever is
visible and restarts the display timer; once the timer runs out the slot reads
as empty. Expiry is evaluated lazily against an injectable monotonic clock, so
no background timer thread is involved.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

SUCCESS = "success"
ERROR = "error"
KINDS = frozenset({SUCCESS, ERROR})

DEFAULT_DURATION = 4.0


@dataclass(frozen=True)
class Notification:
    message: str
    kind: str
    shown_at: float
    expires_at: float

    def remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)

    def to_dict(self, now: float) -> Dict[str, Any]:
        return {
            "message": self.message,
            "kind": self.kind,
            "expires_in": round(self.remaining(now), 3),
        }


class Notifier:
    """Single-slot, last-write-wins notification with a fixed lifetime."""

    def __init__(self, duration: float = DEFAULT_DURATION,
                 clock: Callable[[], float] = time.monotonic) -> None:
        if duration <= 0:
            raise ValueError("duration must be positive")
        self.duration = duration
        self._clock = clock
        self._current: Optional[Notification] = None
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def show(self, message: str, kind: str) -> Notification:
        if kind not in KINDS:
            raise ValueError(f"kind must be one of {sorted(KINDS)}, got {kind!r}")
        now = self._clock()
        notification = Notification(message, kind, now, now + self.duration)
        with self._lock:
            self._current = notification
        return notification

    def success(self, message: str) -> Notification:
        return self.show(message, SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, ERROR)

    def current(self) -> Optional[Notification]:
        """Return the visible notification, clearing it once expired."""
        with self._lock:
            notification = self._current
            if notification is not None and self._clock() >= notification.expires_at:
                self._current = notification = None
            return notification

    def clear(self) -> None:
        with self._lock:
            self._current = None


__all__ = ["DEFAULT_DURATION", "ERROR", "KINDS", "Notification", "Notifier", "SUCCESS"]

"""The one owned handle on the report being edited.

:class:`ReportSession` holds the single :class:`report.Report` instance and is
the only place that replaces it. Each edit is applied with the pure
:func:`report.apply_change` transition and then persisted before the call
returns. Submission and summary copying report their outcome through the
:class:`notifications.Notifier`.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from app_logging import get_logger
from draft_store import DraftStore
from errors import ClipboardError, SubmissionInProgress, SubmitError
from notifications import Notification, Notifier
from report import Report, apply_change, build_summary, derive_present
from submission import SubmissionClient

SUBMITTED_MESSAGE = "Report submitted successfully!"
COPIED_MESSAGE = "Summary copied to clipboard"

_logger = get_logger("report.session")


class ReportSession:
    def __init__(self, store: DraftStore, client: SubmissionClient,
                 notifier: Notifier) -> None:
        self.store = store
        self.client = client
        self.notifier = notifier
        self._report: Optional[Report] = None
        self._in_flight = False
        self._lock = threading.Lock()

    @property
    def report(self) -> Report:
        """The current report, loaded from the draft on first access."""
        if self._report is None:
            self.start()
        return self._report

    @property
    def submitting(self) -> bool:
        return self._in_flight

    def start(self, now: Optional[datetime] = None) -> Report:
        """Load the draft, or start from defaults, and persist the result."""
        report = self.store.load(now=now)
        if report is None:
            report = Report.defaults(now)
            _logger.info("starting a new report", extra={"report_date": report.date})
        self._replace(derive_present(report))
        return self._report

    def change(self, name: str, value: Any) -> Report:
        self._replace(apply_change(self.report, name, value))
        return self._report

    def change_many(self, values: Mapping[str, Any]) -> Report:
        """Apply several edits in order, persisting once."""
        report = self.report
        for name, value in values.items():
            report = apply_change(report, name, value)
        self._replace(report)
        return report

    def clear(self, now: Optional[datetime] = None) -> Report:
        """Drop the draft and start over with a blank report."""
        self.store.clear()
        self._replace(Report.defaults(now))
        return self._report

    def submit(self, now: Optional[datetime] = None) -> Notification:
        """Send the current report.

        Raises :class:`SubmissionInProgress` when another submission is still
        outstanding. A :class:`SubmitError` is shown as an error notification
        and re-raised so the caller can pick a status code.
        """
        report = self.report
        with self._lock:
            if self._in_flight:
                raise SubmissionInProgress()
            self._in_flight = True
        try:
            self.client.submit(report, now=now)
        except SubmitError as exc:
            self.notifier.error(exc.user_message)
            _logger.info("submission rejected",
                         extra={"error_type": type(exc).__name__, "error": exc.detail})
            raise
        finally:
            with self._lock:
                self._in_flight = False
        # The draft is kept after a successful submission.
        return self.notifier.success(SUBMITTED_MESSAGE)

    def summary(self) -> str:
        return build_summary(self.report)

    def copy_summary(self, writer: Callable[[str], Any]) -> Notification:
        """Hand the summary to ``writer`` and report how it went."""
        try:
            writer(self.summary())
        except ClipboardError as exc:
            _logger.warning("clipboard write failed", extra={"error": exc.detail})
            return self.record_clipboard_result(False)
        return self.record_clipboard_result(True)

    def record_clipboard_result(self, copied: bool) -> Notification:
        if copied:
            return self.notifier.success(COPIED_MESSAGE)
        return self.notifier.error(ClipboardError.user_message)

    def _replace(self, report: Report) -> None:
        # Only a stored report becomes current.
        self.store.save(report)
        self._report = report


__all__ = ["COPIED_MESSAGE", "ReportSession", "SUBMITTED_MESSAGE"]

"""Error taxonomy for the daily report form.

Every error carries the message shown to the teacher (``user_message``) and
the HTTP status the API answers with. None of them is fatal: the form always
returns to an editable state.
"""

from __future__ import annotations


class ReportError(Exception):
    """Base class for all report errors."""

    status_code = 500
    title = "Report error"
    user_message = "Something went wrong."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail or self.user_message


class SubmitError(ReportError):
    """A submission did not go out."""

    title = "Submission failed"


class ConfigError(SubmitError):
    """No webhook endpoint is configured."""

    status_code = 500
    title = "Webhook not configured"
    user_message = "System Error: Webhook URL not configured."


class ValidationError(SubmitError):
    """Teacher name or class is missing."""

    status_code = 400
    title = "Missing required fields"
    user_message = "Please provide Teacher Name and Class."

    def __init__(self, missing=(), detail: str | None = None) -> None:
        self.missing = tuple(missing)
        if detail is None and self.missing:
            detail = "Missing required fields: " + ", ".join(self.missing)
        super().__init__(detail)


class NetworkError(SubmitError):
    """The POST could not be dispatched."""

    status_code = 502
    title = "Webhook unreachable"
    user_message = "Submission failed. Check connection."


class SubmissionInProgress(ReportError):
    status_code = 409
    title = "Submission in progress"
    user_message = "A submission is already in progress."


class StorageError(ReportError):
    """The persisted draft could not be decoded.

    Recovered silently by the draft store; never shown to the user.
    """

    title = "Malformed draft"


class ClipboardError(ReportError):
    title = "Clipboard unavailable"
    user_message = "Could not copy summary to clipboard."


class UnknownFieldError(ReportError, ValueError):
    status_code = 400
    title = "Unknown field"

    def __init__(self, name: str) -> None:
        self.field = name
        super().__init__(f"Unknown report field: {name!r}")


__all__ = [
    "ClipboardError",
    "ConfigError",
    "NetworkError",
    "ReportError",
    "StorageError",
    "SubmissionInProgress",
    "SubmitError",
    "UnknownFieldError",
    "ValidationError",
]

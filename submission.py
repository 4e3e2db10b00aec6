"""Outbound delivery of a finished report to the spreadsheet webhook.

The legacy endpoint is a Google Apps Script web app that was only ever called
in the browser's ``no-cors`` mode, where neither the status code nor the body
of the response can be read. This client keeps the same contract: a report
counts as submitted as soon as the POST was dispatched. An HTTP error status
from the endpoint is logged for operators but does not fail the submission,
and the response body is never read. Acceptance of the report by the remote
spreadsheet therefore cannot be verified from here.

Only failures to dispatch (DNS, refused connections, TLS, timeouts) are
reported as :class:`errors.NetworkError`. Nothing is retried.
"""

from __future__ import annotations

import json
from datetime import datetime
from http import client as httpclient
from typing import Any, Dict, Optional
from urllib import error as urlerror
from urllib import request as urlrequest

from app_logging import get_logger
from errors import ConfigError, NetworkError, ValidationError
from report import Report, missing_identity_fields

TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"

_logger = get_logger("report.submission")


def build_payload(report: Report, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Return the JSON body sent to the webhook.

    ``timestamp`` is taken at submission time and is distinct from the
    report's ``submittedTime``, which was captured when the form was opened.
    """
    payload: Dict[str, Any] = report.to_dict()
    payload["timestamp"] = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return payload


class SubmissionClient:
    """Fire-and-forget JSON POST to a configured endpoint."""

    def __init__(self, endpoint: Optional[str], timeout: Optional[float] = None) -> None:
        self.endpoint = (endpoint or "").strip()
        self.timeout = timeout

    def check(self, report: Report) -> None:
        """Run the local preconditions; no network access."""
        if not self.endpoint:
            raise ConfigError("REPORT_WEBHOOK_URL is not set")
        missing = missing_identity_fields(report)
        if missing:
            raise ValidationError(missing)

    def submit(self, report: Report, now: Optional[datetime] = None) -> None:
        self.check(report)
        body = json.dumps(build_payload(report, now)).encode("utf-8")
        try:
            # An unusable endpoint URL fails here with ValueError.
            req = urlrequest.Request(self.endpoint, data=body, method="POST")
            req.add_header("Content-Type", "application/json")
            self._dispatch(req)
        except urlerror.HTTPError as exc:
            # Dispatched; the status is not part of the contract.
            exc.close()
            _logger.warning("webhook answered with an error status",
                            extra={"webhook_status": exc.code, "class_grade": report.class_grade})
        except (urlerror.URLError, OSError, httpclient.HTTPException, ValueError) as exc:
            reason = getattr(exc, "reason", exc)
            _logger.error("report dispatch failed",
                          extra={"error": str(reason), "class_grade": report.class_grade})
            raise NetworkError(f"could not reach webhook: {reason}") from exc
        _logger.info("report dispatched",
                     extra={"report_date": report.date, "class_grade": report.class_grade})

    def _dispatch(self, req: urlrequest.Request) -> None:
        if self.timeout is None:
            response = urlrequest.urlopen(req)
        else:
            response = urlrequest.urlopen(req, timeout=self.timeout)
        response.close()


__all__ = ["SubmissionClient", "TIMESTAMP_FORMAT", "build_payload"]

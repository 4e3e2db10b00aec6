"""Persistence of the single in-progress report.

The draft is stored as one versioned JSON record::

    {"version": 1, "report": {"date": "...", "teacherName": "...", ...}}

Loading always merges the stored fields over a fresh default report, so a
record written by an older release, or one missing fields, still produces a
complete :class:`report.Report`. A record that cannot be decoded is discarded:
the form starts from defaults and the problem is only logged.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from app_logging import DraftTimer, get_logger
from errors import StorageError
from models import ReportDraft, db
from report import Report

DRAFT_VERSION = 1
DEFAULT_KEY = "daily_report_draft"

_logger = get_logger("report.draft")


def encode_draft(report: Report) -> str:
    return json.dumps({"version": DRAFT_VERSION, "report": report.to_dict()})


def decode_draft(payload: str, now: Optional[datetime] = None) -> Report:
    """Decode a stored payload, raising :class:`StorageError` if unusable.

    Bare report objects (no ``version`` key) are accepted as written by the
    first release of the form.
    """
    try:
        data: Any = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise StorageError(f"draft is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise StorageError(f"draft is a {type(data).__name__}, expected an object")

    if "version" not in data:
        fields = data
    else:
        version = data.get("version")
        if not isinstance(version, int) or version > DRAFT_VERSION:
            raise StorageError(f"unsupported draft version {version!r}")
        fields = data.get("report")
        if not isinstance(fields, dict):
            raise StorageError("draft record has no report object")
    return Report.from_dict(fields, now=now)


class DraftStore:
    """Load and save the draft under one fixed key."""

    def __init__(self, key: str = DEFAULT_KEY) -> None:
        self.key = key

    def load(self, now: Optional[datetime] = None) -> Optional[Report]:
        row = db.session.get(ReportDraft, self.key)
        if row is None:
            return None
        try:
            return decode_draft(row.payload, now=now)
        except StorageError as exc:
            _logger.warning("discarding malformed draft",
                            extra={"draft_key": self.key, "error": str(exc)})
            return None

    def save(self, report: Report) -> None:
        payload = encode_draft(report)
        with DraftTimer():
            row = db.session.get(ReportDraft, self.key)
            if row is None:
                db.session.add(ReportDraft(key=self.key, payload=payload))
            else:
                row.payload = payload
            db.session.commit()
        _logger.debug("draft saved", extra={"draft_key": self.key})

    def clear(self) -> None:
        row = db.session.get(ReportDraft, self.key)
        if row is not None:
            db.session.delete(row)
            db.session.commit()
            _logger.info("draft cleared", extra={"draft_key": self.key})


__all__ = ["DRAFT_VERSION", "DraftStore", "decode_draft", "encode_draft"]

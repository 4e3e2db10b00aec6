"""The daily report record and the rules applied to it.

A :class:`Report` is immutable; every edit goes through :func:`set_field`,
which returns a new instance. Attribute names are snake_case while the browser,
the draft blob and the webhook all use camelCase wire names, so
the module keeps a single table mapping one to the other.

Attendance counts are kept as text. The form never blocks typing, so anything
the teacher enters is stored as-is and only interpreted by
:func:`derive_present`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from errors import UnknownFieldError

TIME_FORMAT = "%I:%M %p"

YES = "Yes"
NO = "No"

# wire name -> attribute name, in form order
WIRE_FIELDS: Dict[str, str] = {
    "date": "date",
    "teacherName": "teacher_name",
    "classGrade": "class_grade",
    "total": "total",
    "present": "present",
    "absent": "absent",
    "sickIn": "sick_in",
    "sentHome": "sent_home",
    "disciplinary": "disciplinary",
    "hasHealthComplaint": "has_health_complaint",
    "hasAccident": "has_accident",
    "incidentDetails": "incident_details",
    "comments": "comments",
    "signature": "signature",
    "receivedBy": "received_by",
    "submittedTime": "submitted_time",
}
_ATTRIBUTES = {attr: attr for attr in WIRE_FIELDS.values()}

# Inputs of the derivation rule.
DERIVATION_INPUTS = frozenset({"total", "absent"})

_PARSE_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class Report:
    """One daily classroom report."""

    date: str
    teacher_name: str = ""
    class_grade: str = ""
    total: str = ""
    present: str = ""
    absent: str = ""
    sick_in: str = ""
    sent_home: str = ""
    disciplinary: str = ""
    has_health_complaint: str = NO
    has_accident: str = NO
    incident_details: str = ""
    comments: str = ""
    signature: str = ""
    received_by: str = ""
    submitted_time: str = ""

    @classmethod
    def defaults(cls, now: Optional[datetime] = None) -> "Report":
        """Return a blank report dated ``now`` (local time by default)."""
        now = now or datetime.now()
        return cls(date=now.date().isoformat(), submitted_time=now.strftime(TIME_FORMAT))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], now: Optional[datetime] = None) -> "Report":
        """Merge a wire-format mapping over the defaults.

        Unknown keys are dropped and ``None`` values keep the default.
        """
        report = cls.defaults(now)
        values = {
            WIRE_FIELDS[key]: _as_text(value)
            for key, value in data.items()
            if key in WIRE_FIELDS and value is not None
        }
        return replace(report, **values)

    def to_dict(self) -> Dict[str, str]:
        return {wire: getattr(self, attr) for wire, attr in WIRE_FIELDS.items()}

    @property
    def needs_incident_details(self) -> bool:
        """True when an incident flag is set. Informational only."""
        return YES in (self.has_health_complaint, self.has_accident)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return YES if value else NO
    return str(value)


def resolve_field(name: str) -> str:
    """Map a wire or attribute name to the attribute name."""
    attr = WIRE_FIELDS.get(name) or _ATTRIBUTES.get(name)
    if attr is None:
        raise UnknownFieldError(name)
    return attr


def set_field(report: Report, name: str, value: Any) -> Report:
    """Return a copy of ``report`` with one field replaced.

    No validation of the value is performed.
    """
    return replace(report, **{resolve_field(name): _as_text(value)})


def parse_int(text: str) -> Optional[int]:
    """Parse ``text`` the way a browser's ``parseInt`` does.

    Leading whitespace and a sign are allowed, then the longest run of digits
    is used and anything after it ignored. Returns None where ``parseInt``
    would give ``NaN``.
    """
    match = _PARSE_INT.match(text or "")
    if match is None:
        return None
    return int(match.group(1))


def derive_present(report: Report) -> Report:
    """Fill ``present`` from ``total - absent`` if it is still empty."""
    if report.present != "" or not report.total or report.absent == "":
        return report
    total = parse_int(report.total)
    absent = parse_int(report.absent)
    if total is None or absent is None:
        return report
    present = total - absent
    if present < 0:
        return report
    return replace(report, present=str(present))


def apply_change(report: Report, name: str, value: Any) -> Report:
    """Set a field and run the derivation when one of its inputs changed."""
    updated = set_field(report, name, value)
    if resolve_field(name) in DERIVATION_INPUTS:
        updated = derive_present(updated)
    return updated


def build_summary(report: Report) -> str:
    return (
        f"Daily Report: {report.date}\n"
        f"Teacher: {report.teacher_name}\n"
        f"Class: {report.class_grade}\n"
        f"Attendance: {report.present}/{report.total}\n"
        f"Comments: {report.comments}"
    )


def missing_identity_fields(report: Report) -> list:
    """Wire names of the required identity fields that are blank.

    Whitespace-only values count as blank, which is stricter than the
    browser form's plain truthiness check.
    """
    missing = []
    if not report.teacher_name.strip():
        missing.append("teacherName")
    if not report.class_grade.strip():
        missing.append("classGrade")
    return missing


__all__ = [
    "NO",
    "Report",
    "TIME_FORMAT",
    "WIRE_FIELDS",
    "YES",
    "apply_change",
    "build_summary",
    "derive_present",
    "missing_identity_fields",
    "parse_int",
    "resolve_field",
    "set_field",
]

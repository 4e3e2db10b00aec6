from datetime import datetime

import pytest

from errors import UnknownFieldError
from report import (
    Report,
    apply_change,
    build_summary,
    derive_present,
    missing_identity_fields,
    parse_int,
    set_field,
)

NOW = datetime(2026, 10, 19, 8, 5)


@pytest.fixture
def blank() -> Report:
    return Report.defaults(NOW)


def test_defaults(blank):
    assert blank.date == '2026-10-19'
    assert blank.submitted_time == '08:05 AM'
    assert blank.has_health_complaint == 'No'
    assert blank.has_accident == 'No'
    assert blank.teacher_name == blank.present == blank.comments == ''


def test_set_field_returns_new_report(blank):
    updated = set_field(blank, 'teacherName', 'Ms. Daniels')
    assert updated.teacher_name == 'Ms. Daniels'
    assert blank.teacher_name == ''
    assert set_field(updated, 'teacher_name', '').teacher_name == ''


def test_set_field_accepts_anything(blank):
    assert set_field(blank, 'total', 'thirty').total == 'thirty'
    assert set_field(blank, 'total', 30).total == '30'
    assert set_field(blank, 'comments', None).comments == ''


def test_set_field_unknown_name(blank):
    with pytest.raises(UnknownFieldError):
        set_field(blank, 'principal', 'x')


@pytest.mark.parametrize('text,expected', [
    ('30', 30),
    ('  12', 12),
    ('-3', -3),
    ('4.5', 4),
    ('7 kids', 7),
    ('', None),
    ('abc', None),
    ('x12', None),
])
def test_parse_int(text, expected):
    assert parse_int(text) == expected


@pytest.mark.parametrize('total,absent', [(30, 4), (25, 0), (12, 12), (0, 0)])
def test_present_is_total_minus_absent(blank, total, absent):
    report = apply_change(blank, 'total', str(total))
    report = apply_change(report, 'absent', str(absent))
    assert report.present == str(total - absent)


def test_derivation_needs_both_inputs(blank):
    report = apply_change(blank, 'total', '30')
    assert report.present == ''
    report = apply_change(blank, 'absent', '4')
    assert report.present == ''


def test_derivation_skips_negative_and_nan(blank):
    report = apply_change(apply_change(blank, 'total', '3'), 'absent', '5')
    assert report.present == ''
    report = apply_change(apply_change(blank, 'total', 'many'), 'absent', '5')
    assert report.present == ''


def test_present_typed_by_user_is_never_overwritten(blank):
    report = apply_change(blank, 'total', '30')
    report = apply_change(report, 'absent', '4')
    assert report.present == '26'

    report = apply_change(report, 'present', '25')
    report = apply_change(report, 'total', '31')
    assert report.present == '25'
    report = apply_change(report, 'absent', '2')
    assert report.present == '25'


def test_derivation_only_reacts_to_its_inputs(blank):
    report = Report(date='2026-10-19', total='30', absent='4')
    assert apply_change(report, 'comments', 'quiet day').present == ''
    assert derive_present(report).present == '26'


def test_derive_present_is_idempotent(blank):
    report = derive_present(Report(date='2026-10-19', total='30', absent='4'))
    assert derive_present(report) is report


def test_from_dict_merges_over_defaults():
    report = Report.from_dict(
        {'teacherName': 'Mr. Okafor', 'total': 28, 'present': None, 'principal': 'x'},
        now=NOW,
    )
    assert report.teacher_name == 'Mr. Okafor'
    assert report.total == '28'
    assert report.present == ''
    assert report.date == '2026-10-19'
    assert report.has_accident == 'No'


def test_to_dict_uses_wire_names(blank):
    data = set_field(blank, 'sickIn', '2').to_dict()
    assert data['sickIn'] == '2'
    assert data['submittedTime'] == '08:05 AM'
    assert 'sick_in' not in data
    assert len(data) == 16


def test_needs_incident_details(blank):
    assert not blank.needs_incident_details
    assert set_field(blank, 'hasAccident', 'Yes').needs_incident_details
    assert set_field(blank, 'hasHealthComplaint', 'Yes').needs_incident_details


def test_missing_identity_fields(blank):
    assert missing_identity_fields(blank) == ['teacherName', 'classGrade']
    report = set_field(set_field(blank, 'teacherName', '  '), 'classGrade', '7A')
    assert missing_identity_fields(report) == ['teacherName']


def test_build_summary():
    report = Report(date='2026-10-19', teacher_name='Ms. Daniels', class_grade='7A',
                    total='30', present='26', comments='Field trip forms due.')
    assert build_summary(report) == (
        'Daily Report: 2026-10-19\n'
        'Teacher: Ms. Daniels\n'
        'Class: 7A\n'
        'Attendance: 26/30\n'
        'Comments: Field trip forms due.'
    )

import io
import json
from datetime import datetime
from http import client as httpclient
from urllib import error as urlerror

import pytest

import submission
from conftest import WEBHOOK_URL
from errors import ConfigError, NetworkError, ValidationError
from report import Report
from submission import SubmissionClient, build_payload

NOW = datetime(2026, 10, 19, 15, 4, 5)


@pytest.fixture
def report() -> Report:
    return Report(date='2026-10-19', teacher_name='Ms. Daniels', class_grade='7A',
                  total='30', present='26', absent='4', submitted_time='08:05 AM')


def test_missing_endpoint_fails_before_network(sent, report):
    with pytest.raises(ConfigError):
        SubmissionClient('').submit(report)
    with pytest.raises(ConfigError):
        SubmissionClient(None).submit(Report(date='2026-10-19'))
    assert sent == []


@pytest.mark.parametrize('teacher,grade,missing', [
    ('', '7A', ('teacherName',)),
    ('Ms. Daniels', '', ('classGrade',)),
    ('   ', '', ('teacherName', 'classGrade')),
])
def test_missing_identity_fails_before_network(sent, teacher, grade, missing):
    report = Report(date='2026-10-19', teacher_name=teacher, class_grade=grade)
    with pytest.raises(ValidationError) as excinfo:
        SubmissionClient(WEBHOOK_URL).submit(report)
    assert excinfo.value.missing == missing
    assert sent == []


def test_submit_posts_report_as_json(sent, report):
    SubmissionClient(WEBHOOK_URL).submit(report, now=NOW)

    assert len(sent) == 1
    req = sent[0]
    assert req.full_url == WEBHOOK_URL
    assert req.get_method() == 'POST'
    assert req.get_header('Content-type') == 'application/json'
    body = json.loads(req.data.decode('utf-8'))
    assert body['teacherName'] == 'Ms. Daniels'
    assert body['present'] == '26'
    assert body['submittedTime'] == '08:05 AM'
    assert body['timestamp'] == '10/19/2026, 03:04:05 PM'


def test_build_payload_adds_timestamp_only(report):
    payload = build_payload(report, now=NOW)
    assert set(payload) == set(report.to_dict()) | {'timestamp'}


def test_error_status_still_counts_as_submitted(monkeypatch, report):
    def reject(req, *args, **kwargs):
        raise urlerror.HTTPError(req.full_url, 500, 'Server Error', {}, io.BytesIO(b'boom'))

    monkeypatch.setattr(submission.urlrequest, 'urlopen', reject)
    SubmissionClient(WEBHOOK_URL).submit(report)


@pytest.mark.parametrize('exc', [
    urlerror.URLError('Name or service not known'),
    ConnectionRefusedError(111, 'Connection refused'),
    TimeoutError('timed out'),
    httpclient.InvalidURL("nonnumeric port: 'x'"),
    httpclient.BadStatusLine('garbage'),
    ValueError('unknown url type'),
])
def test_dispatch_failure_is_network_error(monkeypatch, report, exc):
    def fail(req, *args, **kwargs):
        raise exc

    monkeypatch.setattr(submission.urlrequest, 'urlopen', fail)
    with pytest.raises(NetworkError):
        SubmissionClient(WEBHOOK_URL).submit(report)


def test_timeout_is_passed_only_when_configured(monkeypatch, report):
    calls = []

    class Response:
        def close(self):
            pass

    def record(req, *args, **kwargs):
        calls.append(kwargs)
        return Response()

    monkeypatch.setattr(submission.urlrequest, 'urlopen', record)
    SubmissionClient(WEBHOOK_URL).submit(report)
    SubmissionClient(WEBHOOK_URL, timeout=5).submit(report)
    assert calls == [{}, {'timeout': 5}]


def test_unusable_endpoint_is_network_error(sent, report):
    with pytest.raises(NetworkError):
        SubmissionClient('not a url').submit(report)
    assert sent == []

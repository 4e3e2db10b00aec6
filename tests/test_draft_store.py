import json
from datetime import datetime

import pytest

from draft_store import DRAFT_VERSION, DraftStore, decode_draft, encode_draft
from errors import StorageError
from models import ReportDraft, db
from report import Report

NOW = datetime(2026, 10, 19, 8, 5)


@pytest.fixture
def store(app_ctx) -> DraftStore:
    return DraftStore('test_draft')


def _put_raw(key: str, payload: str) -> None:
    db.session.add(ReportDraft(key=key, payload=payload))
    db.session.commit()


def test_load_without_draft(store):
    assert store.load() is None


def test_save_then_load(store):
    report = Report(date='2026-10-18', teacher_name='Ms. Daniels', total='30', present='26')
    store.save(report)
    assert store.load() == report


def test_save_overwrites_single_slot(store):
    store.save(Report(date='2026-10-18', comments='first'))
    store.save(Report(date='2026-10-18', comments='second'))
    assert ReportDraft.query.count() == 1
    assert store.load().comments == 'second'


def test_saved_record_is_versioned(store):
    store.save(Report(date='2026-10-18'))
    stored = json.loads(db.session.get(ReportDraft, 'test_draft').payload)
    assert stored['version'] == DRAFT_VERSION
    assert stored['report']['date'] == '2026-10-18'


def test_malformed_json_is_discarded(store):
    _put_raw('test_draft', '{"teacherName": ')
    assert store.load() is None


@pytest.mark.parametrize('payload', ['[1, 2]', '"draft"', 'null',
                                     '{"version": 99, "report": {}}',
                                     '{"version": 1, "report": "oops"}'])
def test_unusable_payloads_are_discarded(store, payload):
    _put_raw('test_draft', payload)
    assert store.load() is None


def test_unversioned_draft_is_merged_with_defaults():
    report = decode_draft(json.dumps({'teacherName': 'Mr. Okafor', 'present': 25, 'legacy': True}),
                          now=NOW)
    assert report.teacher_name == 'Mr. Okafor'
    assert report.present == '25'
    assert report.has_health_complaint == 'No'
    assert report.submitted_time == '08:05 AM'


def test_decode_rejects_garbage():
    with pytest.raises(StorageError):
        decode_draft('not json')


def test_encode_decode_keeps_every_field():
    report = Report(date='2026-10-19', teacher_name='A', class_grade='7A', total='1', present='1',
                    absent='0', sick_in='0', sent_home='0', disciplinary='none',
                    has_health_complaint='Yes', has_accident='No', incident_details='nosebleed',
                    comments='ok', signature='A', received_by='B', submitted_time='09:00 AM')
    assert decode_draft(encode_draft(report)) == report


def test_clear(store):
    store.save(Report(date='2026-10-18'))
    store.clear()
    assert store.load() is None
    store.clear()

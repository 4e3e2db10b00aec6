import sys
from pathlib import Path
from typing import Generator, List

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

import submission
from app import create_app

WEBHOOK_URL = 'https://script.example.test/macros/exec'


class FakeResponse:
    status = 200

    def close(self) -> None:
        pass


@pytest.fixture
def sent(monkeypatch: pytest.MonkeyPatch) -> List:
    """Record every request handed to ``urlopen`` instead of sending it."""
    requests: List = []

    def fake_urlopen(req, *args, **kwargs):
        requests.append(req)
        return FakeResponse()

    monkeypatch.setattr(submission.urlrequest, 'urlopen', fake_urlopen)
    return requests


def make_app(**overrides):
    config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'REPORT_WEBHOOK_URL': WEBHOOK_URL,
        'REPORT_WEBHOOK_TIMEOUT': None,
        'CLIENT_LOG_RATE_LIMIT': 2,
        'CLIENT_LOG_WINDOW_SECONDS': 60,
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture
def app(sent):
    return make_app()


@pytest.fixture
def app_ctx(app) -> Generator:
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()

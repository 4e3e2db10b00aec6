"""Flask application serving the teacher's daily report form.

The browser renders the form and calls a small JSON API on every edit. The
server owns the single report being edited (see :mod:`report_session`), keeps
it in the draft table, and forwards it to the spreadsheet webhook on submit.

Endpoints:

* ``GET /`` – the form.
* ``GET /api/report`` – the current report.
* ``PATCH /api/report`` – ``{"field": ..., "value": ...}`` or
  ``{"fields": {...}}``; applies the edits, persists the draft and returns the
  updated report (``present`` may have been filled in).
* ``DELETE /api/report`` – discard the draft and start a blank report.
* ``POST /api/report/submit`` – send the report to the webhook.
* ``GET /api/report/summary`` – plain-text digest for the clipboard.
* ``POST /api/report/summary/result`` – ``{"copied": bool}`` from the browser.
* ``GET /api/notification`` – the status message currently visible, if any.
* ``POST /client-logs`` – log lines from the browser, rate limited per IP.
* ``GET /health`` – liveness probe.

Errors are answered with problem-details JSON carrying the request ID. Run
under gunicorn with ``gunicorn 'app:create_app()'``.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections import defaultdict, deque
from typing import Any, Deque, Dict, Mapping, Optional

from flask import Flask, current_app, g, jsonify, render_template, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import BadRequest, HTTPException, TooManyRequests

from app_logging import get_logger
from config import Config
from correlation_id_middleware import init_correlation_id
from db_utils import ensure_schema
from draft_store import DraftStore
from errors import ReportError, SubmitError
from models import db
from notifications import Notifier
from report_session import ReportSession
from request_logging_middleware import client_ip, init_request_logging
from submission import SubmissionClient

EXTENSION_KEY = "daily_report"

ATTENDANCE_ROWS = (
    ("Total Students in Class", "total"),
    ("Number of Students Present", "present"),
    ("Number of Students Absent", "absent"),
    ("Students Sick (In School)", "sickIn"),
    ("Students Sent Home Sick", "sentHome"),
)
INCIDENT_FLAGS = (
    ("Health Complaints?", "hasHealthComplaint"),
    ("Accidents/Injuries?", "hasAccident"),
)

_client_logger = get_logger("app.client")
_logger = get_logger("app")


class ClientLogLimiter:
    """Sliding-window counter of browser log lines per client."""

    def __init__(self, limit: int, window: float) -> None:
        self.limit = limit
        self.window = window
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def allow(self, key: str, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        with self._lock:
            hits = self._hits[key]
            while hits and now - hits[0] >= self.window:
                hits.popleft()
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True


def get_session() -> ReportSession:
    return current_app.extensions[EXTENSION_KEY]


def _report_body(session: ReportSession) -> Dict[str, Any]:
    report = session.report
    return {
        "report": report.to_dict(),
        "needsIncidentDetails": report.needs_incident_details,
        "submitting": session.submitting,
    }


def _notification_body(session: ReportSession) -> Optional[Dict[str, Any]]:
    notification = session.notifier.current()
    if notification is None:
        return None
    return notification.to_dict(session.notifier.now())


def _json_object() -> Mapping[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest('Expected a JSON object')
    return data


def _problem(status: int, title: str, detail: str, **extra: Any):
    body = {
        'type': 'about:blank',
        'title': title,
        'status': status,
        'detail': detail,
        'request_id': g.get('request_id'),
    }
    body.update(extra)
    response = jsonify(body)
    response.status_code = status
    response.mimetype = 'application/problem+json'
    return response


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """Application factory used by both the server and tests.

    ``overrides`` are applied on top of :class:`config.Config` before any
    extension reads the configuration.
    """
    app = Flask(__name__, template_folder='templates', static_folder='static')
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    db.init_app(app)
    init_correlation_id(app)
    init_request_logging(app)
    ensure_schema(app)

    app.extensions[EXTENSION_KEY] = ReportSession(
        store=DraftStore(app.config['DRAFT_KEY']),
        client=SubmissionClient(app.config['REPORT_WEBHOOK_URL'],
                                timeout=app.config['REPORT_WEBHOOK_TIMEOUT']),
        notifier=Notifier(app.config['NOTIFICATION_SECONDS']),
    )
    limiter = ClientLogLimiter(app.config['CLIENT_LOG_RATE_LIMIT'],
                               app.config['CLIENT_LOG_WINDOW_SECONDS'])

    @app.route('/')
    def index() -> str:
        session = get_session()
        return render_template(
            'index.html',
            report=session.report.to_dict(),
            attendance_rows=ATTENDANCE_ROWS,
            incident_flags=INCIDENT_FLAGS,
        )

    @app.route('/health')
    def healthcheck():
        return jsonify({'status': 'ok'}), 200

    @app.route('/api/report', methods=['GET'])
    def api_get_report():
        return jsonify(_report_body(get_session()))

    @app.route('/api/report', methods=['PATCH'])
    def api_patch_report():
        data = _json_object()
        session = get_session()
        if 'fields' in data:
            values = data['fields']
            if not isinstance(values, dict):
                raise BadRequest('"fields" must be an object')
            session.change_many(values)
        elif 'field' in data:
            if not isinstance(data['field'], str):
                raise BadRequest('"field" must be a string')
            session.change(data['field'], data.get('value'))
        else:
            raise BadRequest('Provide "field" and "value", or "fields"')
        return jsonify(_report_body(session))

    @app.route('/api/report', methods=['DELETE'])
    def api_clear_report():
        session = get_session()
        session.clear()
        return jsonify(_report_body(session))

    @app.route('/api/report/submit', methods=['POST'])
    def api_submit_report():
        session = get_session()
        session.submit()
        return jsonify({
            'submitted': True,
            'notification': _notification_body(session),
        })

    @app.route('/api/report/summary', methods=['GET'])
    def api_summary():
        return jsonify({'summary': get_session().summary()})

    @app.route('/api/report/summary/result', methods=['POST'])
    def api_summary_result():
        data = _json_object()
        session = get_session()
        session.record_clipboard_result(bool(data.get('copied')))
        return jsonify({'notification': _notification_body(session)})

    @app.route('/api/notification', methods=['GET'])
    def api_notification():
        return jsonify({'notification': _notification_body(get_session())})

    @app.route('/client-logs', methods=['POST'])
    def client_logs():
        if not limiter.allow(client_ip()):
            raise TooManyRequests('Too many client log entries')
        data = _json_object()
        level = logging.getLevelName(str(data.get('level', 'info')).upper())
        if not isinstance(level, int):
            level = logging.INFO
        _client_logger.log(level, str(data.get('message', ''))[:1000],
                           extra={'client_context': data.get('context')})
        return jsonify({'accepted': True}), 202

    @app.errorhandler(ReportError)
    def handle_report_error(error: ReportError):
        extra: Dict[str, Any] = {}
        if isinstance(error, SubmitError):
            extra['notification'] = _notification_body(get_session())
        return _problem(error.status_code, error.title, error.detail, **extra)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return _problem(error.code or 500, error.name, error.description or error.name)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(error: SQLAlchemyError):
        db.session.rollback()
        _logger.error("draft database operation failed", extra={"error": str(error)})
        return _problem(503, 'Service Unavailable', 'Draft storage temporarily unavailable')

    return app


__all__ = ["create_app", "get_session"]


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8000))
    create_app().run(host='0.0.0.0', port=port, debug=True)

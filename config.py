"""Application configuration module.

Settings are read from environment variables, with a local ``.env`` file
loaded first when present. The daily report form needs very little: the
webhook that receives submitted reports, the database that holds the single
draft, and a handful of tuning knobs for notifications and logging.

Hosting platforms such as Heroku still hand out ``DATABASE_URL`` values that
start with ``postgres://``; SQLAlchemy only understands ``postgresql://`` so
the prefix is normalised below.
"""

import os
from dotenv import load_dotenv


def _float_env(name: str, default=None):
    raw = os.environ.get(name, '').strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Config:
    """Base configuration class.

    Flask reads every upper-case attribute through ``app.config.from_object``.
    Tests pass overrides to :func:`app.create_app` instead of subclassing.
    """

    load_dotenv()

    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-this-secret-in-prod')

    # Google Apps Script (or any other) endpoint receiving submitted reports.
    # Left empty, every submission fails closed with ConfigError.
    REPORT_WEBHOOK_URL = os.environ.get('REPORT_WEBHOOK_URL', '').strip()

    # None keeps the transport default (no explicit timeout).
    REPORT_WEBHOOK_TIMEOUT = _float_env('REPORT_WEBHOOK_TIMEOUT')

    _db_url = os.environ.get('DATABASE_URL', '')
    if _db_url.startswith('postgres://'):
        # Only the scheme is rewritten; the rest of the URL is left alone.
        _db_url = _db_url.replace('postgres://', 'postgresql://', 1)
    SQLALCHEMY_DATABASE_URI = _db_url or 'sqlite:///report_draft.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Fixed identifier of the one draft slot.
    DRAFT_KEY = os.environ.get('DRAFT_KEY', 'daily_report_draft')

    NOTIFICATION_SECONDS = _float_env('NOTIFICATION_SECONDS', 4.0)

    CLIENT_LOG_RATE_LIMIT = int(os.environ.get('CLIENT_LOG_RATE_LIMIT', '20'))
    CLIENT_LOG_WINDOW_SECONDS = float(os.environ.get('CLIENT_LOG_WINDOW_SECONDS', '60'))

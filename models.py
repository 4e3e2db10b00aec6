"""Database models for the daily report form.

There is exactly one persistent entity, :class:`ReportDraft`, holding the
in-progress report as a JSON blob under a fixed key. SQLAlchemy is used as the
ORM layer so the same code runs against the default SQLite file and against a
hosted Postgres database.
"""

from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy


# Initialised with the Flask application in ``app.py`` via ``db.init_app(app)``.
db = SQLAlchemy()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportDraft(db.Model):
    """The single draft slot.

    ``payload`` is the versioned JSON record written by
    :class:`draft_store.DraftStore`; the table itself knows nothing about the
    report fields so the shape can change without a migration.
    """

    __tablename__ = 'report_draft'

    key: str = db.Column(db.String(64), primary_key=True)
    payload: str = db.Column(db.Text, nullable=False)
    updated_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False,
                                     default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<ReportDraft {self.key} updated={self.updated_at}>"

from datetime import datetime, timezone

from ..extensions import db


class TimestampMixin:
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())


def iso(value):
    return value.isoformat() if value is not None else None


def utcnow():
    """Naive UTC, matching the database's now() defaults."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

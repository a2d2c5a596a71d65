from datetime import datetime, timezone
from sqlalchemy import Column, DateTime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    # Set by the application so ordering keeps sub-second precision on every backend.
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

# agricoventas/models/_timestamps.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, func


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def created_at_column():
    return Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False)


def updated_at_column():
    return Column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        nullable=False,
    )

"""Timezone-preserving datetime column for SQLite."""
from __future__ import annotations

from datetime import datetime

import pytz
from sqlalchemy import DateTime, String, TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    DateTime stored and returned as UTC.

    SQLite keeps datetimes as text and drops the offset, so there the column is
    plain text holding an ISO string with an explicit ``+00:00``. Naive values
    are assumed to be UTC.
    """

    impl = DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(40))
        return dialect.type_descriptor(DateTime(timezone=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        value = _as_utc(value)
        if dialect.name == "sqlite":
            return value.isoformat()
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, str):
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return _as_utc(value)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)

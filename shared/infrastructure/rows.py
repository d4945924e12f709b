"""Helpers for reading values out of remote rows."""

from __future__ import annotations

from datetime import date, datetime, timezone as dt_timezone

from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_date, parse_datetime  # type: ignore


def row_date(value) -> date | None:
    """Accept 'YYYY-MM-DD', full ISO timestamps, date or datetime."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date(value)
    if parsed is not None:
        return parsed
    moment = parse_datetime(value)
    if moment is None:
        raise ValueError(f"Not a date: {value!r}")
    return moment.date()


def row_datetime(value) -> datetime | None:
    """ISO timestamps become aware datetimes; bare dates become midnight UTC."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    else:
        moment = parse_datetime(value)
        if moment is None:
            day = parse_date(value)
            if day is None:
                raise ValueError(f"Not a timestamp: {value!r}")
            moment = datetime(day.year, day.month, day.day)
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment, dt_timezone.utc)
    return moment


def isoformat(value) -> str | None:
    return value.isoformat() if value is not None else None

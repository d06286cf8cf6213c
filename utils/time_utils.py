"""Time helpers.

Keep all timestamps consistent and timezone-aware.
Python 3.12 deprecates naive UTC helpers like datetime.utcnow(); use this module instead.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current time as a timezone-aware datetime in UTC (+00:00)."""

    return datetime.now(timezone.utc)


def today_utc() -> date:
    return utcnow().date()


def parse_ymd_date(date_str: str) -> date:
    """Parse a YYYY-MM-DD string into a `datetime.date`.

    Raises:
        ValueError: if `date_str` is not a valid YYYY-MM-DD date.
    """

    return date.fromisoformat(date_str)


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from `start` to `end`, both inclusive."""

    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def iter_business_days(start: date, end: date) -> Iterator[date]:
    """Like `iter_days` but skips Saturdays and Sundays (no EDINET filings)."""

    for d in iter_days(start, end):
        if not is_weekend(d):
            yield d

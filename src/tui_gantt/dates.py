"""Parse loosely-typed frontmatter date values and format them back.

All instants are naive ``datetime`` objects in local time. Date-only strings
are read as local midnight, never as UTC midnight, so a viewer west of UTC
does not see ``2026-03-15`` rendered as March 14.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any

from dateutil import parser as date_parser

DATE_ONLY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
SPACE_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}(:\d{2})?$")


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _from_timestamp(ms: float) -> datetime | None:
    if isinstance(ms, float) and (math.isnan(ms) or math.isinf(ms)):
        return None
    try:
        return datetime.fromtimestamp(ms / 1000)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_string(text: str) -> datetime | None:
    m = DATE_ONLY_RE.match(text)
    if m:
        try:
            return datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None

    if SPACE_DATETIME_RE.match(text):
        try:
            return datetime.fromisoformat(text.replace(" ", "T", 1))
        except ValueError:
            return None

    try:
        return _to_local_naive(date_parser.parse(text))
    except (ValueError, OverflowError):
        return None


def parse_date(value: Any) -> datetime | None:
    """Parse a frontmatter value into a local datetime.

    Accepts datetimes, dates, epoch milliseconds and strings. Returns None
    for anything empty, unparseable or impossible; never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _to_local_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return _from_timestamp(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    return _parse_string(text)


def format_date(instant: datetime | date) -> str:
    """Canonical YYYY-MM-DD form used for rendering and comparisons."""
    return f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"


def format_date_with_time(instant: datetime | date, include_time: bool = False) -> str:
    """Form written back to frontmatter. Time is only added when tracked."""
    if not include_time or not isinstance(instant, datetime):
        return format_date(instant)
    return f"{format_date(instant)}T{instant.hour:02d}:{instant.minute:02d}:{instant.second:02d}"


def add_days(instant: datetime, days: int) -> datetime:
    return instant + timedelta(days=days)


def is_date_string(text: str) -> bool:
    """True for strict YYYY-MM-DD strings that name a real day."""
    m = DATE_ONLY_RE.match(text.strip())
    if not m:
        return False
    try:
        date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return False
    return True

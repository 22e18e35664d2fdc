"""Lenient date helpers. Unparseable input is ``None`` / ``""``, never an exception."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Union

DateLike = Union[str, date, datetime, None]


def parse_datetime(value: DateLike) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp or ``YYYY-MM-DD`` date as an aware UTC datetime.

    Naive values are taken as UTC; a bare date becomes midnight UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            # arxiv:version dates are RFC 2822 ("Mon, 2 Apr 2007 19:18:42 GMT")
            try:
                parsed = parsedate_to_datetime(text)
            except (TypeError, ValueError):
                return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_date_string(value: DateLike) -> str:
    """``YYYY-MM-DD`` in UTC, or ``""`` when the input is missing or invalid."""
    parsed = parse_datetime(value)
    return parsed.date().isoformat() if parsed else ""


def utc_midnight(value: Union[date, datetime]) -> datetime:
    """Reference dates are compared as midnight UTC of that calendar day."""
    if isinstance(value, datetime):
        value = parse_datetime(value).date()
    return datetime.combine(value, time.min, tzinfo=timezone.utc)

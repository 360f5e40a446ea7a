from __future__ import annotations

import calendar
import re
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.exceptions import InvalidMonth, ValidationError

_MONTH_LABEL = re.compile(r"^(\d{4})-(\d{2})$")


def parse_iso_date(value: str, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def parse_iso_datetime(value: Optional[str], field_name: str = "timestamp") -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into naive local time.

    Offset-aware input (``+07:00``, ``Z``) is converted to local wall-clock
    time, which is what the DATETIME columns and the clock hold.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")
    return to_local_naive(parsed)


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Drop the offset of an aware datetime after converting it to local time."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(int(year), int(month))[1]


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of the month, both inclusive."""
    first = date(int(year), int(month), 1)
    last = date(int(year), int(month), days_in_month(year, month))
    return first, last


def require_month_number(month: int | str) -> int:
    try:
        month_num = int(month)
    except (TypeError, ValueError):
        raise InvalidMonth(f"Invalid month: {month!r}")
    if month_num < 1 or month_num > 12:
        raise InvalidMonth(f"Invalid month: {month!r}")
    return month_num


def parse_month_label(label: str, year: int) -> int:
    """Validate a "YYYY-MM" label against its paired year; return the month number."""
    m = _MONTH_LABEL.match((label or "").strip())
    if not m:
        raise InvalidMonth("Invalid month format. Use YYYY-MM")
    label_year, month_num = int(m.group(1)), int(m.group(2))
    if month_num < 1 or month_num > 12:
        raise InvalidMonth("Invalid month format. Use YYYY-MM")
    if label_year != int(year):
        raise InvalidMonth(f"Month {label} does not belong to year {year}")
    return month_num


def inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1

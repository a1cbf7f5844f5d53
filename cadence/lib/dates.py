"""Calendar-day helpers.

Dates travel through the engine as zero-padded "YYYY-MM-DD" strings. The fixed
width makes lexicographic order equal chronological order, and both the SQL
queries and the due rules compare them as plain strings.
"""

import re
from datetime import date, datetime, timedelta, timezone

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

from cadence.core.errors import ValidationError
from cadence.core.types import WEEKDAYS

from . import clock

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = date | datetime | str

_DAY_ALIASES = {
    "sunday": "sun",
    "monday": "mon",
    "tuesday": "tue",
    "wednesday": "wed",
    "thursday": "thu",
    "friday": "fri",
    "saturday": "sat",
}


def parse_date(value: str) -> date:
    if not isinstance(value, str) or not DATE_RE.match(value):
        raise ValidationError(f"invalid date '{value}' (expected YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"invalid date '{value}': {e}") from None


def format_date(value: DateLike) -> str:
    """Format using the value's own (local) year, month and day."""
    if isinstance(value, str):
        return parse_date(value).isoformat()
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def to_date(value: DateLike) -> date:
    if isinstance(value, str):
        return parse_date(value)
    if isinstance(value, datetime):
        return value.date()
    return value


def _utc_midnight(value: DateLike) -> datetime:
    d = to_date(value)
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def days_between(a: DateLike, b: DateLike) -> int:
    """Whole days from a to b, floored. Both ends are taken at UTC midnight."""
    delta = _utc_midnight(b) - _utc_midnight(a)
    return delta // timedelta(days=1)


def add_days(value: DateLike, days: int) -> str:
    return format_date(to_date(value) + timedelta(days=days))


def weekday_index(value: DateLike) -> int:
    """0=Sunday .. 6=Saturday."""
    return (to_date(value).weekday() + 1) % 7


def week_dates(start: DateLike) -> list[str]:
    return [add_days(start, i) for i in range(7)]


def week_start_for(value: DateLike, week_start: str = "sunday") -> str:
    offset = weekday_index(value)
    if week_start == "monday":
        offset = (offset + 6) % 7
    return add_days(value, -offset)


def parse_weekday(token: str) -> int:
    key = token.strip().lower()
    if key.isdigit():
        idx = int(key)
        if 0 <= idx <= 6:
            return idx
        raise ValidationError(f"weekday out of range: {token}")
    key = _DAY_ALIASES.get(key, key[:3])
    if key not in WEEKDAYS:
        raise ValidationError(f"unknown weekday '{token}'")
    return WEEKDAYS.index(key)


def parse_date_arg(text: str | None) -> str:
    """Parse user-facing date input ('today', 'yesterday', 'mon', ISO, free text)."""
    today = clock.today()
    if not text:
        return format_date(today)
    lowered = text.strip().lower()

    if lowered == "today":
        return format_date(today)
    if lowered == "yesterday":
        return add_days(today, -1)
    if lowered == "tomorrow":
        return add_days(today, 1)
    if lowered in _DAY_ALIASES or lowered in WEEKDAYS:
        # most recent occurrence, including today
        back = (weekday_index(today) - parse_weekday(lowered)) % 7
        return add_days(today, -back)
    if DATE_RE.match(lowered):
        return format_date(lowered)
    try:
        parsed = dateutil_parser.parse(text, default=datetime(today.year, today.month, today.day))
    except (ParserError, ValueError, OverflowError):
        raise ValidationError(f"could not parse date '{text}'") from None
    return format_date(parsed)

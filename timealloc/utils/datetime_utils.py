"""Date and time utilities."""

from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

WEEKDAY_NAMES = [
    'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday'
]

DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip().replace('Z', '+00:00')
        try:
            if 'T' in text or ' ' in text:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid date value: {value!r}")
    raise ValueError(f"Unsupported date value: {value!r}")


def to_datetime(value: Union[datetime, date, str]) -> datetime:
    """Normalize a datetime or ISO string to a naive datetime."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            raise ValueError(f"Invalid datetime value: {value!r}")
        return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed
    raise ValueError(f"Unsupported datetime value: {value!r}")


def to_optional_date(value: Optional[DateLike]) -> Optional[date]:
    """Like to_date but passes None through."""
    if value is None or value == '':
        return None
    return to_date(value)


def date_key(day: DateLike) -> str:
    """Return the YYYY-MM-DD grouping key for a day."""
    return to_date(day).isoformat()


def weekday_name(day: date) -> str:
    """Return the lowercase weekday name for a day."""
    return WEEKDAY_NAMES[day.weekday()]


def iter_days(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every calendar day from start to end, inclusive."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def resolve_today(today: Optional[DateLike] = None) -> date:
    """Return the given reference day, or the current local date."""
    return to_date(today) if today is not None else date.today()


def hours_between(start: datetime, end: datetime) -> float:
    """Duration between two datetimes in hours."""
    return (end - start).total_seconds() / 3600

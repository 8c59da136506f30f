"""
Calendar helpers.

Shift dates are calendar keys ("YYYY-MM-DD"), never instants. Anything that
arrives with a time or an offset is cut down to the calendar part exactly as
written, so "2025-03-10T23:30:00Z" stays on the 10th no matter where the
server runs. "Today" is always taken in settings.timezone.
"""
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from nightwatch.core.config import settings
from nightwatch.core.errors import ValidationError


def _zone(tz: str | None = None) -> ZoneInfo:
    return ZoneInfo(tz or settings.timezone)


def now(tz: str | None = None) -> datetime:
    return datetime.now(_zone(tz))


def today_key(tz: str | None = None) -> str:
    return now(tz).date().isoformat()


def to_date_key(value) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise ValidationError(f"Invalid date: {value!r}")

    raw = value.strip().split("T")[0].split(" ")[0]
    try:
        return date.fromisoformat(raw).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_date_key(value) -> date:
    return date.fromisoformat(to_date_key(value))


def days_between(a, b) -> int:
    """Whole days from a to b (negative when b is earlier)."""
    return (parse_date_key(b) - parse_date_key(a)).days


def add_days(key, n: int) -> str:
    return (parse_date_key(key) + timedelta(days=n)).isoformat()

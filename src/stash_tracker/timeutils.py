"""Epoch-millisecond helpers and local calendar boundaries."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

DECEMBER = 12


def now_ms() -> int:
    """Return the current time as epoch milliseconds."""
    return int(datetime.now(tz=UTC).timestamp() * 1000)


def to_ms(value: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return int(value.timestamp() * 1000)


def from_ms(value: int, tz: ZoneInfo) -> datetime:
    """Convert epoch milliseconds to an aware datetime in ``tz``."""
    return datetime.fromtimestamp(value / 1000, tz=tz)


def local_day(value: int, tz: ZoneInfo) -> date:
    """Return the calendar day of an epoch-ms instant in ``tz``."""
    return from_ms(value, tz).date()


def day_bounds_ms(day: date, tz: ZoneInfo) -> tuple[int, int]:
    """Return ``[start, end)`` epoch ms of a local calendar day."""
    start = datetime(day.year, day.month, day.day, tzinfo=tz)
    end_day = day + timedelta(days=1)
    end = datetime(end_day.year, end_day.month, end_day.day, tzinfo=tz)
    return to_ms(start), to_ms(end)


def month_bounds_ms(year: int, month: int, tz: ZoneInfo) -> tuple[int, int]:
    """Return ``[month_start, next_month_start)`` epoch ms in ``tz``."""
    start = datetime(year, month, 1, tzinfo=tz)
    if month == DECEMBER:
        end = datetime(year + 1, 1, 1, tzinfo=tz)
    else:
        end = datetime(year, month + 1, 1, tzinfo=tz)
    return to_ms(start), to_ms(end)


def today(tz: ZoneInfo) -> date:
    """Return today's date in ``tz``."""
    return datetime.now(tz=tz).date()


def utc_date_iso(value: int) -> str:
    """Return the UTC ``YYYY-MM-DD`` date of an epoch-ms instant."""
    return datetime.fromtimestamp(value / 1000, tz=UTC).date().isoformat()


def parse_iso_ms(value: str | None) -> int | None:
    """Parse an ISO date or datetime string to epoch ms.

    Date-only strings and naive datetimes are read as UTC.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return to_ms(parsed)

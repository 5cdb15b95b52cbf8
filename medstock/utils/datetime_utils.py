"""
Date and time helpers.

Timestamps are stored in UTC. Expiry dates are plain calendar dates and are
compared against the current UTC date. Reports render dates as YYYY-MM-DD and
timestamps as YYYY-MM-DD HH:MM:SS.

SQLite hands back naive datetimes even for timezone-aware columns, so anything
compared against utc_now() should pass through as_utc() first.
"""

from datetime import date, datetime, timedelta, timezone

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def as_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime; naive values are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_string(iso_string: str) -> datetime:
    """
    Parse a stored ISO 8601 timestamp (with or without a trailing 'Z') to UTC.

    Args:
        iso_string: e.g. "2024-12-28T10:30:00Z" or "2024-12-28T10:30:00+00:00"
    """
    if iso_string.endswith("Z"):
        iso_string = iso_string[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(iso_string))


def utc_today() -> date:
    """Current calendar date in UTC."""
    return utc_now().date()


def expiry_window(days: int) -> tuple[date, date]:
    """
    Inclusive (start, end) date window from today to today + days.

    Args:
        days: Length of the window in days

    Returns:
        Tuple of (today, today + days)
    """
    today = utc_today()
    return today, today + timedelta(days=days)


def format_date(value: date | None) -> str:
    """Render a date as YYYY-MM-DD, or an empty string for None."""
    if value is None:
        return ""
    return value.strftime(DATE_FORMAT)


def format_timestamp(value: datetime | None) -> str:
    """Render a timestamp as YYYY-MM-DD HH:MM:SS (UTC), or an empty string for None."""
    if value is None:
        return ""
    return as_utc(value).strftime(TIMESTAMP_FORMAT)

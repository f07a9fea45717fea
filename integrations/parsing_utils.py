"""Shared parsing utilities for the activity feed.

Centralises the date/time and number parsing logic the wire mapping
needs: ISO 8601 strings, timezone normalisation and exact decimals.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation


def parse_iso_datetime(value) -> datetime | None:
    """Parse an ISO 8601 string (or date/datetime object) to a UTC-aware datetime.

    Handles the formats produced by the feed:
    - Z suffix ("2024-01-15T10:30:00.123456Z")
    - Standard ISO with colon offset ("2024-01-15T10:30:00-05:00")
    - Date-only strings, used for non-trade activities ("2024-06-28")
    - datetime/date objects passed through with UTC normalisation

    Args:
        value: A string, date, datetime, or None.

    Returns:
        A timezone-aware UTC datetime, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return date_to_datetime(value)

    value_str = str(value)

    # Handle Z suffix: "2024-01-15T10:30:00Z" -> "2024-01-15T10:30:00+00:00"
    if value_str.endswith("Z"):
        value_str = value_str[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(value_str))
    except (ValueError, TypeError):
        pass

    try:
        return date_to_datetime(date.fromisoformat(str(value)))
    except (ValueError, TypeError):
        return None


def parse_decimal(value) -> Decimal | None:
    """Parse a numeric wire value into an exact Decimal.

    The feed encodes amounts as strings ("9.33"); numbers are converted
    through ``str`` so that floats do not leak binary rounding.

    Returns:
        The Decimal, or None if the value is missing or not a number.
    """
    if value is None or value == "":
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not result.is_finite():
        return None
    return result


def ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware and expressed in UTC.

    Naive datetimes are assumed to be UTC already.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def date_to_datetime(d: date) -> datetime:
    """Convert a date to a midnight-UTC datetime."""
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)

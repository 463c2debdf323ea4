"""Shared datetime parsing utilities."""

from datetime import datetime, timezone


def parse_iso_datetime(dt_str: str | None) -> datetime | None:
    """Parse ISO format datetime string to datetime object.

    Handles common variations:
    - "2025-01-15T10:30:00Z" -> datetime with UTC timezone
    - "2025-01-15" -> midnight UTC
    - "" or None -> None

    Args:
        dt_str: ISO format datetime string, or None.

    Returns:
        Parsed datetime with timezone, or None if parsing fails.
    """
    if not dt_str:
        return None
    try:
        # Handle Z suffix (Zulu time = UTC)
        if dt_str.endswith("Z"):
            dt_str = dt_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(dt_str)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, TypeError):
        return None


def is_expired(end_date: str | None, now: datetime | None = None) -> bool:
    """Whether an ISO end date lies at or before ``now``.

    Missing or unparseable end dates are never expired.
    """
    end = parse_iso_datetime(end_date)
    if end is None:
        return False
    now = now or datetime.now(timezone.utc)
    return end <= now


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)

"""Timestamp parsing and storage formatting."""
import calendar
from datetime import datetime, timezone
from typing import Optional, Tuple


def parse_timestamp(s: str) -> datetime:
    """
    Parse a timestamp string into an aware datetime.

    Supports:
    - ISO format with "Z" suffix: "2024-01-02T09:10:00Z"
    - ISO format with timezone: "2024-01-02T09:10:00+00:00"
    - ISO format without timezone: "2024-01-02T09:10:00"
    - Space-separated: "2024-01-02 09:10:00"

    Naive values are assumed to be UTC.

    Raises:
        ValueError: If timestamp cannot be parsed
    """
    if not s:
        raise ValueError("Empty timestamp string")

    s = s.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    if " " in s and "T" not in s:
        s = s.replace(" ", "T", 1)

    try:
        dt = datetime.fromisoformat(s)
    except ValueError as e:
        raise ValueError(
            f"Unable to parse timestamp: {s}. Expected ISO format (e.g., '2024-01-02T09:10:00Z')"
        ) from e

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Normalize to UTC; naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Fixed-width UTC ISO string, so stored values sort lexicographically."""
    return to_utc(dt).isoformat(timespec="microseconds")


def month_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """First and last instant of the month containing ``now``, in local server time."""
    local_now = now.astimezone() if now is not None else datetime.now().astimezone()
    last_day = calendar.monthrange(local_now.year, local_now.month)[1]
    start = datetime(local_now.year, local_now.month, 1).astimezone()
    end = datetime(local_now.year, local_now.month, last_day, 23, 59, 59, 999000).astimezone()
    return start, end

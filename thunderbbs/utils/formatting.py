"""
ThunderBBS Formatting Utilities

Helper functions for timestamps and output text.
"""

from datetime import datetime, timezone
from typing import Optional

# Largest value sqlite3 can bind as an INTEGER
MAX_ID = 2**63 - 1


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string, the stored timestamp format."""
    return datetime.now(timezone.utc).isoformat()


def _parse(timestamp: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(timestamp)
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone()


def format_time(timestamp: str) -> str:
    """
    Format a stored timestamp as local wall-clock time.

    Args:
        timestamp: ISO-8601 string

    Returns:
        Formatted string like "14:32:15"
    """
    dt = _parse(timestamp)
    if dt is None:
        return "??:??:??"
    return dt.strftime("%H:%M:%S")


def format_date(timestamp: str) -> str:
    """Format a stored timestamp as a local date like "2025-12-10"."""
    dt = _parse(timestamp)
    if dt is None:
        return "unknown date"
    return dt.strftime("%Y-%m-%d")


def format_datetime(timestamp: str) -> str:
    """Format a stored timestamp as "2025-12-10 14:32"."""
    dt = _parse(timestamp)
    if dt is None:
        return "unknown date"
    return dt.strftime("%Y-%m-%d %H:%M")


def format_clock(moment: datetime) -> str:
    """Format an in-memory datetime as "14:32:15"."""
    return moment.strftime("%H:%M:%S")


def parse_id(text: str) -> Optional[int]:
    """
    Parse a numeric record id.

    Returns:
        The id, or None if the text is not a plain ASCII non-negative
        integer or is too large to store
    """
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    if value > MAX_ID:
        return None
    return value

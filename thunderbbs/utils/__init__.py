"""ThunderBBS Utilities Module."""

from .formatting import utc_timestamp, format_time, format_date, format_datetime, format_clock, parse_id

__all__ = ["utc_timestamp", "format_time", "format_date", "format_datetime", "format_clock", "parse_id"]

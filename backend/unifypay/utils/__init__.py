from .timestamp import parse_timestamp, format_timestamp, month_bounds, to_utc, utcnow

__all__ = ["parse_timestamp", "format_timestamp", "month_bounds", "to_utc", "utcnow"]

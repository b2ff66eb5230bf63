"""Date parsing and formatting utilities."""

from datetime import date, datetime
from dateutil import parser as date_parser


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates such as "2024-01-15", "January 15, 2024" and
    "01/15/2024". Relative words such as "today" raise
    ValueError.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip()
    if not date_str:
        raise ValueError("Empty date string")

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def format_date(value: date, pattern: str = "YYYY-MM-DD") -> str:
    """Format a date with a token pattern.

    Supported tokens are ``YYYY`` (four-digit year), ``MM`` (zero-padded
    month) and ``DD`` (zero-padded day). Everything else is copied as is.

    Args:
        value: Date or datetime to format
        pattern: Token pattern, e.g. "MM/DD/YYYY"

    Returns:
        Formatted date string
    """
    if isinstance(value, datetime):
        value = value.date()

    return (
        pattern.replace("YYYY", f"{value.year:04d}")
        .replace("MM", f"{value.month:02d}")
        .replace("DD", f"{value.day:02d}")
    )

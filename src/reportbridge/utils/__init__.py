"""Utility functions for reportbridge."""

from reportbridge.utils.date_parser import parse_date, format_date
from reportbridge.utils.amount_parser import parse_amount, format_fixed
from reportbridge.utils.headers import normalize_header, canonicalize_row

__all__ = [
    "parse_date",
    "format_date",
    "parse_amount",
    "format_fixed",
    "normalize_header",
    "canonicalize_row",
]

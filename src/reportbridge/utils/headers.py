"""Header normalization for spreadsheet-style rows."""

import math
import re
from typing import Any, Mapping

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_header(header: Any) -> str:
    """Return the canonical form of a column header.

    "Src Acct Code", "srcAcctCode" and "src_acct_code" all become
    "srcacctcode".
    """
    return _NON_ALNUM.sub("", str(header).lower())


def canonicalize_row(row: Mapping[str, Any], aliases: Mapping[str, str]) -> dict[str, Any]:
    """Map a raw row onto canonical field names.

    Args:
        row: Raw row keyed by whatever headers the source file used
        aliases: Normalized header -> canonical field name

    Returns:
        Dict keyed by canonical field name. Headers without an alias are
        dropped. When several headers map to the same field, the first
        non-empty value wins.
    """
    result: dict[str, Any] = {}
    for header, value in row.items():
        field = aliases.get(normalize_header(header))
        if field is None:
            continue
        if is_blank(result.get(field)):
            result[field] = value
    return result


def is_blank(value: Any) -> bool:
    """True for None, float NaN and whitespace-only strings."""
    if value is None:
        return True
    # Spreadsheet readers return NaN for empty numeric cells
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()

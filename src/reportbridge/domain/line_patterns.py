"""Report line pattern matching.

Classifies one line of pipe-delimited report text into one of the known
line kinds. Patterns are tried in a fixed precedence order and the first
match wins, so the more specific shapes (ledger balances, payment-method
totals) are listed before the generic ``CODE|description|count|amount``
shapes that would otherwise swallow them.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from reportbridge.domain.entities import LineKind, PaymentMethod, ReportSection
from reportbridge.utils.amount_parser import parse_amount

_AMOUNT = r"(\$[\d,.-]+|-\$[\d,.]+|\(\$?[\d,.-]+\))"

LEDGER_LINE = re.compile(
    r"^((?:GUEST\s+LEDGER|CITY\s+LEDGER|ADVANCE\s+DEPOSITS)(?:\s+TOTAL)?)\|" + _AMOUNT,
    re.IGNORECASE,
)
PAYMENT_METHOD_LINE = re.compile(
    r"^(VISA/MASTER|VISA|MASTER|MASTERCARD|AMEX|DISCOVER|CASH|CHECKS)\|" + _AMOUNT
)
SUMMARY_LINE = re.compile(
    r"^(Total\s+[A-Z\s]+|ADR|RevPar|Occupancy\s*%?|DEPOSIT\s+TOTAL)\|" + _AMOUNT,
    re.IGNORECASE,
)
EMBEDDED_TRANSACTION_LINE = re.compile(r"^([A-Za-z0-9]+)\|([^|]+)\|(\d+)\|" + _AMOUNT)
CATEGORY_ACCOUNT_LINE = re.compile(
    r"^(GL|CL)\s+([^|]+)\|([A-Z0-9]+)\|([^|]+)\|(\d+)\|" + _AMOUNT
)
CATEGORY_ACCOUNT_SUMMARY_LINE = re.compile(r"^(GL|CL)\s+([^|]+)\|(\d+)\|" + _AMOUNT)
STATISTICAL_LINE = re.compile(
    r"^(Occupied|No\s+Show|Late\s+C/I|Early\s+C/O|Total\s+Rooms|Out\s+of\s+Service"
    r"|Comps|Occupancy\s*%)\|(-?[\d,]+(?:\.\d+)?)",
    re.IGNORECASE,
)
CATEGORY_PREFIXED_LINE = re.compile(r"^([^|]+)\|([A-Z0-9]+)\|([^|]+)\|(\d+)\|" + _AMOUNT)
CATEGORY_SUMMARY_LINE = re.compile(r"^([A-Za-z]+(?:\s+[A-Za-z]+)+)\|(\d+)\|" + _AMOUNT)

# Keyword patterns; whitespace and pipes both count as token boundaries
_PAYMENT_KEYWORDS: tuple[tuple[PaymentMethod, re.Pattern], ...] = (
    (
        PaymentMethod.VISA,
        re.compile(r"(?:^|[\s|])(VISA|VISA\s*CARD|VISA/MC)(?=[\s|\d/]|$)", re.IGNORECASE),
    ),
    (
        PaymentMethod.MASTER,
        re.compile(
            r"(?:^|[\s|])(MASTER|MASTERCARD|MASTER\s*CARD|MC)(?=[\s|\d]|$)", re.IGNORECASE
        ),
    ),
    (
        PaymentMethod.DISCOVER,
        re.compile(r"(?:^|[\s|])(DISCOVER)(?=[\s|\d]|$)", re.IGNORECASE),
    ),
    (
        PaymentMethod.AMEX,
        re.compile(r"(?:^|[\s|])(AMEX|AMERICAN\s*EXPRESS)(?=[\s|\d]|$)", re.IGNORECASE),
    ),
)

# Advance-deposit refunds are reported but never posted
_SKIPPED_DESCRIPTION_PREFIXES = ("REFUND AD",)
_SKIPPED_DESCRIPTIONS = {"REFUND PREPAID"}

_SECTION_SUMMARY_HEADER = re.compile(r"Detail\s+Listing\s+Summary", re.IGNORECASE)
_SECTION_DETAIL_HEADER = re.compile(r"^Detail\s+Listing\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class LineMatch:
    """A successful classification of one report line."""

    kind: LineKind
    source_code: str
    description: str
    amount: Decimal
    payment_method: Optional[PaymentMethod] = None

    @property
    def is_currency(self) -> bool:
        """Statistical metrics are counts and percentages, not money."""
        return self.kind is not LineKind.STATISTICAL

    @property
    def carries_transaction_code(self) -> bool:
        return self.kind in (
            LineKind.EMBEDDED_TRANSACTION,
            LineKind.CATEGORY_ACCOUNT,
            LineKind.CATEGORY_PREFIXED,
        )


class _SkipLine(Exception):
    """Raised by a builder when a matched line must produce no record."""


def detect_payment_method(line: str) -> Optional[PaymentMethod]:
    """Scan a line for card-brand keywords."""
    for method, pattern in _PAYMENT_KEYWORDS:
        if pattern.search(line):
            return method
    return None


def detect_section_header(line: str) -> Optional[ReportSection]:
    """Return the section a header line opens, or None.

    "Detail Listing Summary" is tested first so the less specific
    "Detail Listing" header cannot claim it.
    """
    if _SECTION_SUMMARY_HEADER.search(line):
        return ReportSection.DETAIL_LISTING_SUMMARY
    if _SECTION_DETAIL_HEADER.match(line):
        return ReportSection.DETAIL_LISTING
    return None


def _ledger(m: re.Match, line: str) -> LineMatch:
    return LineMatch(
        LineKind.LEDGER_BALANCE, m.group(1).strip(), "Ledger Balance", parse_amount(m.group(2))
    )


def _payment_summary(m: re.Match, line: str) -> LineMatch:
    # Totals per brand; individual transactions carry the payment method instead
    return LineMatch(
        LineKind.PAYMENT_SUMMARY, m.group(1), "Payment Method Total", parse_amount(m.group(2))
    )


def _summary(m: re.Match, line: str) -> LineMatch:
    return LineMatch(
        LineKind.SUMMARY, m.group(1).strip(), "Summary Total", parse_amount(m.group(2))
    )


def _embedded(m: re.Match, line: str) -> LineMatch:
    description = m.group(2).strip()
    if description.startswith(_SKIPPED_DESCRIPTION_PREFIXES) or description in _SKIPPED_DESCRIPTIONS:
        raise _SkipLine(description)
    return LineMatch(
        LineKind.EMBEDDED_TRANSACTION,
        m.group(1).strip(),
        description,
        parse_amount(m.group(4)),
        detect_payment_method(line),
    )


def _category_account(m: re.Match, line: str) -> LineMatch:
    description = f"{m.group(2).strip()} {m.group(4).strip()}".strip()
    return LineMatch(
        LineKind.CATEGORY_ACCOUNT,
        m.group(3).strip(),
        description,
        parse_amount(m.group(6)),
        detect_payment_method(line),
    )


def _category_account_summary(m: re.Match, line: str) -> LineMatch:
    source_code = f"{m.group(1)} {m.group(2).strip()}"
    return LineMatch(
        LineKind.CATEGORY_ACCOUNT_SUMMARY,
        source_code,
        source_code,
        parse_amount(m.group(4)),
        detect_payment_method(line),
    )


def _statistical(m: re.Match, line: str) -> LineMatch:
    return LineMatch(
        LineKind.STATISTICAL,
        m.group(1).strip(),
        "Statistical Data",
        parse_amount(m.group(2)),
    )


def _category_prefixed(m: re.Match, line: str) -> LineMatch:
    return LineMatch(
        LineKind.CATEGORY_PREFIXED,
        m.group(2).strip(),
        m.group(3).strip(),
        parse_amount(m.group(5)),
        detect_payment_method(line),
    )


def _category_summary(m: re.Match, line: str) -> LineMatch:
    category = m.group(1).strip()
    return LineMatch(
        LineKind.CATEGORY_SUMMARY,
        category,
        category,
        parse_amount(m.group(3)),
        detect_payment_method(line),
    )


LINE_PATTERNS: tuple[tuple[re.Pattern, Callable[[re.Match, str], LineMatch]], ...] = (
    (LEDGER_LINE, _ledger),
    (PAYMENT_METHOD_LINE, _payment_summary),
    (SUMMARY_LINE, _summary),
    (EMBEDDED_TRANSACTION_LINE, _embedded),
    (CATEGORY_ACCOUNT_LINE, _category_account),
    (CATEGORY_ACCOUNT_SUMMARY_LINE, _category_account_summary),
    (STATISTICAL_LINE, _statistical),
    (CATEGORY_PREFIXED_LINE, _category_prefixed),
    (CATEGORY_SUMMARY_LINE, _category_summary),
)


def match_line(line: str) -> Optional[LineMatch]:
    """Classify one trimmed report line.

    Args:
        line: Line of report text with surrounding whitespace removed

    Returns:
        LineMatch for the first pattern that matches, or None when no pattern
        matches, the line is a skipped refund, or its amount is unreadable
    """
    for pattern, build in LINE_PATTERNS:
        m = pattern.match(line)
        if m is None:
            continue
        try:
            return build(m, line)
        except (_SkipLine, ValueError):
            return None
    return None

"""Account line parser domain service."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from reportbridge.domain.entities import (
    AccountLine,
    LineKind,
    ParsingStats,
    PaymentMethodGroup,
    ReportSection,
)
from reportbridge.domain.code_mapping import extract_valid_code
from reportbridge.domain.line_patterns import LineMatch, detect_section_header, match_line

logger = logging.getLogger(__name__)

# Metrics that reports sometimes repeat with a different qualifier ("ADR w/comps")
STATISTICAL_CODES = frozenset(
    {
        "ADR",
        "REVPAR",
        "OCCUPANCY",
        "OCCUPIED",
        "OUT OF SERVICE",
        "COMPS",
        "ROOMS SOLD",
        "ROOMS AVAILABLE",
        "NO SHOW",
        "LATE C/I",
        "EARLY C/O",
        "TOTAL ROOMS",
    }
)

CONSOLIDATED_SOURCE_CODE = "CC"
MIN_LINE_LENGTH = 3


def statistical_key(source_code: str) -> str:
    """Return the dedup key for a source code ("Occupancy %" -> "OCCUPANCY")."""
    return " ".join(source_code.upper().rstrip("%").split())


def is_statistical_code(source_code: str) -> bool:
    """Check if a source code is a statistical metric (ADR, RevPar, etc.)."""
    return statistical_key(source_code) in STATISTICAL_CODES


@dataclass
class AccountLineParserConfig:
    """Settings for account line parsing and consolidation."""

    combine_payment_methods: bool = True
    payment_method_groups: dict[str, list[str]] = field(
        default_factory=lambda: {"Credit Cards": ["VISA/MASTER", "AMEX"]}
    )
    minimum_amount: Decimal = Decimal("0.01")
    include_zero_amounts: bool = False
    valid_source_codes: Optional[frozenset[str]] = None


class AccountLineParser:
    """Service for extracting account lines from report text."""

    def __init__(self, config: Optional[AccountLineParserConfig] = None):
        """Initialize account line parser.

        Args:
            config: Parser configuration; defaults are used when omitted
        """
        self.config = config or AccountLineParserConfig()
        if self.config.valid_source_codes:
            self._whitelist = frozenset(c.upper() for c in self.config.valid_source_codes)
        else:
            self._whitelist = frozenset()

    def parse_account_lines(self, text: str) -> list[AccountLine]:
        """Parse report text into account lines.

        Args:
            text: Full report text, one logical record per line

        Returns:
            Account lines in document order
        """
        lines = text.split("\n")
        account_lines: list[AccountLine] = []
        section = ReportSection.UNKNOWN
        seen_statistical: set[str] = set()

        logger.debug("Starting account line parsing (%d lines)", len(lines))

        for index, raw_line in enumerate(lines):
            line = raw_line.strip()
            if len(line) < MIN_LINE_LENGTH:
                continue

            header = detect_section_header(line)
            if header is not None:
                section = header
                logger.debug("Line %d opens section %s", index + 1, section.value)
                continue

            account_line = self._parse_line(line, index + 1)
            if account_line is None:
                continue

            if is_statistical_code(account_line.source_code):
                key = statistical_key(account_line.source_code)
                if key in seen_statistical:
                    logger.debug("Dropping repeated statistic %s on line %d", key, index + 1)
                    continue
                seen_statistical.add(key)

            account_lines.append(account_line)

        logger.debug(
            "Account line parsing completed: %d of %d lines parsed",
            len(account_lines),
            len(lines),
        )
        return account_lines

    def _parse_line(self, line: str, line_number: int) -> Optional[AccountLine]:
        """Turn one line into an account line, or None when it is not one."""
        match = match_line(line)
        if match is None:
            return None

        if match.is_currency and not self._passes_minimum(match.amount):
            logger.debug("Line %d below minimum amount: %s", line_number, match.amount)
            return None

        return AccountLine(
            source_code=self._whitelisted_code(match),
            description=match.description,
            amount=match.amount,
            payment_method=match.payment_method,
            original_line=line,
            line_number=line_number,
            kind=match.kind,
        )

    def _passes_minimum(self, amount: Decimal) -> bool:
        if self.config.include_zero_amounts:
            return True
        return abs(amount) >= self.config.minimum_amount

    def _whitelisted_code(self, match: LineMatch) -> str:
        """Prefer the longest known code when the raw code is not itself known."""
        if not self._whitelist or not match.carries_transaction_code:
            return match.source_code
        if match.source_code.upper() in self._whitelist:
            return match.source_code
        extraction = extract_valid_code(match.source_code, self._whitelist)
        return extraction.code if extraction else match.source_code

    def _group_for(self, method: str) -> Optional[str]:
        """Return the configured group containing a payment method."""
        for group_name, members in self.config.payment_method_groups.items():
            for member in members:
                if method.upper() in member.upper().split("/"):
                    return group_name
        return None

    def group_payment_methods(self, account_lines: list[AccountLine]) -> list[PaymentMethodGroup]:
        """Group lines carrying a payment method.

        Lines whose method belongs to a configured group are collected under
        that group's name; other methods form an unconfigured group named
        after themselves.

        Args:
            account_lines: Parsed account lines

        Returns:
            Groups in order of first appearance, or an empty list when
            combining is disabled
        """
        if not self.config.combine_payment_methods:
            return []

        members: dict[tuple[str, bool], list[AccountLine]] = {}
        for line in account_lines:
            if line.payment_method is None:
                continue
            method = line.payment_method.value
            group_name = self._group_for(method)
            key = (group_name, True) if group_name is not None else (method, False)
            members.setdefault(key, []).append(line)

        return [
            PaymentMethodGroup(
                group_name=name,
                payment_methods=frozenset(l.payment_method.value for l in lines),
                total_amount=sum((l.amount for l in lines), Decimal("0")),
                account_lines=tuple(lines),
                configured=configured,
            )
            for (name, configured), lines in members.items()
        ]

    def get_consolidated_account_lines(self, text: str) -> list[AccountLine]:
        """Parse report text and combine configured payment-method groups.

        Args:
            text: Full report text

        Returns:
            Lines without a payment method, then one combined "CC" line per
            configured group, then payment-method lines outside every group
        """
        original_lines = self.parse_account_lines(text)
        if not self.config.combine_payment_methods:
            return original_lines

        consolidated = [line for line in original_lines if line.payment_method is None]
        grouped_ids: set[int] = set()

        for group in self.group_payment_methods(original_lines):
            if not group.configured:
                continue
            consolidated.append(
                AccountLine(
                    source_code=CONSOLIDATED_SOURCE_CODE,
                    description=group.group_name,
                    amount=group.total_amount,
                    payment_method=None,
                    original_line="Combined: "
                    + " | ".join(l.original_line for l in group.account_lines),
                    line_number=min(l.line_number for l in group.account_lines),
                    kind=LineKind.CONSOLIDATED,
                )
            )
            grouped_ids.update(id(l) for l in group.account_lines)

        consolidated.extend(
            line
            for line in original_lines
            if line.payment_method is not None and id(line) not in grouped_ids
        )
        return consolidated

    def get_parsing_stats(self, text: str) -> ParsingStats:
        """Return counts and totals for one parse of a document."""
        account_lines = self.parse_account_lines(text)
        payment_lines = [l for l in account_lines if l.payment_method is not None]
        return ParsingStats(
            total_lines=len(text.split("\n")),
            parsed_lines=len(account_lines),
            payment_method_lines=len(payment_lines),
            total_amount=sum((l.amount for l in account_lines), Decimal("0")),
            payment_method_amount=sum((l.amount for l in payment_lines), Decimal("0")),
        )

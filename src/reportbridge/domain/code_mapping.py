"""Account code mapping resolution.

Loads the source -> target account code table and answers lookups. A
mapping row applies either to every property (property id 0) or to one
property; when both exist for a source code, the property-specific row
wins for that property.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Optional

from reportbridge.domain.entities import AccountCodeMapping, CodeExtraction, MappingMetadata
from reportbridge.domain.errors import (
    InvalidFormatError,
    NoMappingError,
    duplicate_code_mapping,
    no_code_mapping,
)
from reportbridge.utils.amount_parser import parse_amount
from reportbridge.utils.headers import canonicalize_row, is_blank

logger = logging.getLogger(__name__)

MAX_CODE_LENGTH = 8

# Normalized header -> canonical field
CODE_MAPPING_ALIASES = {
    "sourcecode": "source_code",
    "srcacctcode": "source_code",
    "sourcedescription": "source_description",
    "srcacctdesc": "source_description",
    "targetcode": "target_code",
    "acctcode": "target_code",
    "targetname": "target_name",
    "acctname": "target_name",
    "propertyid": "property_id",
    "propertyname": "property_name",
    "multiplier": "multiplier",
}

_FALLBACK_CODE = re.compile(r"^([A-Z0-9]{1,2})", re.IGNORECASE)


def _text(value: Any) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _parse_property_id(value: Any) -> int:
    if is_blank(value):
        return 0
    try:
        return int(Decimal(_text(value)))
    except (ArithmeticError, ValueError):
        return 0


def _parse_multiplier(value: Any) -> Decimal:
    if is_blank(value):
        return Decimal("1")
    try:
        return parse_amount(_text(value))
    except ValueError:
        return Decimal("1")


def build_code_mappings(
    rows: Iterable[Mapping[str, Any]], strict: bool = False
) -> tuple[list[AccountCodeMapping], MappingMetadata]:
    """Build account code mappings from spreadsheet-style rows.

    Args:
        rows: Rows keyed by column header; "sourceCode", "Src Acct Code" and
            similar header spellings are accepted
        strict: Raise instead of skipping rows that lack a source or target
            code or repeat a (source code, property) pair

    Returns:
        Tuple of (mappings in input order, load metadata)

    Raises:
        InvalidFormatError: In strict mode, for the first invalid row
    """
    mappings: list[AccountCodeMapping] = []
    warnings: list[str] = []
    seen: set[tuple[str, int]] = set()
    skipped = 0

    for row_num, raw in enumerate(rows, start=1):
        row = canonicalize_row(raw, CODE_MAPPING_ALIASES)
        source_code = _text(row.get("source_code"))
        target_code = _text(row.get("target_code"))

        if not source_code or not target_code:
            message = f"Row {row_num}: missing source or target code"
            if strict:
                raise InvalidFormatError(message)
            skipped += 1
            warnings.append(message)
            continue

        property_id = _parse_property_id(row.get("property_id"))
        key = (source_code.upper(), property_id)
        if key in seen:
            message = f"Row {row_num}: {duplicate_code_mapping(source_code, property_id)}"
            if strict:
                raise InvalidFormatError(message)
            skipped += 1
            warnings.append(message)
            continue
        seen.add(key)

        property_name = _text(row.get("property_name")) or None
        source_description = _text(row.get("source_description")) or None
        mappings.append(
            AccountCodeMapping(
                source_code=source_code,
                target_code=target_code,
                target_name=_text(row.get("target_name")),
                property_id=property_id,
                property_name=property_name,
                multiplier=_parse_multiplier(row.get("multiplier")),
                source_description=source_description,
            )
        )

    if skipped:
        logger.warning("Skipped %d invalid mapping rows", skipped)
        warnings.append(f"Skipped {skipped} invalid rows (missing required fields or duplicates)")

    metadata = summarize_mappings(mappings, skipped_rows=skipped, warnings=warnings)
    logger.info(
        "Loaded %d account code mappings (%d source codes, %d target codes)",
        metadata.total_mappings,
        metadata.unique_source_codes,
        metadata.unique_target_codes,
    )
    return mappings, metadata


def summarize_mappings(
    mappings: Iterable[AccountCodeMapping],
    skipped_rows: int = 0,
    warnings: Iterable[str] = (),
) -> MappingMetadata:
    """Compute load metadata for a set of mappings."""
    mappings = list(mappings)
    return MappingMetadata(
        total_mappings=len(mappings),
        unique_source_codes=len({m.source_code.upper() for m in mappings}),
        unique_target_codes=len({m.target_code for m in mappings}),
        has_property_specific_mappings=any(m.property_id != 0 for m in mappings),
        skipped_rows=skipped_rows,
        warnings=tuple(warnings),
    )


def extract_valid_code(
    text: str, valid_codes: Optional[Iterable[str]] = None
) -> Optional[CodeExtraction]:
    """Extract a known code from the start of a text fragment.

    Prefixes of 8 characters down to 1 are tried, so the longest known code
    wins: with codes {"9", "91"}, "91ABC" yields "91".

    Args:
        text: Fragment starting with a code
        valid_codes: Known codes; without them the first one or two
            alphanumeric characters are taken

    Returns:
        The code and the text after it, or None when nothing matches
    """
    trimmed = text.strip()
    codes = {c.upper() for c in valid_codes} if valid_codes else set()

    if not codes:
        m = _FALLBACK_CODE.match(trimmed)
        if m is None:
            return None
        return CodeExtraction(m.group(1), trimmed[len(m.group(1)) :].strip())

    for length in range(min(MAX_CODE_LENGTH, len(trimmed)), 0, -1):
        candidate = trimmed[:length].upper()
        if candidate in codes:
            return CodeExtraction(candidate, trimmed[length:].strip())
    return None


def apply_multiplier(amount: Decimal, mapping: AccountCodeMapping) -> Decimal:
    """Translate a source amount into the target representation."""
    return amount * mapping.multiplier


class AccountCodeResolver:
    """Read-only lookup over a loaded account code mapping table."""

    def __init__(
        self,
        mappings: Iterable[AccountCodeMapping],
        metadata: Optional[MappingMetadata] = None,
    ):
        """Build the lookup indices.

        Args:
            mappings: Loaded mappings
            metadata: Load metadata; computed from the mappings when omitted
        """
        self._mappings = tuple(mappings)

        by_source: dict[str, list[AccountCodeMapping]] = {}
        by_target: dict[str, list[AccountCodeMapping]] = {}
        for mapping in self._mappings:
            by_source.setdefault(mapping.source_code.upper(), []).append(mapping)
            by_target.setdefault(mapping.target_code.upper(), []).append(mapping)

        self.by_source_code = MappingProxyType({k: tuple(v) for k, v in by_source.items()})
        self.by_target_code = MappingProxyType({k: tuple(v) for k, v in by_target.items()})
        self.metadata = metadata or summarize_mappings(self._mappings)
        self.source_codes = frozenset(self.by_source_code)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]], strict: bool = False) -> "AccountCodeResolver":
        """Build a resolver straight from spreadsheet-style rows."""
        mappings, metadata = build_code_mappings(rows, strict=strict)
        return cls(mappings, metadata)

    @property
    def mappings(self) -> tuple[AccountCodeMapping, ...]:
        return self._mappings

    def find(self, source_code: str, property_id: int = 0) -> Optional[AccountCodeMapping]:
        """Find the mapping for a source code.

        Args:
            source_code: Source code as it appears in the report (any case)
            property_id: Property being processed; 0 means global only

        Returns:
            The property-specific mapping if one exists, else the global one,
            else None
        """
        candidates = self.by_source_code.get(source_code.strip().upper(), ())
        global_match = None
        for mapping in candidates:
            if property_id and mapping.property_id == property_id:
                return mapping
            if mapping.property_id == 0 and global_match is None:
                global_match = mapping
        return global_match

    def resolve(self, source_code: str, property_id: int = 0) -> AccountCodeMapping:
        """Like find, but a missing mapping is an error.

        Raises:
            NoMappingError: If neither a property-specific nor a global
                mapping exists
        """
        mapping = self.find(source_code, property_id)
        if mapping is None:
            raise NoMappingError(no_code_mapping(source_code, property_id))
        return mapping

    def find_by_target_code(self, target_code: str) -> list[AccountCodeMapping]:
        """Return every mapping that points at a target code."""
        return list(self.by_target_code.get(target_code.strip().upper(), ()))

    def mappings_for_property(self, property_id: int) -> list[AccountCodeMapping]:
        """Return mappings visible to a property (its own plus global)."""
        return [m for m in self._mappings if m.property_id in (0, property_id)]

    def extract_code(self, fragment: str) -> Optional[CodeExtraction]:
        """Extract the longest known source code from the start of a fragment."""
        return extract_valid_code(fragment, self.source_codes)

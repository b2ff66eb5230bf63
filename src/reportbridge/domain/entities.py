"""Domain model entities for reportbridge.

These are pure data classes representing the extraction and mapping
concepts, independent of database schema and of the reader that produced
the report text.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class PaymentMethod(str, Enum):
    """Card brand detected on an individual transaction line."""

    VISA = "VISA"
    MASTER = "MASTER"
    DISCOVER = "DISCOVER"
    AMEX = "AMEX"


class LineKind(str, Enum):
    """Which report-line pattern produced an account line."""

    LEDGER_BALANCE = "ledger_balance"
    PAYMENT_SUMMARY = "payment_summary"
    SUMMARY = "summary"
    EMBEDDED_TRANSACTION = "embedded_transaction"
    CATEGORY_ACCOUNT = "category_account"
    CATEGORY_ACCOUNT_SUMMARY = "category_account_summary"
    STATISTICAL = "statistical"
    CATEGORY_PREFIXED = "category_prefixed"
    CATEGORY_SUMMARY = "category_summary"
    CONSOLIDATED = "consolidated"


class ReportSection(str, Enum):
    """Section of the report the parser is currently in."""

    UNKNOWN = "unknown"
    DETAIL_LISTING = "detail-listing"
    DETAIL_LISTING_SUMMARY = "detail-listing-summary"


@dataclass(frozen=True)
class AccountLine:
    """One normalized fact extracted from report text."""

    source_code: str
    description: str
    amount: Decimal
    payment_method: Optional[PaymentMethod]
    original_line: str
    line_number: int
    kind: LineKind = LineKind.EMBEDDED_TRANSACTION

    def to_row(self) -> dict[str, Any]:
        """Return the line as a plain dict for the transformation engine."""
        return {
            "source_code": self.source_code,
            "description": self.description,
            "amount": self.amount,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "original_line": self.original_line,
            "line_number": self.line_number,
        }


@dataclass(frozen=True)
class PaymentMethodGroup:
    """Account lines sharing a configured payment-method group."""

    group_name: str
    payment_methods: frozenset[str]
    total_amount: Decimal
    account_lines: tuple[AccountLine, ...]
    # False for a method outside every configured group
    configured: bool = True


@dataclass(frozen=True)
class ParsingStats:
    """Counts gathered from one parse of a document."""

    total_lines: int
    parsed_lines: int
    payment_method_lines: int
    total_amount: Decimal
    payment_method_amount: Decimal


@dataclass(frozen=True)
class AccountCodeMapping:
    """One row of the account code mapping table."""

    source_code: str
    target_code: str
    target_name: str = ""
    property_id: int = 0
    property_name: Optional[str] = None
    multiplier: Decimal = Decimal("1")
    source_description: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.property_id == 0


@dataclass(frozen=True)
class MappingMetadata:
    """Summary of one load of the account code mapping table."""

    total_mappings: int
    unique_source_codes: int
    unique_target_codes: int
    has_property_specific_mappings: bool
    skipped_rows: int = 0
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class CodeExtraction:
    """Result of pulling a known code off the front of a text fragment."""

    code: str
    remaining_text: str


@dataclass(frozen=True)
class ValidationConfig:
    """Advisory constraints checked after a value is transformed."""

    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    allowed_values: Optional[tuple[Any, ...]] = None


@dataclass(frozen=True)
class TransformationRule:
    """Declarative instruction producing one output field."""

    source_path: str
    target_field: str
    data_type: str = "string"
    required: bool = False
    default_value: Any = None
    transformation: Optional[str] = None
    transformation_params: dict[str, Any] = field(default_factory=dict)
    validation: Optional[ValidationConfig] = None


@dataclass(frozen=True)
class PropertyMapping:
    """Transformation rules that apply to one property."""

    property_id: str
    property_name: str
    rules: tuple[TransformationRule, ...]
    file_format: str = "all"


@dataclass(frozen=True)
class CustomTransformation:
    """Named custom transformation declared in a mapping file.

    ``code`` is kept for reference only and is never executed; ``function``
    names an entry of the built-in registry.
    """

    name: str
    description: Optional[str] = None
    parameters: dict[str, Any] = field(default_factory=dict)
    function: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class MappingTable:
    """Everything the transformation engine needs from a mapping file."""

    property_mappings: tuple[PropertyMapping, ...]
    custom_transformations: dict[str, CustomTransformation] = field(default_factory=dict)
    date_format: str = "YYYY-MM-DD"
    output_format: str = "csv"


@dataclass(frozen=True)
class RawFileData:
    """Parsed content of one source file awaiting transformation."""

    filename: str
    property_id: str
    file_type: str
    content: dict[str, Any]
    parsed_at: datetime = field(default_factory=datetime.now)
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class TransformedRecord:
    """One output record produced from one input row."""

    record_id: str
    fields: dict[str, Any]
    source_row_index: int
    transformation_warnings: tuple[str, ...] = ()
    source_record: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class TransformationError:
    """A row-level failure recorded in the run metadata."""

    type: str
    message: str
    row_index: Optional[int] = None
    field: Optional[str] = None


@dataclass(frozen=True)
class TransformedData:
    """All records produced from one raw file, plus run metadata."""

    property_id: str
    property_name: str
    records: tuple[TransformedRecord, ...]
    source_file: str
    source_file_type: str
    transformed_at: datetime
    transformation_time_ms: float
    applied_rules: int
    warnings: tuple[str, ...]
    errors: tuple[TransformationError, ...]

    @property
    def record_count(self) -> int:
        return len(self.records)

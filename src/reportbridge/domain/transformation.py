"""Rule-driven transformation engine.

Turns the rows of a parsed source file into typed output records. Each
property has a rule set; every rule reads one source value, coerces it to
the rule's data type, optionally runs a named transformation and checks
advisory validation constraints.
"""

import hashlib
import json
import logging
import re
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Optional

from reportbridge.domain.custom_transforms import lookup_custom_transformation
from reportbridge.domain.entities import (
    MappingTable,
    PropertyMapping,
    RawFileData,
    TransformationError,
    TransformationRule,
    TransformedData,
    TransformedRecord,
)
from reportbridge.domain.errors import (
    DomainError,
    NoMappingError,
    TransformationFailedError,
    ValidationError,
    cannot_convert,
    no_property_mapping,
    required_field_missing,
    stopped_after_errors,
)
from reportbridge.utils.amount_parser import format_fixed, parse_amount
from reportbridge.utils.date_parser import format_date, parse_date
from reportbridge.utils.headers import normalize_header

logger = logging.getLogger(__name__)

VALIDATION_MODES = ("strict", "lenient", "skip")

_TRUE_STRINGS = {"true", "yes", "1", "on"}
_FALSE_STRINGS = {"false", "no", "0", "off"}

_MISSING = object()


@dataclass
class TransformationConfig:
    """Error policy for one transformation run."""

    continue_on_error: bool = True
    max_errors: int = 100
    include_debug_info: bool = False
    validation_mode: str = "lenient"

    def __post_init__(self):
        if self.validation_mode not in VALIDATION_MODES:
            raise ValidationError(
                f"Invalid validation mode '{self.validation_mode}'. "
                f"Valid modes: {', '.join(VALIDATION_MODES)}"
            )
        if self.max_errors < 0:
            raise ValidationError("max_errors must not be negative")


def lookup_path(record: Any, path: str) -> Any:
    """Resolve a dot-separated path inside nested mappings and lists.

    Each segment is tried as an exact key first, then against keys with the
    same normalized spelling ("First Name" for "firstName"). Numeric
    segments index into lists.

    Returns:
        The value, or the module's missing sentinel when any segment is
        absent
    """
    current = record
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part in current:
                current = current[part]
                continue
            wanted = normalize_header(part)
            for key, value in current.items():
                if normalize_header(key) == wanted:
                    current = value
                    break
            else:
                return _MISSING
        elif isinstance(current, (list, tuple)) and part.isdigit():
            index = int(part)
            if index >= len(current):
                return _MISSING
            current = current[index]
        else:
            return _MISSING
    return current


def coerce_value(value: Any, data_type: str) -> Any:
    """Convert a source value to a rule's data type.

    Raises:
        TransformationFailedError: If the value cannot be converted
    """
    if data_type == "number":
        if isinstance(value, Decimal) and value.is_finite():
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        try:
            return parse_amount(str(value))
        except ValueError:
            raise TransformationFailedError(cannot_convert(value, "number"))

    if data_type == "date":
        if isinstance(value, (date, datetime)):
            return value
        try:
            return parse_date(str(value))
        except ValueError:
            raise TransformationFailedError(cannot_convert(value, "date"))

    if data_type == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float, Decimal)):
            return value != 0
        text = str(value).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise TransformationFailedError(cannot_convert(value, "boolean"))

    return str(value)


def validation_problems(value: Any, rule: TransformationRule) -> list[str]:
    """Check a transformed value against a rule's validation constraints."""
    validation = rule.validation
    if validation is None or value is None:
        return []

    text = str(value)
    problems = []
    if validation.min_length is not None and len(text) < validation.min_length:
        problems.append(f"Value too short (min: {validation.min_length}, actual: {len(text)})")
    if validation.max_length is not None and len(text) > validation.max_length:
        problems.append(f"Value too long (max: {validation.max_length}, actual: {len(text)})")
    if validation.pattern and re.search(validation.pattern, text) is None:
        problems.append(f"Value does not match pattern: {validation.pattern}")
    if validation.allowed_values is not None:
        allowed = validation.allowed_values
        if value not in allowed and text not in {str(a) for a in allowed}:
            problems.append(
                f"Value not in allowed list: {', '.join(str(a) for a in allowed)}"
            )
    return [f"Validation warning for field {rule.target_field}: {p}" for p in problems]


def generate_record_id(index: int, source_record: Mapping[str, Any]) -> str:
    """Return a stable id for a record built from one source row."""
    payload = json.dumps(source_record, default=str, sort_keys=True)
    digest = hashlib.sha1(payload.encode("utf-8")).hexdigest()[:8]
    return f"record_{index}_{digest}"


def extract_source_records(content: Mapping[str, Any], file_type: str) -> list[dict[str, Any]]:
    """Pull the rows to transform out of parsed file content.

    Args:
        content: Parsed file content
        file_type: "csv", "pdf" or "txt"

    Returns:
        Rows as dicts; an empty list for unknown file types or missing data
    """
    if file_type == "csv":
        rows = content.get("rows")
        if not isinstance(rows, list):
            return []
        headers = content.get("headers")
        records = []
        for row in rows:
            if isinstance(row, Mapping):
                records.append(dict(row))
            elif isinstance(row, (list, tuple)):
                if isinstance(headers, list):
                    records.append(dict(zip(headers, row)))
                else:
                    records.append({str(i): v for i, v in enumerate(row)})
        return records

    if file_type in ("pdf", "txt"):
        structured = content.get("structuredData")
        if isinstance(structured, list):
            return [dict(row) for row in structured if isinstance(row, Mapping)]
        if content.get("text") is not None:
            return [
                {
                    "text": content.get("text"),
                    "lines": content.get("lines"),
                    "pageCount": content.get("pageCount"),
                    "pages": content.get("pages"),
                    "structure": content.get("structure"),
                }
            ]
        return []

    return []


def find_property_mapping(raw: RawFileData, mapping_table: MappingTable) -> PropertyMapping:
    """Find the rule set for a file's property and file type.

    Raises:
        NoMappingError: If no rule set covers the property and file type
    """
    property_id = str(raw.property_id)
    for mapping in mapping_table.property_mappings:
        if mapping.property_id == property_id and mapping.file_format in (raw.file_type, "all"):
            return mapping
    raise NoMappingError(no_property_mapping(property_id, raw.file_type))


class TransformationEngine:
    """Service for turning raw file rows into typed output records."""

    def __init__(self, config: Optional[TransformationConfig] = None):
        """Initialize transformation engine.

        Args:
            config: Error policy; defaults are used when omitted
        """
        self.config = config or TransformationConfig()

    def transform_data(self, raw: RawFileData, mapping_table: MappingTable) -> TransformedData:
        """Transform every row of a raw file.

        Args:
            raw: Parsed source file
            mapping_table: Rule sets and custom transformations

        Returns:
            TransformedData with the records and run metadata

        Raises:
            NoMappingError: If no rule set covers the file's property and type
            DomainError: If a row fails and continue_on_error is off
        """
        started = time.perf_counter()
        property_mapping = find_property_mapping(raw, mapping_table)
        source_records = extract_source_records(raw.content, raw.file_type)

        logger.info(
            "Transforming %s for property %s (%d rows, %d rules)",
            raw.filename,
            raw.property_id,
            len(source_records),
            len(property_mapping.rules),
        )

        records: list[TransformedRecord] = []
        errors: list[TransformationError] = []
        warnings: list[str] = []
        applied_rules = 0

        for index, source_record in enumerate(source_records):
            if len(errors) >= self.config.max_errors:
                warnings.append(stopped_after_errors(self.config.max_errors))
                logger.warning("Stopped %s after %d errors", raw.filename, len(errors))
                break

            try:
                record = self.transform_record(
                    source_record, index, property_mapping.rules, mapping_table
                )
            except DomainError as e:
                if not self.config.continue_on_error:
                    raise
                errors.append(
                    TransformationError(
                        type=e.code.value,
                        message=f"Failed to transform record {index}: {e.message}",
                        row_index=index,
                        field=e.field,
                    )
                )
                logger.debug("Row %d of %s failed: %s", index, raw.filename, e.message)
                continue

            records.append(record)
            applied_rules += len(property_mapping.rules)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Transformed %s: %d records, %d errors, %d warnings",
            raw.filename,
            len(records),
            len(errors),
            len(warnings),
        )

        return TransformedData(
            property_id=property_mapping.property_id,
            property_name=property_mapping.property_name,
            records=tuple(records),
            source_file=raw.filename,
            source_file_type=raw.file_type,
            transformed_at=datetime.now(UTC),
            transformation_time_ms=elapsed_ms,
            applied_rules=applied_rules,
            warnings=tuple(raw.warnings) + tuple(warnings),
            errors=tuple(errors),
        )

    def transform_record(
        self,
        source_record: dict[str, Any],
        index: int,
        rules: Iterable[TransformationRule],
        mapping_table: MappingTable,
    ) -> TransformedRecord:
        """Apply a rule set to one source row.

        Raises:
            ValidationError: If a required field has no value and no default
            TransformationFailedError: If a required field (or any field in
                strict mode) cannot be coerced or transformed
        """
        fields: dict[str, Any] = {}
        record_warnings: list[str] = []

        for rule in rules:
            value = lookup_path(source_record, rule.source_path)
            if value is _MISSING or value is None:
                if rule.default_value is not None:
                    fields[rule.target_field] = rule.default_value
                elif rule.required:
                    raise ValidationError(
                        required_field_missing(rule.target_field), field=rule.target_field
                    )
                continue

            try:
                value = coerce_value(value, rule.data_type)
                value = self.apply_transformation(value, rule, mapping_table, record_warnings)
            except TransformationFailedError as e:
                if rule.required or self.config.validation_mode == "strict":
                    raise TransformationFailedError(
                        f"Field {rule.target_field}: {e.message}", field=rule.target_field
                    )
                record_warnings.append(
                    f"Optional field transformation failed: {rule.target_field} - {e.message}"
                )
                if rule.default_value is not None:
                    fields[rule.target_field] = rule.default_value
                continue

            if self.config.validation_mode != "skip":
                record_warnings.extend(validation_problems(value, rule))
            fields[rule.target_field] = value

        return TransformedRecord(
            record_id=generate_record_id(index, source_record),
            fields=fields,
            source_row_index=index,
            transformation_warnings=tuple(record_warnings),
            source_record=dict(source_record) if self.config.include_debug_info else None,
        )

    def apply_transformation(
        self,
        value: Any,
        rule: TransformationRule,
        mapping_table: MappingTable,
        record_warnings: list[str],
    ) -> Any:
        """Run a rule's named transformation on a coerced value.

        Unknown or absent transformation names leave the value unchanged.

        Raises:
            TransformationFailedError: If the transformation cannot handle
                the value
        """
        name = rule.transformation
        params = rule.transformation_params

        if name == "uppercase":
            return str(value).upper()
        if name == "lowercase":
            return str(value).lower()
        if name == "trim":
            return str(value).strip()
        if name == "currency":
            return self._currency(value, params)
        if name == "date_format":
            return self._date_format(value, params, mapping_table.date_format)
        if name == "custom":
            return self._custom(value, params, mapping_table, record_warnings)
        return value

    def _currency(self, value: Any, params: Mapping[str, Any]) -> str:
        try:
            precision = int(params.get("precision", 2))
            if isinstance(value, Decimal):
                amount = value
            elif isinstance(value, (int, float)) and not isinstance(value, bool):
                amount = Decimal(str(value))
            else:
                amount = parse_amount(str(value))
            return format_fixed(amount, precision)
        except (ValueError, ArithmeticError):
            raise TransformationFailedError(cannot_convert(value, "currency"))

    def _date_format(self, value: Any, params: Mapping[str, Any], default_format: str) -> str:
        pattern = str(params.get("format") or default_format)
        if not isinstance(value, (date, datetime)):
            try:
                value = parse_date(str(value))
            except ValueError:
                raise TransformationFailedError(cannot_convert(value, "date"))
        return format_date(value, pattern)

    def _custom(
        self,
        value: Any,
        params: Mapping[str, Any],
        mapping_table: MappingTable,
        record_warnings: list[str],
    ) -> Any:
        name = str(params.get("functionName") or "")
        found = lookup_custom_transformation(name, mapping_table.custom_transformations)
        if found is None:
            record_warnings.append(f"Custom transformation function not found: {name}")
            return value

        function, defaults = found
        call_params = {**defaults, **{k: v for k, v in params.items() if k != "functionName"}}
        try:
            return function(value, call_params)
        except (ValueError, TypeError, ArithmeticError) as e:
            raise TransformationFailedError(f"Custom transformation {name} failed: {e}")


def transform_file_data(
    raw: RawFileData,
    mapping_table: MappingTable,
    config: Optional[TransformationConfig] = None,
) -> TransformedData:
    """Transform one file with a fresh engine."""
    return TransformationEngine(config).transform_data(raw, mapping_table)


def transform_multiple_files(
    files: Iterable[RawFileData],
    mapping_table: MappingTable,
    config: Optional[TransformationConfig] = None,
) -> list[TransformedData]:
    """Transform several files in order.

    Args:
        files: Parsed source files
        mapping_table: Rule sets shared by all files
        config: Error policy; with continue_on_error on, files that fail
            are logged and left out of the result

    Returns:
        One TransformedData per successfully transformed file

    Raises:
        DomainError: For the first failing file when continue_on_error is off
    """
    engine = TransformationEngine(config)
    results = []
    for raw in files:
        try:
            results.append(engine.transform_data(raw, mapping_table))
        except DomainError as e:
            if not engine.config.continue_on_error:
                raise
            logger.warning("Skipping %s: %s", raw.filename, e.message)
    return results

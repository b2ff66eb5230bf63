"""Transformation rule sets built from mapping-file rows."""

import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from reportbridge.domain.entities import (
    CustomTransformation,
    MappingTable,
    PropertyMapping,
    TransformationRule,
    ValidationConfig,
)
from reportbridge.domain.errors import InvalidFormatError
from reportbridge.utils.headers import canonicalize_row, is_blank

logger = logging.getLogger(__name__)

DATA_TYPES = ("string", "number", "date", "boolean")
TRANSFORMATIONS = ("uppercase", "lowercase", "trim", "currency", "date_format", "custom")
FILE_FORMATS = ("pdf", "csv", "txt", "all")

RULE_ALIASES = {
    "propertyid": "property_id",
    "propertyname": "property_name",
    "fileformat": "file_format",
    "sourcefield": "source_path",
    "sourcepath": "source_path",
    "targetfield": "target_field",
    "datatype": "data_type",
    "required": "required",
    "defaultvalue": "default_value",
    "transformation": "transformation",
    "transformationparams": "transformation_params",
    "minlength": "min_length",
    "maxlength": "max_length",
    "pattern": "pattern",
    "allowedvalues": "allowed_values",
}

CUSTOM_ALIASES = {
    "name": "name",
    "description": "description",
    "parameters": "parameters",
    "function": "function",
    "code": "code",
}

CONFIG_ALIASES = {"key": "key", "value": "value"}


def parse_bool(value: Any) -> bool:
    """Interpret a spreadsheet cell as a flag."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1", "on", "y"}
    return bool(value)


def parse_json_object(value: Any) -> dict[str, Any]:
    """Parse a JSON object cell; blanks and malformed text give an empty dict."""
    if isinstance(value, Mapping):
        return dict(value)
    if is_blank(value):
        return {}
    try:
        parsed = json.loads(str(value))
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed JSON cell: %r", value)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _parse_scalar(item: str) -> Any:
    if item == "true":
        return True
    if item == "false":
        return False
    try:
        return int(item)
    except ValueError:
        pass
    try:
        return float(item)
    except ValueError:
        return item


def parse_list(value: Any) -> Optional[tuple[Any, ...]]:
    """Parse a comma-separated cell into a tuple of scalars."""
    if isinstance(value, (list, tuple)):
        return tuple(value)
    if is_blank(value):
        return None
    items = [item.strip() for item in str(value).split(",")]
    return tuple(_parse_scalar(item) for item in items if item)


def _parse_int(value: Any) -> Optional[int]:
    if is_blank(value):
        return None
    try:
        return int(float(str(value)))
    except ValueError:
        return None


def _property_key(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_validation(row: Mapping[str, Any]) -> Optional[ValidationConfig]:
    """Read the validation columns of a canonical rule row."""
    validation = ValidationConfig(
        min_length=_parse_int(row.get("min_length")),
        max_length=_parse_int(row.get("max_length")),
        pattern=None if is_blank(row.get("pattern")) else str(row["pattern"]),
        allowed_values=parse_list(row.get("allowed_values")),
    )
    if validation == ValidationConfig():
        return None
    return validation


def parse_rule(row: Mapping[str, Any]) -> TransformationRule:
    """Build a transformation rule from a canonical rule row."""
    transformation = str(row.get("transformation") or "").strip().lower() or None
    if transformation not in TRANSFORMATIONS:
        transformation = None

    default_value = row.get("default_value")
    if is_blank(default_value):
        default_value = None

    return TransformationRule(
        source_path=str(row.get("source_path") or "").strip(),
        target_field=str(row.get("target_field") or "").strip(),
        data_type=str(row.get("data_type") or "string").strip().lower(),
        required=parse_bool(row.get("required")),
        default_value=default_value,
        transformation=transformation,
        transformation_params=parse_json_object(row.get("transformation_params")),
        validation=parse_validation(row),
    )


def validate_rules(mappings: Iterable[PropertyMapping]) -> None:
    """Check rule sets for structural completeness.

    Raises:
        InvalidFormatError: On a rule without source or target field, or
            with an unknown data type
    """
    for mapping in mappings:
        for rule in mapping.rules:
            if not rule.source_path:
                raise InvalidFormatError(
                    f"Rule for property {mapping.property_id} missing sourceField"
                )
            if not rule.target_field:
                raise InvalidFormatError(
                    f"Rule for property {mapping.property_id} missing targetField"
                )
            if rule.data_type not in DATA_TYPES:
                raise InvalidFormatError(
                    f"Invalid data type '{rule.data_type}' for rule "
                    f"{rule.source_path} -> {rule.target_field}"
                )
            if rule.validation and rule.validation.pattern:
                try:
                    re.compile(rule.validation.pattern)
                except re.error as e:
                    raise InvalidFormatError(
                        f"Invalid pattern for field {rule.target_field}: {e}"
                    )
        if mapping.file_format not in FILE_FORMATS:
            raise InvalidFormatError(
                f"Invalid file format '{mapping.file_format}' for property {mapping.property_id}"
            )


def build_property_mappings(rule_rows: Iterable[Mapping[str, Any]]) -> list[PropertyMapping]:
    """Group rule rows by property id into property mappings.

    Rows without a property id are ignored. Property name and file format
    come from the first row of each property.
    """
    grouped: dict[str, list[dict[str, Any]]] = {}
    for raw in rule_rows:
        row = canonicalize_row(raw, RULE_ALIASES)
        property_id = _property_key(row.get("property_id"))
        if not property_id:
            continue
        grouped.setdefault(property_id, []).append(row)

    mappings = []
    for property_id, rows in grouped.items():
        first = rows[0]
        mappings.append(
            PropertyMapping(
                property_id=property_id,
                property_name=str(first.get("property_name") or property_id).strip(),
                file_format=str(first.get("file_format") or "all").strip().lower(),
                rules=tuple(parse_rule(row) for row in rows),
            )
        )
    return mappings


def build_custom_transformations(
    rows: Iterable[Mapping[str, Any]],
) -> dict[str, CustomTransformation]:
    """Read the custom transformation table of a mapping file."""
    transformations = {}
    for raw in rows:
        row = canonicalize_row(raw, CUSTOM_ALIASES)
        name = str(row.get("name") or "").strip()
        if not name:
            continue
        transformations[name] = CustomTransformation(
            name=name,
            description=None if is_blank(row.get("description")) else str(row["description"]),
            parameters=parse_json_object(row.get("parameters")),
            function=None if is_blank(row.get("function")) else str(row["function"]).strip(),
            code=None if is_blank(row.get("code")) else str(row["code"]),
        )
    return transformations


def build_mapping_table(
    rule_rows: Iterable[Mapping[str, Any]],
    custom_rows: Iterable[Mapping[str, Any]] = (),
    config_rows: Iterable[Mapping[str, Any]] = (),
    validate: bool = True,
) -> MappingTable:
    """Build a mapping table from the rows of a mapping file.

    Args:
        rule_rows: One row per transformation rule
        custom_rows: Custom transformation declarations
        config_rows: Key/value rows of global settings (dateFormat, outputFormat)
        validate: Reject structurally incomplete rules

    Returns:
        MappingTable

    Raises:
        InvalidFormatError: If validation is on and a rule is incomplete
    """
    property_mappings = build_property_mappings(rule_rows)
    if validate:
        validate_rules(property_mappings)

    settings = {}
    for raw in config_rows:
        row = canonicalize_row(raw, CONFIG_ALIASES)
        if not is_blank(row.get("key")):
            settings[str(row["key"]).strip()] = row.get("value")

    logger.info("Loaded rule sets for %d properties", len(property_mappings))
    return MappingTable(
        property_mappings=tuple(property_mappings),
        custom_transformations=build_custom_transformations(custom_rows),
        date_format=str(settings.get("dateFormat") or "YYYY-MM-DD"),
        output_format=str(settings.get("outputFormat") or "csv"),
    )

"""Shared domain error messages and error types."""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes surfaced at the pipeline boundary."""

    TIMEOUT = "TIMEOUT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FORMAT = "INVALID_FORMAT"
    CORRUPTED_FILE = "CORRUPTED_FILE"
    PARSING_ERROR = "PARSING_ERROR"
    NO_MAPPING = "NO_MAPPING"
    MISSING_MAPPING = "MISSING_MAPPING"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TRANSFORMATION_ERROR = "TRANSFORMATION_ERROR"


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. Each subclass carries the
    boundary error code it is reported under.
    """

    code: ErrorCode = ErrorCode.PARSING_ERROR

    def __init__(self, message: str, field: str | None = None, row_index: int | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.row_index = row_index


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    code = ErrorCode.VALIDATION_ERROR


class InvalidFormatError(ValidationError):
    """Structurally malformed mapping table or rule definition."""

    code = ErrorCode.INVALID_FORMAT


class TransformationFailedError(DomainError):
    """A value could not be coerced or transformed."""

    code = ErrorCode.TRANSFORMATION_ERROR


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""

    code = ErrorCode.MISSING_MAPPING


class NoMappingError(NotFoundError):
    """No mapping exists for a source code or property."""

    code = ErrorCode.NO_MAPPING


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""

    code = ErrorCode.INVALID_FORMAT


def required_field_missing(field_name: str) -> str:
    """Return message for a required field without a value."""
    return f"Required field {field_name} is null or undefined"


def cannot_convert(value: object, data_type: str) -> str:
    """Return message for a failed type coercion."""
    return f'Cannot convert "{value}" to {data_type}'


def no_code_mapping(source_code: str, property_id: int) -> str:
    """Return message for an unresolvable source code."""
    return f"No mapping found for source code '{source_code}' (property {property_id})"


def no_property_mapping(property_id: str, file_type: str) -> str:
    """Return message for a property without transformation rules."""
    return f"No mapping found for property {property_id} and file type {file_type}"


def duplicate_code_mapping(source_code: str, property_id: int) -> str:
    """Return message for a repeated (source code, property) pair."""
    return f"Duplicate mapping for source code '{source_code}' and property {property_id}"


def stopped_after_errors(max_errors: int) -> str:
    """Return warning used when the error cutoff is reached."""
    return f"Stopped processing after {max_errors} errors"

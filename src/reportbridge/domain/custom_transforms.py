"""Built-in custom transformations.

Mapping files may name a custom transformation for a field. Only the
functions registered here can be called; any code text a mapping file
carries alongside the name is stored but never run.
"""

from decimal import Decimal
from typing import Any, Callable, Optional

from reportbridge.domain.entities import CustomTransformation
from reportbridge.utils.amount_parser import parse_amount

CustomFunction = Callable[[Any, dict[str, Any]], Any]


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Decimal(str(value))
    return parse_amount(str(value))


def strip_currency(value: Any, params: dict[str, Any]) -> Decimal:
    return _to_decimal(value)


def negate(value: Any, params: dict[str, Any]) -> Decimal:
    return -_to_decimal(value)


def absolute(value: Any, params: dict[str, Any]) -> Decimal:
    return abs(_to_decimal(value))


def zero_pad(value: Any, params: dict[str, Any]) -> str:
    return str(value).zfill(int(params.get("width", 0)))


def replace(value: Any, params: dict[str, Any]) -> str:
    return str(value).replace(str(params.get("old", "")), str(params.get("new", "")))


def prefix(value: Any, params: dict[str, Any]) -> str:
    return f"{params.get('value', '')}{value}"


def suffix(value: Any, params: dict[str, Any]) -> str:
    return f"{value}{params.get('value', '')}"


def truncate(value: Any, params: dict[str, Any]) -> str:
    return str(value)[: int(params.get("length", len(str(value))))]


def collapse_whitespace(value: Any, params: dict[str, Any]) -> str:
    return " ".join(str(value).split())


CUSTOM_TRANSFORMATIONS: dict[str, CustomFunction] = {
    "strip_currency": strip_currency,
    "negate": negate,
    "absolute": absolute,
    "zero_pad": zero_pad,
    "replace": replace,
    "prefix": prefix,
    "suffix": suffix,
    "truncate": truncate,
    "collapse_whitespace": collapse_whitespace,
}


def lookup_custom_transformation(
    name: str, declared: dict[str, CustomTransformation]
) -> Optional[tuple[CustomFunction, dict[str, Any]]]:
    """Find the function behind a custom transformation name.

    Args:
        name: Name given in the rule's ``functionName`` parameter
        declared: Custom transformations declared in the mapping file

    Returns:
        Tuple of (function, default parameters), or None if the name is
        unknown
    """
    definition = declared.get(name)
    if definition is not None:
        function = CUSTOM_TRANSFORMATIONS.get(definition.function or definition.name)
        if function is None:
            return None
        return function, dict(definition.parameters)

    function = CUSTOM_TRANSFORMATIONS.get(name)
    if function is None:
        return None
    return function, {}

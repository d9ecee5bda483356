"""Utility functions for crossdoc.

Shared helpers used by the compilers, adapters and the model facade.
"""

import re
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Mapping

from .constants import FieldType
from .exceptions import UnsupportedOperator

_FIELD_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ===========================================================================
# Field and operand helpers
# ===========================================================================


def is_field_name(name: Any) -> bool:
    """Whether `name` can be referenced in a compiled query without quoting."""
    return isinstance(name, str) and bool(_FIELD_NAME_RE.match(name))


def infer_field_type(operand: Any, field: str | None = None) -> FieldType:
    """Infer the filter type of a field from its operand.

    List operands (in/notIn) are typed by their first element. `bool` is
    checked before numbers since it subclasses `int`.
    """
    value = operand
    if isinstance(operand, (list, tuple)):
        if not operand:
            return FieldType.STRING
        value = operand[0]
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, (int, float, Decimal)):
        return FieldType.NUMBER
    if isinstance(value, (datetime, date)):
        return FieldType.DATE
    if isinstance(value, str):
        return FieldType.STRING
    raise UnsupportedOperator(
        "Operand type is not supported in filters",
        field=field,
        operand_type=type(value).__name__,
    )


def to_iso8601(value: datetime | date) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and `Z` suffix."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return value.isoformat()


def normalize_operand(value: Any) -> Any:
    """Convert operand values to the scalar form stored by the backends."""
    if isinstance(value, (datetime, date)):
        return to_iso8601(value)
    return value


def format_literal(value: Any) -> str:
    """Format a value as a query literal for rendered (log/debug) output only.

    Numbers and booleans render bare, everything else single-quoted.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return "(" + ", ".join(format_literal(v) for v in value) + ")"
    text = str(normalize_operand(value))
    return "'" + text.replace("'", "\\'") + "'"


# ===========================================================================
# Auto fields
# ===========================================================================


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Default id generator: random UUID4 string."""
    return str(uuid.uuid4())


# ===========================================================================
# Adapter shared helpers
# ===========================================================================


def normalize_number(value: Any) -> Any:
    """Turn Decimal values returned by DynamoDB back into int or float."""
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, list):
        return [normalize_number(v) for v in value]
    if isinstance(value, dict):
        return {k: normalize_number(v) for k, v in value.items()}
    return value


def to_storage_value(value: Any) -> Any:
    """Convert python values into types DynamoDB accepts (floats as Decimal)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, (datetime, date)):
        return to_iso8601(value)
    if isinstance(value, list):
        return [to_storage_value(v) for v in value]
    if isinstance(value, dict):
        return {k: to_storage_value(v) for k, v in value.items()}
    return value


def apply_projection(item: Mapping[str, Any], fields: list[str] | None) -> Dict[str, Any]:
    """Restrict an item to the projected fields (all fields when `fields` is None)."""
    if fields is None:
        return dict(item)
    return {k: item[k] for k in fields if k in item}

"""Compiler utility functions.

Validates and normalizes the request maps (where/select/order_by) into
ordered tuples the backend compilers consume.
"""

from typing import Any, Iterator, List, Mapping, Optional, Tuple

from crossdoc.constants import LIST_OPERATORS, MODE_KEY, Operator, QueryMode, SortOrder
from crossdoc.exceptions import InvalidArgument, MalformedFilter, UnsupportedOperator
from crossdoc.utils import is_field_name

Condition = Tuple[str, Operator, Any, QueryMode]


def parse_mode(field_name: str, raw: Any) -> QueryMode:
    """Parse the optional `mode` key of a filter condition."""
    if raw is None:
        return QueryMode.SENSITIVE
    try:
        return QueryMode(raw)
    except ValueError:
        raise MalformedFilter(
            "mode must be SENSITIVE or INSENSITIVE",
            field=field_name,
            mode=raw,
        ) from None


def parse_operator(field_name: str, key: Any) -> Operator:
    try:
        return Operator(key)
    except ValueError:
        raise UnsupportedOperator(
            f"Operator {key} is not supported. Supported: {', '.join(op.value for op in Operator)}",
            field=field_name,
            operator=key,
        ) from None


def iter_conditions(where: Optional[Mapping[str, Any]]) -> Iterator[Condition]:
    """Yield (field, operator, operand, mode) in field order, then operator order.

    Raises:
        MalformedFilter: If the where map or a condition is malformed
        UnsupportedOperator: If an operator key is unknown
    """
    if where is None:
        return
    if not isinstance(where, Mapping):
        raise MalformedFilter(f"where must be a mapping, got {type(where).__name__}")
    for field_name, condition in where.items():
        if not is_field_name(field_name):
            raise MalformedFilter("Invalid field name", field=field_name)
        if not isinstance(condition, Mapping):
            raise MalformedFilter(
                f"Filter condition must be a mapping, got {type(condition).__name__}",
                field=field_name,
            )
        mode = parse_mode(field_name, condition.get(MODE_KEY))
        entries = [(key, operand) for key, operand in condition.items() if key != MODE_KEY]
        if not entries:
            raise MalformedFilter("Filter condition has no operator", field=field_name)
        for key, operand in entries:
            operator = parse_operator(field_name, key)
            is_list = isinstance(operand, (list, tuple))
            if operator in LIST_OPERATORS:
                if not is_list:
                    raise MalformedFilter(
                        f"Operator {operator.value} expects a list",
                        field=field_name,
                        operator=operator.value,
                    )
                if not operand:
                    raise MalformedFilter(
                        f"Operator {operator.value} expects at least one value",
                        field=field_name,
                        operator=operator.value,
                    )
            elif is_list:
                raise MalformedFilter(
                    f"Operator {operator.value} expects a single value",
                    field=field_name,
                    operator=operator.value,
                )
            yield field_name, operator, operand, mode


def normalize_select(select: Optional[Mapping[str, Any]]) -> Optional[List[str]]:
    """Return selected fields in insertion order, or None for "all fields".

    An absent, empty or all-false select collapses to None.
    """
    if select is None:
        return None
    if not isinstance(select, Mapping):
        raise InvalidArgument(f"select must be a mapping, got {type(select).__name__}", field="select")
    fields = [name for name, flag in select.items() if flag is True]
    for name in fields:
        if not is_field_name(name):
            raise InvalidArgument("Invalid field name in select", field=name)
    return fields or None


def normalize_order_by(order_by: Optional[Mapping[str, Any]]) -> List[Tuple[str, SortOrder]]:
    """Return (field, direction) pairs in insertion order."""
    if not order_by:
        return []
    if not isinstance(order_by, Mapping):
        raise InvalidArgument(f"order_by must be a mapping, got {type(order_by).__name__}", field="order_by")
    pairs: List[Tuple[str, SortOrder]] = []
    for name, direction in order_by.items():
        if not is_field_name(name):
            raise InvalidArgument("Invalid field name in order_by", field=name)
        try:
            pairs.append((name, SortOrder(direction)))
        except ValueError:
            raise InvalidArgument("Sort direction must be ASC or DESC", field=name, direction=direction) from None
    return pairs

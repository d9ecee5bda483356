"""
Operator, mode and ordering constants shared by all compilers.
"""

from enum import Enum


class Operator(str, Enum):
    EQUALS = "equals"
    NOT = "not"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IN = "in"
    NOT_IN = "notIn"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"


class QueryMode(str, Enum):
    SENSITIVE = "SENSITIVE"
    INSENSITIVE = "INSENSITIVE"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


MODE_KEY = "mode"

COMPARISON_OPERATORS = frozenset({Operator.LT, Operator.LTE, Operator.GT, Operator.GTE})
SUBSTRING_OPERATORS = frozenset({Operator.CONTAINS, Operator.STARTS_WITH, Operator.ENDS_WITH})
LIST_OPERATORS = frozenset({Operator.IN, Operator.NOT_IN})

# Comparisons are accepted on every type and rendered like equals.
OPERATORS_BY_TYPE = {
    FieldType.STRING: frozenset(
        {Operator.EQUALS, Operator.NOT, *SUBSTRING_OPERATORS, *LIST_OPERATORS, *COMPARISON_OPERATORS}
    ),
    FieldType.NUMBER: frozenset({Operator.EQUALS, Operator.NOT, *LIST_OPERATORS, *COMPARISON_OPERATORS}),
    FieldType.DATE: frozenset({Operator.EQUALS, Operator.NOT, *LIST_OPERATORS, *COMPARISON_OPERATORS}),
    FieldType.BOOLEAN: frozenset({Operator.EQUALS, Operator.NOT, *COMPARISON_OPERATORS}),
}

AUTO_ID_FIELD = "id"
CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"

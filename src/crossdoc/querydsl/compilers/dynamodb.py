"""Amazon DynamoDB expression compiler.

Transforms where/select maps into FilterExpression / ProjectionExpression
strings plus ExpressionAttributeNames and ExpressionAttributeValues.

DynamoDB expressions support:
- Comparison: =, <>, <, <=, >, >=
- Range: IN
- Functions: begins_with, contains, attribute_exists
- Logical: AND, OR, NOT

Field names always go through `#nN` aliases and operands through `:vN`
typed values, so reserved words and user input never reach the expression.

Limitations:
- No suffix function: endsWith compiles to contains()
- No lower-case function: INSENSITIVE substring predicates are split off by
  `split_where` and matched against the returned items by `match_local`
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from boto3.dynamodb.types import TypeSerializer

from crossdoc.constants import SUBSTRING_OPERATORS, Operator, QueryMode
from crossdoc.utils import normalize_operand, to_storage_value

from .base import BaseWhere, CompileContext, ProjectionPlan
from .utils import iter_conditions

__all__ = (
    "DynamoDBWhereCompiler",
    "dynamodb_where",
)

_serializer = TypeSerializer()

# (field, operator, lower-cased operand)
LocalPredicate = Tuple[str, Operator, str]


class DynamoDBCompileContext(CompileContext):
    value_prefix = ":v"
    name_prefix = "#n"


class DynamoDBWhereCompiler(BaseWhere):
    """Compile request maps into DynamoDB expression parameters."""

    _OP_MAP = {
        Operator.EQUALS: "{field} = {value}",
        Operator.NOT: "{field} <> {value}",
        Operator.GT: "{field} > {value}",
        Operator.GTE: "{field} >= {value}",
        Operator.LT: "{field} < {value}",
        Operator.LTE: "{field} <= {value}",
        Operator.CONTAINS: "contains({field}, {value})",
        Operator.STARTS_WITH: "begins_with({field}, {value})",
        Operator.ENDS_WITH: "contains({field}, {value})",
        Operator.IN: "{field} IN {values}",
        Operator.NOT_IN: "NOT ({field} IN {values})",
    }

    def new_context(self) -> DynamoDBCompileContext:
        return DynamoDBCompileContext()

    def field_ref(self, context: CompileContext, field_name: str, insensitive: bool = False) -> str:
        return context.alias(field_name)

    def value_ref(self, context: CompileContext, value: Any, insensitive: bool = False) -> str:
        return context.bind(normalize_operand(value))

    def split_where(self, where: Optional[Mapping[str, Any]]) -> Tuple[Dict[str, Any], List[LocalPredicate]]:
        """Separate INSENSITIVE substring predicates from the rest of `where`.

        The whole map is validated first, so a bad condition fails the same
        way whichever half it lands in.

        Returns:
            (where map for the FilterExpression, predicates for `match_local`)

        Raises:
            MalformedFilter: If the where map or a condition is malformed
            UnsupportedOperator: If an operator is unknown or invalid for the field type
        """
        self.to_where(where)
        native: Dict[str, Dict[str, Any]] = {}
        local: List[LocalPredicate] = []
        for field_name, operator, operand, mode in iter_conditions(where):
            if mode == QueryMode.INSENSITIVE and operator in SUBSTRING_OPERATORS:
                local.append((field_name, operator, normalize_operand(operand).lower()))
            else:
                native.setdefault(field_name, {})[operator.value] = operand
        return native, local

    def match_local(self, item: Mapping[str, Any], predicates: List[LocalPredicate]) -> bool:
        """Evaluate case-insensitive substring predicates on a normalized item.

        endsWith keeps the contains approximation used in filter expressions.
        """
        for field_name, operator, operand in predicates:
            value = item.get(field_name)
            if not isinstance(value, str):
                return False
            value = value.lower()
            if operator == Operator.STARTS_WITH:
                if not value.startswith(operand):
                    return False
            elif operand not in value:
                return False
        return True

    def to_select(
        self, select: Optional[Mapping[str, Any]], context: Optional[CompileContext] = None
    ) -> ProjectionPlan:
        """Register projected fields as attribute names in `context`.

        The filter compiled afterwards with the same context reuses these
        aliases.
        """
        fields = self.selected_fields(select)
        if fields is None:
            return ProjectionPlan(fields=None, text="")
        context = context or self.new_context()
        return ProjectionPlan(fields=fields, text=", ".join(context.alias(name) for name in fields))

    def serialize(self, value: Any) -> Dict[str, Any]:
        """Wrap a python value in a typed attribute value (`{"S": ...}`, `{"N": ...}`)."""
        return _serializer.serialize(to_storage_value(value))

    def expression_attributes(self, context: CompileContext) -> Dict[str, Any]:
        """ExpressionAttributeNames/Values for a request, omitting empty maps."""
        params: Dict[str, Any] = {}
        if context.names:
            params["ExpressionAttributeNames"] = dict(context.names)
        if context.values:
            params["ExpressionAttributeValues"] = {k: self.serialize(v) for k, v in context.values.items()}
        return params


dynamodb_where = DynamoDBWhereCompiler()

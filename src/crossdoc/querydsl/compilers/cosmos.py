"""Azure Cosmos DB (NoSQL API) query compiler.

Transforms where/select/order_by maps into a parameterized Cosmos SQL query.

Cosmos SQL supports:
- Comparison: =, !=, >, <, >=, <=
- Range: IN, NOT IN
- String: CONTAINS, STARTSWITH, ENDSWITH, LOWER
- Logical: AND, OR, NOT

Every operand is bound as an `@pN` parameter; literals never reach the
query text.

Limitations:
- endsWith compiles to CONTAINS unless `exact_suffix` is enabled, so
  mid-string matches are returned too
"""

from typing import Any, Mapping, Optional

from crossdoc.constants import Operator
from crossdoc.settings import settings as api_settings
from crossdoc.utils import normalize_operand

from .base import BaseWhere, CompileContext, CompiledClause, ProjectionPlan
from .utils import normalize_order_by

__all__ = (
    "CosmosWhereCompiler",
    "cosmos_where",
)


class CosmosCompileContext(CompileContext):
    value_prefix = "@p"


class CosmosWhereCompiler(BaseWhere):
    """Compile request maps into Cosmos SQL with bound parameters.

    Attributes:
        alias: Container alias used in `FROM`
        exact_suffix: Compile endsWith to ENDSWITH instead of CONTAINS
    """

    _OP_MAP = {
        Operator.EQUALS: "{field} = {value}",
        Operator.NOT: "{field} != {value}",
        Operator.GT: "{field} > {value}",
        Operator.GTE: "{field} >= {value}",
        Operator.LT: "{field} < {value}",
        Operator.LTE: "{field} <= {value}",
        Operator.CONTAINS: "CONTAINS({field}, {value})",
        Operator.STARTS_WITH: "STARTSWITH({field}, {value})",
        Operator.ENDS_WITH: "CONTAINS({field}, {value})",
        Operator.IN: "{field} IN {values}",
        Operator.NOT_IN: "{field} NOT IN {values}",
    }

    def __init__(self, alias: str = "c", exact_suffix: Optional[bool] = None) -> None:
        self.alias = alias
        self.exact_suffix = api_settings.EXACT_SUFFIX_MATCH if exact_suffix is None else exact_suffix

    def new_context(self) -> CosmosCompileContext:
        return CosmosCompileContext()

    def template_for(self, operator: Operator) -> str:
        if operator == Operator.ENDS_WITH and self.exact_suffix:
            return "ENDSWITH({field}, {value})"
        return super().template_for(operator)

    def field_ref(self, context: CompileContext, field_name: str, insensitive: bool = False) -> str:
        ref = f"{self.alias}.{field_name}"
        return f"LOWER({ref})" if insensitive else ref

    def value_ref(self, context: CompileContext, value: Any, insensitive: bool = False) -> str:
        ref = context.bind(normalize_operand(value))
        return f"LOWER({ref})" if insensitive else ref

    def to_select(
        self, select: Optional[Mapping[str, Any]], context: Optional[CompileContext] = None
    ) -> ProjectionPlan:
        fields = self.selected_fields(select)
        if fields is None:
            return ProjectionPlan(fields=None, text="*")
        return ProjectionPlan(fields=fields, text=", ".join(f"{self.alias}.{name}" for name in fields))

    def to_select_clause(self, select: Optional[Mapping[str, Any]]) -> str:
        """Projection list of a SELECT: `*` or `c.a, c.b`."""
        return self.to_select(select).text

    def to_order_by(self, order_by: Optional[Mapping[str, Any]]) -> str:
        pairs = normalize_order_by(order_by)
        if not pairs:
            return ""
        return "ORDER BY " + ", ".join(f"{self.alias}.{name} {direction.value}" for name, direction in pairs)

    def to_query(
        self,
        where: Optional[Mapping[str, Any]] = None,
        select: Optional[Mapping[str, Any]] = None,
        order_by: Optional[Mapping[str, Any]] = None,
    ) -> CompiledClause:
        """Compile a full find-many query.

        Returns:
            CompiledClause whose text is `SELECT ... FROM c [WHERE ...] [ORDER BY ...]`
        """
        context = self.new_context()
        projection = self.to_select(select, context)
        where_clause = self.to_where(where, context)
        clauses = ["SELECT", projection.text, f"FROM {self.alias}"]
        if where_clause:
            clauses.append(f"WHERE {where_clause.text}")
        order_clause = self.to_order_by(order_by)
        if order_clause:
            clauses.append(order_clause)
        return context.clause(" ".join(clauses))

    def to_query_by_id(self, doc_id: str, select: Optional[Mapping[str, Any]] = None) -> CompiledClause:
        """Compile a single-row lookup on `c.id`."""
        context = self.new_context()
        projection = self.to_select(select, context)
        placeholder = context.bind(doc_id)
        return context.clause(f"SELECT {projection.text} FROM {self.alias} WHERE {self.alias}.id = {placeholder}")


cosmos_where = CosmosWhereCompiler()

"""Base compiler interface.

Defines the contract all backend-specific where compilers follow, and the
request-scoped context that hands out unique placeholders.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional

from crossdoc.constants import OPERATORS_BY_TYPE, SUBSTRING_OPERATORS, Operator, QueryMode
from crossdoc.exceptions import UnsupportedOperator
from crossdoc.utils import format_literal, infer_field_type

from .utils import iter_conditions, normalize_select

__all__ = (
    "BaseWhere",
    "CompileContext",
    "CompiledClause",
    "ProjectionPlan",
)

_PLACEHOLDER_RE = re.compile(r"[#:@][A-Za-z]+\d+")


@dataclass
class CompiledClause:
    """A compiled boolean clause and the placeholders it references.

    Attributes:
        text: Native expression text; empty when there is nothing to filter on
        names: Attribute-name placeholder -> field name
        values: Value placeholder -> python value
    """

    text: str = ""
    names: Dict[str, str] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.text)

    @property
    def parameters(self) -> List[Dict[str, Any]]:
        """Values as a Cosmos DB `parameters` list."""
        return [{"name": name, "value": value} for name, value in self.values.items()]

    def render(self) -> str:
        """Substitute placeholders with literal forms. For logging only."""

        def _sub(match: "re.Match[str]") -> str:
            token = match.group(0)
            if token in self.names:
                return self.names[token]
            if token in self.values:
                return format_literal(self.values[token])
            return token

        return _PLACEHOLDER_RE.sub(_sub, self.text)


@dataclass
class ProjectionPlan:
    """Fields to return. `fields is None` means every field (wildcard)."""

    fields: Optional[List[str]] = None
    text: str = ""

    @property
    def is_wildcard(self) -> bool:
        return self.fields is None


class CompileContext:
    """Per-request placeholder registry.

    Counters only ever increase, so no two predicates of one request share a
    value placeholder. Field aliases are cached so a field filtered and
    projected in the same request is aliased once.
    """

    value_prefix: ClassVar[str] = "@p"
    name_prefix: ClassVar[str] = "#n"

    def __init__(self) -> None:
        self.names: Dict[str, str] = {}
        self.values: Dict[str, Any] = {}
        self._aliases: Dict[str, str] = {}

    def bind(self, value: Any) -> str:
        placeholder = f"{self.value_prefix}{len(self.values)}"
        self.values[placeholder] = value
        return placeholder

    def alias(self, field_name: str) -> str:
        if field_name not in self._aliases:
            placeholder = f"{self.name_prefix}{len(self._aliases)}"
            self._aliases[field_name] = placeholder
            self.names[placeholder] = field_name
        return self._aliases[field_name]

    def clause(self, text: str) -> CompiledClause:
        return CompiledClause(text=text, names=dict(self.names), values=dict(self.values))


class BaseWhere(ABC):
    """Abstract base class for where clause compilers.

    Subclasses provide `_OP_MAP`, a template for every `Operator`, using the
    `{field}`, `{value}` and `{values}` slots. A subclass missing an operator
    fails at class creation.
    """

    _OP_MAP: ClassVar[Dict[Operator, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "_OP_MAP" in cls.__dict__:
            missing = [op.value for op in Operator if op not in cls._OP_MAP]
            if missing:
                raise TypeError(f"{cls.__name__} does not compile operators: {', '.join(missing)}")

    @abstractmethod
    def new_context(self) -> CompileContext:
        """Return a fresh request-scoped context."""
        raise NotImplementedError

    @abstractmethod
    def field_ref(self, context: CompileContext, field_name: str, insensitive: bool = False) -> str:
        """Native reference to a field."""
        raise NotImplementedError

    @abstractmethod
    def value_ref(self, context: CompileContext, value: Any, insensitive: bool = False) -> str:
        """Bind a value and return its native reference."""
        raise NotImplementedError

    @abstractmethod
    def to_select(
        self, select: Optional[Mapping[str, Any]], context: Optional[CompileContext] = None
    ) -> ProjectionPlan:
        """Compile a select map into a projection plan."""
        raise NotImplementedError

    def template_for(self, operator: Operator) -> str:
        return self._OP_MAP[operator]

    def compile_predicate(
        self,
        context: CompileContext,
        field_name: str,
        operator: Operator,
        operand: Any,
        mode: QueryMode = QueryMode.SENSITIVE,
    ) -> str:
        """Compile one field/operator/operand triple into one native fragment.

        Raises:
            UnsupportedOperator: If the operator is not valid for the operand type
        """
        field_type = infer_field_type(operand, field_name)
        if operator not in OPERATORS_BY_TYPE[field_type]:
            raise UnsupportedOperator(
                f"Operator {operator.value} is not supported for {field_type.value} fields",
                field=field_name,
                operator=operator.value,
            )
        insensitive = mode == QueryMode.INSENSITIVE and operator in SUBSTRING_OPERATORS
        field_text = self.field_ref(context, field_name, insensitive)
        slots = {"field": field_text, "value": "", "values": ""}
        if isinstance(operand, (list, tuple)):
            slots["values"] = "(" + ", ".join(self.value_ref(context, v) for v in operand) + ")"
        else:
            slots["value"] = self.value_ref(context, operand, insensitive)
        return self.template_for(operator).format(**slots)

    def to_where(self, where: Optional[Mapping[str, Any]], context: Optional[CompileContext] = None) -> CompiledClause:
        """Compile a full where map; all predicates are AND-ed.

        Args:
            where: Field -> filter condition mapping. None or empty matches everything.
            context: Context shared with the projection of the same request

        Returns:
            CompiledClause, falsy when there is nothing to filter on
        """
        context = context or self.new_context()
        fragments = [
            self.compile_predicate(context, field_name, operator, operand, mode)
            for field_name, operator, operand, mode in iter_conditions(where)
        ]
        return context.clause(" AND ".join(fragments))

    def to_expr(self, where: Optional[Mapping[str, Any]]) -> str:
        """Compile a where map and render it with literals, for debugging."""
        return self.to_where(where).render()

    def selected_fields(self, select: Optional[Mapping[str, Any]]) -> Optional[List[str]]:
        return normalize_select(select)

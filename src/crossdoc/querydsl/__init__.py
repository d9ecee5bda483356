"""Query DSL module.

Compiles where/select/order_by request maps into backend-native queries.
Backend-specific compilers live in the `compilers` subpackage; pagination
cursor codecs in `cursor`.
"""

from .compilers import CompiledClause, ProjectionPlan, cosmos_where, dynamodb_where
from .cursor import Base64CursorCodec, JsonCursorCodec

__all__ = (
    "CompiledClause",
    "ProjectionPlan",
    "cosmos_where",
    "dynamodb_where",
    "Base64CursorCodec",
    "JsonCursorCodec",
)

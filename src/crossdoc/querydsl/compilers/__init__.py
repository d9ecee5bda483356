from .base import BaseWhere, CompileContext, CompiledClause, ProjectionPlan
from .cosmos import CosmosWhereCompiler, cosmos_where
from .dynamodb import DynamoDBWhereCompiler, dynamodb_where

__all__ = (
    "BaseWhere",
    "CompileContext",
    "CompiledClause",
    "ProjectionPlan",
    "CosmosWhereCompiler",
    "cosmos_where",
    "DynamoDBWhereCompiler",
    "dynamodb_where",
)

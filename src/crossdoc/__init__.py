"""
This __init__.py file makes the crossdoc directory a Python package
and exposes the `EntityModel` facade, the model registry and schema classes
for easy access.
"""

from .abc import DocumentStoreAdapter, Page
from .client import ModelBuilder, create_client
from .engine import EntityModel
from .schema import AutoFields, FindManyResponse
from .types import DocId, Entity, WhereClause

__version__ = "0.1.0"

__all__ = [
    "EntityModel",
    "ModelBuilder",
    "create_client",
    "DocumentStoreAdapter",
    "Page",
    "AutoFields",
    "FindManyResponse",
    "DocId",
    "Entity",
    "WhereClause",
]

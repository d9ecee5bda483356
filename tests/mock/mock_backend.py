from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from crossdoc.abc import DocumentStoreAdapter, Page
from crossdoc.constants import SUBSTRING_OPERATORS, Operator, QueryMode
from crossdoc.exceptions import Conflict, NotFound
from crossdoc.querydsl.compilers.cosmos import cosmos_where
from crossdoc.querydsl.compilers.utils import iter_conditions, normalize_order_by, normalize_select
from crossdoc.querydsl.cursor import base64_cursor
from crossdoc.utils import apply_projection, normalize_operand


class InMemoryAdapter(DocumentStoreAdapter):
    """Simple in-memory adapter to test the EntityModel facade without external backends.

    - Stores documents in a dict keyed by id
    - Validates where maps with the Cosmos compiler, then evaluates them in python
    - Continuation token is the offset of the next page, as a string
    - Records every call in `calls`
    """

    backend = "inmemory"
    where_compiler = cosmos_where
    cursor_codec = base64_cursor

    def __init__(self, write_policy: Optional[str] = None) -> None:
        super().__init__(write_policy)
        self._docs: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return "inmemory"

    def seed(self, docs: List[Dict[str, Any]]) -> None:
        for doc in docs:
            self._docs[doc["id"]] = dict(doc)

    def count(self) -> int:
        return len(self._docs)

    def _match(self, doc: Mapping[str, Any], where: Optional[Mapping[str, Any]]) -> bool:
        for field_name, operator, operand, mode in iter_conditions(where):
            val = doc.get(field_name)
            operand = normalize_operand(operand)
            insensitive = mode == QueryMode.INSENSITIVE and operator in SUBSTRING_OPERATORS
            if insensitive and isinstance(val, str) and isinstance(operand, str):
                val, operand = val.lower(), operand.lower()
            if operator == Operator.EQUALS:
                ok = val == operand
            elif operator == Operator.NOT:
                ok = val != operand
            elif operator == Operator.IN:
                ok = val in operand
            elif operator == Operator.NOT_IN:
                ok = val not in operand
            elif val is None:
                ok = False
            elif operator == Operator.CONTAINS:
                ok = operand in val
            elif operator == Operator.STARTS_WITH:
                ok = val.startswith(operand)
            elif operator == Operator.ENDS_WITH:
                ok = val.endswith(operand)
            elif operator == Operator.GT:
                ok = val > operand
            elif operator == Operator.GTE:
                ok = val >= operand
            elif operator == Operator.LT:
                ok = val < operand
            else:
                ok = val <= operand
            if not ok:
                return False
        return True

    def find_many(
        self,
        where: Optional[Mapping[str, Any]],
        take: int,
        token: Any = None,
        select: Optional[Mapping[str, Any]] = None,
        order_by: Optional[Mapping[str, Any]] = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Page:
        self.where_compiler.to_query(where, select, order_by)
        self.calls.append("find_many")
        items = [d for d in self._docs.values() if self._match(d, where)]
        for field_name, direction in reversed(normalize_order_by(order_by)):
            items.sort(key=lambda d: d.get(field_name), reverse=direction.value == "DESC")
        start = int(token) if token is not None else 0
        end = start + take
        fields = normalize_select(select)
        page = [apply_projection(d, fields) for d in items[start:end]]
        return Page(items=page, token=str(end) if end < len(items) else None)

    def find_one(
        self,
        doc_id: str,
        select: Optional[Mapping[str, Any]] = None,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        self.calls.append("find_one")
        doc = self._docs.get(doc_id)
        return None if doc is None else apply_projection(doc, normalize_select(select))

    def create(self, item: Dict[str, Any], request_options: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append("create")
        if self.checked and item["id"] in self._docs:
            raise Conflict("Document already exists", document_id=item["id"])
        self._docs[item["id"]] = dict(item)
        return dict(item)

    def update(
        self,
        doc_id: str,
        data: Dict[str, Any],
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        self.calls.append("update")
        if doc_id not in self._docs:
            if self.checked:
                raise NotFound("Document not found", document_id=doc_id)
            self._docs[doc_id] = {"id": doc_id}
        self._docs[doc_id].update(data)
        return dict(self._docs[doc_id])

    def delete(
        self,
        doc_id: str,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.calls.append("delete")
        if doc_id not in self._docs:
            if self.checked:
                raise NotFound("Document not found", document_id=doc_id)
            return
        del self._docs[doc_id]

"""
Entity access facade.

This module provides `EntityModel`, the per-table/container object callers
use for find_many, find_one, create, update and delete. It validates
requests, injects automatic fields and normalizes results; compiling and
issuing the native call is left to the pluggable store adapter.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional, Union

from .abc import MISSING, DocumentStoreAdapter, WritePolicy
from .constants import AUTO_ID_FIELD, CREATED_AT_FIELD, UPDATED_AT_FIELD
from .exceptions import BackendContractViolation, InvalidArgument, NotFound
from .logger import Logger
from .schema import (
    AutoFields,
    FindManyResponse,
    validate_find_many_args,
    validate_id,
    validate_payload,
)
from .settings import settings as api_settings
from .types import Clock, DocId, Entity, IdFactory, OrderSpec, SelectSpec, WhereClause
from .utils import generate_id, to_iso8601, utc_now


class EntityModel:
    """CRUD and query facade over one table or container.

    Every operation validates its input before the store is contacted, so
    invalid requests never produce a network call.

    Attributes:
        adapter: Store adapter implementing DocumentStoreAdapter
        fields: Automatic id/timestamp toggles
        clock: Returns the current time for timestamps
        id_factory: Returns a fresh id for create

    Passing `write_policy` gives this model its own copy of the adapter with
    that policy; the adapter passed in is left untouched.
    """

    def __init__(
        self,
        adapter: DocumentStoreAdapter,
        fields: Union[AutoFields, Mapping[str, bool], bool, None] = None,
        clock: Clock = utc_now,
        id_factory: IdFactory = generate_id,
        write_policy: Optional[WritePolicy] = None,
    ) -> None:
        if write_policy is not None and write_policy != adapter.write_policy:
            adapter = copy.copy(adapter)
            adapter.write_policy = write_policy
        self._adapter = adapter
        self.fields = AutoFields.from_any(fields)
        self.clock = clock
        self.id_factory = id_factory
        self.logger = Logger(self.__class__.__name__)
        self.logger.message(
            "EntityModel initialized: backend=%s name=%s auto_id=%s timestamps=%s",
            adapter.backend,
            adapter.name,
            self.fields.id,
            self.fields.timestamp,
        )

    @property
    def adapter(self) -> DocumentStoreAdapter:
        """Access the store adapter instance."""
        return self._adapter

    @property
    def name(self) -> str:
        return self._adapter.name

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _now(self) -> str:
        return to_iso8601(self.clock())

    def _normalize_page(self, items: Any) -> List[Entity]:
        if items is MISSING:
            return []
        if not isinstance(items, list):
            raise BackendContractViolation(
                f"Retrieved data from db, but received {type(items).__name__} instead of a list of items",
                backend=self._adapter.backend,
                operation="find_many",
            )
        return [self._adapter.normalize_item(raw) for raw in items]

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------
    def find_many(
        self,
        where: Optional[WhereClause] = None,
        take: Optional[int] = None,
        next_cursor: Optional[str] = None,
        select: Optional[SelectSpec] = None,
        order_by: Optional[OrderSpec] = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> FindManyResponse:
        """Fetch one page of entities matching `where`.

        Args:
            where: Field -> filter condition map, AND-ed. None matches everything.
            take: Page size; defaults to DEFAULT_PAGE_SIZE
            next_cursor: Cursor returned by the previous page
            select: Fields to return; None or {} returns every field
            order_by: Field -> "ASC"/"DESC"
            request_options: Passed through to the native client call

        Returns:
            FindManyResponse with at most `take` items and the next cursor,
            None when there are no more pages

        Raises:
            InvalidArgument: If take, select or order_by is invalid
            InvalidCursor: If next_cursor cannot be decoded
            MalformedFilter: If where is malformed
            UnsupportedOperator: If an operator is unknown or invalid for the field type

        Examples:
            >>> users.find_many(where={"age": {"gte": 18}}, take=10)
            >>> users.find_many(select={"firstName": True}, next_cursor=page.next_cursor)
        """
        args = validate_find_many_args(take, next_cursor)
        size = args.take or api_settings.DEFAULT_PAGE_SIZE
        token = None
        if args.next_cursor is not None:
            token = self._adapter.cursor_codec.decode(args.next_cursor)

        page = self._adapter.find_many(
            where,
            size,
            token=token,
            select=select,
            order_by=order_by,
            request_options=request_options,
        )
        items = self._adapter.refine_page(self._normalize_page(page.items), where, select, order_by)[:size]
        cursor = self._adapter.cursor_codec.encode(page.token)
        self.logger.message("FindMany name=%s count=%d more=%s", self.name, len(items), cursor is not None)
        return FindManyResponse(items=items, next_cursor=cursor)

    def find_one(
        self,
        doc_id: DocId,
        select: Optional[SelectSpec] = None,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Entity:
        """Fetch one entity by id.

        Raises:
            InvalidArgument: If the id is invalid
            NotFound: If no entity has this id
        """
        doc_id = validate_id(doc_id, "find_one")
        raw = self._adapter.find_one(doc_id, select=select, sort_key=sort_key, request_options=request_options)
        if isinstance(raw, list):
            raw = raw[0] if raw else None
        if raw is None:
            raise NotFound(
                "We cannot find anything using the ID you provided",
                document_id=doc_id,
                operation="find_one",
            )
        self.logger.message("FindOne pk=%s", doc_id)
        return self._adapter.normalize_item(raw)

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------
    def create(self, data: Mapping[str, Any], request_options: Optional[Dict[str, Any]] = None) -> Entity:
        """Insert an entity, filling automatic fields.

        An id is generated only when the payload has none. With timestamps
        on, createdAt and updatedAt are set to the same instant.

        Returns:
            The persisted entity, generated fields included

        Raises:
            InvalidArgument: If the payload is not a non-empty mapping
        """
        payload = validate_payload(data, "create")
        if self.fields.id and payload.get(AUTO_ID_FIELD) is None:
            payload[AUTO_ID_FIELD] = self.id_factory()
        if AUTO_ID_FIELD in payload:
            validate_id(payload[AUTO_ID_FIELD], "create")
        if self.fields.timestamp:
            now = self._now()
            payload[CREATED_AT_FIELD] = now
            payload[UPDATED_AT_FIELD] = now

        raw = self._adapter.create(payload, request_options=request_options)
        self.logger.message("Create pk=%s", payload.get(AUTO_ID_FIELD))
        return self._adapter.normalize_item(raw)

    def update(
        self,
        doc_id: DocId,
        data: Mapping[str, Any],
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Entity:
        """Apply the supplied fields to an existing entity.

        Raises:
            InvalidArgument: If the id or payload is invalid, or the payload
                tries to change the id
            NotFound: If the entity is absent (checked write policy)
        """
        doc_id = validate_id(doc_id, "update")
        payload = validate_payload(data, "update")
        if AUTO_ID_FIELD in payload:
            if payload[AUTO_ID_FIELD] != doc_id:
                raise InvalidArgument(
                    "The id of an item cannot be changed",
                    field=AUTO_ID_FIELD,
                    value=payload[AUTO_ID_FIELD],
                    operation="update",
                )
            del payload[AUTO_ID_FIELD]
        if self.fields.timestamp:
            payload[UPDATED_AT_FIELD] = self._now()
        if not payload:
            raise InvalidArgument("Please provide a non-empty object as payload", field="data", operation="update")

        raw = self._adapter.update(doc_id, payload, sort_key=sort_key, request_options=request_options)
        self.logger.message("Update pk=%s", doc_id)
        return self._adapter.normalize_item(raw)

    def delete(
        self,
        doc_id: DocId,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Delete an entity by id.

        Raises:
            InvalidArgument: If the id is invalid
            NotFound: If the entity is absent (checked write policy)
        """
        doc_id = validate_id(doc_id, "delete")
        self._adapter.delete(doc_id, sort_key=sort_key, request_options=request_options)
        self.logger.message("Delete pk=%s", doc_id)

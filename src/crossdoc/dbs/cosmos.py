"""Concrete adapter for Azure Cosmos DB (NoSQL API).

This module provides the Cosmos DB implementation of the DocumentStoreAdapter
interface on top of the azure-cosmos SDK.

Key Features:
    - Lazy container resolution from a CosmosClient and database name
    - Parameterized SQL queries (`@pN`) for find_many/find_one
    - Continuation-token paging with `max_item_count`
    - Read-merge-replace updates
    - 404 mapping into NotFound on mutations
"""

from typing import Any, Dict, List, Mapping, Optional

from azure.cosmos import ContainerProxy, CosmosClient
from azure.cosmos.exceptions import (
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from crossdoc.abc import MISSING, DocumentStoreAdapter, Page, WritePolicy
from crossdoc.exceptions import BackendFailure, Conflict, MissingConfigError, NotFound
from crossdoc.querydsl.compilers.base import CompiledClause
from crossdoc.querydsl.compilers.cosmos import CosmosWhereCompiler, cosmos_where
from crossdoc.querydsl.cursor import Base64CursorCodec, base64_cursor
from crossdoc.settings import settings as api_settings
from crossdoc.types import Entity


class CosmosAdapter(DocumentStoreAdapter):
    """Store adapter for a Cosmos DB container.

    Either pass a ready `container` proxy, or a `client` plus database name
    and let the container be resolved on first use.

    Attributes:
        container_name: Container to operate on
        database_name: Database holding the container
        partition_key: Field holding the partition key value
    """

    backend = "cosmos"
    where_compiler: CosmosWhereCompiler = cosmos_where
    cursor_codec: Base64CursorCodec = base64_cursor

    def __init__(
        self,
        container_name: str,
        client: Optional[CosmosClient] = None,
        database: Optional[str] = None,
        partition_key: str = "id",
        container: Optional[ContainerProxy] = None,
        write_policy: Optional[WritePolicy] = None,
    ) -> None:
        super().__init__(write_policy)
        self.container_name = container_name
        self.database_name = database or api_settings.COSMOS_DATABASE
        self.partition_key = partition_key
        self._client = client
        self._container = container

    @property
    def name(self) -> str:
        return self.container_name

    @property
    def container(self) -> ContainerProxy:
        """Lazily resolve and return the container proxy.

        Raises:
            MissingConfigError: If neither a container nor a client and
                database name were supplied
        """
        if self._container is None:
            if self._client is None:
                raise MissingConfigError(
                    "No Cosmos client configured. Pass client= or container=.",
                    config_key="COSMOS_CONNECTION_STRING",
                    env_file=".env",
                )
            if not self.database_name:
                raise MissingConfigError(
                    "COSMOS_DATABASE is not set. Please configure it in your .env file.",
                    config_key="COSMOS_DATABASE",
                    env_file=".env",
                )
            database = self._client.get_database_client(self.database_name)
            self._container = database.get_container_client(self.container_name)
            self.logger.message("Cosmos container %s/%s resolved.", self.database_name, self.container_name)
        return self._container

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _failure(self, operation: str, error: CosmosHttpResponseError) -> BackendFailure:
        self.logger.error("%s failed on %s: %s", operation, self.container_name, error.message)
        return BackendFailure(
            f"{operation} on {self.container_name}: {error.message}",
            original_error=error,
            operation=operation,
            code=error.status_code,
        )

    def _not_found(self, doc_id: str, operation: str) -> NotFound:
        return NotFound(
            "The item you're trying to modify cannot be found",
            document_id=doc_id,
            container=self.container_name,
            operation=operation,
        )

    def _query(self, query: CompiledClause, request_options: Optional[Dict[str, Any]]) -> List[Any]:
        self.logger.debug("Query %s: %s", self.container_name, query.render())
        try:
            return list(
                self.container.query_items(
                    query=query.text,
                    parameters=query.parameters,
                    enable_cross_partition_query=True,
                    **(request_options or {}),
                )
            )
        except CosmosHttpResponseError as e:
            raise self._failure("query_items", e) from e

    def _fetch(self, doc_id: str, request_options: Optional[Dict[str, Any]]) -> Optional[Entity]:
        rows = self._query(self.where_compiler.to_query_by_id(doc_id), request_options)
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def find_many(
        self,
        where: Optional[Mapping[str, Any]],
        take: int,
        token: Any = None,
        select: Optional[Mapping[str, Any]] = None,
        order_by: Optional[Mapping[str, Any]] = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Page:
        """Run the compiled query and read exactly one page.

        Args:
            where: Filter map
            take: Page size, sent as `max_item_count`
            token: Decoded continuation token of the previous page
            select: Projection map
            order_by: Ordering map
            request_options: Extra keyword arguments for `query_items`

        Returns:
            Page of raw documents and the next continuation token
        """
        query = self.where_compiler.to_query(where, select, order_by)
        self.logger.debug("Query %s: %s", self.container_name, query.render())
        try:
            pager = self.container.query_items(
                query=query.text,
                parameters=query.parameters,
                enable_cross_partition_query=True,
                max_item_count=take,
                **(request_options or {}),
            ).by_page(token)
            page = next(pager, None)
            items = MISSING if page is None else list(page)
            return Page(items=items, token=pager.continuation_token)
        except CosmosHttpResponseError as e:
            raise self._failure("query_items", e) from e

    def find_one(
        self,
        doc_id: str,
        select: Optional[Mapping[str, Any]] = None,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Single-row query on `c.id`. Returns the list of matching rows."""
        return self._query(self.where_compiler.to_query_by_id(doc_id, select), request_options)

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def create(self, item: Entity, request_options: Optional[Dict[str, Any]] = None) -> Any:
        """Insert the document.

        Raises:
            Conflict: If a document with this id is already stored
        """
        try:
            return self.container.create_item(body=item, **(request_options or {}))
        except CosmosResourceExistsError as e:
            self.logger.error("create_item failed on %s: %s", self.container_name, e.message)
            raise Conflict(
                f"create_item on {self.container_name}: an item with this id already exists",
                original_error=e,
                operation="create_item",
                code=e.status_code,
            ) from e
        except CosmosHttpResponseError as e:
            raise self._failure("create_item", e) from e

    def update(
        self,
        doc_id: str,
        data: Entity,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Fetch the document, merge `data` over it and replace it.

        Raises:
            NotFound: If the document is absent, before or at replace time
        """
        existing = self._fetch(doc_id, request_options)
        if existing is None:
            raise self._not_found(doc_id, "update")
        body = {**existing, **data}
        try:
            return self.container.replace_item(item=doc_id, body=body, **(request_options or {}))
        except CosmosResourceNotFoundError as e:
            raise self._not_found(doc_id, "update") from e
        except CosmosHttpResponseError as e:
            raise self._failure("replace_item", e) from e

    def delete(
        self,
        doc_id: str,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Delete the document using its partition key value.

        Under the unchecked policy the pre-check is skipped, the id doubles
        as the partition key value unless given as `sort_key`, and a 404 is
        ignored.

        Raises:
            NotFound: If the policy is checked and the document is absent
        """
        partition_value: Any = doc_id if sort_key is None else sort_key
        if self.checked:
            existing = self._fetch(doc_id, request_options)
            if existing is None:
                raise self._not_found(doc_id, "delete")
            partition_value = existing.get(self.partition_key, partition_value)
        try:
            self.container.delete_item(item=doc_id, partition_key=partition_value, **(request_options or {}))
        except CosmosResourceNotFoundError as e:
            if self.checked:
                raise self._not_found(doc_id, "delete") from e
            self.logger.debug("Delete of absent id=%s ignored", doc_id)
        except CosmosHttpResponseError as e:
            raise self._failure("delete_item", e) from e

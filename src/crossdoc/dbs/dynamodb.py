"""Concrete adapter for Amazon DynamoDB.

This module provides the DynamoDB implementation of the DocumentStoreAdapter
interface on top of a boto3 low-level client.

Key Features:
    - Scan with filter/projection expressions, or Query when the partition
      key is pinned by an `equals` filter
    - Typed attribute values via boto3's TypeSerializer/TypeDeserializer
    - Partial updates through `UpdateItem ... SET`
    - `attribute_not_exists` on checked create, `attribute_exists` on checked
      update/delete
    - ClientError mapping into CrossDoc exceptions

Notes:
    - `Limit` is applied by DynamoDB before the filter, so a page can hold
      fewer than `take` items while a cursor is still returned.
    - Ordering on anything but the sort key of a Query, and INSENSITIVE
      substring predicates, are applied to the returned page only.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from boto3.dynamodb.types import TypeDeserializer
from botocore.exceptions import BotoCoreError, ClientError

from crossdoc.abc import MISSING, DocumentStoreAdapter, Page, WritePolicy
from crossdoc.constants import MODE_KEY, Operator, SortOrder
from crossdoc.exceptions import BackendFailure, Conflict, CrossDocError, InvalidArgument, NotFound
from crossdoc.querydsl.compilers.dynamodb import DynamoDBWhereCompiler, dynamodb_where
from crossdoc.querydsl.compilers.utils import normalize_order_by, normalize_select
from crossdoc.querydsl.cursor import JsonCursorCodec, json_cursor
from crossdoc.types import Entity
from crossdoc.utils import apply_projection, normalize_number

_deserializer = TypeDeserializer()

_METHODS = {
    "Scan": "scan",
    "Query": "query",
    "GetItem": "get_item",
    "PutItem": "put_item",
    "UpdateItem": "update_item",
    "DeleteItem": "delete_item",
}


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None,
) -> CrossDocError:
    """Map a DynamoDB ClientError to a CrossDoc exception.

    Conditional checks are only sent by checked writes: `attribute_not_exists`
    on PutItem, where a failure means the id is taken, and `attribute_exists`
    on UpdateItem/DeleteItem, where it means the item is absent.
    """
    error_code = error.response.get("Error", {}).get("Code", "Unknown")
    error_message = error.response.get("Error", {}).get("Message", str(error))

    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (resource: {resource_id})"

    if error_code == "ConditionalCheckFailedException" and operation == "PutItem":
        return Conflict(
            f"{context}: an item with this key already exists",
            original_error=error,
            operation=operation,
            code=error_code,
        )

    if error_code == "ConditionalCheckFailedException":
        return NotFound(
            "The item you're trying to modify cannot be found",
            document_id=resource_id,
            table_name=table_name,
            operation=operation,
        )

    return BackendFailure(
        f"{context}: {error_message}",
        original_error=error,
        operation=operation,
        code=error_code,
    )


def _sort_value(value: Any) -> Tuple[str, Any]:
    kind = "number" if isinstance(value, (int, float)) else type(value).__name__
    return (kind, value)


class DynamoDBAdapter(DocumentStoreAdapter):
    """Store adapter for a DynamoDB table.

    Attributes:
        client: boto3 DynamoDB low-level client
        table_name: Table to operate on
        partition_key: Partition key attribute; holds the entity id
        sort_key: Optional sort key attribute
    """

    backend = "dynamodb"
    where_compiler: DynamoDBWhereCompiler = dynamodb_where
    cursor_codec: JsonCursorCodec = json_cursor

    def __init__(
        self,
        client: Any,
        table_name: str,
        partition_key: str = "id",
        sort_key: Optional[str] = None,
        write_policy: Optional[WritePolicy] = None,
    ) -> None:
        super().__init__(write_policy)
        self.client = client
        self.table_name = table_name
        self.partition_key = partition_key
        self.sort_key = sort_key

    @property
    def name(self) -> str:
        return self.table_name

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _call(self, operation: str, params: Dict[str, Any], resource_id: Optional[str] = None) -> Dict[str, Any]:
        """Issue one client call, translating botocore errors."""
        method = getattr(self.client, _METHODS[operation])
        try:
            return method(**params)
        except ClientError as e:
            mapped = map_dynamodb_error(e, operation, self.table_name, resource_id)
            if isinstance(mapped, BackendFailure):
                self.logger.error("%s failed on %s: %s", operation, self.table_name, mapped.message)
            raise mapped from e
        except BotoCoreError as e:
            self.logger.error("%s failed on %s: %s", operation, self.table_name, e)
            raise BackendFailure(
                f"{operation} on {self.table_name}: {e}",
                original_error=e,
                operation=operation,
            ) from e

    def _key(self, doc_id: str, sort_key: Any = None) -> Dict[str, Any]:
        key = {self.partition_key: self.where_compiler.serialize(doc_id)}
        if self.sort_key:
            if sort_key is None:
                raise InvalidArgument(
                    f"A value for sort key '{self.sort_key}' is required",
                    field=self.sort_key,
                    table_name=self.table_name,
                )
            key[self.sort_key] = self.where_compiler.serialize(sort_key)
        return key

    def _split_partition_key(self, where: Optional[Mapping[str, Any]]) -> Tuple[Any, Optional[Mapping[str, Any]]]:
        """Pull a single `equals` on the partition key out of `where`.

        Returns:
            (key value or MISSING, remaining where map)
        """
        if not isinstance(where, Mapping):
            return MISSING, where
        condition = where.get(self.partition_key)
        if not isinstance(condition, Mapping):
            return MISSING, where
        if set(condition) - {MODE_KEY} != {Operator.EQUALS.value}:
            return MISSING, where
        value = condition[Operator.EQUALS.value]
        if isinstance(value, (list, tuple, bool)):
            return MISSING, where
        remaining = {k: v for k, v in where.items() if k != self.partition_key}
        return value, remaining

    def _native_order(self, keyed: bool, order_by: Optional[Mapping[str, Any]]) -> Optional[SortOrder]:
        """Direction served by ScanIndexForward, if the ordering allows it."""
        pairs = normalize_order_by(order_by)
        if keyed and len(pairs) == 1 and self.sort_key and pairs[0][0] == self.sort_key:
            return pairs[0][1]
        return None

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
        """Scan (or Query) one page of items.

        Args:
            where: Filter map
            take: Page size, sent as `Limit`
            token: Decoded `LastEvaluatedKey` of the previous page
            select: Projection map
            order_by: Ordering map
            request_options: Extra keyword arguments for the client call

        Returns:
            Page of raw typed items and the next `LastEvaluatedKey`
        """
        compiler = self.where_compiler
        native_where, local = compiler.split_where(where)
        key_value, remaining = self._split_partition_key(native_where)
        direction = self._native_order(key_value is not MISSING, order_by)

        # Fields the page is filtered or sorted on locally must be read back
        fields = normalize_select(select)
        if fields is not None:
            local_fields = [name for name, _, _ in local]
            if direction is None:
                local_fields += [name for name, _ in normalize_order_by(order_by)]
            select = {name: True for name in fields + local_fields}

        context = compiler.new_context()
        projection = compiler.to_select(select, context)
        params: Dict[str, Any] = {"TableName": self.table_name, "Limit": take}
        operation = "Scan"
        if key_value is not MISSING:
            operation = "Query"
            params["KeyConditionExpression"] = compiler.compile_predicate(
                context, self.partition_key, Operator.EQUALS, key_value
            )
            if direction is not None:
                params["ScanIndexForward"] = direction == SortOrder.ASC

        clause = compiler.to_where(remaining, context)
        if clause:
            params["FilterExpression"] = clause.text
        if not projection.is_wildcard:
            params["ProjectionExpression"] = projection.text
        params.update(compiler.expression_attributes(context))
        if token is not None:
            params["ExclusiveStartKey"] = token
        params.update(request_options or {})

        self.logger.debug("%s %s filter=%s", operation, self.table_name, clause.render() or "<none>")
        response = self._call(operation, params)
        return Page(items=response.get("Items", MISSING), token=response.get("LastEvaluatedKey"))

    def refine_page(
        self,
        items: List[Entity],
        where: Optional[Mapping[str, Any]],
        select: Optional[Mapping[str, Any]],
        order_by: Optional[Mapping[str, Any]],
    ) -> List[Entity]:
        """Finish a normalized page on the client side.

        Applies the case-insensitive substring predicates, sorts unless
        DynamoDB already ordered the page (items missing the sort field go
        last in either direction), then trims fields read only for the former.
        """
        native_where, local = self.where_compiler.split_where(where)
        ordered = [item for item in items if self.where_compiler.match_local(item, local)]

        pairs = normalize_order_by(order_by)
        key_value, _ = self._split_partition_key(native_where)
        if pairs and self._native_order(key_value is not MISSING, order_by) is None:
            # Stable sorts applied from the last tie-breaker to the first
            for field_name, direction in reversed(pairs):
                present = [item for item in ordered if item.get(field_name) is not None]
                absent = [item for item in ordered if item.get(field_name) is None]
                present.sort(key=lambda item: _sort_value(item[field_name]), reverse=direction == SortOrder.DESC)
                ordered = present + absent

        fields = normalize_select(select)
        if fields is not None:
            ordered = [apply_projection(item, fields) for item in ordered]
        return ordered

    def find_one(
        self,
        doc_id: str,
        select: Optional[Mapping[str, Any]] = None,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """GetItem on the primary key. Returns None when the item is absent."""
        compiler = self.where_compiler
        context = compiler.new_context()
        projection = compiler.to_select(select, context)
        params: Dict[str, Any] = {"TableName": self.table_name, "Key": self._key(doc_id, sort_key)}
        if not projection.is_wildcard:
            params["ProjectionExpression"] = projection.text
            params.update(compiler.expression_attributes(context))
        params.update(request_options or {})
        response = self._call("GetItem", params, resource_id=doc_id)
        return response.get("Item")

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def create(self, item: Entity, request_options: Optional[Dict[str, Any]] = None) -> Any:
        """PutItem. Returns the typed item that was written.

        With the checked policy the put is conditioned on the key being
        free; otherwise an existing item is replaced.

        Raises:
            Conflict: If the policy is checked and the id is already stored
        """
        typed = {k: self.where_compiler.serialize(v) for k, v in item.items()}
        params: Dict[str, Any] = {"TableName": self.table_name, "Item": typed}
        if self.checked:
            context = self.where_compiler.new_context()
            params["ConditionExpression"] = f"attribute_not_exists({context.alias(self.partition_key)})"
            params.update(self.where_compiler.expression_attributes(context))
        params.update(request_options or {})
        self._call("PutItem", params, resource_id=str(item.get(self.partition_key)))
        return typed

    def update(
        self,
        doc_id: str,
        data: Entity,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """UpdateItem with SET over the supplied fields only.

        Key attributes are never SET. With the checked policy the update is
        conditioned on the item existing; otherwise DynamoDB creates it.

        Raises:
            NotFound: If the policy is checked and the item is absent
        """
        compiler = self.where_compiler
        key_fields = {self.partition_key, self.sort_key}
        fields = {k: v for k, v in data.items() if k not in key_fields}
        if not fields:
            raise InvalidArgument("No updatable fields in payload", field="data", operation="update")

        context = compiler.new_context()
        assignments = [f"{context.alias(k)} = {context.bind(v)}" for k, v in fields.items()]
        params: Dict[str, Any] = {
            "TableName": self.table_name,
            "Key": self._key(doc_id, sort_key),
            "UpdateExpression": "SET " + ", ".join(assignments),
            "ReturnValues": "ALL_NEW",
        }
        if self.checked:
            params["ConditionExpression"] = f"attribute_exists({context.alias(self.partition_key)})"
        params.update(compiler.expression_attributes(context))
        params.update(request_options or {})
        response = self._call("UpdateItem", params, resource_id=doc_id)
        return response.get("Attributes")

    def delete(
        self,
        doc_id: str,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """DeleteItem. Unchecked deletes of absent ids are a no-op.

        Raises:
            NotFound: If the policy is checked and the item is absent
        """
        params: Dict[str, Any] = {"TableName": self.table_name, "Key": self._key(doc_id, sort_key)}
        if self.checked:
            context = self.where_compiler.new_context()
            params["ConditionExpression"] = f"attribute_exists({context.alias(self.partition_key)})"
            params.update(self.where_compiler.expression_attributes(context))
        params.update(request_options or {})
        self._call("DeleteItem", params, resource_id=doc_id)

    def normalize_item(self, raw: Any) -> Entity:
        """Deserialize typed attribute values; Decimals become int/float."""
        item = super().normalize_item(raw)
        return {k: normalize_number(_deserializer.deserialize(v)) for k, v in item.items()}

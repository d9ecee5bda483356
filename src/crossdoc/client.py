"""
Model registry.

`create_client` builds the native client for a backend, hands a
`ModelBuilder` to the caller's `models` callable and returns whatever mapping
of `EntityModel`s that callable produced:

    >>> db = create_client("dynamodb", lambda t: {
    ...     "user": t.create_model("users"),
    ...     "order": t.create_model("orders", partition_key="customerId", sort_key="orderId"),
    ... })
    >>> db["user"].find_many(take=10)
"""

from typing import Any, Callable, Dict, Literal, Mapping, Optional, TypeVar, Union

import boto3
from azure.cosmos import CosmosClient

from .abc import DocumentStoreAdapter, WritePolicy
from .dbs.cosmos import CosmosAdapter
from .dbs.dynamodb import DynamoDBAdapter
from .engine import EntityModel
from .exceptions import ConfigurationError, MissingConfigError
from .logger import Logger
from .schema import AutoFields
from .settings import settings as api_settings
from .types import Clock, IdFactory
from .utils import generate_id, utc_now

Backend = Literal["dynamodb", "cosmos"]

M = TypeVar("M", bound=Mapping[str, EntityModel])

logger = Logger(__name__)


def build_dynamodb_client() -> Any:
    """Build a boto3 DynamoDB client from settings.

    Raises:
        MissingConfigError: If AWS_REGION is empty
    """
    if not api_settings.AWS_REGION:
        raise MissingConfigError(
            "AWS_REGION is not set. Please configure it in your .env file.",
            config_key="AWS_REGION",
            env_file=".env",
        )
    kwargs: Dict[str, Any] = {"region_name": api_settings.AWS_REGION}
    if api_settings.DYNAMODB_ENDPOINT_URL:
        kwargs["endpoint_url"] = api_settings.DYNAMODB_ENDPOINT_URL
    if api_settings.AWS_ACCESS_KEY_ID and api_settings.AWS_SECRET_ACCESS_KEY:
        kwargs["aws_access_key_id"] = api_settings.AWS_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = api_settings.AWS_SECRET_ACCESS_KEY
    logger.message("DynamoDB client initialized: region=%s", api_settings.AWS_REGION)
    return boto3.client("dynamodb", **kwargs)


def build_cosmos_client() -> CosmosClient:
    """Build a CosmosClient from settings.

    Raises:
        MissingConfigError: If COSMOS_CONNECTION_STRING is not configured
    """
    if not api_settings.COSMOS_CONNECTION_STRING:
        raise MissingConfigError(
            "COSMOS_CONNECTION_STRING is not set. Please configure it in your .env file.",
            config_key="COSMOS_CONNECTION_STRING",
            env_file=".env",
        )
    logger.message("Cosmos client initialized.")
    return CosmosClient.from_connection_string(api_settings.COSMOS_CONNECTION_STRING)


class ModelBuilder:
    """Builds one `EntityModel` per table/container on a shared native client."""

    def __init__(
        self,
        backend: Backend,
        client: Any,
        database: Optional[str] = None,
        clock: Clock = utc_now,
        id_factory: IdFactory = generate_id,
    ) -> None:
        self.backend = backend
        self.client = client
        self.database = database
        self.clock = clock
        self.id_factory = id_factory

    def create_adapter(
        self,
        name: str,
        partition_key: str = "id",
        sort_key: Optional[str] = None,
        write_policy: Optional[WritePolicy] = None,
    ) -> DocumentStoreAdapter:
        if self.backend == "dynamodb":
            return DynamoDBAdapter(
                self.client,
                name,
                partition_key=partition_key,
                sort_key=sort_key,
                write_policy=write_policy,
            )
        if sort_key is not None:
            raise ConfigurationError(
                "Cosmos containers take no sort key",
                backend=self.backend,
                container=name,
            )
        return CosmosAdapter(
            name,
            client=self.client,
            database=self.database,
            partition_key=partition_key,
            write_policy=write_policy,
        )

    def create_model(
        self,
        name: str,
        partition_key: str = "id",
        sort_key: Optional[str] = None,
        fields: Union[AutoFields, Mapping[str, bool], bool, None] = None,
        write_policy: Optional[WritePolicy] = None,
    ) -> EntityModel:
        """Create the model for one table (DynamoDB) or container (Cosmos).

        Args:
            name: Table or container name
            partition_key: Partition key field
            sort_key: Sort key field, DynamoDB only
            fields: Automatic id/timestamp toggles
            write_policy: "checked" or "unchecked"; defaults to WRITE_POLICY
        """
        adapter = self.create_adapter(name, partition_key=partition_key, sort_key=sort_key, write_policy=write_policy)
        return EntityModel(adapter, fields=fields, clock=self.clock, id_factory=self.id_factory)


def create_client(
    backend: Backend,
    models: Callable[[ModelBuilder], M],
    client: Any = None,
    database: Optional[str] = None,
    clock: Clock = utc_now,
    id_factory: IdFactory = generate_id,
) -> M:
    """Build the models of one database.

    Args:
        backend: "dynamodb" or "cosmos"
        models: Callable receiving a ModelBuilder and returning a mapping of models
        client: Native client; built from settings when omitted
        database: Cosmos database name; defaults to COSMOS_DATABASE
        clock: Time source shared by every model
        id_factory: Id generator shared by every model

    Returns:
        The mapping returned by `models`

    Raises:
        ConfigurationError: If the backend is unknown
        MissingConfigError: If the client must be built and settings are missing
    """
    if backend == "dynamodb":
        client = client if client is not None else build_dynamodb_client()
    elif backend == "cosmos":
        client = client if client is not None else build_cosmos_client()
        database = database or api_settings.COSMOS_DATABASE
        if not database:
            raise MissingConfigError(
                "COSMOS_DATABASE is not set. Please configure it in your .env file.",
                config_key="COSMOS_DATABASE",
                env_file=".env",
            )
    else:
        raise ConfigurationError(f"Unknown backend {backend!r}", backend=backend)

    builder = ModelBuilder(backend, client, database=database, clock=clock, id_factory=id_factory)
    registry = models(builder)
    logger.message("Client created: backend=%s models=%s", backend, ", ".join(registry))
    return registry

"""Tests for the model registry."""

from unittest.mock import MagicMock, patch

import pytest

from crossdoc.client import ModelBuilder, create_client
from crossdoc.dbs.cosmos import CosmosAdapter
from crossdoc.dbs.dynamodb import DynamoDBAdapter
from crossdoc.engine import EntityModel
from crossdoc.exceptions import ConfigurationError, MissingConfigError
from crossdoc.settings import settings


class TestCreateClient:
    def test_dynamodb_models(self, dynamodb_client):
        db = create_client(
            "dynamodb",
            lambda t: {
                "user": t.create_model("users"),
                "order": t.create_model("orders", partition_key="customerId", sort_key="orderId"),
            },
            client=dynamodb_client,
        )
        assert set(db) == {"user", "order"}
        assert isinstance(db["user"], EntityModel)
        adapter = db["order"].adapter
        assert isinstance(adapter, DynamoDBAdapter)
        assert adapter.table_name == "orders"
        assert adapter.sort_key == "orderId"
        assert adapter.client is dynamodb_client

    def test_cosmos_models(self):
        client = MagicMock(name="CosmosClient")
        db = create_client("cosmos", lambda t: {"user": t.create_model("users")}, client=client, database="app")
        adapter = db["user"].adapter
        assert isinstance(adapter, CosmosAdapter)
        assert adapter.database_name == "app"

    def test_cosmos_rejects_sort_key(self):
        builder = ModelBuilder("cosmos", MagicMock(), database="app")
        with pytest.raises(ConfigurationError):
            builder.create_model("users", sort_key="x")

    def test_model_options(self, dynamodb_client, fixed_clock, id_factory):
        db = create_client(
            "dynamodb",
            lambda t: {"user": t.create_model("users", fields=False, write_policy="unchecked")},
            client=dynamodb_client,
            clock=fixed_clock,
            id_factory=id_factory,
        )
        model = db["user"]
        assert model.fields.id is False
        assert model.adapter.write_policy == "unchecked"
        assert model.clock is fixed_clock

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_client("mongo", lambda t: {})

    def test_dynamodb_client_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "AWS_REGION", "eu-west-1")
        monkeypatch.setattr(settings, "DYNAMODB_ENDPOINT_URL", "http://localhost:8000")
        monkeypatch.setattr(settings, "AWS_ACCESS_KEY_ID", "key")
        monkeypatch.setattr(settings, "AWS_SECRET_ACCESS_KEY", "secret")
        with patch("crossdoc.client.boto3.client") as mock_client:
            create_client("dynamodb", lambda t: {"user": t.create_model("users")})
        mock_client.assert_called_once_with(
            "dynamodb",
            region_name="eu-west-1",
            endpoint_url="http://localhost:8000",
            aws_access_key_id="key",
            aws_secret_access_key="secret",
        )

    def test_cosmos_missing_connection_string(self, monkeypatch):
        monkeypatch.setattr(settings, "COSMOS_CONNECTION_STRING", None)
        with pytest.raises(MissingConfigError):
            create_client("cosmos", lambda t: {}, database="app")

    def test_cosmos_missing_database(self, monkeypatch):
        monkeypatch.setattr(settings, "COSMOS_DATABASE", None)
        with pytest.raises(MissingConfigError):
            create_client("cosmos", lambda t: {}, client=MagicMock())

    def test_cosmos_client_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "COSMOS_CONNECTION_STRING", "AccountEndpoint=https://x/;AccountKey=k;")
        with patch("crossdoc.client.CosmosClient.from_connection_string") as mock_from:
            create_client("cosmos", lambda t: {"user": t.create_model("users")}, database="app")
        mock_from.assert_called_once_with("AccountEndpoint=https://x/;AccountKey=k;")

"""Pytest configuration and fixtures for crossdoc tests."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv
from mock_backend import InMemoryAdapter

from crossdoc.engine import EntityModel

# Load environment variables
load_dotenv()

FIXED_NOW = datetime(2024, 5, 17, 8, 30, 15, 123000, tzinfo=timezone.utc)
FIXED_NOW_ISO = "2024-05-17T08:30:15.123Z"


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def fixed_now_iso():
    return FIXED_NOW_ISO


@pytest.fixture
def id_factory():
    """Counting id factory: id-1, id-2, ..."""
    counter = {"n": 0}

    def _next() -> str:
        counter["n"] += 1
        return f"id-{counter['n']}"

    return _next


@pytest.fixture
def sample_users():
    """25 users with predictable names and ages."""
    return [
        {
            "id": f"user-{i:02d}",
            "firstName": f"Name{i}",
            "lastName": f"LastName{i % 5}",
            "age": 20 + i,
            "isAdmin": i % 2 == 0,
        }
        for i in range(25)
    ]


@pytest.fixture
def inmemory_adapter(sample_users):
    adapter = InMemoryAdapter(write_policy="checked")
    adapter.seed(sample_users)
    return adapter


@pytest.fixture
def user_model(inmemory_adapter, fixed_clock, id_factory):
    """EntityModel over the seeded in-memory adapter."""
    return EntityModel(inmemory_adapter, clock=fixed_clock, id_factory=id_factory)


@pytest.fixture
def dynamodb_client():
    """MagicMock standing in for a boto3 DynamoDB low-level client."""
    client = MagicMock(name="dynamodb")
    client.scan.return_value = {"Items": [], "Count": 0}
    client.query.return_value = {"Items": [], "Count": 0}
    client.get_item.return_value = {}
    client.put_item.return_value = {}
    client.update_item.return_value = {"Attributes": {"id": {"S": "user-1"}}}
    client.delete_item.return_value = {}
    return client


@pytest.fixture
def cosmos_container():
    """MagicMock standing in for an azure-cosmos ContainerProxy."""
    container = MagicMock(name="container")
    container.query_items.return_value = iter([])
    return container

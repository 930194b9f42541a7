"""
Pytest fixtures for localscoop tests.

Uses moto to mock DynamoDB and responses to mock HTTP requests.
"""

import os
from datetime import datetime, timezone
from typing import Any, Generator
from unittest.mock import MagicMock

import boto3
import pytest
import responses
from botocore.exceptions import EndpointConnectionError
from moto import mock_aws

from localscoop.cache import DynamoCacheStore, MemoryCacheStore
from localscoop.client import PlacesClient
from localscoop.config import LocalScoopConfig
from localscoop.resolver import PlaceResolver

TEST_API_KEY = "AIzaSyTestKey0123456789abcdefghijklmn"  # 37 chars
TEST_PLACE_ID = "ChIJtest1234567890"
PLACES_URL = "https://places.googleapis.com/v1/places"

# Monday 2024-01-01 10:00 UTC
MONDAY_10AM = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

TABLE_SCHEMA = {
    "TableName": "test-localscoop",
    "KeySchema": [
        {"AttributeName": "PK", "KeyType": "HASH"},
        {"AttributeName": "SK", "KeyType": "RANGE"},
    ],
    "AttributeDefinitions": [
        {"AttributeName": "PK", "AttributeType": "S"},
        {"AttributeName": "SK", "AttributeType": "S"},
    ],
    "BillingMode": "PAY_PER_REQUEST",
}

SAMPLE_PLACE_DETAILS: dict[str, Any] = {
    "id": TEST_PLACE_ID,
    "displayName": {"text": "Test Bakery", "languageCode": "en"},
    "formattedAddress": "123 Test St, City, ST 12345",
    "businessStatus": "OPERATIONAL",
    "nationalPhoneNumber": "(555) 987-6543",
    "internationalPhoneNumber": "+1 555-987-6543",
    "googleMapsUri": "https://maps.google.com/?cid=1234567890",
    "location": {"latitude": 40.7128, "longitude": -74.0060},
    "regularOpeningHours": {
        "periods": [
            {
                "open": {"day": 1, "hour": 9, "minute": 0},
                "close": {"day": 1, "hour": 17, "minute": 0},
            },
            {
                "open": {"day": 2, "hour": 9, "minute": 0},
                "close": {"day": 2, "hour": 17, "minute": 0},
            },
        ]
    },
}


def pytest_configure(config: Any) -> None:
    config.addinivalue_line("markers", "unit: fast tests with no I/O")
    config.addinivalue_line(
        "markers", "integration: tests using mocked AWS or HTTP"
    )


class FakeClock:
    """Controllable epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of config and credential tests."""
    for name in list(os.environ):
        if name.startswith("LOCALSCOOP_"):
            monkeypatch.delenv(name)
    monkeypatch.delenv("GOOGLE_PLACES_API_KEY", raising=False)


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set up mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-west-2")


@pytest.fixture
def mock_dynamodb(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mock DynamoDB table."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="us-west-2")
        client.create_table(**TABLE_SCHEMA)
        yield client


@pytest.fixture
def test_config() -> LocalScoopConfig:
    """Create test configuration."""
    return LocalScoopConfig(
        table_name="test-localscoop",
        aws_region="us-west-2",
        cache_secret="test-secret",
        request_timeout=15,
    )


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def dynamo_cache(
    mock_dynamodb: Any,
    test_config: LocalScoopConfig,
    clock: FakeClock,
) -> DynamoCacheStore:
    """Create a DynamoCacheStore with mocked DynamoDB."""
    return DynamoCacheStore(
        config=test_config,
        dynamodb_client=mock_dynamodb,
        clock=clock,
    )


@pytest.fixture
def places_client(test_config: LocalScoopConfig) -> PlacesClient:
    return PlacesClient(config=test_config)


@pytest.fixture
def resolver(
    places_client: PlacesClient,
    memory_cache: MemoryCacheStore,
    test_config: LocalScoopConfig,
) -> PlaceResolver:
    """Resolver with an in-memory cache and a fixed Monday 10:00 UTC clock."""
    return PlaceResolver(
        places_client,
        memory_cache,
        config=test_config,
        clock=lambda: MONDAY_10AM,
    )


@pytest.fixture
def mock_places_api() -> Generator[responses.RequestsMock, None, None]:
    """Mock Google Places API responses."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def add_place_details_mock(
    rsps: responses.RequestsMock,
    place_id: str = TEST_PLACE_ID,
    body: Any = None,
    status: int = 200,
) -> None:
    """Register a place-details response."""
    rsps.add(
        responses.GET,
        f"{PLACES_URL}/{place_id}",
        json=SAMPLE_PLACE_DETAILS if body is None else body,
        status=status,
    )


def unreachable_dynamodb_client() -> MagicMock:
    """DynamoDB client whose every call fails to connect."""
    error = EndpointConnectionError(
        endpoint_url="https://dynamodb.us-west-2.amazonaws.com"
    )
    client = MagicMock()
    client.get_item.side_effect = error
    client.put_item.side_effect = error
    client.delete_item.side_effect = error
    client.query.side_effect = error
    return client

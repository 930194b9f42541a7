"""
Tests for PlaceResolver: validation, caching and normalization.
"""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest
import responses
from freezegun import freeze_time

from localscoop.cache import DynamoCacheStore, MemoryCacheStore
from localscoop.client import PlacesClient
from localscoop.config import LocalScoopConfig
from localscoop.errors import CacheStoreError, InvalidInputError, UpstreamAPIError
from localscoop.resolver import PlaceResolver, build_maps_url, normalize_place
from localscoop.types import DEFAULT_PLACE_NAME, SAMPLE_PLACE, PlaceDetails
from tests.conftest import (
    MONDAY_10AM,
    SAMPLE_PLACE_DETAILS,
    TEST_API_KEY,
    TEST_PLACE_ID,
    FakeClock,
    add_place_details_mock,
    unreachable_dynamodb_client,
)


def _details(**overrides: Any) -> PlaceDetails:
    data = dict(SAMPLE_PLACE_DETAILS)
    data.update(overrides)
    return PlaceDetails.model_validate(data)


@pytest.mark.unit
class TestNormalizePlace:
    """Test conversion of PlaceDetails into PlaceRecord."""

    def test_full_record(self) -> None:
        record = normalize_place(_details(), TEST_PLACE_ID, MONDAY_10AM)

        assert record.name == "Test Bakery"
        assert record.formatted_address == "123 Test St, City, ST 12345"
        assert record.phone == "(555) 987-6543"
        assert record.is_open_now is True
        assert record.maps_url == "https://maps.google.com/?cid=1234567890"

    def test_missing_name_uses_default(self) -> None:
        record = normalize_place(
            _details(displayName=None), TEST_PLACE_ID, MONDAY_10AM
        )
        assert record.name == DEFAULT_PLACE_NAME

    def test_name_is_sanitized(self) -> None:
        record = normalize_place(
            _details(displayName={"text": "<b>Joe's</b>\nDiner"}),
            TEST_PLACE_ID,
            MONDAY_10AM,
        )
        assert record.name == "Joe's Diner"

    def test_international_phone_fallback(self) -> None:
        record = normalize_place(
            _details(nationalPhoneNumber=None), TEST_PLACE_ID, MONDAY_10AM
        )
        assert record.phone == "+1 555-987-6543"

    def test_no_phone(self) -> None:
        record = normalize_place(
            _details(nationalPhoneNumber=None, internationalPhoneNumber=None),
            TEST_PLACE_ID,
            MONDAY_10AM,
        )
        assert record.phone == ""

    def test_no_schedule_is_unknown(self) -> None:
        record = normalize_place(
            _details(regularOpeningHours=None), TEST_PLACE_ID, MONDAY_10AM
        )
        assert record.is_open_now is None

    def test_closed_outside_hours(self) -> None:
        evening = datetime(2024, 1, 1, 20, 0, tzinfo=timezone.utc)
        record = normalize_place(_details(), TEST_PLACE_ID, evening)
        assert record.is_open_now is False

    def test_maps_url_synthesized_from_location(self) -> None:
        record = normalize_place(
            _details(googleMapsUri=None, displayName={"text": "Joe's Diner & Bar"}),
            TEST_PLACE_ID,
            MONDAY_10AM,
        )

        assert record.maps_url.startswith("https://www.google.com/maps/search/")
        assert "query=Joe%27s+Diner+%26+Bar" in record.maps_url
        assert f"query_place_id={TEST_PLACE_ID}" in record.maps_url

    def test_unsafe_maps_url_replaced(self) -> None:
        record = normalize_place(
            _details(googleMapsUri="javascript:alert(1)"),
            TEST_PLACE_ID,
            MONDAY_10AM,
        )
        assert record.maps_url == build_maps_url("Test Bakery", TEST_PLACE_ID)

    def test_no_maps_url_without_location(self) -> None:
        record = normalize_place(
            _details(googleMapsUri=None, location=None), TEST_PLACE_ID, MONDAY_10AM
        )
        assert record.maps_url == ""


class TestResolve:
    """Test the cache-then-fetch flow."""

    @responses.activate
    def test_resolve_fetches_and_caches(self, resolver: PlaceResolver) -> None:
        add_place_details_mock(responses)

        record = resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert record.name == "Test Bakery"
        assert record.is_open_now is True
        cached = resolver.cache.get(resolver.cache_key(TEST_PLACE_ID))
        assert cached == record.to_dict()

    @responses.activate
    def test_second_call_hits_cache(self, resolver: PlaceResolver) -> None:
        add_place_details_mock(responses)

        first = resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)
        second = resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert first == second
        assert len(responses.calls) == 1

    @responses.activate
    def test_cache_expires_after_ttl(
        self,
        places_client: PlacesClient,
        test_config: LocalScoopConfig,
        clock: FakeClock,
    ) -> None:
        cache = MemoryCacheStore(clock=clock)
        resolver = PlaceResolver(
            places_client, cache, config=test_config, clock=lambda: MONDAY_10AM
        )
        add_place_details_mock(responses)

        resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)
        clock.advance(30 * 60 + 1)
        resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert len(responses.calls) == 2

    @pytest.mark.parametrize(
        "place_id,api_key",
        [
            ("bad id!", TEST_API_KEY),
            ("", TEST_API_KEY),
            (TEST_PLACE_ID, "short"),
            (TEST_PLACE_ID, ""),
        ],
    )
    @responses.activate
    def test_invalid_input_makes_no_request(
        self, resolver: PlaceResolver, place_id: str, api_key: str
    ) -> None:
        with pytest.raises(InvalidInputError):
            resolver.resolve(place_id, api_key)

        assert len(responses.calls) == 0

    @responses.activate
    def test_errors_are_not_cached(self, resolver: PlaceResolver) -> None:
        add_place_details_mock(
            responses,
            body={"error": {"message": "quota exceeded"}},
            status=429,
        )

        with pytest.raises(UpstreamAPIError) as exc_info:
            resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)
        assert exc_info.value.message == "quota exceeded"
        assert exc_info.value.status_code == 429

        with pytest.raises(UpstreamAPIError):
            resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert len(responses.calls) == 2
        assert resolver.cache.get(resolver.cache_key(TEST_PLACE_ID)) is None

    @responses.activate
    def test_malformed_cache_entry_is_a_miss(self, resolver: PlaceResolver) -> None:
        add_place_details_mock(responses)
        resolver.cache.set(resolver.cache_key(TEST_PLACE_ID), "garbage", 60)

        record = resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert record.name == "Test Bakery"
        assert len(responses.calls) == 1

    @responses.activate
    def test_cache_write_failure_is_swallowed(
        self,
        places_client: PlacesClient,
        test_config: LocalScoopConfig,
    ) -> None:
        cache = MagicMock()
        cache.get.return_value = None
        cache.set.side_effect = CacheStoreError("write failed")
        resolver = PlaceResolver(
            places_client, cache, config=test_config, clock=lambda: MONDAY_10AM
        )
        add_place_details_mock(responses)

        record = resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert record.name == "Test Bakery"
        cache.set.assert_called_once()

    def test_cache_key_uses_secret(
        self,
        places_client: PlacesClient,
        memory_cache: MemoryCacheStore,
        test_config: LocalScoopConfig,
    ) -> None:
        first = PlaceResolver(
            places_client, memory_cache, config=test_config, cache_secret="one"
        )
        second = PlaceResolver(
            places_client, memory_cache, config=test_config, cache_secret="two"
        )
        assert first.cache_key(TEST_PLACE_ID) != second.cache_key(TEST_PLACE_ID)

    @freeze_time("2024-01-01 20:00:00")
    @responses.activate
    def test_default_clock_uses_current_time(
        self,
        places_client: PlacesClient,
        memory_cache: MemoryCacheStore,
        test_config: LocalScoopConfig,
    ) -> None:
        resolver = PlaceResolver(places_client, memory_cache, config=test_config)
        add_place_details_mock(responses)

        record = resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert record.is_open_now is False


class TestResolveOrSample:
    """Test the display-boundary fallback."""

    @pytest.mark.parametrize(
        "place_id,api_key",
        [("", TEST_API_KEY), (TEST_PLACE_ID, ""), (None, None)],
    )
    def test_missing_inputs(
        self, resolver: PlaceResolver, place_id: Any, api_key: Any
    ) -> None:
        assert resolver.resolve_or_sample(place_id, api_key) == SAMPLE_PLACE

    @responses.activate
    def test_upstream_failure(self, resolver: PlaceResolver) -> None:
        add_place_details_mock(responses, body={}, status=500)

        assert resolver.resolve_or_sample(TEST_PLACE_ID, TEST_API_KEY) == SAMPLE_PLACE

    @responses.activate
    def test_success(self, resolver: PlaceResolver) -> None:
        add_place_details_mock(responses)

        record = resolver.resolve_or_sample(TEST_PLACE_ID, TEST_API_KEY)

        assert record.name == "Test Bakery"


class TestDynamoBackedResolver:
    """Test resolution when the persisted cache misbehaves or is shared."""

    @responses.activate
    def test_unreachable_cache_still_returns_record(
        self,
        places_client: PlacesClient,
        test_config: LocalScoopConfig,
    ) -> None:
        cache = DynamoCacheStore(
            config=test_config, dynamodb_client=unreachable_dynamodb_client()
        )
        resolver = PlaceResolver(
            places_client, cache, config=test_config, clock=lambda: MONDAY_10AM
        )
        add_place_details_mock(responses)

        record = resolver.resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert record.name == "Test Bakery"

    @responses.activate
    def test_unreachable_cache_and_upstream_falls_back_to_sample(
        self,
        places_client: PlacesClient,
        test_config: LocalScoopConfig,
    ) -> None:
        cache = DynamoCacheStore(
            config=test_config, dynamodb_client=unreachable_dynamodb_client()
        )
        resolver = PlaceResolver(places_client, cache, config=test_config)
        add_place_details_mock(responses, body={}, status=503)

        assert resolver.resolve_or_sample(TEST_PLACE_ID, TEST_API_KEY) == SAMPLE_PLACE

    @responses.activate
    def test_cache_shared_between_processes(
        self,
        mock_dynamodb: Any,
        clock: FakeClock,
    ) -> None:
        """Two configs with the same secret read each other's entries."""
        add_place_details_mock(responses)
        resolvers = []
        for _ in range(2):
            config = LocalScoopConfig(
                _env_file=None,
                cache_backend="dynamodb",
                cache_secret="deployment-secret",
                table_name="test-localscoop",
            )
            cache = DynamoCacheStore(
                config=config, dynamodb_client=mock_dynamodb, clock=clock
            )
            resolvers.append(
                PlaceResolver(
                    PlacesClient(config=config),
                    cache,
                    config=config,
                    clock=lambda: MONDAY_10AM,
                )
            )

        first = resolvers[0].resolve(TEST_PLACE_ID, TEST_API_KEY)
        second = resolvers[1].resolve(TEST_PLACE_ID, TEST_API_KEY)

        assert first == second
        assert len(responses.calls) == 1

"""
Resolve a place ID into a display-ready PlaceRecord.

The resolver is a read-through cache around PlacesClient:

1. Validate the place ID and API key
2. Look up the salted cache key
3. On a miss, fetch, normalize and cache the record for 30 minutes

Failures are raised as LocalScoopError subclasses and never cached.
resolve_or_sample() is the boundary that turns any failure into sample
data for display.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone, tzinfo
from typing import Optional
from urllib.parse import quote_plus

from pydantic import ValidationError

from localscoop.cache import CacheStore, place_cache_key
from localscoop.client import PlacesClient
from localscoop.config import LocalScoopConfig, get_config
from localscoop.constants import MAPS_SEARCH_URL
from localscoop.errors import CacheStoreError, InvalidInputError, LocalScoopError
from localscoop.hours import get_timezone, is_open_now, schedule_from_opening_hours
from localscoop.sanitizers import (
    sanitize_text,
    sanitize_url,
    validate_credential,
    validate_identifier,
)
from localscoop.types import DEFAULT_PLACE_NAME, SAMPLE_PLACE, PlaceDetails, PlaceRecord

logger = logging.getLogger(__name__)


def build_maps_url(name: str, place_id: str) -> str:
    """Google Maps search URL pointing at a specific place."""
    return MAPS_SEARCH_URL.format(
        query=quote_plus(name),
        place_id=quote_plus(place_id),
    )


def normalize_place(
    details: PlaceDetails,
    place_id: str,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> PlaceRecord:
    """
    Turn raw place details into a PlaceRecord.

    Args:
        details: Parsed Places API response
        place_id: The place ID the details were requested for
        now: Moment used to evaluate opening hours
        tz: Time zone for opening hours (UTC when omitted)

    Returns:
        Normalized PlaceRecord
    """
    name = ""
    if details.display_name is not None:
        name = sanitize_text(details.display_name.text)
    name = name or DEFAULT_PLACE_NAME

    phone = sanitize_text(details.national_phone_number) or sanitize_text(
        details.international_phone_number
    )

    open_state: Optional[bool] = None
    schedule = schedule_from_opening_hours(details.regular_opening_hours)
    if schedule is not None:
        open_state = is_open_now(schedule, now, tz or timezone.utc)

    maps_url = sanitize_url(details.google_maps_uri)
    if not maps_url and details.location is not None:
        maps_url = build_maps_url(name, place_id)

    return PlaceRecord(
        name=name,
        formatted_address=sanitize_text(details.formatted_address),
        phone=phone,
        is_open_now=open_state,
        maps_url=maps_url,
    )


class PlaceResolver:
    """
    Cache-then-fetch resolution of place records.

    Example:
        ```python
        from localscoop import MemoryCacheStore, PlaceResolver, PlacesClient

        resolver = PlaceResolver(PlacesClient(), MemoryCacheStore())
        record = resolver.resolve("ChIJN1t_tDeuEmsRUsoyG83frY4", api_key)
        ```
    """

    def __init__(
        self,
        client: PlacesClient,
        cache: CacheStore,
        config: Optional[LocalScoopConfig] = None,
        cache_secret: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            client: Places API client
            cache: Store for resolved records
            config: Configuration settings
            cache_secret: Salt for cache keys (defaults to config.cache_secret)
            clock: Returns the current time (defaults to UTC now)
        """
        self._client = client
        self._cache = cache
        self._config = config or get_config()
        self._secret = (
            cache_secret or self._config.cache_secret.get_secret_value()
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._ttl = self._config.cache_ttl_seconds
        self._tz = get_timezone(self._config.timezone)

    @property
    def cache(self) -> CacheStore:
        return self._cache

    def cache_key(self, place_id: str) -> str:
        return place_cache_key(place_id, self._secret)

    def resolve(self, place_id: str, api_key: str) -> PlaceRecord:
        """
        Resolve a place ID, using the cache when possible.

        Args:
            place_id: Google Place ID
            api_key: Google Places API key

        Returns:
            PlaceRecord for display

        Raises:
            InvalidInputError: If place_id or api_key is malformed
            UpstreamError: If the Places API call fails
        """
        if not validate_identifier(place_id):
            raise InvalidInputError("Invalid place ID format")
        if not validate_credential(api_key):
            raise InvalidInputError("Invalid API key")

        key = self.cache_key(place_id)
        cached = self._load_cached(key)
        if cached is not None:
            logger.debug("Cache hit for place %s", place_id)
            return cached

        details = self._client.fetch_place_details(place_id, api_key)
        record = normalize_place(details, place_id, self._clock(), self._tz)

        if record.is_cacheable:
            try:
                self._cache.set(key, record.to_dict(), self._ttl)
            except CacheStoreError as e:
                logger.warning("Could not cache place %s: %s", place_id, e)

        return record

    def resolve_or_sample(
        self, place_id: Optional[str], api_key: Optional[str]
    ) -> PlaceRecord:
        """
        Resolve a place, falling back to sample data on any failure.

        Args:
            place_id: Google Place ID (may be empty)
            api_key: Google Places API key (may be empty)

        Returns:
            The resolved record, or SAMPLE_PLACE
        """
        if not place_id or not api_key:
            return SAMPLE_PLACE
        try:
            return self.resolve(place_id, api_key)
        except LocalScoopError as e:
            logger.warning("Falling back to sample data for %s: %s", place_id, e)
            return SAMPLE_PLACE

    def _load_cached(self, key: str) -> Optional[PlaceRecord]:
        value = self._cache.get(key)
        if value is None:
            return None
        if not isinstance(value, dict):
            logger.warning("Ignoring malformed cache entry %s", key)
            return None
        try:
            record = PlaceRecord.model_validate(value)
        except ValidationError:
            logger.warning("Ignoring malformed cache entry %s", key)
            return None
        return record if record.is_cacheable else None

"""
Google Places API (New v1) place-details client.

- Base URL: https://places.googleapis.com/v1/
- Auth via header: X-Goog-Api-Key (never in the URL)
- Field mask header limits the response to what the toolbar displays
- One attempt per call unless max_retries is configured
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import requests  # type: ignore[import-untyped]
from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from localscoop.config import LocalScoopConfig, get_config
from localscoop.constants import (
    PLACE_DETAILS_FIELD_MASK,
    PLACES_BASE_URL,
    VERSION,
)
from localscoop.errors import (
    InvalidIdentifierError,
    MalformedResponseError,
    TransportError,
    UpstreamAPIError,
)
from localscoop.sanitizers import sanitize_text, validate_identifier
from localscoop.types import PlaceDetails

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    requests.exceptions.Timeout,
    requests.exceptions.ConnectionError,
)


class PlacesClient:
    """
    Fetches place details from the Places API v1.

    The client holds no API key; the caller passes one with every
    request so that key rotation takes effect immediately.

    Example:
        ```python
        from localscoop import PlacesClient

        client = PlacesClient()
        details = client.fetch_place_details("ChIJN1t_tDeuEmsRUsoyG83frY4", api_key)
        print(details.display_name.text)
        ```
    """

    BASE_URL = PLACES_BASE_URL
    FIELD_MASK = PLACE_DETAILS_FIELD_MASK

    def __init__(
        self,
        config: Optional[LocalScoopConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Places client.

        Args:
            config: Configuration settings
            session: Optional requests session (a new one is created otherwise)
        """
        self._config = config or get_config()
        self._session = session or requests.Session()
        self._timeout = self._config.request_timeout
        self._max_retries = self._config.max_retries

        logger.info(
            "PlacesClient initialized (timeout=%ss, max_retries=%s)",
            self._timeout,
            self._max_retries,
        )

    def _get(self, url: str, headers: dict[str, str]) -> requests.Response:
        """GET with optional jittered retries on transport failures."""
        retrying = Retrying(
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_random_exponential(multiplier=0.5, max=5),
            reraise=True,
        )
        return retrying(
            self._session.get,
            url,
            headers=headers,
            timeout=self._timeout,
            verify=True,
        )

    def fetch_place_details(self, place_id: str, api_key: str) -> PlaceDetails:
        """
        Get details for one place.

        Args:
            place_id: Google Place ID (e.g., "ChIJ...")
            api_key: Google Places API key

        Returns:
            Parsed PlaceDetails

        Raises:
            InvalidIdentifierError: If place_id is malformed (no request is made)
            TransportError: On timeout or connection failure
            UpstreamAPIError: If the API returns a non-2xx status
            MalformedResponseError: If a 2xx body is not a valid place object
        """
        if not validate_identifier(place_id):
            raise InvalidIdentifierError("Invalid place ID format")

        url = f"{self.BASE_URL}/places/{quote(place_id, safe='')}"
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": api_key,
            "X-Goog-FieldMask": ",".join(self.FIELD_MASK),
            "User-Agent": f"LocalScoop/{VERSION}",
        }

        logger.info("Places API v1: fetch_place_details(%s)", place_id)

        try:
            response = self._get(url, headers)
        except requests.exceptions.RequestException as e:
            logger.warning("Places API transport error: %s", type(e).__name__)
            raise TransportError(f"Places API request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            message = self._extract_error_message(response)
            logger.error(
                "Places API error (status=%s): %s",
                response.status_code,
                message,
            )
            raise UpstreamAPIError(response.status_code, message)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("Invalid API response") from e

        if not isinstance(data, dict) or not data:
            raise MalformedResponseError("Invalid API response")

        try:
            details = PlaceDetails.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Failed to parse place details: {e}"
            ) from e

        logger.debug("Retrieved place details for %s", place_id)
        return details

    @staticmethod
    def _extract_error_message(response: requests.Response) -> str:
        """Pull error.message out of a v1 error body, if there is one."""
        fallback = f"API request failed with code {response.status_code}"
        try:
            error_data: Any = response.json()
        except ValueError:
            return fallback

        if not isinstance(error_data, dict):
            return fallback
        error = error_data.get("error")
        if not isinstance(error, dict):
            return fallback
        message = sanitize_text(error.get("message"))
        return message or fallback

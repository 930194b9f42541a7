"""
API Gateway handler for GET /place/{place_id}.

Returns the resolved PlaceRecord as a flat JSON object. The caller must
be an authenticated actor holding the edit_posts capability, and each
actor is rate limited.
"""

import json
import logging
from functools import lru_cache
from typing import Any, Optional

from localscoop.cache import create_cache_store
from localscoop.client import PlacesClient
from localscoop.config import (
    CredentialProvider,
    LocalScoopConfig,
    default_credential_providers,
    get_config,
    resolve_credential,
)
from localscoop.constants import REQUIRED_CAPABILITY
from localscoop.errors import LocalScoopError
from localscoop.options import create_option_store
from localscoop.rate_limit import RateLimiter
from localscoop.resolver import PlaceResolver
from localscoop.sanitizers import sanitize_text, validate_identifier_external

logger = logging.getLogger(__name__)


def _response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def _error(status_code: int, message: str) -> dict[str, Any]:
    return _response(status_code, {"error": message})


def get_actor(event: dict[str, Any]) -> Optional[dict[str, Any]]:
    """
    Extract the authenticated actor from the request context.

    The authorizer is expected to attach a user_id and a list of
    capabilities, either directly or under a "lambda" key (HTTP API
    Lambda authorizers).
    """
    context = event.get("requestContext") or {}
    authorizer = context.get("authorizer") or {}
    if isinstance(authorizer.get("lambda"), dict):
        authorizer = authorizer["lambda"]

    user_id = authorizer.get("user_id")
    if user_id in (None, "", 0, "0"):
        return None

    capabilities = authorizer.get("capabilities") or []
    if isinstance(capabilities, str):
        capabilities = [c.strip() for c in capabilities.split(",")]
    return {"user_id": str(user_id), "capabilities": set(capabilities)}


class PlaceRequestHandler:
    """
    Serves place lookups for the block editor.

    Check order: permission (403), place ID format (400), API key
    configured (400), rate limit (429, or 503 if its store fails), then
    resolution.
    """

    def __init__(
        self,
        resolver: PlaceResolver,
        rate_limiter: RateLimiter,
        credential_providers: list[CredentialProvider],
    ):
        self._resolver = resolver
        self._rate_limiter = rate_limiter
        self._credential_providers = credential_providers

    def handle(self, event: dict[str, Any]) -> dict[str, Any]:
        actor = get_actor(event)
        if actor is None or REQUIRED_CAPABILITY not in actor["capabilities"]:
            return _error(
                403, "You do not have permission to access this resource."
            )

        path_params = event.get("pathParameters") or {}
        place_id = path_params.get("place_id")
        if not validate_identifier_external(place_id):
            return _error(400, "Invalid place ID format")

        api_key = resolve_credential(self._credential_providers)
        if not api_key:
            return _error(400, "API key not configured")

        try:
            allowed = self._rate_limiter.allow(actor["user_id"])
        except LocalScoopError as e:
            logger.error("Rate limit store unavailable: %s", e)
            return _error(503, "Service temporarily unavailable")
        if not allowed:
            return _error(429, "Rate limit exceeded. Please try again later.")

        try:
            record = self._resolver.resolve(sanitize_text(place_id), api_key)
        except LocalScoopError as e:
            return _error(400, str(e))

        return _response(200, record.to_dict())


def create_place_request_handler(
    config: Optional[LocalScoopConfig] = None,
) -> PlaceRequestHandler:
    """
    Wire up a handler from configuration.

    The cache store is shared by the resolver and the rate limiter.
    """
    config = config or get_config()
    store = create_cache_store(config)
    resolver = PlaceResolver(PlacesClient(config=config), store, config=config)
    rate_limiter = RateLimiter(
        store,
        limit=config.rate_limit_requests,
        window_seconds=config.rate_limit_window_seconds,
    )
    providers = default_credential_providers(config, create_option_store(config))
    return PlaceRequestHandler(resolver, rate_limiter, providers)


@lru_cache
def _default_handler() -> PlaceRequestHandler:
    return create_place_request_handler()


def lambda_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    try:
        return _default_handler().handle(event)
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("Unhandled error serving place request")
        return _error(500, "Internal server error")

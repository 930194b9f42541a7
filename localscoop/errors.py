"""
Error types for the localscoop package.

Every failure the resolution pipeline can report derives from
LocalScoopError, so callers at the display boundary can catch one type
and fall back to sample data.
"""


class LocalScoopError(Exception):
    """Base error for all localscoop failures."""


class InvalidInputError(LocalScoopError, ValueError):
    """Raised when a place ID or API key is malformed."""


class InvalidIdentifierError(InvalidInputError):
    """Raised by the Places client when it is handed a bad place ID."""


class UpstreamError(LocalScoopError):
    """Base error for failures talking to the Google Places API."""


class TransportError(UpstreamError):
    """Raised on timeouts and connection failures."""


class UpstreamAPIError(UpstreamError):
    """Raised when the Places API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"Google Places API error: {message}")
        self.status_code = status_code
        self.message = message


class MalformedResponseError(UpstreamError):
    """Raised when a 2xx response body cannot be parsed."""


class RateLimitedError(LocalScoopError):
    """Raised when an actor exceeds the request rate limit."""

    def __init__(self, actor_id: str, limit: int, window_seconds: int):
        super().__init__(
            "Rate limit exceeded. Please try again later."
        )
        self.actor_id = actor_id
        self.limit = limit
        self.window_seconds = window_seconds


class CacheStoreError(LocalScoopError):
    """Raised when the cache backend fails to persist a value."""

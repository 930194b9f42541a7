"""
LocalScoop - local business toolbar data from the Google Places API.

Resolves a Google Place ID into a display-ready record (name, phone,
open/closed status, directions link), caching results for 30 minutes.
Any failure degrades to sample data at the display boundary.

Example:
    ```python
    from localscoop import MemoryCacheStore, PlaceResolver, PlacesClient

    resolver = PlaceResolver(PlacesClient(), MemoryCacheStore())
    record = resolver.resolve_or_sample("ChIJN1t_tDeuEmsRUsoyG83frY4", api_key)
    ```
"""

from localscoop.cache import (
    CacheStore,
    DynamoCacheStore,
    MemoryCacheStore,
    create_cache_store,
    place_cache_key,
    purge_all,
)
from localscoop.client import PlacesClient
from localscoop.config import (
    ConstantProvider,
    EnvironmentProvider,
    LocalScoopConfig,
    OptionProvider,
    default_credential_providers,
    get_config,
    resolve_credential,
)
from localscoop.constants import VERSION
from localscoop.errors import (
    CacheStoreError,
    InvalidIdentifierError,
    InvalidInputError,
    LocalScoopError,
    MalformedResponseError,
    RateLimitedError,
    TransportError,
    UpstreamAPIError,
    UpstreamError,
)
from localscoop.handler import PlaceRequestHandler, create_place_request_handler
from localscoop.hours import Period, WeeklySchedule, is_open_now
from localscoop.options import (
    DynamoOptionStore,
    MemoryOptionStore,
    OptionStore,
    save_api_key,
)
from localscoop.rate_limit import RateLimiter
from localscoop.render import DisplayOptions, render_block, render_toolbar
from localscoop.resolver import PlaceResolver
from localscoop.types import SAMPLE_PLACE, PlaceDetails, PlaceRecord

__version__ = VERSION

__all__ = [
    # Resolution pipeline
    "PlaceResolver",
    "PlacesClient",
    "is_open_now",
    "Period",
    "WeeklySchedule",
    # Cache & settings
    "CacheStore",
    "MemoryCacheStore",
    "DynamoCacheStore",
    "create_cache_store",
    "place_cache_key",
    "purge_all",
    "OptionStore",
    "MemoryOptionStore",
    "DynamoOptionStore",
    "save_api_key",
    # Config & credentials
    "LocalScoopConfig",
    "get_config",
    "ConstantProvider",
    "EnvironmentProvider",
    "OptionProvider",
    "default_credential_providers",
    "resolve_credential",
    # Request handling & rendering
    "PlaceRequestHandler",
    "create_place_request_handler",
    "RateLimiter",
    "DisplayOptions",
    "render_toolbar",
    "render_block",
    # Models
    "PlaceDetails",
    "PlaceRecord",
    "SAMPLE_PLACE",
    # Errors
    "LocalScoopError",
    "InvalidInputError",
    "InvalidIdentifierError",
    "UpstreamError",
    "TransportError",
    "UpstreamAPIError",
    "MalformedResponseError",
    "RateLimitedError",
    "CacheStoreError",
]

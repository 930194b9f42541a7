"""
Configuration for the localscoop package.

Uses pydantic-settings for environment variable management. The Google
Places API key is resolved separately through an ordered list of
credential providers, see resolve_credential().
"""

import logging
import os
import secrets
from collections.abc import Callable, Iterable
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from localscoop.sanitizers import sanitize_text

if TYPE_CHECKING:
    from localscoop.options import OptionStore

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "GOOGLE_PLACES_API_KEY"
API_KEY_OPTION = "localscoop_api_key"


class LocalScoopConfig(BaseSettings):
    """Configuration for the Places client, cache and request handler."""

    model_config = SettingsConfigDict(
        env_prefix="LOCALSCOOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Google Places API
    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Google Places API key set in code or deployment config",
    )

    # Cache Configuration
    cache_backend: Literal["memory", "dynamodb"] = Field(
        default="memory",
        description="Where place records and rate-limit counters live",
    )
    cache_ttl_seconds: int = Field(
        default=30 * 60,
        description="Place record cache TTL in seconds",
        ge=60,
        le=24 * 60 * 60,
    )
    cache_secret: SecretStr = Field(
        default_factory=lambda: SecretStr(secrets.token_hex(32)),
        description=(
            "Salt mixed into cache keys; must be set and shared by every "
            "process when cache_backend is dynamodb"
        ),
    )

    # DynamoDB Configuration
    table_name: str = Field(
        default="localscoop",
        description="DynamoDB table name for the persisted cache",
    )
    aws_region: str = Field(
        default="us-west-2",
        description="AWS region for DynamoDB",
    )
    endpoint_url: str | None = Field(
        default=None,
        description="Override DynamoDB endpoint URL (for local testing)",
    )

    # API Configuration
    request_timeout: int = Field(
        default=15,
        description="HTTP request timeout in seconds",
        ge=1,
        le=120,
    )
    max_retries: int = Field(
        default=0,
        description="Retries on transport failure (0 = single attempt)",
        ge=0,
        le=5,
    )

    # Request handler
    rate_limit_requests: int = Field(
        default=20,
        description="Requests allowed per actor per window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        description="Rolling rate-limit window in seconds",
        ge=1,
    )

    # Open-hours evaluation
    timezone: str = Field(
        default="UTC",
        description="IANA time zone used to evaluate opening hours",
    )

    @model_validator(mode="after")
    def require_shared_cache_secret(self) -> "LocalScoopConfig":
        """A persisted cache needs a salt shared by every process."""
        if (
            self.cache_backend == "dynamodb"
            and "cache_secret" not in self.model_fields_set
        ):
            raise ValueError(
                "cache_secret (LOCALSCOOP_CACHE_SECRET) is required when "
                "cache_backend is dynamodb"
            )
        return self


@lru_cache
def get_config() -> LocalScoopConfig:
    """Get cached configuration instance."""
    return LocalScoopConfig()


CredentialProvider = Callable[[], str | None]


class ConstantProvider:
    """Provides a key set in code or in LocalScoopConfig.api_key."""

    def __init__(self, value: str | SecretStr | None):
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        self._value = value

    def __call__(self) -> str | None:
        return self._value


class EnvironmentProvider:
    """Reads the key from a process environment variable."""

    def __init__(self, name: str = API_KEY_ENV_VAR):
        self._name = name

    def __call__(self) -> str | None:
        return os.environ.get(self._name)


class OptionProvider:
    """Reads the key from the persisted option store."""

    def __init__(self, store: "OptionStore", name: str = API_KEY_OPTION):
        self._store = store
        self._name = name

    def __call__(self) -> str | None:
        return self._store.get(self._name)


def resolve_credential(providers: Iterable[CredentialProvider]) -> str:
    """
    Return the first non-empty API key from an ordered list of providers.

    Args:
        providers: Providers, highest priority first

    Returns:
        Sanitized API key, or "" if no provider has one
    """
    for provider in providers:
        value = provider()
        if not isinstance(value, str):
            continue
        value = sanitize_text(value)
        if value:
            logger.debug(
                "API key resolved from %s", type(provider).__name__
            )
            return value
    return ""


def default_credential_providers(
    config: LocalScoopConfig,
    option_store: "OptionStore | None" = None,
) -> list[CredentialProvider]:
    """
    Build the standard provider chain: constant > environment > option.

    Args:
        config: Configuration holding the constant key
        option_store: Persisted settings store, if any

    Returns:
        Ordered list of providers
    """
    providers: list[CredentialProvider] = [
        ConstantProvider(config.api_key),
        EnvironmentProvider(API_KEY_ENV_VAR),
    ]
    if option_store is not None:
        providers.append(OptionProvider(option_store, API_KEY_OPTION))
    return providers

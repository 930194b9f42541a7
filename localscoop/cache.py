"""
Cache stores for place records and rate-limit counters.

Two backends share the CacheStore interface:
- MemoryCacheStore: process-wide dict with per-entry expiry
- DynamoCacheStore: DynamoDB items with a time_to_live attribute

Both must never hand back an expired value.
"""

import hashlib
import hmac
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from localscoop.config import LocalScoopConfig, get_config
from localscoop.errors import CacheStoreError

logger = logging.getLogger(__name__)

CACHE_PREFIX = "localscoop_"

Clock = Callable[[], float]

DYNAMO_ERRORS = (ClientError, BotoCoreError)


def dynamo_error_message(error: Exception) -> str:
    """Error text for a ClientError or a botocore transport failure."""
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Message", error))
    return str(error)


def place_cache_key(place_id: str, secret: str) -> str:
    """
    Derive the cache key for a place.

    The key is a keyed hash of the place ID, so outsiders who know a
    place ID cannot guess or enumerate cache entries.
    """
    digest = hmac.new(
        secret.encode(), place_id.encode(), hashlib.sha256
    ).hexdigest()
    return f"{CACHE_PREFIX}{digest[:32]}"


class CacheStore(ABC):
    """Time-expiring key-value store. Last write wins."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value for key, or None if absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store value under key, resetting its expiry."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    def purge(self, prefix: str) -> int:
        """Remove every key starting with prefix. Returns the count removed."""


class MemoryCacheStore(CacheStore):
    """
    In-process cache store.

    Safe to share between threads. Expired entries are evicted when a
    read finds them, and every `sweep_interval` writes all expired
    entries are dropped.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        sweep_interval: int = 100,
    ):
        self._clock = clock or time.time
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._sweep_interval = max(1, sweep_interval)
        self._writes = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)
            self._writes += 1
            if self._writes % self._sweep_interval == 0:
                self._sweep_expired()

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def purge(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Swept %s expired cache entries", len(expired))


class DynamoCacheStore(CacheStore):
    """
    Cache store persisted in DynamoDB.

    Item layout:
    - PK: LOCALSCOOP#CACHE
    - SK: KEY#<key>
    - cache_value: JSON-encoded value
    - time_to_live: epoch seconds after which the item is expired

    DynamoDB deletes expired items lazily, so reads check time_to_live
    themselves.
    """

    PARTITION_KEY = "LOCALSCOOP#CACHE"

    def __init__(
        self,
        table_name: Optional[str] = None,
        config: Optional[LocalScoopConfig] = None,
        dynamodb_client: Optional[Any] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the DynamoDB cache store.

        Args:
            table_name: DynamoDB table name (defaults to config)
            config: Configuration settings
            dynamodb_client: Optional pre-configured DynamoDB client
            clock: Returns the current epoch time (defaults to time.time)
        """
        self._config = config or get_config()
        self._table_name = table_name or self._config.table_name
        self._clock = clock or time.time

        if dynamodb_client is not None:
            self._client = dynamodb_client
        else:
            client_kwargs: dict[str, Any] = {
                "region_name": self._config.aws_region,
            }
            if self._config.endpoint_url:
                client_kwargs["endpoint_url"] = self._config.endpoint_url

            self._client = boto3.client("dynamodb", **client_kwargs)

        logger.info(
            "DynamoCacheStore initialized for table: %s", self._table_name
        )

    def _build_key(self, key: str) -> dict[str, dict[str, str]]:
        return {
            "PK": {"S": self.PARTITION_KEY},
            "SK": {"S": f"KEY#{key}"},
        }

    def get(self, key: str) -> Optional[Any]:
        try:
            response = self._client.get_item(
                TableName=self._table_name,
                Key=self._build_key(key),
                ConsistentRead=True,
            )
        except DYNAMO_ERRORS as e:
            logger.error(
                "DynamoDB error during cache lookup: %s",
                dynamo_error_message(e),
            )
            return None

        item = response.get("Item")
        if not item:
            logger.debug("CACHE MISS: %s", key)
            return None

        ttl = item.get("time_to_live", {}).get("N")
        if ttl and int(ttl) <= int(self._clock()):
            logger.debug("CACHE EXPIRED: %s", key)
            return None

        try:
            value = json.loads(item["cache_value"]["S"])
        except (json.JSONDecodeError, KeyError) as e:
            logger.error("Error parsing cached value for %s: %s", key, e)
            return None

        logger.debug("CACHE HIT: %s", key)
        return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now = self._clock()
        item = {
            **self._build_key(key),
            "TYPE": {"S": "LOCALSCOOP_CACHE"},
            "cache_value": {"S": json.dumps(value)},
            "last_updated": {"N": str(int(now))},
            "time_to_live": {"N": str(int(now + ttl_seconds))},
        }
        try:
            self._client.put_item(TableName=self._table_name, Item=item)
        except DYNAMO_ERRORS as e:
            raise CacheStoreError(
                f"DynamoDB error during cache write: "
                f"{dynamo_error_message(e)}"
            ) from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete_item(
                TableName=self._table_name,
                Key=self._build_key(key),
            )
        except DYNAMO_ERRORS as e:
            raise CacheStoreError(
                f"DynamoDB error during cache delete: "
                f"{dynamo_error_message(e)}"
            ) from e

    def purge(self, prefix: str) -> int:
        removed = 0
        query_kwargs: dict[str, Any] = {
            "TableName": self._table_name,
            "KeyConditionExpression": "PK = :pk AND begins_with(SK, :prefix)",
            "ExpressionAttributeValues": {
                ":pk": {"S": self.PARTITION_KEY},
                ":prefix": {"S": f"KEY#{prefix}"},
            },
            "ProjectionExpression": "PK, SK",
        }
        try:
            while True:
                response = self._client.query(**query_kwargs)
                for item in response.get("Items", []):
                    self._client.delete_item(
                        TableName=self._table_name,
                        Key={"PK": item["PK"], "SK": item["SK"]},
                    )
                    removed += 1
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_key
        except DYNAMO_ERRORS as e:
            raise CacheStoreError(
                f"DynamoDB error during cache purge: "
                f"{dynamo_error_message(e)}"
            ) from e

        logger.info("Purged %s cache entries with prefix %s", removed, prefix)
        return removed


def purge_all(store: CacheStore) -> int:
    """Remove every localscoop entry: place records and rate-limit counters."""
    return store.purge(CACHE_PREFIX)


def create_cache_store(
    config: Optional[LocalScoopConfig] = None,
    dynamodb_client: Optional[Any] = None,
) -> CacheStore:
    """
    Build the cache store selected by config.cache_backend.

    Args:
        config: Configuration (defaults to environment config)
        dynamodb_client: Pre-configured DynamoDB client (optional)

    Returns:
        MemoryCacheStore or DynamoCacheStore
    """
    config = config or get_config()
    if config.cache_backend == "dynamodb":
        return DynamoCacheStore(config=config, dynamodb_client=dynamodb_client)
    return MemoryCacheStore()

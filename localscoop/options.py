"""
Persisted settings, the lowest-priority source of the API key.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import boto3

from localscoop.cache import DYNAMO_ERRORS, dynamo_error_message
from localscoop.config import API_KEY_OPTION, LocalScoopConfig, get_config
from localscoop.errors import CacheStoreError
from localscoop.sanitizers import sanitize_text, validate_credential

logger = logging.getLogger(__name__)


class OptionStore(ABC):
    """Named string settings."""

    @abstractmethod
    def get(self, name: str, default: str = "") -> str:
        """Return the stored value, or default."""

    @abstractmethod
    def set(self, name: str, value: str) -> None:
        """Store value under name."""


class MemoryOptionStore(OptionStore):
    """Dict-backed option store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._values = dict(initial or {})

    def get(self, name: str, default: str = "") -> str:
        return self._values.get(name, default)

    def set(self, name: str, value: str) -> None:
        self._values[name] = value


class DynamoOptionStore(OptionStore):
    """
    Option store sharing the localscoop DynamoDB table.

    Item layout:
    - PK: LOCALSCOOP#OPTION
    - SK: NAME#<name>
    - option_value: the setting
    """

    PARTITION_KEY = "LOCALSCOOP#OPTION"

    def __init__(
        self,
        table_name: Optional[str] = None,
        config: Optional[LocalScoopConfig] = None,
        dynamodb_client: Optional[Any] = None,
    ):
        self._config = config or get_config()
        self._table_name = table_name or self._config.table_name

        if dynamodb_client is not None:
            self._client = dynamodb_client
        else:
            client_kwargs: dict[str, Any] = {
                "region_name": self._config.aws_region,
            }
            if self._config.endpoint_url:
                client_kwargs["endpoint_url"] = self._config.endpoint_url
            self._client = boto3.client("dynamodb", **client_kwargs)

    def _build_key(self, name: str) -> dict[str, dict[str, str]]:
        return {
            "PK": {"S": self.PARTITION_KEY},
            "SK": {"S": f"NAME#{name}"},
        }

    def get(self, name: str, default: str = "") -> str:
        try:
            response = self._client.get_item(
                TableName=self._table_name,
                Key=self._build_key(name),
            )
        except DYNAMO_ERRORS as e:
            logger.error(
                "DynamoDB error reading option %s: %s",
                name,
                dynamo_error_message(e),
            )
            return default

        item = response.get("Item")
        if not item:
            return default
        return item.get("option_value", {}).get("S", default)

    def set(self, name: str, value: str) -> None:
        try:
            self._client.put_item(
                TableName=self._table_name,
                Item={
                    **self._build_key(name),
                    "TYPE": {"S": "LOCALSCOOP_OPTION"},
                    "option_value": {"S": value},
                },
            )
        except DYNAMO_ERRORS as e:
            raise CacheStoreError(
                f"DynamoDB error writing option {name}: "
                f"{dynamo_error_message(e)}"
            ) from e


def create_option_store(
    config: Optional[LocalScoopConfig] = None,
    dynamodb_client: Optional[Any] = None,
) -> OptionStore:
    """Build the option store matching config.cache_backend."""
    config = config or get_config()
    if config.cache_backend == "dynamodb":
        return DynamoOptionStore(config=config, dynamodb_client=dynamodb_client)
    return MemoryOptionStore()


def save_api_key(store: OptionStore, raw_value: Any) -> bool:
    """
    Persist an API key entered by an administrator.

    An empty value clears the stored key. A malformed key is rejected
    and the previously stored key is kept.

    Args:
        store: Option store to write to
        raw_value: Key as submitted

    Returns:
        True if the value was stored, False if it was rejected
    """
    api_key = sanitize_text(raw_value)
    if api_key and not validate_credential(api_key):
        logger.warning(
            "Rejected malformed API key (length=%s), keeping previous value",
            len(api_key),
        )
        return False

    store.set(API_KEY_OPTION, api_key)
    logger.info("API key %s", "updated" if api_key else "cleared")
    return True

"""
Per-actor request rate limiting backed by a CacheStore.

Each actor gets a sliding-window log of request timestamps. With the
DynamoDB store the log is shared across processes on a last-write-wins
basis, so concurrent bursts may slightly overshoot the limit.
"""

import logging
import time
from collections.abc import Callable
from typing import Optional

from localscoop.cache import CACHE_PREFIX, CacheStore
from localscoop.errors import RateLimitedError

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = f"{CACHE_PREFIX}rate_limit_"


class RateLimiter:
    """
    Allow at most `limit` requests per actor in any rolling window.

    Rejected requests are not recorded, so a client that keeps retrying
    regains access as soon as its oldest accepted request ages out.
    """

    def __init__(
        self,
        store: CacheStore,
        limit: int = 20,
        window_seconds: int = 60,
        clock: Optional[Callable[[], float]] = None,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")
        self._store = store
        self._limit = limit
        self._window = window_seconds
        self._clock = clock or time.time

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window

    def _key(self, actor_id: str) -> str:
        return f"{RATE_LIMIT_PREFIX}{actor_id}"

    def _recent_hits(self, actor_id: str, now: float) -> list[float]:
        raw = self._store.get(self._key(actor_id))
        if not isinstance(raw, list):
            return []
        cutoff = now - self._window
        return [
            float(ts)
            for ts in raw
            if isinstance(ts, (int, float)) and float(ts) > cutoff
        ]

    def allow(self, actor_id: str) -> bool:
        """
        Record a request for actor_id if it is within the limit.

        Returns:
            True if the request may proceed, False if it is rate limited

        Raises:
            CacheStoreError: If the store cannot record the request
        """
        now = self._clock()
        hits = self._recent_hits(actor_id, now)
        if len(hits) >= self._limit:
            logger.info(
                "Rate limit hit for actor %s (%s requests in %ss)",
                actor_id,
                len(hits),
                self._window,
            )
            return False

        hits.append(now)
        self._store.set(self._key(actor_id), hits, self._window)
        return True

    def check(self, actor_id: str) -> None:
        """
        Like allow(), but raises instead of returning False.

        Raises:
            RateLimitedError: If the actor is over the limit
        """
        if not self.allow(actor_id):
            raise RateLimitedError(actor_id, self._limit, self._window)

    def remaining(self, actor_id: str) -> int:
        """Requests still available to actor_id in the current window."""
        hits = self._recent_hits(actor_id, self._clock())
        return max(0, self._limit - len(hits))

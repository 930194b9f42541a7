"""
Health checks for the place resolution pipeline.

Provides health checks for:
- Places API connectivity (resolves a well-known place)
- Cache read/write
- Overall system health
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from localscoop.cache import CACHE_PREFIX, CacheStore
from localscoop.constants import TEST_PLACE_ID
from localscoop.errors import LocalScoopError
from localscoop.resolver import PlaceResolver
from localscoop.sanitizers import validate_credential

logger = logging.getLogger(__name__)

_PROBE_KEY = f"{CACHE_PREFIX}health_probe"


@dataclass
class HealthCheckResult:
    """Result of a health check."""
    status: str  # "healthy", "degraded", "unhealthy"
    message: str
    details: Dict[str, Any]
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "status": self.status,
            "message": self.message,
            "details": self.details,
            "errors": self.errors,
        }


class LocalScoopHealthChecker:
    """
    Health checker for the Places API key and the cache store.

    Checks:
    - The configured API key can fetch a known place
    - The cache store accepts writes and returns them
    """

    def __init__(
        self,
        resolver: PlaceResolver,
        cache: CacheStore,
        api_key: str,
    ):
        """
        Initialize health checker.

        Args:
            resolver: Place resolver under test
            cache: Cache store under test
            api_key: API key to test
        """
        self.resolver = resolver
        self.cache = cache
        self.api_key = api_key

    def check_places_api(self) -> HealthCheckResult:
        """
        Resolve a well-known place with the configured key.

        Returns:
            healthy if the place resolved, unhealthy otherwise
        """
        if not self.api_key:
            return HealthCheckResult(
                status="unhealthy",
                message="API key not configured",
                details={},
                errors=["No API key configured; sample data will be shown"],
            )
        if not validate_credential(self.api_key):
            return HealthCheckResult(
                status="unhealthy",
                message="API key has an invalid format",
                details={"key_length": len(self.api_key)},
                errors=["Invalid API key format"],
            )

        start = time.monotonic()
        try:
            record = self.resolver.resolve(TEST_PLACE_ID, self.api_key)
        except LocalScoopError as e:
            logger.warning("Places API health check failed: %s", e)
            return HealthCheckResult(
                status="unhealthy",
                message="API test failed",
                details={"place_id": TEST_PLACE_ID},
                errors=[str(e)],
            )

        latency_ms = (time.monotonic() - start) * 1000
        return HealthCheckResult(
            status="healthy",
            message=f"Retrieved data for: {record.name}",
            details={
                "place_id": TEST_PLACE_ID,
                "name": record.name,
                "latency_ms": round(latency_ms, 1),
            },
        )

    def check_cache(self) -> HealthCheckResult:
        """
        Write a probe value and read it back.

        Returns:
            healthy if the round trip works, degraded if the value is
            lost, unhealthy if the store raises
        """
        token = str(time.time())
        try:
            self.cache.set(_PROBE_KEY, token, 60)
            value = self.cache.get(_PROBE_KEY)
            self.cache.delete(_PROBE_KEY)
        except LocalScoopError as e:
            logger.warning("Cache health check failed: %s", e)
            return HealthCheckResult(
                status="unhealthy",
                message="Cache store failed",
                details={"store": type(self.cache).__name__},
                errors=[str(e)],
            )

        if value != token:
            return HealthCheckResult(
                status="degraded",
                message="Cache store did not return the probe value",
                details={"store": type(self.cache).__name__},
                errors=["Cache round trip mismatch"],
            )

        return HealthCheckResult(
            status="healthy",
            message="Cache store working",
            details={"store": type(self.cache).__name__},
        )

    def check_all(self) -> HealthCheckResult:
        """
        Run all health checks.

        Returns:
            Overall health check result
        """
        results = {
            "places_api": self.check_places_api(),
            "cache": self.check_cache(),
        }
        errors = [e for r in results.values() for e in r.errors]
        unhealthy = [n for n, r in results.items() if r.status != "healthy"]

        if not unhealthy:
            status, message = "healthy", "All systems operational"
        elif len(unhealthy) == len(results):
            status, message = "unhealthy", "All checks failed"
        else:
            status = "degraded"
            message = f"Checks failing: {', '.join(unhealthy)}"

        return HealthCheckResult(
            status=status,
            message=message,
            details={name: r.to_dict() for name, r in results.items()},
            errors=errors,
        )

"""Redis-backed cache for external product search results.

Keys are namespaced per API and built from the normalized query, so
"Milk  2%" and "milk 2%" share one entry. Entries expire after the
configured TTL (24h by default).
"""
from typing import List, Optional

import structlog
from pydantic import TypeAdapter, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from pricecompare.models.external import NormalizedProduct

logger = structlog.get_logger(__name__)

SEARCH_CACHE_PREFIX = "search_cache:"
SEARCH_CACHE_TTL_SECONDS = 24 * 60 * 60

_results_adapter = TypeAdapter(List[NormalizedProduct])


def normalize_query(query: str) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    return " ".join(query.lower().split())


class SearchCache:
    """Search-result cache keyed by API name and normalized query.

    Cache failures never propagate: read errors are misses and write
    errors are logged and dropped.
    """

    def __init__(self, redis: Redis, ttl_seconds: int = SEARCH_CACHE_TTL_SECONDS) -> None:
        self._redis = redis
        self._ttl_seconds = ttl_seconds

    @staticmethod
    def cache_key(api_name: str, query: str) -> str:
        return f"{SEARCH_CACHE_PREFIX}{api_name}:{normalize_query(query)}"

    async def get(self, api_name: str, query: str) -> Optional[List[NormalizedProduct]]:
        """Return cached results for a query, or None on a miss."""
        key = self.cache_key(api_name, query)
        try:
            data = await self._redis.get(key)
        except RedisError as e:
            logger.warning(
                "search_cache_read_failed",
                api_name=api_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        if not data:
            return None

        try:
            results = _results_adapter.validate_json(data)
        except ValidationError as e:
            logger.warning(
                "search_cache_entry_invalid",
                api_name=api_name,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        logger.debug("search_cache_hit", api_name=api_name, query=normalize_query(query))
        return results

    async def set(self, api_name: str, query: str, results: List[NormalizedProduct]) -> None:
        """Store results for a query with the configured TTL."""
        key = self.cache_key(api_name, query)
        try:
            await self._redis.setex(
                key,
                self._ttl_seconds,
                _results_adapter.dump_json(results),
            )
        except RedisError as e:
            logger.warning(
                "search_cache_write_failed",
                api_name=api_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        logger.debug(
            "search_cache_stored",
            api_name=api_name,
            query=normalize_query(query),
            result_count=len(results),
        )

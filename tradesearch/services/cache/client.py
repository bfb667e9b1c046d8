"""
Redis cache client for read-through search result caching.

Why it's needed:
    Catalog and directory searches repeat constantly (same category page,
    same "tomatoes near me" query from many buyers). Redis returns a cached
    SearchResult in well under a millisecond instead of a full engine round
    trip, and takes load off the cluster during traffic peaks.

What it does:
    - Generates a deterministic SHA256 cache key from (index, SearchOptions)
      so the same logical search always maps to the same key regardless of
      dict field order
    - Stores serialized SearchResult objects with a short TTL
    - Returns cached results on exact match, None on miss
    - Invalidates every key of one index after a write (SCAN + DEL)
    - Gracefully handles Redis connection failures (log + continue)

How it helps:
    - Keys are namespaced per index: "search:products:<hash>", so a write to
      products never flushes companies
    - TTL bounds staleness even if an invalidation is lost
    - Graceful fallback means cache failures never break a search or a write
"""

import hashlib
import json
import logging
from typing import List, Optional

from redis.asyncio import Redis

from tradesearch.schemas.search import SearchOptions, SearchResult

logger = logging.getLogger(__name__)

DELETE_CHUNK_SIZE = 500


class CacheClient:
    """Exact-match cache for search results backed by Redis."""

    def __init__(self, redis_client: Redis, ttl_seconds: int = 300, key_prefix: str = "search"):
        self._redis = redis_client
        self._ttl = ttl_seconds
        self._prefix = key_prefix

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def make_search_key(self, index: str, options: SearchOptions) -> str:
        """Generate a deterministic cache key for one search.

        Uses SHA256 of the JSON-serialized options with sorted keys, so keys
        are fixed-length, safe for Redis key names and independent of the
        order filters were added in.
        """
        key_str = json.dumps(options.cache_payload(), sort_keys=True)
        key_hash = hashlib.sha256(key_str.encode()).hexdigest()
        return f"{self._prefix}:{index}:{key_hash}"

    def index_pattern(self, index: str) -> str:
        return f"{self._prefix}:{index}:*"

    async def find_cached_result(self, key: str) -> Optional[SearchResult]:
        """Look up a cached search result.

        Returns None on cache miss or Redis error.
        """
        try:
            cached = await self._redis.get(key)
            if cached is None:
                return None
            result = SearchResult.model_validate_json(cached)
            logger.debug(f"Cache HIT for key {key[:40]}...")
            return result
        except Exception as e:
            logger.warning(f"Cache lookup failed (graceful skip): {e}")
            return None

    async def store_result(self, key: str, result: SearchResult) -> bool:
        """Store a search result with TTL. Returns False if the write was skipped."""
        try:
            await self._redis.set(key, result.model_dump_json(), ex=self._ttl)
            logger.debug(f"Cache STORE for key {key[:40]}... (TTL={self._ttl}s)")
            return True
        except Exception as e:
            logger.warning(f"Cache store failed (graceful skip): {e}")
            return False

    async def delete_by_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number deleted.

        Uses SCAN rather than KEYS so a large keyspace never blocks Redis.
        """
        deleted = 0
        batch: List[str] = []
        async for key in self._redis.scan_iter(match=pattern):
            batch.append(key)
            if len(batch) >= DELETE_CHUNK_SIZE:
                deleted += await self._redis.delete(*batch)
                batch = []
        if batch:
            deleted += await self._redis.delete(*batch)
        return deleted

    async def invalidate_index(self, index: str) -> int:
        """Drop all cached searches of one index.

        Returns the number of deleted keys, -1 if Redis failed.
        """
        pattern = self.index_pattern(index)
        try:
            deleted = await self.delete_by_pattern(pattern)
            logger.info(f"Cache INVALIDATE {pattern}: {deleted} keys")
            return deleted
        except Exception as e:
            logger.warning(f"Cache invalidation failed for {pattern} (graceful skip): {e}")
            return -1

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self._redis.aclose()

"""Redis caching service for search results."""

from tradesearch.services.cache.client import CacheClient
from tradesearch.services.cache.factory import make_cache_client

__all__ = ["CacheClient", "make_cache_client"]

"""
Factory functions for creating OpenSearch clients.

Why it's needed:
    OpenSearchClient wraps an AsyncOpenSearch that needs host, credentials,
    timeouts and retry settings. The factory centralizes this construction
    so callers don't need to know how to build the client.

What it does:
    - make_opensearch_client(): Cached singleton via @lru_cache. Used by
      FastAPI lifespan to create one client shared across all requests.
      The cache ensures the same connection pool is reused.
    - make_opensearch_client_fresh(): Creates a new client each time.
      Used by batch scripts (reindex jobs) and tests.

How it helps:
    - Singleton pattern: one connection pool per application process
    - Host override: scripts pass localhost, Docker uses default
    - Testing: factory can be patched to return fakes
"""

from functools import lru_cache
from typing import Optional

from opensearchpy import AsyncOpenSearch

from tradesearch.config import Settings, get_settings
from tradesearch.exceptions import ConfigurationError
from .client import OpenSearchClient


def _build_client(settings: Settings, host: str) -> OpenSearchClient:
    if not host:
        raise ConfigurationError("OPENSEARCH__HOST must not be empty")

    os_settings = settings.opensearch
    http_auth = None
    if os_settings.username and os_settings.password:
        http_auth = (os_settings.username, os_settings.password)

    client = AsyncOpenSearch(
        hosts=[host],
        http_auth=http_auth,
        use_ssl=host.startswith("https"),
        verify_certs=os_settings.verify_certs,
        ssl_show_warn=False,
        http_compress=os_settings.http_compress,
        timeout=os_settings.request_timeout,
        max_retries=os_settings.max_retries,
        retry_on_timeout=False,
    )
    return OpenSearchClient(client=client, host=host)


@lru_cache(maxsize=1)
def make_opensearch_client() -> OpenSearchClient:
    """
    Factory function to create a cached OpenSearch client.

    Takes no arguments so @lru_cache can key it (Settings is unhashable);
    configuration comes from get_settings().

    Returns:
        Cached OpenSearchClient instance
    """
    settings = get_settings()
    return _build_client(settings, settings.opensearch.host)


def make_opensearch_client_fresh(settings: Optional[Settings] = None, host: Optional[str] = None) -> OpenSearchClient:
    """
    Factory function to create a fresh OpenSearch client (not cached).

    Args:
        settings: Optional settings instance
        host: Optional host override

    Returns:
        New OpenSearchClient instance
    """
    if settings is None:
        settings = get_settings()

    return _build_client(settings, host or settings.opensearch.host)

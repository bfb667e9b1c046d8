"""
Factory function for creating the IndexingService with all dependencies.

Why it's needed:
    IndexingService needs the OpenSearch client, the index registry and the
    optional cache client, plus the bulk batch size from settings. Without a
    factory, every call site (lifespan, reindex scripts, tests) would repeat
    the same wiring.

What it does:
    - make_indexing_service(): Creates a fully-wired IndexingService. When
      no OpenSearch client is passed, a fresh (non-cached) one is created
      so batch scripts can point at another host.

How it helps:
    - Single call to get a ready-to-use indexing service
    - opensearch_host override for scripts (localhost vs Docker service name)
    - All configuration flows from Settings
"""

from typing import Optional

from tradesearch.config import Settings, get_settings
from tradesearch.services.cache.client import CacheClient
from tradesearch.services.opensearch.client import OpenSearchClient
from tradesearch.services.opensearch.factory import make_opensearch_client_fresh
from tradesearch.services.opensearch.index_config import default_registry
from tradesearch.services.opensearch.mapping import IndexRegistry
from tradesearch.services.search.diagnostics import SearchDiagnostics

from .service import IndexingService


def make_indexing_service(
    settings: Optional[Settings] = None,
    opensearch_client: Optional[OpenSearchClient] = None,
    cache_client: Optional[CacheClient] = None,
    registry: Optional[IndexRegistry] = None,
    diagnostics: Optional[SearchDiagnostics] = None,
    opensearch_host: Optional[str] = None,
) -> IndexingService:
    """Create a fully-wired IndexingService instance.

    Args:
        settings: Optional Settings instance. If None, loads from
                  environment via get_settings().
        opensearch_client: Shared client (the app passes its singleton).
                           If None, a fresh client is created.
        cache_client: Optional cache to invalidate after writes.
        registry: Optional registry; defaults to the platform mappings.
        diagnostics: Optional diagnostics collector.
        opensearch_host: Host override, only used when creating a fresh client.

    Returns:
        IndexingService ready to write.
    """
    if settings is None:
        settings = get_settings()

    if opensearch_client is None:
        opensearch_client = make_opensearch_client_fresh(settings, host=opensearch_host)

    if registry is None:
        registry = default_registry(settings.opensearch.index_prefix)

    return IndexingService(
        opensearch_client=opensearch_client,
        registry=registry,
        cache_client=cache_client,
        diagnostics=diagnostics,
        batch_size=settings.search.bulk_batch_size,
    )

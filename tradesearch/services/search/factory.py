"""
Factory function for creating the SearchService with all dependencies.

Why it's needed:
    SearchService needs the OpenSearch client, the index registry, the
    optional cache client and the search settings. The lifespan wires them
    once; scripts and tests call the same factory instead of repeating it.

What it does:
    - make_search_service(): Assembles a SearchService from already-built
      collaborators plus settings. The registry defaults to the platform
      registry with the configured index prefix.

How it helps:
    - All configuration flows from Settings
    - Cache is optional: pass None and every search goes to the engine
"""

from typing import Optional

from tradesearch.config import Settings, get_settings
from tradesearch.services.cache.client import CacheClient
from tradesearch.services.opensearch.client import OpenSearchClient
from tradesearch.services.opensearch.index_config import default_registry
from tradesearch.services.opensearch.mapping import IndexRegistry

from .diagnostics import SearchDiagnostics
from .service import SearchService


def make_search_service(
    opensearch_client: OpenSearchClient,
    cache_client: Optional[CacheClient] = None,
    registry: Optional[IndexRegistry] = None,
    settings: Optional[Settings] = None,
    diagnostics: Optional[SearchDiagnostics] = None,
) -> SearchService:
    """Create a SearchService.

    Args:
        opensearch_client: Engine client shared by the process
        cache_client: Optional cache; None disables caching
        registry: Optional registry; defaults to the platform mappings
        settings: Optional Settings instance
        diagnostics: Optional per-process diagnostics collector

    Returns:
        SearchService ready to serve reads
    """
    if settings is None:
        settings = get_settings()

    if registry is None:
        registry = default_registry(settings.opensearch.index_prefix)

    return SearchService(
        opensearch_client=opensearch_client,
        registry=registry,
        cache_client=cache_client,
        settings=settings.search,
        diagnostics=diagnostics,
    )

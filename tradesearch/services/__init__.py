"""Services module - search engine, cache, search facade and indexing pipeline."""

from tradesearch.services.cache import CacheClient, make_cache_client
from tradesearch.services.indexing import IndexingService, make_indexing_service
from tradesearch.services.opensearch import OpenSearchClient, make_opensearch_client
from tradesearch.services.search import SearchDiagnostics, SearchService, make_search_service

__all__ = [
    # OpenSearch
    "OpenSearchClient",
    "make_opensearch_client",
    # Cache
    "CacheClient",
    "make_cache_client",
    # Search
    "SearchService",
    "SearchDiagnostics",
    "make_search_service",
    # Indexing
    "IndexingService",
    "make_indexing_service",
]

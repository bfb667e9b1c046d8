"""
FastAPI dependency injection for TradeSearch services.

Why it's needed:
    Router functions need access to the search facade, the indexing pipeline,
    the engine client and settings, but shouldn't create them directly.
    Dependency injection lets FastAPI provide these objects to any route
    handler that declares them as parameters, keeping routers thin and
    testable.

What it does:
    - get_settings(): Reads Settings from app.state (set during lifespan startup)
    - get_opensearch_client(): Reads OpenSearchClient from app.state
    - get_cache_client(): Reads the optional CacheClient (None when Redis is down)
    - get_search_service() / get_indexing_service(): Read the facades
    - get_diagnostics(): Reads the per-process SearchDiagnostics
    - Annotated type aliases (SettingsDep, SearchServiceDep, etc.) let routers
      declare dependencies concisely: `def search(service: SearchServiceDep)`

How it helps:
    - Routers don't import factories or create clients; they declare what they need
    - Testing: override dependencies with fakes using app.dependency_overrides
    - Type safety: IDE autocomplete works because Annotated preserves the type
"""

from typing import Annotated, Optional

from fastapi import Depends, Request

from tradesearch.config import Settings
from tradesearch.services.cache.client import CacheClient
from tradesearch.services.indexing.service import IndexingService
from tradesearch.services.opensearch.client import OpenSearchClient
from tradesearch.services.search.diagnostics import SearchDiagnostics
from tradesearch.services.search.service import SearchService


def get_settings(request: Request) -> Settings:
    """Get settings from the request state."""
    return request.app.state.settings


def get_opensearch_client(request: Request) -> OpenSearchClient:
    """Get OpenSearch client from the request state."""
    return request.app.state.opensearch_client


def get_cache_client(request: Request) -> Optional[CacheClient]:
    """Get cache client from the request state.

    Returns None if Redis is unavailable (graceful degradation).
    """
    return getattr(request.app.state, "cache_client", None)


def get_search_service(request: Request) -> SearchService:
    """Get the search facade from the request state.

    Set during lifespan startup via make_search_service().
    """
    return request.app.state.search_service


def get_indexing_service(request: Request) -> IndexingService:
    """Get the indexing pipeline from the request state.

    Set during lifespan startup via make_indexing_service().
    """
    return request.app.state.indexing_service


def get_diagnostics(request: Request) -> Optional[SearchDiagnostics]:
    return getattr(request.app.state, "diagnostics", None)


# Dependency annotations
SettingsDep = Annotated[Settings, Depends(get_settings)]
OpenSearchDep = Annotated[OpenSearchClient, Depends(get_opensearch_client)]
CacheDep = Annotated[Optional[CacheClient], Depends(get_cache_client)]
SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]
IndexingServiceDep = Annotated[IndexingService, Depends(get_indexing_service)]
DiagnosticsDep = Annotated[Optional[SearchDiagnostics], Depends(get_diagnostics)]

"""
Cache-coherent search facade over OpenSearch and Redis.

Why it's needed:
    Routers and other platform services should not know how a search is
    compiled, whether it was cached, or how raw engine hits look. The facade
    is the single entry point for reads: single-index search, multi-index
    fan-out, autocomplete suggestions, index stats and health.

What it does:
    - search(): read-through cache. Key = hash(index, options). Hit ->
      cached SearchResult as is. Miss -> compile, execute, map hits, store
      with TTL. Engine errors propagate as SearchUnavailable (no retries).
    - search_all(): one search per index, launched concurrently and joined;
      failing indices are logged and left out of the result map.
    - suggest(): completion suggester; short prefixes and engine errors
      return [] because autocomplete must never break a page.
    - get_index_stats() / is_healthy(): operational views.

How it helps:
    - Cache failures degrade to uncached searches, never to errors
    - Callers see from_cache on the SearchOutcome wrapper; cached blobs are
      stored exactly as the engine produced them
    - Optional SearchDiagnostics records hit/miss/invalidation counts for
      the current process without any module-level state
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from tradesearch.config import SearchSettings
from tradesearch.exceptions import InvalidSearchOptions, SearchUnavailable
from tradesearch.schemas.search import (
    IndexStats,
    SearchHit,
    SearchOptions,
    SearchOutcome,
    SearchResult,
    TotalHits,
)
from tradesearch.services.cache.client import CacheClient
from tradesearch.services.opensearch.client import OpenSearchClient
from tradesearch.services.opensearch.mapping import IndexRegistry
from tradesearch.services.opensearch.query_builder import QueryBuilder
from tradesearch.services.search.diagnostics import SearchDiagnostics

logger = logging.getLogger(__name__)


def map_search_response(response: Dict[str, Any]) -> SearchResult:
    """Convert a raw engine response into a SearchResult, keeping hit order."""
    hits_section = response.get("hits", {}) or {}

    raw_total = hits_section.get("total", 0)
    if isinstance(raw_total, dict):
        total = TotalHits(value=raw_total.get("value", 0), relation=raw_total.get("relation", "eq"))
    else:
        total = TotalHits(value=int(raw_total or 0))

    hits = [
        SearchHit(
            id=str(hit.get("_id", "")),
            score=hit.get("_score"),
            source=hit.get("_source") or {},
            highlight=hit.get("highlight"),
            sort=hit.get("sort"),
        )
        for hit in hits_section.get("hits", [])
    ]

    return SearchResult(
        hits=hits,
        total=total,
        aggregations=response.get("aggregations"),
        took_ms=int(response.get("took", 0)),
    )


class SearchService:
    """Read side of the search abstraction layer."""

    def __init__(
        self,
        opensearch_client: OpenSearchClient,
        registry: IndexRegistry,
        cache_client: Optional[CacheClient] = None,
        settings: Optional[SearchSettings] = None,
        diagnostics: Optional[SearchDiagnostics] = None,
    ):
        self.opensearch_client = opensearch_client
        self.registry = registry
        self.cache_client = cache_client
        self.settings = settings or SearchSettings()
        self.diagnostics = diagnostics
        self.query_builder = QueryBuilder()

    def resolve_index(self, name: str) -> str:
        """Entity type -> physical index name; unregistered names pass through."""
        if name in self.registry:
            return self.registry.index_name(name)
        return name

    def _highlight_fields(self, index: str) -> Optional[List[str]]:
        mapping = self.registry.mapping_for_index(index)
        return list(mapping.highlight_fields) if mapping else None

    async def search(self, index: str, options: SearchOptions) -> SearchOutcome:
        """
        Run one search with read-through caching.

        Args:
            index: Physical index name
            options: Validated search options

        Returns:
            SearchOutcome with from_cache set when served from Redis

        Raises:
            SearchUnavailable: engine unreachable, timed out or query rejected
            InvalidFilterError: a filter could not be compiled
        """
        cache_key: Optional[str] = None
        if self.cache_client is not None:
            cache_key = self.cache_client.make_search_key(index, options)
            cached = await self.cache_client.find_cached_result(cache_key)
            if cached is not None:
                if self.diagnostics:
                    self.diagnostics.record_hit(cache_key)
                return SearchOutcome(index=index, result=cached, from_cache=True)
            if self.diagnostics:
                self.diagnostics.record_miss(cache_key)

        body = self.query_builder.build_search_body(options, self._highlight_fields(index))

        try:
            response = await self.opensearch_client.search(index, body)
        except SearchUnavailable as e:
            if self.diagnostics:
                self.diagnostics.record_engine_error(index)
            logger.error(f"Search failed on index '{index}': {e} | query={body}")
            raise

        result = map_search_response(response)
        logger.info(
            f"Search on '{index}': query='{options.query}', "
            f"{len(result.hits)} hits of {result.total.value} in {result.took_ms}ms"
        )

        if self.cache_client is not None and cache_key is not None:
            stored = await self.cache_client.store_result(cache_key, result)
            if stored and self.diagnostics:
                self.diagnostics.record_write(cache_key)

        return SearchOutcome(index=index, result=result, from_cache=False)

    async def search_entity(self, entity_type: str, options: SearchOptions) -> SearchOutcome:
        """Search by entity type. Raises UnknownEntityType for unregistered types."""
        return await self.search(self.registry.index_name(entity_type), options)

    async def search_all(
        self,
        query: str,
        indices: Optional[Sequence[str]] = None,
        size: Optional[int] = None,
        from_: int = 0,
    ) -> Dict[str, SearchResult]:
        """
        Search several indices concurrently and collect the ones that answered.

        Args:
            query: Free text applied to every index
            indices: Entity types or index names (defaults from settings)
            size: Hits per index, 1..fan_out_max_size
            from_: Offset per index

        Returns:
            Requested name -> SearchResult. Failed indices are absent;
            an empty dict means no index answered.
        """
        names = list(indices or self.settings.fan_out_indices)
        size = self.settings.fan_out_default_size if size is None else size
        if size < 1 or size > self.settings.fan_out_max_size:
            raise InvalidSearchOptions(
                f"Fan-out size must be between 1 and {self.settings.fan_out_max_size}, got {size}"
            )
        if from_ < 0:
            raise InvalidSearchOptions(f"Fan-out offset must be >= 0, got {from_}")

        options = SearchOptions(query=query, size=size, from_=from_, highlight=True)
        outcomes = await asyncio.gather(
            *(self.search(self.resolve_index(name), options) for name in names),
            return_exceptions=True,
        )

        results: Dict[str, SearchResult] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Fan-out search on '{name}' failed, excluding it: {outcome}")
                continue
            results[name] = outcome.result

        logger.info(f"Fan-out search '{query}': {len(results)}/{len(names)} indices answered")
        return results

    async def suggest(
        self,
        index: str,
        prefix: str,
        field: Optional[str] = None,
        size: Optional[int] = None,
    ) -> List[str]:
        """Completion suggestions for a prefix. Never raises for engine errors."""
        prefix = (prefix or "").strip()
        if len(prefix) < self.settings.suggest_min_prefix_length:
            return []

        body = self.query_builder.build_suggest_body(
            prefix,
            field=field or self.settings.suggest_field,
            size=size or self.settings.suggest_size,
        )
        try:
            response = await self.opensearch_client.search(index, body)
        except SearchUnavailable as e:
            logger.warning(f"Suggestions unavailable for '{index}' (prefix='{prefix}'): {e}")
            return []

        suggestions: List[str] = []
        for entry in response.get("suggest", {}).get("text_suggest", []):
            for option in entry.get("options", []):
                text = option.get("text")
                if text and text not in suggestions:
                    suggestions.append(text)
        return suggestions

    async def get_index_stats(self, index: str) -> IndexStats:
        """Document count, store size, query/indexing totals and mapping of one index."""
        count, stats, mapping = await asyncio.gather(
            self.opensearch_client.count(index),
            self.opensearch_client.index_stats(index),
            self.opensearch_client.get_mapping(index),
        )
        totals = stats.get("indices", {}).get(index, {}).get("total", {})
        return IndexStats(
            index=index,
            document_count=count,
            size_in_bytes=totals.get("store", {}).get("size_in_bytes", 0),
            search_count=totals.get("search", {}).get("query_total", 0),
            indexing_count=totals.get("indexing", {}).get("index_total", 0),
            mapping=mapping.get(index, {}).get("mappings", {}),
        )

    async def is_healthy(self) -> bool:
        return await self.opensearch_client.health_check()

    async def ensure_indices_exist(self) -> Dict[str, bool]:
        return await self.registry.ensure_indices_exist(self.opensearch_client)

"""
Search request/response schemas for the search, fan-out and suggest endpoints.

Why it's needed:
    Pydantic models validate incoming search requests (query length, page size
    bounds, filter shapes) and structure outgoing responses. Without these,
    size=99999 or a filter like {"price": "cheap"} would reach OpenSearch and
    either error or silently return the wrong page.

What it does:
    - EntitySearchRequest: POST body for one entity type. Generic tagged
      filters plus optional domain filters (entity_filters) that the router
      hands to the entity builder, and an optional sort preset name. Uses
      alias "from" for JSON compatibility (from_ in Python since 'from' is a
      keyword).
    - SearchResponse: hits in engine order, total with exact/lower-bound
      relation, facets, timing and whether the result came from the cache.
    - FanOutResponse: per-index results of GET /search; indices that failed
      are simply missing from `results`.
    - SuggestResponse: completion strings for a prefix.

How it helps:
    - Input validation: rejects bad requests before hitting OpenSearch
    - API documentation: FastAPI generates Swagger UI from these schemas
    - Type safety: routers return typed objects, not raw dicts
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tradesearch.schemas.search import FilterValue, SearchHit, SearchResult, SortSpec


class EntitySearchRequest(BaseModel):
    """Search request for one entity type."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "query": "organic tomatoes",
                "size": 20,
                "from": 0,
                "highlight": True,
                "fuzzy": True,
                "sort_by": "price_asc",
                "entity_filters": {
                    "price": {"max": 5},
                    "in_stock": True,
                    "location": {"lat": 52.52, "lon": 13.40, "max_distance": "50km"},
                },
            }
        },
    )

    query: str = Field(default="", max_length=500, description="Free-text query; empty matches everything")
    filters: Dict[str, FilterValue] = Field(
        default_factory=dict,
        description="Generic tagged filters keyed by field name",
    )
    entity_filters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Domain filters of the entity type (e.g. price, in_stock, location for products)",
    )
    sort: List[SortSpec] = Field(default_factory=list)
    sort_by: Optional[str] = Field(
        default=None,
        description="Product sort preset: price_asc, price_desc, rating, popularity, newest",
    )
    size: int = Field(default=20, ge=1, le=100, description="Number of results to return")
    from_: int = Field(default=0, ge=0, alias="from", description="Offset for pagination")
    highlight: bool = Field(default=True, description="Return <mark> highlighted fragments")
    fuzzy: bool = Field(default=False, description="Tolerate typos in the query")
    aggregations: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    boost: Dict[str, float] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """Search response model."""

    model_config = ConfigDict(populate_by_name=True)

    entity_type: str
    index: str
    query: str
    total: int
    total_is_exact: bool = True
    hits: List[SearchHit]
    aggregations: Optional[Dict[str, Any]] = None
    size: int = Field(description="Number of results requested")
    from_: int = Field(alias="from", description="Offset used for pagination")
    took_ms: int = 0
    from_cache: bool = False


class FanOutResponse(BaseModel):
    """Results of a search across several indices."""

    query: str
    results: Dict[str, SearchResult] = Field(default_factory=dict)
    requested: List[str] = Field(default_factory=list)

    @property
    def answered(self) -> List[str]:
        return list(self.results)


class SuggestResponse(BaseModel):
    entity_type: str
    prefix: str
    suggestions: List[str] = Field(default_factory=list)

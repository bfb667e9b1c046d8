"""Search router: entity search, fan-out search, suggestions and index stats."""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from fastapi import APIRouter, Query
from pydantic import BaseModel, ValidationError

from tradesearch.dependency import SearchServiceDep
from tradesearch.exceptions import InvalidSearchOptions, SearchException
from tradesearch.middlewares import log_error, log_request, to_http_exception
from tradesearch.schemas.api.search import (
    EntitySearchRequest,
    FanOutResponse,
    SearchResponse,
    SuggestResponse,
)
from tradesearch.schemas.search import IndexStats, SearchOptions
from tradesearch.services.search.builders import (
    PRODUCT_SORT_PRESETS,
    CompanyFilters,
    OrderFilters,
    ProductFilters,
    UserFilters,
    build_company_search,
    build_order_search,
    build_product_search,
    build_user_search,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Search"])

ENTITY_BUILDERS: Dict[str, Tuple[Type[BaseModel], Callable[[SearchOptions, Any], SearchOptions]]] = {
    "products": (ProductFilters, build_product_search),
    "companies": (CompanyFilters, build_company_search),
    "orders": (OrderFilters, build_order_search),
    "users": (UserFilters, build_user_search),
}


def _build_options(entity_type: str, request: EntitySearchRequest) -> SearchOptions:
    """
    Turn the request body into SearchOptions via the entity's builder.

    Raises:
        InvalidSearchOptions: bad domain filters or unknown sort preset
    """
    sort = list(request.sort)
    if request.sort_by:
        if entity_type != "products" or request.sort_by not in PRODUCT_SORT_PRESETS:
            raise InvalidSearchOptions(f"Unknown sort preset '{request.sort_by}' for '{entity_type}'")
        sort = list(PRODUCT_SORT_PRESETS[request.sort_by]) + sort

    try:
        base = SearchOptions(
            query=request.query,
            filters=request.filters,
            sort=sort,
            size=request.size,
            from_=request.from_,
            highlight=request.highlight,
            aggregations=request.aggregations,
            fuzzy=request.fuzzy,
            boost=request.boost,
        )
        builder = ENTITY_BUILDERS.get(entity_type)
        if builder is None:
            if request.entity_filters:
                raise InvalidSearchOptions(f"Entity type '{entity_type}' has no domain filters")
            return base
        filter_model, build = builder
        return build(base, filter_model.model_validate(request.entity_filters))
    except ValidationError as e:
        raise InvalidSearchOptions(f"Invalid search request: {e.errors(include_url=False)}") from e


@router.post("/search/{entity_type}", response_model=SearchResponse)
async def search_entity(
    entity_type: str,
    request: EntitySearchRequest,
    search_service: SearchServiceDep,
) -> SearchResponse:
    """
    Search one entity type with filters, facets and highlighting.

    Use entity_filters for domain filters (price range, distance, order
    status) and filters for raw tagged filters on any mapped field.
    """
    path = f"/search/{entity_type}"
    log_request("POST", path)
    try:
        index = search_service.registry.index_name(entity_type)
        options = _build_options(entity_type, request)
        outcome = await search_service.search(index, options)
    except SearchException as e:
        log_error(str(e), "POST", path)
        raise to_http_exception(e) from e

    result = outcome.result
    return SearchResponse(
        entity_type=entity_type,
        index=outcome.index,
        query=request.query,
        total=result.total.value,
        total_is_exact=result.total.is_exact,
        hits=result.hits,
        aggregations=result.aggregations,
        size=options.size,
        **{"from": options.from_},
        took_ms=result.took_ms,
        from_cache=outcome.from_cache,
    )


@router.get("/search", response_model=FanOutResponse)
async def search_all(
    search_service: SearchServiceDep,
    q: str = Query(..., min_length=2, max_length=500, description="Search query"),
    indices: Optional[List[str]] = Query(default=None, description="Entity types to search"),
    size: int = Query(default=10, ge=1, le=50, description="Results per index"),
    from_: int = Query(default=0, ge=0, alias="from", description="Pagination offset"),
) -> FanOutResponse:
    """
    Search several entity types at once.

    Entity types that fail are left out of `results`; an empty `results`
    means none answered.
    """
    log_request("GET", "/search")
    requested = list(indices or search_service.settings.fan_out_indices)
    try:
        results = await search_service.search_all(q, indices=requested, size=size, from_=from_)
    except SearchException as e:
        log_error(str(e), "GET", "/search")
        raise to_http_exception(e) from e

    return FanOutResponse(query=q, results=results, requested=requested)


@router.get("/suggest/{entity_type}", response_model=SuggestResponse)
async def suggest(
    entity_type: str,
    search_service: SearchServiceDep,
    prefix: str = Query(..., max_length=100, description="Text typed so far"),
    size: int = Query(default=10, ge=1, le=20),
) -> SuggestResponse:
    """Autocomplete suggestions. Prefixes under 2 characters return an empty list."""
    try:
        index = search_service.registry.index_name(entity_type)
    except SearchException as e:
        raise to_http_exception(e) from e

    suggestions = await search_service.suggest(index, prefix, size=size)
    return SuggestResponse(entity_type=entity_type, prefix=prefix, suggestions=suggestions)


@router.get("/search/{entity_type}/stats", response_model=IndexStats)
async def index_stats(entity_type: str, search_service: SearchServiceDep) -> IndexStats:
    """Document count, store size, query/indexing totals and mapping of one index."""
    path = f"/search/{entity_type}/stats"
    log_request("GET", path)
    try:
        index = search_service.registry.index_name(entity_type)
        return await search_service.get_index_stats(index)
    except SearchException as e:
        log_error(str(e), "GET", path)
        raise to_http_exception(e) from e

"""
Query compiler: SearchOptions -> OpenSearch request bodies.

Why it's needed:
    Every search in the platform (catalog, directory, orders, fan-out,
    autocomplete) ends up as an engine request. Building those dicts in one
    place keeps relevance behavior consistent: the same query text and
    filters always produce the same bool query, no matter which router or
    builder asked for it.

What it does:
    - compile_query(): bool query with exactly one scoring clause in `must`
      (match_all or multi_match) and every filter in `filter` (AND,
      non-scoring, cacheable by the engine)
    - build_sort() / build_highlight(): sort clauses and <mark> highlighting
    - build_search_body(): full request body with pagination, aggs, sort
    - build_suggest_body(): completion suggester request

How it helps:
    - Filters dispatch on their `kind` tag, never on the Python type of a
      raw value, so "price: 10" can't be misread as a term vs. range
    - An unrecognized filter raises InvalidFilterError instead of being
      dropped (a dropped filter returns misleadingly broad results)
    - Pure functions: unit tests assert on dicts, no engine needed
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from tradesearch.exceptions import InvalidFilterError
from tradesearch.schemas.search import (
    FieldSort,
    GeoDistanceFilter,
    GeoDistanceSort,
    RangeFilter,
    SearchOptions,
    TermFilter,
    TermsFilter,
)

MATCH_ALL_QUERIES = ("", "*")
DEFAULT_HIGHLIGHT_FIELDS = ("name", "description", "tags")
HIGHLIGHT_PRE_TAG = "<mark>"
HIGHLIGHT_POST_TAG = "</mark>"


class QueryBuilder:
    """Stateless compiler from the semantic query model to engine JSON."""

    @staticmethod
    def compile_query(
        query: str = "",
        filters: Optional[Mapping[str, Any]] = None,
        fuzzy: bool = False,
        boost: Optional[Mapping[str, float]] = None,
    ) -> Dict[str, Any]:
        """
        Build the bool query for a text query plus filters.

        Args:
            query: Free text. Empty, whitespace or "*" matches everything.
            filters: field -> FilterValue model
            fuzzy: Typo tolerance (fuzziness AUTO, first 2 chars exact)
            boost: field -> weight; rendered as "field^weight"

        Returns:
            {"bool": {"must": [...], "filter": [...]}}

        Raises:
            InvalidFilterError: a filter value is not a supported shape
        """
        return {
            "bool": {
                "must": [QueryBuilder._text_clause(query, fuzzy, boost)],
                "filter": [
                    QueryBuilder._filter_clause(field, value)
                    for field, value in (filters or {}).items()
                ],
            }
        }

    @staticmethod
    def _text_clause(query: str, fuzzy: bool, boost: Optional[Mapping[str, float]]) -> Dict[str, Any]:
        text = (query or "").strip()
        if text in MATCH_ALL_QUERIES:
            return {"match_all": {}}

        multi_match: Dict[str, Any] = {"query": text}
        if boost:
            multi_match["fields"] = [f"{field}^{weight:g}" for field, weight in boost.items()]
        if fuzzy:
            multi_match["fuzziness"] = "AUTO"
            multi_match["prefix_length"] = 2
        else:
            multi_match["type"] = "best_fields"
        return {"multi_match": multi_match}

    @staticmethod
    def _filter_clause(field: str, value: Any) -> Dict[str, Any]:
        if isinstance(value, TermFilter):
            return {"term": {field: value.value}}
        if isinstance(value, TermsFilter):
            return {"terms": {field: list(value.values)}}
        if isinstance(value, RangeFilter):
            return {"range": {field: value.bounds()}}
        if isinstance(value, GeoDistanceFilter):
            return {
                "geo_distance": {
                    "distance": value.distance,
                    field: {"lat": value.origin.lat, "lon": value.origin.lon},
                }
            }
        raise InvalidFilterError(field, value)

    @staticmethod
    def build_sort(sort: Sequence[Any]) -> List[Dict[str, Any]]:
        clauses: List[Dict[str, Any]] = []
        for spec in sort:
            if isinstance(spec, GeoDistanceSort):
                clauses.append({
                    "_geo_distance": {
                        spec.field: {"lat": spec.origin.lat, "lon": spec.origin.lon},
                        "order": spec.order,
                        "unit": spec.unit,
                    }
                })
            elif isinstance(spec, FieldSort):
                clauses.append({spec.field: {"order": spec.order}})
            else:
                raise InvalidFilterError("sort", spec)
        return clauses

    @staticmethod
    def build_highlight(fields: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """Highlight config; the name field is returned whole, descriptions as fragments."""
        highlight_fields: Dict[str, Any] = {}
        for field in fields or DEFAULT_HIGHLIGHT_FIELDS:
            if field == "name":
                highlight_fields[field] = {"number_of_fragments": 0}
            elif field == "description":
                highlight_fields[field] = {"fragment_size": 150, "number_of_fragments": 2}
            else:
                highlight_fields[field] = {}
        return {
            "pre_tags": [HIGHLIGHT_PRE_TAG],
            "post_tags": [HIGHLIGHT_POST_TAG],
            "fields": highlight_fields,
        }

    @staticmethod
    def build_search_body(
        options: SearchOptions,
        highlight_fields: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """Full search request body for one index."""
        body: Dict[str, Any] = {
            "query": QueryBuilder.compile_query(
                options.query, options.filters, options.fuzzy, options.boost
            ),
            "from": options.from_,
            "size": options.size,
            "track_total_hits": True,
        }
        if options.sort:
            body["sort"] = QueryBuilder.build_sort(options.sort)
        if options.highlight:
            body["highlight"] = QueryBuilder.build_highlight(highlight_fields)
        if options.aggregations:
            body["aggs"] = options.aggregations
        return body

    @staticmethod
    def build_suggest_body(prefix: str, field: str = "name.suggest", size: int = 10) -> Dict[str, Any]:
        return {
            "_source": False,
            "suggest": {
                "text_suggest": {
                    "prefix": prefix,
                    "completion": {
                        "field": field,
                        "size": size,
                        "skip_duplicates": True,
                    },
                }
            },
        }

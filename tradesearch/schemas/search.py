"""
Semantic query model and result shapes shared by every search entry point.

Why it's needed:
    Controllers, entity builders and the fan-out search all describe "what to
    look for" the same way. A single validated model means the query compiler
    only ever sees well-formed input, and the cache can derive a stable key
    from it.

What it does:
    - Filter values are an explicit tagged union (kind = term | terms | range |
      geo_distance). The compiler dispatches on the tag, never on the runtime
      type of a raw value, so an invalid filter fails at construction time.
    - SortSpec is either a plain field sort or a geo-distance sort.
    - SearchOptions carries query text, filters, sort, pagination, highlight,
      aggregations, fuzziness and per-field boosts, with the engine's page
      size cap enforced by validation.
    - SearchResult mirrors the engine response (hits in engine order, total
      with exact/lower-bound relation, aggregations, took).
    - SearchOutcome is the caller-visible wrapper that says whether the
      result came from the cache. The cached blob itself never carries it.

How it helps:
    - Builders construct typed filters; typos in shapes are caught early
    - model_dump(mode="json") gives a deterministic payload for cache keys
    - Cached results round-trip through model_dump_json / model_validate_json
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ScalarValue = Union[str, int, float, bool]


class GeoPoint(BaseModel):
    """Latitude/longitude pair in the engine's object form."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


# =============================================================
# Filters
# =============================================================

class TermFilter(BaseModel):
    """Exact match on a single value."""

    kind: Literal["term"] = "term"
    value: ScalarValue


class TermsFilter(BaseModel):
    """Match any value in a set."""

    kind: Literal["terms"] = "terms"
    values: List[ScalarValue] = Field(..., min_length=1)


class RangeFilter(BaseModel):
    """Numeric or date range. At least one bound is required."""

    kind: Literal["range"] = "range"
    gte: Optional[Union[float, str]] = None
    gt: Optional[Union[float, str]] = None
    lte: Optional[Union[float, str]] = None
    lt: Optional[Union[float, str]] = None

    @model_validator(mode="after")
    def _require_bound(self) -> "RangeFilter":
        if self.gte is None and self.gt is None and self.lte is None and self.lt is None:
            raise ValueError("range filter needs at least one of gte, gt, lte, lt")
        return self

    def bounds(self) -> Dict[str, Union[float, str]]:
        return {
            key: value
            for key, value in (("gte", self.gte), ("gt", self.gt), ("lte", self.lte), ("lt", self.lt))
            if value is not None
        }


class GeoDistanceFilter(BaseModel):
    """Restrict to documents within `distance` (e.g. "50km") of `origin`."""

    kind: Literal["geo_distance"] = "geo_distance"
    origin: GeoPoint
    distance: str = Field(..., min_length=1)


FilterValue = Annotated[
    Union[TermFilter, TermsFilter, RangeFilter, GeoDistanceFilter],
    Field(discriminator="kind"),
]


# =============================================================
# Sorting
# =============================================================

class FieldSort(BaseModel):
    kind: Literal["field"] = "field"
    field: str
    order: Literal["asc", "desc"] = "asc"


class GeoDistanceSort(BaseModel):
    """Nearest-first (by default) ordering relative to an origin."""

    kind: Literal["geo_distance"] = "geo_distance"
    field: str
    origin: GeoPoint
    order: Literal["asc", "desc"] = "asc"
    unit: str = "km"


SortSpec = Annotated[Union[FieldSort, GeoDistanceSort], Field(discriminator="kind")]


# =============================================================
# Options
# =============================================================

class SearchOptions(BaseModel):
    """Everything the facade needs to run one search against one index."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(default="", max_length=500)
    filters: Dict[str, FilterValue] = Field(default_factory=dict)
    sort: List[SortSpec] = Field(default_factory=list)
    size: int = Field(default=20, ge=1, le=100)
    from_: int = Field(default=0, ge=0, alias="from")
    highlight: bool = False
    aggregations: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    fuzzy: bool = False
    boost: Dict[str, float] = Field(default_factory=dict)

    @field_validator("boost")
    @classmethod
    def _positive_boosts(cls, value: Dict[str, float]) -> Dict[str, float]:
        for field, weight in value.items():
            if weight <= 0:
                raise ValueError(f"boost for '{field}' must be positive")
        return value

    def cache_payload(self) -> Dict[str, Any]:
        """JSON-safe representation used to derive cache keys."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================
# Results
# =============================================================

class SearchHit(BaseModel):
    id: str
    score: Optional[float] = None
    source: Dict[str, Any] = Field(default_factory=dict)
    highlight: Optional[Dict[str, List[str]]] = None
    sort: Optional[List[Any]] = None


class TotalHits(BaseModel):
    value: int = 0
    relation: Literal["eq", "gte"] = "eq"

    @property
    def is_exact(self) -> bool:
        return self.relation == "eq"


class SearchResult(BaseModel):
    """Engine response mapped into the platform's shape.

    Hits keep the engine's relevance/sort order; consumers must not re-sort.
    """

    hits: List[SearchHit] = Field(default_factory=list)
    total: TotalHits = Field(default_factory=TotalHits)
    aggregations: Optional[Dict[str, Any]] = None
    took_ms: int = 0


class SearchOutcome(BaseModel):
    """Result plus where it came from."""

    index: str
    result: SearchResult
    from_cache: bool = False


class IndexStats(BaseModel):
    index: str
    document_count: int = 0
    size_in_bytes: int = 0
    search_count: int = 0
    indexing_count: int = 0
    mapping: Dict[str, Any] = Field(default_factory=dict)

"""Pydantic schemas"""

from .indexing import BulkDocument, BulkItemFailure, BulkWriteOutcome
from .search import (
    FieldSort,
    GeoDistanceFilter,
    GeoDistanceSort,
    GeoPoint,
    IndexStats,
    RangeFilter,
    SearchHit,
    SearchOptions,
    SearchOutcome,
    SearchResult,
    TermFilter,
    TermsFilter,
    TotalHits,
)

__all__ = [
    "BulkDocument",
    "BulkItemFailure",
    "BulkWriteOutcome",
    "FieldSort",
    "GeoDistanceFilter",
    "GeoDistanceSort",
    "GeoPoint",
    "IndexStats",
    "RangeFilter",
    "SearchHit",
    "SearchOptions",
    "SearchOutcome",
    "SearchResult",
    "TermFilter",
    "TermsFilter",
    "TotalHits",
]

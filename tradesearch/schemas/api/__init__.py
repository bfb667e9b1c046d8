"""API schemas module."""

from .health import HealthResponse, ServiceStatus
from .indexing import BulkIndexRequest, BulkIndexResponse, UpdateDocumentRequest, WriteResponse
from .search import EntitySearchRequest, FanOutResponse, SearchResponse, SuggestResponse

__all__ = [
    "HealthResponse",
    "ServiceStatus",
    "EntitySearchRequest",
    "SearchResponse",
    "FanOutResponse",
    "SuggestResponse",
    "BulkIndexRequest",
    "BulkIndexResponse",
    "UpdateDocumentRequest",
    "WriteResponse",
]

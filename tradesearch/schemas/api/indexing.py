"""
Request and response schemas for the indexing API endpoints.

These are used by:
    - PUT    /api/v1/index/{entity_type}/{doc_id}
    - POST   /api/v1/index/{entity_type}/_bulk
    - PATCH  /api/v1/index/{entity_type}/{doc_id}
    - DELETE /api/v1/index/{entity_type}/{doc_id}

Keeping them in a dedicated file (not mixed with search schemas) makes it
clear these endpoints are for platform services that own the data, not
end-user queries.
"""

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

from tradesearch.schemas.indexing import BulkDocument, BulkItemFailure


class BulkIndexRequest(BaseModel):
    """Request body for POST /api/v1/index/{entity_type}/_bulk."""

    documents: List[BulkDocument] = Field(..., max_length=10000)
    refresh: bool = Field(default=False, description="Wait until documents are searchable")


class BulkIndexResponse(BaseModel):
    """Partial-failure report. HTTP 200 even when some items failed."""

    index: str
    attempted: int
    succeeded: int
    failed: List[BulkItemFailure]
    errors: bool = Field(description="True when at least one item failed")


class UpdateDocumentRequest(BaseModel):
    """Request body for PATCH /api/v1/index/{entity_type}/{doc_id}."""

    doc: Dict[str, Any] = Field(..., description="Fields to merge into the stored document")
    upsert: bool = Field(default=False, description="Create the document when missing")
    refresh: bool = True


class WriteResponse(BaseModel):
    index: str
    id: str
    result: Literal["indexed", "updated", "deleted", "not_found"]

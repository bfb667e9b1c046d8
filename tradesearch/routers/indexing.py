"""
Indexing router: document writes for the services that own platform data.

Why it's needed:
    Catalog, directory and order services push their changes into the
    search indices over HTTP. Every write goes through IndexingService so
    cached searches of the affected index are invalidated afterwards.

What it does:
    - PUT    /index/{entity_type}/{doc_id}: create or replace a document
    - POST   /index/{entity_type}/_bulk: bulk write with per-item failures
    - PATCH  /index/{entity_type}/{doc_id}: partial update (optional upsert)
    - DELETE /index/{entity_type}/{doc_id}: idempotent delete

How it helps:
    - Partial bulk failures return 200 with the failed ids so the caller
      retries only those documents
    - Deleting a document twice is not an error
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Query

from tradesearch.dependency import IndexingServiceDep
from tradesearch.exceptions import SearchException
from tradesearch.middlewares import log_error, log_request, to_http_exception
from tradesearch.schemas.api.indexing import (
    BulkIndexRequest,
    BulkIndexResponse,
    UpdateDocumentRequest,
    WriteResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/index", tags=["Indexing"])


@router.put("/{entity_type}/{doc_id}", response_model=WriteResponse)
async def index_document(
    entity_type: str,
    doc_id: str,
    indexing_service: IndexingServiceDep,
    document: Dict[str, Any] = Body(..., description="Full document, replaces any existing one"),
    refresh: bool = Query(default=False, description="Wait until the document is searchable"),
) -> WriteResponse:
    path = f"/index/{entity_type}/{doc_id}"
    log_request("PUT", path)
    try:
        index = indexing_service.registry.index_name(entity_type)
        await indexing_service.index_document(index, doc_id, document, refresh=refresh)
    except SearchException as e:
        log_error(str(e), "PUT", path)
        raise to_http_exception(e) from e
    return WriteResponse(index=index, id=doc_id, result="indexed")


@router.post("/{entity_type}/_bulk", response_model=BulkIndexResponse)
async def bulk_index(
    entity_type: str,
    request: BulkIndexRequest,
    indexing_service: IndexingServiceDep,
) -> BulkIndexResponse:
    """
    Index many documents in one request.

    Returns 200 even when some documents were rejected; check `errors`
    and retry only the ids listed in `failed`.
    """
    path = f"/index/{entity_type}/_bulk"
    log_request("POST", path)
    try:
        index = indexing_service.registry.index_name(entity_type)
        outcome = await indexing_service.bulk_index(index, request.documents, refresh=request.refresh)
    except SearchException as e:
        log_error(str(e), "POST", path)
        raise to_http_exception(e) from e

    return BulkIndexResponse(
        index=index,
        attempted=outcome.attempted,
        succeeded=outcome.succeeded,
        failed=outcome.failed,
        errors=outcome.has_failures,
    )


@router.patch("/{entity_type}/{doc_id}", response_model=WriteResponse)
async def update_document(
    entity_type: str,
    doc_id: str,
    request: UpdateDocumentRequest,
    indexing_service: IndexingServiceDep,
) -> WriteResponse:
    path = f"/index/{entity_type}/{doc_id}"
    log_request("PATCH", path)
    try:
        index = indexing_service.registry.index_name(entity_type)
        await indexing_service.update_document(
            index, doc_id, request.doc, upsert=request.upsert, refresh=request.refresh
        )
    except SearchException as e:
        log_error(str(e), "PATCH", path)
        raise to_http_exception(e) from e
    return WriteResponse(index=index, id=doc_id, result="updated")


@router.delete("/{entity_type}/{doc_id}", response_model=WriteResponse)
async def delete_document(
    entity_type: str,
    doc_id: str,
    indexing_service: IndexingServiceDep,
    refresh: bool = Query(default=True),
) -> WriteResponse:
    path = f"/index/{entity_type}/{doc_id}"
    log_request("DELETE", path)
    try:
        index = indexing_service.registry.index_name(entity_type)
        deleted = await indexing_service.delete_document(index, doc_id, refresh=refresh)
    except SearchException as e:
        log_error(str(e), "DELETE", path)
        raise to_http_exception(e) from e
    return WriteResponse(index=index, id=doc_id, result="deleted" if deleted else "not_found")

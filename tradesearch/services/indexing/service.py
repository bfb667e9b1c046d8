"""
Indexing pipeline: every write to the search indices goes through here.

Why it's needed:
    Writes must do two things in order: change the engine, then drop the
    cached searches of that index. Scattering that pair across routers and
    batch jobs is how stale catalog pages happen. One service owns both.

What it does:
    - index_document(): upsert by id, optional read-after-write refresh
    - bulk_index(): one bulk call, per-item outcome. Failed ids are reported
      in BulkWriteOutcome, successes are never rolled back.
    - update_document(): partial merge; DocumentNotFound without upsert
    - delete_document(): idempotent; a missing id is success (False)
    - reindex(): streams any iterable of BulkDocument in batches
    - apply_change(): platform record -> index or delete, depending on
      whether the record is still active

How it helps:
    - Over-invalidation over stale reads: every successful write clears
      "<prefix>:<index>:*", even when only one document changed
    - Invalidation failures are logged, never raised; TTL bounds staleness
    - Callers retry only BulkWriteOutcome.failed_ids, not the whole batch

Architecture:
    IndexingService composes:
    - OpenSearchClient: engine writes
    - CacheClient (optional): invalidation after writes
    - IndexRegistry: entity type -> index name for apply_change()
    - SearchDiagnostics (optional): counts invalidations

    Created by factory.py.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from tradesearch.schemas.indexing import BulkDocument, BulkItemFailure, BulkWriteOutcome
from tradesearch.services.cache.client import CacheClient
from tradesearch.services.opensearch.client import OpenSearchClient
from tradesearch.services.opensearch.mapping import IndexRegistry
from tradesearch.services.search.diagnostics import SearchDiagnostics

from .transformers import INDEXABLE, TRANSFORMERS

logger = logging.getLogger(__name__)


def _failure_reason(error: Any) -> str:
    if isinstance(error, dict):
        error_type = error.get("type", "error")
        reason = error.get("reason")
        return f"{error_type}: {reason}" if reason else error_type
    return str(error)


def parse_bulk_response(documents: List[BulkDocument], response: Dict[str, Any]) -> BulkWriteOutcome:
    """Turn a bulk response into a per-item outcome.

    Items come back in request order; ids are taken from the response when
    present, otherwise from the matching request document.
    """
    failed: List[BulkItemFailure] = []
    items = response.get("items", [])
    for position, item in enumerate(items):
        result = next(iter(item.values()), {}) if item else {}
        status = int(result.get("status", 0) or 0)
        if "error" in result or status >= 300:
            fallback_id = documents[position].id if position < len(documents) else ""
            failed.append(
                BulkItemFailure(
                    id=str(result.get("_id", fallback_id)),
                    reason=_failure_reason(result.get("error", f"status {status}")),
                    status=status,
                )
            )

    # Documents without a matching response item count as failed.
    for document in documents[len(items):]:
        failed.append(BulkItemFailure(id=document.id, reason="missing from bulk response"))

    return BulkWriteOutcome(
        attempted=len(documents),
        succeeded=len(documents) - len(failed),
        failed=failed,
    )


class IndexingService:
    """Write side of the search abstraction layer.

    Does NOT own its dependencies; they are injected so tests can pass fakes.
    """

    def __init__(
        self,
        opensearch_client: OpenSearchClient,
        registry: IndexRegistry,
        cache_client: Optional[CacheClient] = None,
        diagnostics: Optional[SearchDiagnostics] = None,
        batch_size: int = 100,
    ):
        self.opensearch_client = opensearch_client
        self.registry = registry
        self.cache_client = cache_client
        self.diagnostics = diagnostics
        self.batch_size = batch_size

    async def _invalidate(self, index: str) -> None:
        if self.cache_client is None:
            return
        deleted = await self.cache_client.invalidate_index(index)
        if deleted < 0:
            logger.warning(f"Cache for index '{index}' may be stale until TTL expiry")
            return
        if self.diagnostics:
            self.diagnostics.record_invalidation(index)

    async def index_document(
        self, index: str, doc_id: str, document: Dict[str, Any], refresh: bool = False
    ) -> None:
        """Create or replace one document by id."""
        await self.opensearch_client.index_document(index, doc_id, document, refresh=refresh)
        logger.debug(f"Indexed document {doc_id} into '{index}'")
        await self._invalidate(index)

    async def bulk_index(
        self, index: str, documents: List[BulkDocument], refresh: bool = False
    ) -> BulkWriteOutcome:
        """
        Index many documents with a single bulk request.

        Args:
            index: Target index
            documents: id + document pairs
            refresh: Wait until the batch is visible to searches

        Returns:
            BulkWriteOutcome with per-id failures

        Raises:
            SearchUnavailable: the bulk request as a whole failed
        """
        if not documents:
            return BulkWriteOutcome()

        actions: List[Dict[str, Any]] = []
        for document in documents:
            actions.append({"index": {"_index": index, "_id": document.id}})
            actions.append(document.doc)

        response = await self.opensearch_client.bulk(actions, refresh=refresh, index=index)
        outcome = parse_bulk_response(documents, response)

        if outcome.has_failures:
            logger.warning(
                f"Bulk index into '{index}': {outcome.succeeded}/{outcome.attempted} succeeded, "
                f"failed ids: {outcome.failed_ids}"
            )
        else:
            logger.info(f"Bulk indexed {outcome.succeeded} documents into '{index}'")

        if outcome.succeeded:
            await self._invalidate(index)
        return outcome

    async def update_document(
        self,
        index: str,
        doc_id: str,
        partial: Dict[str, Any],
        upsert: bool = False,
        refresh: bool = True,
    ) -> None:
        """Merge a partial document. Raises DocumentNotFound when missing and upsert is off."""
        await self.opensearch_client.update_document(
            index, doc_id, partial, upsert=upsert, refresh=refresh
        )
        logger.debug(f"Updated document {doc_id} in '{index}' (upsert={upsert})")
        await self._invalidate(index)

    async def delete_document(self, index: str, doc_id: str, refresh: bool = True) -> bool:
        """Delete by id. Returns False if it was already gone."""
        deleted = await self.opensearch_client.delete_document(index, doc_id, refresh=refresh)
        if not deleted:
            logger.debug(f"Document {doc_id} not found in '{index}', nothing to delete")
        await self._invalidate(index)
        return deleted

    async def reindex(
        self,
        index: str,
        documents: Iterable[BulkDocument],
        batch_size: Optional[int] = None,
        refresh: bool = False,
    ) -> BulkWriteOutcome:
        """Bulk-index an iterable in fixed-size batches and merge the outcomes."""
        size = batch_size or self.batch_size
        outcome = BulkWriteOutcome()
        batch: List[BulkDocument] = []
        batches = 0

        for document in documents:
            batch.append(document)
            if len(batch) >= size:
                outcome = outcome.merge(await self.bulk_index(index, batch, refresh=refresh))
                batches += 1
                batch = []
        if batch:
            outcome = outcome.merge(await self.bulk_index(index, batch, refresh=refresh))
            batches += 1

        logger.info(
            f"Reindex of '{index}' finished: {outcome.succeeded}/{outcome.attempted} "
            f"documents in {batches} batches"
        )
        return outcome

    async def apply_change(
        self, entity_type: str, doc_id: str, record: Optional[Dict[str, Any]], refresh: bool = False
    ) -> bool:
        """
        Sync one platform record into its index.

        A None record (deleted upstream) or an inactive record is removed from
        the index; anything else is transformed and indexed.

        Returns:
            True if the record was indexed, False if it was removed.
        """
        index = self.registry.index_name(entity_type)
        if record is None or not INDEXABLE[entity_type](record):
            await self.delete_document(index, doc_id)
            return False

        await self.index_document(index, doc_id, TRANSFORMERS[entity_type](record), refresh=refresh)
        return True

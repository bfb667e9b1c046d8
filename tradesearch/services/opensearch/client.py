"""
OpenSearch engine client for the search abstraction layer.

Why it's needed:
    The facade, the indexing pipeline and the registry need a narrow set of
    engine capabilities: index existence/creation, search, single and bulk
    writes, completion suggestions, count, stats and cluster health.
    Wrapping AsyncOpenSearch keeps every opensearchpy exception in one place
    and converts it into the platform's error taxonomy.

What it does:
    - Holds one long-lived AsyncOpenSearch (its own connection pool and
      request timeout from settings)
    - Converts transport failures, timeouts and query rejections into
      SearchUnavailable (with index, operation and HTTP status)
    - Maps "document not found" on delete to a False return value and on
      update to DocumentNotFound
    - Maps "index already exists" on create to a False return value

How it helps:
    - Callers catch one exception type for "the engine can't answer"
    - No retries here: the client's own max_retries covers transient
      connection errors, anything else is the caller's decision
    - Tests can pass any object with the AsyncOpenSearch surface
"""

import logging
from typing import Any, Dict, List, Optional

from opensearchpy import AsyncOpenSearch, NotFoundError, OpenSearchException, TransportError

from tradesearch.exceptions import DocumentNotFound, SearchUnavailable

logger = logging.getLogger(__name__)

HEALTHY_CLUSTER_STATES = ("green", "yellow")


def _status_code(error: Exception) -> Optional[int]:
    """HTTP status of a TransportError; None for connection-level failures."""
    if isinstance(error, TransportError) and isinstance(error.status_code, int):
        return error.status_code
    return None


def _error_type(error: Exception) -> str:
    """Engine error type, e.g. 'resource_already_exists_exception'."""
    if isinstance(error, TransportError):
        if isinstance(error.error, str):
            return error.error
    return type(error).__name__


def _refresh_param(refresh: bool) -> str:
    return "wait_for" if refresh else "false"


class OpenSearchClient:
    """Thin async wrapper over AsyncOpenSearch with typed failures."""

    def __init__(self, client: AsyncOpenSearch, host: str = ""):
        self.client = client
        self.host = host

    def _unavailable(self, operation: str, error: Exception, index: Optional[str] = None) -> SearchUnavailable:
        status = _status_code(error)
        message = f"OpenSearch {operation} failed"
        if index:
            message += f" on index '{index}'"
        message += f": {_error_type(error)}"
        if status:
            message += f" (HTTP {status})"
        return SearchUnavailable(message, index=index, operation=operation, status_code=status)

    # ─── Cluster ───────────────────────────────────────────────

    async def cluster_health(self) -> Dict[str, Any]:
        try:
            return await self.client.cluster.health()
        except OpenSearchException as e:
            raise self._unavailable("cluster health", e) from e

    async def health_check(self) -> bool:
        """True when the cluster reports green or yellow."""
        try:
            health = await self.cluster_health()
        except SearchUnavailable as e:
            logger.warning(f"OpenSearch health check failed: {e}")
            return False
        return health.get("status") in HEALTHY_CLUSTER_STATES

    # ─── Index management ─────────────────────────────────────

    async def index_exists(self, index: str) -> bool:
        try:
            return bool(await self.client.indices.exists(index=index))
        except OpenSearchException as e:
            raise self._unavailable("index exists", e, index) from e

    async def create_index(self, index: str, body: Dict[str, Any]) -> bool:
        """Create an index. Returns False if it already existed."""
        try:
            await self.client.indices.create(index=index, body=body)
            return True
        except OpenSearchException as e:
            if _error_type(e) == "resource_already_exists_exception":
                return False
            raise self._unavailable("create index", e, index) from e

    async def count(self, index: str) -> int:
        try:
            response = await self.client.count(index=index)
        except OpenSearchException as e:
            raise self._unavailable("count", e, index) from e
        return int(response.get("count", 0))

    async def index_stats(self, index: str) -> Dict[str, Any]:
        try:
            return await self.client.indices.stats(index=index)
        except OpenSearchException as e:
            raise self._unavailable("index stats", e, index) from e

    async def get_mapping(self, index: str) -> Dict[str, Any]:
        try:
            return await self.client.indices.get_mapping(index=index)
        except OpenSearchException as e:
            raise self._unavailable("get mapping", e, index) from e

    # ─── Queries ───────────────────────────────────────────────

    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await self.client.search(index=index, body=body)
        except OpenSearchException as e:
            raise self._unavailable("search", e, index) from e

    # ─── Writes ────────────────────────────────────────────────

    async def index_document(
        self, index: str, doc_id: str, document: Dict[str, Any], refresh: bool = False
    ) -> Dict[str, Any]:
        try:
            return await self.client.index(
                index=index, id=doc_id, body=document, refresh=_refresh_param(refresh)
            )
        except OpenSearchException as e:
            raise self._unavailable("index document", e, index) from e

    async def update_document(
        self,
        index: str,
        doc_id: str,
        partial: Dict[str, Any],
        upsert: bool = False,
        refresh: bool = True,
    ) -> Dict[str, Any]:
        try:
            return await self.client.update(
                index=index,
                id=doc_id,
                body={"doc": partial, "doc_as_upsert": upsert},
                refresh=_refresh_param(refresh),
            )
        except NotFoundError as e:
            raise DocumentNotFound(index, doc_id) from e
        except OpenSearchException as e:
            raise self._unavailable("update document", e, index) from e

    async def delete_document(self, index: str, doc_id: str, refresh: bool = True) -> bool:
        """Delete by id. Returns False when the document did not exist."""
        try:
            await self.client.delete(index=index, id=doc_id, refresh=_refresh_param(refresh))
            return True
        except NotFoundError:
            return False
        except OpenSearchException as e:
            raise self._unavailable("delete document", e, index) from e

    async def bulk(self, actions: List[Dict[str, Any]], refresh: bool = False, index: Optional[str] = None) -> Dict[str, Any]:
        """Send a prepared bulk body (action/source line pairs)."""
        try:
            return await self.client.bulk(body=actions, refresh=_refresh_param(refresh))
        except OpenSearchException as e:
            raise self._unavailable("bulk", e, index) from e

    async def close(self) -> None:
        try:
            await self.client.close()
            logger.info("OpenSearch connection closed")
        except OpenSearchException as e:
            logger.error(f"Failed to close OpenSearch connection: {e}")

"""
TradeSearch Custom Exception Hierarchy.

Why it's needed:
    Without custom exceptions, every failure raises generic Exception, making
    it impossible to distinguish between "the engine is down" (return 503) and
    "the caller sent a malformed filter" (return 422). Custom exceptions let
    the facade, the indexing pipeline and the routers each handle exactly the
    failures they own.

How it helps:
    - Routers catch specific exceptions -> return correct HTTP status codes
    - The lifespan fails fast on MappingCreationFailed before serving requests
    - Callers decide retry/backoff on SearchUnavailable; nothing retries inside
    - Logging includes exception class name -> instant failure identification

Hierarchy:
    Exception
    ├── SearchException             ─ root of the search layer
    │   ├── MappingCreationFailed   ─ index creation rejected → abort startup
    │   ├── SearchUnavailable       ─ engine unreachable / timeout / rejected → HTTP 503
    │   ├── InvalidSearchOptions    ─ caller sent an unusable request → HTTP 422
    │   │   └── InvalidFilterError  ─ filter value of unknown shape → HTTP 422
    │   ├── DocumentNotFound        ─ update without upsert on missing id → HTTP 404
    │   └── UnknownEntityType       ─ entity type not registered → HTTP 404
    └── ConfigurationError          ─ invalid settings → fail at startup

Not exceptions, on purpose:
    - Partial bulk failures are data: BulkWriteOutcome.failed (HTTP 200)
    - Suggestion failures are swallowed: suggest() returns []
    - Deleting a missing document is success: delete_document() returns False
"""

from typing import Any, Dict, Optional


class SearchException(Exception):
    """Base exception for the search abstraction layer."""


# =============================================================
# Index management
# =============================================================
# Raised by IndexRegistry.ensure_indices_exist(). The service cannot
# safely serve search without its indices, so main.py lets this
# propagate out of the lifespan and the process exits.

class MappingCreationFailed(SearchException):
    """Raised when the engine rejects creating an index with its mapping.

    Common causes: malformed mapping, unknown analyzer, cluster read-only.
    """

    def __init__(self, index: str, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Failed to create index '{index}': {reason}")


# =============================================================
# Engine availability
# =============================================================
# Raised by OpenSearchClient for every engine failure: connection
# refused, request timeout, cluster errors and query rejections.

class SearchUnavailable(SearchException):
    """Raised when the search engine cannot answer a request.

    Carries the index and operation so the log line and the HTTP
    response can say what was attempted.
    """

    def __init__(
        self,
        message: str,
        index: Optional[str] = None,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.index = index
        self.operation = operation
        self.status_code = status_code
        super().__init__(message)


# =============================================================
# Caller errors
# =============================================================

class InvalidSearchOptions(SearchException):
    """Raised when search options cannot be executed as given.

    Example: a fan-out page size above the fan-out cap.
    """


class InvalidFilterError(InvalidSearchOptions):
    """Raised when a filter value is not one of the supported shapes.

    A dropped filter would return misleadingly broad results, so the
    compiler refuses instead of ignoring it.
    """

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Unsupported filter value for field '{field}': {value!r}")


class DocumentNotFound(SearchException):
    """Raised when a partial update targets a missing document without upsert."""

    def __init__(self, index: str, doc_id: str):
        self.index = index
        self.doc_id = doc_id
        super().__init__(f"Document '{doc_id}' not found in index '{index}'")


class UnknownEntityType(SearchException):
    """Raised when an entity type has no registered mapping."""

    def __init__(self, entity_type: str, known: Optional[Dict[str, str]] = None):
        self.entity_type = entity_type
        self.known = known or {}
        super().__init__(f"Unknown entity type '{entity_type}'")


# =============================================================
# Configuration Exceptions
# =============================================================

class ConfigurationError(Exception):
    """Raised when application settings are invalid at startup.

    Examples: empty OpenSearch host, page size caps that contradict
    each other. Causes fast failure before serving any requests.
    """

"""
TradeSearch request logging and error translation helpers.

Why it's needed:
    Every route catches the same failure taxonomy (engine down, bad filter,
    unknown entity type, missing document) and must answer with the same
    status code for it. Keeping the mapping here means a new route can't
    accidentally turn SearchUnavailable into a 500 or a bad filter into a 503.

What it does:
    - log_request(): one INFO line per handled request
    - log_error(): one ERROR line per failed request
    - to_http_exception(): SearchException -> HTTPException
        SearchUnavailable         -> 503
        InvalidSearchOptions (+ InvalidFilterError) -> 422
        DocumentNotFound          -> 404
        UnknownEntityType         -> 404
        anything else             -> 500

Usage in routers:
    from tradesearch.middlewares import log_error, log_request, to_http_exception

    @router.post("/search/{entity_type}")
    async def search(entity_type: str, ...):
        log_request("POST", f"/search/{entity_type}")
        try:
            ...
        except SearchException as e:
            log_error(str(e), "POST", f"/search/{entity_type}")
            raise to_http_exception(e) from e
"""

import logging

from fastapi import HTTPException

from tradesearch.exceptions import (
    DocumentNotFound,
    InvalidSearchOptions,
    SearchException,
    SearchUnavailable,
    UnknownEntityType,
)

# Logger inherits the format configured in main.py:
logger = logging.getLogger(__name__)


def log_request(method: str, path: str) -> None:
    """Log an incoming HTTP request at INFO level."""
    logger.info(f"{method} {path}")


def log_error(error: str, method: str, path: str) -> None:
    """Log an error that occurred during request handling."""
    logger.error(f"{method} {path} failed: {error}")


def to_http_exception(error: SearchException) -> HTTPException:
    """Map the search error taxonomy onto HTTP status codes."""
    if isinstance(error, SearchUnavailable):
        return HTTPException(status_code=503, detail="Search service is currently unavailable")
    if isinstance(error, InvalidSearchOptions):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, UnknownEntityType):
        return HTTPException(
            status_code=404,
            detail=f"Unknown entity type '{error.entity_type}'. Known: {sorted(error.known)}",
        )
    if isinstance(error, DocumentNotFound):
        return HTTPException(status_code=404, detail=str(error))
    return HTTPException(status_code=500, detail=f"Search failed: {error}")

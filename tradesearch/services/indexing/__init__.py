"""Indexing pipeline and record transforms."""

from .factory import make_indexing_service
from .service import IndexingService

__all__ = ["IndexingService", "make_indexing_service"]

"""Search facade, entity builders and diagnostics."""

from .diagnostics import SearchDiagnostics
from .factory import make_search_service
from .service import SearchService

__all__ = ["SearchDiagnostics", "SearchService", "make_search_service"]

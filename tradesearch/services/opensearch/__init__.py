"""OpenSearch service module."""

from .client import OpenSearchClient
from .factory import make_opensearch_client, make_opensearch_client_fresh
from .query_builder import QueryBuilder
from .mapping import IndexMapping, IndexRegistry
from .index_config import (
    COMPANIES_INDEX,
    ORDERS_INDEX,
    PRODUCTS_INDEX,
    USERS_INDEX,
    default_registry,
)

__all__ = [
    "OpenSearchClient",
    "make_opensearch_client",
    "make_opensearch_client_fresh",
    "QueryBuilder",
    "IndexMapping",
    "IndexRegistry",
    "PRODUCTS_INDEX",
    "COMPANIES_INDEX",
    "ORDERS_INDEX",
    "USERS_INDEX",
    "default_registry",
]

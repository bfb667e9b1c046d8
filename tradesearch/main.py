"""
TradeSearch: FastAPI application entry point.

Why it's needed:
    This is the single entry point that boots the search API. It initializes
    all services (OpenSearch, Redis, search facade, indexing pipeline),
    registers all API routers, and handles graceful shutdown. Without a
    lifespan manager, clients would be created lazily on first request,
    causing slow first responses and duplicated connection pools.

What it does:
    - lifespan(): Async context manager that runs on startup/shutdown:
      1. Loads settings from environment
      2. Creates the OpenSearch client and the index registry
      3. Creates every missing index (MappingCreationFailed aborts startup)
      4. Creates the Redis cache client (None when Redis is down)
      5. Wires SearchService and IndexingService with one shared
         SearchDiagnostics and stores everything on app.state
      6. On shutdown: closes the OpenSearch and Redis connections
    - Registers routers: ping (/api/v1/health), search and indexing
    - Simple /health endpoint for Docker healthcheck probes

How it helps:
    - Services are initialized once at startup, not per-request
    - app.state makes services available to all routers via dependency injection
    - Graceful shutdown prevents connection leaks
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tradesearch.config import get_settings
from tradesearch.routers import indexing, ping, search
from tradesearch.services.cache.factory import make_cache_client
from tradesearch.services.indexing.factory import make_indexing_service
from tradesearch.services.opensearch.factory import make_opensearch_client
from tradesearch.services.opensearch.index_config import default_registry
from tradesearch.services.search.diagnostics import SearchDiagnostics
from tradesearch.services.search.factory import make_search_service

# Setup logging
logging.basicConfig(
    level=get_settings().app.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Initializes and tears down services on startup/shutdown.
    """
    logger.info("Starting TradeSearch API...")

    # Load settings
    settings = get_settings()
    app.state.settings = settings

    # Initialize OpenSearch
    opensearch_client = make_opensearch_client()
    app.state.opensearch_client = opensearch_client
    registry = default_registry(settings.opensearch.index_prefix)
    app.state.registry = registry

    if await opensearch_client.health_check():
        logger.info("OpenSearch connected successfully")

        # Create missing indices; a rejected mapping propagates and aborts startup
        created = await registry.ensure_indices_exist(opensearch_client)
        for index, was_created in created.items():
            logger.info(f"OpenSearch index {index}: {'created' if was_created else 'already exists'}")
    else:
        logger.warning("OpenSearch connection failed - search features will be unavailable")

    # Initialize Redis cache client
    cache_client = await make_cache_client(settings)
    app.state.cache_client = cache_client
    logger.info(f"Cache client initialized (available={cache_client is not None})")

    # Search facade + indexing pipeline share one diagnostics collector
    diagnostics = SearchDiagnostics()
    app.state.diagnostics = diagnostics
    app.state.search_service = make_search_service(
        opensearch_client,
        cache_client=cache_client,
        registry=registry,
        settings=settings,
        diagnostics=diagnostics,
    )
    app.state.indexing_service = make_indexing_service(
        settings,
        opensearch_client=opensearch_client,
        cache_client=cache_client,
        registry=registry,
        diagnostics=diagnostics,
    )

    logger.info("TradeSearch API ready")
    yield

    # Cleanup
    if cache_client is not None:
        await cache_client.close()
    await opensearch_client.close()
    logger.info("TradeSearch API shutdown completed.")


app = FastAPI(
    title="TradeSearch",
    description="Search abstraction layer for the B2B trading platform",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(ping.router, prefix="/api/v1")
app.include_router(search.router, prefix="/api/v1")
app.include_router(indexing.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "TradeSearch",
        "description": "Search abstraction layer for the B2B trading platform",
        "version": "0.1.0",
    }


@app.get("/health")
async def simple_health():
    """Simple health check for Docker/load balancer"""
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(app, port=8000, host="0.0.0.0")

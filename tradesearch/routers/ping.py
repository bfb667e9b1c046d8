"""
Health check router with per-service status reporting.

Why it's needed:
    Production systems need a detailed health endpoint that checks every
    dependency. Load balancers use the simple /health endpoint, while
    monitoring dashboards use /api/v1/health to see which specific
    dependency is down.

What it does:
    - GET /api/v1/health: Probes OpenSearch (cluster health green/yellow)
      and Redis (ping). Returns structured JSON with per-service status and
      overall status ("ok"/"degraded"). Redis being down only marks the
      cache entry: searches keep working uncached.
    - In debug mode, includes SearchDiagnostics counters (cache hits,
      misses, invalidations, engine errors).

How it helps:
    - Debugging: immediately see if OpenSearch is down vs Redis is down
    - Load balancers: route traffic away from degraded instances
"""

import logging

from fastapi import APIRouter

from tradesearch.dependency import CacheDep, DiagnosticsDep, SearchServiceDep, SettingsDep
from tradesearch.schemas.api.health import HealthResponse, ServiceStatus

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(
    settings: SettingsDep,
    search_service: SearchServiceDep,
    cache_client: CacheDep,
    diagnostics: DiagnosticsDep,
) -> HealthResponse:
    """
    Comprehensive health check endpoint for monitoring and load balancer probes.

    Returns service health status with version and connectivity checks.
    """
    services = {}
    overall_status = "ok"

    # OpenSearch check
    if await search_service.is_healthy():
        indices = ", ".join(search_service.registry.index_names().values())
        services["opensearch"] = ServiceStatus(
            status="healthy",
            message=f"Cluster reachable; indices: {indices}"
        )
    else:
        services["opensearch"] = ServiceStatus(
            status="unhealthy",
            message="Not responding"
        )
        overall_status = "degraded"

    # Redis check
    if cache_client is None:
        services["redis"] = ServiceStatus(
            status="disabled",
            message="Search results are not cached"
        )
    elif await cache_client.ping():
        services["redis"] = ServiceStatus(
            status="healthy",
            message=f"Connected (TTL={cache_client.ttl_seconds}s)"
        )
    else:
        services["redis"] = ServiceStatus(
            status="unhealthy",
            message="Ping failed; searches run uncached"
        )

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        service_name=settings.app.service_name,
        services=services,
        diagnostics=diagnostics.snapshot() if (settings.app.debug and diagnostics) else None,
    )

"""
Health check response schemas for the /api/v1/health endpoint.

Why it's needed:
    Structured health responses let monitoring tools parse the JSON
    programmatically. Without typed schemas, the response shape could drift
    between code changes, breaking dashboards.

What it does:
    - ServiceStatus: Status of one dependency (e.g., opensearch: healthy)
    - HealthResponse: Overall API status + map of dependency statuses.
      Status is "ok" when the search engine is healthy, "degraded" when it
      is not. A missing cache only marks the cache entry "disabled" because
      searches still work uncached.
    - diagnostics: cache hit/miss counters, only filled in debug mode

How it helps:
    - FastAPI auto-generates OpenAPI docs from these models
    - Monitoring tools parse status field to trigger alerts
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ServiceStatus(BaseModel):
    """Individual service health status."""

    status: str = Field(..., description="Service status: healthy, unhealthy, disabled")
    message: Optional[str] = Field(None, description="Additional status information")


class HealthResponse(BaseModel):
    """API health check response."""

    status: str = Field(..., description="Overall API status: ok, degraded")
    version: str = Field(..., description="API version")
    environment: str = Field(..., description="Environment: development, staging, production")
    service_name: str = Field(..., description="Service name")
    services: Dict[str, ServiceStatus] = Field(
        default_factory=dict,
        description="Individual service health statuses"
    )
    diagnostics: Optional[Dict[str, Any]] = Field(
        None,
        description="Search cache diagnostics (debug mode only)"
    )

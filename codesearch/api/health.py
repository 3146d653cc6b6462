"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from codesearch.dependencies import get_health_service, verify_token
from codesearch.models.health import HealthCheckResponse
from codesearch.services.health import HealthCheckService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """
    Simple health check for liveness probe.

    Returns 200 if the server is running. No authentication required.
    """
    return {"status": "ok"}


@router.get("/health/ready", response_model=HealthCheckResponse)
async def health_ready(
    response: Response,
    health_service: HealthCheckService = Depends(get_health_service),
) -> HealthCheckResponse:
    """
    Readiness check with backend verification.

    Returns:
        - 200 if a search backend is available (healthy or degraded)
        - 503 if neither rg nor grep can be found
    """
    health_check = await health_service.check_health()

    if not health_check.is_ready():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return health_check


@router.get("/health/detailed", response_model=HealthCheckResponse)
async def health_detailed(
    health_service: HealthCheckService = Depends(get_health_service),
    _: None = Depends(verify_token),
) -> HealthCheckResponse:
    """Detailed health check (requires authentication)."""
    return await health_service.check_health()

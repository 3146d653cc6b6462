from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from codesearch.config import get_settings
from codesearch.services.container import get_container

if TYPE_CHECKING:
    from codesearch.services.find_files import FindFilesService
    from codesearch.services.health import HealthCheckService
    from codesearch.services.search import SearchService

security = HTTPBearer()


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> None:
    """Verify the bearer token matches the configured auth token."""
    if not secrets.compare_digest(credentials.credentials, get_settings().auth_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )


async def get_search_service() -> SearchService:
    """Get search service via dependency injection."""
    container = get_container()
    return container.search_service


async def get_find_files_service() -> FindFilesService:
    """Get file finder service via dependency injection."""
    container = get_container()
    return container.find_files_service


async def get_health_service() -> HealthCheckService:
    """Get health check service via dependency injection."""
    container = get_container()
    return container.health_service

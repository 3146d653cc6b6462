"""
Service dependency container.

Centralizes service creation and access without global state mutation
in the API modules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codesearch.services.find_files import FindFilesService
    from codesearch.services.health import HealthCheckService
    from codesearch.services.search import SearchService


class ServiceContainer:
    """Container for all application services.

    Services are injected via FastAPI's Depends() mechanism.
    """

    def __init__(
        self,
        search_service: SearchService,
        find_files_service: FindFilesService,
        health_service: HealthCheckService,
    ) -> None:
        self.search_service = search_service
        self.find_files_service = find_files_service
        self.health_service = health_service


_container: ServiceContainer | None = None


def init_container(
    search_service: SearchService,
    find_files_service: FindFilesService,
    health_service: HealthCheckService,
) -> None:
    """Initialize service container (called once in FastAPI lifespan).

    Args:
        search_service: SearchService for content searches
        find_files_service: FindFilesService for metadata file searches
        health_service: HealthCheckService for health checks
    """
    global _container

    _container = ServiceContainer(
        search_service=search_service,
        find_files_service=find_files_service,
        health_service=health_service,
    )


def get_container() -> ServiceContainer:
    """Get service container (use via FastAPI Depends).

    Raises:
        RuntimeError: If container not initialized (lifespan not running)
    """
    if _container is None:
        msg = "Service container not initialized - application lifespan may not be running"
        raise RuntimeError(msg)
    return _container

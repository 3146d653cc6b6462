import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from codesearch.api import files, health, search
from codesearch.config import get_settings
from codesearch.logging_config import configure_json_logging
from codesearch.middleware.request_id import RequestIDMiddleware
from codesearch.services.backends import BackendSelector
from codesearch.services.container import init_container
from codesearch.services.find_files import FindFilesService
from codesearch.services.health import HealthCheckService
from codesearch.services.search import SearchService
from codesearch.utils.path_validation import PathValidator
from codesearch.version import get_version

settings = get_settings()

# Configure structured JSON logging
configure_json_logging(log_level=settings.log_level, use_json=settings.log_json)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup and shutdown."""
    logger.info("Starting codesearch server...")

    # Immutable configuration, injected into every service
    limits = settings.search_limits()
    workspace = settings.workspace()
    path_validator = PathValidator(workspace)

    search_service = SearchService(
        limits=limits,
        path_validator=path_validator,
        backend_selector=BackendSelector(),
    )
    find_files_service = FindFilesService(limits=limits, path_validator=path_validator)
    health_service = HealthCheckService(workspace=workspace, version=get_version())

    init_container(
        search_service=search_service,
        find_files_service=find_files_service,
        health_service=health_service,
    )

    backend_health = await health_service.check_backend_health()
    logger.info(
        "codesearch server ready",
        extra={
            "roots": [str(root) for root in workspace.roots],
            "backend_status": backend_health.status.value,
            "backend_message": backend_health.message,
            "timeout_seconds": limits.timeout_seconds,
        },
    )

    yield

    logger.info("codesearch server shutting down")


app = FastAPI(
    title="codesearch",
    description="Paginated, size-governed local code search API",
    version=get_version(),
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)

app.include_router(health.router)
app.include_router(search.router)
app.include_router(files.router)


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "codesearch.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_config=None,
    )

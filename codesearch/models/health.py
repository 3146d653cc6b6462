"""Readiness report models: workspace roots and search executables."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class BackendAvailability(BaseModel):
    """Whether one external executable (rg, grep or find) is on PATH."""

    command: str
    available: bool
    path: str | None = Field(None, description="Resolved executable path when available")


class ComponentHealth(BaseModel):
    """Health of the workspace allow-list or of the search executables."""

    model_config = ConfigDict(populate_by_name=True)

    name: Literal["workspace", "search_backend"]
    status: HealthStatus
    message: str | None = None
    check_ms: float | None = Field(None, alias="checkMs")

    # workspace component
    roots: list[str] = Field(default_factory=list)
    missing_roots: list[str] = Field(default_factory=list, alias="missingRoots")

    # search_backend component
    backends: list[BackendAvailability] = Field(default_factory=list)
    active_backend: Literal["rg", "grep"] | None = Field(
        None,
        alias="activeBackend",
        description="Engine new queries will use; None when no backend exists",
    )


class HealthCheckResponse(BaseModel):
    """Overall readiness; only a missing search backend makes it unhealthy."""

    model_config = ConfigDict(populate_by_name=True)

    status: HealthStatus
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    version: str
    components: list[ComponentHealth] = Field(default_factory=list)

    def component(self, name: str) -> ComponentHealth | None:
        return next((c for c in self.components if c.name == name), None)

    def is_ready(self) -> bool:
        """A degraded server (grep fallback, missing roots) still answers queries."""
        return self.status is not HealthStatus.UNHEALTHY

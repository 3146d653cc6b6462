"""Health check service."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from codesearch.models.health import (
    BackendAvailability,
    ComponentHealth,
    HealthCheckResponse,
    HealthStatus,
)
from codesearch.utils.exec import check_command_availability

if TYPE_CHECKING:
    from codesearch.models.config import WorkspaceRoots
    from codesearch.services.backends import AvailabilityProbe

logger = logging.getLogger(__name__)

SEARCH_BACKENDS = ("rg", "grep")
PROBED_COMMANDS = (*SEARCH_BACKENDS, "find")


class HealthCheckService:
    """Reports workspace root and backend availability."""

    def __init__(
        self,
        workspace: WorkspaceRoots,
        probe: AvailabilityProbe = check_command_availability,
        version: str = "unknown",
    ) -> None:
        """
        Initialize health check service.

        Args:
            workspace: Allow-listed workspace roots
            probe: Executable availability check (shutil.which based by default)
            version: Application version string
        """
        self.workspace = workspace
        self.probe = probe
        self.version = version

    async def check_workspace_health(self) -> ComponentHealth:
        """
        Check that every configured root exists and is a directory.

        Missing roots degrade the server; it can still search the others.
        """
        start = time.monotonic()
        roots = [str(root) for root in self.workspace.roots]
        missing = [str(root) for root in self.workspace.roots if not root.is_dir()]
        check_ms = (time.monotonic() - start) * 1000

        if missing and len(missing) == len(roots):
            status, message = HealthStatus.UNHEALTHY, "No workspace root exists"
        elif missing:
            status, message = HealthStatus.DEGRADED, f"{len(missing)} workspace root(s) missing"
        else:
            status, message = HealthStatus.HEALTHY, "Workspace roots accessible"

        return ComponentHealth(
            name="workspace",
            status=status,
            message=message,
            check_ms=check_ms,
            roots=roots,
            missing_roots=missing,
        )

    async def check_backend_health(self) -> ComponentHealth:
        """
        Check which search backends are on PATH.

        ripgrep missing is DEGRADED (grep fallback); no backend is UNHEALTHY.
        """
        start = time.monotonic()
        backends = []
        for name in PROBED_COMMANDS:
            result = self.probe(name)
            backends.append(BackendAvailability(command=name, available=result.available, path=result.path))
        found = {b.command for b in backends if b.available}
        check_ms = (time.monotonic() - start) * 1000

        if "rg" in found:
            status, message, active = HealthStatus.HEALTHY, "ripgrep available", "rg"
        elif "grep" in found:
            status, message, active = (
                HealthStatus.DEGRADED,
                "ripgrep not found, using grep fallback",
                "grep",
            )
        else:
            logger.error("No search backend available", extra={"backends": list(SEARCH_BACKENDS)})
            status, message, active = HealthStatus.UNHEALTHY, "Neither rg nor grep is available", None

        return ComponentHealth(
            name="search_backend",
            status=status,
            message=message,
            check_ms=check_ms,
            backends=backends,
            active_backend=active,
        )

    async def check_health(self) -> HealthCheckResponse:
        """
        Perform complete health check.

        Returns:
            HealthCheckResponse with overall status and per-component results
        """
        workspace_health, backend_health = await asyncio.gather(
            self.check_workspace_health(),
            self.check_backend_health(),
        )

        # Only a missing search backend makes the server unready
        if backend_health.status is HealthStatus.UNHEALTHY:
            overall_status = HealthStatus.UNHEALTHY
        elif any(c.status is not HealthStatus.HEALTHY for c in (workspace_health, backend_health)):
            overall_status = HealthStatus.DEGRADED
        else:
            overall_status = HealthStatus.HEALTHY

        return HealthCheckResponse(
            status=overall_status,
            version=self.version,
            components=[workspace_health, backend_health],
        )

"""Backend selection: ripgrep when present, grep otherwise."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from codesearch.commands.base import Backend, CommandSpec
from codesearch.commands.grep import GrepCommandBuilder
from codesearch.commands.ripgrep import RipgrepCommandBuilder
from codesearch.exceptions import BackendUnavailableError
from codesearch.services.hints import INSTALL_RIPGREP_HINT
from codesearch.utils.exec import CommandAvailability, check_command_availability

if TYPE_CHECKING:
    from codesearch.models.search import SearchQuery

logger = logging.getLogger(__name__)

AvailabilityProbe = Callable[[str], CommandAvailability]

# Capabilities grep cannot emulate; requesting them without ripgrep fails.
PRIMARY_ONLY_CAPABILITIES: dict[str, Callable[[SearchQuery], bool]] = {
    "multiline": lambda query: query.multiline,
    "multilineDotall": lambda query: query.multiline_dotall,
}


def missing_capabilities(query: SearchQuery) -> list[str]:
    return [name for name, requested in PRIMARY_ONLY_CAPABILITIES.items() if requested(query)]


class BackendSelector:
    """Probes availability once per query and picks a Backend."""

    def __init__(self, probe: AvailabilityProbe = check_command_availability) -> None:
        self.probe = probe

    def select(self, query: SearchQuery) -> Backend:
        """
        Raises:
            BackendUnavailableError: If no backend exists, or the query needs
                a capability only ripgrep provides
        """
        if self.probe(Backend.RIPGREP.value).available:
            return Backend.RIPGREP

        if not self.probe(Backend.GREP.value).available:
            msg = "Neither ripgrep (rg) nor grep is available on PATH"
            raise BackendUnavailableError(msg, context={"install_hint": INSTALL_RIPGREP_HINT})

        missing = missing_capabilities(query)
        if missing:
            msg = (
                f"{', '.join(missing)} requires ripgrep, which is not installed; "
                "install ripgrep (rg) to use this feature"
            )
            raise BackendUnavailableError(
                msg,
                context={"capabilities": missing, "backend": Backend.GREP.value},
            )

        logger.info("ripgrep not found, using grep fallback")
        return Backend.GREP


def build_search_command(query: SearchQuery, backend: Backend, platform: str | None = None) -> CommandSpec:
    if backend is Backend.RIPGREP:
        return RipgrepCommandBuilder(platform).from_query(query).build()
    return GrepCommandBuilder(platform).from_query(query).build()

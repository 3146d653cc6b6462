"""Metadata file search backed by find(1)."""

from __future__ import annotations

import asyncio
import logging
import os
import stat
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from codesearch.commands.find import FindCommandBuilder
from codesearch.exceptions import (
    BackendUnavailableError,
    CodeSearchError,
    CommandExecutionError,
    CommandTimeoutError,
    ErrorCode,
    PathValidationFailedError,
)
from codesearch.models.find import EntryPagination, FindFilesResult, FindSortKey, FoundFile
from codesearch.models.search import ResultStatus
from codesearch.services import hints
from codesearch.services.safety import check_result_volume
from codesearch.utils.exec import check_command_availability, run_command
from codesearch.utils.pagination import cap_items, paginate

if TYPE_CHECKING:
    from codesearch.models.config import SearchLimits
    from codesearch.models.find import FindFilesQuery
    from codesearch.services.backends import AvailabilityProbe
    from codesearch.services.search import CommandRunner
    from codesearch.utils.path_validation import PathValidator

logger = logging.getLogger(__name__)

DEFAULT_FILES_PER_PAGE = 20
STAT_CONCURRENCY = 24


@dataclass
class _Entry:
    path: str
    kind: str = "file"
    size: int | None = None
    permissions: str | None = None
    mtime: float | None = None


def _entry_kind(mode: int) -> str:
    if stat.S_ISLNK(mode):
        return "symlink"
    if stat.S_ISDIR(mode):
        return "directory"
    if stat.S_ISREG(mode):
        return "file"
    return "other"


def _stat_entry(path: str) -> _Entry:
    try:
        info = os.lstat(path)
    except OSError:
        return _Entry(path=path)
    return _Entry(
        path=path,
        kind=_entry_kind(info.st_mode),
        size=info.st_size,
        permissions=oct(stat.S_IMODE(info.st_mode))[2:].zfill(3),
        mtime=info.st_mtime,
    )


def sort_entries(entries: list[_Entry], sort_by: FindSortKey) -> list[_Entry]:
    """Order entries; largest and newest first, names and paths ascending."""
    ordered = sorted(entries, key=lambda e: e.path)
    if sort_by is FindSortKey.MODIFIED:
        ordered.sort(key=lambda e: (e.mtime is None, -(e.mtime or 0.0)))
    elif sort_by is FindSortKey.SIZE:
        ordered.sort(key=lambda e: (e.size is None, -(e.size or 0)))
    elif sort_by is FindSortKey.NAME:
        ordered.sort(key=lambda e: os.path.basename(e.path))
    return ordered


class FindFilesService:
    """Finds files by name, size, time and permission filters."""

    def __init__(
        self,
        limits: SearchLimits,
        path_validator: PathValidator,
        runner: CommandRunner = run_command,
        probe: AvailabilityProbe = check_command_availability,
        platform: str | None = None,
    ) -> None:
        self.limits = limits
        self.path_validator = path_validator
        self.runner = runner
        self.probe = probe
        self.platform = platform

    async def find(self, query: FindFilesQuery) -> FindFilesResult:
        """Run a find query. Never raises; failures become error results."""
        start_time = time.monotonic()
        warnings: list[str] = []

        try:
            result = await self._find(query, warnings)
        except CodeSearchError as exc:
            result = self._error_result(query, exc, warnings)
        except Exception as exc:
            logger.exception(
                "Unexpected error during file search",
                extra={"path": query.path, "error_type": type(exc).__name__},
            )
            wrapped = CodeSearchError(
                f"File search failed: {exc}",
                context={"error_type": type(exc).__name__},
            )
            result = self._error_result(query, wrapped, warnings)

        logger.info(
            "File search completed",
            extra={
                "path": query.path,
                "status": result.status.value,
                "total_files": result.total_files,
                "error_code": result.error_code,
                "duration_ms": int((time.monotonic() - start_time) * 1000),
            },
        )
        return result

    async def _find(self, query: FindFilesQuery, warnings: list[str]) -> FindFilesResult:
        validation = self.path_validator.validate(query.path)
        if not validation.is_valid or validation.sanitized_path is None:
            raise PathValidationFailedError(
                validation.error or "Invalid path",
                context={"path": query.path},
            )
        query = query.model_copy(update={"path": validation.sanitized_path})

        if not self.probe("find").available:
            msg = "find is not available on PATH"
            raise BackendUnavailableError(msg, context={"command": "find"})

        spec = FindCommandBuilder(self.platform).from_query(query).build()
        warnings.extend(spec.warnings)

        exec_result = await self.runner(
            spec.command,
            spec.args,
            timeout_seconds=self.limits.timeout_seconds,
            max_stdout_bytes=self.limits.max_stdout_bytes,
            max_stderr_bytes=self.limits.max_stderr_bytes,
        )
        if exec_result.exit_code is None:
            msg = "find was terminated before completing"
            raise CommandTimeoutError(msg, context={"timeout_seconds": self.limits.timeout_seconds})

        paths = [p for p in exec_result.stdout.split("\0") if p.strip()]
        if not exec_result.success:
            stderr = exec_result.stderr.strip()
            if not paths:
                msg = f"find exited with code {exec_result.exit_code}: {stderr or 'no error output'}"
                raise CommandExecutionError(
                    msg,
                    context={"exit_code": exec_result.exit_code, "stderr": stderr[:2000]},
                )
            # Unreadable subdirectories are reported on stderr; keep what was found.
            first_error = stderr.splitlines()[0] if stderr else f"exit code {exec_result.exit_code}"
            warnings.append(f"Partial results: find reported errors ({first_error})")

        if not paths:
            return FindFilesResult(
                status=ResultStatus.EMPTY,
                path=query.path,
                files=[],
                total_files=0,
                warnings=warnings,
                hints=list(hints.FIND_EMPTY_HINTS),
            )

        paths, was_capped = cap_items(paths, query.limit)
        per_page = query.files_per_page or DEFAULT_FILES_PER_PAGE
        check_result_volume(
            len(paths),
            has_explicit_pagination=query.has_explicit_pagination,
            threshold=self.limits.max_unpaginated_files,
            suggested_page_size=per_page,
            detailed=query.details,
        )

        if query.details or query.sort_by in (FindSortKey.MODIFIED, FindSortKey.SIZE):
            entries = await self._stat_all(paths)
        else:
            entries = [_Entry(path=p) for p in paths]

        ordered = sort_entries(entries, query.sort_by)
        page = paginate(ordered, query.file_page_number or 1, per_page)

        result_hints = hints.file_page_hints(page, 0)
        if was_capped:
            result_hints.append(f"Results limited to {query.limit} entries; raise limit or narrow the filters")

        return FindFilesResult(
            status=ResultStatus.HAS_RESULTS,
            path=query.path,
            files=[self._found_file(entry, query.details) for entry in page.items],
            total_files=len(ordered),
            pagination=EntryPagination(
                current_page=page.current_page,
                total_pages=page.total_pages,
                entries_per_page=page.per_page,
                total_entries=page.total_items,
                has_more=page.has_more,
            ),
            warnings=warnings,
            hints=result_hints,
        )

    async def _stat_all(self, paths: list[str]) -> list[_Entry]:
        semaphore = asyncio.Semaphore(STAT_CONCURRENCY)

        async def stat_one(path: str) -> _Entry:
            async with semaphore:
                return await asyncio.to_thread(_stat_entry, path)

        return list(await asyncio.gather(*(stat_one(p) for p in paths)))

    @staticmethod
    def _found_file(entry: _Entry, details: bool) -> FoundFile:
        if not details:
            return FoundFile(path=entry.path, type=entry.kind)  # type: ignore[arg-type]
        modified = None
        if entry.mtime is not None:
            modified = datetime.fromtimestamp(entry.mtime, tz=UTC).isoformat()
        return FoundFile(
            path=entry.path,
            type=entry.kind,  # type: ignore[arg-type]
            size=entry.size,
            permissions=entry.permissions,
            modified=modified,
        )

    def _error_result(self, query: FindFilesQuery, exc: CodeSearchError, warnings: list[str]) -> FindFilesResult:
        code: ErrorCode = exc.error_code
        log = logger.warning if code.recoverable else logger.error
        log(
            "File search failed",
            extra={
                "path": query.path,
                "error_code": code.value,
                "error_type": type(exc).__name__,
                "error_message": exc.message,
                "error_context": exc.context,
            },
        )
        return FindFilesResult(
            status=ResultStatus.ERROR,
            path=query.path,
            warnings=warnings,
            hints=hints.error_hints(exc),
            error=exc.message,
            error_code=code.value,
            recoverable=code.recoverable,
        )

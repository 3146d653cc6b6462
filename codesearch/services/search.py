"""Local content search: normalize, pick a backend, run, parse, paginate."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from codesearch.commands.base import Backend
from codesearch.commands.grep import FALLBACK_WARNING
from codesearch.exceptions import (
    CodeSearchError,
    CommandExecutionError,
    CommandTimeoutError,
    ErrorCode,
    PathValidationFailedError,
    QueryValidationError,
)
from codesearch.models.search import (
    FilePagination,
    FileResult,
    MatchPagination,
    OutputMode,
    ResultStatus,
    SearchQuery,
    SearchResult,
    SortKey,
)
from codesearch.parsers.grep import parse_grep_output
from codesearch.parsers.output import parse_count_output, parse_file_list
from codesearch.parsers.ripgrep import parse_ripgrep_json
from codesearch.services import hints
from codesearch.services.backends import BackendSelector, build_search_command
from codesearch.services.directory_stats import estimate_directory_stats
from codesearch.services.query_normalizer import ensure_valid, normalize_query
from codesearch.services.safety import check_result_volume
from codesearch.services.stitcher import stitch_match
from codesearch.utils.exec import run_command
from codesearch.utils.pagination import cap_items, paginate, sort_for_listing
from codesearch.utils.regex import call_site_pattern

if TYPE_CHECKING:
    from codesearch.models.config import SearchLimits
    from codesearch.models.search import CallSiteRequest
    from codesearch.parsers.output import FileMatches, ParsedOutput
    from codesearch.utils.exec import ExecResult
    from codesearch.utils.path_validation import PathValidator

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., Awaitable["ExecResult"]]

NO_MATCH_EXIT_CODE = 1
STAT_CONCURRENCY = 24


class SearchService:
    """Runs content searches; every failure becomes an error result."""

    def __init__(
        self,
        limits: SearchLimits,
        path_validator: PathValidator,
        backend_selector: BackendSelector | None = None,
        runner: CommandRunner = run_command,
        platform: str | None = None,
    ) -> None:
        self.limits = limits
        self.path_validator = path_validator
        self.backend_selector = backend_selector or BackendSelector()
        self.runner = runner
        self.platform = platform

    async def search(self, query: SearchQuery) -> SearchResult:
        """Search ``query.path`` for ``query.pattern``. Never raises."""
        start_time = time.monotonic()
        warnings: list[str] = []
        backend: list[Backend] = []

        try:
            result = await self._search(query, warnings, backend)
        except CodeSearchError as exc:
            result = self._error_result(query, exc, warnings)
        except Exception as exc:
            logger.exception(
                "Unexpected error during search",
                extra={"path": query.path, "error_type": type(exc).__name__},
            )
            wrapped = CodeSearchError(
                f"Search failed: {exc}",
                context={"error_type": type(exc).__name__},
            )
            result = self._error_result(query, wrapped, warnings)

        logger.info(
            "Search completed",
            extra={
                "path": query.path,
                "pattern_length": len(query.pattern),
                "backend": backend[0].value if backend else None,
                "status": result.status.value,
                "total_files": result.total_files,
                "total_matches": result.total_matches,
                "error_code": result.error_code,
                "duration_ms": int((time.monotonic() - start_time) * 1000),
            },
        )
        return result

    async def search_many(self, queries: list[SearchQuery]) -> list[SearchResult]:
        """Run independent queries concurrently; results keep request order.

        Raises:
            QueryValidationError: If the batch exceeds the configured size
        """
        if len(queries) > self.limits.max_batch_size:
            msg = f"Batch of {len(queries)} queries exceeds the limit of {self.limits.max_batch_size}"
            raise QueryValidationError(
                msg,
                context={"batch_size": len(queries), "max_batch_size": self.limits.max_batch_size},
            )
        return list(await asyncio.gather(*(self.search(query) for query in queries)))

    async def find_call_sites(self, request: CallSiteRequest) -> SearchResult:
        """Search for calls of ``request.symbol`` as ``symbol(``."""
        query = SearchQuery(
            pattern=call_site_pattern(request.symbol),
            path=request.path,
            include=request.include,
            exclude_dir=request.exclude_dir,
            files_per_page=request.files_per_page,
            file_page_number=request.file_page_number,
            case_sensitive=True,
        )
        return await self.search(query)

    async def _search(
        self,
        query: SearchQuery,
        warnings: list[str],
        backend_out: list[Backend],
    ) -> SearchResult:
        explicit_pagination = query.has_explicit_pagination
        query = normalize_query(query, self.limits)
        warnings.extend(ensure_valid(query))

        validation = self.path_validator.validate(query.path)
        if not validation.is_valid or validation.sanitized_path is None:
            raise PathValidationFailedError(
                validation.error or "Invalid path",
                context={"path": query.path},
            )
        query = query.model_copy(update={"path": validation.sanitized_path})

        backend = self.backend_selector.select(query)
        backend_out.append(backend)
        if backend is Backend.GREP:
            warnings.insert(0, FALLBACK_WARNING)

        extra_hints: list[str] = []
        directory = await asyncio.to_thread(estimate_directory_stats, query.path, self.limits)
        if directory.is_large:
            warnings.append(hints.large_directory_warning(directory))
            extra_hints.extend(hints.large_directory_hints())

        spec = build_search_command(query, backend, self.platform)
        warnings.extend(spec.warnings)

        exec_result = await self.runner(
            spec.command,
            spec.args,
            timeout_seconds=self.limits.timeout_seconds,
            max_stdout_bytes=self.limits.max_stdout_bytes,
            max_stderr_bytes=self.limits.max_stderr_bytes,
            allow_long_args=(query.pattern,),
        )

        if not self._has_output(exec_result, spec.command, warnings):
            return SearchResult(
                status=ResultStatus.EMPTY,
                path=query.path,
                search_engine=backend.value,
                files=[],
                total_files=0,
                total_matches=0,
                warnings=warnings,
                hints=list(hints.EMPTY_HINTS),
            )

        parsed = self._parse(exec_result.stdout, query, backend)
        if not parsed.files:
            return SearchResult(
                status=ResultStatus.EMPTY,
                path=query.path,
                search_engine=backend.value,
                files=[],
                total_files=0,
                total_matches=0,
                stats=parsed.stats if query.include_stats else None,
                warnings=warnings,
                hints=list(hints.EMPTY_HINTS),
            )

        return await self._build_result(query, backend, parsed, explicit_pagination, warnings, extra_hints)

    def _has_output(self, exec_result: ExecResult, command: str, warnings: list[str]) -> bool:
        """Interpret the backend exit status; raise on real failures."""
        stderr = exec_result.stderr.strip()
        if exec_result.exit_code is None:
            msg = f"{command} was terminated before completing"
            raise CommandTimeoutError(
                msg,
                context={"command": command, "timeout_seconds": self.limits.timeout_seconds},
            )
        if exec_result.exit_code == NO_MATCH_EXIT_CODE:
            return False
        if exec_result.success:
            return bool(exec_result.stdout.strip())
        if "timeout" in stderr.lower() and not exec_result.stdout:
            msg = f"{command} reported a timeout"
            raise CommandTimeoutError(
                msg,
                context={"command": command, "timeout_seconds": self.limits.timeout_seconds},
            )
        if exec_result.stdout.strip():
            # Errors on some files (e.g. permission denied) alongside real matches.
            first_error = stderr.splitlines()[0] if stderr else f"exit code {exec_result.exit_code}"
            warnings.append(f"Partial results: {command} reported errors ({first_error})")
            return True
        msg = f"{command} exited with code {exec_result.exit_code}: {stderr or 'no error output'}"
        raise CommandExecutionError(
            msg,
            context={"command": command, "exit_code": exec_result.exit_code, "stderr": stderr[:2000]},
        )

    def _parse(self, stdout: str, query: SearchQuery, backend: Backend) -> ParsedOutput:
        mode = query.output_mode
        if mode is OutputMode.COUNT:
            return parse_count_output(stdout)
        if mode is not OutputMode.NORMAL:
            return parse_file_list(stdout)
        if backend is Backend.RIPGREP:
            return parse_ripgrep_json(stdout)
        return parse_grep_output(stdout, query)

    async def _modified_times(self, paths: list[str]) -> dict[str, float | None]:
        semaphore = asyncio.Semaphore(STAT_CONCURRENCY)

        async def stat_mtime(path: str) -> float | None:
            async with semaphore:
                try:
                    stat_result = await asyncio.to_thread(os.stat, path)
                except OSError:
                    return None
                return stat_result.st_mtime

        mtimes = await asyncio.gather(*(stat_mtime(path) for path in paths))
        return dict(zip(paths, mtimes, strict=True))

    async def _build_result(
        self,
        query: SearchQuery,
        backend: Backend,
        parsed: ParsedOutput,
        explicit_pagination: bool,
        warnings: list[str],
        extra_hints: list[str],
    ) -> SearchResult:
        entries = list(parsed.files.values())
        wants_mtime = query.show_file_last_modified or query.sort is SortKey.MODIFIED
        mtimes = await self._modified_times([e.path for e in entries]) if wants_mtime else {}

        ordered = sort_for_listing(
            entries,
            path=lambda entry: entry.path,
            modified=(lambda entry: mtimes.get(entry.path)) if wants_mtime else None,
            reverse=query.sort_reverse,
        )

        # Stage A: global cap, then the governor over the capped set
        capped, was_capped = cap_items(ordered, query.max_files)
        check_result_volume(
            len(capped),
            has_explicit_pagination=explicit_pagination,
            threshold=self.limits.max_unpaginated_files,
            suggested_page_size=self.limits.files_per_page,
            detailed=not query.lists_files_only,
        )
        total_matches = sum(entry.match_count for entry in capped)
        if not query.lists_files_only:
            check_result_volume(
                total_matches,
                has_explicit_pagination=explicit_pagination,
                threshold=self.limits.max_unpaginated_matches,
                suggested_page_size=self.limits.files_per_page,
                item_type="matches",
                detailed=True,
                error_code=ErrorCode.PATTERN_TOO_BROAD,
            )

        # Stage B: file pagination
        page = paginate(
            capped,
            query.file_page_number or 1,
            query.files_per_page or self.limits.files_per_page,
        )

        # Stage C: match pagination within each returned file
        files = [self._file_result(entry, query, mtimes) for entry in page.items]
        overflowing = sum(1 for f in files if f.pagination is not None)

        result_hints = hints.file_page_hints(page, total_matches)
        if was_capped:
            result_hints.append(hints.capped_hint(query.max_files or len(capped), len(ordered)))
        if overflowing:
            result_hints.append(hints.match_overflow_hint(overflowing))
        result_hints.extend(hints.refinement_hints(total_matches, len(capped)))
        result_hints.extend(extra_hints)
        if query.output_mode is OutputMode.NORMAL:
            result_hints.append(hints.BYTE_OFFSET_HINT)

        return SearchResult(
            status=ResultStatus.HAS_RESULTS,
            path=query.path,
            search_engine=backend.value,
            files=files,
            total_files=len(capped),
            total_matches=total_matches,
            pagination=FilePagination(
                current_page=page.current_page,
                total_pages=page.total_pages,
                files_per_page=page.per_page,
                total_files=page.total_items,
                has_more=page.has_more,
            ),
            stats=parsed.stats if query.include_stats else None,
            warnings=warnings,
            hints=result_hints,
        )

    def _file_result(
        self,
        entry: FileMatches,
        query: SearchQuery,
        mtimes: dict[str, float | None],
    ) -> FileResult:
        modified = None
        mtime = mtimes.get(entry.path)
        if query.show_file_last_modified and mtime is not None:
            modified = datetime.fromtimestamp(mtime, tz=UTC).isoformat()

        if query.lists_files_only:
            return FileResult(path=entry.path, match_count=entry.match_count, matches=[], modified=modified)

        match_page = paginate(entry.matches, 1, query.matches_per_page or self.limits.matches_per_page)
        matches = [
            stitch_match(
                raw,
                entry,
                before=query.context_before,
                after=query.context_after,
                max_length=query.match_content_length or self.limits.match_content_length,
            )
            for raw in match_page.items
        ]
        pagination = None
        if match_page.has_more:
            pagination = MatchPagination(
                current_page=match_page.current_page,
                total_pages=match_page.total_pages,
                matches_per_page=match_page.per_page,
                total_matches=match_page.total_items,
                has_more=True,
            )
        return FileResult(
            path=entry.path,
            match_count=entry.match_count,
            matches=matches,
            pagination=pagination,
            modified=modified,
        )

    def _error_result(self, query: SearchQuery, exc: CodeSearchError, warnings: list[str]) -> SearchResult:
        code: ErrorCode = exc.error_code
        log = logger.warning if code.recoverable else logger.error
        log(
            "Search failed",
            extra={
                "path": query.path,
                "error_code": code.value,
                "error_type": type(exc).__name__,
                "error_message": exc.message,
                "error_context": exc.context,
            },
        )
        return SearchResult(
            status=ResultStatus.ERROR,
            path=query.path,
            warnings=warnings,
            hints=hints.error_hints(exc),
            error=exc.message,
            error_code=code.value,
            recoverable=code.recoverable,
        )

"""Actionable hint text attached to search results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codesearch.exceptions import ErrorCode

if TYPE_CHECKING:
    from codesearch.exceptions import CodeSearchError
    from codesearch.models.search import DirectoryStats
    from codesearch.utils.pagination import Page

REFINE_MATCH_THRESHOLD = 100
REFINE_FILE_THRESHOLD = 20

INSTALL_RIPGREP_HINT = (
    "Install ripgrep for full functionality: https://github.com/BurntSushi/ripgrep#installation"
)
BYTE_OFFSET_HINT = (
    "WARNING: location offsets and lengths are BYTE offsets into the UTF-8 file, "
    "not character offsets; they diverge on multi-byte characters"
)

EMPTY_HINTS = [
    "No matches found - try a broader pattern or smartCase/caseInsensitive",
    "Check include/exclude globs, type and excludeDir filters",
    "Ignored and hidden files are skipped by default - try noIgnore=true or hidden=true",
]

FIND_EMPTY_HINTS = [
    "No files found - relax name, size or time filters",
    "Check excludeDir; node_modules, dist, .git, coverage, build and .next are skipped by default",
]

NARROWING_HINTS = [
    "Add type or include filters to restrict file types",
    "Search a more specific subdirectory instead of the repository root",
    "Avoid searching node_modules wholesale; target a specific package path",
]


def file_page_hints(page: Page, total_matches: int, item_label: str = "files") -> list[str]:
    hints = [
        f"File page {page.current_page}/{page.total_pages} "
        f"(showing {len(page.items)} of {page.total_items} {item_label})",
    ]
    if total_matches:
        hints.append(f"Total: {total_matches} matches across {page.total_items} files")
    if page.has_more:
        hints.append(f"Next: filePageNumber={page.current_page + 1}")
    elif page.total_pages > 1:
        hints.append("Final page")
    return hints


def capped_hint(max_files: int, found: int) -> str:
    return f"Results limited to {max_files} files (found {found} matching)"


def match_overflow_hint(file_count: int) -> str:
    return (
        f"Note: {file_count} file(s) have more matches - use matchesPerPage to see more "
        "or narrow the search to that file"
    )


def refinement_hints(total_matches: int, total_files: int) -> list[str]:
    if total_matches <= REFINE_MATCH_THRESHOLD and total_files <= REFINE_FILE_THRESHOLD:
        return []
    return [
        "Large result set - refine with a more specific pattern, wholeWord or type filters",
        "Use filesOnly=true to list files first, then search them individually",
    ]


def large_directory_warning(stats: DirectoryStats) -> str:
    return (
        f"Large directory detected (~{stats.estimated_size_mb:.0f}MB, "
        f"~{stats.estimated_file_count} files). Consider chunking the search by subdirectory"
    )


def large_directory_hints() -> list[str]:
    return [
        "Start with filesOnly=true or mode=discovery to find candidate files",
        "Add type/include filters or maxFiles to bound the result",
    ]


def error_hints(exc: CodeSearchError) -> list[str]:
    """Remediation hints for a failed query, keyed by error code."""
    code = exc.error_code
    context = exc.context

    if code is ErrorCode.OUTPUT_TOO_LARGE:
        limit_mb = int(context.get("limit_bytes", 0)) // (1024 * 1024)
        return [
            f"Output exceeded {limit_mb or 'the'}MB {context.get('stream', 'output')} limit - "
            "your pattern matched too broadly",
            "Is the pattern too generic? Add wholeWord, a longer literal or anchors",
            "Searching everything? Add type filters or include globs",
            "For node_modules: target specific packages instead of the whole directory",
            "Need file names only? Use filesOnly=true",
            "Strategy: start with filesOnly=true, then search the files you need",
        ]
    if code is ErrorCode.COMMAND_TIMEOUT:
        seconds = context.get("timeout_seconds")
        return [f"Search timed out after {seconds} seconds.", *NARROWING_HINTS]
    if code is ErrorCode.PATTERN_TOO_BROAD:
        return [
            f"Pattern matched {context.get('item_count')} lines - use a more specific pattern, "
            "wholeWord=true or fixedString=true",
            f"Or page explicitly: filesPerPage={context.get('suggested_page_size')} and filePageNumber=1",
            *NARROWING_HINTS,
        ]
    if code is ErrorCode.PAGINATION_REQUIRED:
        count = context.get("item_count")
        suggested = context.get("suggested_page_size")
        return [
            f"RECOMMENDED: pass filesPerPage={suggested} and filePageNumber=1, or maxFiles",
            f"Full result would be about {count} {context.get('item_type', 'items')} "
            f"(~{context.get('estimated_tokens')} tokens)",
            *NARROWING_HINTS,
        ]
    if code is ErrorCode.COMMAND_NOT_AVAILABLE:
        return [INSTALL_RIPGREP_HINT]
    if code in (ErrorCode.VALIDATION_FAILED, ErrorCode.PATH_VALIDATION_FAILED):
        return ["Fix the query parameters and retry"]
    if code is ErrorCode.COMMAND_EXECUTION_FAILED:
        return [
            "Check the pattern syntax; use fixedString=true for literal text",
            "Verify the path exists and is readable",
        ]
    return ["Unexpected failure - retry, or report it with the request id"]

"""Models for the local code search API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MAX_PATTERN_LENGTH = 2000


class WorkflowMode(str, Enum):
    """Named presets applied to fields the caller left unset."""

    DISCOVERY = "discovery"
    PAGINATED = "paginated"
    DETAILED = "detailed"
    PRECISE = "precise"


class OutputMode(str, Enum):
    NORMAL = "normal"
    FILES_ONLY = "files-only"
    FILES_WITHOUT_MATCH = "files-without-match"
    COUNT = "count"


class SortKey(str, Enum):
    PATH = "path"
    MODIFIED = "modified"


class ResultStatus(str, Enum):
    HAS_RESULTS = "hasResults"
    EMPTY = "empty"
    ERROR = "error"


BinaryFiles = Literal["text", "without-match", "binary"]


class SearchQuery(BaseModel):
    """Request body for a content search."""

    model_config = ConfigDict(populate_by_name=True)

    pattern: str = Field(..., min_length=1, max_length=MAX_PATTERN_LENGTH, description="Search pattern")
    path: str = Field(..., min_length=1, description="Directory or file to search")
    mode: WorkflowMode | None = Field(None, description="Workflow preset")

    # Pattern interpretation
    fixed_string: bool = Field(False, alias="fixedString", description="Treat pattern as a literal")
    perl_regex: bool = Field(False, alias="perlRegex", description="Use Perl-compatible regex")
    case_insensitive: bool | None = Field(None, alias="caseInsensitive")
    case_sensitive: bool | None = Field(None, alias="caseSensitive")
    smart_case: bool | None = Field(
        None,
        alias="smartCase",
        description="Case-insensitive unless the pattern has an uppercase letter",
    )
    whole_word: bool = Field(False, alias="wholeWord")
    invert_match: bool = Field(False, alias="invertMatch")
    line_regexp: bool = Field(False, alias="lineRegexp")
    multiline: bool = Field(False, description="Allow matches to span lines (ripgrep only)")
    multiline_dotall: bool = Field(False, alias="multilineDotall")

    # Scope
    file_type: str | None = Field(None, alias="type", description="Backend file type, e.g. 'py'")
    include: list[str] | None = Field(None, description="Include globs")
    exclude: list[str] | None = Field(None, description="Exclude globs")
    exclude_dir: list[str] | None = Field(None, alias="excludeDir", description="Directories not to descend")
    hidden: bool = Field(False, description="Search hidden files")
    no_ignore: bool = Field(False, alias="noIgnore", description="Do not respect .gitignore")
    follow_symlinks: bool = Field(False, alias="followSymlinks")
    binary_files: BinaryFiles = Field("without-match", alias="binaryFiles")
    encoding: str | None = Field(None)
    no_unicode: bool = Field(False, alias="noUnicode")
    threads: int | None = Field(None, ge=1, le=64)

    # Output mode
    files_only: bool | None = Field(None, alias="filesOnly", description="List matching files only")
    files_without_match: bool = Field(False, alias="filesWithoutMatch")
    count: bool = Field(False, description="Count matching lines per file")
    count_matches: bool = Field(False, alias="countMatches", description="Count every match per file")

    # Context and content
    context_lines: int | None = Field(None, ge=0, le=50, alias="contextLines")
    before_lines: int | None = Field(None, ge=0, le=50, alias="beforeLines")
    after_lines: int | None = Field(None, ge=0, le=50, alias="afterLines")
    match_content_length: int | None = Field(None, ge=1, le=800, alias="matchContentLength")

    # Caps and pagination
    max_matches_per_file: int | None = Field(None, ge=1, le=100, alias="maxMatchesPerFile")
    max_files: int | None = Field(None, ge=1, le=1000, alias="maxFiles")
    files_per_page: int | None = Field(None, ge=1, le=20, alias="filesPerPage")
    file_page_number: int | None = Field(None, ge=1, alias="filePageNumber")
    matches_per_page: int | None = Field(None, ge=1, le=100, alias="matchesPerPage")

    # Ordering and enrichment
    sort: SortKey | None = Field(None, description="File ordering")
    sort_reverse: bool = Field(False, alias="sortReverse")
    show_file_last_modified: bool = Field(False, alias="showFileLastModified")
    include_stats: bool = Field(True, alias="includeStats")

    @property
    def output_mode(self) -> OutputMode:
        if self.files_only:
            return OutputMode.FILES_ONLY
        if self.files_without_match:
            return OutputMode.FILES_WITHOUT_MATCH
        if self.count or self.count_matches:
            return OutputMode.COUNT
        return OutputMode.NORMAL

    @property
    def lists_files_only(self) -> bool:
        """True when results carry no per-match content."""
        return self.output_mode is not OutputMode.NORMAL

    @property
    def context_before(self) -> int:
        if self.before_lines is not None:
            return self.before_lines
        return self.context_lines or 0

    @property
    def context_after(self) -> int:
        if self.after_lines is not None:
            return self.after_lines
        return self.context_lines or 0

    @property
    def has_explicit_pagination(self) -> bool:
        return (
            self.mode is not None
            or self.files_per_page is not None
            or self.file_page_number is not None
            or self.max_files is not None
        )


@dataclass(frozen=True, slots=True)
class RawMatch:
    """One matched line as decoded from backend output."""

    path: str
    line_number: int
    line_offset: int  # absolute byte offset of the line start
    column: int  # byte offset of the match within the line
    match_length: int  # bytes
    line_text: str


@dataclass(frozen=True, slots=True)
class ContextEntry:
    """A line available to stitch around a match."""

    path: str
    line_number: int
    line_text: str


class MatchLocation(BaseModel):
    """Byte span of the original, untruncated match."""

    model_config = ConfigDict(populate_by_name=True)

    byte_offset: int = Field(..., alias="byteOffset", description="Absolute byte offset of match start")
    byte_length: int = Field(..., alias="byteLength", description="Match length in bytes")
    char_offset: int = Field(
        ...,
        alias="charOffset",
        description="Same value as byteOffset; kept for existing consumers (bytes, not characters)",
    )
    char_length: int = Field(
        ...,
        alias="charLength",
        description="Same value as byteLength; kept for existing consumers (bytes, not characters)",
    )

    @classmethod
    def from_span(cls, offset: int, length: int) -> MatchLocation:
        return cls(byte_offset=offset, byte_length=length, char_offset=offset, char_length=length)


class Match(BaseModel):
    """A stitched, possibly truncated match."""

    value: str = Field(..., description="Match line joined with its context lines")
    location: MatchLocation
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=0, description="0-based byte column")


class MatchPagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    matches_per_page: int = Field(..., alias="matchesPerPage")
    total_matches: int = Field(..., alias="totalMatches")
    has_more: bool = Field(..., alias="hasMore")


class FileResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str
    match_count: int = Field(..., alias="matchCount", description="Matches in this file before pagination")
    matches: list[Match] = Field(default_factory=list)
    pagination: MatchPagination | None = None
    modified: str | None = Field(None, description="ISO-8601 last-modified time")


class FilePagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    files_per_page: int = Field(..., alias="filesPerPage")
    total_files: int = Field(..., alias="totalFiles")
    has_more: bool = Field(..., alias="hasMore")


class SearchStats(BaseModel):
    """Backend summary statistics, when emitted."""

    model_config = ConfigDict(populate_by_name=True)

    matches: int = 0
    matched_lines: int = Field(0, alias="matchedLines")
    files_matched: int = Field(0, alias="filesMatched")
    files_searched: int = Field(0, alias="filesSearched")
    bytes_searched: int = Field(0, alias="bytesSearched")
    elapsed: str | None = None


class DirectoryStats(BaseModel):
    """Heuristic size estimate of a search target."""

    model_config = ConfigDict(populate_by_name=True)

    estimated_size_mb: float = Field(0.0, alias="estimatedSizeMb")
    estimated_file_count: int = Field(0, alias="estimatedFileCount")
    is_large: bool = Field(False, alias="isLarge")


class SearchResult(BaseModel):
    """Response payload for a content search."""

    model_config = ConfigDict(populate_by_name=True)

    status: ResultStatus
    path: str | None = None
    search_engine: Literal["rg", "grep"] | None = Field(None, alias="searchEngine")
    files: list[FileResult] | None = None
    total_files: int | None = Field(None, alias="totalFiles")
    total_matches: int | None = Field(None, alias="totalMatches")
    pagination: FilePagination | None = None
    stats: SearchStats | None = None
    warnings: list[str] = Field(default_factory=list)
    hints: list[str] = Field(default_factory=list)
    error: str | None = None
    error_code: str | None = Field(None, alias="errorCode")
    recoverable: bool | None = None


class BatchSearchRequest(BaseModel):
    queries: list[SearchQuery] = Field(..., min_length=1, max_length=10)


class BatchSearchResponse(BaseModel):
    results: list[SearchResult]


class CallSiteRequest(BaseModel):
    """Find calls of a symbol, e.g. ``foo(``, without a language server."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(..., min_length=1, max_length=200)
    path: str = Field(..., min_length=1)
    include: list[str] | None = None
    exclude_dir: list[str] | None = Field(None, alias="excludeDir")
    files_per_page: int | None = Field(None, ge=1, le=20, alias="filesPerPage")
    file_page_number: int | None = Field(None, ge=1, alias="filePageNumber")

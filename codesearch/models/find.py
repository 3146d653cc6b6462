"""Models for the file finder API."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from codesearch.models.search import ResultStatus

DEFAULT_EXCLUDE_DIRS = ["node_modules", "dist", ".git", "coverage", "build", ".next"]


class FindSortKey(str, Enum):
    MODIFIED = "modified"
    SIZE = "size"
    NAME = "name"
    PATH = "path"


class FindFilesQuery(BaseModel):
    """Request body for a metadata file search."""

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(..., min_length=1, description="Directory to search")
    name: str | None = Field(None, description="Glob on the file name")
    names: list[str] | None = Field(None, description="Any of several name globs")
    iname: str | None = Field(None, description="Case-insensitive name glob")
    path_pattern: str | None = Field(None, alias="pathPattern", description="Glob on the full path")
    regex: str | None = Field(None, description="Regex on the full path")
    regex_type: Literal["posix-egrep", "posix-extended", "posix-basic"] = Field(
        "posix-egrep",
        alias="regexType",
    )
    entry_type: Literal["f", "d", "l"] | None = Field(None, alias="type")
    max_depth: int | None = Field(None, ge=0, le=50, alias="maxDepth")
    min_depth: int | None = Field(None, ge=0, le=50, alias="minDepth")
    empty: bool = False
    size_greater: str | None = Field(None, alias="sizeGreater", pattern=r"^\d+[ckMG]?$")
    size_less: str | None = Field(None, alias="sizeLess", pattern=r"^\d+[ckMG]?$")
    modified_within: str | None = Field(None, alias="modifiedWithin", description="e.g. '2h', '3d'")
    modified_before: str | None = Field(None, alias="modifiedBefore")
    accessed_within: str | None = Field(None, alias="accessedWithin")
    permissions: str | None = Field(None, pattern=r"^[0-7]{3,4}$")
    executable: bool = False
    readable: bool = False
    writable: bool = False
    exclude_dir: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS),
        alias="excludeDir",
    )
    limit: int = Field(1000, ge=1, le=10000)
    sort_by: FindSortKey = Field(FindSortKey.MODIFIED, alias="sortBy")
    files_per_page: int | None = Field(None, ge=1, le=50, alias="filesPerPage")
    file_page_number: int | None = Field(None, ge=1, alias="filePageNumber")
    details: bool = Field(True, description="Include size, permissions and modified time")

    @property
    def has_explicit_pagination(self) -> bool:
        return self.files_per_page is not None or self.file_page_number is not None


class FoundFile(BaseModel):
    path: str
    type: Literal["file", "directory", "symlink", "other"] = "file"
    size: int | None = None
    permissions: str | None = None
    modified: str | None = None


class EntryPagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    entries_per_page: int = Field(..., alias="entriesPerPage")
    total_entries: int = Field(..., alias="totalEntries")
    has_more: bool = Field(..., alias="hasMore")


class FindFilesResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: ResultStatus
    path: str | None = None
    files: list[FoundFile] | None = None
    total_files: int | None = Field(None, alias="totalFiles")
    pagination: EntryPagination | None = None
    warnings: list[str] = Field(default_factory=list)
    hints: list[str] = Field(default_factory=list)
    error: str | None = None
    error_code: str | None = Field(None, alias="errorCode")
    recoverable: bool | None = None

"""Models for codesearch."""

from codesearch.models.config import SearchLimits, WorkspaceRoots
from codesearch.models.find import FindFilesQuery, FindFilesResult, FoundFile
from codesearch.models.search import (
    FileResult,
    Match,
    MatchLocation,
    ResultStatus,
    SearchQuery,
    SearchResult,
    WorkflowMode,
)

__all__ = [
    "FileResult",
    "FindFilesQuery",
    "FindFilesResult",
    "FoundFile",
    "Match",
    "MatchLocation",
    "ResultStatus",
    "SearchLimits",
    "SearchQuery",
    "SearchResult",
    "WorkflowMode",
    "WorkspaceRoots",
]

"""Workflow presets, defaults and consistency checks for search queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from codesearch.exceptions import QueryValidationError
from codesearch.models.search import SearchQuery, SortKey, WorkflowMode

if TYPE_CHECKING:
    from codesearch.models.config import SearchLimits

WORKFLOW_PRESETS: dict[WorkflowMode, dict[str, object]] = {
    WorkflowMode.DISCOVERY: {
        "files_only": True,
        "smart_case": True,
        "files_per_page": 20,
    },
    WorkflowMode.PAGINATED: {
        "files_per_page": 10,
        "matches_per_page": 10,
        "smart_case": True,
    },
    WorkflowMode.DETAILED: {
        "context_lines": 3,
        "files_per_page": 10,
        "matches_per_page": 20,
        "match_content_length": 400,
        "smart_case": True,
    },
    WorkflowMode.PRECISE: {
        "context_lines": 0,
        "matches_per_page": 5,
        "max_matches_per_file": 5,
        "smart_case": False,
        "case_sensitive": True,
    },
}

LARGE_CONTEXT_LINES = 5


def normalize_query(query: SearchQuery, limits: SearchLimits) -> SearchQuery:
    """
    Apply the workflow preset and fill defaults for fields left unset.

    Only ``None`` fields are touched, so normalizing an already
    normalized query returns it unchanged.
    """
    updates: dict[str, object] = {}

    def current(name: str) -> object:
        return updates.get(name, getattr(query, name))

    if query.mode is not None:
        for name, value in WORKFLOW_PRESETS[query.mode].items():
            if getattr(query, name) is None:
                updates[name] = value

    if current("smart_case") is None:
        updates["smart_case"] = not (current("case_sensitive") or current("case_insensitive"))

    defaults: dict[str, object] = {
        "files_only": False,
        "files_per_page": limits.files_per_page,
        "file_page_number": 1,
        "matches_per_page": limits.matches_per_page,
        "match_content_length": limits.match_content_length,
        "sort": SortKey.PATH,
    }
    for name, value in defaults.items():
        if current(name) is None:
            updates[name] = value

    return query.model_copy(update=updates) if updates else query


@dataclass
class QueryValidation:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_query(query: SearchQuery) -> QueryValidation:
    """Collect conflicting-flag errors and advisory warnings."""
    result = QueryValidation()
    list_modes = [query.files_only, query.files_without_match, query.count or query.count_matches]

    if query.fixed_string and query.perl_regex:
        result.errors.append("fixedString and perlRegex are mutually exclusive")
    if query.files_only and query.files_without_match:
        result.errors.append("filesOnly and filesWithoutMatch are mutually exclusive")
    if (query.count or query.count_matches) and (query.files_only or query.files_without_match):
        result.errors.append("count cannot be combined with filesOnly or filesWithoutMatch")
    if query.multiline_dotall and not query.multiline:
        result.errors.append("multilineDotall requires multiline")

    has_context = bool(query.context_before or query.context_after)
    if any(list_modes) and has_context:
        result.warnings.append("Context lines are ignored when only file names or counts are returned")
    case_modes = [query.case_sensitive, query.case_insensitive, query.smart_case]
    if sum(1 for mode in case_modes if mode) > 1:
        result.warnings.append(
            "Multiple case modes set; precedence is caseSensitive, then caseInsensitive, then smartCase"
        )
    if query.line_regexp and query.whole_word:
        result.warnings.append("wholeWord is redundant with lineRegexp")
    if max(query.context_before, query.context_after) > LARGE_CONTEXT_LINES:
        result.warnings.append(
            f"More than {LARGE_CONTEXT_LINES} context lines produces large output; consider matchContentLength"
        )
    if query.invert_match and has_context:
        result.warnings.append("Context around inverted matches is rarely useful")

    return result


def ensure_valid(query: SearchQuery) -> list[str]:
    """Raise on validation errors; return the warnings otherwise."""
    validation = validate_query(query)
    if not validation.is_valid:
        raise QueryValidationError(
            "; ".join(validation.errors),
            context={"errors": validation.errors},
        )
    return validation.warnings

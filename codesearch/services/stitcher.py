"""Join matches with their context lines and truncate the result."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codesearch.models.search import Match, MatchLocation
from codesearch.utils.truncation import truncate_code_points

if TYPE_CHECKING:
    from codesearch.models.search import RawMatch
    from codesearch.parsers.output import FileMatches


def context_lines(entry: FileMatches, first: int, last: int) -> list[str]:
    return [entry.lines[n].line_text for n in range(first, last + 1) if n in entry.lines]


def stitch_match(
    raw: RawMatch,
    entry: FileMatches,
    before: int,
    after: int,
    max_length: int,
) -> Match:
    """Build the external Match for ``raw``.

    ``location`` is the untruncated byte span of the match, so it stays
    valid however much of ``value`` was cut.
    """
    lines = context_lines(entry, raw.line_number - before, raw.line_number - 1) if before else []
    lines.append(raw.line_text)
    if after:
        lines.extend(context_lines(entry, raw.line_number + 1, raw.line_number + after))

    return Match(
        value=truncate_code_points("\n".join(lines), max_length),
        location=MatchLocation.from_span(raw.line_offset + raw.column, raw.match_length),
        line=raw.line_number,
        column=raw.column,
    )

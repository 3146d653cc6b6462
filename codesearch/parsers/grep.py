"""Decoder for ``grep -rHn -b --null`` output."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from codesearch.commands.grep import has_uppercase
from codesearch.models.search import RawMatch
from codesearch.parsers.output import LineSkipped, ParsedOutput, SkipReason

if TYPE_CHECKING:
    from codesearch.models.search import SearchQuery

logger = logging.getLogger(__name__)

# "<line><sep><byte offset><sep><text>"; ':' marks a match, '-' a context line
_GREP_LINE = re.compile(r"^(\d+)([:-])(\d+)[:-](.*)$", re.DOTALL)
GROUP_SEPARATOR = "--"


def compile_locator(query: SearchQuery) -> re.Pattern[str] | None:
    """Best-effort Python equivalent of the grep pattern, for match columns."""
    flags = 0
    if not query.case_sensitive and (
        query.case_insensitive or (query.smart_case and not has_uppercase(query.pattern))
    ):
        flags |= re.IGNORECASE
    source = re.escape(query.pattern) if query.fixed_string else query.pattern
    if query.whole_word and not query.line_regexp:
        source = rf"\b(?:{source})\b"
    try:
        return re.compile(source, flags)
    except re.error:
        return None


def locate_match(line_text: str, locator: re.Pattern[str] | None) -> tuple[int, int]:
    """Byte column and byte length of the first match, or the whole line."""
    found = locator.search(line_text) if locator is not None else None
    if found is None:
        return 0, len(line_text.encode("utf-8"))
    column = len(line_text[: found.start()].encode("utf-8"))
    return column, len(found.group(0).encode("utf-8"))


def decode_grep_line(raw_line: str) -> tuple[str, bool, int, int, str] | LineSkipped:
    """Split a line into (path, is_match, line_number, line_offset, text)."""
    if not raw_line.strip():
        return LineSkipped(SkipReason.BLANK)
    if raw_line == GROUP_SEPARATOR:
        return LineSkipped(SkipReason.GROUP_SEPARATOR)
    path, separator, rest = raw_line.partition("\0")
    if not separator or not path:
        return LineSkipped(SkipReason.MALFORMED)
    fields = _GREP_LINE.match(rest)
    if fields is None:
        return LineSkipped(SkipReason.MALFORMED)
    line_number, kind, offset, text = fields.groups()
    return path, kind == ":", int(line_number), int(offset), text.rstrip("\r")


def parse_grep_output(stdout: str, query: SearchQuery) -> ParsedOutput:
    """Build the per-file match map and line index from grep output."""
    parsed = ParsedOutput()
    locator = None if query.invert_match else compile_locator(query)

    for raw_line in stdout.split("\n"):
        decoded = decode_grep_line(raw_line)
        if isinstance(decoded, LineSkipped):
            parsed.skip(decoded)
            continue

        path, is_match, line_number, line_offset, text = decoded
        entry = parsed.file(path)
        if not is_match:
            entry.add_line(line_number, text)
            continue

        column, length = locate_match(text, locator)
        entry.add_match(
            RawMatch(
                path=path,
                line_number=line_number,
                line_offset=line_offset,
                column=column,
                match_length=length,
                line_text=text,
            )
        )

    if parsed.skipped_count:
        logger.debug(
            "Skipped unparseable grep output lines",
            extra={"skipped": {reason.value: n for reason, n in parsed.skipped.items()}},
        )

    return parsed

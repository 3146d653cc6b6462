"""Intermediate per-file representation shared by the output decoders."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from codesearch.models.search import ContextEntry, RawMatch, SearchStats


class SkipReason(str, Enum):
    """Why a line of backend output contributed nothing."""

    BLANK = "blank"
    NOT_JSON = "not_json"
    MALFORMED = "malformed"
    MISSING_LINE_NUMBER = "missing_line_number"
    GROUP_SEPARATOR = "group_separator"


@dataclass(frozen=True, slots=True)
class LineSkipped:
    reason: SkipReason


@dataclass
class FileMatches:
    """Raw matches of one file plus a line index for context lookup."""

    path: str
    matches: list[RawMatch] = field(default_factory=list)
    lines: dict[int, ContextEntry] = field(default_factory=dict)
    count: int | None = None

    @property
    def match_count(self) -> int:
        return self.count if self.count is not None else len(self.matches)

    def add_match(self, match: RawMatch) -> None:
        self.matches.append(match)
        self.add_line(match.line_number, match.line_text)

    def add_line(self, line_number: int, text: str) -> None:
        self.lines[line_number] = ContextEntry(path=self.path, line_number=line_number, line_text=text)


@dataclass
class ParsedOutput:
    files: dict[str, FileMatches] = field(default_factory=dict)
    stats: SearchStats | None = None
    skipped: Counter[SkipReason] = field(default_factory=Counter)

    def file(self, path: str) -> FileMatches:
        entry = self.files.get(path)
        if entry is None:
            entry = self.files[path] = FileMatches(path=path)
        return entry

    def skip(self, skipped: LineSkipped) -> None:
        self.skipped[skipped.reason] += 1

    @property
    def skipped_count(self) -> int:
        benign = (SkipReason.BLANK, SkipReason.GROUP_SEPARATOR)
        return sum(count for reason, count in self.skipped.items() if reason not in benign)


def _split_paths(stdout: str) -> list[str]:
    separator = "\0" if "\0" in stdout else "\n"
    return [item.strip("\r\n") for item in stdout.split(separator) if item.strip("\r\n")]


def parse_file_list(stdout: str) -> ParsedOutput:
    """Parse files-only / files-without-match output (NUL or newline separated)."""
    parsed = ParsedOutput()
    for path in _split_paths(stdout):
        parsed.file(path)
    return parsed


def parse_count_output(stdout: str) -> ParsedOutput:
    """Parse ``path\\0count`` lines; files with a zero count are dropped."""
    parsed = ParsedOutput()
    for line in stdout.splitlines():
        if not line.strip():
            parsed.skip(LineSkipped(SkipReason.BLANK))
            continue
        if "\0" in line:
            path, _, raw_count = line.partition("\0")
        else:
            path, _, raw_count = line.rpartition(":")
        try:
            count = int(raw_count.strip())
        except ValueError:
            parsed.skip(LineSkipped(SkipReason.MALFORMED))
            continue
        if path and count > 0:
            parsed.file(path).count = count
    return parsed

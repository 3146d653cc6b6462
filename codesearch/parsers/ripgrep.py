"""Decoder for ripgrep's line-delimited ``--json`` output."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from codesearch.models.search import RawMatch, SearchStats
from codesearch.parsers.output import LineSkipped, ParsedOutput, SkipReason

logger = logging.getLogger(__name__)


class RgText(BaseModel):
    """ripgrep's arbitrary-data wrapper: UTF-8 ``text`` or base64 ``bytes``."""

    text: str | None = None
    bytes: str | None = None

    def decode(self) -> str:
        if self.text is not None:
            return self.text
        if self.bytes is None:
            return ""
        try:
            return base64.b64decode(self.bytes).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            return ""


class RgSubmatch(BaseModel):
    start: int
    end: int


class RgLineData(BaseModel):
    path: RgText
    lines: RgText
    line_number: int | None = None
    absolute_offset: int = 0
    submatches: list[RgSubmatch] = Field(default_factory=list)


class RgElapsed(BaseModel):
    human: str | None = None


class RgStats(BaseModel):
    matches: int = 0
    matched_lines: int = 0
    searches: int = 0
    searches_with_match: int = 0
    bytes_searched: int = 0
    elapsed: RgElapsed | None = None


class RgSummaryData(BaseModel):
    stats: RgStats = Field(default_factory=RgStats)
    elapsed_total: RgElapsed | None = None


class RgMatchEvent(BaseModel):
    type: Literal["match"]
    data: RgLineData


class RgContextEvent(BaseModel):
    type: Literal["context"]
    data: RgLineData


class RgSummaryEvent(BaseModel):
    type: Literal["summary"]
    data: RgSummaryData


class RgFileEvent(BaseModel):
    type: Literal["begin", "end"]


RgEvent = Annotated[
    RgMatchEvent | RgContextEvent | RgSummaryEvent | RgFileEvent,
    Field(discriminator="type"),
]
_EVENT_ADAPTER: TypeAdapter[RgEvent] = TypeAdapter(RgEvent)

DecodedLine = RgMatchEvent | RgContextEvent | RgSummaryEvent | RgFileEvent


def decode_ripgrep_line(raw_line: str) -> DecodedLine | LineSkipped:
    """Decode one output line, returning a skip marker instead of raising."""
    line = raw_line.strip()
    if not line:
        return LineSkipped(SkipReason.BLANK)
    if not line.startswith("{"):
        return LineSkipped(SkipReason.NOT_JSON)
    try:
        return _EVENT_ADAPTER.validate_json(line)
    except ValidationError:
        return LineSkipped(SkipReason.MALFORMED)


def _strip_eol(text: str) -> str:
    return text.rstrip("\r\n")


def _raw_match(data: RgLineData, line_number: int) -> RawMatch:
    line_text = _strip_eol(data.lines.decode())
    if data.submatches:
        first = data.submatches[0]
        column = first.start
        length = first.end - first.start
    else:
        # Inverted matches carry no submatches; the whole line is the match.
        column = 0
        length = len(line_text.encode("utf-8"))
    return RawMatch(
        path=data.path.decode(),
        line_number=line_number,
        line_offset=data.absolute_offset,
        column=column,
        match_length=length,
        line_text=line_text,
    )


def _stats(data: RgSummaryData) -> SearchStats:
    stats = data.stats
    elapsed = data.elapsed_total or stats.elapsed
    return SearchStats(
        matches=stats.matches,
        matched_lines=stats.matched_lines,
        files_matched=stats.searches_with_match,
        files_searched=stats.searches,
        bytes_searched=stats.bytes_searched,
        elapsed=elapsed.human if elapsed else None,
    )


def parse_ripgrep_json(stdout: str) -> ParsedOutput:
    """Build the per-file match map and line index from ``rg --json`` output."""
    parsed = ParsedOutput()

    for raw_line in stdout.splitlines():
        decoded = decode_ripgrep_line(raw_line)
        if isinstance(decoded, LineSkipped):
            parsed.skip(decoded)
            continue

        if isinstance(decoded, RgSummaryEvent):
            parsed.stats = _stats(decoded.data)
            continue
        if isinstance(decoded, RgFileEvent):
            continue

        data = decoded.data
        if data.line_number is None:
            parsed.skip(LineSkipped(SkipReason.MISSING_LINE_NUMBER))
            continue

        entry = parsed.file(data.path.decode())
        if isinstance(decoded, RgMatchEvent):
            entry.add_match(_raw_match(data, data.line_number))
        else:
            entry.add_line(data.line_number, _strip_eol(data.lines.decode()))

    if parsed.skipped_count:
        logger.debug(
            "Skipped unparseable ripgrep output lines",
            extra={"skipped": {reason.value: n for reason, n in parsed.skipped.items()}},
        )

    return parsed

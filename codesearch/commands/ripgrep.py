"""ripgrep argument construction."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Self

from codesearch.commands.base import BaseCommandBuilder
from codesearch.models.search import OutputMode, SortKey

if TYPE_CHECKING:
    from codesearch.models.search import SearchQuery

_SIMPLE_SUFFIX_GLOB = re.compile(r"^\*\.([A-Za-z0-9]+)$")


def consolidate_globs(globs: list[str]) -> list[str]:
    """Merge two or more ``*.ext`` globs into one ``*.{a,b}`` glob.

    Globs with a path separator, several wildcards or existing braces
    are passed through untouched, after the merged glob.
    """
    extensions: list[str] = []
    others: list[str] = []
    for glob in globs:
        match = _SIMPLE_SUFFIX_GLOB.match(glob)
        if match:
            if match.group(1) not in extensions:
                extensions.append(match.group(1))
        else:
            others.append(glob)

    simple_count = len(globs) - len(others)
    if simple_count < 2:
        return list(globs)
    if len(extensions) == 1:
        return [f"*.{extensions[0]}", *others]
    return [f"*.{{{','.join(extensions)}}}", *others]


def exclude_glob(pattern: str) -> str:
    return pattern if pattern.startswith("!") else f"!{pattern}"


def exclude_dir_glob(directory: str) -> str:
    return f"!{directory.strip('/')}/"


class RipgrepCommandBuilder(BaseCommandBuilder):
    """Builds ``rg`` invocations.

    Normal output uses ``--json`` so matches carry byte offsets; the
    list and count modes use plain NUL-separated output.
    """

    command = "rg"

    def from_query(self, query: SearchQuery) -> Self:
        mode = query.output_mode
        self._output_mode(query, mode)
        self._pattern_mode(query)
        self._case_mode(query)
        self._match_shape(query)
        self._scope(query)
        if mode is OutputMode.NORMAL:
            self._context(query)
        if mode in (OutputMode.NORMAL, OutputMode.COUNT) and query.max_matches_per_file:
            self.add_option("-m", query.max_matches_per_file)
        if mode is OutputMode.NORMAL and query.include_stats:
            self.add_flag("--stats")
        self._sorting(query)
        self.add_args("--", query.pattern, query.path)
        return self

    def _output_mode(self, query: SearchQuery, mode: OutputMode) -> None:
        if mode is OutputMode.FILES_ONLY:
            self.add_args("-l", "--null")
        elif mode is OutputMode.FILES_WITHOUT_MATCH:
            self.add_args("--files-without-match", "--null")
        elif mode is OutputMode.COUNT:
            self.add_flag("--count-matches" if query.count_matches else "-c")
            self.add_args("--with-filename", "--null")
        else:
            self.add_flag("--json")
        self.add_option("--color", "never")

    def _pattern_mode(self, query: SearchQuery) -> None:
        if query.fixed_string:
            self.add_flag("-F")
        elif query.perl_regex:
            self.add_flag("-P")
        if query.multiline:
            self.add_flag("-U")
            if query.multiline_dotall:
                self.add_flag("--multiline-dotall")
        if query.no_unicode:
            self.add_flag("--no-unicode")

    def _case_mode(self, query: SearchQuery) -> None:
        if query.case_sensitive:
            self.add_flag("-s")
        elif query.case_insensitive:
            self.add_flag("-i")
        elif query.smart_case:
            self.add_flag("-S")

    def _match_shape(self, query: SearchQuery) -> None:
        if query.line_regexp:
            self.add_flag("-x")
        elif query.whole_word:
            self.add_flag("-w")
        if query.invert_match:
            self.add_flag("-v")

    def _scope(self, query: SearchQuery) -> None:
        if query.file_type:
            self.add_option("-t", query.file_type)
        for glob in consolidate_globs(query.include or []):
            self.add_option("-g", glob)
        for glob in query.exclude or []:
            self.add_option("-g", exclude_glob(glob))
        for directory in query.exclude_dir or []:
            self.add_option("-g", exclude_dir_glob(directory))
        if query.hidden:
            self.add_flag("--hidden")
        if query.no_ignore:
            self.add_flag("--no-ignore")
        if query.follow_symlinks:
            self.add_flag("-L")
        if query.binary_files == "text":
            self.add_flag("--text")
        elif query.binary_files == "binary":
            self.add_flag("--binary")
        if query.encoding:
            self.add_option("-E", query.encoding)
        if query.threads:
            self.add_option("-j", query.threads)

    def _context(self, query: SearchQuery) -> None:
        if query.before_lines is not None or query.after_lines is not None:
            if query.context_before:
                self.add_option("-B", query.context_before)
            if query.context_after:
                self.add_option("-A", query.context_after)
        elif query.context_lines:
            self.add_option("-C", query.context_lines)

    def _sorting(self, query: SearchQuery) -> None:
        key = query.sort or SortKey.PATH
        self.add_option("--sortr" if query.sort_reverse else "--sort", key.value)

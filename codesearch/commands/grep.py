"""grep argument construction for hosts without ripgrep."""

from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING, Self

from codesearch.commands.base import BaseCommandBuilder
from codesearch.models.search import OutputMode

if TYPE_CHECKING:
    from codesearch.models.search import SearchQuery

FALLBACK_WARNING = (
    "Using grep fallback (ripgrep not available). Match columns are approximate "
    "and some features may be limited."
)

TYPE_TO_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "c": ("c", "h"),
    "cpp": ("cpp", "cc", "cxx", "hpp", "hh", "hxx"),
    "cs": ("cs",),
    "css": ("css", "scss", "sass", "less"),
    "go": ("go",),
    "html": ("html", "htm"),
    "java": ("java",),
    "js": ("js", "jsx", "mjs", "cjs"),
    "json": ("json",),
    "kotlin": ("kt", "kts"),
    "md": ("md", "markdown"),
    "php": ("php",),
    "py": ("py", "pyi"),
    "rb": ("rb",),
    "rust": ("rs",),
    "sh": ("sh", "bash", "zsh"),
    "sql": ("sql",),
    "swift": ("swift",),
    "toml": ("toml",),
    "ts": ("ts", "tsx", "mts", "cts"),
    "xml": ("xml",),
    "yaml": ("yaml", "yml"),
}


def has_uppercase(pattern: str) -> bool:
    """Uppercase literal in ``pattern``; escapes such as ``\\W`` or ``\\S`` do not count."""
    escaped = False
    for char in pattern:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char.isupper():
            return True
    return False


class GrepCommandBuilder(BaseCommandBuilder):
    """Builds ``grep -r`` invocations approximating the ripgrep ones.

    Paths are NUL-terminated (``--null``) and lines carry their byte offset
    (``-b``), so output stays parseable for any file name.
    """

    command = "grep"

    def from_query(self, query: SearchQuery) -> Self:
        mode = query.output_mode
        self.add_flag("-R" if query.follow_symlinks else "-r")
        self.add_args("-H", "--null", "--color=never")
        self._pattern_mode(query)
        self._case_mode(query)
        self._match_shape(query)
        self._output_mode(query, mode)
        if mode is OutputMode.NORMAL:
            self._context(query)
        if mode in (OutputMode.NORMAL, OutputMode.COUNT) and query.max_matches_per_file:
            self.add_option("-m", query.max_matches_per_file)
        self._scope(query)
        self._unsupported(query)
        self.add_args("--", query.pattern, query.path)
        return self

    def _pattern_mode(self, query: SearchQuery) -> None:
        if query.fixed_string:
            self.add_flag("-F")
        elif query.perl_regex:
            if self.is_linux:
                self.add_flag("-P")
            else:
                self.add_flag("-E")
                self.warn("perlRegex is not supported by this grep; using extended regex (-E) instead")
        else:
            self.add_flag("-E")

    def _case_mode(self, query: SearchQuery) -> None:
        if query.case_sensitive:
            return
        if query.case_insensitive:
            self.add_flag("-i")
        elif query.smart_case:
            if not has_uppercase(query.pattern):
                self.add_flag("-i")
            self.warn(
                "smartCase is emulated by grep fallback: case-insensitive (-i) unless the pattern "
                "has an uppercase letter"
            )

    def _match_shape(self, query: SearchQuery) -> None:
        if query.line_regexp:
            self.add_flag("-x")
        elif query.whole_word:
            self.add_flag("-w")
        if query.invert_match:
            self.add_flag("-v")

    def _output_mode(self, query: SearchQuery, mode: OutputMode) -> None:
        if mode is OutputMode.FILES_ONLY:
            self.add_flag("-l")
        elif mode is OutputMode.FILES_WITHOUT_MATCH:
            self.add_flag("-L")
        elif mode is OutputMode.COUNT:
            self.add_flag("-c")
            if query.count_matches:
                self.warn("countMatches is not supported by grep; counting matching lines instead")
        else:
            self.add_args("-n", "-b")

    def _context(self, query: SearchQuery) -> None:
        if query.before_lines is not None or query.after_lines is not None:
            if query.context_before:
                self.add_option("-B", query.context_before)
            if query.context_after:
                self.add_option("-A", query.context_after)
        elif query.context_lines:
            self.add_option("-C", query.context_lines)

    def _scope(self, query: SearchQuery) -> None:
        if query.file_type:
            extensions = TYPE_TO_EXTENSIONS.get(query.file_type)
            if extensions is None:
                self.warn(f"Unknown file type '{query.file_type}' ignored by grep fallback")
            else:
                for extension in extensions:
                    self.add_flag(f"--include=*.{extension}")
        for glob in query.include or []:
            if "/" in glob:
                self.warn(f"grep matches --include against file names only; '{glob}' may not match")
            self.add_flag(f"--include={glob}")
        for glob in query.exclude or []:
            self.add_flag(f"--exclude={glob.removeprefix('!')}")
        for directory in query.exclude_dir or []:
            self.add_flag(f"--exclude-dir={directory.strip('/')}")
        if not query.hidden:
            self.add_flag("--exclude=.*")
            # grep also applies --exclude-dir to the starting directory itself
            if not PurePath(query.path).name.startswith("."):
                self.add_flag("--exclude-dir=.*")
        if query.binary_files == "text":
            self.add_flag("-a")
        elif query.binary_files == "without-match":
            self.add_flag("-I")

    def _unsupported(self, query: SearchQuery) -> None:
        if not query.no_ignore:
            self.warn(".gitignore rules are not respected by grep fallback")
        if query.encoding:
            self.warn("encoding is ignored by grep fallback")
        if query.no_unicode:
            self.warn("noUnicode is ignored by grep fallback")
        if query.include_stats:
            self.warn("Statistics are unavailable with grep fallback")

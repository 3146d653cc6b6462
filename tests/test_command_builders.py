"""Tests for rg, grep and find argument construction."""

from __future__ import annotations

import pytest

from codesearch.commands.find import FindCommandBuilder, parse_time_window
from codesearch.commands.grep import GrepCommandBuilder, has_uppercase
from codesearch.commands.ripgrep import RipgrepCommandBuilder, consolidate_globs
from codesearch.exceptions import BackendUnavailableError, QueryValidationError
from codesearch.models.find import FindFilesQuery
from codesearch.models.search import SearchQuery


def rg_args(**fields) -> list[str]:
    return RipgrepCommandBuilder("linux").from_query(SearchQuery(**fields)).build().args


def grep_spec(platform: str = "linux", **fields):
    return GrepCommandBuilder(platform).from_query(SearchQuery(**fields)).build()


def find_spec(platform: str = "linux", **fields):
    return FindCommandBuilder(platform).from_query(FindFilesQuery(**fields)).build()


class TestConsolidateGlobs:
    def test_merges_simple_suffix_globs(self) -> None:
        assert consolidate_globs(["*.ts", "*.tsx", "*.js"]) == ["*.{ts,tsx,js}"]

    def test_single_glob_untouched(self) -> None:
        assert consolidate_globs(["*.py"]) == ["*.py"]

    def test_complex_globs_pass_through(self) -> None:
        globs = ["*.ts", "src/**/*.tsx", "*.js", "*test*"]
        assert consolidate_globs(globs) == ["*.{ts,js}", "src/**/*.tsx", "*test*"]

    def test_duplicate_extension_collapses(self) -> None:
        assert consolidate_globs(["*.md", "*.md"]) == ["*.md"]

    def test_only_complex_globs(self) -> None:
        assert consolidate_globs(["a/*.py", "b/*.py"]) == ["a/*.py", "b/*.py"]


class TestRipgrepBuilder:
    def test_normal_mode_uses_json_and_ends_with_pattern_and_path(self) -> None:
        args = rg_args(pattern="foo", path="/w")

        assert "--json" in args
        assert args[args.index("--color") + 1] == "never"
        assert "--stats" in args
        assert args[-3:] == ["--", "foo", "/w"]

    def test_dash_prefixed_pattern_is_not_a_flag(self) -> None:
        args = rg_args(pattern="-v", path="/w")
        assert args[-3:] == ["--", "-v", "/w"]

    def test_files_only_mode(self) -> None:
        args = rg_args(pattern="foo", path="/w", files_only=True, context_lines=3)

        assert args[:2] == ["-l", "--null"]
        assert "--json" not in args
        assert "-C" not in args
        assert "--stats" not in args

    def test_count_modes(self) -> None:
        assert "-c" in rg_args(pattern="foo", path="/w", count=True)
        count_matches = rg_args(pattern="foo", path="/w", count_matches=True)
        assert "--count-matches" in count_matches
        assert "--with-filename" in count_matches

    def test_files_without_match(self) -> None:
        assert "--files-without-match" in rg_args(pattern="foo", path="/w", files_without_match=True)

    def test_pattern_flags(self) -> None:
        assert "-F" in rg_args(pattern="a.b", path="/w", fixed_string=True)
        assert "-P" in rg_args(pattern="(?<=a)b", path="/w", perl_regex=True)
        multiline = rg_args(pattern="a.b", path="/w", multiline=True, multiline_dotall=True)
        assert "-U" in multiline
        assert "--multiline-dotall" in multiline

    def test_case_precedence(self) -> None:
        both = rg_args(pattern="Foo", path="/w", case_sensitive=True, case_insensitive=True)
        assert "-s" in both
        assert "-i" not in both
        assert "-S" in rg_args(pattern="foo", path="/w", smart_case=True)

    def test_line_regexp_wins_over_whole_word(self) -> None:
        args = rg_args(pattern="foo", path="/w", line_regexp=True, whole_word=True)
        assert "-x" in args
        assert "-w" not in args

    def test_scope_filters(self) -> None:
        args = rg_args(
            pattern="foo",
            path="/w",
            file_type="py",
            include=["*.ts", "*.tsx"],
            exclude=["*.min.js"],
            exclude_dir=["node_modules/", "dist"],
            hidden=True,
            no_ignore=True,
            follow_symlinks=True,
            threads=4,
        )

        assert args[args.index("-t") + 1] == "py"
        globs = [args[i + 1] for i, arg in enumerate(args) if arg == "-g"]
        assert globs == ["*.{ts,tsx}", "!*.min.js", "!node_modules/", "!dist/"]
        for flag in ("--hidden", "--no-ignore", "-L"):
            assert flag in args
        assert args[args.index("-j") + 1] == "4"

    def test_before_after_override_context_lines(self) -> None:
        args = rg_args(pattern="foo", path="/w", context_lines=5, before_lines=1, after_lines=2)

        assert "-C" not in args
        assert args[args.index("-B") + 1] == "1"
        assert args[args.index("-A") + 1] == "2"

    def test_symmetric_context(self) -> None:
        args = rg_args(pattern="foo", path="/w", context_lines=3)
        assert args[args.index("-C") + 1] == "3"

    def test_max_matches_only_when_explicit(self) -> None:
        assert "-m" not in rg_args(pattern="foo", path="/w")
        args = rg_args(pattern="foo", path="/w", max_matches_per_file=7)
        assert args[args.index("-m") + 1] == "7"

    def test_sorting(self) -> None:
        args = rg_args(pattern="foo", path="/w", sort="modified", sort_reverse=True)
        assert args[args.index("--sortr") + 1] == "modified"
        default = rg_args(pattern="foo", path="/w")
        assert default[default.index("--sort") + 1] == "path"


class TestGrepBuilder:
    def test_base_flags(self) -> None:
        spec = grep_spec(pattern="foo", path="/w")

        assert spec.command == "grep"
        assert spec.args[:4] == ["-r", "-H", "--null", "--color=never"]
        assert "-E" in spec.args
        assert "-n" in spec.args
        assert "-b" in spec.args
        assert spec.args[-3:] == ["--", "foo", "/w"]

    def test_perl_regex_on_linux(self) -> None:
        spec = grep_spec("linux", pattern="\\d+", path="/w", perl_regex=True)
        assert "-P" in spec.args
        assert not any("perlRegex" in w for w in spec.warnings)

    def test_perl_regex_substituted_on_darwin(self) -> None:
        spec = grep_spec("darwin", pattern="\\d+", path="/w", perl_regex=True)

        assert "-P" not in spec.args
        assert "-E" in spec.args
        assert any("perlRegex" in w for w in spec.warnings)

    def test_smart_case_emulation(self) -> None:
        assert "-i" in grep_spec(pattern="foo", path="/w", smart_case=True).args
        assert "-i" not in grep_spec(pattern="Foo", path="/w", smart_case=True).args

    def test_smart_case_emulation_is_reported(self) -> None:
        spec = grep_spec(pattern="foo", path="/w", smart_case=True)
        assert any("smartCase is emulated" in w for w in spec.warnings)

        explicit = grep_spec(pattern="foo", path="/w", case_insensitive=True)
        assert not any("smartCase" in w for w in explicit.warnings)

    @pytest.mark.parametrize("pattern", [r"\W+foo", r"\S\D", r"\bword\b", r"a\\"])
    def test_smart_case_ignores_escapes(self, pattern: str) -> None:
        assert not has_uppercase(pattern)
        assert "-i" in grep_spec(pattern=pattern, path="/w", smart_case=True).args

    def test_smart_case_sees_literal_uppercase(self) -> None:
        assert has_uppercase(r"\WFoo")
        assert has_uppercase(r"\\Foo")

    def test_type_maps_to_includes(self) -> None:
        args = grep_spec(pattern="foo", path="/w", file_type="py").args
        assert "--include=*.py" in args
        assert "--include=*.pyi" in args

    def test_unknown_type_warns(self) -> None:
        spec = grep_spec(pattern="foo", path="/w", file_type="cobol")
        assert any("cobol" in w for w in spec.warnings)

    def test_exclude_dirs_and_hidden(self) -> None:
        args = grep_spec(pattern="foo", path="/w", exclude_dir=["node_modules/"]).args

        assert "--exclude-dir=node_modules" in args
        assert "--exclude=.*" in args
        assert "--exclude-dir=.*" in args

    def test_hidden_start_directory_not_excluded(self) -> None:
        args = grep_spec(pattern="foo", path="/w/.config").args
        assert "--exclude-dir=.*" not in args

    def test_count_matches_warns(self) -> None:
        spec = grep_spec(pattern="foo", path="/w", count_matches=True)
        assert "-c" in spec.args
        assert any("countMatches" in w for w in spec.warnings)

    def test_gitignore_warning(self) -> None:
        spec = grep_spec(pattern="foo", path="/w")
        assert any("gitignore" in w for w in spec.warnings)

    def test_statistics_unavailable_warning(self) -> None:
        assert any("Statistics are unavailable" in w for w in grep_spec(pattern="foo", path="/w").warnings)

        quiet = grep_spec(pattern="foo", path="/w", include_stats=False)
        assert not any("Statistics" in w for w in quiet.warnings)

    def test_binary_files(self) -> None:
        assert "-I" in grep_spec(pattern="foo", path="/w").args
        assert "-a" in grep_spec(pattern="foo", path="/w", binary_files="text").args


class TestTimeWindows:
    @pytest.mark.parametrize(
        ("window", "expected"),
        [
            ("2h", ("min", 120)),
            ("3d", ("time", 3)),
            ("1w", ("time", 7)),
            ("2m", ("time", 60)),
        ],
    )
    def test_units(self, window: str, expected: tuple[str, int]) -> None:
        assert parse_time_window(window) == expected

    @pytest.mark.parametrize("window", ["", "2", "h", "2y", "-1d", "1.5h"])
    def test_invalid_window_rejected(self, window: str) -> None:
        with pytest.raises(QueryValidationError):
            parse_time_window(window)


class TestFindBuilder:
    def test_linux_layout(self) -> None:
        spec = find_spec(path="/w", name="*.py", max_depth=3)

        assert spec.command == "find"
        assert spec.args[:2] == ["-O3", "/w"]
        assert spec.args[spec.args.index("-maxdepth") + 1] == "3"
        assert spec.args[spec.args.index("-name") + 1] == "*.py"
        assert spec.args[-1] == "-print0"

    def test_default_prune_block(self) -> None:
        args = find_spec(path="/w").args

        start = args.index("(")
        end = args.index("-prune")
        block = args[start:end]
        assert "*/node_modules" in block
        assert "*/node_modules/*" in block
        assert args[end + 1] == "-o"

    def test_multiple_names_grouped(self) -> None:
        args = find_spec(path="/w", names=["*.ts", "*.tsx"], exclude_dir=[]).args
        assert args[args.index("-name") - 1] == "("
        assert "-o" in args

    def test_darwin_regex(self) -> None:
        args = find_spec("darwin", path="/w", regex=".*\\.py$", exclude_dir=[]).args

        assert args[:2] == ["-E", "/w"]
        assert "-regextype" not in args
        assert "-O3" not in args

    def test_linux_regex_type(self) -> None:
        args = find_spec(path="/w", regex=".*\\.py$").args
        assert args[args.index("-regextype") + 1] == "posix-egrep"

    def test_time_and_size_filters(self) -> None:
        args = find_spec(
            path="/w",
            modified_within="2h",
            modified_before="1w",
            accessed_within="3d",
            size_greater="10k",
            size_less="1M",
        ).args

        assert args[args.index("-mmin") + 1] == "-120"
        assert args[args.index("-mtime") + 1] == "+7"
        assert args[args.index("-atime") + 1] == "-3"
        sizes = [args[i + 1] for i, arg in enumerate(args) if arg == "-size"]
        assert sizes == ["+10k", "-1M"]

    def test_permission_checks_by_platform(self) -> None:
        linux = find_spec(path="/w", executable=True)
        assert "-executable" in linux.args
        assert linux.warnings == []

        darwin = find_spec("darwin", path="/w", executable=True)
        assert "-executable" not in darwin.args
        assert darwin.args[darwin.args.index("-perm") + 1] == "-u+x"
        assert darwin.warnings

    def test_windows_rejected(self) -> None:
        with pytest.raises(BackendUnavailableError):
            find_spec("win32", path="C:\\w")

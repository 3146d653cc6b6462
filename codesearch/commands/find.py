"""find(1) argument construction for metadata file searches."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Literal, Self

from codesearch.commands.base import BaseCommandBuilder
from codesearch.exceptions import BackendUnavailableError, QueryValidationError

if TYPE_CHECKING:
    from codesearch.models.find import FindFilesQuery

_TIME_WINDOW = re.compile(r"^(\d+)([hdwm])$")
_DAYS_PER_UNIT = {"d": 1, "w": 7, "m": 30}


def parse_time_window(value: str) -> tuple[Literal["min", "time"], int]:
    """Translate ``2h``/``3d``/``1w``/``2m`` into find's unit and amount.

    Hours become minutes; days, weeks and months become days.
    """
    match = _TIME_WINDOW.match(value.strip())
    if not match:
        msg = f"Invalid time window '{value}' (expected e.g. 2h, 3d, 1w, 2m)"
        raise QueryValidationError(msg, context={"field": "time_window", "value": value})
    amount = int(match.group(1))
    unit = match.group(2)
    if unit == "h":
        return "min", amount * 60
    return "time", amount * _DAYS_PER_UNIT[unit]


class FindCommandBuilder(BaseCommandBuilder):
    """Builds ``find`` invocations that print NUL-terminated paths."""

    command = "find"

    def from_query(self, query: FindFilesQuery) -> Self:
        if self.is_windows:
            msg = "File search is not supported on Windows"
            raise BackendUnavailableError(msg, context={"platform": self.platform})

        if self.is_linux:
            self.add_flag("-O3")
        if query.regex and self.is_darwin:
            self.add_flag("-E")
        self.add_args(query.path)

        if query.max_depth is not None:
            self.add_option("-maxdepth", query.max_depth)
        if query.min_depth is not None:
            self.add_option("-mindepth", query.min_depth)

        self._prune(query.exclude_dir)
        self._name_filters(query)
        self._size_filters(query)
        self._time_filters(query)
        self._permission_filters(query)
        self.add_flag("-print0")
        return self

    def _prune(self, directories: list[str]) -> None:
        names = [d.strip("/") for d in directories if d.strip("/")]
        if not names:
            return
        self.add_flag("(")
        for index, name in enumerate(names):
            if index:
                self.add_flag("-o")
            self.add_args("-path", f"*/{name}", "-o", "-path", f"*/{name}/*")
        self.add_args(")", "-prune", "-o")

    def _name_filters(self, query: FindFilesQuery) -> None:
        if query.entry_type:
            self.add_option("-type", query.entry_type)

        names = [n for n in [query.name, *(query.names or [])] if n]
        if len(names) == 1:
            self.add_option("-name", names[0])
        elif names:
            self.add_flag("(")
            for index, name in enumerate(names):
                if index:
                    self.add_flag("-o")
                self.add_option("-name", name)
            self.add_flag(")")

        if query.iname:
            self.add_option("-iname", query.iname)
        if query.path_pattern:
            self.add_option("-path", query.path_pattern)
        if query.regex:
            if self.is_linux:
                self.add_option("-regextype", query.regex_type)
            self.add_option("-regex", query.regex)

    def _size_filters(self, query: FindFilesQuery) -> None:
        if query.empty:
            self.add_flag("-empty")
        if query.size_greater:
            self.add_option("-size", f"+{query.size_greater}")
        if query.size_less:
            self.add_option("-size", f"-{query.size_less}")

    def _time_filters(self, query: FindFilesQuery) -> None:
        if query.modified_within:
            unit, amount = parse_time_window(query.modified_within)
            self.add_option(f"-m{unit}", f"-{amount}")
        if query.modified_before:
            unit, amount = parse_time_window(query.modified_before)
            self.add_option(f"-m{unit}", f"+{amount}")
        if query.accessed_within:
            unit, amount = parse_time_window(query.accessed_within)
            self.add_option(f"-a{unit}", f"-{amount}")

    def _permission_filters(self, query: FindFilesQuery) -> None:
        if query.permissions:
            self.add_option("-perm", query.permissions)
        checks = (
            (query.executable, "-executable", "u+x"),
            (query.readable, "-readable", "u+r"),
            (query.writable, "-writable", "u+w"),
        )
        for requested, gnu_flag, mode in checks:
            if not requested:
                continue
            if self.is_linux:
                self.add_flag(gnu_flag)
            else:
                self.add_option("-perm", f"-{mode}")
                self.warn(f"{gnu_flag} is not available on {self.platform}; checking owner permission bits instead")

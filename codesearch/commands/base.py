"""Shared plumbing for backend command builders."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Self


class Backend(str, Enum):
    """Content search backend, chosen once per query."""

    RIPGREP = "rg"
    GREP = "grep"


@dataclass(frozen=True)
class CommandSpec:
    """An executable plus its ordered argument list; never executed here."""

    command: str
    args: list[str]
    warnings: list[str] = field(default_factory=list)


class BaseCommandBuilder:
    """Accumulates arguments and platform-substitution warnings."""

    command: str = ""

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform or sys.platform
        self._args: list[str] = []
        self._warnings: list[str] = []

    @property
    def is_linux(self) -> bool:
        return self.platform.startswith("linux")

    @property
    def is_darwin(self) -> bool:
        return self.platform == "darwin"

    @property
    def is_windows(self) -> bool:
        return self.platform.startswith(("win", "cygwin"))

    def add_flag(self, flag: str) -> Self:
        self._args.append(flag)
        return self

    def add_option(self, option: str, value: object) -> Self:
        self._args.extend([option, str(value)])
        return self

    def add_args(self, *args: str) -> Self:
        self._args.extend(args)
        return self

    def warn(self, message: str) -> Self:
        if message not in self._warnings:
            self._warnings.append(message)
        return self

    def build(self) -> CommandSpec:
        return CommandSpec(command=self.command, args=list(self._args), warnings=list(self._warnings))

"""Helpers for embedding user text in backend regex patterns."""

from __future__ import annotations

import re

# Only the characters both ripgrep and grep -E treat as syntax; escaping
# anything else (e.g. a space) is rejected by some regex engines.
_METACHARACTERS = re.compile(r"[.*+?^${}()|\[\]\\]")


def escape_regex(text: str) -> str:
    """Backslash-escape regex metacharacters in ``text``."""
    return _METACHARACTERS.sub(lambda m: "\\" + m.group(0), text)


def call_site_pattern(symbol: str) -> str:
    """Pattern matching a call of ``symbol``, e.g. ``foo(`` or ``obj.foo (``."""
    return rf"\b{escape_regex(symbol)}\s*\("

"""Code-point safe truncation."""

from __future__ import annotations

ELLIPSIS = "..."


def truncate_code_points(value: str, max_length: int) -> str:
    """Cut ``value`` to at most ``max_length`` code points.

    Python strings index by code point, so slicing never splits a
    multi-byte UTF-8 sequence or an astral character. A truncated value
    ends with ``...`` when there is room for it.
    """
    if max_length < 0:
        msg = "max_length must be >= 0"
        raise ValueError(msg)
    if len(value) <= max_length:
        return value
    if max_length <= len(ELLIPSIS):
        return value[:max_length]
    return value[: max_length - len(ELLIPSIS)] + ELLIPSIS

"""Result-volume checks applied after the global cap."""

from __future__ import annotations

import logging

from codesearch.exceptions import ErrorCode, ScopeError

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
AVERAGE_ITEM_CHARS = 50
AVERAGE_DETAILED_ITEM_CHARS = 150


def estimate_tokens(item_count: int, detailed: bool) -> int:
    per_item = AVERAGE_DETAILED_ITEM_CHARS if detailed else AVERAGE_ITEM_CHARS
    return item_count * per_item // CHARS_PER_TOKEN


def check_result_volume(
    item_count: int,
    *,
    has_explicit_pagination: bool,
    threshold: int,
    suggested_page_size: int,
    item_type: str = "files",
    detailed: bool = False,
    error_code: ErrorCode | None = None,
) -> None:
    """
    Reject an unbounded result that exceeds ``threshold`` items.

    A caller that asked for pagination or a cap explicitly is trusted to
    page through; everyone else gets a ScopeError with a suggested page size.
    ``error_code`` overrides the default paginationRequired code.

    Raises:
        ScopeError: If the result is over threshold and pagination was implicit
    """
    if has_explicit_pagination or item_count <= threshold:
        return

    estimated_tokens = estimate_tokens(item_count, detailed)
    logger.info(
        "Result volume over threshold",
        extra={"item_count": item_count, "threshold": threshold, "item_type": item_type},
    )
    msg = (
        f"Result has {item_count} {item_type}, over the limit of {threshold} "
        "without explicit pagination"
    )
    raise ScopeError(
        msg,
        context={
            "item_count": item_count,
            "threshold": threshold,
            "item_type": item_type,
            "suggested_page_size": suggested_page_size,
            "estimated_tokens": estimated_tokens,
        },
        error_code=error_code,
    )

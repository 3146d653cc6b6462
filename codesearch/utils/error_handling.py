"""
Error formatting helpers for codesearch.

Keeps log records and HTTP error bodies in the same shape.
"""

from __future__ import annotations

from codesearch.exceptions import CodeSearchError


def format_exception_for_response(e: Exception) -> dict[str, object]:
    """
    Format exception for API error response.

    Extracts error message, code and context from codesearch exceptions
    or formats generic exceptions for HTTP responses.

    Args:
        e: Exception to format

    Returns:
        Dictionary with error details suitable for API response

    Example:
        try:
            results = await service.search_many(queries)
        except QueryValidationError as e:
            raise HTTPException(
                status_code=400,
                detail=format_exception_for_response(e)
            )
    """
    error_dict: dict[str, object] = {
        "error": type(e).__name__,
        "message": str(e),
    }

    if isinstance(e, CodeSearchError):
        error_dict["errorCode"] = e.error_code.value
        if e.context:
            error_dict["context"] = e.context

    return error_dict

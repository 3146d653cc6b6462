"""Content search endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from codesearch.dependencies import get_search_service, verify_token
from codesearch.exceptions import QueryValidationError
from codesearch.models.search import (
    BatchSearchRequest,
    BatchSearchResponse,
    CallSiteRequest,
    SearchQuery,
    SearchResult,
)
from codesearch.services.search import SearchService
from codesearch.utils.error_handling import format_exception_for_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/search", tags=["search"], dependencies=[Depends(verify_token)])


@router.post("", response_model=SearchResult, response_model_exclude_none=True)
async def search(
    query: SearchQuery,
    search_service: SearchService = Depends(get_search_service),
) -> SearchResult:
    """
    Search file contents under a workspace root.

    Failures are reported in the result body (status "error", errorCode,
    recoverable, hints) with HTTP 200.
    """
    return await search_service.search(query)


@router.post("/batch", response_model=BatchSearchResponse, response_model_exclude_none=True)
async def search_batch(
    request: BatchSearchRequest,
    search_service: SearchService = Depends(get_search_service),
) -> BatchSearchResponse:
    """Run several independent queries concurrently; results keep request order."""
    try:
        results = await search_service.search_many(request.queries)
    except QueryValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=format_exception_for_response(e),
        ) from e
    return BatchSearchResponse(results=results)


@router.post("/call-sites", response_model=SearchResult, response_model_exclude_none=True)
async def call_sites(
    request: CallSiteRequest,
    search_service: SearchService = Depends(get_search_service),
) -> SearchResult:
    """Find calls of a function or method by name."""
    return await search_service.find_call_sites(request)

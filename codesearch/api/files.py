"""File finder endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from codesearch.dependencies import get_find_files_service, verify_token
from codesearch.models.find import FindFilesQuery, FindFilesResult
from codesearch.services.find_files import FindFilesService

router = APIRouter(prefix="/api/v1/files", tags=["files"], dependencies=[Depends(verify_token)])


@router.post("/find", response_model=FindFilesResult, response_model_exclude_none=True)
async def find_files(
    query: FindFilesQuery,
    find_files_service: FindFilesService = Depends(get_find_files_service),
) -> FindFilesResult:
    """Find files by name, size, time and permission filters."""
    return await find_files_service.find(query)

"""Cheap size estimate of a search target."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from codesearch.models.search import DirectoryStats

if TYPE_CHECKING:
    from codesearch.models.config import SearchLimits

logger = logging.getLogger(__name__)

MAX_SAMPLED_SUBDIRECTORIES = 200
BYTES_PER_MB = 1024 * 1024


def _count_files(path: str) -> int:
    with os.scandir(path) as entries:
        return sum(1 for entry in entries if entry.is_file(follow_symlinks=False))


def estimate_directory_stats(path: str, limits: SearchLimits) -> DirectoryStats:
    """
    Estimate size and file count of ``path`` without a recursive walk.

    Root-level files are measured; each non-hidden subdirectory contributes
    its direct file count times the average file size. Any I/O error yields
    a zeroed, not-large result so the estimate can never block a search.
    """
    try:
        if os.path.isfile(path):
            size = os.stat(path).st_size
            return DirectoryStats(
                estimated_size_mb=size / BYTES_PER_MB,
                estimated_file_count=1,
                is_large=size / BYTES_PER_MB > limits.large_directory_mb,
            )

        total_bytes = 0
        file_count = 0
        subdirectories: list[str] = []
        with os.scandir(path) as entries:
            for entry in entries:
                if entry.is_file(follow_symlinks=False):
                    total_bytes += entry.stat(follow_symlinks=False).st_size
                    file_count += 1
                elif entry.is_dir(follow_symlinks=False) and not entry.name.startswith("."):
                    subdirectories.append(entry.path)

        sampled = subdirectories[:MAX_SAMPLED_SUBDIRECTORIES]
        sampled_files = sum(_count_files(subdirectory) for subdirectory in sampled)
        if sampled and len(subdirectories) > len(sampled):
            sampled_files = round(sampled_files * len(subdirectories) / len(sampled))

        file_count += sampled_files
        total_bytes += sampled_files * limits.average_file_size_bytes
    except OSError as exc:
        logger.debug("Directory estimate failed", extra={"path": path, "error": str(exc)})
        return DirectoryStats()

    size_mb = total_bytes / BYTES_PER_MB
    return DirectoryStats(
        estimated_size_mb=round(size_mb, 2),
        estimated_file_count=file_count,
        is_large=size_mb > limits.large_directory_mb or file_count > limits.large_file_count,
    )

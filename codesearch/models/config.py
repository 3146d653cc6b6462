"""Immutable runtime configuration shared read-only by concurrent queries."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_STDOUT_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_STDERR_BYTES = 1024 * 1024


class SearchLimits(BaseModel):
    """Process-wide resource limits, never overridden per call."""

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)
    max_stdout_bytes: int = Field(DEFAULT_MAX_STDOUT_BYTES, gt=0)
    max_stderr_bytes: int = Field(DEFAULT_MAX_STDERR_BYTES, gt=0)
    files_per_page: int = Field(10, ge=1, le=20)
    matches_per_page: int = Field(10, ge=1, le=100)
    match_content_length: int = Field(200, ge=1, le=800)
    max_unpaginated_files: int = Field(200, ge=1)
    max_unpaginated_matches: int = Field(2000, ge=1)
    max_batch_size: int = Field(10, ge=1)
    large_directory_mb: float = Field(100.0, gt=0)
    large_file_count: int = Field(1000, ge=1)
    average_file_size_bytes: int = Field(10 * 1024, ge=1)


class WorkspaceRoots(BaseModel):
    """Allow-listed search roots.

    Instances are immutable; ``with_root`` returns an extended copy so a
    query context never observes a list changing underneath it.
    """

    model_config = ConfigDict(frozen=True)

    roots: tuple[Path, ...] = ()
    allow_symlinks: bool = False

    @classmethod
    def from_paths(cls, paths: list[str] | list[Path], allow_symlinks: bool = False) -> WorkspaceRoots:
        resolved = tuple(Path(p).expanduser().resolve() for p in paths)
        return cls(roots=resolved, allow_symlinks=allow_symlinks)

    def with_root(self, path: str | Path) -> WorkspaceRoots:
        root = Path(path).expanduser().resolve()
        if root in self.roots:
            return self
        return self.model_copy(update={"roots": (*self.roots, root)})

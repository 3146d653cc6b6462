"""Path validation against the allow-listed workspace roots."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codesearch.models.config import WorkspaceRoots


class PathValidationError(ValueError):
    """Raised when path validation fails."""


@dataclass(frozen=True)
class PathValidationResult:
    is_valid: bool
    sanitized_path: str | None = None
    error: str | None = None


def _containing_root(path: Path, roots: tuple[Path, ...]) -> Path | None:
    for root in roots:
        if path == root or root in path.parents:
            return root
    return None


def validate_path_within_roots(path: str | Path, workspace: WorkspaceRoots) -> Path:
    """Validate that path exists inside one of the workspace roots.

    Relative paths are resolved against the first root.

    Returns:
        Resolved absolute path

    Raises:
        PathValidationError: If path is invalid, missing or outside every root
    """
    if not workspace.roots:
        msg = "No workspace roots are configured"
        raise PathValidationError(msg)

    raw = str(path)
    if "\x00" in raw:
        msg = "Path contains null bytes"
        raise PathValidationError(msg)

    candidate = Path(raw).expanduser()
    if ".." in candidate.parts:
        msg = "Path contains '..' which is not allowed"
        raise PathValidationError(msg)

    full_path = candidate if candidate.is_absolute() else workspace.roots[0] / candidate

    if not workspace.allow_symlinks:
        # Only components below the root matter; the root itself is trusted.
        lexical_root = _containing_root(full_path, workspace.roots)
        if lexical_root is not None:
            current = full_path
            while current != lexical_root:
                if current.is_symlink():
                    msg = f"Symlink in path not allowed: {current}"
                    raise PathValidationError(msg)
                current = current.parent

    try:
        resolved = full_path.resolve(strict=True)
    except FileNotFoundError:
        msg = f"Path does not exist: {full_path}"
        raise PathValidationError(msg) from None
    except (OSError, RuntimeError) as e:
        msg = f"Cannot resolve path: {e}"
        raise PathValidationError(msg) from e

    if _containing_root(resolved, workspace.roots) is None:
        msg = f"Path {resolved} is outside the allowed workspace roots"
        raise PathValidationError(msg)

    return resolved


class PathValidator:
    """Validates query targets against an injected, immutable root set."""

    def __init__(self, workspace: WorkspaceRoots) -> None:
        self.workspace = workspace

    def validate(self, path: str) -> PathValidationResult:
        try:
            resolved = validate_path_within_roots(path, self.workspace)
        except PathValidationError as exc:
            return PathValidationResult(is_valid=False, error=str(exc))
        return PathValidationResult(is_valid=True, sanitized_path=str(resolved))

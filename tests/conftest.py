import json
import os
import tempfile
from pathlib import Path

import pytest

# Set up minimal test environment BEFORE any imports from codesearch
# This must happen before pytest collects tests
_tmp_dir = tempfile.TemporaryDirectory(prefix="pytest_config_")
_config_file = Path(_tmp_dir.name) / "config.yaml"
_config_file.write_text(
    f"""
auth:
  token: test-token-123

workspace:
  roots:
    - {_tmp_dir.name}

logging:
  level: DEBUG
  json: false
"""
)
os.environ["CONFIG_PATH"] = str(_config_file)

from codesearch.models.config import SearchLimits, WorkspaceRoots  # noqa: E402
from codesearch.utils.exec import CommandAvailability, ExecResult  # noqa: E402
from codesearch.utils.path_validation import PathValidator  # noqa: E402


class FakeRunner:
    """Stands in for run_command: records calls, returns a scripted result."""

    def __init__(self, result: ExecResult | None = None, error: Exception | None = None) -> None:
        self.result = result or ExecResult(stdout="", stderr="", exit_code=1, duration_ms=1)
        self.error = error
        self.calls: list[tuple[str, list[str], dict]] = []

    async def __call__(self, command: str, args: list[str], **kwargs) -> ExecResult:
        self.calls.append((command, list(args), kwargs))
        if self.error is not None:
            raise self.error
        return self.result

    @property
    def last_args(self) -> list[str]:
        return self.calls[-1][1]


def make_probe(*available: str):
    """Availability probe reporting only ``available`` executables as present."""

    def probe(command: str) -> CommandAvailability:
        present = command in available
        return CommandAvailability(
            command=command,
            available=present,
            path=f"/usr/bin/{command}" if present else None,
        )

    return probe


def rg_match(path: str, line_number: int, text: str, start: int, end: int, offset: int = 0) -> dict:
    return {
        "type": "match",
        "data": {
            "path": {"text": path},
            "lines": {"text": text + "\n"},
            "line_number": line_number,
            "absolute_offset": offset,
            "submatches": [{"match": {"text": text[start:end]}, "start": start, "end": end}],
        },
    }


def rg_context(path: str, line_number: int, text: str, offset: int = 0) -> dict:
    return {
        "type": "context",
        "data": {
            "path": {"text": path},
            "lines": {"text": text + "\n"},
            "line_number": line_number,
            "absolute_offset": offset,
            "submatches": [],
        },
    }


def rg_output(*events: dict) -> str:
    return "\n".join(json.dumps(event) for event in events) + "\n"


@pytest.fixture
def workspace_dir() -> Path:
    """Temporary workspace root with a small source tree."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # Resolve tmpdir to handle macOS /var -> /private/var symlink
        root = Path(tmpdir).resolve()
        (root / "src").mkdir()
        (root / "src" / "app.py").write_text("def handler(event):\n    return process(event)\n")
        (root / "src" / "util.py").write_text("def process(event):\n    return event\n")
        (root / "README.md").write_text("# demo\n")
        yield root


@pytest.fixture
def workspace(workspace_dir: Path) -> WorkspaceRoots:
    return WorkspaceRoots.from_paths([workspace_dir])


@pytest.fixture
def limits() -> SearchLimits:
    return SearchLimits()


@pytest.fixture
def path_validator(workspace: WorkspaceRoots) -> PathValidator:
    return PathValidator(workspace)


@pytest.fixture
def auth_headers():
    """Valid authorization headers."""
    return {"Authorization": "Bearer test-token-123"}

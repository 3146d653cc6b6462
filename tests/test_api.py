"""API tests for search, file finder and health endpoints."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import FakeRunner, make_probe, rg_match, rg_output
from fastapi import FastAPI
from fastapi.testclient import TestClient

from codesearch.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from codesearch.models.config import SearchLimits, WorkspaceRoots
from codesearch.services.backends import BackendSelector
from codesearch.services.container import init_container
from codesearch.services.find_files import FindFilesService
from codesearch.services.health import HealthCheckService
from codesearch.services.search import SearchService
from codesearch.utils.exec import ExecResult
from codesearch.utils.path_validation import PathValidator


@pytest.fixture
def search_runner(workspace_dir: Path) -> FakeRunner:
    app_py = str(workspace_dir / "src" / "app.py")
    stdout = rg_output(rg_match(app_py, 1, "def handler(event):", 4, 11))
    return FakeRunner(ExecResult(stdout=stdout, stderr="", exit_code=0, duration_ms=2))


@pytest.fixture
def api_client(workspace: WorkspaceRoots, search_runner: FakeRunner):
    """Create a TestClient with the codesearch routers and stubbed backends."""
    from codesearch.api import files, health, search

    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health.router)
    app.include_router(search.router)
    app.include_router(files.router)

    limits = SearchLimits(max_batch_size=3)
    validator = PathValidator(workspace)
    probe = make_probe("rg", "grep", "find")
    init_container(
        search_service=SearchService(
            limits=limits,
            path_validator=validator,
            backend_selector=BackendSelector(probe),
            runner=search_runner,
            platform="linux",
        ),
        find_files_service=FindFilesService(
            limits=limits,
            path_validator=validator,
            runner=FakeRunner(ExecResult(stdout="", stderr="", exit_code=0, duration_ms=1)),
            probe=probe,
            platform="linux",
        ),
        health_service=HealthCheckService(workspace=workspace, probe=probe, version="test-version"),
    )

    with TestClient(app) as client:
        yield client


def test_search_requires_auth(api_client: TestClient, workspace_dir: Path) -> None:
    response = api_client.post("/api/v1/search", json={"pattern": "x", "path": str(workspace_dir)})
    assert response.status_code in (401, 403)


def test_search_rejects_wrong_token(api_client: TestClient, workspace_dir: Path) -> None:
    response = api_client.post(
        "/api/v1/search",
        json={"pattern": "x", "path": str(workspace_dir)},
        headers={"Authorization": "Bearer wrong"},
    )
    assert response.status_code == 401


def test_search_returns_camel_case_result(
    api_client: TestClient,
    workspace_dir: Path,
    auth_headers: dict[str, str],
) -> None:
    response = api_client.post(
        "/api/v1/search",
        json={"pattern": "handler", "path": str(workspace_dir), "contextLines": 1},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "hasResults"
    assert body["totalFiles"] == 1
    assert body["searchEngine"] == "rg"
    match = body["files"][0]["matches"][0]
    assert match["location"] == {"byteOffset": 4, "byteLength": 7, "charOffset": 4, "charLength": 7}
    assert "error" not in body
    assert REQUEST_ID_HEADER in response.headers


def test_search_error_is_200_with_error_body(
    api_client: TestClient,
    auth_headers: dict[str, str],
) -> None:
    response = api_client.post(
        "/api/v1/search",
        json={"pattern": "x", "path": "/definitely/not/here"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "error"
    assert body["errorCode"] == "pathValidationFailed"
    assert body["recoverable"] is True


def test_search_schema_validation(api_client: TestClient, auth_headers: dict[str, str]) -> None:
    response = api_client.post("/api/v1/search", json={"pattern": ""}, headers=auth_headers)
    assert response.status_code == 422


def test_batch_search(api_client: TestClient, workspace_dir: Path, auth_headers: dict[str, str]) -> None:
    response = api_client.post(
        "/api/v1/search/batch",
        json={
            "queries": [
                {"pattern": "handler", "path": str(workspace_dir)},
                {"pattern": "handler", "path": "/nope"},
            ]
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    statuses = [result["status"] for result in response.json()["results"]]
    assert statuses == ["hasResults", "error"]


def test_batch_over_service_limit_is_400(
    api_client: TestClient,
    workspace_dir: Path,
    auth_headers: dict[str, str],
) -> None:
    queries = [{"pattern": f"p{i}", "path": str(workspace_dir)} for i in range(4)]

    response = api_client.post("/api/v1/search/batch", json={"queries": queries}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["errorCode"] == "validationFailed"


def test_call_sites(
    api_client: TestClient,
    workspace_dir: Path,
    auth_headers: dict[str, str],
    search_runner: FakeRunner,
) -> None:
    response = api_client.post(
        "/api/v1/search/call-sites",
        json={"symbol": "handler", "path": str(workspace_dir), "excludeDir": ["dist"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert search_runner.last_args[-2] == r"\bhandler\s*\("
    assert "!dist/" in search_runner.last_args


def test_find_files_empty(api_client: TestClient, workspace_dir: Path, auth_headers: dict[str, str]) -> None:
    response = api_client.post(
        "/api/v1/files/find",
        json={"path": str(workspace_dir), "name": "*.nothing"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "empty"


def test_health_endpoints(api_client: TestClient, auth_headers: dict[str, str]) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}

    ready = api_client.get("/health/ready")
    assert ready.status_code == 200
    assert ready.json()["status"] == "healthy"

    assert api_client.get("/health/detailed").status_code in (401, 403)
    detailed = api_client.get("/health/detailed", headers=auth_headers)
    assert detailed.status_code == 200
    assert detailed.json()["version"] == "test-version"

"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from codesearch.config import build_settings, expand_env_vars, flatten_config, load_config_from_yaml
from codesearch.exceptions import ConfigurationError


def write_config(tmp_path: Path, body: str) -> str:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(body)
    return str(config_file)


def test_expand_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEARCH_TOKEN", "s3cret")

    expanded = expand_env_vars("token: ${SEARCH_TOKEN}\n# note: ${NOT_SET_ANYWHERE}\n")

    assert expanded == "token: s3cret\n# note: ${NOT_SET_ANYWHERE}\n"


def test_expand_env_vars_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
    with pytest.raises(KeyError, match="NOT_SET_ANYWHERE"):
        expand_env_vars("token: ${NOT_SET_ANYWHERE}")


def test_load_config_uses_config_path_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_config(tmp_path, "auth:\n  token: abc\n")
    monkeypatch.setenv("CONFIG_PATH", path)

    assert load_config_from_yaml() == {"auth": {"token": "abc"}}


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="mapping"):
        load_config_from_yaml(write_config(tmp_path, "- just\n- a list\n"))


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config_from_yaml(str(tmp_path / "absent.yaml"))


def test_flatten_config_ignores_unknown_sections() -> None:
    flat = flatten_config(
        {
            "auth": {"token": "t"},
            "search": {"timeout_seconds": 5, "unknown": 1},
            "other": {"x": 1},
        }
    )

    assert flat == {"auth_token": "t", "search_timeout_seconds": 5}


def test_build_settings_full(tmp_path: Path) -> None:
    root = tmp_path / "code"
    root.mkdir()
    path = write_config(
        tmp_path,
        f"""
auth:
  token: abc
workspace:
  roots: [{root}]
  allow_symlinks: true
search:
  timeout_seconds: 5
  max_stdout_bytes: 2048
  files_per_page: 15
estimator:
  large_file_count: 50
logging:
  level: WARNING
  json: false
server:
  port: 9000
""",
    )

    settings = build_settings(path)

    limits = settings.search_limits()
    assert limits.timeout_seconds == 5
    assert limits.max_stdout_bytes == 2048
    assert limits.max_stderr_bytes == 1024 * 1024
    assert limits.files_per_page == 15
    assert limits.large_file_count == 50
    workspace = settings.workspace()
    assert workspace.roots == (root.resolve(),)
    assert workspace.allow_symlinks is True
    assert settings.log_level == "WARNING"
    assert settings.log_json is False
    assert settings.server_port == 9000


def test_build_settings_requires_token(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AUTH_TOKEN", raising=False)
    path = write_config(tmp_path, "workspace:\n  roots: [/tmp]\n")

    with pytest.raises(ConfigurationError, match="validation error"):
        build_settings(path)


def test_build_settings_rejects_empty_roots(tmp_path: Path) -> None:
    path = write_config(tmp_path, "auth:\n  token: abc\nworkspace:\n  roots: []\n")

    with pytest.raises(ConfigurationError):
        build_settings(path)


def test_build_settings_wraps_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        build_settings(str(tmp_path / "absent.yaml"))

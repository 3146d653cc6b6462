from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from codesearch.exceptions import ConfigurationError
from codesearch.models.config import (
    DEFAULT_MAX_STDERR_BYTES,
    DEFAULT_MAX_STDOUT_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    SearchLimits,
    WorkspaceRoots,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def expand_env_vars(config_str: str) -> str:
    """
    Expand environment variables in the format ${VAR_NAME} within a YAML string.
    Skips expansion in YAML comments (lines starting with #).

    Raises:
        KeyError: If a referenced environment variable is not set
    """

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        try:
            return os.environ[var_name]
        except KeyError:
            msg = f"Environment variable '{var_name}' referenced in config.yaml but not set"
            raise KeyError(msg) from None

    lines = []
    for line in config_str.split("\n"):
        if line.lstrip().startswith("#"):
            lines.append(line)
        else:
            lines.append(_ENV_VAR_PATTERN.sub(replace_var, line))

    return "\n".join(lines)


def load_config_from_yaml(config_path: str | None = None) -> dict:
    """
    Load YAML configuration file and expand environment variables.

    Args:
        config_path: Path to config.yaml file. If None, uses CONFIG_PATH environment variable,
                     falling back to ./config.yaml.

    Raises:
        FileNotFoundError: If config file is not found
        ValueError: If the file is not valid YAML or references unset variables
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    config_file = Path(config_path)
    if not config_file.exists():
        msg = (
            f"Configuration file not found at {config_path}\n"
            f"Use CONFIG_PATH environment variable to override location."
        )
        raise FileNotFoundError(msg)

    config_str = config_file.read_text()

    try:
        expanded_config = expand_env_vars(config_str)
    except KeyError as e:
        msg = f"Error expanding environment variables in config.yaml: {e}"
        raise ValueError(msg) from None

    try:
        config_dict = yaml.safe_load(expanded_config)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in config.yaml: {e}"
        raise ValueError(msg) from None

    if not isinstance(config_dict, dict):
        msg = "config.yaml must contain a YAML mapping/dictionary at root level"
        raise ValueError(msg)

    return config_dict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
    )

    # Security
    auth_token: str  # Required

    # Workspace
    workspace_roots: list[str] = Field(default_factory=lambda: [os.getcwd()])
    workspace_allow_symlinks: bool = False

    # Search resource limits
    search_timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        description="Hard-kill bound for a single backend process",
    )
    search_max_stdout_bytes: int = DEFAULT_MAX_STDOUT_BYTES
    search_max_stderr_bytes: int = DEFAULT_MAX_STDERR_BYTES
    search_files_per_page: int = 10
    search_matches_per_page: int = 10
    search_match_content_length: int = 200
    search_max_unpaginated_files: int = 200
    search_max_unpaginated_matches: int = 2000
    search_max_batch_size: int = 10

    # Directory size estimator
    estimator_large_directory_mb: float = 100.0
    estimator_large_file_count: int = 1000
    estimator_average_file_size_bytes: int = 10 * 1024

    # Observability
    log_level: str = "INFO"
    log_json: bool = True

    # Server
    server_host: str = "127.0.0.1"
    server_port: int = Field(default=8000, ge=1, le=65535)

    @field_validator("workspace_roots", mode="after")
    @classmethod
    def validate_workspace_roots(cls, v: list[str]) -> list[str]:
        if not v:
            msg = "workspace.roots must list at least one directory"
            raise ValueError(msg)
        return v

    def search_limits(self) -> SearchLimits:
        return SearchLimits(
            timeout_seconds=self.search_timeout_seconds,
            max_stdout_bytes=self.search_max_stdout_bytes,
            max_stderr_bytes=self.search_max_stderr_bytes,
            files_per_page=self.search_files_per_page,
            matches_per_page=self.search_matches_per_page,
            match_content_length=self.search_match_content_length,
            max_unpaginated_files=self.search_max_unpaginated_files,
            max_unpaginated_matches=self.search_max_unpaginated_matches,
            max_batch_size=self.search_max_batch_size,
            large_directory_mb=self.estimator_large_directory_mb,
            large_file_count=self.estimator_large_file_count,
            average_file_size_bytes=self.estimator_average_file_size_bytes,
        )

    def workspace(self) -> WorkspaceRoots:
        return WorkspaceRoots.from_paths(
            self.workspace_roots,
            allow_symlinks=self.workspace_allow_symlinks,
        )


# YAML section -> {yaml key: settings field}
_SECTION_FIELDS: dict[str, dict[str, str]] = {
    "auth": {"token": "auth_token"},
    "workspace": {
        "roots": "workspace_roots",
        "allow_symlinks": "workspace_allow_symlinks",
    },
    "search": {
        "timeout_seconds": "search_timeout_seconds",
        "max_stdout_bytes": "search_max_stdout_bytes",
        "max_stderr_bytes": "search_max_stderr_bytes",
        "files_per_page": "search_files_per_page",
        "matches_per_page": "search_matches_per_page",
        "match_content_length": "search_match_content_length",
        "max_unpaginated_files": "search_max_unpaginated_files",
        "max_unpaginated_matches": "search_max_unpaginated_matches",
        "max_batch_size": "search_max_batch_size",
    },
    "estimator": {
        "large_directory_mb": "estimator_large_directory_mb",
        "large_file_count": "estimator_large_file_count",
        "average_file_size_bytes": "estimator_average_file_size_bytes",
    },
    "logging": {"level": "log_level", "json": "log_json"},
    "server": {"host": "server_host", "port": "server_port"},
}


def flatten_config(config_dict: dict) -> dict[str, object]:
    """Flatten the nested YAML structure into Settings field names."""
    flat_config: dict[str, object] = {}
    for section, fields in _SECTION_FIELDS.items():
        values = config_dict.get(section)
        if not isinstance(values, dict):
            continue
        for yaml_key, field_name in fields.items():
            if yaml_key in values:
                flat_config[field_name] = values[yaml_key]
    return flat_config


def build_settings(config_path: str | None = None) -> Settings:
    """
    Load settings from YAML config file with environment variable expansion.

    Raises:
        ConfigurationError: If the file is missing, unreadable or fails validation
    """
    try:
        config_dict = load_config_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise ConfigurationError(str(e), context={"config_path": config_path}) from e

    try:
        return Settings(**flatten_config(config_dict))
    except ValidationError as e:
        logger.exception("Configuration validation error", extra={"config_path": config_path})
        msg = f"Invalid configuration: {e.error_count()} validation error(s)"
        raise ConfigurationError(msg, context={"errors": e.errors(include_url=False)}) from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once on first use."""
    return build_settings()

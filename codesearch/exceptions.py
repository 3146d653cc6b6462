"""
Custom exception classes with context for codesearch.

All exceptions inherit from CodeSearchError and carry an error code plus
a context dictionary. The query boundary converts every one of them into
a structured error result; none of them reaches an API caller as an
unhandled exception.
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """Broad error families used for reporting."""

    VALIDATION = "validation"
    SCOPE = "scope"
    BACKEND = "backend"
    EXECUTION = "execution"
    TIMEOUT = "timeout"
    RESOURCE = "resource"


class ErrorCode(str, Enum):
    """Machine-readable error codes reported in error results."""

    VALIDATION_FAILED = "validationFailed"
    PATH_VALIDATION_FAILED = "pathValidationFailed"
    PAGINATION_REQUIRED = "paginationRequired"
    PATTERN_TOO_BROAD = "patternTooBroad"
    COMMAND_NOT_AVAILABLE = "commandNotAvailable"
    COMMAND_EXECUTION_FAILED = "commandExecutionFailed"
    COMMAND_TIMEOUT = "commandTimeout"
    OUTPUT_TOO_LARGE = "outputTooLarge"
    QUERY_EXECUTION_FAILED = "queryExecutionFailed"

    @property
    def category(self) -> ErrorCategory:
        return _ERROR_METADATA[self][0]

    @property
    def recoverable(self) -> bool:
        return _ERROR_METADATA[self][1]


_ERROR_METADATA: dict[ErrorCode, tuple[ErrorCategory, bool]] = {
    ErrorCode.VALIDATION_FAILED: (ErrorCategory.VALIDATION, True),
    ErrorCode.PATH_VALIDATION_FAILED: (ErrorCategory.VALIDATION, True),
    ErrorCode.PAGINATION_REQUIRED: (ErrorCategory.SCOPE, True),
    ErrorCode.PATTERN_TOO_BROAD: (ErrorCategory.SCOPE, True),
    ErrorCode.COMMAND_NOT_AVAILABLE: (ErrorCategory.BACKEND, False),
    ErrorCode.COMMAND_EXECUTION_FAILED: (ErrorCategory.EXECUTION, False),
    ErrorCode.COMMAND_TIMEOUT: (ErrorCategory.TIMEOUT, True),
    ErrorCode.OUTPUT_TOO_LARGE: (ErrorCategory.RESOURCE, True),
    ErrorCode.QUERY_EXECUTION_FAILED: (ErrorCategory.EXECUTION, False),
}


class CodeSearchError(Exception):
    """
    Base exception for codesearch.

    Attributes:
        message: Human-readable error message
        context: Dictionary with additional context for logging/debugging
        error_code: Code reported to callers in the error result
    """

    error_code: ErrorCode = ErrorCode.QUERY_EXECUTION_FAILED

    def __init__(
        self,
        message: str,
        context: dict[str, object] | None = None,
        error_code: ErrorCode | None = None,
    ):
        """
        Initialize exception with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dictionary with contextual information
            error_code: Optional override of the class-level error code
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        if error_code is not None:
            self.error_code = error_code


class QueryValidationError(CodeSearchError):
    """
    Query is malformed or uses conflicting flags.

    Reported before any process is spawned.

    Example:
        raise QueryValidationError(
            "fixedString and perlRegex are mutually exclusive",
            context={"fields": ["fixed_string", "perl_regex"]}
        )
    """

    error_code = ErrorCode.VALIDATION_FAILED


class PathValidationFailedError(CodeSearchError):
    """
    Target path was rejected by the workspace path validator.

    Example:
        raise PathValidationFailedError(
            "Path is outside allowed workspace roots",
            context={"path": "/etc", "roots": ["/work"]}
        )
    """

    error_code = ErrorCode.PATH_VALIDATION_FAILED


class ScopeError(CodeSearchError):
    """
    Result volume would exceed the configured thresholds.

    Example:
        raise ScopeError(
            "Search matched 1843 files; pagination is required",
            context={"item_count": 1843, "threshold": 200}
        )
    """

    error_code = ErrorCode.PAGINATION_REQUIRED


class BackendUnavailableError(CodeSearchError):
    """
    No usable search backend, or a requested feature has no fallback.

    Example:
        raise BackendUnavailableError(
            "multiline requires ripgrep; install ripgrep to use it",
            context={"capability": "multiline", "backend": "grep"}
        )
    """

    error_code = ErrorCode.COMMAND_NOT_AVAILABLE


class CommandExecutionError(CodeSearchError):
    """
    Backend process failed to spawn or exited with a real failure.

    Example:
        raise CommandExecutionError(
            "rg exited with code 2",
            context={"exit_code": 2, "stderr": "regex parse error"}
        )
    """

    error_code = ErrorCode.COMMAND_EXECUTION_FAILED


class CommandTimeoutError(CodeSearchError):
    """
    Backend process was hard-killed after the configured time bound.

    Example:
        raise CommandTimeoutError(
            "Command timeout after 30000ms",
            context={"timeout_seconds": 30, "command": "rg"}
        )
    """

    error_code = ErrorCode.COMMAND_TIMEOUT


class OutputLimitExceededError(CodeSearchError):
    """
    Backend output breached its byte ceiling and the process was killed.

    Example:
        raise OutputLimitExceededError(
            "Output size limit exceeded",
            context={"stream": "stdout", "limit_bytes": 10485760}
        )
    """

    error_code = ErrorCode.OUTPUT_TOO_LARGE


class ConfigurationError(CodeSearchError):
    """
    Configuration error.

    Raised when configuration loading, validation, or parsing fails.

    Example:
        raise ConfigurationError(
            "Workspace root does not exist",
            context={"root": "/srv/code"}
        )
    """

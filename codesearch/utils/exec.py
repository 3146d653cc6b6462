"""Subprocess execution with a hard timeout and per-stream output ceilings."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import time
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, field

from codesearch.exceptions import (
    BackendUnavailableError,
    CommandExecutionError,
    CommandTimeoutError,
    OutputLimitExceededError,
    QueryValidationError,
)
from codesearch.models.config import (
    DEFAULT_MAX_STDERR_BYTES,
    DEFAULT_MAX_STDOUT_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
MAX_ARG_LENGTH = 1000
ENV_ALLOWLIST = (
    "PATH",
    "HOME",
    "LANG",
    "LC_ALL",
    "TMPDIR",
    "TMP",
    "TEMP",
    "SYSTEMROOT",
    "WINDIR",
    "COMSPEC",
    "PATHEXT",
)


@dataclass(frozen=True)
class ExecResult:
    """Captured output of a finished process.

    ``exit_code`` is None when the process was terminated by a signal we
    did not send.
    """

    stdout: str
    stderr: str
    exit_code: int | None
    duration_ms: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class CommandAvailability:
    command: str
    available: bool
    path: str | None = None


def check_command_availability(command: str) -> CommandAvailability:
    """Probe whether an executable is on PATH."""
    resolved = shutil.which(command)
    return CommandAvailability(command=command, available=resolved is not None, path=resolved)


def build_child_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment for backend processes, restricted to the allow-list."""
    source = os.environ if environ is None else environ
    return {name: source[name] for name in ENV_ALLOWLIST if name in source}


def validate_args(args: Collection[str], allow_long: Collection[str] = ()) -> None:
    """Reject arguments that could not have come from a well-formed query."""
    for arg in args:
        if "\x00" in arg:
            msg = "Command argument contains null bytes"
            raise QueryValidationError(msg, context={"reason": "null_byte"})
        if len(arg) > MAX_ARG_LENGTH and arg not in allow_long:
            msg = f"Command argument exceeds {MAX_ARG_LENGTH} characters"
            raise QueryValidationError(
                msg,
                context={"reason": "argument_too_long", "length": len(arg)},
            )


@dataclass
class _StreamCollector:
    name: str
    limit: int
    buffer: bytearray = field(default_factory=bytearray)
    exceeded: bool = False


async def _drain(
    stream: asyncio.StreamReader,
    collector: _StreamCollector,
    on_exceeded: Callable[[], None],
) -> None:
    # Keep reading after a breach so the pipe reaches EOF and wait() returns.
    while True:
        chunk = await stream.read(CHUNK_SIZE)
        if not chunk:
            return
        if collector.exceeded:
            continue
        collector.buffer.extend(chunk)
        if len(collector.buffer) > collector.limit:
            collector.exceeded = True
            on_exceeded()


async def run_command(
    command: str,
    args: list[str],
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_stdout_bytes: int = DEFAULT_MAX_STDOUT_BYTES,
    max_stderr_bytes: int = DEFAULT_MAX_STDERR_BYTES,
    cwd: str | None = None,
    allow_long_args: Collection[str] = (),
) -> ExecResult:
    """
    Run ``command`` with ``args`` and capture its output.

    Exit code 1 is returned like any other exit status; callers decide
    what it means for their backend.

    Raises:
        QueryValidationError: If an argument is malformed
        BackendUnavailableError: If the executable cannot be found
        CommandExecutionError: If the process cannot be spawned
        CommandTimeoutError: If the process outlives ``timeout_seconds``
        OutputLimitExceededError: If stdout or stderr exceeds its ceiling
    """
    validate_args(args, allow_long=allow_long_args)

    try:
        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=build_child_env(),
        )
    except FileNotFoundError as exc:
        msg = f"{command} is not available"
        raise BackendUnavailableError(msg, context={"command": command}) from exc
    except OSError as exc:
        msg = f"Failed to start {command}: {exc}"
        raise CommandExecutionError(msg, context={"command": command}) from exc

    stdout = _StreamCollector("stdout", max_stdout_bytes)
    stderr = _StreamCollector("stderr", max_stderr_bytes)
    killed = False

    def kill() -> None:
        nonlocal killed
        if killed:
            return
        killed = True
        try:
            process.kill()
        except ProcessLookupError:
            # Already exited; nothing left to report.
            pass

    start = time.monotonic()
    assert process.stdout is not None and process.stderr is not None

    try:
        await asyncio.wait_for(
            asyncio.gather(
                _drain(process.stdout, stdout, kill),
                _drain(process.stderr, stderr, kill),
                process.wait(),
            ),
            timeout=timeout_seconds,
        )
    except TimeoutError as exc:
        kill()
        await process.wait()
        timeout_ms = int(timeout_seconds * 1000)
        logger.warning(
            "Command killed after timeout",
            extra={"command": command, "timeout_ms": timeout_ms, "pid": process.pid},
        )
        msg = f"Command timeout after {timeout_ms}ms"
        raise CommandTimeoutError(
            msg,
            context={
                "command": command,
                "timeout_seconds": timeout_seconds,
                "pid": process.pid,
                "killed": True,
            },
        ) from exc

    duration_ms = int((time.monotonic() - start) * 1000)

    for collector in (stdout, stderr):
        if collector.exceeded:
            logger.warning(
                "Command killed after output limit",
                extra={
                    "command": command,
                    "stream": collector.name,
                    "limit_bytes": collector.limit,
                    "pid": process.pid,
                },
            )
            msg = f"Output size limit exceeded ({collector.name} > {collector.limit} bytes)"
            raise OutputLimitExceededError(
                msg,
                context={
                    "command": command,
                    "stream": collector.name,
                    "limit_bytes": collector.limit,
                    "pid": process.pid,
                    "killed": True,
                },
            )

    returncode = process.returncode
    exit_code = returncode if returncode is not None and returncode >= 0 else None

    return ExecResult(
        stdout=stdout.buffer.decode("utf-8", errors="replace"),
        stderr=stderr.buffer.decode("utf-8", errors="replace"),
        exit_code=exit_code,
        duration_ms=duration_ms,
    )

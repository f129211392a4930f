"""Bounded execution of git subprocesses."""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path
from typing import IO, Callable, List, Mapping, Optional, Sequence

from ..logging import get_logger
from ..models import STATUS_CLEAN, STATUS_DIRTY, STATUS_UNKNOWN, VcsQueryResult

LOG_ARGS: Sequence[str] = (
    "--no-pager",
    "log",
    "-1",
    "--format=format:%h %H %cd",
    "--date=iso",
    "--no-color",
    "--encoding=utf8",
)
STATUS_ARGS: Sequence[str] = ("status", "--porcelain")

TIME_ZONE_ENV_VAR = "TZ"
UTC_TIME_ZONE = "UTC"

DEFAULT_TIMEOUT_SECONDS = 30.0
STDOUT_LIMIT = 64 * 1024
STDERR_LIMIT = 1536

Runner = Callable[..., VcsQueryResult]


class GitTimeoutError(RuntimeError):
    """Raised when a git invocation exceeds its time ceiling."""

    def __init__(self, command: Sequence[str], timeout: float) -> None:
        super().__init__(
            f"Timed out after {timeout:g} seconds waiting for '{' '.join(command)}'"
        )
        self.command = tuple(command)
        self.timeout = timeout


def _read_capped(handle: IO[bytes], limit: int) -> bytes:
    handle.seek(0)
    return handle.read(limit)


def run_process(
    args: Sequence[str],
    *,
    cwd: Path,
    env: Optional[Mapping[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    stdout_limit: int = STDOUT_LIMIT,
    stderr_limit: int = STDERR_LIMIT,
) -> VcsQueryResult:
    """Run ``args`` in ``cwd`` and wait at most ``timeout`` seconds.

    Output is spooled to temporary files rather than pipes, so a chatty
    process can neither block on a full pipe nor grow memory; only the first
    ``stdout_limit`` / ``stderr_limit`` bytes are kept.
    """
    command = [str(arg) for arg in args]
    with tempfile.TemporaryFile() as out, tempfile.TemporaryFile() as err:
        proc = subprocess.Popen(
            command,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=out,
            stderr=err,
        )
        try:
            exit_code = proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.wait()
            raise GitTimeoutError(command, timeout) from exc
        return VcsQueryResult(
            command=tuple(command),
            exit_code=exit_code,
            stdout=_read_capped(out, stdout_limit),
            stderr=_read_capped(err, stderr_limit),
        )


class GitClient:
    """Runs the log and status queries against a checkout."""

    def __init__(
        self,
        runner: Runner | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._runner = runner or run_process
        self.timeout = timeout
        self.logger = get_logger("git")

    def run(
        self,
        binary: Path,
        repo_root: Path,
        args: Sequence[str],
        *,
        env_overrides: Optional[Mapping[str, str]] = None,
    ) -> VcsQueryResult:
        """Invoke ``binary`` with ``args`` inside ``repo_root``."""
        env = os.environ.copy()
        if env_overrides:
            env.update(env_overrides)
        command = [str(binary), *args]
        self.logger.debug("Running %s in %s", " ".join(command), repo_root)
        return self._runner(command, cwd=repo_root, env=env, timeout=self.timeout)

    def log_line(self, binary: Path, repo_root: Path, errors: List[str]) -> Optional[str]:
        """Return the one-line log summary of HEAD, or ``None`` on failure."""
        try:
            result = self.run(
                binary,
                repo_root,
                LOG_ARGS,
                env_overrides={TIME_ZONE_ENV_VAR: UTC_TIME_ZONE},
            )
        except GitTimeoutError as exc:
            errors.append(str(exc))
            return None
        if not result.ok:
            errors.append(_failure_message(result))
            return None
        # The log format is requested as UTF-8 explicitly.
        return result.stdout.decode("utf-8", errors="replace")

    def repo_status(self, binary: Path, repo_root: Path, errors: List[str]) -> str:
        """Classify the working tree as clean, dirty or unknown."""
        try:
            result = self.run(binary, repo_root, STATUS_ARGS)
        except GitTimeoutError as exc:
            errors.append(str(exc))
            return STATUS_UNKNOWN
        return status_from_result(result, errors)


def status_from_result(result: VcsQueryResult, errors: List[str]) -> str:
    """Map a ``status --porcelain`` result to a repository status."""
    if not result.ok:
        errors.append(_failure_message(result))
        return STATUS_UNKNOWN
    if result.stdout:
        return STATUS_DIRTY
    return STATUS_CLEAN


def _failure_message(result: VcsQueryResult) -> str:
    stderr = result.stderr.decode(errors="replace")
    return (
        f"Process '{result.command_line()}' exited with code {result.exit_code}. "
        f"Error output:\n{stderr}"
    )


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "GitClient",
    "GitTimeoutError",
    "LOG_ARGS",
    "STATUS_ARGS",
    "STDERR_LIMIT",
    "STDOUT_LIMIT",
    "run_process",
    "status_from_result",
]

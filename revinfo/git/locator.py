"""Locate an executable git binary without running anything."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

GIT_BINARY_NAME = "git"
_EXECUTABLE_SUFFIX = ".exe"

# Checked ahead of PATH by the standalone ``revinfo properties`` command.
DEFAULT_SEARCH_PATHS: Sequence[str] = ("/usr/bin", "/usr/local/bin", "/opt/local/bin")


def system_path(path_env: Optional[str] = None) -> List[Path]:
    """Return existing directories listed in ``PATH``, in order, without duplicates."""
    raw = os.environ.get("PATH", "") if path_env is None else path_env
    result: List[Path] = []
    for entry in raw.split(os.pathsep):
        if not entry:
            continue
        candidate = Path(entry)
        if candidate.is_dir() and candidate not in result:
            result.append(candidate)
    return result


def search_path(
    preferred_dirs: Iterable[Path | str] | None = None,
    path_env: Optional[str] = None,
) -> List[Path]:
    """Preferred directories first, then ``PATH``; first occurrence wins."""
    ordered: List[Path] = []
    for directory in list(preferred_dirs or ()) + list(system_path(path_env)):
        candidate = Path(directory)
        if candidate not in ordered:
            ordered.append(candidate)
    return ordered


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def find_git_binary(
    preferred_dirs: Iterable[Path | str] | None = None,
    path_env: Optional[str] = None,
) -> Optional[Path]:
    """Return the first executable ``git`` (or ``git.exe``) on the search path.

    Directories that do not exist are skipped. Returns ``None`` when no
    candidate is executable.
    """
    for directory in search_path(preferred_dirs, path_env):
        if not directory.is_dir():
            continue
        binary = directory / GIT_BINARY_NAME
        if not binary.exists():
            binary = directory / (GIT_BINARY_NAME + _EXECUTABLE_SUFFIX)
        if binary.exists() and _is_executable(binary):
            return binary
    return None


__all__ = [
    "DEFAULT_SEARCH_PATHS",
    "GIT_BINARY_NAME",
    "find_git_binary",
    "search_path",
    "system_path",
]

"""Infer a default package for the generated module from source roots."""

from __future__ import annotations

import keyword
import os
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Set

from .logging import get_logger

DEFAULT_EXTENSIONS: Sequence[str] = ("py",)

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
}

_logger = get_logger("inference")


def file_extension(name: str) -> Optional[str]:
    """Extension without the dot; ``None`` for dotfiles and names ending in a dot."""
    index = name.rfind(".")
    if 0 < index < len(name) - 1:
        return name[index + 1 :]
    return None


def _is_package_dir(name: str) -> bool:
    return (
        name not in _EXCLUDED_DIRS and name.isidentifier() and not keyword.iskeyword(name)
    )


def _iter_source_dirs(root: Path, extensions: Set[str]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        # Only directories usable as package names can hold the generated module.
        dirnames[:] = sorted(name for name in dirnames if _is_package_dir(name))
        if any(file_extension(name) in extensions for name in filenames):
            yield Path(dirpath)


def package_names(root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> Set[str]:
    """Dotted names of every directory under ``root`` that holds a source file.

    The root itself is not a package, so files placed directly in it are
    ignored.
    """
    allowed = {ext.lstrip(".") for ext in extensions}
    found: Set[str] = set()
    for directory in _iter_source_dirs(root, allowed):
        relative = directory.relative_to(root)
        if relative.parts:
            found.add(".".join(relative.parts))
    return found


def _package_sort_key(name: str) -> tuple[int, int, str]:
    return (name.count("."), len(name), name)


def find_shallowest_package(
    source_roots: Iterable[Path | str],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> Optional[str]:
    """Return the package with the fewest segments that directly holds a source file.

    Ties go to the shorter name, then alphabetical order. Roots that do not
    exist are skipped; ``None`` means nothing qualified.
    """
    extensions = list(extensions)
    candidates: Set[str] = set()
    for entry in source_roots:
        root = Path(entry)
        if not root.is_dir():
            _logger.debug("Skipping missing source root %s", root)
            continue
        candidates.update(package_names(root, extensions))
    if not candidates:
        return None
    best = min(candidates, key=_package_sort_key)
    _logger.debug("Inferred package %s from %d candidates", best, len(candidates))
    return best


__all__ = ["DEFAULT_EXTENSIONS", "file_extension", "find_shallowest_package", "package_names"]

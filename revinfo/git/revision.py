"""Turn git output for HEAD into a revision property set."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional

from ..logging import get_logger
from ..models import (
    COMMIT_DATE_ISO_PROPERTY,
    COMMIT_DATE_PROPERTY,
    LONG_COMMIT_HASH_PROPERTY,
    REPO_STATUS_PROPERTY,
    SHORT_COMMIT_HASH_PROPERTY,
    RevisionProperties,
)
from ..properties import write_properties_file
from .locator import find_git_binary, search_path
from .runner import GitClient

_SHORT_HASH_PATTERN = re.compile(r"^([0-9a-f]+) .*$")
_LONG_HASH_PATTERN = re.compile(r"^[0-9a-f]+ ([0-9a-f]{40}) .*$")
_DATE_PATTERN = re.compile(r"^[0-9a-f]+ [0-9a-f]{40} (.*)$")

GIT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

_logger = get_logger("revision")


def parse_git_date(text: str) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS +ZZZZ`` as printed by ``git log --date=iso``."""
    return datetime.strptime(text.strip(), GIT_LOG_DATE_FORMAT)


def to_iso_instant(value: datetime) -> str:
    """Format ``value`` as a UTC ISO-8601 instant such as ``2023-06-01T10:00:00Z``."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_log_output(
    output: str, status: str, errors: List[str]
) -> Optional[RevisionProperties]:
    """Extract hashes and commit date from the one-line log summary.

    Fields whose pattern does not match are left out. When nothing matches,
    an error is recorded and ``None`` is returned.
    """
    line = output.strip()
    found: RevisionProperties = {}

    match = _SHORT_HASH_PATTERN.match(line)
    if match:
        found[SHORT_COMMIT_HASH_PROPERTY] = match.group(1)
    match = _LONG_HASH_PATTERN.match(line)
    if match:
        found[LONG_COMMIT_HASH_PROPERTY] = match.group(1)
    match = _DATE_PATTERN.match(line)
    if match:
        git_date = match.group(1)
        found[COMMIT_DATE_PROPERTY] = git_date
        try:
            found[COMMIT_DATE_ISO_PROPERTY] = to_iso_instant(parse_git_date(git_date))
        except ValueError as exc:
            _logger.warning("Could not parse commit date '%s': %s", git_date, exc)

    if not found:
        errors.append(f"Could not match git output '{output}'")
        return None
    props: RevisionProperties = {REPO_STATUS_PROPERTY: status}
    props.update(found)
    return props


def find_git_root(path: Path) -> Optional[Path]:
    """Return the nearest directory at or above ``path`` that holds ``.git``."""
    current = Path(path).resolve()
    if not current.is_dir():
        current = current.parent
    for candidate in (current, *current.parents):
        if (candidate / ".git").exists():
            return candidate
    return None


class RevisionInfo:
    """Collects revision properties for the checkout containing a path."""

    def __init__(
        self,
        search_paths: Iterable[Path | str] | None = None,
        client: GitClient | None = None,
        *,
        path_env: Optional[str] = None,
    ) -> None:
        self.search_paths = [Path(entry) for entry in (search_paths or ())]
        self.client = client or GitClient()
        self.path_env = path_env
        self.logger = get_logger("revision")

    def find_binary(self) -> Optional[Path]:
        return find_git_binary(self.search_paths, self.path_env)

    def get_info(
        self,
        path: Path,
        errors: List[str],
        *,
        extra: Optional[Mapping[str, str]] = None,
    ) -> Optional[RevisionProperties]:
        """Return the property set for ``path``, or ``None`` with ``errors`` filled in."""
        root = find_git_root(path)
        if root is None:
            errors.append(f"No git repository found at or above {path}")
            return None
        binary = self.find_binary()
        if binary is None:
            searched = ",".join(str(entry) for entry in search_path(self.search_paths, self.path_env))
            errors.append(f"Could not find git binary in {searched}")
            return None
        self.logger.debug("Using %s for repository %s", binary, root)

        output = self.client.log_line(binary, root, errors)
        status = self.client.repo_status(binary, root, errors)
        if output is None or not output.strip():
            return None
        props = parse_log_output(output, status, errors)
        if props is None:
            return None
        for key, value in (extra or {}).items():
            props.setdefault(key, value)
        return props

    def write_info_to(
        self,
        path: Path,
        target: Path,
        generator_name: str,
        on_properties: Callable[[RevisionProperties], None] | None = None,
    ) -> str:
        """Write the properties file for ``path`` to ``target``.

        Returns the accumulated error text, empty on success.
        """
        errors: List[str] = []
        props = self.get_info(path, errors)
        if props is None:
            return "\n".join(errors)
        write_properties_file(target, props, f"Generated by {generator_name}")
        if on_properties is not None:
            on_properties(props)
        return ""


__all__ = [
    "GIT_LOG_DATE_FORMAT",
    "RevisionInfo",
    "find_git_root",
    "parse_git_date",
    "parse_log_output",
    "to_iso_instant",
]

"""Core data models shared across revinfo components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

# Property keys produced from git output.
REPO_STATUS_PROPERTY = "repoStatus"
COMMIT_DATE_PROPERTY = "commitDate"
COMMIT_DATE_ISO_PROPERTY = "commitDateISO"
LONG_COMMIT_HASH_PROPERTY = "longCommitHash"
SHORT_COMMIT_HASH_PROPERTY = "shortCommitHash"

STATUS_CLEAN = "clean"
STATUS_DIRTY = "dirty"
STATUS_UNKNOWN = "unknown"

# Ordered string-keyed, string-valued property set.
RevisionProperties = Dict[str, str]


@dataclass(frozen=True)
class ProjectIdentity:
    """Coordinates of the project being built."""

    group_id: str
    artifact_id: str
    version: str
    packaging: str = "jar"

    @property
    def coordinates(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


@dataclass(frozen=True)
class VcsQueryResult:
    """Outcome of a single git invocation, with capped output."""

    command: Tuple[str, ...]
    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def command_line(self) -> str:
        return " ".join(self.command)


@dataclass(frozen=True)
class GeneratedModule:
    """Everything needed to render the generated revision module."""

    package_name: str
    type_name: str
    constants: Sequence[Tuple[str, str]]
    timestamp_epoch_seconds: int
    revision_summary: str
    clean_flag: bool
    group_id: str
    artifact_id: str
    version: Optional[str]


@dataclass
class BuildOutcome:
    """Files produced (or not) by one build-step invocation."""

    properties_file: Optional[Path] = None
    source_file: Optional[Path] = None
    class_name: Optional[str] = None
    properties: Optional[RevisionProperties] = None
    warnings: List[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def warning_text(self) -> str:
        return "\n".join(self.warnings)

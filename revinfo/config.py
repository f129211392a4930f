"""Configuration loading for revinfo (.revinfo.yml)."""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".revinfo.yml"
NO_CLASS = "none"
DEFAULT_OUTPUT_DIR = "build"
DEFAULT_SOURCE_EXTENSIONS: Sequence[str] = ("py",)

_ASCII_SAMPLE = "# -*- coding: x -*-\nclass A:\n    B = 'c'\n"


class ConfigError(RuntimeError):
    """Raised for malformed configuration; fatal before any git work starts."""


@dataclass
class ProjectConfig:
    """Project coordinates normally injected by the build tool."""

    group_id: Optional[str] = None
    artifact_id: Optional[str] = None
    version: Optional[str] = None
    packaging: Optional[str] = None


@dataclass
class GitConfig:
    """Where to look for the git binary ahead of PATH."""

    search_paths: List[str] = field(default_factory=list)


@dataclass
class RevInfoConfig:
    """Represents the settings defined in .revinfo.yml."""

    root: Path
    project: ProjectConfig = field(default_factory=ProjectConfig)
    output_dir: Optional[Path] = None
    generated_sources_dir: Optional[Path] = None
    class_name: Optional[str] = None
    revision_class: Optional[str] = None
    auto: bool = True
    source_roots: List[Path] = field(default_factory=list)
    source_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS))
    encoding: Optional[str] = None
    skip: bool = False
    verbose: bool = False
    git: GitConfig = field(default_factory=GitConfig)
    properties: Dict[str, str] = field(default_factory=dict)


def load_config(config_path: Path) -> RevInfoConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RevInfoConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    project_data = _as_dict(data.get("project"))
    project = ProjectConfig(
        group_id=_as_str(project_data.get("group_id")),
        artifact_id=_as_str(project_data.get("artifact_id")),
        version=_as_str(project_data.get("version")),
        packaging=_as_str(project_data.get("packaging")),
    )

    git_data = _as_dict(data.get("git"))
    git = GitConfig(search_paths=_as_str_list(git_data.get("search_paths")))

    extensions = [ext.lstrip(".") for ext in _as_str_list(data.get("source_extensions"))]

    properties_data = data.get("properties")
    if properties_data is not None and not isinstance(properties_data, dict):
        raise ConfigError("'properties' must be a mapping of names to values")
    properties = {
        str(key): str(value)
        for key, value in _as_dict(properties_data).items()
        if isinstance(value, (str, int, float, bool))
    }

    auto = _as_bool(data.get("auto"))
    return RevInfoConfig(
        root=root,
        project=project,
        output_dir=_as_path(root, data.get("output_dir")),
        generated_sources_dir=_as_path(root, data.get("generated_sources_dir")),
        class_name=_as_str(data.get("class")),
        revision_class=_as_str(data.get("revision_class")),
        auto=True if auto is None else auto,
        source_roots=[root / entry for entry in _as_str_list(data.get("source_roots"))],
        source_extensions=extensions or list(DEFAULT_SOURCE_EXTENSIONS),
        encoding=_as_str(data.get("encoding")),
        skip=_as_bool(data.get("skip")) or False,
        verbose=_as_bool(data.get("verbose")) or False,
        git=git,
        properties=properties,
    )


def validate_encoding(name: Optional[str]) -> Optional[str]:
    """Return the canonical codec name for ``name``.

    Unknown names are fatal, and so are codecs that do not encode ASCII
    unchanged (``utf-16``, ``utf-32``, text transforms): Python source files
    cannot be written in them.
    """
    if name is None:
        return None
    try:
        info = codecs.lookup(name)
    except LookupError as exc:
        raise ConfigError(f"Could not find encoding '{name}'") from exc
    try:
        encoded = info.encode(_ASCII_SAMPLE)[0]
    except (TypeError, ValueError):
        encoded = None
    if encoded != _ASCII_SAMPLE.encode("ascii"):
        raise ConfigError(
            f"Encoding '{name}' is not ASCII-compatible and cannot be used for Python source"
        )
    return info.name


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    return root / Path(text).expanduser()


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "GitConfig",
    "NO_CLASS",
    "ProjectConfig",
    "RevInfoConfig",
    "load_config",
    "validate_encoding",
]

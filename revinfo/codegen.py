"""Renders the generated revision-info Python module."""

from __future__ import annotations

import keyword
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import ConfigError
from .git.revision import parse_git_date
from .logging import get_logger
from .models import (
    COMMIT_DATE_ISO_PROPERTY,
    COMMIT_DATE_PROPERTY,
    LONG_COMMIT_HASH_PROPERTY,
    REPO_STATUS_PROPERTY,
    STATUS_CLEAN,
    STATUS_UNKNOWN,
    GeneratedModule,
    ProjectIdentity,
)

DEFAULT_CLASS_NAME = "RevisionInfo"
SOURCE_SUFFIX = ".py"
TEMPLATE_NAME = "revision_info.py.j2"

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)

_logger = get_logger("codegen")


def constant_name(key: str) -> str:
    """Turn a camel-case property key into an upper-case constant name.

    An underscore goes before every upper-case letter that follows a
    non-upper-case character, unless the name already ends in one:
    ``fooBarBaz`` becomes ``FOO_BAR_BAZ``, ``commitDateISO`` becomes
    ``COMMIT_DATE_ISO``. Characters that cannot appear in an identifier are
    replaced with ``_``.
    """
    out: List[str] = []
    last_caps = False
    for index, ch in enumerate(key):
        caps = ch.isupper()
        if index and caps and not last_caps and out[-1] != "_":
            out.append("_")
        out.append(ch.upper() if ("a" + ch).isidentifier() else "_")
        last_caps = caps
    name = "".join(out)
    if not name or not name[0].isidentifier():
        name = "_" + name
    return name


def validate_class_name(fqn: str) -> None:
    """Raise :class:`ConfigError` unless every dotted segment is an identifier."""
    for part in fqn.split("."):
        if not part:
            raise ConfigError(f"Class name contains an empty segment: '{fqn}'")
        if not part[0].isidentifier():
            raise ConfigError(
                f"Class name contains invalid first character '{part[0]}', which cannot "
                f"begin a Python identifier: '{part}'"
            )
        for index, ch in enumerate(part[1:], start=1):
            if not ("a" + ch).isidentifier():
                raise ConfigError(
                    f"Class name contains invalid character '{ch}' at index {index}, "
                    f"which cannot be part of a Python identifier: '{part}'"
                )
        if keyword.iskeyword(part):
            raise ConfigError(f"Class name segment '{part}' is a reserved word: '{fqn}'")


def split_class_name(fqn: str) -> Tuple[str, str]:
    """Return ``(package, type_name)``; the package is empty for a bare name."""
    package, _, type_name = fqn.rpartition(".")
    return package, type_name


def source_path_for(fqn: str) -> Path:
    """Relative path of the module generated for ``fqn``."""
    parts = fqn.split(".")
    return Path(*parts[:-1], parts[-1] + SOURCE_SUFFIX)


def commit_timestamp(props: Mapping[str, str]) -> datetime:
    """Best available commit instant: ISO date, then raw git date, then the epoch."""
    iso = props.get(COMMIT_DATE_ISO_PROPERTY)
    if iso is not None:
        try:
            return _parse_iso(iso)
        except ValueError as exc:
            _logger.warning("Could not parse %s '%s': %s", COMMIT_DATE_ISO_PROPERTY, iso, exc)
    raw = props.get(COMMIT_DATE_PROPERTY)
    if raw is not None:
        try:
            return parse_git_date(raw)
        except ValueError as exc:
            try:
                # dates merged from other metadata may already be ISO instants
                return _parse_iso(raw)
            except ValueError:
                _logger.warning("Could not parse %s '%s': %s", COMMIT_DATE_PROPERTY, raw, exc)
    return _EPOCH


def _parse_iso(text: str) -> datetime:
    value = text.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_module(fqn: str, props: Mapping[str, str], identity: ProjectIdentity) -> GeneratedModule:
    """Derive the constants of the generated module from a property set."""
    package, type_name = split_class_name(fqn)
    constants: List[Tuple[str, str]] = []
    for key in sorted(props):
        if key == COMMIT_DATE_ISO_PROPERTY:
            continue
        constants.append((constant_name(key), props[key]))

    written = {name for name, _ in constants}
    status = props.get(REPO_STATUS_PROPERTY, STATUS_UNKNOWN)
    long_hash = props.get(LONG_COMMIT_HASH_PROPERTY, "?")
    return GeneratedModule(
        package_name=package,
        type_name=type_name,
        constants=tuple(constants),
        timestamp_epoch_seconds=int(commit_timestamp(props).timestamp()),
        revision_summary=f"{identity.coordinates};{long_hash}-{status}",
        clean_flag=status == STATUS_CLEAN,
        group_id=identity.group_id,
        artifact_id=identity.artifact_id,
        # only VERSION defers to a property of the same name
        version=None if "VERSION" in written else identity.version,
    )


def _literal(value: object) -> str:
    return ascii(value)


def _docstring(value: object) -> str:
    return str(value).replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


class SourceGenerator:
    """Renders :class:`GeneratedModule` instances through a Jinja2 template."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = self._create_env(self.templates_dir)

    def render(self, module: GeneratedModule, *, encoding: str = "utf-8") -> str:
        coordinates = f"{module.group_id}:{module.artifact_id}"
        if module.version is not None:
            coordinates += f":{module.version}"
        template = self._env.get_template(TEMPLATE_NAME)
        return template.render(module=module, coordinates=coordinates, encoding=encoding)

    def generate(
        self,
        fqn: str,
        props: Mapping[str, str],
        identity: ProjectIdentity,
        *,
        encoding: Optional[str] = None,
    ) -> str:
        """Validate ``fqn`` and return the module source text."""
        validate_class_name(fqn)
        module = build_module(fqn, props, identity)
        return self.render(module, encoding=encoding or "utf-8")

    @staticmethod
    def _create_env(templates_dir: Path) -> Environment:
        directories = [str(templates_dir)]
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        env.filters["literal"] = _literal
        env.filters["docstring"] = _docstring
        return env


__all__ = [
    "DEFAULT_CLASS_NAME",
    "SourceGenerator",
    "build_module",
    "commit_timestamp",
    "constant_name",
    "source_path_for",
    "split_class_name",
    "validate_class_name",
]

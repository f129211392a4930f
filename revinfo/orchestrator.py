"""Build-step orchestration: git properties file plus generated module."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .codegen import DEFAULT_CLASS_NAME, SourceGenerator, source_path_for, validate_class_name
from .config import NO_CLASS, ConfigError, RevInfoConfig, validate_encoding
from .git.revision import RevisionInfo
from .git.runner import GitClient
from .inference import DEFAULT_EXTENSIONS, find_shallowest_package
from .logging import get_logger, warn_errors
from .models import BuildOutcome, ProjectIdentity, RevisionProperties
from .properties import write_properties_file

GENERATOR_NAME = "revinfo"
POM_PACKAGING = "pom"
DEFAULT_SOURCE_ENCODING = "utf-8"


@dataclass
class BuildSettings:
    """Inputs of one build step, as a build tool would inject them."""

    project_dir: Path
    identity: ProjectIdentity
    output_dir: Path
    generated_sources_dir: Optional[Path] = None
    class_name: Optional[str] = None
    revision_class: Optional[str] = None
    auto: bool = True
    source_roots: Sequence[Path] = ()
    source_extensions: Sequence[str] = DEFAULT_EXTENSIONS
    encoding: Optional[str] = None
    skip: bool = False
    search_paths: Sequence[Path] = ()
    extra_properties: Mapping[str, str] = field(default_factory=dict)

    @property
    def sources_dir(self) -> Path:
        if self.generated_sources_dir is not None:
            return self.generated_sources_dir
        return self.output_dir / "generated-sources" / "annotations"


def settings_from_config(
    config: RevInfoConfig,
    *,
    project_dir: Optional[Path] = None,
    overrides: Optional[Mapping[str, object]] = None,
) -> BuildSettings:
    """Merge ``.revinfo.yml`` values with command-line overrides.

    Override keys use the :class:`BuildSettings` and ``ProjectConfig`` field
    names; ``None`` values are ignored.
    """
    values: Dict[str, object] = {
        key: value for key, value in (overrides or {}).items() if value is not None
    }
    root = (project_dir or config.root).resolve()

    group_id = values.pop("group_id", None) or config.project.group_id
    artifact_id = values.pop("artifact_id", None) or config.project.artifact_id
    version = values.pop("version", None) or config.project.version
    packaging = values.pop("packaging", None) or config.project.packaging or "jar"
    missing = [
        name
        for name, value in (("group_id", group_id), ("artifact_id", artifact_id), ("version", version))
        if not value
    ]
    if missing:
        raise ConfigError(f"Missing project coordinates: {', '.join(missing)}")
    identity = ProjectIdentity(
        group_id=str(group_id),
        artifact_id=str(artifact_id),
        version=str(version),
        packaging=str(packaging),
    )

    source_roots = values.pop("source_roots", None) or config.source_roots
    if not source_roots:
        source_roots = [root / "src"] if (root / "src").is_dir() else [root]
    return BuildSettings(
        project_dir=root,
        identity=identity,
        output_dir=Path(values.pop("output_dir", None) or config.output_dir or root / "build"),
        generated_sources_dir=_opt_path(
            values.pop("generated_sources_dir", None) or config.generated_sources_dir
        ),
        class_name=_opt_str(values.pop("class_name", None) or config.class_name),
        revision_class=config.revision_class,
        auto=bool(values.pop("auto", config.auto)),
        source_roots=[Path(str(entry)) for entry in source_roots],
        source_extensions=list(config.source_extensions),
        encoding=_opt_str(values.pop("encoding", None) or config.encoding),
        skip=bool(values.pop("skip", config.skip)),
        search_paths=[Path(entry) for entry in config.git.search_paths],
        extra_properties=dict(config.properties),
    )


def _opt_path(value: object) -> Optional[Path]:
    return Path(str(value)) if value else None


def _opt_str(value: object) -> Optional[str]:
    return str(value) if value else None


class Orchestrator:
    """Runs the revision-info build step."""

    def __init__(
        self,
        revision_info: RevisionInfo | None = None,
        generator: SourceGenerator | None = None,
        client: GitClient | None = None,
    ) -> None:
        self._revision_info = revision_info
        self._client = client
        self.generator = generator or SourceGenerator()
        self.logger = get_logger("orchestrator")

    def properties_output_file(self, settings: BuildSettings) -> Path:
        identity = settings.identity
        name = f"{identity.group_id}.{identity.artifact_id}.versions.properties"
        return settings.output_dir / "classes" / "META-INF" / name

    def resolve_class_name(self, settings: BuildSettings) -> Optional[str]:
        """Explicit name, then ``revision_class``, then an inferred package."""
        name = settings.class_name
        if name is None or name == NO_CLASS:
            name = settings.revision_class
        if name == NO_CLASS:
            name = None
        if name is None and settings.auto:
            package = find_shallowest_package(settings.source_roots, settings.source_extensions)
            if package is not None:
                return f"{package}.{DEFAULT_CLASS_NAME}"
        return name

    def source_output_file(self, settings: BuildSettings, class_name: str) -> Path:
        return settings.sources_dir / source_path_for(class_name)

    def run(self, settings: BuildSettings) -> BuildOutcome:
        """Write the properties file and, when a class is resolved, the module.

        Invalid class names and unknown encodings raise :class:`ConfigError`
        before git is consulted. Missing repositories or binaries only produce
        warnings in the returned outcome.
        """
        outcome = BuildOutcome()
        if settings.skip:
            self.logger.info("Skipping revision info generation")
            outcome.skipped = True
            return outcome
        if settings.identity.packaging == POM_PACKAGING:
            # aggregator projects have no classes to attach revision info to
            self.logger.debug("Ignoring project with packaging '%s'", POM_PACKAGING)
            outcome.skipped = True
            return outcome

        class_name = self.resolve_class_name(settings)
        if class_name is not None:
            validate_class_name(class_name)
        encoding = validate_encoding(settings.encoding) or DEFAULT_SOURCE_ENCODING

        errors: List[str] = []
        props = self._revision(settings).get_info(
            settings.project_dir, errors, extra=settings.extra_properties
        )
        if props is None:
            if not errors:
                errors.append("Failed to get git revision info and did not write properties file")
            warn_errors(self.logger, errors)
            outcome.warnings.extend(errors)
            return outcome
        if errors:
            # partial failures, e.g. an unknown repository status
            warn_errors(self.logger, errors)
            outcome.warnings.extend(errors)
        outcome.properties = props

        properties_file = self.properties_output_file(settings)
        write_properties_file(properties_file, props, f"Generated by {GENERATOR_NAME}")
        self.logger.info(
            "Generated revision info to %s", _relativize(properties_file, settings.project_dir)
        )
        outcome.properties_file = properties_file

        if class_name is not None:
            outcome.source_file = self._write_source(settings, class_name, props, encoding)
            outcome.class_name = class_name
        return outcome

    # ------------------------------------------------------------------
    # Internals

    def _revision(self, settings: BuildSettings) -> RevisionInfo:
        if self._revision_info is not None:
            return self._revision_info
        return RevisionInfo(settings.search_paths, self._client)

    def _write_source(
        self,
        settings: BuildSettings,
        class_name: str,
        props: RevisionProperties,
        encoding: str,
    ) -> Path:
        source = self.generator.generate(class_name, props, settings.identity, encoding=encoding)
        path = self.source_output_file(settings, class_name)
        self.logger.info(
            "Generating class %s in %s", class_name, _relativize(path, settings.project_dir)
        )
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(source.encode(encoding, errors="backslashreplace"))
        return path


def _relativize(path: Path, base: Path) -> str:
    try:
        return str(path.relative_to(base))
    except ValueError:
        return str(path)


__all__ = ["BuildSettings", "GENERATOR_NAME", "Orchestrator", "settings_from_config"]

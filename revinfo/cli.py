"""CLI entrypoints for revinfo commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, load_config
from .git.locator import DEFAULT_SEARCH_PATHS
from .git.revision import RevisionInfo
from .logging import configure_logging
from .orchestrator import GENERATOR_NAME, Orchestrator, settings_from_config

DEFAULT_PROPERTIES_TARGET = "/tmp/libinfo.properties"


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path inside the git checkout (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="revinfo",
        description="Record git revision info as a properties file and a generated module.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Run the build step: write the properties file and the revision module.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    generate_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .revinfo.yml (defaults to the one in the project directory).",
    )
    generate_parser.add_argument(
        "--class",
        dest="class_name",
        default=None,
        help="Fully qualified name of the class to generate, or 'none'.",
    )
    generate_parser.add_argument("--group-id", default=None, help="Project group id.")
    generate_parser.add_argument("--artifact-id", default=None, help="Project artifact id.")
    generate_parser.add_argument("--project-version", dest="version", default=None, help="Project version.")
    generate_parser.add_argument("--packaging", default=None, help="Project packaging kind.")
    generate_parser.add_argument("--output-dir", type=Path, default=None, help="Build output directory.")
    generate_parser.add_argument(
        "--generated-sources-dir",
        type=Path,
        default=None,
        help="Directory for the generated module (defaults under the output directory).",
    )
    generate_parser.add_argument(
        "--source-root",
        dest="source_roots",
        action="append",
        type=Path,
        default=None,
        help="Source root scanned when inferring the package; repeatable.",
    )
    generate_parser.add_argument("--encoding", default=None, help="Encoding of the generated module.")
    generate_parser.add_argument(
        "--no-auto",
        dest="auto",
        action="store_false",
        default=None,
        help="Do not infer a package for the generated class.",
    )
    generate_parser.add_argument(
        "--skip",
        action="store_true",
        default=None,
        help="Skip revision info generation entirely.",
    )

    properties_parser = subparsers.add_parser(
        "properties",
        help="Write only the properties file for a checkout.",
    )
    _add_verbose_option(properties_parser, suppress_default=True)
    _add_path_argument(properties_parser)
    properties_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path(DEFAULT_PROPERTIES_TARGET),
        help=f"Properties file to write (defaults to {DEFAULT_PROPERTIES_TARGET}).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for revinfo commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "generate":
        _run_generate(parser, args)
    elif args.command == "properties":
        _run_properties(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_generate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    path = Path(args.path)
    try:
        config = load_config(args.config or path)
    except ConfigError as exc:
        parser.exit(2, f"revinfo: {exc}\n")
    configure_logging(
        verbose=bool(args.verbose) or config.verbose,
        quiet=args.quiet,
        log_file=args.log_file,
    )

    overrides = {
        "class_name": args.class_name,
        "group_id": args.group_id,
        "artifact_id": args.artifact_id,
        "version": args.version,
        "packaging": args.packaging,
        "output_dir": args.output_dir,
        "generated_sources_dir": args.generated_sources_dir,
        "source_roots": args.source_roots,
        "encoding": args.encoding,
        "auto": args.auto,
        "skip": args.skip,
    }
    try:
        settings = settings_from_config(config, project_dir=path, overrides=overrides)
        outcome = Orchestrator().run(settings)
    except ConfigError as exc:
        parser.exit(2, f"revinfo: {exc}\n")
    except OSError as exc:
        parser.exit(1, f"revinfo generate failed: {exc}\nRun with --verbose for more details.\n")

    if outcome.skipped:
        print("Revision info skipped")
        return
    if outcome.properties_file is None:
        print("No revision info written")
        return
    print(f"Properties written to {_relativize(outcome.properties_file)}")
    if outcome.source_file is not None:
        print(f"Class {outcome.class_name} written to {_relativize(outcome.source_file)}")


def _run_properties(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    configure_logging(verbose=bool(args.verbose), quiet=args.quiet, log_file=args.log_file)
    info = RevisionInfo(DEFAULT_SEARCH_PATHS)
    try:
        errors = info.write_info_to(Path(args.path).resolve(), args.output, GENERATOR_NAME)
    except OSError as exc:
        parser.exit(1, f"revinfo properties failed: {exc}\n")
    if errors:
        parser.exit(1, f"{errors}\n")
    print(f"Properties written to {_relativize(args.output)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

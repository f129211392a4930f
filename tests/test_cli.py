"""CLI parser and command behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from revinfo import __version__, cli
from revinfo.cli import _build_parser, main
from revinfo.git.revision import RevisionInfo
from revinfo.git.runner import GitClient
from revinfo.orchestrator import Orchestrator
from revinfo.properties import read_properties_file


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "generate"])
    assert args.verbose is True
    assert args.command == "generate"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["properties", "--verbose"])
    assert args.verbose is True
    assert args.command == "properties"


def test_generate_options_default_to_none() -> None:
    args = _build_parser().parse_args(["generate"])
    assert args.path == "."
    assert args.class_name is None
    assert args.auto is None
    assert args.skip is None
    assert args.source_roots is None


def test_generate_options_are_parsed() -> None:
    args = _build_parser().parse_args(
        [
            "--quiet",
            "generate",
            "project",
            "--class",
            "none",
            "--project-version",
            "2.0",
            "--source-root",
            "src",
            "--source-root",
            "lib",
            "--no-auto",
            "--skip",
        ]
    )
    assert args.quiet is True
    assert args.path == "project"
    assert args.class_name == "none"
    assert args.version == "2.0"
    assert args.source_roots == [Path("src"), Path("lib")]
    assert args.auto is False
    assert args.skip is True


def test_properties_defaults_to_tmp_target() -> None:
    args = _build_parser().parse_args(["properties"])
    assert args.output == Path("/tmp/libinfo.properties")


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_generate_without_coordinates_exits_with_config_error(tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path)])
    assert excinfo.value.code == 2
    assert "revinfo: Missing project coordinates" in capsys.readouterr().err


def test_generate_with_malformed_config_exits(tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    (tmp_path / ".revinfo.yml").write_text("project: [oops\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path)])
    assert excinfo.value.code == 2
    assert "Failed to parse .revinfo.yml" in capsys.readouterr().err


def test_generate_skip(tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    main(
        [
            "generate",
            str(tmp_path),
            "--group-id",
            "com.example",
            "--artifact-id",
            "foo-bar",
            "--project-version",
            "1.0",
            "--skip",
        ]
    )
    assert "Revision info skipped" in capsys.readouterr().out


def test_generate_writes_outputs(repo_builder, fake_git, fake_git_dir, monkeypatch, capsys, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    repo_builder.mark_git()
    repo_builder.write(
        {
            ".revinfo.yml": """
            project:
              group_id: com.example
              artifact_id: foo-bar
              version: "1.0"
            class: com.example.Info
            """
        }
    )
    monkeypatch.setattr(
        cli,
        "Orchestrator",
        lambda: Orchestrator(RevisionInfo([fake_git_dir], GitClient(runner=fake_git), path_env="")),
    )
    log_file = tmp_path / "logs" / "revinfo.log"

    main(["--log-file", str(log_file), "generate", str(repo_builder.path()), "--output-dir", str(tmp_path / "out")])

    out = capsys.readouterr().out
    assert "Properties written to" in out
    assert "Class com.example.Info written to" in out
    props_file = tmp_path / "out" / "classes" / "META-INF" / "com.example.foo-bar.versions.properties"
    assert read_properties_file(props_file)["repoStatus"] == "clean"
    assert (tmp_path / "out" / "generated-sources" / "annotations" / "com" / "example" / "Info.py").exists()
    assert "Generated revision info" in log_file.read_text(encoding="utf-8")


def test_properties_command_reports_errors(repo_builder, monkeypatch, capsys, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    repo_builder.mark_git()
    monkeypatch.setattr(cli, "RevisionInfo", lambda _paths: RevisionInfo([tmp_path / "nowhere"], path_env=""))

    with pytest.raises(SystemExit) as excinfo:
        main(["properties", str(repo_builder.path()), "-o", str(tmp_path / "info.properties")])

    assert excinfo.value.code == 1
    assert "Could not find git binary in" in capsys.readouterr().err
    assert not (tmp_path / "info.properties").exists()


def test_properties_command_writes_file(repo_builder, fake_git, fake_git_dir, monkeypatch, capsys, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    repo_builder.mark_git()
    monkeypatch.setattr(
        cli,
        "RevisionInfo",
        lambda _paths: RevisionInfo([fake_git_dir], GitClient(runner=fake_git), path_env=""),
    )
    target = tmp_path / "libinfo.properties"

    main(["properties", str(repo_builder.path()), "--output", str(target)])

    assert read_properties_file(target)["shortCommitHash"] == "a1b2c3d"
    assert "Properties written to" in capsys.readouterr().out

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Tuple

import pytest

from revinfo.models import VcsQueryResult
from tests._fixtures.repo_builder import RepoBuilder, make_executable

LONG_HASH = "e1f2a3b4c5d6e7f8091a2b3c4d5e6f708192a3b4"
LOG_LINE = f"a1b2c3d {LONG_HASH} 2023-06-01 10:00:00 +0000"


@pytest.fixture(autouse=True)
def _reset_revinfo_logger() -> Iterator[None]:
    """Undo handler and propagation changes made by ``configure_logging``."""
    yield
    logger = logging.getLogger("revinfo")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def fake_git_dir(tmp_path: Path) -> Path:
    """A directory holding an executable stand-in for the git binary."""
    directory = tmp_path / "bin"
    make_executable(directory / "git")
    return directory


class FakeGit:
    """Scripted runner that answers the log and status queries."""

    def __init__(self) -> None:
        self.calls: List[Tuple[List[str], Path, Dict[str, str]]] = []
        self.log = VcsQueryResult(command=("git", "log"), exit_code=0, stdout=LOG_LINE.encode())
        self.status = VcsQueryResult(command=("git", "status"), exit_code=0, stdout=b"")

    def __call__(self, command, *, cwd, env=None, timeout=None):  # type: ignore[no-untyped-def]
        self.calls.append((list(command), Path(cwd), dict(env or {})))
        if "log" in command:
            return VcsQueryResult(tuple(command), self.log.exit_code, self.log.stdout, self.log.stderr)
        return VcsQueryResult(tuple(command), self.status.exit_code, self.status.stdout, self.status.stderr)


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


"""Git discovery, invocation and output parsing."""

from .locator import find_git_binary, search_path
from .revision import RevisionInfo, find_git_root, parse_git_date, parse_log_output, to_iso_instant
from .runner import GitClient, GitTimeoutError, run_process, status_from_result

__all__ = [
    "GitClient",
    "GitTimeoutError",
    "RevisionInfo",
    "find_git_binary",
    "find_git_root",
    "parse_git_date",
    "parse_log_output",
    "run_process",
    "search_path",
    "status_from_result",
    "to_iso_instant",
]

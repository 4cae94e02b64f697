"""Commit history extraction from a local Git checkout."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..logging import get_logger
from ..models import ChangedFile, CommitRecord

COMMIT_MARKER = "__REPOGRAPH_COMMIT__"
_FIELD_SEPARATOR = "\x1f"
_LOG_FORMAT = f"{COMMIT_MARKER}%H{_FIELD_SEPARATOR}%an{_FIELD_SEPARATOR}%aI{_FIELD_SEPARATOR}%s"

_LOGGER = get_logger("git.history")


class GitHistoryError(RuntimeError):
    """Raised when commit history cannot be read."""


def parse_git_log(text: str) -> List[CommitRecord]:
    """Parse ``git log --name-only`` output produced with :data:`_LOG_FORMAT`."""
    commits: List[CommitRecord] = []
    header: Optional[List[str]] = None
    files: List[ChangedFile] = []

    def flush() -> None:
        if header is None:
            return
        sha, author, date, message = (header + ["", "", "", ""])[:4]
        commits.append(
            CommitRecord(sha=sha, author=author, date=date, message=message, files=list(files))
        )

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith(COMMIT_MARKER):
            flush()
            header = line[len(COMMIT_MARKER) :].split(_FIELD_SEPARATOR, 3)
            files = []
            continue
        if header is not None:
            files.append(ChangedFile(filename=line.replace("\\", "/")))
    flush()
    return commits


class GitHistoryReader:
    """Reads commits and their changed files via ``git log``."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner

    def read(self, repo_path: str, *, limit: Optional[int] = None) -> List[CommitRecord]:
        repo = Path(repo_path)
        if not (repo / ".git").exists():
            raise GitHistoryError(f"{repo_path} is not a Git repository")

        args = ["git", "log", "--no-merges", "--name-only", f"--format={_LOG_FORMAT}"]
        if limit is not None:
            args.append(f"--max-count={limit}")
        try:
            output = self._run(args, cwd=repo, capture_output=True)
        except Exception as exc:
            raise GitHistoryError(f"git log failed in {repo_path}: {exc}") from exc
        commits = parse_git_log(output)
        _LOGGER.debug("Read %d commits from %s", len(commits), repo_path)
        return commits

    def _run(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        return self._runner(args, cwd=cwd, capture_output=capture_output)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        import subprocess

        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


__all__ = ["COMMIT_MARKER", "GitHistoryError", "GitHistoryReader", "parse_git_log"]

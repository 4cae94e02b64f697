"""Snapshot sources: JSON documents and local working trees."""

from __future__ import annotations

import json
import os
import posixpath
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence

from .classifier import classify
from .config import CONFIG_FILENAME, ConfigError, RepoGraphConfig, ScanConfig, load_config
from .diagnostics import WarningLog
from .git.history import GitHistoryError, GitHistoryReader
from .logging import get_logger
from .models import ChangedFile, CommitRecord, FileRecord, RepoSnapshot

CONTENT_STEP = "Content Fetch"
HISTORY_STEP = "Commit History"

_LOGGER = get_logger("snapshot")

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
    ".vscode",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}


class SnapshotError(RuntimeError):
    """Raised when a snapshot document cannot be loaded."""


# ----------------------------------------------------------------------
# JSON snapshots


def load_snapshot(path: Path) -> RepoSnapshot:
    """Load a snapshot document of files and commits from ``path``."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise SnapshotError(f"Snapshot file not found: {path}") from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SnapshotError(f"Failed to read snapshot {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SnapshotError("Snapshot must be a JSON object")
    return snapshot_from_dict(payload, root=str(payload.get("root") or ""))


def snapshot_from_dict(payload: Any, *, root: str = "") -> RepoSnapshot:
    if not isinstance(payload, dict):
        raise SnapshotError("Snapshot must be a JSON object")
    raw_files = payload.get("files", [])
    raw_commits = payload.get("commits", [])
    if not isinstance(raw_files, list) or not isinstance(raw_commits, list):
        raise SnapshotError("Snapshot 'files' and 'commits' must be lists")

    files = [_file_from_dict(entry, index) for index, entry in enumerate(raw_files)]
    commits = [_commit_from_dict(entry, index) for index, entry in enumerate(raw_commits)]
    return RepoSnapshot(root=root, files=files, commits=commits)


def _file_from_dict(entry: Any, index: int) -> FileRecord:
    if isinstance(entry, str):
        return FileRecord(path=_normalize_path(entry))
    if not isinstance(entry, dict):
        raise SnapshotError(f"files[{index}] must be an object or a path string")
    path = entry.get("path") or entry.get("filename")
    if not isinstance(path, str) or not path:
        raise SnapshotError(f"files[{index}] is missing a path")
    size = entry.get("size", 0)
    content = entry.get("content")
    return FileRecord(
        path=_normalize_path(path),
        size=size if isinstance(size, int) and not isinstance(size, bool) else 0,
        content=content if isinstance(content, str) else None,
    )


def _commit_from_dict(entry: Any, index: int) -> CommitRecord:
    if not isinstance(entry, dict):
        raise SnapshotError(f"commits[{index}] must be an object")
    author = entry.get("author", "")
    if isinstance(author, dict):
        author = author.get("name") or author.get("login") or ""
    raw_files = entry.get("files")
    files: Optional[List[ChangedFile]] = None
    if isinstance(raw_files, list):
        files = []
        for item in raw_files:
            name = item.get("filename") if isinstance(item, dict) else item
            if isinstance(name, str) and name:
                files.append(ChangedFile(filename=_normalize_path(name)))
    return CommitRecord(
        sha=str(entry.get("sha", "")),
        author=str(author),
        date=str(entry.get("date", "")),
        message=str(entry.get("message", "")),
        files=files,
    )


def _normalize_path(path: str) -> str:
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


# ----------------------------------------------------------------------
# Content loading


class ContentLoader:
    """Fetches file contents in fixed-size concurrent batches.

    A failed read leaves that record's ``content`` as ``None`` and records a
    warning; the rest of the batch is unaffected.
    """

    def __init__(
        self,
        reader: Callable[[str], str],
        *,
        batch_size: int = 10,
        batch_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._reader = reader
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._sleep = sleep

    def load(self, records: Sequence[FileRecord], warnings: Optional[WarningLog] = None) -> int:
        """Populate ``content`` on ``records``; return the number of failures."""
        failures = 0
        batches = [
            records[start : start + self._batch_size]
            for start in range(0, len(records), self._batch_size)
        ]
        with ThreadPoolExecutor(max_workers=self._batch_size) as pool:
            for number, batch in enumerate(batches):
                if number and self._batch_delay > 0:
                    self._sleep(self._batch_delay)
                futures = [(record, pool.submit(self._reader, record.path)) for record in batch]
                for record, future in futures:
                    try:
                        record.content = future.result()
                    except Exception as exc:
                        record.content = None
                        failures += 1
                        if warnings is not None:
                            warnings.add(CONTENT_STEP, f"Could not read {record.path}", exc)
        _LOGGER.debug("Loaded %d files in %d batches (%d failed)", len(records), len(batches), failures)
        return failures


# ----------------------------------------------------------------------
# Working tree scanning


@dataclass(frozen=True)
class IgnoreRule:
    """One gitignore-style pattern from .gitignore or ``exclude_paths``."""

    pattern: str
    directory_only: bool = False
    anchored: bool = False
    negate: bool = False

    @classmethod
    def parse(cls, line: str) -> "IgnoreRule | None":
        """Parse one ignore line; blank lines and comments yield ``None``."""
        text = line.strip()
        if not text or text.startswith("#"):
            return None
        negate = text.startswith("!")
        if negate or text.startswith(("\\!", "\\#")):
            text = text[1:]
        directory_only = text.endswith("/")
        text = text.rstrip("/")
        if text.startswith("**/"):
            text = text[3:]
            anchored = False
        else:
            anchored = "/" in text
        text = text.lstrip("/")
        if not text:
            return None
        return cls(pattern=text, directory_only=directory_only, anchored=anchored, negate=negate)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.anchored:
            return fnmatchcase(rel_path, self.pattern)
        return fnmatchcase(posixpath.basename(rel_path), self.pattern)


class IgnoreRules:
    """Ordered ignore rules where the last matching rule decides."""

    def __init__(self, rules: Iterable[IgnoreRule] = ()) -> None:
        self._rules: List[IgnoreRule] = list(rules)

    @classmethod
    def for_root(cls, root: Path, config: RepoGraphConfig) -> "IgnoreRules":
        rules = cls()
        gitignore = root / ".gitignore"
        if gitignore.is_file():
            rules.extend_lines(gitignore.read_text(encoding="utf-8").splitlines())
        rules.extend_lines([*config.exclude_paths, *config.analyzers.exclude_paths])
        return rules

    def extend_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            rule = IgnoreRule.parse(line)
            if rule is not None:
                self._rules.append(rule)

    def ignores(self, rel_path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self._rules:
            if rule.matches(rel_path, is_dir):
                ignored = not rule.negate
        return ignored

    def __len__(self) -> int:
        return len(self._rules)


def _iter_files(root: Path, rules: IgnoreRules) -> Iterator[Path]:
    """Yield files under ``root`` in sorted order, pruning ignored directories."""
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        def _rel(name: str) -> str:
            return f"{rel_dir}/{name}" if rel_dir else name

        dirnames[:] = [
            name
            for name in sorted(dirnames)
            if name not in _EXCLUDED_DIRS and not rules.ignores(_rel(name), True)
        ]
        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES or rules.ignores(_rel(filename), False):
                continue
            yield current_dir / filename


class SnapshotScanner:
    """Walks a working tree to produce a snapshot with contents and history."""

    def __init__(self, history_reader: GitHistoryReader | None = None) -> None:
        self._history_reader = history_reader or GitHistoryReader()

    def scan(
        self,
        root: str,
        *,
        config: RepoGraphConfig | None = None,
        warnings: WarningLog | None = None,
        include_history: bool = True,
        history_limit: Optional[int] = None,
    ) -> RepoSnapshot:
        """Return a snapshot of ``root``; contents are read for source files only."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        config = config or _load_config(root_path)
        warnings = warnings if warnings is not None else WarningLog()
        rules = IgnoreRules.for_root(root_path, config)

        files: List[FileRecord] = []
        for path in _iter_files(root_path, rules):
            rel_path = path.relative_to(root_path).as_posix()
            files.append(FileRecord(path=rel_path, size=path.stat().st_size))
        _LOGGER.debug("Scanner discovered %d files under %s", len(files), root_path)

        sources = [record for record in files if classify(record.path).is_source]
        loader = _disk_loader(root_path, config.scan)
        loader.load(sources, warnings)

        commits: List[CommitRecord] = []
        if include_history and (root_path / ".git").exists():
            try:
                commits = self._history_reader.read(str(root_path), limit=history_limit)
            except GitHistoryError as exc:
                warnings.add(HISTORY_STEP, "Commit history unavailable; coupling uses structure only", exc)

        return RepoSnapshot(root=str(root_path), files=files, commits=commits)


def _disk_loader(root: Path, scan: ScanConfig) -> ContentLoader:
    def _read(rel_path: str) -> str:
        return (root / rel_path).read_text(encoding="utf-8")

    return ContentLoader(_read, batch_size=scan.batch_size, batch_delay=scan.batch_delay)


def _load_config(root: Path) -> RepoGraphConfig:
    try:
        return load_config(root / CONFIG_FILENAME)
    except ConfigError as exc:
        _LOGGER.warning("Ignoring invalid %s: %s", CONFIG_FILENAME, exc)
        return RepoGraphConfig(root=root)


__all__ = [
    "CONTENT_STEP",
    "ContentLoader",
    "HISTORY_STEP",
    "IgnoreRule",
    "IgnoreRules",
    "SnapshotError",
    "SnapshotScanner",
    "load_snapshot",
    "snapshot_from_dict",
]

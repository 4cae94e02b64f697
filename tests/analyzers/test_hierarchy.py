"""Tests for filesystem and churn hierarchies."""

from __future__ import annotations

import random

from repograph.analyzers.hierarchy import (
    CHURN_STEP,
    FILESYSTEM_STEP,
    build_churn_tree,
    build_filesystem_tree,
    churn_counts,
    leaf_paths,
    synthetic_churn,
)
from repograph.diagnostics import WarningLog
from repograph.models import ChangedFile, CommitRecord, FileRecord


class _NoJitter(random.Random):
    def randint(self, a: int, b: int) -> int:
        return a


def _commit(sha: str, *paths: str) -> CommitRecord:
    return CommitRecord(
        sha=sha,
        author="dev",
        date="2024-01-01T00:00:00Z",
        files=[ChangedFile(filename=path) for path in paths],
    )


def test_empty_file_list_returns_placeholder_tree() -> None:
    warnings = WarningLog()

    result = build_filesystem_tree([], warnings=warnings)

    assert result.is_fallback is True
    assert result.root.to_dict() == {
        "name": "root",
        "path": "",
        "type": "directory",
        "size": 0,
        "children": [
            {
                "name": "src",
                "path": "src",
                "type": "directory",
                "size": 0,
                "children": [
                    {"name": "index.js", "path": "src/index.js", "type": "file", "size": 1000}
                ],
            }
        ],
    }
    assert [warning.step for warning in warnings] == [FILESYSTEM_STEP]


def test_filesystem_leaves_round_trip_to_input_paths() -> None:
    files = [
        FileRecord(path="src/app.ts", size=120),
        FileRecord(path="src/lib/util.ts", size=40),
        FileRecord(path="README.md", size=9),
    ]

    result = build_filesystem_tree(files)

    assert result.is_fallback is False
    leaves = leaf_paths(result.root)
    assert sorted(leaves) == sorted(record.path for record in files)
    assert leaves["src/lib/util.ts"].size == 40
    src = next(child for child in result.root.children or [] if child.name == "src")
    assert src.type == "directory"
    assert [child.name for child in src.children or []] == ["app.ts", "lib"]


def test_path_used_as_file_and_directory_becomes_directory() -> None:
    result = build_filesystem_tree([FileRecord(path="docs"), FileRecord(path="docs/guide.md")])

    [docs] = result.root.children or []
    assert docs.type == "directory"
    assert sorted(leaf_paths(result.root)) == ["docs/guide.md"]


def test_churn_counts_once_per_commit() -> None:
    commits = [_commit("1", "a.ts", "a.ts", "b.ts"), _commit("2", "a.ts"), CommitRecord("3", "dev", "")]

    assert churn_counts(commits) == {"a.ts": 2, "b.ts": 1}


def test_churn_tree_includes_only_changed_files() -> None:
    files = [FileRecord(path="src/a.ts"), FileRecord(path="src/b.ts"), FileRecord(path="README.md")]
    commits = [_commit("1", "src/a.ts", "README.md"), _commit("2", "src/a.ts")]

    result = build_churn_tree(files, commits)

    assert result.is_fallback is False
    churn = {path: node.churn_rate for path, node in leaf_paths(result.root).items()}
    assert churn == {"src/a.ts": 2, "README.md": 1}


def test_churn_tree_placeholder_for_no_files() -> None:
    warnings = WarningLog()

    result = build_churn_tree([], [], warnings=warnings)

    assert result.is_fallback is True
    assert leaf_paths(result.root)["src/index.js"].churn_rate == 1
    assert [warning.step for warning in warnings] == [CHURN_STEP]


def test_synthetic_churn_is_flagged_and_reproducible() -> None:
    warnings = WarningLog()
    files = [FileRecord(path="src/app.ts"), FileRecord(path="server/main.py", size=3000)]

    first = build_churn_tree(files, [], seed=7, warnings=warnings)
    second = build_churn_tree(list(reversed(files)), [], seed=7)

    assert first.is_fallback is True
    assert first.root.to_dict() == second.root.to_dict()
    leaves = leaf_paths(first.root)
    assert sorted(leaves) == ["server/main.py", "src/app.ts"]
    assert 6 <= (leaves["src/app.ts"].churn_rate or 0) <= 9
    assert 6 <= (leaves["server/main.py"].churn_rate or 0) <= 9
    assert [warning.step for warning in warnings] == [CHURN_STEP]


def test_synthetic_churn_rule() -> None:
    rng = _NoJitter()

    assert synthetic_churn(FileRecord(path="src/App.tsx"), rng) == 6
    assert synthetic_churn(FileRecord(path="tests/test_api.py", size=12_000), rng) == 12
    assert synthetic_churn(FileRecord(path="webpack.config.js", size=60_000), rng) == 16
    assert synthetic_churn(FileRecord(path="notes.txt"), rng) == 1

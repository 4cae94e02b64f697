"""Filesystem and churn trees built from flat path lists."""

from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

from .base import AnalysisContext, Analyzer
from ..classifier import detect_language, extension_family, is_test_path, suffix_of
from ..diagnostics import WarningLog
from ..failsafe import build_placeholder_tree
from ..logging import get_logger
from ..models import CommitRecord, FileRecord, RepoSnapshot, TreeNode, TreeResult

FILESYSTEM_STEP = "Filesystem Tree"
CHURN_STEP = "Churn Tree"

_LOGGER = get_logger("analyzers.hierarchy")

_FRONTEND_FAMILIES = frozenset({"script", "markup", "style"})
_BACKEND_LANGUAGES = frozenset(
    {"Python", "Java", "Kotlin", "Scala", "Go", "Rust", "Ruby", "PHP", "C#", "C", "C++", "Swift"}
)
_CONFIG_SUFFIXES = frozenset({".json", ".yml", ".yaml", ".toml", ".ini", ".cfg", ".env"})

# (minimum size in bytes, boost), largest first.
_SIZE_TIERS: tuple[tuple[int, int], ...] = ((50_000, 6), (10_000, 4), (2_000, 2))


class _TreeBuilder:
    """Trie over slash-separated paths with O(1) lookup of existing nodes."""

    def __init__(self, value_field: str) -> None:
        self._field = value_field
        self.root = TreeNode(name="root", path="", type="directory", children=[], **{value_field: 0})
        self._index: Dict[str, TreeNode] = {"": self.root}

    def insert(self, path: str, value: int) -> None:
        parts = [part for part in path.split("/") if part]
        parent = self.root
        for depth, name in enumerate(parts):
            current_path = "/".join(parts[: depth + 1])
            is_leaf = depth == len(parts) - 1
            node = self._index.get(current_path)
            if node is None:
                node = TreeNode(
                    name=name,
                    path=current_path,
                    type="file" if is_leaf else "directory",
                    children=None if is_leaf else [],
                    **{self._field: value if is_leaf else 0},
                )
                self._attach(parent, node)
                self._index[current_path] = node
            elif is_leaf:
                setattr(node, self._field, value)
            elif node.is_file:
                # A path was listed both as a file and as a directory prefix.
                node.type = "directory"
                node.children = []
            parent = node

    @staticmethod
    def _attach(parent: TreeNode, child: TreeNode) -> None:
        if parent.children is None:
            parent.children = []
        parent.children.append(child)

    @property
    def empty(self) -> bool:
        return not self.root.children


def build_filesystem_tree(
    files: Sequence[FileRecord], *, warnings: Optional[WarningLog] = None
) -> TreeResult:
    """Return a directory tree of ``files`` with sizes on the leaves."""
    builder = _TreeBuilder("size")
    for record in files:
        builder.insert(record.path, record.size)
    if builder.empty:
        if warnings is not None:
            warnings.add(FILESYSTEM_STEP, "No files to display; using placeholder tree")
        return TreeResult(root=build_placeholder_tree(), is_fallback=True)
    return TreeResult(root=builder.root)


def churn_counts(commits: Sequence[CommitRecord]) -> Dict[str, int]:
    """Count, per path, the commits whose file list includes it."""
    counts: Counter[str] = Counter()
    for commit in commits:
        counts.update(set(commit.paths()))
    return dict(counts)


def synthetic_churn(record: FileRecord, rng: random.Random) -> int:
    """Plausible churn value for a file when no history is available."""
    value = 1
    language = record.language or detect_language(record.path)
    if extension_family(record.path) in _FRONTEND_FAMILIES:
        value += 5
    elif language in _BACKEND_LANGUAGES:
        value += 3
    if is_test_path(record.path) or _looks_like_config(record.path):
        value += 4
    for threshold, boost in _SIZE_TIERS:
        if record.size > threshold:
            value += boost
            break
    return value + rng.randint(0, 3)


def _looks_like_config(path: str) -> bool:
    name = path.rsplit("/", 1)[-1].lower()
    return "config" in name or suffix_of(path) in _CONFIG_SUFFIXES


def build_churn_tree(
    files: Sequence[FileRecord],
    commits: Sequence[CommitRecord],
    *,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    warnings: Optional[WarningLog] = None,
) -> TreeResult:
    """Return a tree of files weighted by how often they changed.

    Only files with non-zero churn appear. When no file has any recorded
    change, every file gets a synthetic value and the result is flagged.
    """
    if not files:
        if warnings is not None:
            warnings.add(CHURN_STEP, "No files to display; using placeholder tree")
        return TreeResult(root=build_placeholder_tree(churn=True), is_fallback=True)

    counts = churn_counts(commits)
    builder = _TreeBuilder("churn_rate")
    for record in files:
        churn = counts.get(record.path, 0)
        if churn > 0:
            builder.insert(record.path, churn)
    if not builder.empty:
        return TreeResult(root=builder.root)

    rng = rng or random.Random(seed)
    builder = _TreeBuilder("churn_rate")
    for record in sorted(files, key=lambda item: item.path):
        builder.insert(record.path, synthetic_churn(record, rng))
    if warnings is not None:
        warnings.add(CHURN_STEP, "No commit history touched these files; churn values are synthetic")
    _LOGGER.debug("Synthesized churn for %d files", len(files))
    return TreeResult(root=builder.root, is_fallback=True)


@dataclass
class Hierarchies:
    filesystem: TreeResult
    churn: TreeResult


class HierarchyAnalyzer(Analyzer):
    """Produces the filesystem and churn trees."""

    name = "hierarchy"

    def supports(self, snapshot: RepoSnapshot) -> bool:
        return True

    def analyze(self, context: AnalysisContext) -> Hierarchies:
        snapshot = context.snapshot
        return Hierarchies(
            filesystem=build_filesystem_tree(snapshot.files, warnings=context.warnings),
            churn=build_churn_tree(
                snapshot.files,
                snapshot.commits,
                seed=context.config.churn.seed,
                warnings=context.warnings,
            ),
        )


def leaf_paths(root: TreeNode) -> Mapping[str, TreeNode]:
    """Map each leaf's path to its node."""
    return {node.path: node for node in root.iter_files()}


__all__ = [
    "CHURN_STEP",
    "FILESYSTEM_STEP",
    "Hierarchies",
    "HierarchyAnalyzer",
    "build_churn_tree",
    "build_filesystem_tree",
    "churn_counts",
    "leaf_paths",
    "synthetic_churn",
]

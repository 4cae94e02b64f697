"""Core data models shared across repograph components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class FileRecord:
    """A repository file as supplied by the caller.

    ``language`` and ``role`` are derived by the classifier and attached
    during analysis; everything else is read-only input.
    """

    path: str
    size: int = 0
    content: Optional[str] = None
    language: Optional[str] = None
    role: Optional[str] = None


@dataclass(frozen=True)
class ChangedFile:
    """A single file entry from a commit's changed-file list."""

    filename: str


@dataclass(frozen=True)
class CommitRecord:
    """Commit metadata consumed by the coupling and churn analyzers."""

    sha: str
    author: str
    date: str
    message: str = ""
    files: Optional[List[ChangedFile]] = None

    def paths(self) -> List[str]:
        return [entry.filename for entry in self.files or []]


@dataclass
class RepoSnapshot:
    """Normalized view of a repository handed to analyzers."""

    root: str
    files: List[FileRecord]
    commits: List[CommitRecord] = field(default_factory=list)


@dataclass(frozen=True)
class Node:
    """Dependency graph vertex; one per source file."""

    id: str
    name: str
    type: str
    path: str


@dataclass(frozen=True)
class Edge:
    source: str
    target: str


@dataclass
class CouplingPair:
    """Weighted unordered file pair; ``source`` always sorts before ``target``."""

    source: str
    target: str
    weight: float
    evidence: List[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.source}::{self.target}"


@dataclass(frozen=True)
class QualityMetric:
    complexity: int
    maintainability: float
    lines_of_code: int


@dataclass
class TreeNode:
    """Node of a filesystem or churn hierarchy.

    File nodes keep ``children`` as ``None``; directory nodes always carry a list.
    """

    name: str
    path: str
    type: str
    size: Optional[int] = None
    churn_rate: Optional[int] = None
    children: Optional[List["TreeNode"]] = None

    @property
    def is_file(self) -> bool:
        return self.type == "file"

    def iter_files(self) -> Iterator["TreeNode"]:
        """Yield every file node below (and including) this node."""
        if self.is_file:
            yield self
            return
        for child in self.children or []:
            yield from child.iter_files()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "path": self.path, "type": self.type}
        if self.size is not None:
            payload["size"] = self.size
        if self.churn_rate is not None:
            payload["churnRate"] = self.churn_rate
        if self.children is not None:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


@dataclass(frozen=True)
class AnalysisWarning:
    """Non-fatal problem surfaced alongside analysis output."""

    step: str
    message: str
    error: Optional[str] = None


@dataclass
class DependencyGraph:
    nodes: List[Node]
    edges: List[Edge]
    fallback: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.fallback is not None


@dataclass
class CouplingResult:
    pairs: List[CouplingPair]
    used_history: bool = False
    fallback: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.fallback is not None

    def weight_of(self, first: str, second: str) -> Optional[float]:
        """Return the merged weight of an unordered pair, if present."""
        low, high = sorted((first, second))
        for pair in self.pairs:
            if pair.source == low and pair.target == high:
                return pair.weight
        return None


@dataclass
class QualityReport:
    """Per-path metrics plus the name of the tier that produced each one."""

    metrics: Dict[str, QualityMetric] = field(default_factory=dict)
    tiers: Dict[str, str] = field(default_factory=dict)


@dataclass
class TreeResult:
    root: TreeNode
    is_fallback: bool = False


@dataclass(frozen=True)
class Hotspot:
    path: str
    changes: int
    complexity: int
    maintainability: float
    score: int
    risk: str


@dataclass
class AnalysisReport:
    """Everything one analysis run produced."""

    root: str
    graph: Optional[DependencyGraph] = None
    coupling: Optional[CouplingResult] = None
    quality: Optional[QualityReport] = None
    filesystem: Optional[TreeResult] = None
    churn: Optional[TreeResult] = None
    hotspots: List[Hotspot] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)
    warnings: List[AnalysisWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"root": self.root}
        if self.graph is not None:
            payload["dependencyGraph"] = {
                "nodes": [asdict(node) for node in self.graph.nodes],
                "edges": [asdict(edge) for edge in self.graph.edges],
                "fallback": self.graph.fallback,
            }
        if self.coupling is not None:
            payload["coupling"] = {
                "pairs": [asdict(pair) for pair in self.coupling.pairs],
                "usedHistory": self.coupling.used_history,
                "fallback": self.coupling.fallback,
            }
        if self.quality is not None:
            payload["quality"] = {
                path: {
                    "complexity": metric.complexity,
                    "maintainability": metric.maintainability,
                    "linesOfCode": metric.lines_of_code,
                    "tier": self.quality.tiers.get(path),
                }
                for path, metric in self.quality.metrics.items()
            }
        if self.filesystem is not None:
            payload["filesystemTree"] = {
                "root": self.filesystem.root.to_dict(),
                "isFallback": self.filesystem.is_fallback,
            }
        if self.churn is not None:
            payload["churnTree"] = {
                "root": self.churn.root.to_dict(),
                "isFallback": self.churn.is_fallback,
            }
        payload["hotspots"] = [asdict(hotspot) for hotspot in self.hotspots]
        if self.extras:
            payload["extras"] = self.extras
        payload["warnings"] = [asdict(warning) for warning in self.warnings]
        return payload


__all__ = [
    "AnalysisReport",
    "AnalysisWarning",
    "ChangedFile",
    "CommitRecord",
    "CouplingPair",
    "CouplingResult",
    "DependencyGraph",
    "Edge",
    "FileRecord",
    "Hotspot",
    "Node",
    "QualityMetric",
    "QualityReport",
    "RepoSnapshot",
    "TreeNode",
    "TreeResult",
]

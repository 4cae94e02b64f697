"""Dependency graph construction from resolved import references."""

from __future__ import annotations

import posixpath
from typing import Callable, List, Optional, Sequence, Tuple

from .base import AnalysisContext, Analyzer
from ..classifier import classify
from ..config import GraphConfig
from ..diagnostics import WarningLog
from ..failsafe import build_chain_links, build_role_links
from ..imports import extract_references, resolve_reference
from ..logging import get_logger
from ..models import DependencyGraph, Edge, FileRecord, Node, RepoSnapshot

STEP = "Dependency Graph"

_LOGGER = get_logger("analyzers.dependencies")


def build_dependency_graph(
    files: Sequence[FileRecord],
    *,
    config: Optional[GraphConfig] = None,
    warnings: Optional[WarningLog] = None,
) -> DependencyGraph:
    """Build a node/edge graph over the source files in ``files``.

    Classification results are attached to each record's ``language`` and
    ``role``. When no import resolves and there are at least two nodes, edges
    are synthesized by the fallback tiers and ``fallback`` names the tier used.
    """
    config = config or GraphConfig()
    warnings = warnings if warnings is not None else WarningLog()

    nodes: List[Node] = []
    sources: List[FileRecord] = []
    for record in files:
        classification = classify(record.path)
        record.language = classification.language
        record.role = classification.role
        if not classification.is_source:
            continue
        nodes.append(
            Node(
                id=record.path,
                name=posixpath.basename(record.path),
                type=classification.role,
                path=record.path,
            )
        )
        sources.append(record)

    known = {node.id for node in nodes}
    edges: List[Edge] = []
    missing_content = 0
    for record in sources:
        if record.content is None:
            missing_content += 1
            continue
        for reference in extract_references(record.content):
            target = resolve_reference(reference, record.path, known)
            if target is None or target == record.path:
                continue
            edges.append(Edge(source=record.path, target=target))

    if missing_content:
        warnings.add(
            STEP,
            f"{missing_content} of {len(sources)} source files had no content; their imports were not analyzed",
        )

    _LOGGER.debug("Resolved %d import edges across %d nodes", len(edges), len(nodes))
    if edges or len(nodes) < 2:
        return DependencyGraph(nodes=nodes, edges=edges)

    for name, tier in _fallback_tiers(config):
        fallback_edges = tier(nodes)
        if fallback_edges:
            warnings.add(
                STEP,
                f"No imports could be resolved; using {name}-based fallback links ({len(fallback_edges)} edges)",
            )
            return DependencyGraph(nodes=nodes, edges=fallback_edges, fallback=name)

    return DependencyGraph(nodes=nodes, edges=[])


def _fallback_tiers(config: GraphConfig) -> Tuple[Tuple[str, Callable[[Sequence[Node]], List[Edge]]], ...]:
    return (
        ("roles", lambda nodes: build_role_links(nodes, limit=config.max_role_links)),
        ("chain", lambda nodes: build_chain_links(nodes, limit=config.max_chain_links)),
    )


class DependencyAnalyzer(Analyzer):
    """Produces the internal import graph for source files."""

    name = "dependencies"

    def supports(self, snapshot: RepoSnapshot) -> bool:
        return bool(snapshot.files)

    def analyze(self, context: AnalysisContext) -> DependencyGraph:
        return build_dependency_graph(
            context.snapshot.files,
            config=context.config.graph,
            warnings=context.warnings,
        )


__all__ = ["DependencyAnalyzer", "STEP", "build_dependency_graph"]

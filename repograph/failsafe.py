"""Fail-safe substitutes used when an analysis step produces nothing usable."""

from __future__ import annotations

from typing import List, Sequence

from .models import CouplingPair, Edge, Node, TreeNode

# Ordered (source role, target role) directions used for role-based linking.
ROLE_LINK_DIRECTIONS: tuple[tuple[str, str], ...] = (
    ("page", "component"),
    ("component", "service"),
    ("component", "hook"),
)


def build_placeholder_tree(*, churn: bool = False) -> TreeNode:
    """Return the fixed tree shown when there are no files at all.

    With ``churn`` the nodes carry ``churn_rate`` values instead of sizes.
    """
    field_name = "churn_rate" if churn else "size"
    leaf_value = 1 if churn else 1000
    index = TreeNode(name="index.js", path="src/index.js", type="file", **{field_name: leaf_value})
    src = TreeNode(name="src", path="src", type="directory", children=[index], **{field_name: 0})
    return TreeNode(name="root", path="", type="directory", children=[src], **{field_name: 0})


def build_role_links(nodes: Sequence[Node], *, limit: int) -> List[Edge]:
    """Connect nodes along fixed role directions, up to ``limit`` edges."""
    edges: List[Edge] = []
    for source_role, target_role in ROLE_LINK_DIRECTIONS:
        sources = [node for node in nodes if node.type == source_role]
        targets = [node for node in nodes if node.type == target_role]
        for source in sources:
            for target in targets:
                if len(edges) >= limit:
                    return edges
                if source.id != target.id:
                    edges.append(Edge(source=source.id, target=target.id))
    return edges


def build_chain_links(nodes: Sequence[Node], *, limit: int) -> List[Edge]:
    """Connect each node to the next one in input order."""
    count = min(len(nodes) - 1, limit)
    return [Edge(source=nodes[i].id, target=nodes[i + 1].id) for i in range(max(count, 0))]


def build_proximity_couplings(paths: Sequence[str], *, weight: float = 1.0) -> List[CouplingPair]:
    """Pair neighbouring paths in sorted order at a minimal weight."""
    ordered = sorted(set(paths))
    return [
        CouplingPair(source=first, target=second, weight=weight, evidence=["proximity"])
        for first, second in zip(ordered, ordered[1:])
    ]


__all__ = [
    "ROLE_LINK_DIRECTIONS",
    "build_chain_links",
    "build_placeholder_tree",
    "build_proximity_couplings",
    "build_role_links",
]

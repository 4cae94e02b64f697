"""Tests for the dependency graph builder."""

from __future__ import annotations

from repograph.analyzers.dependencies import STEP, build_dependency_graph
from repograph.config import GraphConfig
from repograph.diagnostics import WarningLog
from repograph.models import Edge, FileRecord


def test_single_relative_import_produces_one_edge() -> None:
    files = [
        FileRecord(path="a.ts", content="import {x} from './b'\n"),
        FileRecord(path="b.ts", content="export const x = 1\n"),
    ]

    graph = build_dependency_graph(files)

    assert [node.id for node in graph.nodes] == ["a.ts", "b.ts"]
    assert graph.edges == [Edge(source="a.ts", target="b.ts")]
    assert graph.fallback is None
    assert graph.is_fallback is False


def test_nodes_only_cover_source_files_and_records_get_derived_fields() -> None:
    files = [
        FileRecord(path="src/components/Nav.tsx", content=""),
        FileRecord(path="README.md", content="# hi"),
        FileRecord(path="node_modules/x/index.js", content=""),
    ]

    graph = build_dependency_graph(files)

    assert [node.id for node in graph.nodes] == ["src/components/Nav.tsx"]
    node = graph.nodes[0]
    assert node.name == "Nav.tsx"
    assert node.type == "component"
    assert files[0].language == "TypeScript"
    assert files[0].role == "component"


def test_duplicate_imports_from_separate_statements_are_kept() -> None:
    files = [
        FileRecord(path="src/app.ts", content="import a from './util'\nconst b = require('./util.ts')\n"),
        FileRecord(path="src/util.ts", content=""),
    ]

    graph = build_dependency_graph(files)

    assert graph.edges == [
        Edge(source="src/app.ts", target="src/util.ts"),
        Edge(source="src/app.ts", target="src/util.ts"),
    ]


def test_external_packages_are_not_linked() -> None:
    files = [
        FileRecord(path="src/app.ts", content="import React from 'react'\nimport './styles.css'\n"),
        FileRecord(path="src/styles.css", content="body {}"),
    ]

    graph = build_dependency_graph(files)

    assert graph.edges == [Edge(source="src/app.ts", target="src/styles.css")]


def test_role_fallback_links_pages_components_and_services() -> None:
    warnings = WarningLog()
    files = [
        FileRecord(path="src/pages/Home.tsx", content="export default 1"),
        FileRecord(path="src/components/Card.tsx", content="export default 2"),
        FileRecord(path="src/services/data.ts", content="export default 3"),
    ]

    graph = build_dependency_graph(files, warnings=warnings)

    assert graph.fallback == "roles"
    assert graph.edges == [
        Edge(source="src/pages/Home.tsx", target="src/components/Card.tsx"),
        Edge(source="src/components/Card.tsx", target="src/services/data.ts"),
    ]
    assert [warning.step for warning in warnings] == [STEP]


def test_chain_fallback_when_roles_do_not_pair() -> None:
    warnings = WarningLog()
    files = [FileRecord(path=f"src/mod{i}.ts", content="") for i in range(4)]

    graph = build_dependency_graph(files, warnings=warnings)

    assert graph.fallback == "chain"
    assert graph.edges == [
        Edge(source="src/mod0.ts", target="src/mod1.ts"),
        Edge(source="src/mod1.ts", target="src/mod2.ts"),
        Edge(source="src/mod2.ts", target="src/mod3.ts"),
    ]
    assert len(warnings) == 1


def test_fallback_caps_are_configurable() -> None:
    files = [FileRecord(path=f"src/mod{i}.ts", content="") for i in range(30)]

    graph = build_dependency_graph(files, config=GraphConfig(max_chain_links=5))

    assert len(graph.edges) == 5


def test_role_fallback_is_capped() -> None:
    files = [FileRecord(path=f"src/pages/P{i}.tsx", content="") for i in range(6)]
    files += [FileRecord(path=f"src/components/C{i}.tsx", content="") for i in range(6)]

    graph = build_dependency_graph(files)

    assert graph.fallback == "roles"
    assert len(graph.edges) == 20


def test_graph_with_two_nodes_never_has_zero_edges() -> None:
    files = [FileRecord(path="x.py"), FileRecord(path="y.py")]

    graph = build_dependency_graph(files)

    assert len(graph.edges) >= 1


def test_single_node_graph_has_no_edges_and_no_fallback() -> None:
    graph = build_dependency_graph([FileRecord(path="main.py", content="print(1)")])

    assert graph.edges == []
    assert graph.fallback is None


def test_missing_content_is_reported_once() -> None:
    warnings = WarningLog()
    files = [
        FileRecord(path="a.ts", content="import b from './b'"),
        FileRecord(path="b.ts"),
        FileRecord(path="c.ts"),
    ]

    graph = build_dependency_graph(files, warnings=warnings)

    assert graph.edges == [Edge(source="a.ts", target="b.ts")]
    messages = [warning.message for warning in warnings]
    assert len(messages) == 1
    assert messages[0].startswith("2 of 3 source files")


def test_python_relative_imports_resolve() -> None:
    files = [
        FileRecord(path="pkg/__init__.py", content=""),
        FileRecord(path="pkg/cli.py", content="from .models import Node\nfrom . import helpers\n"),
        FileRecord(path="pkg/models.py", content=""),
    ]

    graph = build_dependency_graph(files)

    assert graph.edges == [
        Edge(source="pkg/cli.py", target="pkg/models.py"),
        Edge(source="pkg/cli.py", target="pkg/__init__.py"),
    ]


def test_unresolvable_asset_import_adds_no_edge() -> None:
    files = [
        FileRecord(path="src/App.tsx", content="import logo from './logo.svg'\nimport x from './util'\n"),
        FileRecord(path="src/logoutService.ts", content=""),
        FileRecord(path="src/util.ts", content=""),
    ]

    graph = build_dependency_graph(files)

    assert graph.edges == [Edge(source="src/App.tsx", target="src/util.ts")]

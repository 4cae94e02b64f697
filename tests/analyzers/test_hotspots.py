"""Tests for hotspot ranking."""

from __future__ import annotations

from pathlib import Path

from repograph.analyzers import AnalysisContext
from repograph.analyzers.hotspots import HotspotAnalyzer, rank_hotspots, risk_level
from repograph.analyzers.quality import QualityAnalyzer, StructuralAnalyzer
from repograph.config import HotspotConfig, RepoGraphConfig
from repograph.models import ChangedFile, CommitRecord, FileRecord, QualityMetric, RepoSnapshot


def _metric(complexity: int) -> QualityMetric:
    return QualityMetric(complexity=complexity, maintainability=50.0, lines_of_code=100)


def test_risk_levels() -> None:
    assert risk_level(61) == "critical"
    assert risk_level(60) == "high"
    assert risk_level(41) == "high"
    assert risk_level(21) == "medium"
    assert risk_level(20) == "low"


def test_rank_hotspots_filters_and_orders() -> None:
    metrics = {
        "a.ts": _metric(30),
        "b.ts": _metric(15),
        "c.ts": _metric(50),
        "simple.ts": _metric(5),
        "untouched.ts": _metric(80),
    }
    changes = {"a.ts": 2, "b.ts": 4, "c.ts": 1, "simple.ts": 40}

    ranked = rank_hotspots(metrics, changes)

    assert [(item.path, item.score) for item in ranked] == [
        ("a.ts", 60),
        ("b.ts", 60),
        ("c.ts", 50),
    ]
    assert ranked[2].risk == "high"


def test_rank_hotspots_honors_limit() -> None:
    metrics = {f"f{i}.ts": _metric(20 + i) for i in range(5)}
    changes = {path: 1 for path in metrics}

    ranked = rank_hotspots(metrics, changes, config=HotspotConfig(limit=2))

    assert [item.path for item in ranked] == ["f4.ts", "f3.ts"]


def test_analyzer_reuses_quality_report() -> None:
    content = "if (a) {}\n" * 12
    snapshot = RepoSnapshot(
        root="",
        files=[FileRecord(path="src/busy.ts", content=content)],
        commits=[
            CommitRecord(sha=str(i), author="dev", date="", files=[ChangedFile("src/busy.ts")])
            for i in range(3)
        ],
    )
    context = AnalysisContext(snapshot=snapshot, config=RepoGraphConfig(root=Path(".")))
    context.results["quality"] = QualityAnalyzer(StructuralAnalyzer(enabled=False)).analyze(context)

    analyzer = HotspotAnalyzer()
    assert analyzer.supports(snapshot)
    [hotspot] = analyzer.analyze(context)

    assert hotspot.path == "src/busy.ts"
    assert hotspot.complexity == 13
    assert hotspot.changes == 3
    assert hotspot.score == 39


def test_analyzer_skips_snapshots_without_history() -> None:
    snapshot = RepoSnapshot(root="", files=[FileRecord(path="a.ts")], commits=[])

    assert HotspotAnalyzer().supports(snapshot) is False

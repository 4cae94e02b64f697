"""Hotspot ranking: files that are both complex and frequently changed."""

from __future__ import annotations

from typing import List, Mapping, Optional

from .base import AnalysisContext, Analyzer
from .hierarchy import churn_counts
from .quality import QualityAnalyzer
from ..config import HotspotConfig
from ..models import Hotspot, QualityMetric, QualityReport, RepoSnapshot

# (exclusive lower bound on complexity, risk level), highest first.
_RISK_LEVELS: tuple[tuple[int, str], ...] = ((60, "critical"), (40, "high"), (20, "medium"))


def risk_level(complexity: int) -> str:
    for threshold, level in _RISK_LEVELS:
        if complexity > threshold:
            return level
    return "low"


def rank_hotspots(
    metrics: Mapping[str, QualityMetric],
    changes: Mapping[str, int],
    *,
    config: Optional[HotspotConfig] = None,
) -> List[Hotspot]:
    """Rank files by ``changes * complexity`` among those that changed and are complex."""
    config = config or HotspotConfig()
    hotspots: List[Hotspot] = []
    for path, metric in metrics.items():
        count = changes.get(path, 0)
        if count <= 0 or metric.complexity <= config.min_complexity:
            continue
        hotspots.append(
            Hotspot(
                path=path,
                changes=count,
                complexity=metric.complexity,
                maintainability=metric.maintainability,
                score=count * metric.complexity,
                risk=risk_level(metric.complexity),
            )
        )
    hotspots.sort(key=lambda item: (-item.score, item.path))
    return hotspots[: config.limit]


class HotspotAnalyzer(Analyzer):
    """Joins quality metrics with commit churn."""

    name = "hotspots"

    def supports(self, snapshot: RepoSnapshot) -> bool:
        return any(commit.files for commit in snapshot.commits)

    def analyze(self, context: AnalysisContext) -> List[Hotspot]:
        quality = context.results.get(QualityAnalyzer.name)
        if not isinstance(quality, QualityReport):
            quality = QualityAnalyzer().analyze(context)
            context.results[QualityAnalyzer.name] = quality
        return rank_hotspots(
            quality.metrics,
            churn_counts(context.snapshot.commits),
            config=context.config.hotspots,
        )


__all__ = ["HotspotAnalyzer", "rank_hotspots", "risk_level"]

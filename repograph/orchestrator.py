"""Pipeline orchestration: snapshot in, analysis report out."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from .analyzers import AnalysisContext, Analyzer, discover_analyzers
from .analyzers.hierarchy import Hierarchies
from .config import CONFIG_FILENAME, ConfigError, RepoGraphConfig, load_config
from .diagnostics import WarningLog
from .logging import get_logger
from .models import (
    AnalysisReport,
    CouplingResult,
    DependencyGraph,
    QualityReport,
    RepoSnapshot,
)
from .snapshot import SnapshotScanner, load_snapshot


class Orchestrator:
    """Runs every enabled analyzer over a snapshot and gathers the results."""

    def __init__(
        self,
        scanner: SnapshotScanner | None = None,
        analyzers: Optional[Iterable[Analyzer]] = None,
    ) -> None:
        self.scanner = scanner or SnapshotScanner()
        self._analyzer_overrides = list(analyzers) if analyzers is not None else None
        self.logger = get_logger("orchestrator")

    def run_path(
        self,
        path: str,
        *,
        include_history: bool = True,
        history_limit: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> AnalysisReport:
        """Scan a working tree and analyze it."""
        repo_path = Path(path).expanduser().resolve()
        self.logger.info("Starting analysis of %s", repo_path)
        config = self._load_config(repo_path)
        if seed is not None:
            config.churn.seed = seed
        warnings = WarningLog()
        snapshot = self.scanner.scan(
            str(repo_path),
            config=config,
            warnings=warnings,
            include_history=include_history,
            history_limit=history_limit,
        )
        self.logger.debug(
            "Scanner discovered %d files and %d commits", len(snapshot.files), len(snapshot.commits)
        )
        return self.analyze(snapshot, config=config, warnings=warnings)

    def run_snapshot(
        self,
        snapshot_path: str,
        *,
        config_path: Optional[str] = None,
        seed: Optional[int] = None,
    ) -> AnalysisReport:
        """Analyze a JSON snapshot document."""
        snapshot = load_snapshot(Path(snapshot_path))
        if config_path:
            config = load_config(Path(config_path))
        else:
            config = RepoGraphConfig(root=Path(snapshot_path).expanduser().resolve().parent)
        if seed is not None:
            config.churn.seed = seed
        self.logger.info("Analyzing snapshot %s (%d files)", snapshot_path, len(snapshot.files))
        return self.analyze(snapshot, config=config)

    def analyze(
        self,
        snapshot: RepoSnapshot,
        *,
        config: Optional[RepoGraphConfig] = None,
        warnings: Optional[WarningLog] = None,
    ) -> AnalysisReport:
        """Run the analyzers over an in-memory snapshot."""
        config = config or RepoGraphConfig(root=Path(snapshot.root or "."))
        context = AnalysisContext(
            snapshot=snapshot,
            config=config,
            warnings=warnings if warnings is not None else WarningLog(),
        )
        analyzers = self._select_analyzers(config)
        self.logger.debug("Selected %d analyzers", len(analyzers))

        for analyzer in analyzers:
            if not analyzer.supports(snapshot):
                self.logger.debug("Skipping analyzer %s", analyzer.name)
                continue
            self.logger.debug("Running analyzer %s", analyzer.__class__.__name__)
            try:
                context.results[analyzer.name] = analyzer.analyze(context)
            except Exception as exc:
                context.warnings.add(analyzer.name, f"Analyzer {analyzer.name} failed", exc)
                self.logger.debug("Analyzer %s failed", analyzer.name, exc_info=True)

        report = self._build_report(snapshot, context)
        self.logger.info("Analysis finished with %d warning(s)", len(report.warnings))
        return report

    def _build_report(self, snapshot: RepoSnapshot, context: AnalysisContext) -> AnalysisReport:
        results = dict(context.results)
        report = AnalysisReport(root=snapshot.root)

        graph = results.pop("dependencies", None)
        if isinstance(graph, DependencyGraph):
            report.graph = graph
        coupling = results.pop("coupling", None)
        if isinstance(coupling, CouplingResult):
            report.coupling = coupling
        quality = results.pop("quality", None)
        if isinstance(quality, QualityReport):
            report.quality = quality
        hierarchies = results.pop("hierarchy", None)
        if isinstance(hierarchies, Hierarchies):
            report.filesystem = hierarchies.filesystem
            report.churn = hierarchies.churn
        hotspots = results.pop("hotspots", None)
        if isinstance(hotspots, list):
            report.hotspots = hotspots

        report.extras = results
        report.warnings = context.warnings.entries
        return report

    def _load_config(self, repo_path: Path) -> RepoGraphConfig:
        try:
            return load_config(repo_path / CONFIG_FILENAME)
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid %s: %s", CONFIG_FILENAME, exc)
            return RepoGraphConfig(root=repo_path)

    def _select_analyzers(self, config: RepoGraphConfig) -> List[Analyzer]:
        if self._analyzer_overrides is not None:
            return list(self._analyzer_overrides)
        enabled = config.analyzers.enabled or None
        return list(discover_analyzers(enabled))


__all__ = ["Orchestrator"]

"""Configuration loading for repograph (.repograph.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".repograph.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class GraphConfig:
    """Caps applied by the dependency graph fallback tiers."""

    max_role_links: int = 20
    max_chain_links: int = 10


@dataclass
class CouplingConfig:
    """Thresholds for commit and structure coupling evidence."""

    min_commit_files: int = 2
    max_commit_files: int = 20
    min_cochanges: int = 2
    recent_days: int = 90
    cluster_days: int = 30
    max_pairs: int = 100
    min_directory_files: int = 2
    max_directory_files: int = 14
    entry_weight: float = 5.0
    entry_reference_bonus: float = 3.0


@dataclass
class QualityConfig:
    fallback_maintainability: float = 50.0
    max_fallback_complexity: int = 100


@dataclass
class ChurnConfig:
    """Synthetic churn settings; ``seed`` makes the jitter reproducible."""

    seed: Optional[int] = None


@dataclass
class ScanConfig:
    """Batching used when reading file contents from disk."""

    batch_size: int = 10
    batch_delay: float = 0.0


@dataclass
class HotspotConfig:
    min_complexity: int = 10
    limit: int = 20


@dataclass
class AnalyzerConfig:
    """Analyzer enablement and exclusions."""

    enabled: List[str] = field(default_factory=list)
    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class RepoGraphConfig:
    """Represents the settings defined in .repograph.yml."""

    root: Path
    graph: GraphConfig = field(default_factory=GraphConfig)
    coupling: CouplingConfig = field(default_factory=CouplingConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    churn: ChurnConfig = field(default_factory=ChurnConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    hotspots: HotspotConfig = field(default_factory=HotspotConfig)
    analyzers: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    exclude_paths: List[str] = field(default_factory=list)


def load_config(config_path: Path) -> RepoGraphConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RepoGraphConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = RepoGraphConfig(root=root)

    graph_data = _as_dict(data.get("graph"))
    _apply_int(config.graph, graph_data, "max_role_links", "max_chain_links")

    coupling_data = _as_dict(data.get("coupling"))
    _apply_int(
        config.coupling,
        coupling_data,
        "min_commit_files",
        "max_commit_files",
        "min_cochanges",
        "recent_days",
        "cluster_days",
        "max_pairs",
        "min_directory_files",
        "max_directory_files",
    )
    _apply_float(config.coupling, coupling_data, "entry_weight", "entry_reference_bonus")
    if config.coupling.min_commit_files > config.coupling.max_commit_files:
        raise ConfigError("coupling.min_commit_files cannot exceed coupling.max_commit_files")

    quality_data = _as_dict(data.get("quality"))
    _apply_float(config.quality, quality_data, "fallback_maintainability")
    _apply_int(config.quality, quality_data, "max_fallback_complexity")
    if not 0 <= config.quality.fallback_maintainability <= 100:
        raise ConfigError("quality.fallback_maintainability must be between 0 and 100")

    churn_data = _as_dict(data.get("churn"))
    if churn_data:
        config.churn.seed = _as_int(churn_data.get("seed"))

    scan_data = _as_dict(data.get("scan"))
    _apply_int(config.scan, scan_data, "batch_size")
    _apply_float(config.scan, scan_data, "batch_delay")
    if config.scan.batch_size < 1:
        raise ConfigError("scan.batch_size must be at least 1")

    hotspot_data = _as_dict(data.get("hotspots"))
    _apply_int(config.hotspots, hotspot_data, "min_complexity", "limit")

    analyzer_data = _as_dict(data.get("analyzers"))
    if analyzer_data:
        config.analyzers.enabled = _as_str_list(analyzer_data.get("enabled"))
        config.analyzers.exclude_paths = _as_str_list(analyzer_data.get("exclude_paths"))

    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _apply_int(target: object, data: Dict[str, Any], *names: str) -> None:
    for name in names:
        value = _as_int(data.get(name))
        if value is not None:
            setattr(target, name, value)


def _apply_float(target: object, data: Dict[str, Any], *names: str) -> None:
    for name in names:
        value = _as_float(data.get(name))
        if value is not None:
            setattr(target, name, value)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AnalyzerConfig",
    "CONFIG_FILENAME",
    "ChurnConfig",
    "ConfigError",
    "CouplingConfig",
    "GraphConfig",
    "HotspotConfig",
    "QualityConfig",
    "RepoGraphConfig",
    "ScanConfig",
    "load_config",
]

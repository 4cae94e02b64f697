"""Analyzer plugin implementations and discovery utilities."""

from __future__ import annotations

import functools
from importlib import metadata
from typing import Callable, Dict, Iterator, List, Sequence, Tuple

from .base import AnalysisContext, Analyzer
from .coupling import CouplingAnalyzer
from .dependencies import DependencyAnalyzer
from .hierarchy import HierarchyAnalyzer
from .hotspots import HotspotAnalyzer
from .quality import QualityAnalyzer

_ENTRY_POINT_GROUP = "repograph.analyzers"

# Run order matters: hotspots reuse the quality report when it is available.
_BUILTIN_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "dependencies": DependencyAnalyzer,
    "coupling": CouplingAnalyzer,
    "quality": QualityAnalyzer,
    "hierarchy": HierarchyAnalyzer,
    "hotspots": HotspotAnalyzer,
}


def discover_analyzers(enabled: Sequence[str] | None = None) -> List[Analyzer]:
    """Return analyzers in run order: built-ins first, then installed plugins.

    ``enabled`` restricts the result to the named analyzers (case-insensitive).
    Plugins whose name shadows an earlier analyzer are skipped. Naming an
    analyzer that does not exist raises ``ValueError``.
    """
    wanted = {name.lower() for name in enabled} if enabled is not None else None
    selected: Dict[str, Analyzer] = {}

    for name, factory in _candidate_factories():
        key = name.lower()
        if key in selected or (wanted is not None and key not in wanted):
            continue
        selected[key] = _instantiate(key, factory)

    if wanted is not None:
        unknown = sorted(wanted - set(selected))
        if unknown:
            raise ValueError(f"Unknown analyzers requested: {', '.join(unknown)}")
    return list(selected.values())


def _candidate_factories() -> Iterator[Tuple[str, Callable[[], Analyzer]]]:
    yield from _BUILTIN_FACTORIES.items()
    for entry in metadata.entry_points().select(group=_ENTRY_POINT_GROUP):
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load analyzer entry point '{entry.name}': {exc}") from exc
        yield entry.name, functools.partial(_coerce_analyzer, loaded)


def _instantiate(name: str, factory: Callable[[], Analyzer]) -> Analyzer:
    instance = factory()
    if not isinstance(instance, Analyzer):
        raise TypeError(f"Analyzer factory for '{name}' did not return an Analyzer instance")
    if not instance.name:
        instance.name = name
    return instance


def _coerce_analyzer(obj: object) -> Analyzer:
    if isinstance(obj, Analyzer):
        return obj
    if isinstance(obj, type) and issubclass(obj, Analyzer):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Analyzer):
            return instance
    raise TypeError("Analyzer entry point must be an Analyzer subclass or factory")


__all__ = [
    "AnalysisContext",
    "Analyzer",
    "discover_analyzers",
]

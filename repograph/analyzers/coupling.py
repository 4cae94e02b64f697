"""File coupling from commit co-change history and structural heuristics.

Two evidence sources are always computed and then merged by summing the
weights of identical pairs:

* commit evidence: files that repeatedly change in the same commits
* structure evidence: directory siblings, shared component names, and entry
  files next to the modules they expose

Pairs are tracked under :func:`pair_key`, so ``(a, b)`` and ``(b, a)`` always
accumulate into the same entry.
"""

from __future__ import annotations

import itertools
import posixpath
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .base import AnalysisContext, Analyzer
from ..classifier import (
    base_name,
    classify,
    component_name,
    is_test_path,
    same_family,
    stem_of,
)
from ..config import CouplingConfig
from ..diagnostics import WarningLog
from ..failsafe import build_proximity_couplings
from ..logging import get_logger
from ..models import CommitRecord, CouplingPair, CouplingResult, FileRecord, RepoSnapshot

STEP = "Coupling"

_LOGGER = get_logger("analyzers.coupling")

_ENTRY_STEMS = frozenset({"index", "main", "app", "__init__"})


def pair_key(first: str, second: str) -> str:
    """Return the order-independent key for an unordered file pair."""
    low, high = sorted((first, second))
    return f"{low}::{high}"


def make_pair(first: str, second: str, weight: float, evidence: str) -> CouplingPair:
    low, high = sorted((first, second))
    return CouplingPair(source=low, target=high, weight=weight, evidence=[evidence])


def parse_commit_date(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 commit date; naive values are taken as UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_test_counterpart(first: str, second: str) -> bool:
    """True when exactly one path is a test and both share a base name."""
    if is_test_path(first) == is_test_path(second):
        return False
    return base_name(first) == base_name(second)


def too_similar(first: str, second: str) -> bool:
    """Near-duplicate pairs that co-change trivially and carry no coupling signal."""
    if stem_of(first).lower() == stem_of(second).lower():
        return True
    return is_test_counterpart(first, second)


@dataclass
class _CoChange:
    count: int = 0
    dates: List[datetime] = field(default_factory=list)
    authors: Set[str] = field(default_factory=set)


def commit_couplings(
    commits: Sequence[CommitRecord],
    *,
    config: Optional[CouplingConfig] = None,
    now: Optional[datetime] = None,
) -> List[CouplingPair]:
    """Score pairs of source files that change together across ``commits``.

    ``now`` anchors the recency bonus; it defaults to the newest commit date so
    that the result depends on the inputs alone.
    """
    config = config or CouplingConfig()
    stats: Dict[str, _CoChange] = defaultdict(_CoChange)
    pair_paths: Dict[str, tuple[str, str]] = {}
    newest: Optional[datetime] = None

    for commit in commits:
        if not commit.files:
            continue
        paths = sorted({path for path in commit.paths() if classify(path).is_source})
        if not config.min_commit_files <= len(paths) <= config.max_commit_files:
            continue
        date = parse_commit_date(commit.date)
        if date is not None and (newest is None or date > newest):
            newest = date
        for first, second in itertools.combinations(paths, 2):
            if too_similar(first, second):
                continue
            key = pair_key(first, second)
            entry = stats[key]
            entry.count += 1
            if date is not None:
                entry.dates.append(date)
            if commit.author:
                entry.authors.add(commit.author)
            pair_paths[key] = (first, second)

    anchor = now or newest or datetime.now(timezone.utc)
    if anchor.tzinfo is None:
        anchor = anchor.replace(tzinfo=timezone.utc)

    pairs: List[CouplingPair] = []
    for key in sorted(stats):
        entry = stats[key]
        if entry.count < config.min_cochanges:
            continue
        first, second = pair_paths[key]
        weight = _commit_weight(entry, first, second, anchor, config)
        pairs.append(make_pair(first, second, weight, "commits"))
    return pairs


def _commit_weight(
    entry: _CoChange, first: str, second: str, now: datetime, config: CouplingConfig
) -> float:
    weight = 2.0 * entry.count
    recent = timedelta(days=config.recent_days)
    weight += sum(1 for date in entry.dates if now - date <= recent)
    if entry.count > 2 and len(entry.dates) >= 2:
        span = max(entry.dates) - min(entry.dates)
        if span < timedelta(days=config.cluster_days):
            weight += 3
    if len(entry.authors) > 1:
        weight += len(entry.authors)
    if same_family(first, second):
        weight += 2
    return round(weight, 1)


def structure_couplings(
    files: Sequence[FileRecord],
    *,
    config: Optional[CouplingConfig] = None,
) -> List[CouplingPair]:
    """Score pairs from directory layout and naming, without any history."""
    config = config or CouplingConfig()
    sources = [record for record in files if classify(record.path).is_source]
    pairs: List[CouplingPair] = []
    pairs.extend(_directory_pairs(sources, config))
    pairs.extend(_component_pairs(sources))
    pairs.extend(_entry_pairs(sources, config))
    return pairs


def _by_directory(sources: Sequence[FileRecord]) -> Dict[str, List[FileRecord]]:
    groups: Dict[str, List[FileRecord]] = defaultdict(list)
    for record in sources:
        groups[posixpath.dirname(record.path)].append(record)
    return groups


def _directory_pairs(sources: Sequence[FileRecord], config: CouplingConfig) -> Iterable[CouplingPair]:
    for directory, members in sorted(_by_directory(sources).items()):
        if not config.min_directory_files <= len(members) <= config.max_directory_files:
            continue
        for first, second in itertools.combinations(members, 2):
            weight = 3.0
            if same_family(first.path, second.path):
                weight += 3
            if component_name(first.path) == component_name(second.path):
                weight += 2
            if is_test_counterpart(first.path, second.path):
                weight += 4
            yield make_pair(first.path, second.path, weight, "directory")


def _component_pairs(sources: Sequence[FileRecord]) -> Iterable[CouplingPair]:
    groups: Dict[str, List[str]] = defaultdict(list)
    for record in sources:
        if stem_of(record.path).lower() in _ENTRY_STEMS:
            continue
        name = component_name(record.path)
        if name:
            groups[name].append(record.path)

    for name, paths in sorted(groups.items()):
        if len(paths) < 2:
            continue
        for first, second in itertools.combinations(paths, 2):
            weight = 4.0
            if same_family(first, second):
                weight += 2
            yield make_pair(first, second, weight, "component")


def _entry_pairs(sources: Sequence[FileRecord], config: CouplingConfig) -> Iterable[CouplingPair]:
    for directory, members in sorted(_by_directory(sources).items()):
        entries = [record for record in members if stem_of(record.path).lower() in _ENTRY_STEMS]
        for entry in entries:
            for sibling in members:
                if sibling.path == entry.path:
                    continue
                weight = config.entry_weight
                if entry.content and _references_sibling(entry.content, sibling.path):
                    weight += config.entry_reference_bonus
                yield make_pair(entry.path, sibling.path, weight, "entry")


def _references_sibling(content: str, sibling_path: str) -> bool:
    stem = stem_of(sibling_path)
    return any(f"./{stem}{end}" in content for end in ("'", '"', ".", "/"))


def merge_couplings(*sources: Iterable[CouplingPair], limit: Optional[int] = None) -> List[CouplingPair]:
    """Sum the weights of identical pairs across evidence sources.

    The result is ordered by descending weight with the pair key as tie-break,
    so merging is independent of source order.
    """
    merged: Dict[str, CouplingPair] = {}
    for source in sources:
        for pair in source:
            key = pair_key(pair.source, pair.target)
            current = merged.get(key)
            if current is None:
                low, high = sorted((pair.source, pair.target))
                merged[key] = CouplingPair(
                    source=low, target=high, weight=pair.weight, evidence=list(pair.evidence)
                )
                continue
            current.weight += pair.weight
            for label in pair.evidence:
                if label not in current.evidence:
                    current.evidence.append(label)

    for pair in merged.values():
        pair.weight = round(pair.weight, 1)
        pair.evidence.sort()
    ordered = sorted(merged.values(), key=lambda pair: (-pair.weight, pair.key))
    if limit is not None:
        ordered = ordered[:limit]
    return ordered


def compute_coupling(
    commits: Sequence[CommitRecord],
    files: Sequence[FileRecord],
    *,
    config: Optional[CouplingConfig] = None,
    now: Optional[datetime] = None,
    warnings: Optional[WarningLog] = None,
) -> CouplingResult:
    """Return the merged, ranked coupling pairs for a snapshot."""
    config = config or CouplingConfig()
    warnings = warnings if warnings is not None else WarningLog()

    used_history = any(commit.files for commit in commits)
    if commits and not used_history:
        _LOGGER.info("Commits carry no file lists; coupling uses structure evidence only")

    from_commits = commit_couplings(commits, config=config, now=now)
    from_structure = structure_couplings(files, config=config)
    pairs = merge_couplings(from_commits, from_structure, limit=config.max_pairs)
    _LOGGER.debug(
        "Coupling evidence: %d commit pairs, %d structure pairs, %d merged",
        len(from_commits),
        len(from_structure),
        len(pairs),
    )
    if pairs:
        return CouplingResult(pairs=pairs, used_history=used_history)

    source_paths = [record.path for record in files if classify(record.path).is_source]
    if len(source_paths) < 2:
        return CouplingResult(pairs=[], used_history=used_history)

    fallback = build_proximity_couplings(source_paths)[: config.max_pairs]
    warnings.add(STEP, f"No coupling evidence found; pairing {len(fallback)} neighbouring files")
    return CouplingResult(pairs=fallback, used_history=used_history, fallback="proximity")


class CouplingAnalyzer(Analyzer):
    """Produces the weighted file-coupling graph."""

    name = "coupling"

    def supports(self, snapshot: RepoSnapshot) -> bool:
        return bool(snapshot.files or snapshot.commits)

    def analyze(self, context: AnalysisContext) -> CouplingResult:
        return compute_coupling(
            context.snapshot.commits,
            context.snapshot.files,
            config=context.config.coupling,
            warnings=context.warnings,
        )


__all__ = [
    "CouplingAnalyzer",
    "STEP",
    "commit_couplings",
    "compute_coupling",
    "merge_couplings",
    "pair_key",
    "parse_commit_date",
    "structure_couplings",
    "too_similar",
]

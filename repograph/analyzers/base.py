"""Base classes for analyzer plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict

from ..config import RepoGraphConfig
from ..diagnostics import WarningLog
from ..models import RepoSnapshot


@dataclass
class AnalysisContext:
    """State shared by analyzers during one run.

    ``results`` holds the output of analyzers that already ran, keyed by name,
    so later analyzers can reuse earlier work.
    """

    snapshot: RepoSnapshot
    config: RepoGraphConfig
    warnings: WarningLog = field(default_factory=WarningLog)
    results: Dict[str, Any] = field(default_factory=dict)


class Analyzer(ABC):
    """Contract for analyzers that derive one artifact from a repository snapshot."""

    name: str = ""

    @abstractmethod
    def supports(self, snapshot: RepoSnapshot) -> bool:
        """Return True when this analyzer should run for the snapshot."""

    @abstractmethod
    def analyze(self, context: AnalysisContext) -> Any:
        """Produce the analyzer's artifact; problems are reported via ``context.warnings``."""

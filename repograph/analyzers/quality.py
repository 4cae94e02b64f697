"""Per-file complexity and maintainability with a tiered fallback cascade."""

from __future__ import annotations

import math
import re
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from .base import AnalysisContext, Analyzer
from ..classifier import classify, suffix_of
from ..config import QualityConfig
from ..diagnostics import WarningLog
from ..logging import get_logger
from ..models import FileRecord, QualityMetric, QualityReport, RepoSnapshot

try:  # pragma: no cover - optional dependency
    import tree_sitter_javascript
    import tree_sitter_python
    import tree_sitter_typescript
    from tree_sitter import Language, Parser

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Language = None  # type: ignore[assignment,misc]
    Parser = None  # type: ignore[assignment,misc]
    TREE_SITTER_AVAILABLE = False

STEP = "Quality Metrics"

TIER_STRUCTURAL = "structural"
TIER_KEYWORDS = "keywords"
TIER_DEFAULT = "default"

_LOGGER = get_logger("analyzers.quality")

_GRAMMAR_BY_SUFFIX = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".vue": "javascript",
    ".svelte": "javascript",
}

_SCRIPT_DECISIONS = frozenset(
    {
        "if_statement",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "do_statement",
        "switch_case",
        "catch_clause",
        "ternary_expression",
    }
)

_DECISION_NODES = {
    "javascript": _SCRIPT_DECISIONS,
    "typescript": _SCRIPT_DECISIONS,
    "tsx": _SCRIPT_DECISIONS,
    "python": frozenset(
        {
            "if_statement",
            "elif_clause",
            "for_statement",
            "while_statement",
            "except_clause",
            "conditional_expression",
            "case_clause",
            "for_in_clause",
            "if_clause",
            "boolean_operator",
        }
    ),
}

_SHORT_CIRCUIT_OPERATORS = frozenset({"&&", "||", "??"})

_KEYWORD_PATTERN = re.compile(r"\b(?:if|else|for|while|switch|case|catch)\b")

_EMBEDDED_SCRIPT = re.compile(
    r"<script(?P<attrs>[^>]*)>(?P<body>.*?)</script>", re.IGNORECASE | re.DOTALL
)


class QualityAnalysisError(RuntimeError):
    """Raised when the structural analyzer cannot produce a metric."""


def maintainability_index(complexity: int, lines_of_code: int) -> float:
    """Normalized maintainability index in [0, 100].

    Uses ``171 - 0.23 * cc - 16.2 * ln(loc)`` scaled to 100; an undefined result
    (no lines) counts as fully maintainable.
    """
    if lines_of_code <= 0:
        return 100.0
    raw = (171 - 0.23 * complexity - 16.2 * math.log(lines_of_code)) * 100 / 171
    if math.isnan(raw):
        return 100.0
    return float(min(100.0, max(0.0, round(raw))))


class StructuralAnalyzer:
    """Counts decision points in a tree-sitter parse tree."""

    def __init__(self, enabled: Optional[bool] = None) -> None:
        self._enabled = TREE_SITTER_AVAILABLE if enabled is None else enabled
        self._parsers: Dict[str, "Parser"] = {}

    @property
    def available(self) -> bool:
        return self._enabled

    def grammar_for(self, path: str) -> Optional[str]:
        return _GRAMMAR_BY_SUFFIX.get(suffix_of(path))

    def measure(self, path: str, content: str) -> Optional[QualityMetric]:
        """Return a metric, or ``None`` when the file's language is not covered."""
        if not self._enabled:
            return None
        grammar = self.grammar_for(path)
        if grammar is None:
            return None
        source, grammar = _normalize_source(path, content, grammar)

        parser = self._get_parser(grammar)
        tree = parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            raise QualityAnalysisError(f"{grammar} parser reported syntax errors")

        complexity = 1 + sum(1 for _ in _decision_points(root, _DECISION_NODES[grammar]))
        lines = sum(1 for line in source.splitlines() if line.strip())
        return QualityMetric(
            complexity=complexity,
            maintainability=maintainability_index(complexity, lines),
            lines_of_code=lines,
        )

    def _get_parser(self, grammar: str) -> "Parser":
        parser = self._parsers.get(grammar)
        if parser is not None:
            return parser
        parser = Parser(_load_language(grammar))
        self._parsers[grammar] = parser
        return parser


def _load_language(grammar: str) -> "Language":
    if grammar == "javascript":
        return Language(tree_sitter_javascript.language())
    if grammar == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if grammar == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    if grammar == "python":
        return Language(tree_sitter_python.language())
    raise QualityAnalysisError(f"No grammar bundled for {grammar}")


def _normalize_source(path: str, content: str, grammar: str) -> Tuple[str, str]:
    """Pull the script block out of single-file components."""
    if suffix_of(path) not in {".vue", ".svelte"}:
        return content, grammar
    match = _EMBEDDED_SCRIPT.search(content)
    if match is None:
        return "", grammar
    attrs = match.group("attrs")
    if re.search(r"""lang\s*=\s*["']ts["']""", attrs):
        grammar = "typescript"
    return match.group("body"), grammar


def _decision_points(root, node_types: Iterable[str]):  # type: ignore[no-untyped-def]
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in node_types:
            yield node
        elif node.type == "binary_expression":
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type in _SHORT_CIRCUIT_OPERATORS:
                yield node
        stack.extend(node.children)


def keyword_complexity(content: str, *, limit: int = 100) -> int:
    """Approximate cyclomatic complexity by counting control-flow keywords."""
    return min(1 + len(_KEYWORD_PATTERN.findall(content)), limit)


_Attempt = Callable[[str, Optional[str]], Optional[QualityMetric]]


class QualityCalculator:
    """Computes metrics by trying each tier in order until one succeeds."""

    def __init__(
        self,
        config: Optional[QualityConfig] = None,
        structural: Optional[StructuralAnalyzer] = None,
    ) -> None:
        self._config = config or QualityConfig()
        self._structural = structural or StructuralAnalyzer()
        self._tiers: Sequence[Tuple[str, _Attempt]] = (
            (TIER_STRUCTURAL, self._attempt_structural),
            (TIER_KEYWORDS, self._attempt_keywords),
            (TIER_DEFAULT, self._attempt_default),
        )

    def compute(
        self, path: str, content: Optional[str], warnings: Optional[WarningLog] = None
    ) -> Tuple[QualityMetric, str]:
        """Return the metric for ``path`` and the name of the tier that produced it."""
        for name, attempt in self._tiers:
            try:
                metric = attempt(path, content)
            except Exception as exc:
                if warnings is not None:
                    warnings.add(STEP, f"{name} analysis failed for {path}; falling back", exc)
                else:
                    _LOGGER.debug("%s analysis failed for %s: %s", name, path, exc)
                continue
            if metric is not None:
                return _clamp(metric), name
        return self._default_metric(), TIER_DEFAULT

    def _attempt_structural(self, path: str, content: Optional[str]) -> Optional[QualityMetric]:
        if content is None:
            return None
        return self._structural.measure(path, content)

    def _attempt_keywords(self, path: str, content: Optional[str]) -> Optional[QualityMetric]:
        if content is None:
            return None
        return QualityMetric(
            complexity=keyword_complexity(content, limit=self._config.max_fallback_complexity),
            maintainability=self._config.fallback_maintainability,
            lines_of_code=content.count("\n"),
        )

    def _attempt_default(self, path: str, content: Optional[str]) -> Optional[QualityMetric]:
        return self._default_metric()

    def _default_metric(self) -> QualityMetric:
        return QualityMetric(
            complexity=1,
            maintainability=self._config.fallback_maintainability,
            lines_of_code=0,
        )


def _clamp(metric: QualityMetric) -> QualityMetric:
    return QualityMetric(
        complexity=max(1, int(metric.complexity)),
        maintainability=min(100.0, max(0.0, float(metric.maintainability))),
        lines_of_code=max(0, int(metric.lines_of_code)),
    )


def compute_quality(
    files: Sequence[FileRecord],
    *,
    config: Optional[QualityConfig] = None,
    calculator: Optional[QualityCalculator] = None,
    warnings: Optional[WarningLog] = None,
) -> QualityReport:
    """Compute one metric per source file in ``files``."""
    calculator = calculator or QualityCalculator(config)
    report = QualityReport()
    for record in files:
        if not classify(record.path).is_source:
            continue
        metric, tier = calculator.compute(record.path, record.content, warnings)
        report.metrics[record.path] = metric
        report.tiers[record.path] = tier

    counts: Dict[str, int] = {}
    for tier in report.tiers.values():
        counts[tier] = counts.get(tier, 0) + 1
    _LOGGER.debug("Quality tiers used: %s", counts)
    return report


class QualityAnalyzer(Analyzer):
    """Produces per-file quality metrics."""

    name = "quality"

    def __init__(self, structural: Optional[StructuralAnalyzer] = None) -> None:
        self._structural = structural

    def supports(self, snapshot: RepoSnapshot) -> bool:
        return bool(snapshot.files)

    def analyze(self, context: AnalysisContext) -> QualityReport:
        calculator = QualityCalculator(context.config.quality, self._structural)
        return compute_quality(
            context.snapshot.files,
            calculator=calculator,
            warnings=context.warnings,
        )


__all__ = [
    "QualityAnalysisError",
    "QualityAnalyzer",
    "QualityCalculator",
    "STEP",
    "StructuralAnalyzer",
    "TIER_DEFAULT",
    "TIER_KEYWORDS",
    "TIER_STRUCTURAL",
    "TREE_SITTER_AVAILABLE",
    "compute_quality",
    "keyword_complexity",
    "maintainability_index",
]

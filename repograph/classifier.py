"""Path classification: source detection, language and role inference."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Optional

_EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".hg",
        ".svn",
        "dist",
        "build",
        "out",
        "coverage",
        "public",
        "assets",
        "vendor",
        ".vscode",
        ".idea",
        ".next",
        ".venv",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
    }
)

_EXCLUDED_SUFFIXES = frozenset(
    {
        # images
        ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".bmp", ".tiff",
        # fonts
        ".woff", ".woff2", ".ttf", ".eot", ".otf",
        # media
        ".mp3", ".mp4", ".wav", ".avi", ".mov", ".webm", ".ogg",
        # archives
        ".zip", ".tar", ".gz", ".tgz", ".rar", ".7z",
        # documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        # compiled artifacts
        ".pyc", ".pyo", ".class", ".jar", ".exe", ".dll", ".so", ".o", ".wasm",
        ".lock", ".log", ".csv", ".map",
    }
)

_EXCLUDED_COMPOUND_SUFFIXES = (".d.ts", ".min.js", ".min.css")

_LOCKFILES = frozenset(
    {
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "poetry.lock",
        "pipfile.lock",
        "cargo.lock",
        "composer.lock",
        "gemfile.lock",
    }
)

_EXCLUDED_NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\."),
    re.compile(r"\.config\.[^.]+$"),
    re.compile(r"\.min\."),
    re.compile(r"\.bundle\."),
    re.compile(r"\.chunk\."),
    re.compile(r"\.(tmp|temp|cache)$"),
)

_LANGUAGE_BY_SUFFIX = {
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".html": "HTML",
    ".htm": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".sass": "Sass",
    ".less": "Less",
    ".styl": "Stylus",
    ".py": "Python",
    ".java": "Java",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".scala": "Scala",
    ".cs": "C#",
    ".c": "C",
    ".h": "C",
    ".cpp": "C++",
    ".hpp": "C++",
    ".cc": "C++",
    ".rb": "Ruby",
    ".php": "PHP",
    ".go": "Go",
    ".rs": "Rust",
    ".swift": "Swift",
    ".sh": "Shell",
    ".bash": "Shell",
    ".zsh": "Shell",
}

# Extensions that count as interchangeable for coupling bonuses.
_FAMILY_BY_SUFFIX = {
    ".ts": "script",
    ".tsx": "script",
    ".js": "script",
    ".jsx": "script",
    ".mjs": "script",
    ".cjs": "script",
    ".vue": "script",
    ".svelte": "script",
    ".css": "style",
    ".scss": "style",
    ".sass": "style",
    ".less": "style",
    ".styl": "style",
    ".html": "markup",
    ".htm": "markup",
    ".java": "jvm",
    ".kt": "jvm",
    ".kts": "jvm",
    ".scala": "jvm",
    ".c": "native",
    ".h": "native",
    ".cpp": "native",
    ".hpp": "native",
    ".cc": "native",
    ".sh": "shell",
    ".bash": "shell",
    ".zsh": "shell",
}

# First match wins; a path mentioning both "component" and "service" is a component.
_ROLE_RULES: tuple[tuple[str, str], ...] = (
    ("component", "component"),
    ("service", "service"),
    ("api", "api"),
    ("page", "page"),
    ("hook", "hook"),
    ("util", "utility"),
)

_DEFAULT_ROLE = "module"

_TEST_PATH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\.(test|spec)\.[^/]+$"),
    re.compile(r"(^|/)(tests?|__tests__)/"),
    re.compile(r"(^|/)test_[^/]*\.py$"),
    re.compile(r"_test\.(py|go)$"),
    re.compile(r"Tests?\.(java|kt|cs)$"),
)

_TEST_NAME_MARKERS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^test_"),
    re.compile(r"[._-](test|spec)s?$", re.IGNORECASE),
    re.compile(r"(?<=[a-z0-9])(Test|Spec)s?$"),
)

_ROLE_SUFFIXES: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"[._-](component|service|controller|container|page|view|hook|store|module|utils?|helpers?|styles?)$",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?<=[a-z0-9])(Component|Service|Controller|Container|Page|View|Hook|Store|Module|Utils?|Helpers?|Styles?)$"
    ),
)


@dataclass(frozen=True)
class PathClass:
    """Classification outcome for a single repository path."""

    is_source: bool
    role: str
    language: Optional[str]


def classify(path: str) -> PathClass:
    """Return whether ``path`` is analyzable source plus its role and language."""
    language = detect_language(path)
    return PathClass(
        is_source=language is not None and not is_excluded(path),
        role=detect_role(path),
        language=language,
    )


def is_excluded(path: str) -> bool:
    parts = [part for part in path.split("/") if part]
    if not parts:
        return True
    for directory in parts[:-1]:
        if directory.lower() in _EXCLUDED_DIRS:
            return True

    name = parts[-1].lower()
    if name in _LOCKFILES:
        return True
    if name.endswith(_EXCLUDED_COMPOUND_SUFFIXES):
        return True
    if suffix_of(name) in _EXCLUDED_SUFFIXES:
        return True
    return any(pattern.search(name) for pattern in _EXCLUDED_NAME_PATTERNS)


def detect_language(path: str) -> Optional[str]:
    return _LANGUAGE_BY_SUFFIX.get(suffix_of(path))


def detect_role(path: str) -> str:
    lowered = path.lower()
    for needle, role in _ROLE_RULES:
        if needle in lowered:
            return role
    return _DEFAULT_ROLE


def suffix_of(path: str) -> str:
    """Return the lower-cased final extension of ``path`` including the dot."""
    return posixpath.splitext(path)[1].lower()


def stem_of(path: str) -> str:
    """Return the basename of ``path`` without its final extension."""
    return posixpath.splitext(posixpath.basename(path))[0]


def extension_family(path: str) -> str:
    suffix = suffix_of(path)
    return _FAMILY_BY_SUFFIX.get(suffix, suffix)


def same_family(first: str, second: str) -> bool:
    return extension_family(first) == extension_family(second)


def is_test_path(path: str) -> bool:
    return any(pattern.search(path) for pattern in _TEST_PATH_PATTERNS)


def strip_test_marker(name: str) -> str:
    """Remove a leading or trailing test/spec marker from a file stem."""
    for pattern in _TEST_NAME_MARKERS:
        stripped = pattern.sub("", name)
        if stripped and stripped != name:
            return stripped
    return name


def base_name(path: str) -> str:
    """Lower-cased stem with inner dotted qualifiers and test markers removed."""
    stem = stem_of(path)
    head = stem.split(".")[0] or stem
    return strip_test_marker(head).lower()


def component_name(path: str) -> str:
    """Normalize a path to the component it belongs to.

    ``Button.tsx``, ``Button.test.tsx``, ``ButtonView.tsx`` and ``button.module.css``
    all map to ``button``.
    """
    name = strip_test_marker((stem_of(path).split(".")[0]) or stem_of(path))
    for pattern in _ROLE_SUFFIXES:
        stripped = pattern.sub("", name)
        if stripped and stripped != name:
            name = stripped
            break
    return re.sub(r"[-_]", "", name).lower()


__all__ = [
    "PathClass",
    "base_name",
    "classify",
    "component_name",
    "detect_language",
    "detect_role",
    "extension_family",
    "is_excluded",
    "is_test_path",
    "same_family",
    "stem_of",
    "strip_test_marker",
    "suffix_of",
]

"""Import reference extraction and relative-path resolution."""

from __future__ import annotations

import posixpath
import re
from typing import Callable, Collection, List, Optional, Tuple

from .logging import get_logger

_LOGGER = get_logger("imports")

_QUOTED = r"""['"]([^'"\n]+)['"]"""

# Each pattern captures the module reference in group 1.
_REFERENCE_PATTERNS: Tuple[re.Pattern[str], ...] = (
    # import x from '...', import {a, b} from '...', import type {T} from '...'
    re.compile(r"\bimport\s+(?:type\s+)?[\w$*{}\s,]+?\s+from\s+" + _QUOTED),
    # import * as ns from '...'
    re.compile(r"\bimport\s+\*\s+as\s+[\w$]+\s+from\s+" + _QUOTED),
    # import '...'
    re.compile(r"\bimport\s+" + _QUOTED),
    # require('...'), import x = require('...')
    re.compile(r"\brequire\(\s*" + _QUOTED + r"\s*\)"),
    # import('...')
    re.compile(r"\bimport\(\s*" + _QUOTED + r"\s*\)"),
    # export * from '...', export * as ns from '...', export {a} from '...'
    re.compile(r"\bexport\s+(?:\*(?:\s+as\s+[\w$]+)?|type\s+\{[^}]*\}|\{[^}]*\})\s*from\s+" + _QUOTED),
    # @import 'theme.css'; @import url('theme.css');
    re.compile(r"@import\s+(?:url\(\s*)?" + _QUOTED),
)

_PYTHON_RELATIVE = re.compile(r"^\s*from\s+(\.+)([\w.]*)\s+import\b", re.MULTILINE)

RESOLVE_EXTENSIONS: Tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".vue",
    ".py",
    ".css",
    ".scss",
)

_INDEX_NAMES: Tuple[str, ...] = tuple(f"index{ext}" for ext in RESOLVE_EXTENSIONS) + ("__init__.py",)


def extract_references(text: str) -> List[str]:
    """Return module references found in ``text`` in order of first occurrence.

    Python relative imports are rewritten into slash form (``from ..pkg import x``
    becomes ``../pkg``) so they resolve through the same tiers as script imports.
    """
    found: List[Tuple[int, str]] = []
    for pattern in _REFERENCE_PATTERNS:
        for match in pattern.finditer(text):
            found.append((match.start(1), match.group(1).strip()))
    for match in _PYTHON_RELATIVE.finditer(text):
        found.append((match.start(1), _python_to_relative(match.group(1), match.group(2))))

    found.sort(key=lambda item: item[0])
    ordered: List[str] = []
    seen = set()
    for _, reference in found:
        if reference and reference not in seen:
            seen.add(reference)
            ordered.append(reference)
    return ordered


def _python_to_relative(dots: str, module: str) -> str:
    prefix = "./" if len(dots) == 1 else "../" * (len(dots) - 1)
    if not module:
        return prefix.rstrip("/") or "."
    return prefix + module.replace(".", "/")


def is_relative(reference: str) -> bool:
    return reference.startswith(".")


def resolve_reference(reference: str, from_path: str, known: Collection[str]) -> Optional[str]:
    """Resolve a relative ``reference`` made from ``from_path`` to a known path.

    Bare package references are never resolved. Tiers are tried in order and the
    first hit wins: exact path, appended extension, directory index, and finally
    a same-named file under the same parent directory, which must be unambiguous.
    """
    if not is_relative(reference):
        return None

    base_dir = posixpath.dirname(from_path)
    target = posixpath.normpath(posixpath.join(base_dir, reference))
    if target == ".":
        target = ""

    for tier in _RESOLUTION_TIERS:
        resolved = tier(target, from_path, known)
        if resolved is not None:
            return resolved
    return None


def _exact(target: str, from_path: str, known: Collection[str]) -> Optional[str]:
    if target and target in known:
        return target
    return None


def _with_extension(target: str, from_path: str, known: Collection[str]) -> Optional[str]:
    if not target:
        return None
    for ext in RESOLVE_EXTENSIONS:
        candidate = f"{target}{ext}"
        if candidate in known:
            return candidate
    return None


def _directory_index(target: str, from_path: str, known: Collection[str]) -> Optional[str]:
    for name in _INDEX_NAMES:
        candidate = posixpath.join(target, name) if target else name
        if candidate in known and candidate != from_path:
            return candidate
    return None


def _unique_substring(target: str, from_path: str, known: Collection[str]) -> Optional[str]:
    if not target or target == ".." or target.startswith("../"):
        return None
    basename = posixpath.basename(target)
    stem, ext = posixpath.splitext(basename)
    if ext in RESOLVE_EXTENSIONS:
        basename = stem
    parent = posixpath.basename(posixpath.dirname(target))
    if not basename or basename in {".", ".."} or parent == "..":
        return None

    matches = [
        path
        for path in known
        if path != from_path
        and _names_file(path, basename)
        and (not parent or parent in path.split("/")[:-1])
    ]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        _LOGGER.debug(
            "Ambiguous import '%s' from %s matched %d paths; leaving unresolved",
            target,
            from_path,
            len(matches),
        )
    return None


def _names_file(path: str, basename: str) -> bool:
    name = posixpath.basename(path)
    return name == basename or name.startswith(f"{basename}.")


_RESOLUTION_TIERS: Tuple[Callable[[str, str, Collection[str]], Optional[str]], ...] = (
    _exact,
    _with_extension,
    _directory_index,
    _unique_substring,
)


__all__ = ["RESOLVE_EXTENSIONS", "extract_references", "is_relative", "resolve_reference"]

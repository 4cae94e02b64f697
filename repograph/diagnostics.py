"""Collection of non-fatal analysis warnings."""

from __future__ import annotations

from typing import Iterator, List

from .logging import get_logger
from .models import AnalysisWarning

_LOGGER = get_logger("diagnostics")


class WarningLog:
    """Accumulates warnings raised by analyzers during a single run."""

    def __init__(self) -> None:
        self._entries: List[AnalysisWarning] = []

    def add(self, step: str, message: str, error: BaseException | str | None = None) -> AnalysisWarning:
        error_text = str(error) if error is not None else None
        warning = AnalysisWarning(step=step, message=message, error=error_text)
        self._entries.append(warning)
        if error_text:
            _LOGGER.warning("%s (%s)", message, error_text, extra={"step": step})
        else:
            _LOGGER.warning("%s", message, extra={"step": step})
        return warning

    @property
    def entries(self) -> List[AnalysisWarning]:
        return list(self._entries)

    def __iter__(self) -> Iterator[AnalysisWarning]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["WarningLog"]

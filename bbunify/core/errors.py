from __future__ import annotations
from pathlib import Path
from typing import Optional


class UnifyError(Exception):
    """Base class for errors raised while unifying traces."""


class TraceFormatError(UnifyError, ValueError):
    def __init__(self, source: str | Path, lineno: Optional[int], reason: str) -> None:
        self.source = str(source)
        self.lineno = lineno
        self.reason = reason
        where = self.source if lineno is None else f"{self.source}:{lineno}"
        super().__init__(f"{where}: {reason}")

    def __reduce__(self):
        return (self.__class__, (self.source, self.lineno, self.reason))


class ParseError(TraceFormatError):
    """A trace line whose fields are not parseable in their expected base."""


class ContiguityError(TraceFormatError):
    """Source identifiers are not the gap-free sequence 0..n-1."""


class IntegrityViolation(UnifyError, AssertionError):
    """Retained-entry accounting does not add up. Always a bug, never bad input."""

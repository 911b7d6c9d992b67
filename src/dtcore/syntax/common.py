"""Source spans, identifiers and the index kinds shared across layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NewType

DBI = NewType("DBI", int)
"""Local de Bruijn index, 0 = innermost binder."""

GI = NewType("GI", int)
"""Global index, 0 = first declaration."""

MI = NewType("MI", int)
"""Index into the meta-variable store."""

Level = int


@dataclass(frozen=True)
class SyntaxInfo:
    start: int
    end: int

    def extract(self, source: str) -> str:
        return source[self.start : self.end]

    def __str__(self) -> str:
        return f"{self.start}:{self.end}"


NO_INFO = SyntaxInfo(0, 0)


@dataclass(frozen=True)
class Ident:
    text: str
    info: SyntaxInfo = NO_INFO

    def strip_sigil(self) -> str:
        """Drop the leading ``#``/``'`` that marks constructor and variant names."""
        return self.text[1:]


class DtKind(Enum):
    PI = "Pi"
    SIGMA = "Sigma"


class ParamKind(Enum):
    EXPLICIT = "explicit"
    IMPLICIT = "implicit"

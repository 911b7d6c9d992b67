"""Type-checking errors reported to the user.

Everything here is recoverable: it aborts the current declaration batch and
carries the span it originated from. Broken internal invariants (index out of
range, re-solving a meta, eliminating a non-eliminable value) are raised as
built-in exceptions instead and are not caught anywhere in the checker.
"""

from __future__ import annotations

from dataclasses import dataclass

from dtcore.core.ast import Val
from dtcore.syntax.common import GI, SyntaxInfo


@dataclass
class TCE(Exception):
    message: str
    info: SyntaxInfo
    source: str | None = None

    def __str__(self) -> str:
        if self.source is None:
            return f"{self.message} @ {self.info}"
        snippet = self.info.extract(self.source)
        return f"{self.message} @ {self.info}: {snippet!r}"

    def with_source(self, source: str) -> TCE:
        self.source = source
        return self


class TypeMismatch(TCE):
    def __init__(self, expected: Val, actual: Val, info: SyntaxInfo) -> None:
        super().__init__(
            "Type mismatch:\n" f"  expected = {expected}\n" f"  actual = {actual}",
            info,
        )
        self.expected = expected
        self.actual = actual


class NotFunction(TCE):
    def __init__(self, actual: Val, info: SyntaxInfo) -> None:
        super().__init__(f"Application of non-function of type `{actual}`", info)
        self.actual = actual


class NotSigma(TCE):
    def __init__(self, actual: Val, info: SyntaxInfo) -> None:
        super().__init__(f"Projection of non-pair of type `{actual}`", info)
        self.actual = actual


class NotTypeError(TCE):
    def __init__(self, actual: Val, info: SyntaxInfo) -> None:
        super().__init__(f"Expected a type, found something of type `{actual}`", info)
        self.actual = actual


class NotSumType(TCE):
    def __init__(self, actual: Val, info: SyntaxInfo) -> None:
        super().__init__(f"Expected a sum type, found `{actual}`", info)
        self.actual = actual


class CannotInfer(TCE):
    def __init__(self, what: str, info: SyntaxInfo) -> None:
        super().__init__(f"Cannot infer the type of {what}", info)


class CannotUnify(TCE):
    def __init__(self, lhs: Val, rhs: Val, info: SyntaxInfo, reason: str = "") -> None:
        message = f"Cannot unify `{lhs}` with `{rhs}`"
        super().__init__(f"{message}: {reason}" if reason else message, info)
        self.lhs = lhs
        self.rhs = rhs


class NotImplementedFeature(TCE):
    def __init__(self, what: str, info: SyntaxInfo) -> None:
        super().__init__(f"Not implemented: {what}", info)


class AlreadyDefined(TCE):
    def __init__(self, gi: GI, info: SyntaxInfo) -> None:
        super().__init__(f"Global #{gi} already has an implementation", info)
        self.gi = gi

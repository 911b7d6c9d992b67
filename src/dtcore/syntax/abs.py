"""Abstract syntax produced by the desugarer, with every name already resolved."""

from __future__ import annotations

from dataclasses import dataclass

from dtcore.syntax.common import DBI, GI, MI, DtKind, Level, ParamKind, SyntaxInfo


@dataclass(frozen=True)
class Abs:
    info: SyntaxInfo


@dataclass(frozen=True)
class AType(Abs):
    level: Level = 0


@dataclass(frozen=True)
class ABot(Abs):
    """Bottom type."""


@dataclass(frozen=True)
class AVar(Abs):
    """Local variable."""

    name: str
    uid: int
    dbi: DBI


@dataclass(frozen=True)
class ARef(Abs):
    """Global variable."""

    name: str
    gi: GI


@dataclass(frozen=True)
class AMeta(Abs):
    name: str
    mi: MI


@dataclass(frozen=True)
class ALift(Abs):
    """Lift an expression many times."""

    levels: int
    expr: Abs


@dataclass(frozen=True)
class ACons(Abs):
    """Constructor call, ``#name``."""

    name: str


@dataclass(frozen=True)
class AVariant(Abs):
    """Single-label sum type former, ``'name``."""

    name: str


@dataclass(frozen=True)
class AApp(Abs):
    """Apply or pipeline in surface."""

    fun: Abs
    arg: Abs


@dataclass(frozen=True)
class ADt(Abs):
    """Dependent type, ``(a -> b -> c)`` as ``ADt(Pi, a, ADt(Pi, b, c))``."""

    kind: DtKind
    uid: int
    param: Abs
    ret: Abs
    param_kind: ParamKind = ParamKind.EXPLICIT


@dataclass(frozen=True)
class ALam(Abs):
    """``info`` covers the whole lambda; ``param`` is the binder's name."""

    param: str
    uid: int
    body: Abs


@dataclass(frozen=True)
class APair(Abs):
    first: Abs
    second: Abs


@dataclass(frozen=True)
class AFst(Abs):
    pair: Abs


@dataclass(frozen=True)
class ASnd(Abs):
    pair: Abs


@dataclass(frozen=True)
class ASum(Abs):
    """Sum of several variant types, ``'a A | 'b B``."""

    parts: tuple[Abs, ...]


@dataclass(frozen=True)
class ARowPoly(Abs):
    """Row-polymorphic sum, ``'a A | ...r``; accepted by the syntax only."""

    parts: tuple[Abs, ...]
    rest: Abs


# --- Declarations -------------------------------------------------------------


@dataclass(frozen=True)
class AbsDecl:
    """Type signature and/or body, tagged with the global index it commits to."""

    @property
    def info(self) -> SyntaxInfo:
        raise NotImplementedError


@dataclass(frozen=True)
class Sign(AbsDecl):
    """Signature only: the global is postulated until an ``Impl`` fills it."""

    sign: Abs
    gi: GI

    @property
    def info(self) -> SyntaxInfo:
        return self.sign.info


@dataclass(frozen=True)
class Impl(AbsDecl):
    """Body without a signature, or the body of an earlier ``Sign``."""

    impl: Abs
    gi: GI

    @property
    def info(self) -> SyntaxInfo:
        return self.impl.info


@dataclass(frozen=True)
class Both(AbsDecl):
    """Body with a signature."""

    sign: Abs
    impl: Abs
    gi: GI

    @property
    def info(self) -> SyntaxInfo:
        return self.impl.info

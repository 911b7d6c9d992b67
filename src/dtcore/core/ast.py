"""Semantic values: canonical forms, neutral (stuck) forms and closures."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Callable

from dtcore.core.env import NIL, DbiEnv
from dtcore.syntax.common import (
    DBI,
    GI,
    MI,
    NO_INFO,
    DtKind,
    Level,
    ParamKind,
    SyntaxInfo,
)

LeafMapper = Callable[["Neutral", int], "Val"]
"""Called on every neutral leaf with the number of binders crossed so far."""


@dataclass(frozen=True)
class Val:
    """Base class for values (non-redexes)."""

    # --- Traversal ------------------------------------------------------------
    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return self

    def map_neutral(self, f: Callable[[Neutral], Val]) -> Val:
        """Rewrite every neutral leaf, re-applying the eliminators around it."""
        return self._map_leaves(lambda neutral, _depth: f(neutral), 0)

    # --- De Bruijn ------------------------------------------------------------
    def shift(self, by: int, cutoff: int = 0) -> Val:
        """Shift free generated variables in the value."""
        if by == 0:
            return self

        def leaf(neutral: Neutral, depth: int) -> Val:
            match neutral:
                case Gen(int(dbi)) if dbi >= cutoff + depth:
                    return Val.gen(DBI(dbi + by))
            return Neut(neutral)

        return self._map_leaves(leaf, 0)

    def reduce(self, env: DbiEnv) -> Val:
        """
        Substitute ``env`` for the outermost ``len(env)`` free variables.

        Eliminators whose head becomes canonical are reduced on the way back up,
        so this is the beta/projection step of normalization by evaluation.
        """
        return self._substitute(env, 0)

    def _substitute(self, env: DbiEnv, base: int) -> Val:
        if env.is_empty():
            return self
        size = len(env)

        def leaf(neutral: Neutral, depth: int) -> Val:
            match neutral:
                case Gen(int(dbi)) if dbi >= depth:
                    found = env.project(dbi - depth)
                    if found is not None:
                        return found.shift(depth)
                    return Val.gen(DBI(dbi - size))
            return Neut(neutral)

        return self._map_leaves(leaf, base)

    def attach_dbi(self, dbi: DBI) -> Val:
        """Re-tag a local placeholder with the index of the occurrence."""
        match self:
            case Neut(Gen(int())):
                return Val.gen(dbi)
        return self.shift(dbi + 1)

    # --- Elimination ----------------------------------------------------------
    def apply(self, arg: Val) -> Val:
        """Just for evaluation during beta-reduction."""
        match self:
            case Lam(closure):
                return closure.instantiate(arg)
            case Neut(neutral):
                return Neut(App(neutral, arg))
        raise TypeError(f"Cannot apply on `{self!r}`.")

    def first(self) -> Val:
        """Just for evaluation during beta-reduction."""
        match self:
            case Pair(first, _):
                return first
            case Neut(neutral):
                return Neut(Fst(neutral))
        raise TypeError(f"Cannot project on `{self!r}`.")

    def second(self) -> Val:
        """Just for evaluation during beta-reduction."""
        match self:
            case Pair(_, second):
                return second
            case Neut(neutral):
                return Neut(Snd(neutral))
        raise TypeError(f"Cannot project on `{self!r}`.")

    # --- Universes ------------------------------------------------------------
    def lift(self, levels: int) -> Val:
        """Raise every universe mentioned in the value by ``levels``."""
        match self:
            case Type(level):
                return Type(level + levels)
            case Lam(closure):
                return Lam(closure.lift(levels))
            case Dt(param_kind, kind, closure):
                return Dt(param_kind, kind, closure.lift(levels))
            case Pair(first, second):
                return Pair(first.lift(levels), second.lift(levels))
            case Sum(variants):
                return Sum(tuple((label, v.lift(levels)) for label, v in variants))
            case Cons(label, payload):
                return Cons(label, payload.lift(levels))
            case Neut(neutral):
                return neutral.lift(levels)
        return self

    def universe_level(self) -> Level:
        """The lowest universe this value lives in (``Type(l)`` lives in ``l + 1``)."""
        match self:
            case Type(level):
                return level + 1
            case Lam(closure):
                return closure.body.open().universe_level()
            case Dt(_, _, closure):
                return max(
                    closure.param_type.universe_level(),
                    closure.body.open().universe_level(),
                )
            case Pair(first, second):
                return max(first.universe_level(), second.universe_level())
            case Sum(variants):
                return max((v.universe_level() for _, v in variants), default=0)
            case Cons(_, payload):
                return payload.universe_level()
        return 0

    def is_type(self) -> bool:
        return isinstance(self, (Type, Dt, Sum, Bot))

    def is_universe(self) -> bool:
        return isinstance(self, Type)

    # --- Construction ---------------------------------------------------------
    @staticmethod
    def gen(dbi: DBI) -> Val:
        return Neut(Gen(dbi))

    @staticmethod
    def axiom() -> Val:
        """An opaque postulated value."""
        return Neut(Gen(None))

    @staticmethod
    def mock() -> Val:
        return Val.axiom()

    @staticmethod
    def ref(index: GI) -> Val:
        return Neut(Ref(index))

    @staticmethod
    def meta(index: MI) -> Val:
        return Neut(Meta(index))

    @staticmethod
    def app(head: Neutral, arg: Val) -> Val:
        return Neut(App(head, arg))

    @staticmethod
    def proj_fst(head: Neutral) -> Val:
        return Neut(Fst(head))

    @staticmethod
    def proj_snd(head: Neutral) -> Val:
        return Neut(Snd(head))

    @staticmethod
    def lam(body: Val, param_type: Val | None = None) -> Val:
        param_type = Val.axiom() if param_type is None else param_type
        return Lam(Closure(param_type, ClosureBody(body)))

    @staticmethod
    def dependent_type(
        kind: DtKind,
        param_type: Val,
        ret_type: Val,
        param_kind: ParamKind = ParamKind.EXPLICIT,
    ) -> Val:
        return Dt(param_kind, kind, Closure(param_type, ClosureBody(ret_type)))

    @staticmethod
    def pi(
        param_type: Val, ret_type: Val, param_kind: ParamKind = ParamKind.EXPLICIT
    ) -> Val:
        return Val.dependent_type(DtKind.PI, param_type, ret_type, param_kind)

    @staticmethod
    def sig(
        first_type: Val, second_type: Val, param_kind: ParamKind = ParamKind.EXPLICIT
    ) -> Val:
        return Val.dependent_type(DtKind.SIGMA, first_type, second_type, param_kind)

    @staticmethod
    def pair(first: Val, second: Val) -> Val:
        return Pair(first, second)

    @staticmethod
    def cons(label: str, payload: Val) -> Val:
        return Cons(label, payload)

    @staticmethod
    def sum(variants: Mapping[str, Val] | Iterable[tuple[str, Val]]) -> Val:
        items = variants.items() if isinstance(variants, Mapping) else variants
        return Sum(tuple(sorted(dict(items).items())))

    @staticmethod
    def bot() -> Val:
        return Bot()

    def into_info(self, info: SyntaxInfo) -> ValInfo:
        return ValInfo(self, info)

    # --- Display --------------------------------------------------------------
    def __str__(self) -> str:
        from dtcore.core.pretty import pretty

        return pretty(self)


@dataclass(frozen=True)
class Type(Val):
    """Type universe."""

    level: Level = 0

    def __post_init__(self) -> None:
        if self.level < 0:
            raise ValueError("Universe level must be non-negative")


@dataclass(frozen=True)
class Bot(Val):
    """The empty type."""


@dataclass(frozen=True)
class Lam(Val):
    closure: Closure

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return Lam(self.closure._map_leaves(f, depth))


@dataclass(frozen=True)
class Dt(Val):
    """Pi-like types. The visibility of the parameter is kept for conversion."""

    param_kind: ParamKind
    kind: DtKind
    closure: Closure

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return Dt(self.param_kind, self.kind, self.closure._map_leaves(f, depth))


@dataclass(frozen=True)
class Pair(Val):
    """Sigma instance."""

    fst: Val
    snd: Val

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return Pair(self.fst._map_leaves(f, depth), self.snd._map_leaves(f, depth))


@dataclass(frozen=True)
class Sum(Val):
    """Tagged sum type: labels (kept sorted) to payload types."""

    variants: tuple[tuple[str, Val], ...] = ()

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return Sum(tuple((k, v._map_leaves(f, depth)) for k, v in self.variants))

    def as_dict(self) -> dict[str, Val]:
        return dict(self.variants)


@dataclass(frozen=True)
class Cons(Val):
    """A payload tagged with a constructor label."""

    label: str
    payload: Val

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return Cons(self.label, self.payload._map_leaves(f, depth))


@dataclass(frozen=True)
class Neut(Val):
    neutral: Neutral

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return self.neutral._map_leaves(f, depth)


# --- Neutral values -----------------------------------------------------------


@dataclass(frozen=True)
class Neutral:
    """Irreducible because the head is a variable, postulate or reference."""

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return f(self, depth)

    def head(self) -> Neutral:
        return self

    def map_head(self, f: Callable[[Neutral], Val]) -> Val:
        """Replace the head leaf and re-run the eliminations of the spine."""
        return f(self)

    def lift(self, levels: int) -> Val:
        return Neut(self)


@dataclass(frozen=True)
class Gen(Neutral):
    """Local variable by de Bruijn index; ``None`` is a postulated value."""

    dbi: DBI | None = None


@dataclass(frozen=True)
class Ref(Neutral):
    """Folded reference to a global."""

    index: GI


@dataclass(frozen=True)
class Meta(Neutral):
    index: MI


@dataclass(frozen=True)
class App(Neutral):
    fun: Neutral
    arg: Val

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return self.fun._map_leaves(f, depth).apply(self.arg._map_leaves(f, depth))

    def head(self) -> Neutral:
        return self.fun.head()

    def map_head(self, f: Callable[[Neutral], Val]) -> Val:
        return self.fun.map_head(f).apply(self.arg)

    def lift(self, levels: int) -> Val:
        return self.fun.lift(levels).apply(self.arg.lift(levels))


@dataclass(frozen=True)
class Fst(Neutral):
    pair: Neutral

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return self.pair._map_leaves(f, depth).first()

    def head(self) -> Neutral:
        return self.pair.head()

    def map_head(self, f: Callable[[Neutral], Val]) -> Val:
        return self.pair.map_head(f).first()

    def lift(self, levels: int) -> Val:
        return self.pair.lift(levels).first()


@dataclass(frozen=True)
class Snd(Neutral):
    pair: Neutral

    def _map_leaves(self, f: LeafMapper, depth: int) -> Val:
        return self.pair._map_leaves(f, depth).second()

    def head(self) -> Neutral:
        return self.pair.head()

    def map_head(self, f: Callable[[Neutral], Val]) -> Val:
        return self.pair.map_head(f).second()

    def lift(self, levels: int) -> Val:
        return self.pair.lift(levels).second()


# --- Closures -----------------------------------------------------------------


@dataclass(frozen=True)
class ClosureBody:
    """
    The instantiatable part of a closure.

    ``body`` sits under one binder: ``Gen(0)`` is the parameter, ``Gen(j + 1)``
    is ``env[j]`` and anything further out is a free variable of the scope the
    closure was built in.
    """

    body: Val
    env: DbiEnv = NIL

    def instantiate(self, arg: Val) -> Val:
        return self.body.reduce(self.env.cons(arg))

    def open(self) -> Val:
        """The body in the scope extended by the parameter, which is ``Gen(0)``."""
        return self.body._substitute(self.env, 1)

    def _map_leaves(self, f: LeafMapper, depth: int) -> ClosureBody:
        return ClosureBody(self.open()._map_leaves(f, depth + 1))


@dataclass(frozen=True)
class Closure:
    """A closure with parameter type explicitly specified."""

    param_type: Val
    body: ClosureBody

    def instantiate(self, arg: Val) -> Val:
        return self.body.instantiate(arg)

    def lift(self, levels: int) -> Closure:
        return Closure(
            self.param_type.lift(levels), ClosureBody(self.body.open().lift(levels))
        )

    def _map_leaves(self, f: LeafMapper, depth: int) -> Closure:
        return Closure(
            self.param_type._map_leaves(f, depth), self.body._map_leaves(f, depth)
        )


@dataclass(frozen=True)
class ValInfo:
    """A value with syntax info; this is what the contexts store."""

    ast: Val
    info: SyntaxInfo = field(default=NO_INFO, compare=False)

    def map_ast(self, f: Callable[[Val], Val]) -> ValInfo:
        return ValInfo(f(self.ast), self.info)

    def __str__(self) -> str:
        return str(self.ast)


# Canonical terms are the values without ``Ref``/``Meta`` leaves or sums.
Term = Val
TermInfo = ValInfo

"""Typing/value contexts and the meta-variable store threaded through checking."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from dtcore.core.ast import App, Meta, Neut, Val, ValInfo
from dtcore.syntax.common import DBI, GI, MI, NO_INFO, SyntaxInfo

if TYPE_CHECKING:
    from dtcore.syntax.abs import Abs, AbsDecl


@dataclass(frozen=True)
class MetaSolution:
    pass


@dataclass(frozen=True)
class Unsolved(MetaSolution):
    pass


@dataclass(frozen=True)
class Solved(MetaSolution):
    value: Val


@dataclass(frozen=True)
class Inlined(MetaSolution):
    """The solution has been substituted everywhere; never read it again."""


@dataclass(frozen=True)
class TCS:
    """
    Type-checking state.

    Notes:
        - ``env``/``gamma`` are parallel: values and types of globals by GI.
        - ``local_env``/``local_gamma`` are stacks, the innermost binder last.
        - A local type is scoped in the context it was pushed into.
    """

    env: tuple[ValInfo, ...] = ()
    gamma: tuple[ValInfo, ...] = ()
    local_env: tuple[Val, ...] = ()
    local_gamma: tuple[Val, ...] = ()
    meta_context: tuple[MetaSolution, ...] = ()

    # ---- meta-variables ----
    def fresh_meta(self) -> tuple[Val, TCS]:
        mi = MI(len(self.meta_context))
        return Val.meta(mi), replace(
            self, meta_context=self.meta_context + (Unsolved(),)
        )

    def initialize_meta_context(self, count: int) -> TCS:
        return replace(self, meta_context=self.meta_context + (Unsolved(),) * count)

    def meta_solution(self, mi: MI) -> MetaSolution:
        if not 0 <= mi < len(self.meta_context):
            raise IndexError(f"Unbound meta ?{mi}")
        return self.meta_context[mi]

    def meta_solutions(self) -> tuple[MetaSolution, ...]:
        return self.meta_context

    def solve_meta(self, mi: MI, value: Val) -> TCS:
        current = self.meta_solution(mi)
        if not isinstance(current, Unsolved):
            raise RuntimeError(f"Meta ?{mi} is already {current}")
        return self._set_meta(mi, Solved(value))

    def inline_meta(self, mi: MI) -> TCS:
        current = self.meta_solution(mi)
        if not isinstance(current, Solved):
            raise RuntimeError(f"Cannot inline meta ?{mi} in state {current}")
        return self._set_meta(mi, Inlined())

    def _set_meta(self, mi: MI, solution: MetaSolution) -> TCS:
        metas = list(self.meta_context)
        metas[mi] = solution
        return replace(self, meta_context=tuple(metas))

    def meta_placeholder(self, mi: MI, extra: int = 0) -> Val:
        """
        ``?mi`` applied to every local in scope, outermost first.

        ``extra`` counts binders the placeholder sits under beyond the current
        local context.
        """
        neutral = Meta(mi)
        for dbi in reversed(range(self.local_len() + extra)):
            neutral = App(neutral, Val.gen(DBI(dbi)))
        return Neut(neutral)

    # ---- locals ----
    def local_len(self) -> int:
        return len(self.local_gamma)

    def _local_slot(self, dbi: DBI) -> int:
        if not 0 <= dbi < len(self.local_gamma):
            raise IndexError(f"Unbound variable: local #{dbi}")
        return len(self.local_gamma) - 1 - dbi

    def local_type(self, dbi: DBI) -> Val:
        """The type of local ``dbi``, moved into the current context."""
        return self.local_gamma[self._local_slot(dbi)].shift(dbi + 1)

    def local_val(self, dbi: DBI) -> Val:
        return self.local_env[self._local_slot(dbi)]

    def local_is_type(self, dbi: DBI) -> bool:
        return self.local_type(dbi).is_universe()

    def push_local(self, ty: Val, value: Val | None = None) -> TCS:
        value = Val.gen(DBI(0)) if value is None else value
        return replace(
            self,
            local_env=self.local_env + (value,),
            local_gamma=self.local_gamma + (ty,),
        )

    def pop_local(self) -> TCS:
        if not self.local_gamma:
            raise IndexError("Cannot pop from an empty local context")
        return replace(
            self, local_env=self.local_env[:-1], local_gamma=self.local_gamma[:-1]
        )

    # ---- globals ----
    def glob_len(self) -> int:
        return len(self.gamma)

    def _check_gi(self, gi: GI) -> None:
        if not 0 <= gi < len(self.gamma):
            raise IndexError(f"Unbound variable: global #{gi}")

    def glob_type(self, gi: GI) -> Val:
        self._check_gi(gi)
        return self.gamma[gi].ast

    def glob_val(self, gi: GI) -> Val:
        self._check_gi(gi)
        return self.env[gi].ast

    def glob_is_type(self, gi: GI) -> bool:
        return self.glob_type(gi).is_universe()

    def glob_is_axiom(self, gi: GI) -> bool:
        """``True`` while the global is only postulated by its signature."""
        return self.glob_val(gi) == Val.axiom()

    def glob_term(self, gi: GI) -> Val:
        """The value a reference to ``gi`` stands for; postulates stay folded."""
        if self.glob_is_axiom(gi):
            return Val.ref(gi)
        return self.glob_val(gi)

    def push_global(self, ty: ValInfo, value: ValInfo | None = None) -> TCS:
        value = Val.axiom().into_info(ty.info) if value is None else value
        return replace(self, env=self.env + (value,), gamma=self.gamma + (ty,))

    def set_global_value(self, gi: GI, value: ValInfo) -> TCS:
        self._check_gi(gi)
        env = list(self.env)
        env[gi] = value
        return replace(self, env=tuple(env))

    # ---- chaining ----
    def evaluate(self, expr: Abs) -> tuple[Val, TCS]:
        from dtcore.check import eval as evaluation

        return evaluation.evaluate(self, expr)

    def expand_global(self, value: Val) -> tuple[Val, TCS]:
        from dtcore.check import eval as evaluation

        return evaluation.expand_global(self, value)

    def compile(self, expr: Abs, checked: Val | None = None) -> ValInfo:
        from dtcore.check import eval as evaluation

        return evaluation.compile(self, expr, checked)

    def unify(self, lhs: Val, rhs: Val, info: SyntaxInfo = NO_INFO) -> TCS:
        from dtcore.check import unify

        return unify.unify(self, lhs, rhs, info)

    def subtype(self, sub: Val, sup: Val, info: SyntaxInfo = NO_INFO) -> TCS:
        from dtcore.check import unify

        return unify.subtype(self, sub, sup, info)

    def infer(self, expr: Abs) -> tuple[Val, TCS]:
        from dtcore.check import tyck

        return tyck.infer(self, expr)

    def check(self, expr: Abs, expected: Val) -> tuple[Val, TCS]:
        from dtcore.check import tyck

        return tyck.check(self, expr, expected)

    def check_type(self, expr: Abs) -> tuple[Val, TCS]:
        from dtcore.check import tyck

        return tyck.check_type(self, expr)

    def check_decls(self, decls: Iterable[AbsDecl]) -> TCS:
        from dtcore.check import decl

        return decl.check_decls(self, decls)

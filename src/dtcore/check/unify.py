"""Conversion checking and pattern unification of metas."""

from __future__ import annotations

import logging

from dtcore.check.errors import CannotUnify
from dtcore.check.eval import force_head
from dtcore.check.state import TCS, Inlined, Solved
from dtcore.core.ast import (
    App,
    Bot,
    Cons,
    Dt,
    Fst,
    Gen,
    Lam,
    Meta,
    Neut,
    Neutral,
    Pair,
    Ref,
    Snd,
    Sum,
    Type,
    Val,
)
from dtcore.syntax.common import DBI, MI, NO_INFO, DtKind, SyntaxInfo

logger = logging.getLogger(__name__)

UNFOLD_BUDGET = 64
"""How many times conversion may unfold a definition before giving up."""


def unify(tcs: TCS, lhs: Val, rhs: Val, info: SyntaxInfo = NO_INFO) -> TCS:
    """Make ``lhs`` and ``rhs`` convertible, solving metas on the way."""
    return _Unifier(tcs, info).unify(lhs, rhs, subtyping=False)


def subtype(tcs: TCS, sub: Val, sup: Val, info: SyntaxInfo = NO_INFO) -> TCS:
    """Like ``unify`` but lets universes grow from ``sub`` to ``sup``."""
    return _Unifier(tcs, info).unify(sub, sup, subtyping=True)


def whnf(tcs: TCS, value: Val, budget: int = UNFOLD_BUDGET) -> Val:
    """Unfold the head of ``value`` until it is canonical or stuck."""
    for _ in range(budget):
        unfolded = force_head(tcs, value)
        if unfolded == value:
            break
        value = unfolded
    return value


def is_meta_headed(tcs: TCS, value: Val) -> bool:
    """``True`` for a neutral whose head is a meta nobody solved yet."""
    match value:
        case Neut(neutral):
            head = neutral.head()
            return isinstance(head, Meta) and not isinstance(
                tcs.meta_solution(head.index), (Solved, Inlined)
            )
    return False


def _pattern_spine(neutral: Neutral) -> tuple[MI, list[DBI]] | None:
    """``?m x1 .. xn`` with distinct bound variables, else ``None``."""
    args: list[DBI] = []
    while isinstance(neutral, App):
        match neutral.arg:
            case Neut(Gen(int(dbi))):
                args.append(dbi)
            case _:
                return None
        neutral = neutral.fun
    if not isinstance(neutral, Meta) or len(set(args)) != len(args):
        return None
    args.reverse()
    return neutral.index, args


class _Unifier:
    def __init__(self, tcs: TCS, info: SyntaxInfo) -> None:
        self._tcs = tcs
        self._info = info
        self._budget = UNFOLD_BUDGET

    def _fail(self, lhs: Val, rhs: Val, reason: str = "") -> CannotUnify:
        return CannotUnify(lhs, rhs, self._info, reason)

    def unify(self, lhs: Val, rhs: Val, *, subtyping: bool) -> TCS:
        self._unify(lhs, rhs, subtyping)
        return self._tcs

    def _unify(self, lhs: Val, rhs: Val, subtyping: bool) -> None:
        if lhs == rhs:
            return
        lhs = self._resolve_metas(lhs)
        rhs = self._resolve_metas(rhs)
        pattern_errors: list[CannotUnify] = []
        if self._try_solve(lhs, rhs, pattern_errors) or self._try_solve(
            rhs, lhs, pattern_errors
        ):
            return
        saved = self._tcs
        try:
            self._structural(lhs, rhs, subtyping)
        except CannotUnify:
            self._tcs = saved
            if not self._unfold_and_retry(lhs, rhs, subtyping):
                # A failed occurs or scope check explains more than a clash.
                if pattern_errors:
                    raise pattern_errors[0] from None
                raise

    def _resolve_metas(self, value: Val) -> Val:
        """Substitute solved metas at the head; free of charge."""
        while True:
            match value:
                case Neut(neutral) if isinstance(neutral.head(), Meta):
                    forced = force_head(self._tcs, value)
                    if forced == value:
                        return value
                    value = forced
                case _:
                    return value

    def _unfold_and_retry(self, lhs: Val, rhs: Val, subtyping: bool) -> bool:
        for side in ("lhs", "rhs"):
            if self._budget <= 0:
                return False
            target = lhs if side == "lhs" else rhs
            unfolded = force_head(self._tcs, target)
            if unfolded == target:
                continue
            self._budget -= 1
            if side == "lhs":
                self._unify(unfolded, rhs, subtyping)
            else:
                self._unify(lhs, unfolded, subtyping)
            return True
        return False

    # ---- structural rules ----
    def _structural(self, lhs: Val, rhs: Val, subtyping: bool) -> None:
        match lhs, rhs:
            case Type(a), Type(b):
                if a == b or (subtyping and a <= b):
                    return
                raise self._fail(lhs, rhs, "universe levels differ")
            case Bot(), Bot():
                return
            case Dt(pk1, k1, c1), Dt(pk2, k2, c2):
                if pk1 is not pk2:
                    raise self._fail(lhs, rhs, "parameter visibility differs")
                if k1 is not k2:
                    raise self._fail(lhs, rhs)
                covariant_param = subtyping and k1 is DtKind.SIGMA
                self._unify(c1.param_type, c2.param_type, covariant_param)
                self._unify(c1.body.open(), c2.body.open(), subtyping)
            case Lam(c1), Lam(c2):
                self._unify(c1.body.open(), c2.body.open(), False)
            case Lam(c1), Neut():
                self._unify(c1.body.open(), _eta_apply(rhs), False)
            case Neut(), Lam(c2):
                self._unify(_eta_apply(lhs), c2.body.open(), False)
            case Pair(a1, b1), Pair(a2, b2):
                self._unify(a1, a2, False)
                self._unify(b1, b2, False)
            case Pair(a1, b1), Neut():
                self._unify(a1, rhs.first(), False)
                self._unify(b1, rhs.second(), False)
            case Neut(), Pair(a2, b2):
                self._unify(lhs.first(), a2, False)
                self._unify(lhs.second(), b2, False)
            case Sum(v1), Sum(v2):
                if [label for label, _ in v1] != [label for label, _ in v2]:
                    raise self._fail(lhs, rhs, "variant labels differ")
                for (_, p1), (_, p2) in zip(v1, v2):
                    self._unify(p1, p2, subtyping)
            case Cons(l1, p1), Cons(l2, p2):
                if l1 != l2:
                    raise self._fail(lhs, rhs, "constructors differ")
                self._unify(p1, p2, False)
            case Neut(n1), Neut(n2):
                self._neutral(n1, n2, lhs, rhs)
            case _:
                raise self._fail(lhs, rhs)

    def _neutral(self, n1: Neutral, n2: Neutral, lhs: Val, rhs: Val) -> None:
        match n1, n2:
            case App(f1, a1), App(f2, a2):
                self._neutral(f1, f2, lhs, rhs)
                self._unify(a1, a2, False)
            case (Fst(p1), Fst(p2)) | (Snd(p1), Snd(p2)):
                self._neutral(p1, p2, lhs, rhs)
            case (Gen(), Gen()) | (Ref(), Ref()) | (Meta(), Meta()) if n1 == n2:
                return
            case _:
                raise self._fail(lhs, rhs)

    # ---- pattern unification ----
    def _try_solve(self, flex: Val, other: Val, errors: list[CannotUnify]) -> bool:
        """
        Solve ``flex`` when it is a pattern. An occurs or scope failure is
        appended to ``errors`` so the other side still gets its turn.
        """
        if not isinstance(flex, Neut):
            return False
        pattern = _pattern_spine(flex.neutral)
        if pattern is None:
            return False
        mi, args = pattern
        if not is_meta_headed(self._tcs, flex):
            return False
        try:
            solution = self._abstract(mi, args, self._zonk(other), flex)
        except CannotUnify as err:
            errors.append(err)
            return False
        for _ in args:
            solution = Val.lam(solution)
        logger.debug("Solved ?%s := %s", mi, solution)
        self._tcs = self._tcs.solve_meta(mi, solution)
        return True

    def _zonk(self, value: Val) -> Val:
        def leaf(neutral: Neutral) -> Val:
            if isinstance(neutral, Meta):
                resolved = self._resolve_metas(Neut(neutral))
                if resolved != Neut(neutral):
                    return self._zonk(resolved)
            return Neut(neutral)

        return value.map_neutral(leaf)

    def _abstract(self, mi: MI, args: list[DBI], rhs: Val, flex: Val) -> Val:
        """
        Rename the spine variables of ``flex`` to the solution's own binders;
        the last argument becomes ``Gen(0)``.
        """
        renaming = {dbi: len(args) - 1 - pos for pos, dbi in enumerate(args)}

        def leaf(neutral: Neutral, depth: int) -> Val:
            match neutral:
                case Meta(index) if index == mi:
                    raise self._fail(flex, rhs, f"?{mi} occurs in the solution")
                case Gen(int(dbi)) if dbi >= depth:
                    if dbi - depth not in renaming:
                        raise self._fail(flex, rhs, "variable escapes the meta's scope")
                    return Val.gen(DBI(renaming[dbi - depth] + depth))
            return Neut(neutral)

        return rhs._map_leaves(leaf, 0)


def _eta_apply(value: Val) -> Val:
    """``value`` moved under one binder and applied to it."""
    return value.shift(1).apply(Val.gen(DBI(0)))

"""Evaluation of already-checked abstract syntax into values."""

from __future__ import annotations

from collections.abc import Iterable

from dtcore.check.state import TCS, Inlined, Solved, Unsolved
from dtcore.core.ast import Gen, Meta, Neut, Neutral, Ref, Sum, Type, Val, ValInfo
from dtcore.syntax.abs import (
    AApp,
    Abs,
    ABot,
    ACons,
    ADt,
    AFst,
    ALam,
    ALift,
    AMeta,
    APair,
    ARef,
    ARowPoly,
    ASnd,
    ASum,
    AType,
    AVar,
    AVariant,
)
from dtcore.syntax.common import DBI, Ident, SyntaxInfo


def evaluate(tcs: TCS, expr: Abs) -> tuple[Val, TCS]:
    """
    Turn ``expr`` into a value in the current local context.

    ``expr`` is assumed to be well-typed; ill-formed input fails with a
    built-in exception rather than a type error. Evaluation records nothing,
    so the state comes back as it was given.
    """
    return _eval(tcs, expr), tcs


def _eval(tcs: TCS, expr: Abs) -> Val:
    match expr:
        case AType(_, level):
            return Type(level)
        case ABot():
            return Val.bot()
        case AVar(_, _, _, dbi):
            return tcs.local_val(dbi).attach_dbi(dbi)
        case ARef(_, _, gi):
            return tcs.glob_term(gi)
        case AMeta(_, _, mi):
            return tcs.meta_placeholder(mi)
        case ACons(info, name):
            return compile_cons(name, info)
        case AVariant(info, name):
            return compile_variant(name, info)
        case ASum(_, parts):
            return merge_sums(force_head(tcs, _eval(tcs, part)) for part in parts)
        case AApp(_, fun, arg):
            return force_head(tcs, _eval(tcs, fun)).apply(_eval(tcs, arg))
        case ADt(_, kind, _, param, ret, param_kind):
            param_type = _eval(tcs, param)
            ret_type = _eval(tcs.push_local(param_type), ret)
            return Val.dependent_type(kind, param_type, ret_type, param_kind)
        case APair(_, first, second):
            return Val.pair(_eval(tcs, first), _eval(tcs, second))
        case AFst(_, pair):
            return force_head(tcs, _eval(tcs, pair)).first()
        case ASnd(_, pair):
            return force_head(tcs, _eval(tcs, pair)).second()
        case ALam(_, _, _, body):
            # Abstract lambdas carry no annotation.
            return Val.lam(_eval(tcs.push_local(Val.mock()), body))
        case ALift(_, levels, inner):
            return force_head(tcs, _eval(tcs, inner)).lift(levels)
        case ARowPoly():
            raise NotImplementedError("Row polymorphism is not supported")
    raise TypeError(f"Cannot evaluate unknown syntax: {expr!r}")


def compile_cons(name: str, info: SyntaxInfo) -> Val:
    """``#name`` is the function wrapping its argument in the ``name`` tag."""
    label = Ident(name, info).strip_sigil()
    return Val.lam(Val.cons(label, Val.gen(DBI(0))))


def compile_variant(name: str, info: SyntaxInfo) -> Val:
    """``'name`` is the type function ``A`` to the sum ``{'name A}``."""
    label = Ident(name, info).strip_sigil()
    return Val.lam(Val.sum({label: Val.gen(DBI(0))}))


def merge_sums(parts: Iterable[Val]) -> Val:
    """Union of sum types; a label seen later wins."""
    merged: dict[str, Val] = {}
    for part in parts:
        if not isinstance(part, Sum):
            raise TypeError(f"Cannot merge non-sum `{part!r}` into a sum type.")
        merged.update(part.variants)
    return Val.sum(merged)


def compile(tcs: TCS, expr: Abs, checked: Val | None = None) -> ValInfo:
    """Prefer the value the checker already built; otherwise evaluate."""
    value = _eval(tcs, expr) if checked is None else checked
    return value.into_info(expr.info)


# --- Unfolding ---------------------------------------------------------------


def _expand_leaf(tcs: TCS, neutral: Neutral, *, strict: bool) -> Val:
    match neutral:
        case Ref(gi):
            return tcs.glob_term(gi)
        case Meta(mi):
            match tcs.meta_solution(mi):
                case Solved(value):
                    return value
                case Unsolved() if not strict:
                    return Neut(neutral)
                case Unsolved():
                    raise RuntimeError(f"Meta ?{mi} is not solved yet")
                case Inlined():
                    raise RuntimeError(f"Meta ?{mi} has been inlined")
        case Gen():
            return Neut(neutral)
    raise TypeError(f"Cannot expand unknown neutral: {neutral!r}")


def expand_global(tcs: TCS, value: Val) -> tuple[Val, TCS]:
    """Replace every global and meta reference by what it stands for."""
    return value.map_neutral(lambda n: _expand_leaf(tcs, n, strict=True)), tcs


def force_head(tcs: TCS, value: Val) -> Val:
    """
    Expand only the head of a neutral spine, so that the eliminators around it
    can fire. Unsolved metas stay stuck.
    """
    match value:
        case Neut(neutral):
            return neutral.map_head(lambda n: _expand_leaf(tcs, n, strict=False))
    return value

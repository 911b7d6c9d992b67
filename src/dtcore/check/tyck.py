"""Bidirectional type checking of abstract syntax against values."""

from __future__ import annotations

from dtcore.check.errors import (
    CannotInfer,
    CannotUnify,
    NotFunction,
    NotImplementedFeature,
    NotSigma,
    NotSumType,
    NotTypeError,
    TypeMismatch,
)
from dtcore.check.eval import compile_cons, compile_variant, force_head, merge_sums
from dtcore.check.state import TCS
from dtcore.check.unify import is_meta_headed, subtype, unify, whnf
from dtcore.core.ast import Closure, ClosureBody, Dt, Sum, Type, Val
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
from dtcore.syntax.common import MI, DtKind, Ident, Level, ParamKind, SyntaxInfo


def infer(tcs: TCS, expr: Abs) -> tuple[Val, TCS]:
    """Synthesize the type of ``expr``."""
    _, ty, tcs = _infer(tcs, expr)
    return ty, tcs


def check(tcs: TCS, expr: Abs, expected: Val) -> tuple[Val, TCS]:
    """Check ``expr`` against ``expected`` and return its value."""
    match expr:
        case ALam(info, _, _, body):
            dt, tcs = _expect_dt(tcs, expected, DtKind.PI, info)
            param_type = dt.closure.param_type
            body_val, tcs = check(
                tcs.push_local(param_type), body, dt.closure.body.open()
            )
            return Val.lam(body_val, param_type), tcs.pop_local()

        case APair(info, first, second):
            dt, tcs = _expect_dt(tcs, expected, DtKind.SIGMA, info)
            first_val, tcs = check(tcs, first, dt.closure.param_type)
            second_val, tcs = check(tcs, second, dt.closure.instantiate(first_val))
            return Val.pair(first_val, second_val), tcs

        case ACons(info, name):
            value = compile_cons(name, info)
            dt, tcs = _expect_dt(tcs, expected, DtKind.PI, info)
            ret = whnf(tcs, dt.closure.body.open())
            if not isinstance(ret, Sum):
                raise NotSumType(ret, info)
            label = Ident(name, info).strip_sigil()
            param_type = dt.closure.param_type
            actual = Val.pi(param_type, Val.sum({label: param_type.shift(1)}))
            payload = ret.as_dict().get(label)
            if payload is None:
                raise TypeMismatch(expected, actual, info)
            try:
                tcs = unify(tcs, param_type.shift(1), payload, info)
            except CannotUnify:
                raise TypeMismatch(expected, actual, info) from None
            return value, tcs

        case AMeta(_, _, mi):
            return tcs.meta_placeholder(mi), tcs

    value, actual, tcs = _infer(tcs, expr)
    try:
        tcs = subtype(tcs, actual, expected, expr.info)
    except CannotUnify:
        raise TypeMismatch(expected, actual, expr.info) from None
    return value, tcs


def check_type(tcs: TCS, expr: Abs) -> tuple[Val, TCS]:
    value, _, tcs = check_type_level(tcs, expr)
    return value, tcs


def check_type_level(tcs: TCS, expr: Abs) -> tuple[Val, Level, TCS]:
    """Check that ``expr`` is a type; also report the universe it lives in."""
    if isinstance(expr, AMeta):
        return tcs.meta_placeholder(expr.mi), 0, tcs
    value, ty, tcs = _infer(tcs, expr)
    ty = whnf(tcs, ty)
    match ty:
        case Type(level):
            return value, level, tcs
    if is_meta_headed(tcs, ty):
        try:
            return value, 0, unify(tcs, ty, Type(0), expr.info)
        except CannotUnify:
            raise TypeMismatch(Type(0), ty, expr.info) from None
    raise NotTypeError(ty, expr.info)


def _fresh_placeholder(tcs: TCS, extra: int = 0) -> tuple[Val, TCS]:
    mi = MI(len(tcs.meta_context))
    _, tcs = tcs.fresh_meta()
    return tcs.meta_placeholder(mi, extra), tcs


def _expect_dt(tcs: TCS, ty: Val, kind: DtKind, info: SyntaxInfo) -> tuple[Dt, TCS]:
    """
    View ``ty`` as a dependent type of ``kind``.

    A type that is still an unsolved meta is refined into a ``Dt`` whose
    parameter and body are fresh metas.
    """
    ty = whnf(tcs, ty)
    if isinstance(ty, Dt) and ty.kind is kind:
        return ty, tcs
    if is_meta_headed(tcs, ty):
        param_type, tcs = _fresh_placeholder(tcs)
        ret_type, tcs = _fresh_placeholder(tcs, extra=1)
        dt = Dt(ParamKind.EXPLICIT, kind, Closure(param_type, ClosureBody(ret_type)))
        try:
            return dt, unify(tcs, ty, dt, info)
        except CannotUnify:
            raise TypeMismatch(dt, ty, info) from None
    if kind is DtKind.PI:
        raise NotFunction(ty, info)
    raise NotSigma(ty, info)


def _infer(tcs: TCS, expr: Abs) -> tuple[Val, Val, TCS]:
    """Value and type of ``expr``."""
    match expr:
        case AType(_, level):
            return Type(level), Type(level + 1), tcs

        case ABot():
            return Val.bot(), Type(0), tcs

        case AVar(_, _, _, dbi):
            return tcs.local_val(dbi).attach_dbi(dbi), tcs.local_type(dbi), tcs

        case ARef(_, _, gi):
            return tcs.glob_term(gi), tcs.glob_type(gi), tcs

        case AMeta(_, _, mi):
            ty, tcs = _fresh_placeholder(tcs)
            return tcs.meta_placeholder(mi), ty, tcs

        case AVariant(info, name):
            return compile_variant(name, info), Val.pi(Type(0), Type(0)), tcs

        case ALam():
            raise CannotInfer("a lambda without an expected type", expr.info)

        case ACons():
            raise CannotInfer("a constructor without an expected type", expr.info)

        case ARowPoly():
            raise NotImplementedFeature("row polymorphism", expr.info)

        case AApp(_, fun, arg):
            fun_val, fun_ty, tcs = _infer(tcs, fun)
            dt, tcs = _expect_dt(tcs, fun_ty, DtKind.PI, fun.info)
            arg_val, tcs = check(tcs, arg, dt.closure.param_type)
            value = force_head(tcs, fun_val).apply(arg_val)
            return value, dt.closure.instantiate(arg_val), tcs

        case ADt(_, kind, _, param, ret, param_kind):
            param_type, param_level, tcs = check_type_level(tcs, param)
            ret_type, ret_level, tcs = check_type_level(tcs.push_local(param_type), ret)
            value = Val.dependent_type(kind, param_type, ret_type, param_kind)
            return value, Type(max(param_level, ret_level)), tcs.pop_local()

        case APair(_, first, second):
            first_val, first_ty, tcs = _infer(tcs, first)
            second_val, second_ty, tcs = _infer(tcs, second)
            value = Val.pair(first_val, second_val)
            return value, Val.sig(first_ty, second_ty.shift(1)), tcs

        case AFst(info, pair):
            pair_val, pair_ty, tcs = _infer(tcs, pair)
            dt, tcs = _expect_dt(tcs, pair_ty, DtKind.SIGMA, info)
            return force_head(tcs, pair_val).first(), dt.closure.param_type, tcs

        case ASnd(info, pair):
            pair_val, pair_ty, tcs = _infer(tcs, pair)
            dt, tcs = _expect_dt(tcs, pair_ty, DtKind.SIGMA, info)
            pair_val = force_head(tcs, pair_val)
            return pair_val.second(), dt.closure.instantiate(pair_val.first()), tcs

        case ALift(_, levels, inner):
            value, ty, tcs = _infer(tcs, inner)
            return force_head(tcs, value).lift(levels), ty.lift(levels), tcs

        case ASum(_, parts):
            sums: list[Val] = []
            level = 0
            for part in parts:
                part_val, part_level, tcs = check_type_level(tcs, part)
                part_val = whnf(tcs, part_val)
                if not isinstance(part_val, Sum):
                    raise NotSumType(part_val, part.info)
                sums.append(part_val)
                level = max(level, part_level)
            return merge_sums(sums), Type(level), tcs

    raise TypeError(f"Cannot type-check unknown syntax: {expr!r}")

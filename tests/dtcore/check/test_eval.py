import pytest

from check_helpers import (
    app,
    both,
    bot,
    checked,
    cons,
    lam,
    meta,
    pi,
    ref,
    sign,
    typ,
    var,
    variant,
)
from dtcore.check.eval import compile, evaluate, expand_global, force_head
from dtcore.check.state import TCS
from dtcore.core.ast import App, Meta, Neut, Ref, Type, Val
from dtcore.syntax.abs import ARowPoly, ASum, AType
from dtcore.syntax.common import DBI, GI, MI, NO_INFO, SyntaxInfo


def test_universes_and_bottom() -> None:
    assert evaluate(TCS(), typ(3))[0] == Type(3)
    assert evaluate(TCS(), bot())[0] == Val.bot()


def test_shadowed_binders_resolve_to_their_indices() -> None:
    # (a : Type) -> (b : a) -> (b : b) -> a
    expr = pi(typ(), pi(var("a", 0), pi(var("b", 0), var("a", 2))))
    assert evaluate(TCS(), expr)[0] == Val.pi(
        Type(0), Val.pi(Val.gen(DBI(0)), Val.pi(Val.gen(DBI(0)), Val.gen(DBI(2))))
    )


def test_constructor_is_a_tagging_function() -> None:
    foo, _ = evaluate(TCS(), cons("foo"))
    assert foo == Val.lam(Val.cons("foo", Val.gen(DBI(0))))
    assert foo.apply(Type(0)) == Val.cons("foo", Type(0))


def test_variant_builds_a_single_label_sum() -> None:
    assert evaluate(TCS(), app(variant("a"), typ()))[0] == Val.sum({"a": Type(0)})


def test_sum_merge_lets_later_labels_win() -> None:
    expr = ASum(
        NO_INFO,
        (
            app(variant("a"), typ()),
            app(variant("a"), bot()),
            app(variant("b"), typ()),
        ),
    )
    assert evaluate(TCS(), expr)[0] == Val.sum({"a": Val.bot(), "b": Type(0)})


def test_postulated_global_stays_folded() -> None:
    tcs = checked(sign(typ(), 0))
    assert evaluate(tcs, ref("Nat", 0))[0] == Val.ref(GI(0))


def test_defined_global_is_used_verbatim() -> None:
    tcs = checked(both(pi(typ(), typ()), lam("x", var("x", 0)), 0))
    assert evaluate(tcs, app(ref("id", 0), bot()))[0] == Val.bot()


def test_lambda_parameter_is_postulated() -> None:
    value, _ = evaluate(TCS(), lam("x", var("x", 0)))
    assert value == Val.lam(Val.gen(DBI(0)))


def test_meta_is_applied_to_locals_in_scope() -> None:
    tcs = TCS().initialize_meta_context(1)
    assert evaluate(tcs, meta(0))[0] == Val.meta(MI(0))
    assert evaluate(tcs, lam("x", meta(0)))[0] == Val.lam(
        Neut(App(Meta(MI(0)), Val.gen(DBI(0))))
    )


def test_row_polymorphism_is_unsupported() -> None:
    with pytest.raises(NotImplementedError):
        evaluate(TCS(), ARowPoly(NO_INFO, (), typ()))


def test_expand_global_unfolds_references_and_solved_metas() -> None:
    tcs = checked(both(pi(typ(), typ()), lam("x", var("x", 0)), 0))
    assert expand_global(tcs, Neut(App(Ref(GI(0)), Val.bot())))[0] == Val.bot()

    tcs = tcs.initialize_meta_context(1).solve_meta(MI(0), Type(0))
    assert expand_global(tcs, Val.meta(MI(0)))[0] == Type(0)


def test_expand_global_keeps_postulates() -> None:
    tcs = checked(sign(typ(), 0))
    assert expand_global(tcs, Val.ref(GI(0)))[0] == Val.ref(GI(0))


def test_expand_global_rejects_unsolved_and_inlined_metas() -> None:
    tcs = TCS().initialize_meta_context(1)
    with pytest.raises(RuntimeError):
        expand_global(tcs, Val.meta(MI(0)))
    tcs = tcs.solve_meta(MI(0), Type(0)).inline_meta(MI(0))
    with pytest.raises(RuntimeError):
        expand_global(tcs, Val.meta(MI(0)))


def test_force_head_leaves_unsolved_metas_stuck() -> None:
    tcs = TCS().initialize_meta_context(1)
    stuck = Val.meta(MI(0)).apply(Type(0))
    assert force_head(tcs, stuck) == stuck
    solved = tcs.solve_meta(MI(0), Val.lam(Val.gen(DBI(0))))
    assert force_head(solved, stuck) == Type(0)


def test_compile_prefers_the_checked_value() -> None:
    info = SyntaxInfo(1, 5)
    expr = AType(info, 0)
    compiled = compile(TCS(), expr)
    assert compiled.ast == Type(0)
    assert compiled.info == info
    assert compile(TCS(), expr, Val.bot()).ast == Val.bot()


def test_evaluation_hands_back_the_state() -> None:
    tcs = checked(sign(typ(), 0))
    value, after = tcs.evaluate(ref("Nat", 0))
    assert value == Val.ref(GI(0))
    assert after is tcs
    expanded, after = tcs.expand_global(value)
    assert expanded == value
    assert after is tcs

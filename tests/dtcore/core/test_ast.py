import pytest

from dtcore.core.ast import App, Fst, Gen, Neut, Snd, Type, Val, ValInfo
from dtcore.core.env import DbiEnv
from dtcore.syntax.common import DBI, SyntaxInfo


def test_apply_instantiates_lambda() -> None:
    identity = Val.lam(Val.gen(DBI(0)))
    assert identity.apply(Type(0)) == Type(0)


def test_elimination_of_neutral_is_stuck() -> None:
    x = Val.gen(DBI(3))
    assert x.apply(Type(0)) == Neut(App(Gen(DBI(3)), Type(0)))
    assert x.first() == Neut(Fst(Gen(DBI(3))))
    assert x.second() == Neut(Snd(Gen(DBI(3))))


def test_projection_of_pair() -> None:
    pair = Val.pair(Type(0), Val.bot())
    assert pair.first() == Type(0)
    assert pair.second() == Val.bot()


def test_eliminating_a_canonical_non_function_is_fatal() -> None:
    with pytest.raises(TypeError, match="Cannot apply"):
        Type(0).apply(Type(0))
    with pytest.raises(TypeError, match="Cannot project"):
        Val.lam(Val.gen(DBI(0))).first()
    with pytest.raises(TypeError, match="Cannot project"):
        Type(1).second()


def test_reduce_replaces_and_reindexes_free_variables() -> None:
    env = DbiEnv.of(Type(1))
    assert Val.gen(DBI(0)).reduce(env) == Type(1)
    assert Val.gen(DBI(2)).reduce(env) == Val.gen(DBI(1))
    assert Val.axiom().reduce(env) == Val.axiom()


def test_reduce_goes_under_binders() -> None:
    assert Val.lam(Val.gen(DBI(1))).reduce(DbiEnv.of(Type(0))) == Val.lam(Type(0))
    # The substituted value is shifted past the binder it crosses.
    assert Val.lam(Val.gen(DBI(1))).reduce(DbiEnv.of(Val.gen(DBI(5)))) == Val.lam(
        Val.gen(DBI(6))
    )


def test_reduce_fires_eliminations_whose_head_becomes_canonical() -> None:
    stuck = Neut(App(Gen(DBI(0)), Type(0)))
    assert stuck.reduce(DbiEnv.of(Val.lam(Val.gen(DBI(0))))) == Type(0)
    projection = Neut(Snd(Gen(DBI(0))))
    assert projection.reduce(DbiEnv.of(Val.pair(Type(0), Type(1)))) == Type(1)


def test_instantiate_drops_the_parameter_binder() -> None:
    fun = Val.lam(Val.pair(Val.gen(DBI(0)), Val.gen(DBI(1))))
    assert fun.apply(Type(0)) == Val.pair(Type(0), Val.gen(DBI(0)))


def test_shift_respects_bound_variables() -> None:
    assert Val.gen(DBI(0)).shift(2) == Val.gen(DBI(2))
    assert Val.lam(Val.gen(DBI(0))).shift(3) == Val.lam(Val.gen(DBI(0)))
    assert Val.lam(Val.gen(DBI(1))).shift(3) == Val.lam(Val.gen(DBI(4)))
    assert Val.gen(DBI(0)).shift(1, cutoff=1) == Val.gen(DBI(0))


def test_attach_dbi_retags_placeholder() -> None:
    assert Val.gen(DBI(0)).attach_dbi(DBI(3)) == Val.gen(DBI(3))
    assert Type(0).attach_dbi(DBI(3)) == Type(0)


def test_lift_raises_every_universe() -> None:
    assert Val.pi(Type(0), Type(1)).lift(2) == Val.pi(Type(2), Type(3))
    assert Val.gen(DBI(0)).lift(2) == Val.gen(DBI(0))


def test_universe_level() -> None:
    assert Type(0).universe_level() == 1
    assert Val.pi(Type(0), Type(1)).universe_level() == 2
    assert Val.bot().universe_level() == 0
    assert Val.gen(DBI(0)).universe_level() == 0


def test_negative_universe_is_rejected() -> None:
    with pytest.raises(ValueError):
        Type(-1)


def test_sum_labels_are_sorted() -> None:
    value = Val.sum({"b": Val.bot(), "a": Type(0)})
    assert value.variants == (("a", Type(0)), ("b", Val.bot()))
    assert value == Val.sum([("a", Type(0)), ("b", Val.bot())])


def test_predicates() -> None:
    assert Type(0).is_type() and Type(0).is_universe()
    assert Val.pi(Type(0), Type(0)).is_type()
    assert not Val.pi(Type(0), Type(0)).is_universe()
    assert not Val.gen(DBI(0)).is_type()


def test_syntax_info_does_not_take_part_in_equality() -> None:
    assert ValInfo(Type(0), SyntaxInfo(1, 2)) == ValInfo(Type(0), SyntaxInfo(3, 4))
    assert Type(0).into_info(SyntaxInfo(1, 2)).info == SyntaxInfo(1, 2)


def test_map_ast_keeps_the_span() -> None:
    lifted = Type(0).into_info(SyntaxInfo(1, 2)).map_ast(lambda v: v.lift(2))
    assert lifted.ast == Type(2)
    assert lifted.info == SyntaxInfo(1, 2)


def test_neutral_smart_constructors_match_stuck_eliminations() -> None:
    x = Gen(DBI(0))
    assert Val.app(x, Type(0)) == Val.gen(DBI(0)).apply(Type(0))
    assert Val.proj_fst(x) == Val.gen(DBI(0)).first()
    assert Val.proj_snd(x) == Val.gen(DBI(0)).second()

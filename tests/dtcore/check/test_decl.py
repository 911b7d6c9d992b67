import logging

import pytest

from check_helpers import (
    app,
    both,
    checked,
    impl,
    lam,
    nat_and_bool,
    pi,
    ref,
    sign,
    typ,
    var,
)
from dtcore.check.decl import check_decls
from dtcore.check.errors import AlreadyDefined, TypeMismatch
from dtcore.core.ast import App, Neut, Ref, Type, Val
from dtcore.syntax.abs import AType, Both, Impl, Sign
from dtcore.syntax.common import DBI, GI, SyntaxInfo

NAT = ref("Nat", 0)


def test_two_declarations_of_the_same_shape() -> None:
    # val a : Type1; let a = Type; val b : Type1; let b = Type;
    tcs = checked(both(typ(1), typ(0), 0), both(typ(1), typ(0), 1))
    assert tcs.glob_len() == 2
    assert tcs.gamma[0].ast == tcs.gamma[1].ast == Type(1)
    assert tcs.env[0].ast == tcs.env[1].ast == Type(0)


def test_contexts_stay_paired() -> None:
    tcs = checked(
        sign(typ(), 0),
        sign(pi(NAT, NAT), 1),
        impl(lam("n", var("n", 0)), 1),
        impl(typ(), 2),
    )
    assert len(tcs.gamma) == len(tcs.env) == 3
    assert tcs.local_len() == 0


def test_self_reference() -> None:
    # val Nat : Type; val f : Nat -> Nat; let f = \n. f n;
    body = lam("n", app(ref("f", 1), var("n", 0)))
    expected = Val.lam(Neut(App(Ref(GI(1)), Val.gen(DBI(0)))), Val.ref(GI(0)))

    tcs = checked(sign(typ(), 0), both(pi(NAT, NAT), body, 1))
    assert tcs.env[1].ast == expected
    assert tcs.gamma[1].ast == Val.pi(Val.ref(GI(0)), Val.ref(GI(0)))

    tcs = checked(sign(typ(), 0), sign(pi(NAT, NAT), 1), impl(body, 1))
    assert tcs.env[1].ast == expected


def test_mutual_recursion_through_signatures() -> None:
    tcs = checked(
        sign(typ(), 0),
        sign(pi(NAT, NAT), 1),
        sign(pi(NAT, NAT), 2),
        impl(lam("n", app(ref("odd", 2), var("n", 0))), 1),
        impl(lam("n", app(ref("even", 1), var("n", 0))), 2),
    )
    assert not tcs.glob_is_axiom(GI(1))
    assert not tcs.glob_is_axiom(GI(2))


def test_body_without_signature_is_inferred() -> None:
    tcs = checked(impl(typ(), 0))
    assert tcs.gamma[0].ast == Type(1)
    assert tcs.env[0].ast == Type(0)


def test_signature_only_is_a_postulate() -> None:
    tcs = nat_and_bool()
    assert tcs.glob_is_axiom(GI(0))
    assert tcs.env[0].ast == Val.axiom()


def test_filling_a_defined_global_is_an_error() -> None:
    tcs = checked(both(typ(1), typ(0), 0))
    with pytest.raises(AlreadyDefined):
        check_decls(tcs, [impl(typ(), 0)])


def test_global_index_out_of_order_is_fatal() -> None:
    with pytest.raises(IndexError):
        checked(impl(typ(), 1))
    with pytest.raises(IndexError):
        checked(sign(typ(), 1))


def test_declaration_errors_point_at_the_declaration() -> None:
    body = AType(SyntaxInfo(9, 13), 0)
    assert Sign(AType(SyntaxInfo(2, 7), 1), GI(0)).info == SyntaxInfo(2, 7)
    assert Both(AType(SyntaxInfo(2, 7), 1), body, GI(0)).info == body.info
    with pytest.raises(IndexError, match="at 9:13 targets global #1"):
        checked(Impl(body, GI(1)))
    tcs = checked(both(typ(1), typ(0), 0))
    with pytest.raises(AlreadyDefined) as err:
        check_decls(tcs, [Impl(body, GI(0))])
    assert err.value.info == body.info


def test_postulates_are_distinct_types() -> None:
    tcs = checked(sign(typ(), 0), sign(typ(), 1), sign(NAT, 2))
    with pytest.raises(TypeMismatch):
        check_decls(tcs, [both(ref("Bool", 1), ref("zero", 2), 3)])


def test_failing_batch_leaves_state_unchanged() -> None:
    tcs = nat_and_bool()
    batch = [both(typ(1), typ(0), 2), both(typ(0), typ(0), 3)]
    with pytest.raises(TypeMismatch):
        check_decls(tcs, batch)
    assert tcs.glob_len() == 2
    assert tcs == nat_and_bool()


def test_committed_declarations_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="dtcore.check.decl"):
        checked(both(typ(1), typ(0), 0))
    assert "Signature of #0: Type1" in caplog.text
    assert "Body of #0: Type" in caplog.text

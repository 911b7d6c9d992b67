"""Pretty-printing utilities for core values."""

from __future__ import annotations

from dtcore.core.ast import (
    App,
    Bot,
    Closure,
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
from dtcore.syntax.common import DtKind, ParamKind

ATOM_PREC = 3
APP_PREC = 2
PI_PREC = 1
LAM_PREC = 0


def _fresh_name(env: list[str], base: str = "x") -> str:
    """First variant of ``base`` that no enclosing binder uses."""

    candidate = base
    suffix = 0
    while candidate in env:
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


def _uses_var(value: Val, target: int = 0) -> bool:
    """Return ``True`` if ``Gen(target)`` appears free in ``value``."""

    found = False

    def leaf(neutral: Neutral, depth: int) -> Val:
        nonlocal found
        if isinstance(neutral, Gen) and neutral.dbi == target + depth:
            found = True
        return Neut(neutral)

    value._map_leaves(leaf, 0)
    return found


def _maybe_paren(
    text: str, child_prec: int, parent_prec: int, *, allow_equal: bool
) -> str:
    if child_prec < parent_prec or (child_prec == parent_prec and not allow_equal):
        return f"({text})"
    return text


def pretty(value: Val) -> str:
    """Return a human-friendly string for ``value``."""

    def fmt_neutral(n: Neutral, env: list[str]) -> tuple[str, int]:
        match n:
            case Gen(None):
                return "<axiom>", ATOM_PREC
            case Gen(int(k)):
                return (env[k] if k < len(env) else f"_{k}"), ATOM_PREC
            case Ref(index):
                return f"@{index}", ATOM_PREC
            case Meta(index):
                return f"?{index}", ATOM_PREC
            case App(fun, arg):
                fun_text, fun_prec = fmt_neutral(fun, env)
                arg_text, arg_prec = fmt(arg, env)
                fun_disp = _maybe_paren(fun_text, fun_prec, APP_PREC, allow_equal=True)
                arg_disp = _maybe_paren(arg_text, arg_prec, APP_PREC, allow_equal=False)
                return f"{fun_disp} {arg_disp}", APP_PREC
            case Fst(pair) | Snd(pair):
                pair_text, pair_prec = fmt_neutral(pair, env)
                suffix = ".1" if isinstance(n, Fst) else ".2"
                pair_disp = _maybe_paren(pair_text, pair_prec, ATOM_PREC, allow_equal=True)
                return f"{pair_disp}{suffix}", ATOM_PREC
        raise TypeError(f"Cannot pretty-print unknown neutral: {n!r}")

    def fmt_binder(closure: Closure, env: list[str], base: str) -> tuple[str, str, str]:
        body = closure.body.open()
        binder = _fresh_name(env, base=base)
        param_text, param_prec = fmt(closure.param_type, env)
        body_text, body_prec = fmt(body, [binder, *env])
        param_disp = _maybe_paren(param_text, param_prec, PI_PREC, allow_equal=False)
        body_disp = _maybe_paren(body_text, body_prec, PI_PREC, allow_equal=True)
        return binder, param_disp, body_disp

    def fmt(v: Val, env: list[str]) -> tuple[str, int]:
        match v:
            case Type(level):
                return ("Type" if level == 0 else f"Type{level}"), ATOM_PREC

            case Bot():
                return "!", ATOM_PREC

            case Neut(neutral):
                return fmt_neutral(neutral, env)

            case Lam(closure):
                binder = _fresh_name(env)
                body_text, _ = fmt(closure.body.open(), [binder, *env])
                return f"\\{binder}. {body_text}", LAM_PREC

            case Dt(param_kind, kind, closure):
                arrow = "->" if kind is DtKind.PI else "*"
                dependent = _uses_var(closure.body.open())
                binder, param_disp, body_disp = fmt_binder(
                    closure, env, "x" if dependent else "_"
                )
                if param_kind is ParamKind.IMPLICIT:
                    return f"{{{binder} : {param_disp}}} {arrow} {body_disp}", PI_PREC
                if not dependent:
                    return f"{param_disp} {arrow} {body_disp}", PI_PREC
                return f"({binder} : {param_disp}) {arrow} {body_disp}", PI_PREC

            case Pair(first, second):
                return f"({fmt(first, env)[0]}, {fmt(second, env)[0]})", ATOM_PREC

            case Sum(variants):
                parts = []
                for label, payload in variants:
                    text, prec = fmt(payload, env)
                    parts.append(
                        f"'{label} {_maybe_paren(text, prec, APP_PREC, allow_equal=False)}"
                    )
                return "{" + " | ".join(parts) + "}", ATOM_PREC

            case Cons(label, payload):
                text, prec = fmt(payload, env)
                return (
                    f"#{label} {_maybe_paren(text, prec, APP_PREC, allow_equal=False)}",
                    APP_PREC,
                )

        raise TypeError(f"Cannot pretty-print unknown value: {v!r}")

    return fmt(value, [])[0]

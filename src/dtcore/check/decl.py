"""Checking top-level declarations in source order."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from dtcore.check.errors import AlreadyDefined
from dtcore.check.eval import compile
from dtcore.check.state import TCS
from dtcore.check.tyck import check, check_type, infer
from dtcore.syntax.abs import AbsDecl, Both, Impl, Sign

logger = logging.getLogger(__name__)


def check_decls(tcs: TCS, decls: Iterable[AbsDecl]) -> TCS:
    """
    Check ``decls`` left to right and return the extended state.

    A type error aborts the whole batch; ``tcs`` itself is never modified, so
    the caller still holds the state from before the batch.
    """
    for decl in decls:
        tcs = check_decl(tcs, decl)
    return tcs


def check_decl(tcs: TCS, decl: AbsDecl) -> TCS:
    match decl:
        case Both(sign, impl, gi):
            _expect_next(tcs, decl)
            ty, tcs = check_type(tcs, sign)
            # Reserve the slot so the body can refer to itself.
            tcs = tcs.push_global(compile(tcs, sign, ty))
            logger.debug("Signature of #%s: %s", gi, ty)
            value, tcs = check(tcs, impl, ty)
            logger.debug("Body of #%s: %s", gi, value)
            return tcs.set_global_value(gi, compile(tcs, impl, value))

        case Sign(sign, gi):
            _expect_next(tcs, decl)
            ty, tcs = check_type(tcs, sign)
            logger.debug("Signature of #%s: %s", gi, ty)
            return tcs.push_global(compile(tcs, sign, ty))

        case Impl(impl, gi) if gi < tcs.glob_len():
            if not tcs.glob_is_axiom(gi):
                raise AlreadyDefined(gi, decl.info)
            value, tcs = check(tcs, impl, tcs.glob_type(gi))
            logger.debug("Body of #%s: %s", gi, value)
            return tcs.set_global_value(gi, compile(tcs, impl, value))

        case Impl(impl, gi):
            _expect_next(tcs, decl)
            ty, tcs = infer(tcs, impl)
            value = compile(tcs, impl)
            logger.debug("Body of #%s: %s : %s", gi, value, ty)
            return tcs.push_global(ty.into_info(impl.info), value)

    raise TypeError(f"Cannot check unknown declaration: {decl!r}")


def _expect_next(tcs: TCS, decl: Sign | Impl | Both) -> None:
    if decl.gi != tcs.glob_len():
        raise IndexError(
            f"Declaration at {decl.info} targets global #{decl.gi} but the next "
            f"free slot is #{tcs.glob_len()}"
        )


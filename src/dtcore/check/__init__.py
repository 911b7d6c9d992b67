"""Checker facade: state, evaluation, conversion and declaration checking."""

from dtcore.check.decl import check_decl, check_decls
from dtcore.check.errors import (
    TCE,
    AlreadyDefined,
    CannotInfer,
    CannotUnify,
    NotFunction,
    NotImplementedFeature,
    NotSigma,
    NotSumType,
    NotTypeError,
    TypeMismatch,
)
from dtcore.check.eval import compile, evaluate, expand_global
from dtcore.check.state import TCS, Inlined, MetaSolution, Solved, Unsolved
from dtcore.check.tyck import check, check_type, infer
from dtcore.check.unify import subtype, unify

__all__ = [
    "AlreadyDefined",
    "CannotInfer",
    "CannotUnify",
    "Inlined",
    "MetaSolution",
    "NotFunction",
    "NotImplementedFeature",
    "NotSigma",
    "NotSumType",
    "NotTypeError",
    "Solved",
    "TCE",
    "TCS",
    "TypeMismatch",
    "Unsolved",
    "check",
    "check_decl",
    "check_decls",
    "check_type",
    "compile",
    "evaluate",
    "expand_global",
    "infer",
    "subtype",
    "unify",
]

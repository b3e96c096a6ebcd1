from .context import Context, DataCon, DataDecl, empty_context, make_context
from .ctype import CType, Substitution, TyCon, TyVar, con, fun
from .errors import JudgmentInvariantError, TacticError
from .judgment import Judgment, first_judgment
from .state import TacticState, fresh_unique, initial
from .trace import Rose, Trace, rose

__all__ = [
    "CType",
    "Context",
    "DataCon",
    "DataDecl",
    "Judgment",
    "JudgmentInvariantError",
    "Rose",
    "Substitution",
    "TacticError",
    "TacticState",
    "Trace",
    "TyCon",
    "TyVar",
    "con",
    "empty_context",
    "first_judgment",
    "fresh_unique",
    "fun",
    "initial",
    "make_context",
    "rose",
]

from __future__ import annotations

from typing import Collection, Dict, Tuple

from ..core.ctype import CType, TyCon, TyVar, free_vars, is_function, rename_vars
from ..core.state import TacticState, fresh_unique

_CON_HINTS = {"Bool": "b", "Int": "n", "Char": "c", "String": "s", "Unit": "u"}


def name_hint(ctype: CType) -> str:
    if isinstance(ctype, TyVar):
        return ctype.name[:1].lower() or "x"
    if is_function(ctype):
        return "f"
    if isinstance(ctype, TyCon):
        if ctype.name == "List" and ctype.args:
            return name_hint(ctype.args[0]) + "s"
        if ctype.name in _CON_HINTS:
            return _CON_HINTS[ctype.name]
        return ctype.name[:1].lower() or "x"
    return "x"


def fresh_name(hint: str, taken: Collection[str], state: TacticState) -> Tuple[str, TacticState]:
    """Take a unique from the supply and turn ``hint`` into an unused name."""
    unique, state = fresh_unique(state)
    if hint not in taken:
        return hint, state
    candidate = f"{hint}{unique.index}"
    while candidate in taken:
        unique, state = fresh_unique(state)
        candidate = f"{hint}{unique.index}"
    return candidate, state


def instantiate(
    ctype: CType, state: TacticState, generalized: bool = False
) -> Tuple[CType, TacticState]:
    """Replace the non-skolem variables of ``ctype`` with fresh unification variables.

    A ``generalized`` type (an ambient or defining function) quantifies all of
    its variables, so none of them are taken as skolems.
    """
    rigid = set() if generalized else {skolem.name for skolem in state.skolems}
    renaming: Dict[str, CType] = {}
    for name in sorted(free_vars(ctype)):
        if name in rigid or (not generalized and name in state.unifier):
            continue
        unique, state = fresh_unique(state)
        renaming[name] = TyVar(f"{name}_{unique.index}")
    if not renaming:
        return ctype, state
    return rename_vars(ctype, renaming), state

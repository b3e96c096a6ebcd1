from __future__ import annotations

from typing import AbstractSet, Iterable, Optional, Union

from .ctype import CType, Substitution, TyCon, TyVar, free_vars
from .errors import UnificationError


def _bind(variable: TyVar, ctype: CType, subst: Substitution) -> Optional[Substitution]:
    if variable.name in free_vars(ctype):
        return None
    return subst.extend(variable.name, ctype)


def _unify(
    left: CType, right: CType, subst: Substitution, rigid: AbstractSet[str]
) -> Optional[Substitution]:
    left = subst.apply(left)
    right = subst.apply(right)
    if left == right:
        return subst
    if isinstance(left, TyVar) and left.name not in rigid:
        return _bind(left, right, subst)
    if isinstance(right, TyVar) and right.name not in rigid:
        return _bind(right, left, subst)
    if (
        isinstance(left, TyCon)
        and isinstance(right, TyCon)
        and left.name == right.name
        and len(left.args) == len(right.args)
    ):
        current: Optional[Substitution] = subst
        for left_arg, right_arg in zip(left.args, right.args):
            assert current is not None
            current = _unify(left_arg, right_arg, current, rigid)
            if current is None:
                return None
        return current
    return None


def unify(
    left: CType,
    right: CType,
    subst: Substitution,
    skolems: Iterable[TyVar] = (),
) -> Union[Substitution, UnificationError]:
    """Refine ``subst`` so both types agree; skolems never get bound."""
    rigid = frozenset(skolem.name for skolem in skolems)
    result = _unify(left, right, subst, rigid)
    if result is None:
        return UnificationError(subst.apply(left), subst.apply(right))
    return result

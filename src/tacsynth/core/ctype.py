from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Sequence, Tuple

ARROW = "->"


class CType:
    """Goal type with structural equality and a total order."""

    def sort_key(self) -> Tuple[Any, ...]:
        raise NotImplementedError

    def __lt__(self, other: "CType") -> bool:
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "CType") -> bool:
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: "CType") -> bool:
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: "CType") -> bool:
        return self.sort_key() >= other.sort_key()

    def to_json(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True, eq=True)
class TyVar(CType):
    name: str

    def sort_key(self) -> Tuple[Any, ...]:
        return (0, self.name)

    def to_json(self) -> Dict[str, Any]:
        return {"var": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, eq=True)
class TyCon(CType):
    name: str
    args: Tuple[CType, ...] = ()

    def sort_key(self) -> Tuple[Any, ...]:
        return (1, self.name, tuple(arg.sort_key() for arg in self.args))

    def to_json(self) -> Dict[str, Any]:
        return {"con": self.name, "args": [arg.to_json() for arg in self.args]}

    def __str__(self) -> str:
        if self.name == ARROW and len(self.args) == 2:
            left, right = self.args
            left_text = f"({left})" if is_function(left) else str(left)
            return f"{left_text} -> {right}"
        if not self.args:
            return self.name
        rendered = [f"({arg})" if isinstance(arg, TyCon) and arg.args else str(arg) for arg in self.args]
        return " ".join([self.name, *rendered])


def con(name: str, *args: CType) -> TyCon:
    return TyCon(name, tuple(args))


def fun(*types: CType) -> CType:
    if not types:
        raise ValueError("fun expects at least one type")
    result = types[-1]
    for arg in reversed(types[:-1]):
        result = TyCon(ARROW, (arg, result))
    return result


def is_function(ctype: CType) -> bool:
    return isinstance(ctype, TyCon) and ctype.name == ARROW and len(ctype.args) == 2


def split_fun(ctype: CType) -> Tuple[List[CType], CType]:
    args: List[CType] = []
    while is_function(ctype):
        assert isinstance(ctype, TyCon)
        args.append(ctype.args[0])
        ctype = ctype.args[1]
    return args, ctype


def _walk_vars(ctype: CType) -> Iterator[str]:
    if isinstance(ctype, TyVar):
        yield ctype.name
    elif isinstance(ctype, TyCon):
        for arg in ctype.args:
            yield from _walk_vars(arg)


def free_vars(ctype: CType) -> FrozenSet[str]:
    return frozenset(_walk_vars(ctype))


def free_vars_ordered(types: Sequence[CType]) -> List[TyVar]:
    seen: List[str] = []
    for ctype in types:
        for name in _walk_vars(ctype):
            if name not in seen:
                seen.append(name)
    return [TyVar(name) for name in seen]


def rename_vars(ctype: CType, mapping: Mapping[str, CType]) -> CType:
    """Substitute all variables of ``mapping`` at once, without chasing bindings."""
    if isinstance(ctype, TyVar):
        return mapping.get(ctype.name, ctype)
    if isinstance(ctype, TyCon) and ctype.args:
        return TyCon(ctype.name, tuple(rename_vars(arg, mapping) for arg in ctype.args))
    return ctype


def ctype_from_json(data: Any) -> CType:
    if isinstance(data, str):
        return TyCon(data)
    if not isinstance(data, dict):
        raise ValueError(f"invalid type payload: {data!r}")
    if "var" in data:
        return TyVar(str(data["var"]))
    if "con" in data:
        args = data.get("args", [])
        if not isinstance(args, list):
            raise ValueError(f"invalid type args: {args!r}")
        return TyCon(str(data["con"]), tuple(ctype_from_json(arg) for arg in args))
    raise ValueError(f"invalid type payload: {data!r}")


class Substitution:
    """Immutable mapping from unification variables to types."""

    __slots__ = ("_bindings",)

    def __init__(self, bindings: Optional[Mapping[str, CType]] = None) -> None:
        self._bindings: Dict[str, CType] = dict(bindings or {})

    @classmethod
    def empty(cls) -> "Substitution":
        return cls()

    def extend(self, name: str, ctype: CType) -> "Substitution":
        bindings = dict(self._bindings)
        bindings[name] = ctype
        return Substitution(bindings)

    def apply(self, ctype: CType) -> CType:
        if isinstance(ctype, TyVar):
            bound = self._bindings.get(ctype.name)
            if bound is None:
                return ctype
            return self.apply(bound)
        if isinstance(ctype, TyCon) and ctype.args:
            return TyCon(ctype.name, tuple(self.apply(arg) for arg in ctype.args))
        return ctype

    def domain(self) -> List[str]:
        return sorted(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Substitution):
            return NotImplemented
        return self._bindings == other._bindings

    def __hash__(self) -> int:
        return hash(tuple(sorted((key, value.sort_key()) for key, value in self._bindings.items())))

    def __repr__(self) -> str:
        inner = ", ".join(f"{key} := {self._bindings[key]}" for key in self.domain())
        return f"Substitution({{{inner}}})"

    def to_json(self) -> Dict[str, Any]:
        return {key: self._bindings[key].to_json() for key in self.domain()}

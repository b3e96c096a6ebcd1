from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .ctype import CType, TyCon, TyVar, con, ctype_from_json, rename_vars


@dataclass(frozen=True)
class DataCon:
    name: str
    fields: Tuple[CType, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        return {"name": self.name, "fields": [item.to_json() for item in self.fields]}


@dataclass(frozen=True)
class DataDecl:
    name: str
    params: Tuple[str, ...] = ()
    constructors: Tuple[DataCon, ...] = ()

    def instantiate(self, ctype: CType) -> Optional[List[Tuple[str, List[CType]]]]:
        """Constructors with field types specialised to ``ctype``."""
        if not isinstance(ctype, TyCon) or ctype.name != self.name:
            return None
        if len(ctype.args) != len(self.params):
            return None
        mapping = dict(zip(self.params, ctype.args))
        return [
            (datacon.name, [rename_vars(item, mapping) for item in datacon.fields])
            for datacon in self.constructors
        ]

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "params": list(self.params),
            "constructors": [datacon.to_json() for datacon in self.constructors],
        }


@dataclass(frozen=True)
class Context:
    defining_funcs: Tuple[Tuple[str, CType], ...] = ()
    module_funcs: Tuple[Tuple[str, CType], ...] = ()
    data_decls: Mapping[str, DataDecl] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "defining_funcs", tuple(self.defining_funcs))
        object.__setattr__(self, "module_funcs", tuple(self.module_funcs))
        object.__setattr__(self, "data_decls", dict(self.data_decls))

    def __hash__(self) -> int:
        return hash((self.defining_funcs, self.module_funcs, tuple(sorted(self.data_decls))))

    def lookup_decl(self, ctype: CType) -> Optional[DataDecl]:
        if isinstance(ctype, TyCon):
            return self.data_decls.get(ctype.name)
        return None

    def defining_names(self) -> List[str]:
        return [name for name, _ in self.defining_funcs]


def empty_context() -> Context:
    return Context()


def decl_from_json(data: Mapping[str, Any]) -> DataDecl:
    return DataDecl(
        name=str(data["name"]),
        params=tuple(str(param) for param in data.get("params", [])),
        constructors=tuple(
            DataCon(
                name=str(item["name"]),
                fields=tuple(ctype_from_json(field_type) for field_type in item.get("fields", [])),
            )
            for item in data.get("constructors", [])
        ),
    )


def standard_data_decls() -> Dict[str, DataDecl]:
    a = TyVar("a")
    b = TyVar("b")
    return {
        "Bool": DataDecl("Bool", (), (DataCon("False"), DataCon("True"))),
        "Unit": DataDecl("Unit", (), (DataCon("Unit"),)),
        "List": DataDecl(
            "List", ("a",), (DataCon("Nil"), DataCon("Cons", (a, con("List", a))))
        ),
        "Maybe": DataDecl("Maybe", ("a",), (DataCon("Nothing"), DataCon("Just", (a,)))),
        "Pair": DataDecl("Pair", ("a", "b"), (DataCon("Pair", (a, b)),)),
        "Either": DataDecl(
            "Either", ("a", "b"), (DataCon("Left", (a,)), DataCon("Right", (b,)))
        ),
    }


def make_context(
    defining_funcs: Sequence[Tuple[str, CType]] = (),
    module_funcs: Sequence[Tuple[str, CType]] = (),
    data_decls: Optional[Mapping[str, DataDecl]] = None,
) -> Context:
    return Context(
        defining_funcs=tuple(defining_funcs),
        module_funcs=tuple(module_funcs),
        data_decls=dict(standard_data_decls() if data_decls is None else data_decls),
    )

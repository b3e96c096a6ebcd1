from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import orjson
from pydantic import BaseModel, Field, model_validator

from .core.context import Context, decl_from_json, make_context
from .core.ctype import CType, ctype_from_json
from .core.judgment import Judgment, first_judgment
from .utils import CANONICALIZATION, HASH_ALGORITHM, read_json, stable_hash


class HashableModel(BaseModel):
    schema_version: str = "v1"
    canonicalization: str = CANONICALIZATION
    hash_algorithm: str = HASH_ALGORITHM
    hash_inputs: List[str] = Field(default_factory=list)

    def hash_payload(self) -> Dict[str, Any]:
        data = self.model_dump()
        keys = self.hash_inputs or [key for key in data.keys() if key != "hash_inputs"]
        return {key: data[key] for key in keys if key in data}

    def stable_hash(self) -> str:
        return stable_hash(self.hash_payload())


class FuncSig(BaseModel):
    name: str
    type: Any
    params: List[str] = Field(default_factory=list)

    def ctype(self) -> CType:
        return ctype_from_json(self.type)


class HoleRequest(HashableModel):
    """A hole to fill: local bindings, goal, and the surrounding module."""

    hypothesis: Dict[str, Any] = Field(default_factory=dict)
    goal: Any
    ambient: Dict[str, Any] = Field(default_factory=dict)
    defining: List[FuncSig] = Field(default_factory=list)
    module_funcs: List[FuncSig] = Field(default_factory=list)
    data_decls: Optional[List[Dict[str, Any]]] = None
    tactic: str = "auto"

    @model_validator(mode="after")
    def _check_request(self) -> "HoleRequest":
        for sig in self.defining:
            missing = [param for param in sig.params if param not in self.hypothesis]
            if missing:
                raise ValueError(f"parameters of {sig.name} missing from hypothesis: {missing}")
        if not self.hash_inputs:
            self.hash_inputs = [
                "schema_version",
                "canonicalization",
                "hash_algorithm",
                "hypothesis",
                "goal",
                "ambient",
                "defining",
                "module_funcs",
                "data_decls",
                "tactic",
            ]
        return self

    def to_judgment(
        self, blacklist_destruct: bool = False, whitelist_split: bool = False
    ) -> Judgment[CType]:
        ambient = {name: ctype_from_json(value) for name, value in self.ambient.items()}
        for sig in self.module_funcs:
            ambient.setdefault(sig.name, sig.ctype())
        return first_judgment(
            local={name: ctype_from_json(value) for name, value in self.hypothesis.items()},
            goal=ctype_from_json(self.goal),
            ambient=ambient,
            defining=[(sig.name, sig.params) for sig in self.defining],
            blacklist_destruct=blacklist_destruct,
            whitelist_split=whitelist_split,
        )

    def to_context(self) -> Context:
        decls = None
        if self.data_decls is not None:
            decls = {}
            for item in self.data_decls:
                decl = decl_from_json(item)
                decls[decl.name] = decl
        return make_context(
            defining_funcs=[(sig.name, sig.ctype()) for sig in self.defining],
            module_funcs=[(sig.name, sig.ctype()) for sig in self.module_funcs],
            data_decls=decls,
        )


class SynthesisReport(HashableModel):
    request_hash: str
    settings_hash: str
    tactic: str
    status: Literal["SOLVED", "NO_SOLUTION"]
    extract: Optional[Dict[str, Any]] = None
    trace: Optional[Dict[str, Any]] = None
    trace_text: str = ""
    other_solutions: List[Dict[str, Any]] = Field(default_factory=list)
    errors: List[Dict[str, Any]] = Field(default_factory=list)
    holes: int = 0
    cutoff: bool = False
    explored: int = 0
    final_state: Dict[str, Any] = Field(default_factory=dict)
    policy_version: str = "v1"

    @model_validator(mode="after")
    def _set_hash_inputs(self) -> "SynthesisReport":
        if self.status == "SOLVED" and self.extract is None:
            raise ValueError("SOLVED requires extract")
        if not self.hash_inputs:
            self.hash_inputs = [
                "schema_version",
                "canonicalization",
                "hash_algorithm",
                "request_hash",
                "settings_hash",
                "tactic",
                "status",
                "extract",
                "trace",
                "other_solutions",
                "errors",
                "holes",
                "cutoff",
                "policy_version",
            ]
        return self


def load_request(path: Path) -> HoleRequest:
    data = read_json(path)
    return HoleRequest(**data)


def export_schemas(output_dir: str) -> None:
    output = Path(output_dir)
    output.mkdir(parents=True, exist_ok=True)
    for model in [HoleRequest, SynthesisReport]:
        schema = model.model_json_schema()
        path = output / f"{model.__name__}.schema.json"
        path.write_bytes(orjson.dumps(schema, option=orjson.OPT_SORT_KEYS))

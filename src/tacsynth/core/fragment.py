from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

from ..utils import canonical_dumps, stable_hash

Fragment = Dict[str, Any]

HOLE_NAME = "_"


def var(name: str) -> Fragment:
    return {"kind": "var", "name": name}


def app(func: Fragment, args: Sequence[Fragment]) -> Fragment:
    if not args:
        return func
    return {"kind": "app", "func": func, "args": list(args)}


def lam(params: Sequence[str], body: Fragment) -> Fragment:
    if not params:
        return body
    if body.get("kind") == "lam":
        return {"kind": "lam", "params": list(params) + list(body["params"]), "body": body["body"]}
    return {"kind": "lam", "params": list(params), "body": body}


def con(name: str, args: Sequence[Fragment]) -> Fragment:
    return {"kind": "con", "name": name, "args": list(args)}


def case(scrutinee: str, alts: Sequence[Tuple[str, Sequence[str], Fragment]]) -> Fragment:
    return {
        "kind": "case",
        "scrutinee": var(scrutinee),
        "alts": [
            {"con": con_name, "fields": list(fields), "body": body}
            for con_name, fields, body in alts
        ],
    }


def hole() -> Fragment:
    return {"kind": "hole", "name": HOLE_NAME}


def count_holes(fragment: Fragment) -> int:
    kind = fragment.get("kind")
    if kind == "hole":
        return 1
    if kind == "app":
        return count_holes(fragment["func"]) + sum(count_holes(arg) for arg in fragment["args"])
    if kind == "lam":
        return count_holes(fragment["body"])
    if kind == "con":
        return sum(count_holes(arg) for arg in fragment["args"])
    if kind == "case":
        return sum(count_holes(alt["body"]) for alt in fragment["alts"])
    return 0


def free_names(fragment: Fragment) -> List[str]:
    kind = fragment.get("kind")
    if kind == "var":
        return [fragment["name"]]
    if kind == "app":
        names = free_names(fragment["func"])
        for arg in fragment["args"]:
            names.extend(free_names(arg))
        return names
    if kind == "lam":
        bound = set(fragment["params"])
        return [name for name in free_names(fragment["body"]) if name not in bound]
    if kind == "con":
        names = []
        for arg in fragment["args"]:
            names.extend(free_names(arg))
        return names
    if kind == "case":
        names = free_names(fragment["scrutinee"])
        for alt in fragment["alts"]:
            bound = set(alt["fields"])
            names.extend(name for name in free_names(alt["body"]) if name not in bound)
        return names
    return []


def fragment_size(fragment: Fragment) -> int:
    return len(canonical_dumps(fragment))


def fragment_hash(fragment: Fragment) -> str:
    return stable_hash(fragment)

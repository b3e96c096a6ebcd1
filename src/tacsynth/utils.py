from __future__ import annotations

import time
from pathlib import Path
from typing import Any, List

import orjson
from blake3 import blake3

CANONICALIZATION = "orjson_sort_keys_utf8"
HASH_ALGORITHM = "blake3"


def canonical_dumps(data: Any) -> bytes:
    return orjson.dumps(to_jsonable(data), option=orjson.OPT_SORT_KEYS)


def stable_hash(data: Any) -> str:
    """blake3 over the canonical encoding; types, traces and judgments hash by value."""
    return blake3(canonical_dumps(data)).hexdigest()


def now_ts_ns() -> int:
    return time.time_ns()


def elapsed_ms(start_ns: int) -> float:
    return round((time.time_ns() - start_ns) / 1e6, 3)


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: Any) -> None:
    ensure_dir(path.parent)
    path.write_bytes(canonical_dumps(data))


def read_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


def write_jsonl_line(path: Path, data: Any) -> None:
    ensure_dir(path.parent)
    with path.open("ab") as handle:
        handle.write(canonical_dumps(data) + b"\n")


def read_jsonl(path: Path) -> List[Any]:
    if not path.exists():
        return []
    return [orjson.loads(line) for line in path.read_bytes().splitlines() if line.strip()]


def to_jsonable(value: Any) -> Any:
    """Lower search values to plain JSON: anything with ``to_json`` dumps itself,
    sets become sorted lists."""
    to_json = getattr(value, "to_json", None)
    if callable(to_json):
        return to_jsonable(to_json())
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return round(value, 6)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_jsonable(item) for item in value)
    return str(value)

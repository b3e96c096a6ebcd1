from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..utils import now_ts_ns, read_jsonl, stable_hash, to_jsonable, write_jsonl_line

SEARCH_START = "SEARCH_START"
SEARCH_CUTOFF = "SEARCH_CUTOFF"
SEARCH_END = "SEARCH_END"


def _event_hash(entry: Dict[str, Any]) -> str:
    return stable_hash(
        {
            "ts": entry.get("ts"),
            "type": entry.get("type"),
            "search_id": entry.get("search_id"),
            "payload": entry.get("payload"),
            "prev_hash": entry.get("prev_hash"),
        }
    )


class Ledger:
    """Append-only search event log; every line is chained to the previous one by hash."""

    def __init__(self, path: Path, search_id: str = "") -> None:
        self.path = path
        self.search_id = search_id
        self._head: Dict[str, str] = {"hash": ""}
        if path.exists():
            entries = read_jsonl(path)
            if entries:
                self._head["hash"] = entries[-1].get("hash", "")

    def for_search(self, search_id: str) -> "Ledger":
        """A view stamping events with ``search_id``; it extends the same chain."""
        view = Ledger(self.path, search_id=search_id)
        view._head = self._head
        return view

    def append(self, event_type: str, payload: Dict[str, Any]) -> str:
        event: Dict[str, Any] = {
            "ts": now_ts_ns(),
            "type": event_type,
            "search_id": self.search_id,
            "payload": to_jsonable(payload),
            "prev_hash": self._head["hash"],
        }
        event["hash"] = _event_hash(event)
        write_jsonl_line(self.path, event)
        self._head["hash"] = event["hash"]
        return event["hash"]

    def events(self, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        entries = read_jsonl(self.path)
        if event_type is None:
            return entries
        return [entry for entry in entries if entry.get("type") == event_type]

    @staticmethod
    def verify_chain(path: Path) -> Tuple[bool, str]:
        prev_hash = ""
        for idx, entry in enumerate(read_jsonl(path)):
            if entry.get("prev_hash") != prev_hash:
                return False, f"prev_hash mismatch at {idx}"
            if _event_hash(entry) != entry.get("hash", ""):
                return False, f"hash mismatch at {idx}"
            prev_hash = entry["hash"]
        return True, "ok"

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple


@dataclass(frozen=True)
class Rose:
    """Explanation tree of tactic labels.

    Roses form a monoid: ``Rose.empty()`` is the identity and ``a + b`` joins
    the labels and concatenates the children.
    """

    label: str = ""
    children: Tuple["Rose", ...] = ()

    @classmethod
    def empty(cls) -> "Rose":
        return cls()

    @classmethod
    def leaf(cls, label: str) -> "Rose":
        return cls(label=label)

    @classmethod
    def concat(cls, traces: Iterable["Rose"]) -> "Rose":
        result = cls.empty()
        for trace in traces:
            result = result + trace
        return result

    def __add__(self, other: "Rose") -> "Rose":
        if not isinstance(other, Rose):
            return NotImplemented
        return Rose(self.label + other.label, self.children + other.children)

    def size(self) -> int:
        return 1 + sum(child.size() for child in self.children)

    def labels(self) -> List[str]:
        found = [self.label] if self.label else []
        for child in self.children:
            found.extend(child.labels())
        return found

    def _draw(self) -> List[str]:
        lines = [self.label]
        for idx, child in enumerate(self.children):
            last = idx == len(self.children) - 1
            first_prefix, rest_prefix = ("`- ", "   ") if last else ("+- ", "|  ")
            lines.append("|")
            for line_no, line in enumerate(child._draw()):
                lines.append((first_prefix if line_no == 0 else rest_prefix) + line)
        return lines

    def render(self) -> str:
        # every other line of the drawing is a "|" connector
        return "\n".join(self._draw()[::2]) + "\n"

    def to_json(self) -> Dict[str, Any]:
        return {"label": self.label, "children": [child.to_json() for child in self.children]}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Rose":
        return cls(
            label=str(data.get("label", "")),
            children=tuple(cls.from_json(child) for child in data.get("children", [])),
        )


Trace = Rose


def rose(label: str, children: Iterable[Rose]) -> Rose:
    kids = tuple(children)
    if len(kids) == 1 and kids[0].label == "":
        return Rose(label, kids[0].children)
    return Rose(label, kids)

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Generic,
    Iterable,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from .ctype import CType
from .errors import JudgmentInvariantError

A = TypeVar("A")
B = TypeVar("B")

PositionMap = Tuple[Tuple[str, ...], ...]

SAME = "same"
SMALLER = "smaller"


def _value_key(value: Any) -> Any:
    sort_key = getattr(value, "sort_key", None)
    if callable(sort_key):
        return sort_key()
    return value


@dataclass(frozen=True, eq=False)
class Judgment(Generic[A]):
    """The bindings and goal of one hole.

    ``position_maps`` is keyed by a function being defined: each entry lists,
    per binding site, the name bound at every argument position. ``ancestry``
    maps a name to the names it was destructed out of.
    """

    goal: A
    hypothesis: Mapping[str, A] = field(default_factory=dict)
    ambient_hypothesis: Mapping[str, A] = field(default_factory=dict)
    destructed: FrozenSet[str] = frozenset()
    pattern_vals: FrozenSet[str] = frozenset()
    blacklist_destruct: bool = False
    whitelist_split: bool = False
    position_maps: Mapping[str, PositionMap] = field(default_factory=dict)
    ancestry: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    is_top_hole: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "hypothesis", MappingProxyType(dict(self.hypothesis)))
        object.__setattr__(
            self, "ambient_hypothesis", MappingProxyType(dict(self.ambient_hypothesis))
        )
        object.__setattr__(self, "destructed", frozenset(self.destructed))
        object.__setattr__(self, "pattern_vals", frozenset(self.pattern_vals))
        object.__setattr__(
            self,
            "position_maps",
            MappingProxyType(
                {
                    name: tuple(tuple(site) for site in sites)
                    for name, sites in self.position_maps.items()
                }
            ),
        )
        object.__setattr__(
            self,
            "ancestry",
            MappingProxyType(
                {name: frozenset(parents) for name, parents in self.ancestry.items()}
            ),
        )
        self.check_invariants()

    def check_invariants(self) -> None:
        names = self.hypothesis.keys()
        stray_ambient = sorted(set(self.ambient_hypothesis) - set(names))
        if stray_ambient:
            raise JudgmentInvariantError("AMBIENT_NOT_IN_HYPOTHESIS", ",".join(stray_ambient))
        stray_destructed = sorted(self.destructed - set(names))
        if stray_destructed:
            raise JudgmentInvariantError("DESTRUCTED_NOT_IN_HYPOTHESIS", ",".join(stray_destructed))
        stray_patterns = sorted(self.pattern_vals - set(names))
        if stray_patterns:
            raise JudgmentInvariantError("PATTERN_VAL_NOT_IN_HYPOTHESIS", ",".join(stray_patterns))

    def sort_key(self) -> Tuple[Any, ...]:
        return (
            _value_key(self.goal),
            tuple(sorted((name, _value_key(value)) for name, value in self.hypothesis.items())),
            tuple(
                sorted((name, _value_key(value)) for name, value in self.ambient_hypothesis.items())
            ),
            tuple(sorted(self.destructed)),
            tuple(sorted(self.pattern_vals)),
            self.blacklist_destruct,
            self.whitelist_split,
            tuple(sorted(self.position_maps.items())),
            tuple(sorted((name, tuple(sorted(parents))) for name, parents in self.ancestry.items())),
            self.is_top_hole,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Judgment):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def __lt__(self, other: "Judgment[Any]") -> bool:
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "Judgment[Any]") -> bool:
        return self.sort_key() <= other.sort_key()

    def fmap(self, func: Callable[[A], B]) -> "Judgment[B]":
        return Judgment(
            goal=func(self.goal),
            hypothesis={name: func(value) for name, value in self.hypothesis.items()},
            ambient_hypothesis={
                name: func(value) for name, value in self.ambient_hypothesis.items()
            },
            destructed=self.destructed,
            pattern_vals=self.pattern_vals,
            blacklist_destruct=self.blacklist_destruct,
            whitelist_split=self.whitelist_split,
            position_maps=self.position_maps,
            ancestry=self.ancestry,
            is_top_hole=self.is_top_hole,
        )

    def local_hypothesis(self) -> Dict[str, A]:
        return {
            name: value
            for name, value in self.hypothesis.items()
            if name not in self.ambient_hypothesis
        }

    def is_local(self, name: str) -> bool:
        return name in self.hypothesis and name not in self.ambient_hypothesis

    def with_goal(self, goal: A, is_top_hole: bool = False) -> "Judgment[A]":
        return replace(self, goal=goal, is_top_hole=is_top_hole)

    def with_hypothesis(self, hypothesis: Mapping[str, A]) -> "Judgment[A]":
        ambient = {
            name: value
            for name, value in self.ambient_hypothesis.items()
            if name in hypothesis and hypothesis[name] == value
        }
        return replace(self, hypothesis=dict(hypothesis), ambient_hypothesis=ambient)

    def introduce_local(self, bindings: Mapping[str, A]) -> "Judgment[A]":
        hypothesis = dict(self.hypothesis)
        hypothesis.update(bindings)
        ambient = {
            name: value
            for name, value in self.ambient_hypothesis.items()
            if name not in bindings
        }
        return replace(self, hypothesis=hypothesis, ambient_hypothesis=ambient)

    def introduce_pattern_vals(
        self, scrutinee: str, bindings: Mapping[str, A]
    ) -> "Judgment[A]":
        inherited = frozenset({scrutinee}) | self.ancestry.get(scrutinee, frozenset())
        ancestry = dict(self.ancestry)
        for name in bindings:
            ancestry[name] = inherited
        introduced = self.introduce_local(bindings)
        return replace(
            introduced,
            pattern_vals=self.pattern_vals | frozenset(bindings),
            ancestry=ancestry,
        )

    def bind_params(self, names: Sequence[str]) -> "Judgment[A]":
        """Append freshly introduced parameters to every binding site."""
        position_maps = {
            defn: tuple(site + tuple(names) for site in sites) or (tuple(names),)
            for defn, sites in self.position_maps.items()
        }
        return replace(self, position_maps=position_maps)

    def mark_destructed(self, name: str) -> "Judgment[A]":
        return replace(self, destructed=self.destructed | {name})

    def filter_hypothesis(self, keep: Callable[[str, A], bool]) -> "Judgment[A]":
        hypothesis = {name: value for name, value in self.hypothesis.items() if keep(name, value)}
        return replace(
            self,
            hypothesis=hypothesis,
            ambient_hypothesis={
                name: value
                for name, value in self.ambient_hypothesis.items()
                if name in hypothesis
            },
            destructed=frozenset(name for name in self.destructed if name in hypothesis),
            pattern_vals=frozenset(name for name in self.pattern_vals if name in hypothesis),
        )

    def disallow_destruct(self) -> "Judgment[A]":
        return replace(self, blacklist_destruct=True)

    def allow_split(self, whitelisted: bool = True) -> "Judgment[A]":
        return replace(self, whitelist_split=whitelisted)

    def positional_relation(self, defn: str, position: int, name: str) -> Optional[str]:
        """How ``name`` relates to argument ``position`` of ``defn``.

        ``SAME`` for the parameter itself, ``SMALLER`` for something
        destructed out of it, ``None`` when unrelated.
        """
        sites = self.position_maps.get(defn, ())
        params = {site[position] for site in sites if position < len(site)}
        if not params:
            return None
        if name in params:
            return SAME
        if self.ancestry.get(name, frozenset()) & params:
            return SMALLER
        return None

    def to_json(self) -> Dict[str, Any]:
        def dump(value: Any) -> Any:
            to_json = getattr(value, "to_json", None)
            return to_json() if callable(to_json) else value

        return {
            "goal": dump(self.goal),
            "hypothesis": {name: dump(value) for name, value in self.hypothesis.items()},
            "ambient_hypothesis": {
                name: dump(value) for name, value in self.ambient_hypothesis.items()
            },
            "destructed": sorted(self.destructed),
            "pattern_vals": sorted(self.pattern_vals),
            "blacklist_destruct": self.blacklist_destruct,
            "whitelist_split": self.whitelist_split,
            "position_maps": {
                name: [list(site) for site in sites] for name, sites in self.position_maps.items()
            },
            "ancestry": {name: sorted(parents) for name, parents in self.ancestry.items()},
            "is_top_hole": self.is_top_hole,
        }


def first_judgment(
    local: Mapping[str, CType],
    goal: CType,
    ambient: Optional[Mapping[str, CType]] = None,
    defining: Iterable[Tuple[str, Sequence[str]]] = (),
    blacklist_destruct: bool = False,
    whitelist_split: bool = False,
) -> Judgment[CType]:
    """Build the top-level hole.

    ``defining`` pairs each function being defined with its parameter names,
    which seeds ``position_maps`` for the recursion guard.
    """
    hypothesis: Dict[str, CType] = dict(local)
    ambient_hypothesis: Dict[str, CType] = {}
    for name, ctype in (ambient or {}).items():
        if name in hypothesis:
            continue
        hypothesis[name] = ctype
        ambient_hypothesis[name] = ctype
    return Judgment(
        goal=goal,
        hypothesis=hypothesis,
        ambient_hypothesis=ambient_hypothesis,
        blacklist_destruct=blacklist_destruct,
        whitelist_split=whitelist_split,
        position_maps={name: (tuple(params),) for name, params in defining},
        is_top_hole=True,
    )

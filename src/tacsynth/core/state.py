from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, FrozenSet, Tuple

from .ctype import Substitution, TyVar

NameSet = FrozenSet[str]


@dataclass(frozen=True, order=True)
class Unique:
    seed: int
    index: int

    def __str__(self) -> str:
        return f"{self.index}"


@dataclass(frozen=True)
class UniqueSupply:
    """Explicitly seeded id source; taking an id returns the advanced supply."""

    seed: int = 0
    counter: int = 0

    def take(self) -> Tuple[Unique, "UniqueSupply"]:
        return Unique(self.seed, self.counter), UniqueSupply(self.seed, self.counter + 1)

    def __repr__(self) -> str:
        return f"<uniqsupply seed={self.seed} next={self.counter}>"


@dataclass(frozen=True)
class TacticState:
    skolems: Tuple[TyVar, ...] = ()
    unifier: Substitution = field(default_factory=Substitution.empty)
    used_vals: NameSet = frozenset()
    intro_vals: NameSet = frozenset()
    unused_top_vals: NameSet = frozenset()
    recursion_stack: Tuple[bool, ...] = ()
    recursion_penalty: int = 0
    unique_gen: UniqueSupply = field(default_factory=UniqueSupply)

    def to_json(self) -> Dict[str, Any]:
        return {
            "skolems": [skolem.name for skolem in self.skolems],
            "unifier": self.unifier.to_json(),
            "used_vals": sorted(self.used_vals),
            "intro_vals": sorted(self.intro_vals),
            "unused_top_vals": sorted(self.unused_top_vals),
            "recursion_stack": list(self.recursion_stack),
            "recursion_penalty": self.recursion_penalty,
            "unique_counter": self.unique_gen.counter,
        }


def initial(seed: int = 0) -> TacticState:
    return TacticState(unique_gen=UniqueSupply(seed=seed))


def fresh_unique(state: TacticState) -> Tuple[Unique, TacticState]:
    unique, supply = state.unique_gen.take()
    return unique, replace(state, unique_gen=supply)


def with_recursion_stack(
    func: Callable[[Tuple[bool, ...]], Tuple[bool, ...]], state: TacticState
) -> TacticState:
    return replace(state, recursion_stack=tuple(func(state.recursion_stack)))


def with_used_vals(func: Callable[[NameSet], NameSet], state: TacticState) -> TacticState:
    return replace(state, used_vals=frozenset(func(state.used_vals)))


def with_introduced_vals(func: Callable[[NameSet], NameSet], state: TacticState) -> TacticState:
    return replace(state, intro_vals=frozenset(func(state.intro_vals)))


def with_unused_top_vals(func: Callable[[NameSet], NameSet], state: TacticState) -> TacticState:
    return replace(state, unused_top_vals=frozenset(func(state.unused_top_vals)))


def with_unifier(unifier: Substitution, state: TacticState) -> TacticState:
    return replace(state, unifier=unifier)


def with_skolems(skolems: Tuple[TyVar, ...], state: TacticState) -> TacticState:
    return replace(state, skolems=tuple(skolems))


def add_recursion_penalty(amount: int, state: TacticState) -> TacticState:
    return replace(state, recursion_penalty=state.recursion_penalty + amount)


def push_recursion(state: TacticState) -> TacticState:
    return with_recursion_stack(lambda stack: (False,) + stack, state)


def mark_structural_recursion(state: TacticState) -> TacticState:
    """Record that the innermost open recursive call used a smaller value."""
    if not state.recursion_stack:
        return state
    return with_recursion_stack(lambda stack: (True,) + stack[1:], state)


def pop_recursion(state: TacticState) -> Tuple[bool, TacticState]:
    if not state.recursion_stack:
        return False, state
    top = state.recursion_stack[0]
    return top, with_recursion_stack(lambda stack: stack[1:], state)


def use_name(name: str, is_local: bool, state: TacticState) -> TacticState:
    """Bookkeeping for consuming a value; ambient names earn nothing."""
    state = with_unused_top_vals(lambda vals: vals - {name}, state)
    if not is_local:
        return state
    return with_used_vals(lambda vals: vals | {name}, state)

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from ..config import Settings
from ..core.context import Context
from ..core.errors import (
    NoApplicableTactic,
    NoProgress,
    TacticDefinitionError,
    TacticError,
    UnsolvedSubgoals,
)
from ..core.fragment import Fragment, hole
from ..core.judgment import Judgment
from ..core.state import TacticState
from ..core.trace import Rose, rose
from .budget import Budget

T = TypeVar("T")

Extract = Tuple[Rose, Fragment]
Builder = Callable[[Sequence[Extract]], Extract]


@dataclass(frozen=True)
class SearchEnv:
    context: Context
    settings: Settings
    budget: Budget


@dataclass(frozen=True)
class Progress:
    """One way forward: the new state, the open sub-goals, and how to
    assemble their extracts into an extract for the goal that was refined."""

    state: TacticState
    goals: Tuple[Judgment[Any], ...]
    build: Builder


@dataclass(frozen=True)
class Failure:
    error: TacticError


Outcome = Union[Progress, Failure]
RunFn = Callable[[Judgment[Any], TacticState, SearchEnv], Iterator[Outcome]]


def hole_extract() -> Extract:
    return Rose.empty(), hole()


def _pass_through(extracts: Sequence[Extract]) -> Extract:
    return extracts[0]


def close(state: TacticState, trace: Rose, fragment: Fragment) -> Progress:
    return Progress(state, (), lambda _extracts: (trace, fragment))


class Tactic:
    """A search step over one judgment.

    ``run`` lazily yields alternatives in a fixed order. Alternatives never
    share state: each ``Progress`` carries its own ``TacticState`` value.
    """

    def __init__(self, run: RunFn, name: str = "tactic") -> None:
        self._run = run
        self.name = name

    def run(self, judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        return self._run(judgment, state, env)

    def named(self, name: str) -> "Tactic":
        return Tactic(self._run, name)

    def __rshift__(self, other: "Tactic") -> "Tactic":
        return then(self, other)

    def __or__(self, other: "Tactic") -> "Tactic":
        return alt(self, other)

    def __repr__(self) -> str:
        return f"Tactic({self.name})"


def rule(fn: Callable[[Judgment[Any], TacticState, SearchEnv], Iterable[Outcome]]) -> Tactic:
    """Lift a generator of outcomes into a tactic; each application costs one node."""

    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        env.budget.tick()
        for outcome in fn(judgment, state, env):
            if not isinstance(outcome, (Progress, Failure)):
                raise TacticDefinitionError("RULE_YIELDED_NON_OUTCOME", repr(outcome))
            yield outcome

    return Tactic(run, name=getattr(fn, "__name__", "rule").lstrip("_"))


def _compose(parent: Builder, children: Sequence[Progress]) -> Builder:
    def build(extracts: Sequence[Extract]) -> Extract:
        assembled: List[Extract] = []
        offset = 0
        for child in children:
            width = len(child.goals)
            assembled.append(child.build(extracts[offset : offset + width]))
            offset += width
        return parent(assembled)

    return build


def _thread(
    tactics: Sequence[Tactic],
    goals: Sequence[Judgment[Any]],
    state: TacticState,
    env: SearchEnv,
) -> Iterator[Union[Failure, Tuple[TacticState, Tuple[Progress, ...]]]]:
    if not goals:
        yield state, ()
        return
    for outcome in tactics[0].run(goals[0], state, env):
        if isinstance(outcome, Failure):
            yield outcome
            continue
        for rest in _thread(tactics[1:], goals[1:], outcome.state, env):
            if isinstance(rest, Failure):
                yield rest
                continue
            rest_state, rest_children = rest
            yield rest_state, (outcome,) + rest_children


def _graft(parent: Progress, tactics: Sequence[Tactic], env: SearchEnv) -> Iterator[Outcome]:
    for result in _thread(tactics, parent.goals, parent.state, env):
        if isinstance(result, Failure):
            yield result
            continue
        state, children = result
        goals = tuple(goal for child in children for goal in child.goals)
        yield Progress(state, goals, _compose(parent.build, children))


def then(first: Tactic, second: Tactic) -> Tactic:
    """Run ``second`` on every sub-goal ``first`` leaves, threading state left to right."""

    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        for outcome in first.run(judgment, state, env):
            if isinstance(outcome, Failure):
                yield outcome
                continue
            yield from _graft(outcome, [second] * len(outcome.goals), env)

    return Tactic(run, name=f"{first.name} >> {second.name}")


def then_each(first: Tactic, *rest: Tactic) -> Tactic:
    """Run the i-th tactic of ``rest`` on the i-th sub-goal of ``first``."""

    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        for outcome in first.run(judgment, state, env):
            if isinstance(outcome, Failure):
                yield outcome
                continue
            tactics = list(rest[: len(outcome.goals)])
            tactics.extend([skip] * (len(outcome.goals) - len(tactics)))
            yield from _graft(outcome, tactics, env)

    names = ", ".join(tactic.name for tactic in rest)
    return Tactic(run, name=f"{first.name} <@> [{names}]")


def _skip(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
    yield Progress(state, (judgment,), _pass_through)


skip = Tactic(_skip, name="skip")


def fail(error: TacticError) -> Tactic:
    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        yield Failure(error)

    return Tactic(run, name=f"fail {error.failure_atom}")


def alt(first: Tactic, second: Tactic) -> Tactic:
    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        yield from first.run(judgment, state, env)
        yield from second.run(judgment, state, env)

    return Tactic(run, name=f"{first.name} | {second.name}")


def choice(*tactics: Tactic) -> Tactic:
    if not tactics:
        return fail(NoApplicableTactic())

    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        for tactic in tactics:
            yield from tactic.run(judgment, state, env)

    return Tactic(run, name="choice(" + ", ".join(tactic.name for tactic in tactics) + ")")


def attempt(tactic: Tactic) -> Tactic:
    return alt(tactic, skip).named(f"try {tactic.name}")


def commit(first: Tactic, second: Tactic) -> Tactic:
    """Use ``first`` if it has any success, otherwise fall back to ``second``."""

    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        succeeded = False
        for outcome in first.run(judgment, state, env):
            if isinstance(outcome, Progress):
                succeeded = True
                yield outcome
        if not succeeded:
            yield from second.run(judgment, state, env)

    return Tactic(run, name=f"commit({first.name}, {second.name})")


def first_of(*tactics: Tactic) -> Tactic:
    if not tactics:
        return fail(NoApplicableTactic())
    result = tactics[-1]
    for tactic in reversed(tactics[:-1]):
        result = commit(tactic, result)
    return result


def many_(tactic: Tactic) -> Tactic:
    """Apply ``tactic`` zero or more times; every prefix is an alternative."""

    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        yield from then(tactic, many_(tactic)).run(judgment, state, env)
        yield Progress(state, (judgment,), _pass_through)

    return Tactic(run, name=f"many {tactic.name}")


def _retrace(label: str, build: Builder) -> Builder:
    def traced(extracts: Sequence[Extract]) -> Extract:
        trace, fragment = build(extracts)
        return rose(label, [trace]), fragment

    return traced


def tracing(label: str, tactic: Tactic) -> Tactic:
    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        for outcome in tactic.run(judgment, state, env):
            if isinstance(outcome, Failure):
                yield outcome
                continue
            yield Progress(outcome.state, outcome.goals, _retrace(label, outcome.build))

    return Tactic(run, name=tactic.name)


def local(func: Callable[[Judgment[Any]], Judgment[Any]], tactic: Tactic) -> Tactic:
    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        yield from tactic.run(func(judgment), state, env)

    return Tactic(run, name=f"local {tactic.name}")


def on_state(func: Callable[[TacticState], TacticState], name: str = "modify") -> Tactic:
    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        yield Progress(func(state), (judgment,), _pass_through)

    return Tactic(run, name=name)


def attempt_on(
    candidates: Callable[[Judgment[Any], TacticState, SearchEnv], Sequence[T]],
    make: Callable[[T], Tactic],
) -> Tactic:
    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        options = list(candidates(judgment, state, env))
        if not options:
            yield Failure(NoApplicableTactic())
            return
        for option in options:
            yield from make(option).run(judgment, state, env)

    return Tactic(run, name="attempt_on")


def solve(tactic: Tactic) -> Tactic:
    """Keep only alternatives that discharge the goal completely."""

    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        for outcome in tactic.run(judgment, state, env):
            if isinstance(outcome, Progress) and outcome.goals:
                yield Failure(UnsolvedSubgoals(outcome.goals))
                continue
            yield outcome

    return Tactic(run, name=f"solve {tactic.name}")


def require_progress(tactic: Tactic) -> Tactic:
    """Reject alternatives that hand back the judgment they started from."""

    def run(judgment: Judgment[Any], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        for outcome in tactic.run(judgment, state, env):
            if isinstance(outcome, Progress) and judgment in outcome.goals:
                yield Failure(NoProgress())
                continue
            yield outcome

    return Tactic(run, name=f"progress {tactic.name}")


def dedupe_goals(goals: Iterable[Judgment[Any]]) -> List[Judgment[Any]]:
    seen: List[Judgment[Any]] = []
    for goal in goals:
        if goal not in seen:
            seen.append(goal)
    return sorted(seen)


def discharge(outcome: Progress, filler: Optional[Callable[[], Extract]] = None) -> Extract:
    """Build the extract of an outcome, filling every open goal with a hole."""
    make = filler or hole_extract
    return outcome.build([make() for _ in outcome.goals])

from __future__ import annotations

from typing import Iterator, Optional, Sequence

from ..core.ctype import CType, split_fun
from ..core.errors import (
    GoalMismatch,
    NoProgress,
    RecursionOnWrongParam,
    UndefinedHypothesis,
    UnificationError,
)
from ..core.fragment import var
from ..core.judgment import SMALLER, Judgment
from ..core.state import (
    TacticState,
    add_recursion_penalty,
    mark_structural_recursion,
    pop_recursion,
    push_recursion,
    use_name,
    with_unifier,
)
from ..core.trace import Rose
from ..core.unify import unify
from ..engine.machinery import (
    Failure,
    Outcome,
    Progress,
    SearchEnv,
    Tactic,
    attempt_on,
    close,
    fail,
    local,
    rule,
    then_each,
)
from .core import apply_function, current_goal
from .naming import instantiate


def mark_recursion(tactic: Tactic) -> Tactic:
    """Guard one recursive call.

    Pushes an open entry and charges the recursion penalty. Once ``tactic``
    has chosen every argument, the entry must have been flipped by a
    structurally smaller argument; otherwise the call would loop.
    """

    def run(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        pushed = add_recursion_penalty(
            env.settings.recursion_penalty_weight, push_recursion(state)
        )
        for outcome in tactic.run(judgment, pushed, env):
            if isinstance(outcome, Failure):
                yield outcome
                continue
            productive, popped = pop_recursion(outcome.state)
            if not productive:
                yield Failure(NoProgress())
                continue
            yield Progress(popped, outcome.goals, outcome.build)

    return Tactic(run, name=f"mark_recursion {tactic.name}")


def positional_assumption(
    defn: str, position: int, arity: int, only: Optional[str] = None
) -> Tactic:
    """Fill argument ``position`` of a recursive call to ``defn``.

    Only names positionally related to the parameter are allowed. A smaller
    one marks the innermost open call as productive; choosing the last
    argument while the call is still unproductive is pruned.
    """

    @rule
    def _positional(
        judgment: Judgment[CType], state: TacticState, env: SearchEnv
    ) -> Iterator[Outcome]:
        goal = current_goal(judgment, state)
        if only is not None and only not in judgment.hypothesis:
            yield Failure(UndefinedHypothesis(only))
            return
        matched = False
        for name, ctype in judgment.hypothesis.items():
            if name == defn or (only is not None and name != only):
                continue
            ctype, candidate = instantiate(ctype, state, generalized=not judgment.is_local(name))
            unified = unify(ctype, goal, candidate.unifier, candidate.skolems)
            if isinstance(unified, UnificationError):
                if only is not None:
                    yield Failure(unified)
                continue
            matched = True
            relation = judgment.positional_relation(defn, position, name)
            if relation is None:
                yield Failure(RecursionOnWrongParam(defn, position, name))
                continue
            candidate = use_name(name, judgment.is_local(name), with_unifier(unified, candidate))
            if relation == SMALLER:
                candidate = mark_structural_recursion(candidate)
            elif position == arity - 1 and not (
                candidate.recursion_stack and candidate.recursion_stack[0]
            ):
                yield Failure(RecursionOnWrongParam(defn, position, name))
                continue
            yield close(candidate, Rose.leaf(name), var(name))
        if not matched and only is None:
            yield Failure(GoalMismatch(f"recursion argument {position}", goal))

    return _positional.named(f"positional {defn}#{position}")


def _call_head(defn: str, ctype: CType) -> Tactic:
    @rule
    def _head(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        yield apply_function(defn, ctype, judgment, state, f"recursion {defn}", False)

    return _head.named(f"call {defn}")


def _lookup_defining(env: SearchEnv, defn: str) -> Optional[CType]:
    for name, ctype in env.context.defining_funcs:
        if name == defn:
            return ctype
    return None


def recursive_call(defn: str, args: Optional[Sequence[str]] = None) -> Tactic:
    """Call ``defn`` recursively, with explicit argument names or searching for them."""

    def run(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        ctype = _lookup_defining(env, defn)
        if ctype is None:
            yield from fail(UndefinedHypothesis(defn)).run(judgment, state, env)
            return
        arity = len(split_fun(ctype)[0])
        if args is not None and len(args) != arity:
            yield from fail(GoalMismatch(f"recursion {defn}", ctype)).run(judgment, state, env)
            return
        arg_tactics = [
            local(
                lambda jdg: jdg.disallow_destruct(),
                positional_assumption(
                    defn, position, arity, only=None if args is None else args[position]
                ),
            )
            for position in range(arity)
        ]
        call = mark_recursion(then_each(_call_head(defn, ctype), *arg_tactics))
        yield from call.run(judgment, state, env)

    return Tactic(run, name=f"recursive_call {defn}")


def _defining_names(
    judgment: Judgment[CType], state: TacticState, env: SearchEnv
) -> Sequence[str]:
    return env.context.defining_names()


recursion = attempt_on(_defining_names, recursive_call).named("recursion")

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Sequence, Tuple

from ..core.ctype import CType, TyCon, TyVar, is_function, split_fun
from ..core.errors import (
    AlreadyDestructed,
    GoalMismatch,
    IncorrectDataConstructor,
    NoApplicableTactic,
    TooPolymorphic,
    UndefinedHypothesis,
    UnhelpfulDestruct,
    UnhelpfulSplit,
    UnificationError,
)
from ..core.fragment import app, case, con, lam, var
from ..core.judgment import Judgment
from ..core.state import (
    TacticState,
    use_name,
    with_introduced_vals,
    with_unifier,
    with_unused_top_vals,
)
from ..core.trace import Rose, rose
from ..core.unify import unify
from ..engine.machinery import (
    Builder,
    Extract,
    Failure,
    Outcome,
    Progress,
    SearchEnv,
    Tactic,
    attempt_on,
    close,
    rule,
)
from .naming import fresh_name, instantiate, name_hint


def current_goal(judgment: Judgment[CType], state: TacticState) -> CType:
    return state.unifier.apply(judgment.goal)


@rule
def assumption(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
    goal = current_goal(judgment, state)
    defining = set(env.context.defining_names())
    matched = False
    for name, ctype in judgment.hypothesis.items():
        if name in defining:
            continue
        ctype, candidate = instantiate(ctype, state, generalized=not judgment.is_local(name))
        unified = unify(ctype, goal, candidate.unifier, candidate.skolems)
        if isinstance(unified, UnificationError):
            continue
        matched = True
        candidate = use_name(name, judgment.is_local(name), with_unifier(unified, candidate))
        yield close(candidate, Rose.leaf(f"assumption {name}"), var(name))
    if not matched:
        yield Failure(GoalMismatch("assumption", goal))


def _lambda_builder(names: Sequence[str], label: str = "") -> Builder:
    label = label or "intros " + " ".join(names)

    def build(extracts: Sequence[Extract]) -> Extract:
        trace, body = extracts[0]
        return rose(label, [trace]), lam(names, body)

    return build


def _bind_top_params(
    judgment: Judgment[CType], names: Sequence[str], state: TacticState
) -> Tuple[Judgment[CType], TacticState]:
    if not judgment.is_top_hole:
        return judgment, state
    state = with_unused_top_vals(lambda vals: vals | frozenset(names), state)
    return judgment.bind_params(names), state


@rule
def intros(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
    goal = current_goal(judgment, state)
    if not is_function(goal):
        yield Failure(GoalMismatch("intros", goal))
        return
    arg_types, result = split_fun(goal)
    taken = set(judgment.hypothesis)
    bindings: Dict[str, CType] = {}
    for arg_type in arg_types:
        name, state = fresh_name(name_hint(arg_type), taken, state)
        taken.add(name)
        bindings[name] = arg_type
    state = with_introduced_vals(lambda vals: vals | frozenset(bindings), state)
    subgoal, state = _bind_top_params(judgment.introduce_local(bindings), list(bindings), state)
    subgoal = subgoal.with_goal(result)
    yield Progress(state, (subgoal,), _lambda_builder(list(bindings)))


@rule
def intro(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
    goal = current_goal(judgment, state)
    if not is_function(goal):
        yield Failure(GoalMismatch("intro", goal))
        return
    assert isinstance(goal, TyCon)
    arg_type, result = goal.args
    name, state = fresh_name(name_hint(arg_type), set(judgment.hypothesis), state)
    state = with_introduced_vals(lambda vals: vals | {name}, state)
    subgoal, state = _bind_top_params(judgment.introduce_local({name: arg_type}), [name], state)
    # further intros still bind parameters of the function being defined
    subgoal = subgoal.with_goal(result, is_top_hole=judgment.is_top_hole)
    yield Progress(state, (subgoal,), _lambda_builder([name], label=f"intro {name}"))


def _app_builder(label: str, name: str) -> Builder:
    def build(extracts: Sequence[Extract]) -> Extract:
        traces = [trace for trace, _ in extracts]
        return rose(label, [Rose.concat(traces)]), app(var(name), [frag for _, frag in extracts])

    return build


def apply_function(
    name: str,
    ctype: CType,
    judgment: Judgment[CType],
    state: TacticState,
    label: str,
    is_local: bool,
) -> Outcome:
    """Refine the goal with ``name``, leaving one sub-goal per argument."""
    if is_local:
        ctype, state = instantiate(state.unifier.apply(ctype), state)
    else:
        ctype, state = instantiate(ctype, state, generalized=True)
    arg_types, result = split_fun(ctype)
    goal = current_goal(judgment, state)
    unified = unify(result, goal, state.unifier, state.skolems)
    if isinstance(unified, UnificationError):
        return Failure(unified)
    state = use_name(name, is_local, with_unifier(unified, state))
    goals = tuple(judgment.with_goal(unified.apply(arg_type)) for arg_type in arg_types)
    return Progress(state, goals, _app_builder(label, name))


def apply(name: str) -> Tactic:
    @rule
    def _apply(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        ctype = judgment.hypothesis.get(name)
        if ctype is None:
            yield Failure(UndefinedHypothesis(name))
            return
        yield apply_function(
            name, ctype, judgment, state, f"apply {name}", judgment.is_local(name)
        )

    return _apply.named(f"apply {name}")


def _function_names(
    judgment: Judgment[CType], state: TacticState, env: SearchEnv
) -> List[str]:
    defining = set(env.context.defining_names())
    return [
        name
        for name, ctype in judgment.hypothesis.items()
        if name not in defining and is_function(state.unifier.apply(ctype))
    ]


apply_any = attempt_on(_function_names, apply).named("apply_any")


def _split_builder(con_name: str) -> Builder:
    def build(extracts: Sequence[Extract]) -> Extract:
        traces = [trace for trace, _ in extracts]
        return rose(f"split {con_name}", traces), con(con_name, [frag for _, frag in extracts])

    return build


def _constructors(
    judgment: Judgment[CType], state: TacticState, env: SearchEnv, tactic: str
) -> Tuple[Any, List[Tuple[str, List[CType]]]]:
    goal = current_goal(judgment, state)
    if isinstance(goal, TyVar):
        return TooPolymorphic(), []
    decl = env.context.lookup_decl(goal)
    instances = decl.instantiate(goal) if decl is not None else None
    if instances is None:
        return GoalMismatch(tactic, goal), []
    return None, instances


def _split_with(
    judgment: Judgment[CType], state: TacticState, con_name: str, fields: List[CType]
) -> Outcome:
    goal = current_goal(judgment, state)
    if not judgment.whitelist_split and fields and all(item == goal for item in fields):
        return Failure(UnhelpfulSplit(con_name))
    goals = tuple(judgment.with_goal(item) for item in fields)
    return Progress(state, goals, _split_builder(con_name))


@rule
def split(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
    if not env.settings.split_enabled:
        yield Failure(NoApplicableTactic())
        return
    error, instances = _constructors(judgment, state, env, "split")
    if error is not None:
        yield Failure(error)
        return
    for con_name, fields in instances:
        yield _split_with(judgment, state, con_name, fields)


def split_con(con_name: str) -> Tactic:
    @rule
    def _split_con(
        judgment: Judgment[CType], state: TacticState, env: SearchEnv
    ) -> Iterator[Outcome]:
        if not env.settings.split_enabled:
            yield Failure(NoApplicableTactic())
            return
        error, instances = _constructors(judgment, state, env, f"split {con_name}")
        if isinstance(error, TooPolymorphic):
            yield Failure(error)
            return
        fields = dict(instances).get(con_name)
        if fields is None:
            yield Failure(IncorrectDataConstructor(con_name))
            return
        yield _split_with(judgment, state, con_name, fields)

    return _split_con.named(f"split {con_name}")


def _case_builder(scrutinee: str, branches: Sequence[Tuple[str, Sequence[str]]]) -> Builder:
    def build(extracts: Sequence[Extract]) -> Extract:
        traces = [trace for trace, _ in extracts]
        alts = [
            (con_name, fields, frag)
            for (con_name, fields), (_, frag) in zip(branches, extracts)
        ]
        return rose(f"destruct {scrutinee}", traces), case(scrutinee, alts)

    return build


def destruct(name: str) -> Tactic:
    @rule
    def _destruct(
        judgment: Judgment[CType], state: TacticState, env: SearchEnv
    ) -> Iterator[Outcome]:
        if not env.settings.destruct_enabled or judgment.blacklist_destruct:
            yield Failure(NoApplicableTactic())
            return
        ctype = judgment.hypothesis.get(name)
        if ctype is None:
            yield Failure(UndefinedHypothesis(name))
            return
        if name in judgment.destructed:
            yield Failure(AlreadyDestructed(name))
            return
        scrutinee_type = state.unifier.apply(ctype)
        if isinstance(scrutinee_type, TyVar):
            yield Failure(TooPolymorphic())
            return
        decl = env.context.lookup_decl(scrutinee_type)
        instances = decl.instantiate(scrutinee_type) if decl is not None else None
        if instances is None:
            yield Failure(GoalMismatch("destruct", scrutinee_type))
            return
        if name in judgment.pattern_vals:
            known = {state.unifier.apply(item) for item in judgment.hypothesis.values()}
            field_types = {item for _, fields in instances for item in fields}
            if field_types <= known:
                yield Failure(UnhelpfulDestruct(name))
                return

        state = use_name(name, judgment.is_local(name), state)
        destructed = judgment.mark_destructed(name)
        branches: List[Tuple[str, List[str]]] = []
        goals: List[Judgment[CType]] = []
        for con_name, fields in instances:
            taken = set(judgment.hypothesis)
            bindings: Dict[str, CType] = {}
            for field_type in fields:
                field_name, state = fresh_name(name_hint(field_type), taken, state)
                taken.add(field_name)
                bindings[field_name] = field_type
            branches.append((con_name, list(bindings)))
            goals.append(
                destructed.introduce_pattern_vals(name, bindings).with_goal(judgment.goal)
            )
        yield Progress(state, tuple(goals), _case_builder(name, branches))

    return _destruct.named(f"destruct {name}")


def _destructable(
    judgment: Judgment[CType], state: TacticState, env: SearchEnv
) -> List[str]:
    names = []
    for name, ctype in judgment.local_hypothesis().items():
        if name in judgment.destructed:
            continue
        if env.context.lookup_decl(state.unifier.apply(ctype)) is not None:
            names.append(name)
    return names


destruct_any = attempt_on(_destructable, destruct).named("destruct_any")

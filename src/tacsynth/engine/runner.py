from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..config import Settings
from ..core.context import Context
from ..core.ctype import CType, free_vars_ordered
from ..core.errors import TacticError
from ..core.fragment import Fragment, fragment_hash, fragment_size
from ..core.judgment import Judgment
from ..core.state import TacticState, UniqueSupply
from ..core.trace import Rose
from ..ledger.ledger import SEARCH_CUTOFF, SEARCH_END, SEARCH_START, Ledger
from ..utils import elapsed_ms, now_ts_ns, stable_hash
from .budget import Budget, BudgetExhausted
from .machinery import Failure, SearchEnv, Tactic, dedupe_goals, discharge


@dataclass(frozen=True)
class Solution:
    trace: Rose
    extract: Fragment
    state: TacticState
    open_goals: Tuple[Judgment[Any], ...]

    @property
    def holes(self) -> int:
        return len(self.open_goals)


Scorer = Callable[[Solution], Tuple[Any, ...]]


def default_score(solution: Solution) -> Tuple[int, ...]:
    """Higher is better."""
    state = solution.state
    return (
        -solution.holes,
        int(not (state.intro_vals - state.used_vals)),
        -len(state.unused_top_vals),
        -state.recursion_penalty,
        -len(state.intro_vals),
        len(state.used_vals),
        -fragment_size(solution.extract),
    )


@dataclass(frozen=True)
class RunTacticResults:
    trace: Rose
    extract: Fragment
    other_solutions: Tuple[Tuple[Rose, Fragment], ...]
    state: TacticState
    holes: int = 0
    open_goals: Tuple[Judgment[Any], ...] = ()
    cutoff: bool = False
    explored: int = 0

    def to_json(self) -> Dict[str, Any]:
        return {
            "status": "SOLVED",
            "trace": self.trace.to_json(),
            "extract": self.extract,
            "other_solutions": [
                {"trace": trace.to_json(), "extract": extract}
                for trace, extract in self.other_solutions
            ],
            "state": self.state.to_json(),
            "holes": self.holes,
            "cutoff": self.cutoff,
            "explored": self.explored,
        }


@dataclass(frozen=True)
class NoSolution:
    errors: Tuple[TacticError, ...] = ()
    cutoff: bool = False
    explored: int = 0

    def to_json(self) -> Dict[str, Any]:
        return {
            "status": "NO_SOLUTION",
            "errors": [error.to_record() for error in self.errors],
            "cutoff": self.cutoff,
            "explored": self.explored,
        }


SearchOutcome = Union[RunTacticResults, NoSolution]


def initial_state_for(judgment: Judgment[CType], settings: Settings) -> TacticState:
    skolems = free_vars_ordered([judgment.goal, *judgment.local_hypothesis().values()])
    top_params = set()
    if judgment.is_top_hole:
        for sites in judgment.position_maps.values():
            for site in sites:
                top_params.update(name for name in site if judgment.is_local(name))
    return TacticState(
        skolems=tuple(skolems),
        unused_top_vals=frozenset(top_params),
        unique_gen=UniqueSupply(seed=settings.unique_seed),
    )


def rank_solutions(solutions: List[Solution], scorer: Scorer) -> List[Solution]:
    ranked = sorted(solutions, key=scorer, reverse=True)
    unique: List[Solution] = []
    seen = set()
    for solution in ranked:
        key = fragment_hash(solution.extract)
        if key in seen:
            continue
        seen.add(key)
        unique.append(solution)
    return unique


def search_id_for(tactic: Tactic, judgment: Judgment[Any], settings: Settings) -> str:
    payload = {
        "tactic": tactic.name,
        "judgment": judgment.to_json(),
        "settings": settings.settings_hash(),
    }
    return stable_hash(payload)[:16]


def run_tactic(
    tactic: Tactic,
    judgment: Judgment[CType],
    context: Context,
    settings: Optional[Settings] = None,
    state: Optional[TacticState] = None,
    scorer: Optional[Scorer] = None,
    ledger: Optional[Ledger] = None,
) -> SearchOutcome:
    settings = settings or Settings()
    scorer = scorer or default_score
    state = state if state is not None else initial_state_for(judgment, settings)
    budget = Budget.from_settings(settings)
    env = SearchEnv(context=context, settings=settings, budget=budget)
    events = ledger.for_search(search_id_for(tactic, judgment, settings)) if ledger else None
    start_ns = now_ts_ns()
    if events is not None:
        events.append(
            SEARCH_START,
            {
                "tactic": tactic.name,
                "goal": judgment.goal,
                "hypothesis": sorted(judgment.hypothesis),
                "settings_hash": settings.settings_hash(),
            },
        )

    solutions: List[Solution] = []
    errors: List[TacticError] = []
    cutoff = False
    try:
        for outcome in tactic.run(judgment, state, env):
            if isinstance(outcome, Failure):
                if len(errors) < settings.max_reported_errors:
                    errors.append(outcome.error)
                continue
            trace, extract = discharge(outcome)
            solutions.append(Solution(trace, extract, outcome.state, outcome.goals))
            if len(solutions) >= settings.max_solutions:
                break
    except BudgetExhausted as exc:
        cutoff = True
        if events is not None:
            events.append(
                SEARCH_CUTOFF,
                {"reason": exc.failure_atom, "explored": exc.explored, "solutions": len(solutions)},
            )

    ranked = rank_solutions(solutions, scorer)
    result: SearchOutcome
    if not ranked:
        result = NoSolution(errors=tuple(errors), cutoff=cutoff, explored=budget.explored)
    else:
        best = ranked[0]
        result = RunTacticResults(
            trace=best.trace,
            extract=best.extract,
            other_solutions=tuple(
                (other.trace, other.extract)
                for other in ranked[1 : settings.max_alternatives + 1]
            ),
            state=best.state,
            holes=best.holes,
            open_goals=tuple(dedupe_goals(best.open_goals)),
            cutoff=cutoff,
            explored=budget.explored,
        )
    if events is not None:
        events.append(
            SEARCH_END,
            {
                "status": "SOLVED" if isinstance(result, RunTacticResults) else "NO_SOLUTION",
                "solutions": len(ranked),
                "errors": len(errors),
                "explored": budget.explored,
                "cutoff": cutoff,
                "elapsed_ms": elapsed_ms(start_ns),
                "extract_hash": (
                    fragment_hash(result.extract) if isinstance(result, RunTacticResults) else ""
                ),
            },
        )
    return result

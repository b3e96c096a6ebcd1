from __future__ import annotations

from typing import Callable, Dict, Iterator, List

from ..config import Settings
from ..core.ctype import CType
from ..core.errors import NoProgress
from ..core.judgment import Judgment
from ..core.state import TacticState
from ..engine.machinery import (
    Failure,
    Outcome,
    SearchEnv,
    Tactic,
    attempt,
    choice,
    commit,
    skip,
)
from .core import (
    apply,
    apply_any,
    assumption,
    destruct,
    destruct_any,
    intro,
    intros,
    split,
    split_con,
)
from .recursion import recursion, recursive_call


def auto(depth: int) -> Tactic:
    """Depth-bounded search over the whole library."""

    def run(judgment: Judgment[CType], state: TacticState, env: SearchEnv) -> Iterator[Outcome]:
        if depth <= 0:
            yield Failure(NoProgress())
            return
        loop = auto(depth - 1)
        step = commit(intros, skip) >> choice(
            apply_any >> loop,
            destruct_any >> loop,
            split >> loop,
            assumption,
            recursion,
        )
        yield from step.run(judgment, state, env)

    return Tactic(run, name=f"auto {depth}")


def named_tactics(settings: Settings) -> Dict[str, Callable[[List[str]], Tactic]]:
    """Tactic factories by name; each takes the words following the name."""
    return {
        "auto": lambda args: auto(int(args[0]) if args else settings.auto_depth),
        "assumption": lambda args: assumption,
        "intro": lambda args: intro,
        "intros": lambda args: intros,
        "split": lambda args: split_con(args[0]) if args else split,
        "destruct": lambda args: destruct(args[0]) if args else destruct_any,
        "apply": lambda args: apply(args[0]) if args else apply_any,
        "recursion": lambda args: recursive_call(args[0], args[1:] or None) if args else recursion,
    }


def _script_step(words: List[str], registry: Dict[str, Callable[[List[str]], Tactic]]) -> Tactic:
    if words[0] == "try":
        if len(words) == 1:
            raise ValueError("try needs a tactic")
        return attempt(_script_step(words[1:], registry))
    factory = registry.get(words[0])
    if factory is None:
        raise ValueError(f"unknown tactic: {words[0]}")
    return factory(words[1:])


def build_tactic(script: str, settings: Settings) -> Tactic:
    """Parse ``"intros; try destruct xs; auto 2"`` into a sequenced tactic."""
    registry = named_tactics(settings)
    steps = [step.split() for step in script.split(";") if step.strip()]
    if not steps:
        raise ValueError("empty tactic script")
    tactic = None
    for words in steps:
        step = _script_step(words, registry)
        tactic = step if tactic is None else tactic >> step
    assert tactic is not None
    return tactic

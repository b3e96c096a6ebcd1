from .auto import auto, build_tactic, named_tactics
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
from .recursion import mark_recursion, positional_assumption, recursion, recursive_call

__all__ = [
    "apply",
    "apply_any",
    "assumption",
    "auto",
    "build_tactic",
    "destruct",
    "destruct_any",
    "intro",
    "intros",
    "mark_recursion",
    "named_tactics",
    "positional_assumption",
    "recursion",
    "recursive_call",
    "split",
    "split_con",
]

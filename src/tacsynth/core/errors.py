from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Tuple

from .ctype import CType

if TYPE_CHECKING:
    from .judgment import Judgment


class TacticError:
    """Reason a single alternative of the search failed.

    These are plain values: the search reacts to them by backtracking, so they
    are returned inside ``Failure`` outcomes rather than raised.
    """

    failure_atom = "TACTIC_ERROR"

    def to_record(self) -> Dict[str, Any]:
        return {"failure_atom": self.failure_atom, "message": str(self)}


@dataclass(frozen=True)
class UndefinedHypothesis(TacticError):
    name: str
    failure_atom = "UNDEFINED_HYPOTHESIS"

    def __str__(self) -> str:
        return f"{self.name} is not available in the hypothesis."


@dataclass(frozen=True)
class GoalMismatch(TacticError):
    tactic: str
    goal: CType
    failure_atom = "GOAL_MISMATCH"

    def __str__(self) -> str:
        return f"The tactic {self.tactic} doesn't apply to goal type {self.goal}"


@dataclass(frozen=True)
class UnsolvedSubgoals(TacticError):
    judgments: Tuple["Judgment[Any]", ...]
    failure_atom = "UNSOLVED_SUBGOALS"

    def __str__(self) -> str:
        return "There were unsolved subgoals"


@dataclass(frozen=True)
class UnificationError(TacticError):
    left: CType
    right: CType
    failure_atom = "UNIFICATION_ERROR"

    def __str__(self) -> str:
        return f"Could not unify {self.left} and {self.right}"


@dataclass(frozen=True)
class NoProgress(TacticError):
    failure_atom = "NO_PROGRESS"

    def __str__(self) -> str:
        return "Unable to make progress"


@dataclass(frozen=True)
class NoApplicableTactic(TacticError):
    failure_atom = "NO_APPLICABLE_TACTIC"

    def __str__(self) -> str:
        return "No tactic could be applied"


@dataclass(frozen=True)
class AlreadyDestructed(TacticError):
    name: str
    failure_atom = "ALREADY_DESTRUCTED"

    def __str__(self) -> str:
        return f"Already destructed {self.name}"


@dataclass(frozen=True)
class IncorrectDataConstructor(TacticError):
    con: str
    failure_atom = "INCORRECT_DATA_CON"

    def __str__(self) -> str:
        return f"Data con doesn't align with goal type ({self.con})"


@dataclass(frozen=True)
class RecursionOnWrongParam(TacticError):
    call: str
    position: int
    arg: str
    failure_atom = "RECURSION_ON_WRONG_PARAM"

    def __str__(self) -> str:
        return f"Recursion on wrong param ({self.call}) on arg {self.position}: {self.arg}"


@dataclass(frozen=True)
class UnhelpfulDestruct(TacticError):
    name: str
    failure_atom = "UNHELPFUL_DESTRUCT"

    def __str__(self) -> str:
        return f"Destructing patval {self.name} leads to no new types"


@dataclass(frozen=True)
class UnhelpfulSplit(TacticError):
    name: str
    failure_atom = "UNHELPFUL_SPLIT"

    def __str__(self) -> str:
        return f"Splitting constructor {self.name} leads to no new goals"


@dataclass(frozen=True)
class TooPolymorphic(TacticError):
    failure_atom = "TOO_POLYMORPHIC"

    def __str__(self) -> str:
        return "The tactic isn't applicable because the goal is too polymorphic"


class JudgmentInvariantError(Exception):
    def __init__(self, failure_atom: str, detail: str = "") -> None:
        super().__init__(f"{failure_atom}: {detail}" if detail else failure_atom)
        self.failure_atom = failure_atom
        self.detail = detail


class TacticDefinitionError(Exception):
    def __init__(self, failure_atom: str, detail: str = "") -> None:
        super().__init__(f"{failure_atom}: {detail}" if detail else failure_atom)
        self.failure_atom = failure_atom
        self.detail = detail

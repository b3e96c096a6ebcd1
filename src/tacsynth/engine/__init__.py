from .budget import Budget, BudgetExhausted
from .machinery import Failure, Progress, SearchEnv, Tactic, rule
from .runner import NoSolution, RunTacticResults, Solution, default_score, run_tactic

__all__ = [
    "Budget",
    "BudgetExhausted",
    "Failure",
    "NoSolution",
    "Progress",
    "RunTacticResults",
    "SearchEnv",
    "Solution",
    "Tactic",
    "default_score",
    "rule",
    "run_tactic",
]

from .config import Settings
from .engine.runner import NoSolution, RunTacticResults, run_tactic

__version__ = "0.1.0"

__all__ = [
    "NoSolution",
    "RunTacticResults",
    "Settings",
    "run_tactic",
    "__version__",
]

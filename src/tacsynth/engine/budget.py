from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..config import Settings
from ..utils import now_ts_ns


class BudgetExhausted(Exception):
    """Raised through the search walker when the cutoff is reached.

    Only ``run_tactic`` catches it; tactics must let it propagate.
    """

    def __init__(self, failure_atom: str, explored: int) -> None:
        super().__init__(failure_atom)
        self.failure_atom = failure_atom
        self.explored = explored


@dataclass
class Budget:
    node_limit: Optional[int] = None
    time_limit_ms: Optional[int] = None
    explored: int = 0
    started_ns: int = field(default_factory=now_ts_ns)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Budget":
        return cls(node_limit=settings.node_budget, time_limit_ms=settings.time_budget_ms)

    def tick(self) -> None:
        self.explored += 1
        if self.node_limit is not None and self.explored > self.node_limit:
            raise BudgetExhausted("NODE_BUDGET_EXCEEDED", self.explored)
        if self.time_limit_ms is not None:
            spent_ms = (now_ts_ns() - self.started_ns) / 1e6
            if spent_ms > self.time_limit_ms:
                raise BudgetExhausted("TIME_BUDGET_EXCEEDED", self.explored)

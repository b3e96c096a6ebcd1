from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils import stable_hash


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TACSYNTH_")

    node_budget: int = Field(default=20_000, ge=1)
    time_budget_ms: Optional[int] = Field(default=None, ge=1)
    recursion_penalty_weight: int = Field(default=1, ge=0)
    destruct_enabled: bool = True
    split_enabled: bool = True
    unique_seed: int = 0
    max_alternatives: int = Field(default=5, ge=0)
    max_solutions: int = Field(default=200, ge=1)
    max_reported_errors: int = Field(default=50, ge=0)
    auto_depth: int = Field(default=4, ge=0)
    policy_version: str = "v1"

    def settings_hash(self) -> str:
        return stable_hash(self.model_dump())

"""
Engine configuration using pydantic-settings.

Environment variables (prefix: BOARDRULES_):
    BOARDRULES_MAX_CASCADE_DEPTH - Limit on chained state changes (default: 0, unbounded)
    BOARDRULES_SHUFFLE_SEED      - Seed for field shuffling (default: unseeded)
    BOARDRULES_VALIDATE_MOVES    - Reject incomplete/invalid moves (default: false)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Runtime knobs for a GameManager."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="BOARDRULES_",
    )

    max_cascade_depth: int = Field(
        default=0,
        ge=0,
        description="Maximum number of chained state changes in one cascade; 0 disables the limit.",
    )
    shuffle_seed: Optional[int] = Field(
        default=None,
        description="Seed for the manager's random generator, for reproducible shuffles.",
    )
    validate_moves: bool = Field(
        default=False,
        description="Raise on perform_move when a choice is incomplete or invalid.",
    )


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Return cached settings loaded from the environment."""
    return EngineSettings()

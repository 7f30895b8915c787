"""Game settings loaded from ``SEABATTLE_*`` environment variables."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field, field_validator

from seabattle.engine.board import DEFAULT_MAX_PLACEMENT_ATTEMPTS
from seabattle.engine.game import DEFAULT_MAX_TARGETING_ATTEMPTS

_ENV_FIELDS = {
    "computer_delay_seconds": "SEABATTLE_COMPUTER_DELAY",
    "rng_seed": "SEABATTLE_SEED",
    "max_placement_attempts": "SEABATTLE_MAX_PLACEMENT_ATTEMPTS",
    "max_targeting_attempts": "SEABATTLE_MAX_TARGETING_ATTEMPTS",
    "log_level": "SEABATTLE_LOG_LEVEL",
}


class GameConfig(BaseModel):
    """Runtime knobs for the controller and the random placement/targeting loops."""

    computer_delay_seconds: float = Field(default=1.0, ge=0.0)
    rng_seed: int | None = None
    max_placement_attempts: int = Field(default=DEFAULT_MAX_PLACEMENT_ATTEMPTS, ge=1)
    max_targeting_attempts: int = Field(default=DEFAULT_MAX_TARGETING_ATTEMPTS, ge=1)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @classmethod
    def from_env(cls, **overrides: Any) -> GameConfig:
        """Read settings from the environment; explicit overrides win."""
        data: dict[str, Any] = {}
        for field, env_name in _ENV_FIELDS.items():
            value = os.getenv(env_name)
            if value is not None and value.strip():
                data[field] = value.strip()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)


@lru_cache(maxsize=1)
def load_game_config() -> GameConfig:
    """Load and cache game config from the environment."""
    return GameConfig.from_env()

from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    joker_count: int = Field(default=2, ge=0, le=2, alias="JOKER_COUNT")
    joker_repetitions: int = Field(default=10, ge=1, alias="JOKER_REPETITIONS")
    default_time_limit: int = Field(default=0, ge=0, alias="DEFAULT_TIME_LIMIT")
    tick_interval: float = Field(default=1.0, gt=0, alias="TICK_INTERVAL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    def log_status(self) -> None:
        env_name = os.getenv("ENV", "unknown")
        logger.info(
            "Game settings: jokers=%s (reps=%s), time_limit=%ss, tick=%ss, env=%s",
            self.joker_count,
            self.joker_repetitions,
            self.default_time_limit,
            self.tick_interval,
            env_name,
        )


@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    settings.log_status()
    return settings

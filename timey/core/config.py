from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./timey.db"
    APP_ENV: str = "development"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://admin.example.com,https://api.example.com"
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # JSON list of {"id", "text", "daysOfWeek"?}; unset means DEFAULT_CHORES.
    CHORES_FILE: Optional[str] = None

    # Progression
    XP_PER_LEVEL: list[int] = [840, 960, 1080, 1200]
    DEFAULT_XP_PER_LEVEL: int = 1200
    XP_FOR_CHORE: int = 10
    XP_PENALTY_FOR_CHORE: int = 10

    # Timer
    PLAY_TIME_MINUTES: float = 60
    COOLDOWN_TIME_MINUTES: float = 60
    PROFILE_REFRESH_INTERVAL_SECONDS: int = 5 * 60

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()


@dataclass(frozen=True)
class ProgressionConfig:
    """Immutable snapshot of the values the progression engine reads."""
    xp_per_level: tuple[int, ...] = (840, 960, 1080, 1200)
    default_xp_per_level: int = 1200
    xp_for_chore: int = 10
    xp_penalty_for_chore: int = 10
    play_time_minutes: float = 60
    cooldown_time_minutes: float = 60

    def __post_init__(self) -> None:
        thresholds = (*self.xp_per_level, self.default_xp_per_level)
        if any(t <= 0 for t in thresholds):
            raise ValueError(f"level thresholds must be positive, got {thresholds}")

    @classmethod
    def from_settings(cls, s: Settings) -> "ProgressionConfig":
        return cls(
            xp_per_level=tuple(s.XP_PER_LEVEL),
            default_xp_per_level=s.DEFAULT_XP_PER_LEVEL,
            xp_for_chore=s.XP_FOR_CHORE,
            xp_penalty_for_chore=s.XP_PENALTY_FOR_CHORE,
            play_time_minutes=s.PLAY_TIME_MINUTES,
            cooldown_time_minutes=s.COOLDOWN_TIME_MINUTES,
        )


@lru_cache(maxsize=1)
def get_progression_config() -> ProgressionConfig:
    return ProgressionConfig.from_settings(settings)

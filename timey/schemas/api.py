"""
Request/response schemas for the profiles and rewards API.

Profile payloads are returned in their stored (camelCase) document shape;
everything derived (stats, bonuses, timer durations) sits next to it.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from timey.schemas.profile import ChoreDefinition, ChoreStatus
from timey.services.rewards import RewardType


class CreateProfileRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=128, examples=["kid_one"])
    email: Optional[str] = None
    display_name: Optional[str] = None


class UpdateChoresRequest(BaseModel):
    chores: list[ChoreDefinition]


class ChoreStatusRequest(BaseModel):
    status: ChoreStatus


class FinalizeDayRequest(BaseModel):
    day: Optional[str] = Field(
        default=None,
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="YYYY-MM-DD. Defaults to today.",
    )


class UseRewardRequest(BaseModel):
    type: RewardType
    value: Optional[float] = Field(
        default=None,
        description="Bonus size in minutes. Defaults to the catalog value.",
    )


class PlayerStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: int
    xp_into_level: int
    xp_to_next_level: int
    total_xp: int


class ChoreStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    completed: int
    completion_rate: int


class PlayStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_minutes: int
    total_sessions: int
    formatted: str


class AggregateStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    play: PlayStatsResponse
    chores: ChoreStatsResponse
    days_tracked: int
    days_finalized: int


class TimerResponse(BaseModel):
    play_time_minutes: float
    cooldown_minutes: float
    play_time_bonus: float
    cooldown_reduction: float
    refresh_interval_seconds: int = Field(description="How often clients should re-read the profile.")


class ProfileResponse(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    profile: dict[str, Any] = Field(description="Stored profile document.")
    stats: PlayerStatsResponse
    aggregate: AggregateStatsResponse
    timer: TimerResponse


class ProfileSummaryResponse(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    stats: PlayerStatsResponse
    rewards_available: int
    last_updated: Optional[str] = None


class ProfileListResponse(BaseModel):
    total: int
    items: list[ProfileSummaryResponse]


class DaySummaryResponse(BaseModel):
    date: str
    display_date: str
    completed: bool
    xp: dict[str, int]
    chores: ChoreStatsResponse
    play: PlayStatsResponse
    rewards_used: int


class HistoryResponse(BaseModel):
    total: int
    items: list[DaySummaryResponse]


class RewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: RewardType
    name: str
    description: str
    value: float

"""
Player profile document schemas.

These models mirror the stored profile document. Stored keys are camelCase
(`completedAt`, `daysOfWeek`, `playTime`, `rewardsUsed`, `usedAt`); Python
attributes are snake_case.

Profiles written by older clients may be missing whole substructures
(`rewards`, `rewards.permanent`, `rewardsUsed`) or carry null values; every
such gap loads as an empty/zero default instead of failing validation.
"""
from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

ALL_WEEKDAYS = frozenset(range(7))


class ChoreStatus(str, enum.Enum):
    incomplete = "incomplete"
    completed = "completed"
    na = "na"


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _default_if_none(value: Any, default: Any) -> Any:
    return default if value is None else value


# ---------------------------------------------------------------------------
# Chores
# ---------------------------------------------------------------------------

class ChoreDefinition(_Document):
    """A chore in the base schedule. Empty `days_of_week` means every day."""
    id: int
    text: str
    days_of_week: frozenset[int] = frozenset()

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _none_is_every_day(cls, v: Any) -> Any:
        return _default_if_none(v, frozenset())

    @field_validator("days_of_week")
    @classmethod
    def _check_weekdays(cls, v: frozenset[int]) -> frozenset[int]:
        bad = sorted(d for d in v if d not in ALL_WEEKDAYS)
        if bad:
            raise ValueError(f"weekday numbers must be 0-6, got {bad}")
        return v

    @field_serializer("days_of_week")
    def _serialize_weekdays(self, v: frozenset[int]) -> list[int]:
        return sorted(v)


class ChoreEntry(_Document):
    """One chore on one day. `completed_at` is set only while completed."""
    id: int
    text: str
    status: ChoreStatus = ChoreStatus.incomplete
    completed_at: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _unknown_status_is_incomplete(cls, v: Any) -> Any:
        if isinstance(v, ChoreStatus):
            return v
        try:
            return ChoreStatus(v)
        except ValueError:
            return ChoreStatus.incomplete

    @model_validator(mode="after")
    def _drop_stale_completed_at(self) -> "ChoreEntry":
        if self.status is not ChoreStatus.completed:
            self.completed_at = None
        return self


# ---------------------------------------------------------------------------
# Day progress
# ---------------------------------------------------------------------------

class PlaySession(_Document):
    start: str
    end: Optional[str] = None

    @field_validator("end", mode="before")
    @classmethod
    def _blank_end_is_open(cls, v: Any) -> Any:
        # Older clients wrote "" for a session that had not ended yet.
        return v or None

    @property
    def is_open(self) -> bool:
        return self.end is None


class PlayTime(_Document):
    sessions: list[PlaySession] = Field(default_factory=list)

    @field_validator("sessions", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return _default_if_none(v, [])


class DayXp(_Document):
    """XP ledger for a day. `final` always equals `gained - penalties`."""
    gained: int = 0
    penalties: int = 0
    final: int = 0

    @model_validator(mode="after")
    def _final_from_parts(self) -> "DayXp":
        self.recompute()
        return self

    def recompute(self) -> None:
        self.final = self.gained - self.penalties


class RewardUsage(_Document):
    type: str
    used_at: str
    value: float = 0


class DayProgress(_Document):
    date: str
    chores: list[ChoreEntry] = Field(default_factory=list)
    play_time: PlayTime = Field(default_factory=PlayTime)
    xp: DayXp = Field(default_factory=DayXp)
    rewards_used: list[RewardUsage] = Field(default_factory=list)
    completed: bool = False

    @field_validator("chores", "rewards_used", mode="before")
    @classmethod
    def _none_is_empty_list(cls, v: Any) -> Any:
        return _default_if_none(v, [])

    @field_validator("play_time", "xp", mode="before")
    @classmethod
    def _none_is_empty_object(cls, v: Any) -> Any:
        return _default_if_none(v, {})


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

class RewardsWallet(_Document):
    available: int = 0
    permanent: dict[str, float] = Field(default_factory=dict)

    @field_validator("permanent", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return _default_if_none(v, {})


class PlayerProfile(_Document):
    """A player's full day history plus reward wallet.

    Level and XP are never stored here; they are derived from `history`
    by `calculate_player_stats`. `chores` is the base schedule; None means
    the configured chore catalog applies.
    """
    history: dict[str, DayProgress] = Field(default_factory=dict)
    rewards: RewardsWallet = Field(default_factory=RewardsWallet)
    chores: Optional[list[ChoreDefinition]] = None

    @field_validator("history", "rewards", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return _default_if_none(v, {})

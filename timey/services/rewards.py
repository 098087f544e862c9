"""
Reward catalog and the timer effects of permanent rewards.

Each reward token redeems for a permanent modifier; the wallet accumulates
the modifier's magnitude per reward kind (see progression.use_reward).
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional


class RewardType(str, enum.Enum):
    EXTEND_PLAY_TIME = "EXTEND_PLAY_TIME"
    REDUCE_COOLDOWN = "REDUCE_COOLDOWN"


@dataclass(frozen=True)
class Reward:
    id: RewardType
    name: str
    description: str
    value: float    # minutes


REWARDS: tuple[Reward, ...] = (
    Reward(
        id=RewardType.EXTEND_PLAY_TIME,
        name="Extra Play Time",
        description="+5 minutes to play timer (permanent)",
        value=5,
    ),
    Reward(
        id=RewardType.REDUCE_COOLDOWN,
        name="Reduced Cooldown",
        description="-5 minutes from cooldown timer (permanent)",
        value=5,
    ),
)


def parse_reward_type(kind: Any) -> Optional[RewardType]:
    """Return the RewardType for `kind`, or None if it is not a known kind."""
    if isinstance(kind, RewardType):
        return kind
    try:
        return RewardType(kind)
    except ValueError:
        return None


def _non_negative(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, value)


def calculate_effective_play_time(base_minutes: float, bonus_minutes: float) -> float:
    """Base play time plus the permanent bonus, never below one minute."""
    return max(1, _non_negative(base_minutes) + _non_negative(bonus_minutes))


def calculate_effective_cooldown(base_minutes: float, reduction_minutes: float) -> float:
    """Base cooldown minus the permanent reduction, never negative."""
    return max(0, _non_negative(base_minutes) - _non_negative(reduction_minutes))

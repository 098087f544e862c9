"""
Profile progression engine.

Every public function takes a PlayerProfile (plus arguments and an optional
ProgressionConfig) and returns a PlayerProfile. The input is never mutated:
paths that change something work on a deep copy and return it, paths that
change nothing return the input object itself, so callers can detect a no-op
with `result is profile`.

Stale references (a chore no longer on today's list, a day missing from
history) and malformed-but-plausible arguments (unknown reward kind, negative
amounts) are no-ops, never errors.

Public API
----------
initialize_day(profile)                          -> PlayerProfile
finalize_day_progress(profile, day)              -> PlayerProfile
check_and_finalize_previous_days(profile)        -> PlayerProfile
update_chore_status(profile, chore_id, status)   -> PlayerProfile
add_xp(profile, amount) / remove_xp(profile, amount)
use_reward(profile, kind, magnitude)             -> PlayerProfile
start_play_session(profile) / end_play_session(profile)
set_chore_schedule(profile, chores)              -> PlayerProfile
calculate_player_stats(profile)                  -> PlayerStats
get_permanent_bonus(profile, kind)               -> float
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from loguru import logger

from timey.core import dates
from timey.core.chores import load_chore_catalog
from timey.core.config import ProgressionConfig, get_progression_config
from timey.schemas.profile import (
    ChoreDefinition,
    ChoreStatus,
    DayProgress,
    PlayerProfile,
    PlaySession,
    RewardUsage,
)
from timey.services.day_progress import create_day, find_chore, sync_day_chores
from timey.services.rewards import RewardType, parse_reward_type


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class PlayerStats:
    level: int
    xp_into_level: int
    xp_to_next_level: int
    total_xp: int            # sum of positive day totals


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _cfg(config: Optional[ProgressionConfig]) -> ProgressionConfig:
    return config or get_progression_config()


def _copy(profile: PlayerProfile) -> PlayerProfile:
    return profile.model_copy(deep=True)


def _schedule(profile: PlayerProfile) -> Sequence[ChoreDefinition]:
    return profile.chores if profile.chores is not None else load_chore_catalog()


def _today_progress(profile: PlayerProfile) -> Optional[DayProgress]:
    return profile.history.get(dates.today())


def _parse_status(value: Any) -> Optional[ChoreStatus]:
    if isinstance(value, ChoreStatus):
        return value
    try:
        return ChoreStatus(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------

def xp_required_for_level(level: int, config: Optional[ProgressionConfig] = None) -> int:
    """XP needed to go from `level` to `level + 1`."""
    cfg = _cfg(config)
    if 1 <= level <= len(cfg.xp_per_level):
        return cfg.xp_per_level[level - 1]
    return cfg.default_xp_per_level


def total_counted_xp(profile: PlayerProfile) -> int:
    # A day below zero counts as zero; it does not drain other days.
    return sum(max(0, day.xp.final) for day in profile.history.values())


def calculate_player_stats(
    profile: PlayerProfile, config: Optional[ProgressionConfig] = None
) -> PlayerStats:
    """Derive level and progress from history. Never read from a cache."""
    cfg = _cfg(config)
    total = total_counted_xp(profile)
    level = 1
    remaining = total
    while remaining >= xp_required_for_level(level, cfg):
        remaining -= xp_required_for_level(level, cfg)
        level += 1
    return PlayerStats(
        level=level,
        xp_into_level=remaining,
        xp_to_next_level=xp_required_for_level(level, cfg),
        total_xp=total,
    )


# ---------------------------------------------------------------------------
# Day lifecycle
# ---------------------------------------------------------------------------

def _finalize(day: DayProgress, cfg: ProgressionConfig) -> None:
    incomplete = sum(1 for c in day.chores if c.status is ChoreStatus.incomplete)
    day.xp.penalties = incomplete * cfg.xp_penalty_for_chore
    day.xp.recompute()
    day.completed = True
    logger.info(
        f"Finalized {day.date}: {incomplete} incomplete chore(s), "
        f"gained={day.xp.gained} penalties={day.xp.penalties} final={day.xp.final}"
    )


def finalize_day_progress(
    profile: PlayerProfile, day: str, config: Optional[ProgressionConfig] = None
) -> PlayerProfile:
    """Close out `day`, charging a penalty per chore still incomplete.

    Idempotent: a missing or already finalized day is returned unchanged.
    Chore statuses are left exactly as they are.
    """
    progress = profile.history.get(day)
    if progress is None or progress.completed:
        return profile
    updated = _copy(profile)
    _finalize(updated.history[day], _cfg(config))
    return updated


def check_and_finalize_previous_days(
    profile: PlayerProfile, config: Optional[ProgressionConfig] = None
) -> PlayerProfile:
    """Finalize every unfinalized day other than today."""
    current = dates.today()
    stale = sorted(
        d for d, progress in profile.history.items()
        if d != current and not progress.completed
    )
    if not stale:
        return profile
    cfg = _cfg(config)
    updated = _copy(profile)
    for d in stale:
        _finalize(updated.history[d], cfg)
    return updated


def initialize_day(
    profile: PlayerProfile, config: Optional[ProgressionConfig] = None
) -> PlayerProfile:
    """Make sure today exists, finalizing any days left open since the last visit.

    Safe to call on every start-up and refresh: once today exists this is a
    no-op.
    """
    current = dates.today()
    if current in profile.history:
        return profile
    updated = check_and_finalize_previous_days(profile, config)
    if updated is profile:
        updated = _copy(profile)
    updated.history[current] = create_day(current, _schedule(updated))
    logger.info(f"Started {current} with {len(updated.history[current].chores)} chore(s)")
    return updated


# ---------------------------------------------------------------------------
# XP
# ---------------------------------------------------------------------------

def _grant_xp(profile: PlayerProfile, day: DayProgress, amount: int, cfg: ProgressionConfig) -> None:
    before = calculate_player_stats(profile, cfg).level
    day.xp.gained += amount
    day.xp.recompute()
    after = calculate_player_stats(profile, cfg).level
    if after > before:
        profile.rewards.available += after - before
        logger.info(
            f"Level up to {after}! Added {after - before} reward(s), "
            f"{profile.rewards.available} available"
        )


def _revoke_xp(day: DayProgress, amount: int) -> None:
    # Reward tokens already granted are kept even if the level drops.
    day.xp.gained = max(0, day.xp.gained - amount)
    day.xp.recompute()


def add_xp(
    profile: PlayerProfile, amount: int, config: Optional[ProgressionConfig] = None
) -> PlayerProfile:
    """Add XP to today, granting one reward token per level gained."""
    if amount <= 0 or _today_progress(profile) is None:
        return profile
    updated = _copy(profile)
    _grant_xp(updated, _today_progress(updated), amount, _cfg(config))
    return updated


def remove_xp(
    profile: PlayerProfile, amount: int, config: Optional[ProgressionConfig] = None
) -> PlayerProfile:
    """Take XP back from today; today's gained XP never goes below zero."""
    if amount <= 0 or _today_progress(profile) is None:
        return profile
    updated = _copy(profile)
    _revoke_xp(_today_progress(updated), amount)
    return updated


# ---------------------------------------------------------------------------
# Chores
# ---------------------------------------------------------------------------

def update_chore_status(
    profile: PlayerProfile,
    chore_id: int,
    new_status: ChoreStatus | str,
    config: Optional[ProgressionConfig] = None,
) -> PlayerProfile:
    """Set the status of one of today's chores and apply the XP effect.

    Only a transition into or out of `completed` moves XP; incomplete <-> na
    does not. Unchanged result when today is missing or finalized, the chore
    is not on today's list, or the status is not recognized.
    """
    status = _parse_status(new_status)
    today = _today_progress(profile)
    if status is None or today is None or today.completed:
        return profile
    if find_chore(today, chore_id) is None:
        return profile

    cfg = _cfg(config)
    updated = _copy(profile)
    day = _today_progress(updated)
    entry = find_chore(day, chore_id)

    old_status = entry.status
    entry.status = status
    if status is ChoreStatus.completed:
        entry.completed_at = dates.now_local_timestamp()
    else:
        entry.completed_at = None

    if old_status is ChoreStatus.completed and status is not ChoreStatus.completed:
        _revoke_xp(day, cfg.xp_for_chore)
    elif old_status is not ChoreStatus.completed and status is ChoreStatus.completed:
        _grant_xp(updated, day, cfg.xp_for_chore, cfg)
    return updated


def set_chore_schedule(
    profile: PlayerProfile, chores: Iterable[ChoreDefinition]
) -> PlayerProfile:
    """Replace the base schedule and bring today's open chore list in line.

    Chores kept on today's list keep their status; XP already earned today
    is not touched.
    """
    updated = _copy(profile)
    updated.chores = list(chores)
    today = _today_progress(updated)
    if today is not None and not today.completed:
        sync_day_chores(today, updated.chores)
    return updated


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------

def use_reward(profile: PlayerProfile, kind: RewardType | str, magnitude: float) -> PlayerProfile:
    """Spend one reward token on a permanent bonus of `magnitude`.

    No-op without an available token or for an unknown reward kind; a
    negative magnitude is recorded as zero.
    """
    if profile.rewards.available <= 0:
        return profile
    reward_type = parse_reward_type(kind)
    if reward_type is None:
        logger.warning(f"Invalid reward type: {kind}")
        return profile

    value = max(0, magnitude)
    updated = _copy(profile)
    wallet = updated.rewards
    wallet.available -= 1
    wallet.permanent[reward_type.value] = wallet.permanent.get(reward_type.value, 0) + value

    today = _today_progress(updated)
    if today is not None:
        today.rewards_used.append(RewardUsage(
            type=reward_type.value,
            used_at=dates.now_local_timestamp(),
            value=value,
        ))
    return updated


def get_permanent_bonus(profile: Optional[PlayerProfile], kind: RewardType | str) -> float:
    rewards = getattr(profile, "rewards", None)
    permanent = getattr(rewards, "permanent", None) or {}
    key = kind.value if isinstance(kind, RewardType) else str(kind)
    return max(0, permanent.get(key) or 0)


# ---------------------------------------------------------------------------
# Play sessions
# ---------------------------------------------------------------------------

def _latest_open_session(profile: PlayerProfile) -> Optional[tuple[str, int]]:
    for day in sorted(profile.history, reverse=True):
        sessions = profile.history[day].play_time.sessions
        for i in range(len(sessions) - 1, -1, -1):
            if sessions[i].is_open:
                return day, i
    return None


def start_play_session(
    profile: PlayerProfile, config: Optional[ProgressionConfig] = None
) -> PlayerProfile:
    """Open a play session on today. No-op while another session is open."""
    if _latest_open_session(profile) is not None:
        return profile
    updated = initialize_day(profile, config)
    if updated is profile:
        updated = _copy(profile)
    _today_progress(updated).play_time.sessions.append(
        PlaySession(start=dates.now_local_timestamp())
    )
    return updated


def end_play_session(profile: PlayerProfile) -> PlayerProfile:
    """Close the most recent open play session, if there is one."""
    found = _latest_open_session(profile)
    if found is None:
        return profile
    day, index = found
    updated = _copy(profile)
    updated.history[day].play_time.sessions[index].end = dates.now_local_timestamp()
    return updated

"""
Read-only projections over a profile's history for dashboards: play time,
session counts and chore completion rates. Nothing here changes a profile.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from timey.core import dates
from timey.schemas.profile import ChoreStatus, DayProgress, PlayerProfile, PlaySession


@dataclass
class PlayStats:
    total_minutes: int
    total_sessions: int
    formatted: str           # H:MM


@dataclass
class ChoreStats:
    total: int
    completed: int
    completion_rate: int     # whole percent


@dataclass
class AggregateStats:
    play: PlayStats
    chores: ChoreStats
    days_tracked: int
    days_finalized: int


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(max(0, minutes), 60)
    return f"{hours}:{mins:02d}"


def _session_seconds(session: PlaySession) -> float:
    # Open sessions have no duration yet.
    if not session.start or session.end is None:
        return 0
    try:
        start = dates.parse_local_timestamp(session.start)
        end = dates.parse_local_timestamp(session.end)
    except ValueError:
        # Still counted as a session, with no duration.
        logger.warning(f"Ignoring unreadable play session times: {session.start!r} -> {session.end!r}")
        return 0
    return max(0.0, (end - start).total_seconds())


def _play_stats(sessions: list[PlaySession]) -> PlayStats:
    minutes = int(sum(_session_seconds(s) for s in sessions) // 60)
    return PlayStats(
        total_minutes=minutes,
        total_sessions=len(sessions),
        formatted=format_minutes(minutes),
    )


def _chore_stats(days: Iterable[DayProgress]) -> ChoreStats:
    total = completed = 0
    for day in days:
        total += len(day.chores)
        completed += sum(1 for c in day.chores if c.status is ChoreStatus.completed)
    # Half rounds up (12.5 -> 13).
    rate = math.floor(completed * 100 / total + 0.5) if total else 0
    return ChoreStats(total=total, completed=completed, completion_rate=rate)


def calculate_play_stats(day: DayProgress) -> PlayStats:
    return _play_stats(day.play_time.sessions)


def calculate_day_chore_stats(day: DayProgress) -> ChoreStats:
    return _chore_stats([day])


def calculate_aggregate_stats(profile: PlayerProfile) -> AggregateStats:
    days = list(profile.history.values())
    return AggregateStats(
        play=_play_stats([s for d in days for s in d.play_time.sessions]),
        chores=_chore_stats(days),
        days_tracked=len(days),
        days_finalized=sum(1 for d in days if d.completed),
    )

"""
Day progress model operations: building a day from a chore schedule and
keeping a day's chore list in step with a changed schedule.
"""
from __future__ import annotations

from typing import Iterable, Optional

from timey.core import dates
from timey.schemas.profile import ChoreDefinition, ChoreEntry, ChoreStatus, DayProgress


def chore_scheduled_on(chore: ChoreDefinition, day: str) -> bool:
    if not chore.days_of_week:
        return True
    return dates.weekday_of(day) in chore.days_of_week


def create_day(day: str, chores: Iterable[ChoreDefinition]) -> DayProgress:
    """Fresh, unfinalized progress for `day` with one entry per scheduled chore."""
    return DayProgress(
        date=day,
        chores=[
            ChoreEntry(id=c.id, text=c.text, status=ChoreStatus.incomplete)
            for c in chores
            if chore_scheduled_on(c, day)
        ],
    )


def find_chore(day: DayProgress, chore_id: int) -> Optional[ChoreEntry]:
    return next((c for c in day.chores if c.id == chore_id), None)


def sync_day_chores(day: DayProgress, chores: Iterable[ChoreDefinition]) -> None:
    """Rebuild `day.chores` in place from a schedule.

    Entries whose id is still scheduled keep their status and completion
    time; text is refreshed from the definition. XP is left as it is.
    """
    existing = {c.id: c for c in day.chores}
    synced: list[ChoreEntry] = []
    for chore in chores:
        if not chore_scheduled_on(chore, day.date):
            continue
        prior = existing.get(chore.id)
        synced.append(ChoreEntry(
            id=chore.id,
            text=chore.text,
            status=prior.status if prior else ChoreStatus.incomplete,
            completed_at=prior.completed_at if prior else None,
        ))
    day.chores = synced

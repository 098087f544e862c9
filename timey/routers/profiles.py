"""
Profiles router: admin dashboard and desktop-client operations.

GET    /profiles                                all profiles with level stats
POST   /profiles                                create an empty profile
GET    /profiles/{user_id}                      profile, stats, timer durations
GET    /profiles/{user_id}/history              per-day summaries, newest first
PUT    /profiles/{user_id}/chores               replace the base chore schedule
PATCH  /profiles/{user_id}/chores/{chore_id}    set a chore's status for today
POST   /profiles/{user_id}/finalize-day         close a day, applying penalties
POST   /profiles/{user_id}/rewards/use          redeem a reward token
POST   /profiles/{user_id}/sessions/start       open a play session
POST   /profiles/{user_id}/sessions/end         close the open play session
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from timey.core import dates
from timey.core.config import ProgressionConfig, get_progression_config, settings
from timey.core.errors import (
    ChoreNotScheduledError,
    DayAlreadyClosedError,
    DayNotFoundError,
    NoRewardsAvailableError,
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
    ProfileStoreError,
    ProfileUnreadableError,
)
from timey.core.logger import profile_logger
from timey.db.base import get_db
from timey.schemas.api import (
    AggregateStatsResponse,
    ChoreStatsResponse,
    ChoreStatusRequest,
    CreateProfileRequest,
    DaySummaryResponse,
    FinalizeDayRequest,
    HistoryResponse,
    PlayerStatsResponse,
    PlayStatsResponse,
    ProfileListResponse,
    ProfileResponse,
    ProfileSummaryResponse,
    TimerResponse,
    UpdateChoresRequest,
    UseRewardRequest,
)
from timey.schemas.common import error_response
from timey.schemas.profile import DayProgress, PlayerProfile
from timey.services import progression, stats
from timey.services.day_progress import find_chore
from timey.services.rewards import (
    REWARDS,
    RewardType,
    calculate_effective_cooldown,
    calculate_effective_play_time,
)
from timey.services.session import ProfileSession
from timey.services.store import ProfileStore, profile_from_document, profile_to_document

router = APIRouter(prefix="/profiles", tags=["profiles"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_document(store: ProfileStore, user_id: str) -> dict[str, Any]:
    document = store.load(user_id)
    if document is None:
        raise ProfileNotFoundError(user_id)
    return document


def _require_profile(store: ProfileStore, user_id: str) -> tuple[dict[str, Any], PlayerProfile]:
    document = _require_document(store, user_id)
    try:
        return document, profile_from_document(document)
    except ValidationError as exc:
        profile_logger(user_id).warning(f"Stored profile is unreadable: {exc}")
        raise ProfileUnreadableError(user_id, exc.error_count()) from exc


def _session(db: Session, user_id: str) -> ProfileSession:
    store = ProfileStore(db)
    _require_document(store, user_id)
    return ProfileSession(store, user_id, config=get_progression_config())


def _commit(session: ProfileSession, profile: PlayerProfile) -> None:
    if not session.replace(profile):
        raise ProfileStoreError(f"Could not save profile for {session.user_id}.", session.user_id)


def _timer(profile: PlayerProfile, cfg: ProgressionConfig) -> TimerResponse:
    bonus = progression.get_permanent_bonus(profile, RewardType.EXTEND_PLAY_TIME)
    reduction = progression.get_permanent_bonus(profile, RewardType.REDUCE_COOLDOWN)
    return TimerResponse(
        play_time_minutes=calculate_effective_play_time(cfg.play_time_minutes, bonus),
        cooldown_minutes=calculate_effective_cooldown(cfg.cooldown_time_minutes, reduction),
        play_time_bonus=bonus,
        cooldown_reduction=reduction,
        refresh_interval_seconds=settings.PROFILE_REFRESH_INTERVAL_SECONDS,
    )


def _profile_response(
    user_id: str, profile: PlayerProfile, display_name: Optional[str] = None
) -> ProfileResponse:
    cfg = get_progression_config()
    return ProfileResponse(
        user_id=user_id,
        display_name=display_name,
        profile=profile_to_document(profile),
        stats=PlayerStatsResponse.model_validate(progression.calculate_player_stats(profile, cfg)),
        aggregate=AggregateStatsResponse.model_validate(stats.calculate_aggregate_stats(profile)),
        timer=_timer(profile, cfg),
    )


def _day_summary(day: DayProgress) -> DaySummaryResponse:
    return DaySummaryResponse(
        date=day.date,
        display_date=dates.format_display_date(day.date),
        completed=day.completed,
        xp=day.xp.model_dump(),
        chores=ChoreStatsResponse.model_validate(stats.calculate_day_chore_stats(day)),
        play=PlayStatsResponse.model_validate(stats.calculate_play_stats(day)),
        rewards_used=len(day.rewards_used),
    )


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=ProfileListResponse,
    summary="List profiles with level stats",
)
def list_profiles(db: Session = Depends(get_db)):
    """Every stored profile with its derived level. Unreadable documents are skipped."""
    cfg = get_progression_config()
    items = []
    for row in ProfileStore(db).list_documents():
        try:
            profile = profile_from_document(row.document)
        except ValidationError as exc:
            profile_logger(row.user_id).warning(f"Skipping unreadable profile: {exc}")
            continue
        items.append(ProfileSummaryResponse(
            user_id=row.user_id,
            display_name=row.document.get("displayName"),
            email=row.document.get("email"),
            stats=PlayerStatsResponse.model_validate(progression.calculate_player_stats(profile, cfg)),
            rewards_available=profile.rewards.available,
            last_updated=row.document.get("lastUpdated"),
        ))
    return ProfileListResponse(total=len(items), items=items)


@router.get(
    "/{user_id}",
    response_model=ProfileResponse,
    summary="Profile with derived stats",
    responses={
        404: error_response("No such profile."),
        422: error_response("Stored profile is unreadable."),
    },
)
def get_profile(user_id: str, db: Session = Depends(get_db)):
    """Stored profile as-is (read-only), plus level, lifetime totals and timer durations."""
    document, profile = _require_profile(ProfileStore(db), user_id)
    return _profile_response(user_id, profile, document.get("displayName"))


@router.get(
    "/{user_id}/history",
    response_model=HistoryResponse,
    summary="Per-day summaries, newest first",
    responses={
        404: error_response("No such profile."),
        422: error_response("Stored profile is unreadable."),
    },
)
def get_history(
    user_id: str,
    limit: int = Query(default=30, ge=1, le=366, description="Page size."),
    offset: int = Query(default=0, ge=0, description="Skip N days."),
    db: Session = Depends(get_db),
):
    _, profile = _require_profile(ProfileStore(db), user_id)
    days = [profile.history[d] for d in sorted(profile.history, reverse=True)]
    return HistoryResponse(
        total=len(days),
        items=[_day_summary(d) for d in days[offset:offset + limit]],
    )


# ---------------------------------------------------------------------------
# Write
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an empty profile",
    responses={409: error_response("Profile already exists.")},
)
def create_profile(payload: CreateProfileRequest, db: Session = Depends(get_db)):
    store = ProfileStore(db)
    if store.exists(payload.user_id):
        raise ProfileAlreadyExistsError(payload.user_id)

    display_name = payload.display_name
    if not display_name and payload.email:
        display_name = payload.email.split("@")[0]
    store.save(payload.user_id, {
        "email": payload.email,
        "displayName": display_name,
        "createdAt": dates.now_local_timestamp(),
    })
    profile = ProfileSession(store, payload.user_id, config=get_progression_config()).load()
    profile_logger(payload.user_id).info("Created profile")
    return _profile_response(payload.user_id, profile, display_name)


@router.put(
    "/{user_id}/chores",
    response_model=ProfileResponse,
    summary="Replace the base chore schedule",
    responses={404: error_response("No such profile.")},
)
def update_chores(user_id: str, payload: UpdateChoresRequest, db: Session = Depends(get_db)):
    """
    Replace the chores scheduled for future days. Today's list (if today is
    still open) is rebuilt from the new schedule; chores that stay keep
    their status.
    """
    session = _session(db, user_id)
    profile = session.load()
    _commit(session, progression.set_chore_schedule(profile, payload.chores))
    return _profile_response(user_id, session.profile)


@router.patch(
    "/{user_id}/chores/{chore_id}",
    response_model=ProfileResponse,
    summary="Set the status of one of today's chores",
    responses={
        404: error_response("No such profile, or chore not on today's list."),
        409: error_response("Today has already been finalized."),
    },
)
def set_chore_status(
    user_id: str, chore_id: int, payload: ChoreStatusRequest, db: Session = Depends(get_db)
):
    session = _session(db, user_id)
    profile = session.load()
    today = dates.today()
    day = profile.history.get(today)
    # The date can roll over between load() and here.
    if day is None:
        raise DayNotFoundError(today)
    if day.completed:
        raise DayAlreadyClosedError(today)
    if find_chore(day, chore_id) is None:
        raise ChoreNotScheduledError(chore_id, today)

    _commit(session, progression.update_chore_status(
        profile, chore_id, payload.status, config=session.config
    ))
    return _profile_response(user_id, session.profile)


@router.post(
    "/{user_id}/finalize-day",
    response_model=ProfileResponse,
    summary="Finalize a day and apply incomplete-chore penalties",
    responses={
        404: error_response("No such profile or day."),
        409: error_response("Day is already finalized."),
        422: error_response("Stored profile is unreadable."),
    },
)
def finalize_day(user_id: str, payload: FinalizeDayRequest, db: Session = Depends(get_db)):
    """
    Close a day (default: today). Works on the stored document as-is so a
    still-open earlier day can be closed explicitly.
    """
    store = ProfileStore(db)
    _, profile = _require_profile(store, user_id)
    target = payload.day or dates.today()
    day = profile.history.get(target)
    if day is None:
        raise DayNotFoundError(target)
    if day.completed:
        raise DayAlreadyClosedError(target)

    updated = progression.finalize_day_progress(profile, target, config=get_progression_config())
    store.save(user_id, profile_to_document(updated))
    return _profile_response(user_id, updated)


@router.post(
    "/{user_id}/rewards/use",
    response_model=ProfileResponse,
    summary="Redeem a reward token for a permanent bonus",
    responses={
        404: error_response("No such profile."),
        409: error_response("No reward tokens available."),
    },
)
def use_reward(user_id: str, payload: UseRewardRequest, db: Session = Depends(get_db)):
    session = _session(db, user_id)
    profile = session.load()
    if profile.rewards.available <= 0:
        raise NoRewardsAvailableError()

    value = payload.value
    if value is None:
        value = next(r.value for r in REWARDS if r.id is payload.type)
    _commit(session, progression.use_reward(profile, payload.type, value))
    return _profile_response(user_id, session.profile)


@router.post(
    "/{user_id}/sessions/start",
    response_model=ProfileResponse,
    summary="Open a play session (no-op while one is open)",
    responses={404: error_response("No such profile.")},
)
def start_session(user_id: str, db: Session = Depends(get_db)):
    return _profile_response(user_id, _session(db, user_id).start_play_session())


@router.post(
    "/{user_id}/sessions/end",
    response_model=ProfileResponse,
    summary="Close the open play session (no-op if none)",
    responses={404: error_response("No such profile.")},
)
def end_session(user_id: str, db: Session = Depends(get_db)):
    return _profile_response(user_id, _session(db, user_id).end_play_session())

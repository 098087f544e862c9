"""
Host-side session holding one user's current profile.

The engine is stateless; this object is where "the current profile" lives.
Each operation reloads the stored document first (to narrow the window for
another writer's changes to be lost), runs the engine function, keeps the
returned value and saves it if anything changed.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from timey.core.config import ProgressionConfig
from timey.core.errors import ProfileStoreError
from timey.core.logger import profile_logger
from timey.schemas.profile import ChoreDefinition, ChoreStatus, PlayerProfile
from timey.services import progression
from timey.services.progression import PlayerStats
from timey.services.rewards import RewardType
from timey.services.store import ProfileStore, profile_from_document, profile_to_document


class ProfileSession:
    def __init__(
        self,
        store: ProfileStore,
        user_id: str,
        config: Optional[ProgressionConfig] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.config = config
        self._profile: Optional[PlayerProfile] = None
        self.log = profile_logger(user_id)

    @property
    def profile(self) -> PlayerProfile:
        if self._profile is None:
            return self.load()
        return self._profile

    @property
    def stats(self) -> PlayerStats:
        return progression.calculate_player_stats(self.profile, self.config)

    def _fetch(self) -> tuple[PlayerProfile, bool]:
        """Return the stored profile, or a fresh default and True if there is none usable."""
        try:
            document = self.store.load(self.user_id)
        except ProfileStoreError:
            self.log.warning("Store unavailable, falling back to a default profile")
            return PlayerProfile(), True
        if document is None:
            self.log.info("Creating new default profile")
            return PlayerProfile(), True
        try:
            return profile_from_document(document), False
        except ValidationError as exc:
            self.log.error(f"Stored profile is unreadable, using a default: {exc}")
            return PlayerProfile(), True

    def load(self) -> PlayerProfile:
        """(Re)load the profile and make sure today exists and older days are closed."""
        profile, is_new = self._fetch()
        ready = progression.check_and_finalize_previous_days(profile, self.config)
        ready = progression.initialize_day(ready, self.config)
        self._profile = ready
        if is_new or ready is not profile:
            self.save()
        return ready

    def save(self) -> bool:
        if self._profile is None:
            return False
        try:
            self.store.save(self.user_id, profile_to_document(self._profile))
        except ProfileStoreError:
            return False
        return True

    def replace(self, profile: PlayerProfile) -> bool:
        self._profile = profile
        return self.save()

    def apply(self, operation: Callable[..., PlayerProfile], *args: Any, **kwargs: Any) -> PlayerProfile:
        current = self.load()
        updated = operation(current, *args, **kwargs)
        if updated is not current:
            self.replace(updated)
        return updated

    # --- engine operations ---

    def update_chore_status(self, chore_id: int, status: ChoreStatus | str) -> PlayerProfile:
        return self.apply(progression.update_chore_status, chore_id, status, config=self.config)

    def add_xp(self, amount: int) -> PlayerProfile:
        return self.apply(progression.add_xp, amount, config=self.config)

    def remove_xp(self, amount: int) -> PlayerProfile:
        return self.apply(progression.remove_xp, amount, config=self.config)

    def use_reward(self, kind: RewardType | str, magnitude: float) -> PlayerProfile:
        return self.apply(progression.use_reward, kind, magnitude)

    def start_play_session(self) -> PlayerProfile:
        return self.apply(progression.start_play_session, config=self.config)

    def end_play_session(self) -> PlayerProfile:
        return self.apply(progression.end_play_session)

    def set_chore_schedule(self, chores: Iterable[ChoreDefinition]) -> PlayerProfile:
        return self.apply(progression.set_chore_schedule, chores)

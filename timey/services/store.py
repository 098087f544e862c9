"""
Persistence adapter: load and save profile documents by user id.

The engine never calls this module; hosts (ProfileSession, the API routers)
load a document, hand the parsed profile to the engine and save the result.

Saves merge by default: top-level keys of the saved document replace the
stored ones and every other stored key survives (last write wins per key).
There is no versioning or conflict detection.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timey.core.errors import ProfileStoreError
from timey.core.logger import profile_logger
from timey.models.profile_document import ProfileDocument
from timey.schemas.profile import PlayerProfile


def profile_to_document(profile: PlayerProfile) -> dict[str, Any]:
    return profile.model_dump(mode="json", by_alias=True, exclude_none=True)


def profile_from_document(document: dict[str, Any]) -> PlayerProfile:
    """Parse a stored document; raises pydantic.ValidationError if unreadable."""
    return PlayerProfile.model_validate(document)


class ProfileStore:
    def __init__(self, db: Session):
        self.db = db

    def load(self, user_id: str) -> Optional[dict[str, Any]]:
        try:
            row = self.db.get(ProfileDocument, user_id)
        except SQLAlchemyError as exc:
            profile_logger(user_id).error(f"Error loading profile: {exc}")
            raise ProfileStoreError(f"Could not load profile for {user_id}.", user_id) from exc
        return dict(row.document) if row is not None else None

    def exists(self, user_id: str) -> bool:
        return self.load(user_id) is not None

    def list_documents(self) -> list[ProfileDocument]:
        try:
            return self.db.query(ProfileDocument).order_by(ProfileDocument.user_id).all()
        except SQLAlchemyError as exc:
            logger.error(f"Error listing profiles: {exc}")
            raise ProfileStoreError("Could not list profiles.") from exc

    def save(self, user_id: str, document: dict[str, Any], merge: bool = True) -> None:
        incoming = {**document, "lastUpdated": datetime.now(tz=timezone.utc).isoformat()}
        try:
            row = self.db.get(ProfileDocument, user_id)
            if row is None:
                self.db.add(ProfileDocument(user_id=user_id, document=incoming))
            elif merge:
                # Assign a new dict so the JSON column is flagged dirty.
                row.document = {**row.document, **incoming}
            else:
                row.document = incoming
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            profile_logger(user_id).error(f"Error saving profile: {exc}")
            raise ProfileStoreError(f"Could not save profile for {user_id}.", user_id) from exc
        profile_logger(user_id).debug(f"Saved profile (merge={merge})")

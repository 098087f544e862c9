"""
ProfileDocument: one stored player profile per user.

`document` holds the profile as JSON (history, rewards, chores, plus any
account fields such as email/displayName written at creation). Saves merge
top-level keys into the stored document, last write wins per key.

`last_updated` mirrors the document's `lastUpdated` key; it is a
change-detection hint for listeners and is never read by the engine.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from timey.db.base import Base


class ProfileDocument(Base):
    __tablename__ = "profile_documents"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    document: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

# backend/voicelink/db/models/translation.py
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi_users_db_sqlalchemy.generics import GUID
from sqlalchemy import DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from voicelink.db.base_class import Base

if TYPE_CHECKING:
    from voicelink.db.models.user import User


class Translation(Base):
    """One completed voice translation, kept for the caller's history."""

    __tablename__ = "translations"

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    translated_text: Mapped[str] = mapped_column(Text, nullable=False)
    original_language: Mapped[str] = mapped_column(String(10), nullable=False)
    target_language: Mapped[str] = mapped_column(String(10), nullable=False)
    original_audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    translated_audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Milliseconds spent in each external call
    transcription_duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    translation_duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    tts_duration: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False, index=True
    )

    user: Mapped["User"] = relationship(
        "voicelink.db.models.user.User", back_populates="translations", lazy="noload"
    )

    def __repr__(self) -> str:
        return (
            f"<Translation(id={self.id}, {self.original_language}->{self.target_language}, "
            f"user_id={self.user_id}, session_id={self.session_id and self.session_id[:8]})>"
        )

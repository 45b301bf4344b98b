# backend/voicelink/db/models/feedback.py
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi_users_db_sqlalchemy.generics import GUID
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from voicelink.db.base_class import Base

if TYPE_CHECKING:
    from voicelink.db.models.user import User


class Feedback(Base):
    __tablename__ = "feedback"
    __table_args__ = (
        CheckConstraint("star_rating >= 1 AND star_rating <= 5", name="star_rating_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    star_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    feedback_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    user: Mapped["User | None"] = relationship("voicelink.db.models.user.User", lazy="noload")

    def __repr__(self) -> str:
        return f"<Feedback(id={self.id}, star_rating={self.star_rating}, user_id={self.user_id})>"

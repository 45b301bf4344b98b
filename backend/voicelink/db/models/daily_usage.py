# backend/voicelink/db/models/daily_usage.py
from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from voicelink.db.base_class import Base


class DailyUsage(Base):
    """
    Translations consumed by one identity on one UTC day.

    ``identity_key`` is ``user:<id>``, ``session:<id>``, ``ip:<addr>`` or
    ``anonymous``. The unique constraint is what the atomic upsert conflicts on.
    """

    __tablename__ = "daily_usage"
    __table_args__ = (UniqueConstraint("identity_key", "usage_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    identity_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    usage_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    translation_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<DailyUsage(identity_key={self.identity_key!r}, usage_date={self.usage_date!r}, "
            f"count={self.translation_count})>"
        )

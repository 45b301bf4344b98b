# backend/voicelink/db/models/guest_session.py
"""
Server-side record of an anonymous browser session.

The raw id is also the cookie value. A request only counts as coming from a
persisted session when its cookie matches a row here that has not expired.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from voicelink.db.base_class import Base


class GuestSession(Base):
    __tablename__ = "guest_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # IP address that first created the session
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        # SQLite hands back naive datetimes; they are stored as UTC.
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return now >= expires_at

    def __repr__(self) -> str:
        return f"<GuestSession(id={self.id[:8]}..., expires_at={self.expires_at})>"

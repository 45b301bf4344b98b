# /backend/voicelink/db/models/user.py

from datetime import datetime
from typing import TYPE_CHECKING

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID
from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from voicelink.db.base_class import Base

if TYPE_CHECKING:
    from voicelink.db.models.translation import Translation


class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "users"
    # Fetch server-generated timestamps on INSERT/UPDATE; async sessions cannot lazy-load.
    __mapper_args__ = {"eager_defaults": True}

    first_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    current_country_of_resident: Mapped[str | None] = mapped_column(String(100), nullable=True)
    how_they_heard: Mapped[str | None] = mapped_column(String(200), nullable=True)
    organization: Mapped[str | None] = mapped_column(String(100), nullable=True)
    what_they_do: Mapped[str | None] = mapped_column(String(200), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    translations: Mapped[list["Translation"]] = relationship(
        "voicelink.db.models.translation.Translation",
        back_populates="user",
        passive_deletes=True,
        lazy="noload",
    )

    def __repr__(self) -> str:
        is_s_user = getattr(self, "is_superuser", "N/A")
        return f"<User(id={self.id!r}, email={self.email!r}, is_superuser={is_s_user!r})>"

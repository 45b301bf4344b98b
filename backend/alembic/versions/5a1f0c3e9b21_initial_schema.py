"""Initial schema: users, guest sessions, daily usage, translations, feedback

Revision ID: 5a1f0c3e9b21
Revises:
Create Date: 2026-10-19 10:12:44.518302

"""

from collections.abc import Sequence

import fastapi_users_db_sqlalchemy
import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5a1f0c3e9b21"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", fastapi_users_db_sqlalchemy.generics.GUID(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("hashed_password", sa.String(length=1024), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_superuser", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=True),
        sa.Column("last_name", sa.String(length=50), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("current_country_of_resident", sa.String(length=100), nullable=True),
        sa.Column("how_they_heard", sa.String(length=200), nullable=True),
        sa.Column("organization", sa.String(length=100), nullable=True),
        sa.Column("what_they_do", sa.String(length=200), nullable=True),
        sa.Column("profile_image_url", sa.String(length=1024), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "guest_sessions",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_guest_sessions")),
    )
    op.create_index(
        op.f("ix_guest_sessions_expires_at"), "guest_sessions", ["expires_at"], unique=False
    )

    op.create_table(
        "daily_usage",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("identity_key", sa.String(length=255), nullable=False),
        sa.Column("usage_date", sa.String(length=10), nullable=False),
        sa.Column("translation_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_daily_usage")),
        sa.UniqueConstraint(
            "identity_key", "usage_date", name=op.f("uq_daily_usage_identity_key_usage_date")
        ),
    )
    op.create_index(
        op.f("ix_daily_usage_identity_key"), "daily_usage", ["identity_key"], unique=False
    )
    op.create_index(op.f("ix_daily_usage_usage_date"), "daily_usage", ["usage_date"], unique=False)

    op.create_table(
        "translations",
        sa.Column("id", fastapi_users_db_sqlalchemy.generics.GUID(), nullable=False),
        sa.Column("user_id", fastapi_users_db_sqlalchemy.generics.GUID(), nullable=True),
        sa.Column("session_id", sa.String(length=64), nullable=True),
        sa.Column("original_text", sa.Text(), nullable=False),
        sa.Column("translated_text", sa.Text(), nullable=False),
        sa.Column("original_language", sa.String(length=10), nullable=False),
        sa.Column("target_language", sa.String(length=10), nullable=False),
        sa.Column("original_audio_url", sa.Text(), nullable=True),
        sa.Column("translated_audio_url", sa.Text(), nullable=True),
        sa.Column("transcription_duration", sa.Float(), nullable=True),
        sa.Column("translation_duration", sa.Float(), nullable=True),
        sa.Column("tts_duration", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_translations_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_translations")),
    )
    op.create_index(op.f("ix_translations_user_id"), "translations", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_translations_session_id"), "translations", ["session_id"], unique=False
    )
    op.create_index(
        op.f("ix_translations_created_at"), "translations", ["created_at"], unique=False
    )

    op.create_table(
        "feedback",
        sa.Column("id", fastapi_users_db_sqlalchemy.generics.GUID(), nullable=False),
        sa.Column("user_id", fastapi_users_db_sqlalchemy.generics.GUID(), nullable=True),
        sa.Column("star_rating", sa.Integer(), nullable=False),
        sa.Column("feedback_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "star_rating >= 1 AND star_rating <= 5", name=op.f("ck_feedback_star_rating_range")
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_feedback_user_id_users"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_feedback")),
    )
    op.create_index(op.f("ix_feedback_user_id"), "feedback", ["user_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_feedback_user_id"), table_name="feedback")
    op.drop_table("feedback")
    op.drop_index(op.f("ix_translations_created_at"), table_name="translations")
    op.drop_index(op.f("ix_translations_session_id"), table_name="translations")
    op.drop_index(op.f("ix_translations_user_id"), table_name="translations")
    op.drop_table("translations")
    op.drop_index(op.f("ix_daily_usage_usage_date"), table_name="daily_usage")
    op.drop_index(op.f("ix_daily_usage_identity_key"), table_name="daily_usage")
    op.drop_table("daily_usage")
    op.drop_index(op.f("ix_guest_sessions_expires_at"), table_name="guest_sessions")
    op.drop_table("guest_sessions")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")

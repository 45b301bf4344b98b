# backend/voicelink/crud/crud_translation.py
import logging
import uuid
from datetime import UTC, datetime, time

from sqlalchemy import ColumnElement, delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink.crud.base import CRUDBase
from voicelink.db.models.translation import Translation
from voicelink.schemas.translation import (
    LanguagePairCount,
    TranslationCreateInternal,
    TranslationStats,
)

logger = logging.getLogger(__name__)


def _owner_clause(user_id: uuid.UUID | None, session_id: str | None) -> ColumnElement[bool] | None:
    """History belongs to the user if logged in, otherwise to the guest session."""
    if user_id is not None:
        return Translation.user_id == user_id
    if session_id:
        return Translation.session_id == session_id
    return None


class CRUDTranslation(CRUDBase[Translation, TranslationCreateInternal]):
    async def get_multi_by_owner(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID | None,
        session_id: str | None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Translation]:
        """Newest first. A caller with neither a user nor a session owns nothing."""
        clause = _owner_clause(user_id, session_id)
        if clause is None:
            return []
        stmt = (
            select(self.model)
            .where(clause)
            .order_by(desc(self.model.created_at))
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def remove_by_owner(
        self, db: AsyncSession, *, user_id: uuid.UUID | None, session_id: str | None
    ) -> int:
        clause = _owner_clause(user_id, session_id)
        if clause is None:
            return 0
        result = await db.execute(delete(self.model).where(clause))
        await db.commit()
        logger.info(
            f"Cleared {result.rowcount} translations for "
            f"{'user ' + str(user_id) if user_id else 'guest session'}"
        )
        return result.rowcount

    async def get_stats(
        self, db: AsyncSession, *, user_id: uuid.UUID | None = None, top_pairs: int = 5
    ) -> TranslationStats:
        """Aggregate counts and mean durations, for one user or (``user_id=None``) everyone."""
        scope = [self.model.user_id == user_id] if user_id is not None else []
        start_of_day = datetime.combine(datetime.now(UTC).date(), time.min, tzinfo=UTC)

        totals = (
            await db.execute(
                select(
                    func.count(self.model.id).label("total"),
                    func.avg(self.model.transcription_duration).label("avg_transcription"),
                    func.avg(self.model.translation_duration).label("avg_translation"),
                    func.avg(self.model.tts_duration).label("avg_tts"),
                ).where(*scope)
            )
        ).one()

        today = (
            await db.execute(
                select(func.count(self.model.id)).where(
                    *scope, self.model.created_at >= start_of_day
                )
            )
        ).scalar() or 0

        pair_count = func.count(self.model.id).label("count")
        pairs = (
            await db.execute(
                select(self.model.original_language, self.model.target_language, pair_count)
                .where(*scope)
                .group_by(self.model.original_language, self.model.target_language)
                .order_by(desc(pair_count))
                .limit(top_pairs)
            )
        ).all()

        return TranslationStats(
            total_translations=totals.total or 0,
            translations_today=today,
            avg_transcription_duration=totals.avg_transcription,
            avg_translation_duration=totals.avg_translation,
            avg_tts_duration=totals.avg_tts,
            top_language_pairs=[
                LanguagePairCount(source=src, target=tgt, count=count) for src, tgt, count in pairs
            ],
        )


translation = CRUDTranslation(Translation)

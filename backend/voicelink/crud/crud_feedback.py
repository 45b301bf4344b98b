# backend/voicelink/crud/crud_feedback.py
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from voicelink.crud.base import CRUDBase
from voicelink.db.models.feedback import Feedback
from voicelink.schemas.feedback import FeedbackCreateInternal


class CRUDFeedback(CRUDBase[Feedback, FeedbackCreateInternal]):
    async def get_multi(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100
    ) -> list[Feedback]:
        """Newest first, with the author loaded for display."""
        stmt = (
            select(self.model)
            .options(selectinload(self.model.user))
            .execution_options(populate_existing=True)
            .order_by(desc(self.model.created_at))
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())


feedback = CRUDFeedback(Feedback)

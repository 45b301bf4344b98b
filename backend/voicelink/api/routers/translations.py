# backend/voicelink/api/routers/translations.py
"""
Translation history and statistics.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink import crud
from voicelink.api.deps import get_identity_context
from voicelink.core.request_context import RequestIdentityContext
from voicelink.core.users import current_active_user
from voicelink.db.models.user import User
from voicelink.db.session import get_async_session
from voicelink.schemas.translation import (
    ClearTranslationsResponse,
    TranslationRead,
    TranslationStats,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Translation History"])


def _owner(identity: RequestIdentityContext) -> tuple[uuid.UUID | None, str | None]:
    if identity.user_id:
        return uuid.UUID(identity.user_id), None
    return None, identity.session_id


@router.get(
    "/translations",
    response_model=list[TranslationRead],
    summary="List the caller's translations, newest first",
)
async def list_translations(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    identity: RequestIdentityContext = Depends(get_identity_context),
    db: AsyncSession = Depends(get_async_session),
) -> list[TranslationRead]:
    user_id, session_id = _owner(identity)
    items = await crud.translation.get_multi_by_owner(
        db, user_id=user_id, session_id=session_id, skip=skip, limit=limit
    )
    return [TranslationRead.model_validate(item) for item in items]


@router.delete(
    "/translations",
    response_model=ClearTranslationsResponse,
    summary="Delete the caller's translation history",
)
async def clear_translations(
    identity: RequestIdentityContext = Depends(get_identity_context),
    db: AsyncSession = Depends(get_async_session),
) -> ClearTranslationsResponse:
    user_id, session_id = _owner(identity)
    await crud.translation.remove_by_owner(db, user_id=user_id, session_id=session_id)
    return ClearTranslationsResponse(message="All translations cleared successfully")


@router.get(
    "/stats",
    response_model=TranslationStats,
    summary="Aggregate translation statistics",
)
async def get_translation_stats(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(current_active_user),
) -> TranslationStats:
    """
    Totals, average step durations (ms) and the most used language pairs.

    Regular users see their own translations; superusers see everyone's.
    """
    scope_user_id = None if current_user.is_superuser else current_user.id
    return await crud.translation.get_stats(db, user_id=scope_user_id)

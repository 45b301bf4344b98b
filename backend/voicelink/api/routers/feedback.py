# backend/voicelink/api/routers/feedback.py
import logging

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink import crud
from voicelink.core.rate_limit import limiter
from voicelink.core.users import current_active_user, current_optional_user
from voicelink.db.models.user import User
from voicelink.db.session import get_async_session
from voicelink.schemas.feedback import (
    FeedbackAuthor,
    FeedbackCreate,
    FeedbackCreateInternal,
    FeedbackRead,
    FeedbackSubmitted,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.post(
    "",
    response_model=FeedbackSubmitted,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a star rating with an optional message",
)
@limiter.limit("3/minute")
async def submit_feedback(
    request: Request,
    feedback_in: FeedbackCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User | None = Depends(current_optional_user),
) -> FeedbackSubmitted:
    created = await crud.feedback.create(
        db,
        obj_in=FeedbackCreateInternal(
            user_id=current_user.id if current_user else None,
            star_rating=feedback_in.star_rating,
            feedback_message=feedback_in.feedback_message,
        ),
    )
    logger.info(
        f"Feedback {created.id} received: {created.star_rating} stars "
        f"from {'user ' + str(current_user.id) if current_user else 'a guest'}"
    )
    feedback_out = FeedbackRead.model_validate(created)
    if current_user:
        feedback_out.user = FeedbackAuthor.model_validate(current_user)
    return FeedbackSubmitted(message="Thank you for your feedback!", feedback=feedback_out)


@router.get("", response_model=list[FeedbackRead], summary="List feedback, newest first")
async def list_feedback(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_async_session),
    _current_user: User = Depends(current_active_user),
) -> list[FeedbackRead]:
    items = await crud.feedback.get_multi(db, skip=skip, limit=limit)
    return [FeedbackRead.model_validate(item) for item in items]

# backend/voicelink/api/routers/translate.py
import logging
import uuid

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink import crud
from voicelink.api.deps import get_identity_context, get_translation_pipeline, get_usage_accountant
from voicelink.core.log_utils import mask_identity_key
from voicelink.core.request_context import RequestIdentityContext
from voicelink.db.session import get_async_session
from voicelink.schemas.translation import (
    TranslateRequest,
    TranslateResponse,
    TranslationCreateInternal,
)
from voicelink.schemas.usage import LimitExceededResponse
from voicelink.services.translation_pipeline import TranslationPipeline
from voicelink.services.usage_accountant import LimitStatus, UsageAccountant, usage_day

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Translate"])


def _limit_exceeded(limit: LimitStatus, response: Response) -> JSONResponse:
    body = LimitExceededResponse(
        message=limit.message or "",
        remaining_translations=limit.remaining,
        is_authenticated=limit.is_authenticated,
    )
    denied = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=body.model_dump(by_alias=True),
    )
    # Keep any guest-session cookie issued while resolving the caller.
    for cookie in response.headers.getlist("set-cookie"):
        denied.headers.append("set-cookie", cookie)
    return denied


@router.post(
    "/translate",
    response_model=TranslateResponse,
    response_model_exclude_none=True,
    responses={status.HTTP_429_TOO_MANY_REQUESTS: {"model": LimitExceededResponse}},
    summary="Translate recorded speech",
)
async def translate(
    payload: TranslateRequest,
    response: Response,
    identity: RequestIdentityContext = Depends(get_identity_context),
    accountant: UsageAccountant = Depends(get_usage_accountant),
    pipeline: TranslationPipeline = Depends(get_translation_pipeline),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Check the caller's quota, run the pipeline, then count the translation.

    Usage is recorded only after the pipeline succeeded, so failed attempts
    are free.
    """
    identity_key = identity.identity_key
    today = usage_day()

    limit = await accountant.check_limit(identity_key, today, identity.is_authenticated)
    if not limit.can_proceed:
        return _limit_exceeded(limit, response)

    logger.info(
        f"Translating for {mask_identity_key(identity_key)}: "
        f"{payload.source_language}->{payload.target_language}"
    )
    outcome = await pipeline.run(payload)

    # Counted against the day the translation completed, which may be past midnight.
    await accountant.record_usage(identity_key, usage_day())

    saved = await crud.translation.create(
        db,
        obj_in=TranslationCreateInternal(
            user_id=uuid.UUID(identity.user_id) if identity.user_id else None,
            session_id=None if identity.is_authenticated else identity.session_id,
            original_text=outcome.original_text,
            translated_text=outcome.translated_text,
            original_language=outcome.original_language,
            target_language=outcome.target_language,
            original_audio_url=outcome.original_audio_url,
            translated_audio_url=outcome.translated_audio_url,
            transcription_duration=outcome.transcription_duration,
            translation_duration=outcome.translation_duration,
            tts_duration=outcome.tts_duration,
        ),
    )

    return TranslateResponse(
        id=saved.id,
        original_text=outcome.original_text,
        translated_text=outcome.translated_text,
        original_language=outcome.original_language,
        target_language=outcome.target_language,
        original_audio_url=outcome.original_audio_url,
        translated_audio_url=outcome.translated_audio_url,
        tts_available=outcome.tts_available,
        tts_error=outcome.tts_error,
    )

# backend/voicelink/api/deps.py
"""
Request-scoped dependencies shared by the routers.

``get_identity_context`` is the only place where a request is turned into a
``RequestIdentityContext``; handlers receive that value instead of reading
cookies, users or client addresses themselves.
"""

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink.core.config import settings
from voicelink.core.rate_limit import get_real_client_ip
from voicelink.core.request_context import RequestIdentityContext
from voicelink.core.users import current_optional_user
from voicelink.db.models.user import User
from voicelink.db.session import get_async_session
from voicelink.services.guest_sessions import resolve_guest_session
from voicelink.services.speech import SpeechService
from voicelink.services.translation_pipeline import TranslationPipeline
from voicelink.services.usage_accountant import UsageAccountant
from voicelink.services.usage_store import InMemoryUsageStore, SQLAlchemyUsageStore, UsageStore

# Only used with USAGE_STORE_BACKEND=memory; lives as long as the process.
_memory_usage_store = InMemoryUsageStore()


async def get_identity_context(
    request: Request,
    response: Response,
    user: User | None = Depends(current_optional_user),
    db: AsyncSession = Depends(get_async_session),
) -> RequestIdentityContext:
    ip_address = get_real_client_ip(request)
    if user is not None:
        return RequestIdentityContext(user_id=str(user.id), ip_address=ip_address)

    session_id, persisted = await resolve_guest_session(db, request, response)
    return RequestIdentityContext(
        session_id=session_id,
        session_is_persisted=persisted,
        ip_address=ip_address,
    )


async def get_usage_store(db: AsyncSession = Depends(get_async_session)) -> UsageStore:
    if settings.USAGE_STORE_BACKEND == "memory":
        return _memory_usage_store
    return SQLAlchemyUsageStore(db)


async def get_usage_accountant(
    store: UsageStore = Depends(get_usage_store),
) -> UsageAccountant:
    return UsageAccountant(store)


def get_speech_service() -> SpeechService:
    return SpeechService()


def get_translation_pipeline(
    speech: SpeechService = Depends(get_speech_service),
) -> TranslationPipeline:
    return TranslationPipeline(speech)

# backend/voicelink/services/guest_sessions.py
import logging
import secrets
from datetime import UTC, datetime, timedelta

from fastapi import Request, Response
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink.core.config import settings
from voicelink.core.rate_limit import get_real_client_ip
from voicelink.db.models.guest_session import GuestSession
from voicelink.exceptions import GuestSessionStorageError

logger = logging.getLogger(__name__)

MAX_SESSION_ID_LENGTH = 64


def generate_session_id() -> str:
    """Generate an opaque guest session id (43 url-safe characters)."""
    return secrets.token_urlsafe(32)


def set_guest_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.GUEST_SESSION_COOKIE_NAME,
        value=session_id,
        max_age=settings.GUEST_SESSION_TTL_DAYS * 24 * 60 * 60,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
    )


async def get_live_session(db: AsyncSession, session_id: str) -> GuestSession | None:
    """Return the guest session row for ``session_id`` if it exists and has not expired."""
    if not session_id or len(session_id) > MAX_SESSION_ID_LENGTH:
        return None
    result = await db.execute(select(GuestSession).where(GuestSession.id == session_id))
    guest = result.scalar_one_or_none()
    if guest is None or guest.is_expired():
        return None
    return guest


async def resolve_guest_session(
    db: AsyncSession, request: Request, response: Response
) -> tuple[str, bool]:
    """
    Return ``(session_id, persisted)`` for an unauthenticated caller.

    ``persisted`` is True only when the cookie came back and matches a live
    row. Otherwise a new session is stored, its cookie set on ``response``,
    and ``persisted`` is False for the rest of this request.

    Raises:
        GuestSessionStorageError: the session table could not be read or written.
    """
    now = datetime.now(UTC)
    cookie_value = request.cookies.get(settings.GUEST_SESSION_COOKIE_NAME)

    try:
        if cookie_value:
            guest = await get_live_session(db, cookie_value)
            if guest is not None:
                guest.last_seen_at = now
                await db.commit()
                return guest.id, True
            logger.debug("Guest session cookie did not match a live session; issuing a new one.")

        user_agent = request.headers.get("User-Agent") or None
        guest = GuestSession(
            id=generate_session_id(),
            ip_address=get_real_client_ip(request),
            user_agent=user_agent[:512] if user_agent else None,
            created_at=now,
            expires_at=now + timedelta(days=settings.GUEST_SESSION_TTL_DAYS),
            last_seen_at=now,
        )
        db.add(guest)
        await db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Guest session lookup/creation failed: {e}", exc_info=True)
        await db.rollback()
        raise GuestSessionStorageError("Failed to establish guest session") from e

    set_guest_cookie(response, guest.id)
    logger.info(f"Issued guest session {guest.id[:8]}... to {guest.ip_address or 'unknown IP'}")
    return guest.id, False

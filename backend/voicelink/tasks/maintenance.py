# backend/voicelink/tasks/maintenance.py
"""
Periodic clean-up of guest sessions, old usage counters and saved audio.
"""

import asyncio
import logging
import time
from datetime import UTC, datetime
from pathlib import Path

from dateutil.relativedelta import relativedelta
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink.core.config import settings
from voicelink.db import session as db_session
from voicelink.db.models.daily_usage import DailyUsage
from voicelink.db.models.guest_session import GuestSession
from voicelink.services.usage_accountant import usage_day
from voicelink.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def delete_expired_guest_sessions(db: AsyncSession, now: datetime | None = None) -> int:
    now = now or datetime.now(UTC)
    result = await db.execute(delete(GuestSession).where(GuestSession.expires_at <= now))
    await db.commit()
    return result.rowcount or 0


async def delete_usage_before(db: AsyncSession, cutoff_day: str) -> int:
    """Drop counters for days strictly before ``cutoff_day`` (``YYYY-MM-DD``)."""
    result = await db.execute(delete(DailyUsage).where(DailyUsage.usage_date < cutoff_day))
    await db.commit()
    return result.rowcount or 0


def usage_cutoff_day(retention_days: int, now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return usage_day(now - relativedelta(days=retention_days))


def remove_audio_older_than(directory: Path, max_age_seconds: float, now: float | None = None) -> int:
    if not directory.is_dir():
        return 0
    now = now or time.time()
    removed = 0
    for path in directory.iterdir():
        if path.is_file() and now - path.stat().st_mtime > max_age_seconds:
            path.unlink(missing_ok=True)
            removed += 1
    return removed


async def _with_worker_session(work):
    db_session.initialize_worker_db_resources()
    async with db_session.get_worker_db_session() as db:
        return await work(db)


@celery_app.task(name="voicelink.tasks.maintenance.purge_expired_guest_sessions")
def purge_expired_guest_sessions():
    deleted = asyncio.run(_with_worker_session(delete_expired_guest_sessions))
    logger.info(f"Maintenance: removed {deleted} expired guest sessions.")
    return deleted


@celery_app.task(name="voicelink.tasks.maintenance.purge_old_usage_records")
def purge_old_usage_records():
    cutoff = usage_cutoff_day(settings.USAGE_RETENTION_DAYS)

    async def _purge(db: AsyncSession) -> int:
        return await delete_usage_before(db, cutoff)

    deleted = asyncio.run(_with_worker_session(_purge))
    logger.info(f"Maintenance: removed {deleted} usage rows older than {cutoff}.")
    return deleted


@celery_app.task(name="voicelink.tasks.maintenance.purge_stale_audio_files")
def purge_stale_audio_files():
    removed = remove_audio_older_than(
        settings.AUDIO_UPLOAD_DIR, settings.AUDIO_RETENTION_DAYS * 24 * 60 * 60
    )
    logger.info(f"Maintenance: removed {removed} audio files from {settings.AUDIO_UPLOAD_DIR}.")
    return removed

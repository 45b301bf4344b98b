# backend/voicelink/services/usage_accountant.py
"""
Daily translation quota for guests.

Authenticated users are unmetered. Everyone else is bucketed by identity key
(persisted guest session, else IP) and UTC day, and may complete
``GUEST_DAILY_TRANSLATION_LIMIT`` translations per bucket.
"""

import logging
from datetime import UTC, datetime
from typing import NamedTuple

from voicelink.core.config import settings
from voicelink.core.log_utils import mask_identity_key
from voicelink.core.request_context import ANONYMOUS_IDENTITY, resolve_identity
from voicelink.services.usage_store import UsageRecord, UsageStore

logger = logging.getLogger(__name__)

UNLIMITED = -1

__all__ = [
    "ANONYMOUS_IDENTITY",
    "UNLIMITED",
    "LimitStatus",
    "UsageAccountant",
    "resolve_identity",
    "usage_day",
]


def usage_day(now: datetime | None = None) -> str:
    """The UTC calendar day a usage event is counted against, as ``YYYY-MM-DD``."""
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(UTC).strftime("%Y-%m-%d")


class LimitStatus(NamedTuple):
    can_proceed: bool
    remaining: int
    is_authenticated: bool
    message: str | None = None


class UsageAccountant:
    def __init__(self, store: UsageStore, daily_limit: int | None = None):
        self.store = store
        self.daily_limit = (
            settings.GUEST_DAILY_TRANSLATION_LIMIT if daily_limit is None else daily_limit
        )

    def limit_message(self, remaining: int) -> str:
        if remaining <= 0:
            return (
                f"You've reached your daily limit of {self.daily_limit} translations. "
                "Create an account for more translations!"
            )
        return f"{remaining} translations remaining today. Create an account for more access!"

    async def check_limit(
        self, identity_key: str, usage_date: str, is_authenticated: bool
    ) -> LimitStatus:
        """
        Report whether another translation is allowed. Never writes.

        Raises:
            UsageStorageUnavailableError: the store could not be read.
        """
        if is_authenticated:
            return LimitStatus(can_proceed=True, remaining=UNLIMITED, is_authenticated=True)

        record = await self.store.get_usage(identity_key, usage_date)
        used = record.count if record else 0
        remaining = max(0, self.daily_limit - used)
        status = LimitStatus(
            can_proceed=remaining > 0,
            remaining=remaining,
            is_authenticated=False,
            message=self.limit_message(remaining),
        )
        if not status.can_proceed:
            logger.info(
                f"Daily limit reached for {mask_identity_key(identity_key)} on {usage_date} "
                f"({used}/{self.daily_limit})"
            )
        return status

    async def record_usage(self, identity_key: str, usage_date: str) -> UsageRecord:
        """Count one completed translation. Call once, after the translation succeeded."""
        record = await self.store.upsert_increment(identity_key, usage_date)
        logger.info(
            f"Recorded translation for {mask_identity_key(identity_key)} on {usage_date}; "
            f"count={record.count}"
        )
        return record

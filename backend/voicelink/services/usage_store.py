# backend/voicelink/services/usage_store.py
"""
Storage for daily usage counters.

``UsageStore`` is the port the usage accountant depends on. The SQLAlchemy
implementation increments with a single ``INSERT ... ON CONFLICT DO UPDATE``
statement so two requests for the same identity and day can never both read 0
and write 1.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink.core.log_utils import mask_identity_key
from voicelink.db.models.daily_usage import DailyUsage
from voicelink.exceptions import UsageStorageUnavailableError

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class UsageRecord:
    identity_key: str
    usage_date: str
    count: int
    updated_at: datetime | None = None


class UsageStore(Protocol):
    async def get_usage(self, identity_key: str, usage_date: str) -> UsageRecord | None: ...

    async def upsert_increment(self, identity_key: str, usage_date: str) -> UsageRecord: ...


def _to_record(row: DailyUsage) -> UsageRecord:
    return UsageRecord(
        identity_key=row.identity_key,
        usage_date=row.usage_date,
        count=row.translation_count,
        updated_at=row.updated_at,
    )


class SQLAlchemyUsageStore:
    """Usage store on the request's ``AsyncSession``. Commits after each increment."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_usage(self, identity_key: str, usage_date: str) -> UsageRecord | None:
        stmt = select(DailyUsage).where(
            DailyUsage.identity_key == identity_key, DailyUsage.usage_date == usage_date
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(
                f"Usage lookup failed for {mask_identity_key(identity_key)} on {usage_date}: {e}",
                exc_info=True,
            )
            await self._rollback_quietly()
            raise UsageStorageUnavailableError("Failed to check usage limit") from e
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def upsert_increment(self, identity_key: str, usage_date: str) -> UsageRecord:
        try:
            dialect_name = self.session.get_bind().dialect.name
            insert_fn = _DIALECT_INSERTS.get(dialect_name)
            if insert_fn is None:
                raise UsageStorageUnavailableError(
                    f"Atomic usage increment is not supported on '{dialect_name}'"
                )

            now = datetime.now(UTC)
            stmt = insert_fn(DailyUsage).values(
                identity_key=identity_key,
                usage_date=usage_date,
                translation_count=1,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[DailyUsage.identity_key, DailyUsage.usage_date],
                set_={
                    "translation_count": DailyUsage.translation_count + 1,
                    "updated_at": now,
                },
            )
            await self.session.execute(stmt)

            # Same transaction, so this sees our own write.
            result = await self.session.execute(
                select(DailyUsage)
                .where(
                    DailyUsage.identity_key == identity_key,
                    DailyUsage.usage_date == usage_date,
                )
                .execution_options(populate_existing=True)
            )
            row = result.scalar_one()
            record = _to_record(row)
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Usage increment failed for {mask_identity_key(identity_key)} on {usage_date}: {e}",
                exc_info=True,
            )
            await self._rollback_quietly()
            raise UsageStorageUnavailableError("Failed to record usage") from e

        logger.debug(
            f"Usage for {mask_identity_key(identity_key)} on {usage_date} is now {record.count}"
        )
        return record

    async def _rollback_quietly(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.warning(f"Rollback after usage store failure also failed: {rollback_error}")


class InMemoryUsageStore:
    """
    Process-local usage store for single-worker development setups.

    Counters live only as long as the process; the lock makes the increment
    atomic across concurrent requests on the same event loop.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], UsageRecord] = {}
        self._lock = asyncio.Lock()

    async def get_usage(self, identity_key: str, usage_date: str) -> UsageRecord | None:
        return self._records.get((identity_key, usage_date))

    async def upsert_increment(self, identity_key: str, usage_date: str) -> UsageRecord:
        async with self._lock:
            current = self._records.get((identity_key, usage_date))
            record = UsageRecord(
                identity_key=identity_key,
                usage_date=usage_date,
                count=(current.count if current else 0) + 1,
                updated_at=datetime.now(UTC),
            )
            self._records[(identity_key, usage_date)] = record
            return record

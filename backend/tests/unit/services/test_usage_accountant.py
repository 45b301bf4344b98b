# backend/tests/unit/services/test_usage_accountant.py
from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from voicelink.exceptions import UsageStorageUnavailableError
from voicelink.services.usage_accountant import UNLIMITED, UsageAccountant, usage_day
from voicelink.services.usage_store import InMemoryUsageStore, UsageRecord

GUEST = "ip:9.9.9.9"
DAY = "2025-06-01"


@pytest.fixture
def store() -> InMemoryUsageStore:
    return InMemoryUsageStore()


@pytest.fixture
def accountant(store) -> UsageAccountant:
    return UsageAccountant(store, daily_limit=3)


class TestUsageDay:
    def test_formats_utc_date(self) -> None:
        assert usage_day(datetime(2025, 6, 1, 23, 59, tzinfo=UTC)) == "2025-06-01"

    def test_converts_other_timezones_to_utc(self) -> None:
        kigali = timezone(timedelta(hours=2))
        assert usage_day(datetime(2025, 6, 2, 1, 30, tzinfo=kigali)) == "2025-06-01"

    def test_naive_datetimes_are_taken_as_utc(self) -> None:
        assert usage_day(datetime(2025, 6, 1, 0, 0)) == "2025-06-01"


@pytest.mark.asyncio
async def test_fresh_guest_has_full_quota(accountant) -> None:
    status = await accountant.check_limit(GUEST, DAY, is_authenticated=False)

    assert status.can_proceed is True
    assert status.remaining == 3
    assert status.is_authenticated is False
    assert status.message == "3 translations remaining today. Create an account for more access!"


@pytest.mark.asyncio
async def test_three_recorded_translations_exhaust_the_quota(accountant) -> None:
    for _ in range(3):
        await accountant.record_usage(GUEST, DAY)

    status = await accountant.check_limit(GUEST, DAY, is_authenticated=False)

    assert status.can_proceed is False
    assert status.remaining == 0
    assert "daily limit of 3 translations" in status.message


@pytest.mark.asyncio
async def test_remaining_never_goes_negative(accountant, store) -> None:
    for _ in range(5):
        await store.upsert_increment(GUEST, DAY)

    status = await accountant.check_limit(GUEST, DAY, is_authenticated=False)
    assert status.remaining == 0


@pytest.mark.asyncio
async def test_check_limit_does_not_write(accountant, store) -> None:
    await accountant.check_limit(GUEST, DAY, is_authenticated=False)
    await accountant.check_limit(GUEST, DAY, is_authenticated=False)

    assert await store.get_usage(GUEST, DAY) is None


@pytest.mark.asyncio
async def test_authenticated_users_skip_storage() -> None:
    store = AsyncMock()
    accountant = UsageAccountant(store, daily_limit=3)

    status = await accountant.check_limit("user:42", DAY, is_authenticated=True)

    assert status.can_proceed is True
    assert status.remaining == UNLIMITED
    assert status.is_authenticated is True
    assert status.message is None
    store.get_usage.assert_not_called()


@pytest.mark.asyncio
async def test_days_are_counted_separately(accountant) -> None:
    for _ in range(3):
        await accountant.record_usage(GUEST, DAY)

    status = await accountant.check_limit(GUEST, "2025-06-02", is_authenticated=False)
    assert status.remaining == 3


@pytest.mark.asyncio
async def test_identities_are_counted_separately(accountant) -> None:
    await accountant.record_usage(GUEST, DAY)

    status = await accountant.check_limit("session:abc", DAY, is_authenticated=False)
    assert status.remaining == 3


@pytest.mark.asyncio
async def test_record_usage_returns_new_count(accountant) -> None:
    first = await accountant.record_usage(GUEST, DAY)
    second = await accountant.record_usage(GUEST, DAY)

    assert first.count == 1
    assert second.count == 2


@pytest.mark.asyncio
async def test_zero_limit_blocks_guests_immediately(store) -> None:
    accountant = UsageAccountant(store, daily_limit=0)
    status = await accountant.check_limit(GUEST, DAY, is_authenticated=False)

    assert status.can_proceed is False
    assert "daily limit of 0 translations" in status.message


@pytest.mark.asyncio
async def test_storage_failure_on_check_propagates() -> None:
    store = AsyncMock()
    store.get_usage.side_effect = UsageStorageUnavailableError("Failed to check usage limit")
    accountant = UsageAccountant(store, daily_limit=3)

    with pytest.raises(UsageStorageUnavailableError):
        await accountant.check_limit(GUEST, DAY, is_authenticated=False)


@pytest.mark.asyncio
async def test_storage_failure_on_record_propagates() -> None:
    store = AsyncMock()
    store.upsert_increment.side_effect = UsageStorageUnavailableError("Failed to record usage")
    accountant = UsageAccountant(store, daily_limit=3)

    with pytest.raises(UsageStorageUnavailableError):
        await accountant.record_usage(GUEST, DAY)


@pytest.mark.asyncio
async def test_partial_usage_is_reported(store) -> None:
    store.get_usage = AsyncMock(
        return_value=UsageRecord(identity_key=GUEST, usage_date=DAY, count=2)
    )
    accountant = UsageAccountant(store, daily_limit=3)

    status = await accountant.check_limit(GUEST, DAY, is_authenticated=False)
    assert status.can_proceed is True
    assert status.remaining == 1
    assert status.message.startswith("1 translations remaining today")

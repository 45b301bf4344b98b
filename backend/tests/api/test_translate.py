# backend/tests/api/test_translate.py
import base64
import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink.api.deps import get_usage_store
from voicelink.core.config import settings
from voicelink.db.models.daily_usage import DailyUsage
from voicelink.db.models.translation import Translation
from voicelink.exceptions import UsageStorageUnavailableError
from voicelink.main import app
from voicelink.services.speech import NO_SPEECH_DETECTED, TRANSCRIPTION_FAILED

AUDIO_B64 = base64.b64encode(b"RIFF fake wav payload").decode()
TRANSLATE_BODY = {"audioData": AUDIO_B64, "sourceLanguage": "en", "targetLanguage": "rw"}


async def _start_guest_session(client: AsyncClient) -> str:
    """Make the first-contact request a browser would, so later calls carry the cookie."""
    response = await client.get("/api/usage-limit")
    assert response.status_code == status.HTTP_200_OK
    return client.cookies[settings.GUEST_SESSION_COOKIE_NAME]


@pytest.mark.asyncio
async def test_guest_translation_succeeds(test_client: AsyncClient, fake_ai) -> None:
    await _start_guest_session(test_client)

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["originalText"] == "Good morning"
    assert data["translatedText"] == "Mwaramutse"
    assert data["originalLanguage"] == "en"
    assert data["targetLanguage"] == "rw"
    assert data["ttsAvailable"] is True
    assert data["translatedAudioUrl"].startswith("/uploads/audio/")
    assert "ttsError" not in data
    uuid.UUID(data["id"])


@pytest.mark.asyncio
async def test_fourth_guest_translation_is_refused(
    test_client: AsyncClient, db_session: AsyncSession
) -> None:
    session_id = await _start_guest_session(test_client)

    for _ in range(3):
        response = await test_client.post("/api/translate", json=TRANSLATE_BODY)
        assert response.status_code == status.HTTP_200_OK

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.json() == {
        "message": "You've reached your daily limit of 3 translations. "
        "Create an account for more translations!",
        "canTranslate": False,
        "remainingTranslations": 0,
        "isAuthenticated": False,
    }

    usage = (
        await db_session.execute(
            select(DailyUsage).where(DailyUsage.identity_key == f"session:{session_id}")
        )
    ).scalar_one()
    assert usage.translation_count == 3


@pytest.mark.asyncio
async def test_first_contact_counts_against_ip(
    test_client: AsyncClient, db_session: AsyncSession
) -> None:
    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_200_OK
    assert settings.GUEST_SESSION_COOKIE_NAME in response.cookies
    keys = (await db_session.execute(select(DailyUsage.identity_key))).scalars().all()
    assert keys == ["ip:127.0.0.1"]


async def _translate_without_cookie(client: AsyncClient, forwarded_for: str):
    client.cookies.clear()
    return await client.post(
        "/api/translate", json=TRANSLATE_BODY, headers={"X-Forwarded-For": forwarded_for}
    )


@pytest.mark.asyncio
async def test_forged_forwarding_header_does_not_reset_guest_cap(
    test_client: AsyncClient, db_session: AsyncSession
) -> None:
    codes = [
        (await _translate_without_cookie(test_client, f"6.6.6.{i}, 10.0.0.1")).status_code
        for i in range(4)
    ]

    assert codes == [200, 200, 200, 429]
    keys = (await db_session.execute(select(DailyUsage.identity_key))).scalars().all()
    assert keys == ["ip:127.0.0.1"]


@pytest.mark.asyncio
async def test_behind_proxy_only_the_appended_hop_counts(
    test_client: AsyncClient, db_session: AsyncSession, monkeypatch
) -> None:
    monkeypatch.setattr(settings, "TRUSTED_PROXY_HOPS", 1)

    codes = [
        (await _translate_without_cookie(test_client, f"6.6.6.{i}, 10.0.0.1")).status_code
        for i in range(4)
    ]

    assert codes == [200, 200, 200, 429]
    keys = (await db_session.execute(select(DailyUsage.identity_key))).scalars().all()
    assert keys == ["ip:10.0.0.1"]


@pytest.mark.asyncio
async def test_translation_finishing_after_midnight_counts_on_the_new_day(
    test_client: AsyncClient, db_session: AsyncSession, monkeypatch
) -> None:
    days = iter(["2025-06-01", "2025-06-02"])
    monkeypatch.setattr("voicelink.api.routers.translate.usage_day", lambda: next(days))

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_200_OK
    usage_dates = (await db_session.execute(select(DailyUsage.usage_date))).scalars().all()
    assert usage_dates == ["2025-06-02"]


@pytest.mark.asyncio
async def test_failed_translation_does_not_consume_quota(
    test_client: AsyncClient, fake_ai
) -> None:
    await _start_guest_session(test_client)
    fake_ai.gemini_status = 503

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": TRANSCRIPTION_FAILED}

    limit = (await test_client.get("/api/usage-limit")).json()
    assert limit["remainingTranslations"] == 3


@pytest.mark.asyncio
async def test_silent_audio_is_a_client_error(test_client: AsyncClient, fake_ai) -> None:
    await _start_guest_session(test_client)
    fake_ai.transcript = ""

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"detail": NO_SPEECH_DETECTED}
    limit = (await test_client.get("/api/usage-limit")).json()
    assert limit["remainingTranslations"] == 3


@pytest.mark.asyncio
async def test_invalid_audio_is_rejected(test_client: AsyncClient) -> None:
    response = await test_client.post(
        "/api/translate", json={**TRANSLATE_BODY, "audioData": "%%% not base64 %%%"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_unknown_language_is_a_validation_error(test_client: AsyncClient) -> None:
    response = await test_client.post(
        "/api/translate", json={**TRANSLATE_BODY, "targetLanguage": "xx"}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_tts_failure_still_returns_translation(test_client: AsyncClient, fake_ai) -> None:
    fake_ai.tts_status = 500

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["translatedText"] == "Mwaramutse"
    assert data["ttsAvailable"] is False
    assert data["ttsError"]
    assert "translatedAudioUrl" not in data


@pytest.mark.asyncio
async def test_tts_language_rejection_names_the_language(
    test_client: AsyncClient, fake_ai
) -> None:
    fake_ai.tts_status = 400
    fake_ai.tts_error_detail = {"status": "invalid_language", "message": "Language not supported"}

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["ttsAvailable"] is False
    assert data["ttsError"] == "Speech synthesis is not available for Kinyarwanda at this time."


@pytest.mark.asyncio
async def test_usage_storage_failure_is_a_server_error(test_client: AsyncClient, fake_ai) -> None:
    broken_store = AsyncMock()
    broken_store.get_usage.side_effect = UsageStorageUnavailableError("Failed to check usage limit")
    app.dependency_overrides[get_usage_store] = lambda: broken_store

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert "detail" in response.json()
    assert fake_ai.requests == []


@pytest.mark.asyncio
async def test_recording_failure_is_a_server_error(test_client: AsyncClient) -> None:
    store = AsyncMock()
    store.get_usage.return_value = None
    store.upsert_increment.side_effect = UsageStorageUnavailableError("Failed to record usage")
    app.dependency_overrides[get_usage_store] = lambda: store

    response = await test_client.post("/api/translate", json=TRANSLATE_BODY)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR


@pytest.mark.asyncio
async def test_authenticated_user_is_never_limited(
    test_client: AsyncClient, auth_headers, db_session: AsyncSession, test_user
) -> None:
    for _ in range(5):
        response = await test_client.post(
            "/api/translate", json=TRANSLATE_BODY, headers=auth_headers
        )
        assert response.status_code == status.HTTP_200_OK

    rows = (
        await db_session.execute(select(Translation).where(Translation.user_id == test_user.id))
    ).scalars().all()
    assert len(rows) == 5
    assert all(row.session_id is None for row in rows)

# backend/tests/unit/services/test_speech_service.py
import json

import httpx
import pytest

from tests.utils.fake_ai_services import FakeAIServices
from voicelink.exceptions import (
    ExternalServiceNotConfiguredError,
    NoSpeechDetectedError,
    SpeechLanguageUnsupportedError,
    TranslationPipelineError,
)
from voicelink.services.gemini_client import GeminiAPIError, GeminiClient
from voicelink.services.speech import (
    NO_SPEECH_DETECTED,
    TRANSCRIPTION_FAILED,
    TRANSLATION_FAILED,
    TTS_FAILED,
    TTS_LANGUAGE_UNSUPPORTED,
    LanguagePair,
    SpeechService,
    direct_translation_prompt,
    strip_wrapping_quotes,
)
from voicelink.services.voice_mapping import ELEVENLABS_VOICES, voice_id_for

AUDIO = b"RIFF....WAVEfmt "


@pytest.fixture
def fake_ai() -> FakeAIServices:
    return FakeAIServices()


@pytest.fixture
def speech(fake_ai) -> SpeechService:
    return fake_ai.speech_service()


class TestPrompts:
    def test_strip_wrapping_quotes(self) -> None:
        assert strip_wrapping_quotes('"Muraho"') == "Muraho"
        assert strip_wrapping_quotes("'Muraho'") == "Muraho"
        assert strip_wrapping_quotes("Muraho") == "Muraho"
        assert strip_wrapping_quotes("") == ""

    def test_direct_prompt_with_pair_asks_for_opposite_language(self) -> None:
        prompt = direct_translation_prompt("auto", "rw", LanguagePair("en", "rw"))
        assert "If the speech is English, output the Kinyarwanda translation" in prompt
        assert "If the speech is Kinyarwanda, output the English translation" in prompt

    def test_direct_prompt_with_known_source(self) -> None:
        prompt = direct_translation_prompt("fr", "en", None)
        assert prompt.startswith("Translate this French audio directly to English.")


@pytest.mark.asyncio
async def test_speech_to_text_returns_transcript(speech, fake_ai) -> None:
    result = await speech.speech_to_text(AUDIO, "en", "gemini-2.5-flash")

    assert result.text == "Good morning"
    assert result.detected_language is None
    assert fake_ai.gemini_prompts() == ["Generate a transcript of this English speech."]


@pytest.mark.asyncio
async def test_speech_to_text_sends_audio_inline(speech, fake_ai) -> None:
    await speech.speech_to_text(AUDIO, "en", "gemini-2.5-pro")

    request = fake_ai.requests[0]
    assert request.url.path == "/v1beta/models/gemini-2.5-pro:generateContent"
    assert request.url.params["key"] == "test-gemini-key"
    parts = json.loads(request.content)["contents"][0]["parts"]
    assert parts[1]["inline_data"]["mime_type"] == "audio/wav"


@pytest.mark.asyncio
async def test_auto_detection_with_pair_runs_detection(speech, fake_ai) -> None:
    fake_ai.detected_language = "rw"

    result = await speech.speech_to_text(
        AUDIO, "auto", "gemini-2.5-flash", LanguagePair("en", "rw")
    )

    assert result.detected_language == "rw"
    assert len(fake_ai.gemini_prompts()) == 2


@pytest.mark.asyncio
async def test_unclear_detection_answer_is_ignored(speech, fake_ai) -> None:
    fake_ai.detected_language = "I think it is English"

    result = await speech.speech_to_text(
        AUDIO, "auto", "gemini-2.5-flash", LanguagePair("en", "rw")
    )

    assert result.detected_language is None
    assert result.text == "Good morning"


@pytest.mark.asyncio
async def test_empty_transcript_means_no_speech(speech, fake_ai) -> None:
    fake_ai.transcript = "   "

    with pytest.raises(NoSpeechDetectedError, match=NO_SPEECH_DETECTED):
        await speech.speech_to_text(AUDIO, "en", "gemini-2.5-flash")


@pytest.mark.asyncio
async def test_transcription_api_error_is_wrapped(speech, fake_ai) -> None:
    fake_ai.gemini_status = 503

    with pytest.raises(TranslationPipelineError) as exc_info:
        await speech.speech_to_text(AUDIO, "en", "gemini-2.5-flash")
    assert str(exc_info.value) == TRANSCRIPTION_FAILED
    assert not isinstance(exc_info.value, NoSpeechDetectedError)


@pytest.mark.asyncio
async def test_translate_text_strips_quotes(speech, fake_ai) -> None:
    fake_ai.translation = '"Mwaramutse"'

    translated, duration = await speech.translate_text("Good morning", "en", "rw")

    assert translated == "Mwaramutse"
    assert duration >= 0
    assert fake_ai.gemini_prompts()[0].startswith(
        "Translate the following text from English to Kinyarwanda."
    )


@pytest.mark.asyncio
async def test_translate_text_same_language_is_a_no_op(speech, fake_ai) -> None:
    assert await speech.translate_text("Hello", "en", "en") == ("Hello", 0.0)
    assert fake_ai.requests == []


@pytest.mark.asyncio
async def test_translate_text_failure(speech, fake_ai) -> None:
    fake_ai.gemini_status = 500

    with pytest.raises(TranslationPipelineError, match=TRANSLATION_FAILED):
        await speech.translate_text("Good morning", "en", "rw")


@pytest.mark.asyncio
async def test_text_to_speech_uses_mapped_voice(speech, fake_ai) -> None:
    result = await speech.text_to_speech("Mwaramutse", "Adam")

    assert result.audio == fake_ai.tts_audio
    request = fake_ai.tts_requests()[0]
    assert request.url.path.endswith(f"/text-to-speech/{ELEVENLABS_VOICES['Adam']}")
    assert request.headers["xi-api-key"] == "test-elevenlabs-key"


@pytest.mark.asyncio
async def test_text_to_speech_prefers_cloned_voice(speech, fake_ai) -> None:
    await speech.text_to_speech("Mwaramutse", "Adam", cloned_voice_id="my-clone")

    assert fake_ai.tts_requests()[0].url.path.endswith("/text-to-speech/my-clone")


@pytest.mark.asyncio
async def test_text_to_speech_failure(speech, fake_ai) -> None:
    fake_ai.tts_status = 401

    with pytest.raises(TranslationPipelineError, match=TTS_FAILED):
        await speech.text_to_speech("Mwaramutse")


@pytest.mark.asyncio
async def test_text_to_speech_language_rejection(speech, fake_ai) -> None:
    fake_ai.tts_status = 400
    fake_ai.tts_error_detail = {
        "status": "invalid_language",
        "message": "Language rw is not supported",
    }

    with pytest.raises(SpeechLanguageUnsupportedError, match=TTS_LANGUAGE_UNSUPPORTED):
        await speech.text_to_speech("Mwaramutse")


@pytest.mark.asyncio
async def test_other_bad_requests_are_plain_tts_failures(speech, fake_ai) -> None:
    fake_ai.tts_status = 400
    fake_ai.tts_error_detail = "text too long"

    with pytest.raises(TranslationPipelineError, match=TTS_FAILED) as exc_info:
        await speech.text_to_speech("Mwaramutse")
    assert not isinstance(exc_info.value, SpeechLanguageUnsupportedError)


@pytest.mark.asyncio
async def test_clone_voice_returns_voice_id(speech, fake_ai) -> None:
    assert await speech.clone_voice(AUDIO, "My voice") == "cloned-voice-123"


def test_unknown_voice_falls_back_to_default() -> None:
    assert voice_id_for("Nobody") == ELEVENLABS_VOICES["Rachel"]
    assert voice_id_for(None) == ELEVENLABS_VOICES["Rachel"]


@pytest.mark.asyncio
async def test_gemini_without_api_key_is_not_configured() -> None:
    client = GeminiClient(api_key="")

    with pytest.raises(ExternalServiceNotConfiguredError):
        await client.generate_text("gemini-2.5-flash", "hello")


@pytest.mark.asyncio
async def test_gemini_connection_error() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = GeminiClient(
        api_key="k", base_url="https://gemini.test/v1beta", transport=httpx.MockTransport(refuse)
    )

    with pytest.raises(GeminiAPIError, match="connection error"):
        await client.generate_text("gemini-2.5-flash", "hello")


@pytest.mark.asyncio
async def test_gemini_response_without_candidates_is_empty_text() -> None:
    client = GeminiClient(
        api_key="k",
        base_url="https://gemini.test/v1beta",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})),
    )

    assert await client.generate_text("gemini-2.5-flash", "hello") == ""

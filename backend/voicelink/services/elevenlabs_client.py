# backend/voicelink/services/elevenlabs_client.py
import logging

import httpx

from voicelink.core.config import settings
from voicelink.core.log_utils import sanitize_for_log
from voicelink.exceptions import ExternalServiceNotConfiguredError

logger = logging.getLogger(__name__)

CLONED_VOICE_DESCRIPTION = "Cloned voice from user recording"


def _rejects_language(response: httpx.Response) -> bool:
    """A 400/422 whose error body talks about the language, e.g. an unsupported language code."""
    return response.status_code in (400, 422) and "language" in response.text.lower()


class ElevenLabsAPIError(Exception):
    def __init__(
        self, message: str, status_code: int | None = None, unsupported_language: bool = False
    ):
        super().__init__(message)
        self.status_code = status_code
        self.unsupported_language = unsupported_language


class ElevenLabsClient:
    """Text-to-speech and instant voice cloning over the ElevenLabs REST API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.ELEVENLABS_API_KEY
        self.base_url = (base_url or settings.ELEVENLABS_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.EXTERNAL_API_TIMEOUT_SECONDS
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ExternalServiceNotConfiguredError("ELEVENLABS_API_KEY is not configured")
        return {"xi-api-key": self.api_key}

    async def text_to_speech(
        self,
        text: str,
        voice_id: str,
        model_id: str | None = None,
        output_format: str | None = None,
    ) -> bytes:
        headers = self._headers() | {"Accept": "audio/mpeg"}
        url = f"{self.base_url}/text-to-speech/{voice_id}"
        body = {"text": text, "model_id": model_id or settings.ELEVENLABS_TTS_MODEL}
        params = {"output_format": output_format or settings.ELEVENLABS_OUTPUT_FORMAT}

        logger.debug(f"ElevenLabs TTS: voice={voice_id}, text='{sanitize_for_log(text, 50)}'")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(url, params=params, json=body, headers=headers)
            except httpx.TransportError as e:
                logger.warning(f"ElevenLabs connection error: {e}")
                raise ElevenLabsAPIError(f"ElevenLabs connection error: {e}") from e

        if response.status_code >= 400 or not response.content:
            logger.warning(
                f"ElevenLabs TTS returned {response.status_code}: {response.text[:300]}"
            )
            raise ElevenLabsAPIError(
                f"Text-to-speech failed with status {response.status_code}",
                status_code=response.status_code,
                unsupported_language=_rejects_language(response),
            )
        return response.content

    async def add_voice(
        self, audio: bytes, name: str, description: str = CLONED_VOICE_DESCRIPTION
    ) -> str:
        """Create an instant voice clone from one WAV sample and return its voice id."""
        headers = self._headers()
        url = f"{self.base_url}/voices/add"
        data = {"name": name, "description": description}
        files = {"files": ("voice_sample.wav", audio, "audio/wav")}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(url, data=data, files=files, headers=headers)
            except httpx.TransportError as e:
                logger.warning(f"ElevenLabs connection error: {e}")
                raise ElevenLabsAPIError(f"ElevenLabs connection error: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                f"ElevenLabs voice cloning returned {response.status_code}: {response.text[:300]}"
            )
            raise ElevenLabsAPIError(
                f"Voice cloning failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            voice_id = response.json().get("voice_id")
        except ValueError as e:
            raise ElevenLabsAPIError("ElevenLabs returned a non-JSON response") from e
        if not voice_id:
            raise ElevenLabsAPIError("ElevenLabs response did not include a voice_id")
        return voice_id

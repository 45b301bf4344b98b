# backend/voicelink/services/gemini_client.py
import base64
import logging

import httpx

from voicelink.core.config import settings
from voicelink.exceptions import ExternalServiceNotConfiguredError

logger = logging.getLogger(__name__)


class GeminiAPIError(Exception):
    """Raised when a generateContent call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GeminiClient:
    """
    Thin async wrapper around the Gemini ``generateContent`` REST endpoint.

    ``transport`` is passed straight to ``httpx.AsyncClient`` so tests can
    plug in an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.base_url = (base_url or settings.GEMINI_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.EXTERNAL_API_TIMEOUT_SECONDS
        self.transport = transport

    async def generate_text(
        self, model: str, prompt: str, audio: bytes | None = None, mime_type: str = "audio/wav"
    ) -> str:
        """Send a prompt (optionally with inline audio) and return the trimmed text answer.

        An answer without text comes back as an empty string.
        """
        if not self.api_key:
            raise ExternalServiceNotConfiguredError("GEMINI_API_KEY is not configured")

        parts: list[dict] = [{"text": prompt}]
        if audio is not None:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": mime_type,
                        "data": base64.b64encode(audio).decode("ascii"),
                    }
                }
            )
        body = {"contents": [{"role": "user", "parts": parts}]}
        url = f"{self.base_url}/models/{model}:generateContent"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    url,
                    params={"key": self.api_key},
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
            except httpx.TransportError as e:
                logger.warning(f"Gemini connection error ({model}): {e}")
                raise GeminiAPIError(f"Gemini connection error: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                f"Gemini returned {response.status_code} for {model}: {response.text[:300]}"
            )
            raise GeminiAPIError(
                f"Gemini request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise GeminiAPIError("Gemini returned a non-JSON response") from e

        return self._extract_text(payload)

    @staticmethod
    def _extract_text(data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts).strip()

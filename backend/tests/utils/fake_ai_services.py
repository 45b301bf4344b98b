# backend/tests/utils/fake_ai_services.py
"""
Stand-in for the Gemini and ElevenLabs HTTP APIs.

The real clients are used, wired to an ``httpx.MockTransport`` that answers
according to the attributes set on ``FakeAIServices``.
"""

import json

import httpx

from voicelink.services.elevenlabs_client import ElevenLabsClient
from voicelink.services.gemini_client import GeminiClient
from voicelink.services.speech import SpeechService

GEMINI_BASE_URL = "https://gemini.test/v1beta"
ELEVENLABS_BASE_URL = "https://elevenlabs.test/v1"


def gemini_reply(text: str) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


class FakeAIServices:
    def __init__(self) -> None:
        self.transcript = "Good morning"
        self.translation = "Mwaramutse"
        self.direct_translation = "Mwaramutse"
        self.detected_language = "en"
        self.gemini_status = 200
        self.tts_status = 200
        self.tts_audio = b"ID3-fake-mp3-bytes"
        self.tts_error_detail: object = "quota exceeded"
        self.cloned_voice_id = "cloned-voice-123"
        self.requests: list[httpx.Request] = []

    # --- request routing ---

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "gemini.test":
            return self._gemini(request)
        if request.url.host == "elevenlabs.test":
            return self._elevenlabs(request)
        return httpx.Response(404)

    def _gemini(self, request: httpx.Request) -> httpx.Response:
        if self.gemini_status != 200:
            return httpx.Response(self.gemini_status, json={"error": {"message": "boom"}})
        prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
        if prompt.startswith("Generate a transcript"):
            return gemini_reply(self.transcript)
        if prompt.startswith("Analyze this text"):
            return gemini_reply(self.detected_language)
        if prompt.startswith("Translate the following text"):
            return gemini_reply(self.translation)
        return gemini_reply(self.direct_translation)

    def _elevenlabs(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/voices/add"):
            return httpx.Response(200, json={"voice_id": self.cloned_voice_id})
        if self.tts_status != 200:
            return httpx.Response(self.tts_status, json={"detail": self.tts_error_detail})
        return httpx.Response(200, content=self.tts_audio)

    # --- helpers for assertions ---

    def gemini_prompts(self) -> list[str]:
        return [
            json.loads(r.content)["contents"][0]["parts"][0]["text"]
            for r in self.requests
            if r.url.host == "gemini.test"
        ]

    def tts_requests(self) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.url.host == "elevenlabs.test" and "/text-to-speech/" in r.url.path
        ]

    # --- wiring ---

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def speech_service(self) -> SpeechService:
        return SpeechService(
            gemini=GeminiClient(
                api_key="test-gemini-key", base_url=GEMINI_BASE_URL, transport=self.transport()
            ),
            elevenlabs=ElevenLabsClient(
                api_key="test-elevenlabs-key",
                base_url=ELEVENLABS_BASE_URL,
                transport=self.transport(),
            ),
        )

# backend/voicelink/schemas/translation.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from voicelink.services.languages import LanguageCode, SourceLanguageCode
from voicelink.services.voice_mapping import DEFAULT_VOICE, ELEVENLABS_VOICES


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranslationSettings(CamelModel):
    model: Literal["gemini-2.5-flash", "gemini-2.5-pro"] = "gemini-2.5-flash"
    voice: str = DEFAULT_VOICE
    autoplay: bool = True
    auto_detect_language: bool = True
    super_fast_mode: bool = False
    cloned_voice_id: str | None = Field(default=None, max_length=64)
    cloned_voice_name: str | None = Field(default=None, max_length=100)
    use_cloned_voice: bool = False

    @field_validator("voice")
    @classmethod
    def voice_must_be_preset(cls, value: str) -> str:
        if value not in ELEVENLABS_VOICES:
            raise ValueError(f"Unknown voice '{value}'")
        return value


class SelectedLanguages(CamelModel):
    source: LanguageCode
    target: LanguageCode


class TranslateRequest(CamelModel):
    audio_data: str = Field(..., min_length=1, description="Base64 encoded WAV audio")
    source_language: SourceLanguageCode
    target_language: LanguageCode
    settings: TranslationSettings | None = None
    selected_languages: SelectedLanguages | None = None


class TranslateResponse(CamelModel):
    id: uuid.UUID
    original_text: str
    translated_text: str
    original_language: str
    target_language: str
    original_audio_url: str | None = None
    translated_audio_url: str | None = None
    tts_available: bool = True
    tts_error: str | None = None


class TranslationRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID | None = None
    original_text: str
    translated_text: str
    original_language: str
    target_language: str
    original_audio_url: str | None = None
    translated_audio_url: str | None = None
    transcription_duration: float | None = None
    translation_duration: float | None = None
    tts_duration: float | None = None
    created_at: datetime


class ClearTranslationsResponse(CamelModel):
    message: str
    clear_local_storage: bool = True


class LanguagePairCount(CamelModel):
    source: str
    target: str
    count: int


class TranslationStats(CamelModel):
    total_translations: int
    translations_today: int
    avg_transcription_duration: float | None = None
    avg_translation_duration: float | None = None
    avg_tts_duration: float | None = None
    top_language_pairs: list[LanguagePairCount] = []


class TranslationCreateInternal(BaseModel):
    """Row data for a completed translation; built server-side, never parsed from a request."""

    user_id: uuid.UUID | None = None
    session_id: str | None = None
    original_text: str
    translated_text: str
    original_language: str
    target_language: str
    original_audio_url: str | None = None
    translated_audio_url: str | None = None
    transcription_duration: float | None = None
    translation_duration: float | None = None
    tts_duration: float | None = None

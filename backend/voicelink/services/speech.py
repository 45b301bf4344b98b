# backend/voicelink/services/speech.py
"""
Speech-to-text, translation, text-to-speech and voice cloning.

Every failure from the underlying clients is logged here and re-raised as a
``TranslationPipelineError`` whose message can be shown to the user as-is.
"""

import logging
import time
from dataclasses import dataclass

from voicelink.core.config import settings
from voicelink.core.log_utils import sanitize_for_log
from voicelink.exceptions import (
    ExternalServiceNotConfiguredError,
    NoSpeechDetectedError,
    SpeechLanguageUnsupportedError,
    TranslationPipelineError,
)
from voicelink.services.elevenlabs_client import ElevenLabsAPIError, ElevenLabsClient
from voicelink.services.gemini_client import GeminiAPIError, GeminiClient
from voicelink.services.languages import AUTO_DETECT, language_name
from voicelink.services.voice_mapping import DEFAULT_VOICE, voice_id_for

logger = logging.getLogger(__name__)

DETECTION_MODEL = "gemini-2.5-flash"

TRANSCRIPTION_FAILED = "Failed to transcribe audio. Please check your audio input and try again."
DIRECT_TRANSLATION_FAILED = "Failed to translate audio directly. Please try again."
TRANSLATION_FAILED = "Translation service temporarily unavailable. Please try again."
TTS_FAILED = "Failed to synthesize speech with ElevenLabs. Please try again."
TTS_LANGUAGE_UNSUPPORTED = "Speech synthesis does not support this language."
VOICE_CLONE_FAILED = "Failed to clone voice with ElevenLabs. Please try again."
NO_SPEECH_DETECTED = "No speech detected in audio. Please try speaking more clearly."

_CLIENT_ERRORS = (GeminiAPIError, ElevenLabsAPIError, ExternalServiceNotConfiguredError)


@dataclass(frozen=True)
class LanguagePair:
    source: str
    target: str


@dataclass
class Transcription:
    text: str
    detected_language: str | None
    duration_ms: float
    detection_duration_ms: float = 0.0


@dataclass
class DirectTranslation:
    translated_text: str
    target_language: str
    duration_ms: float


@dataclass
class SynthesizedSpeech:
    audio: bytes
    duration_ms: float


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def strip_wrapping_quotes(text: str) -> str:
    """Drop one leading and one trailing quote character, if the model added them."""
    if text[:1] in ("'", '"'):
        text = text[1:]
    if text[-1:] in ("'", '"'):
        text = text[:-1]
    return text


def direct_translation_prompt(
    source_language: str, target_language: str, pair: LanguagePair | None
) -> str:
    if source_language == AUTO_DETECT:
        if pair:
            lang1 = language_name(pair.source)
            lang2 = language_name(pair.target)
            return (
                f"You are a translator. Listen to this audio. If the speech is {lang1}, "
                f"output the {lang2} translation. If the speech is {lang2}, output the "
                f"{lang1} translation. Do not transcribe or output the same language you "
                "hear - only translate to the opposite language."
            )
        target_name = language_name(target_language)
        return (
            f"Listen to this audio and translate it to {target_name}. Provide only the "
            "translation, no other text. Do not transcribe - only translate."
        )
    source_name = language_name(source_language)
    target_name = language_name(target_language)
    return (
        f"Translate this {source_name} audio directly to {target_name}. Provide only the "
        f"{target_name} translation, no other text. Do not transcribe - only translate."
    )


def transcription_prompt(language: str, pair: LanguagePair | None) -> str:
    if language == AUTO_DETECT:
        if pair:
            return (
                "Generate a transcript of this speech. The audio contains either "
                f"{language_name(pair.source)} or {language_name(pair.target)}. "
                "Please transcribe it accurately in the detected language."
            )
        return (
            "Generate a transcript of this speech. "
            "Please transcribe it accurately in the detected language."
        )
    return f"Generate a transcript of this {language_name(language)} speech."


def detection_prompt(text: str, pair: LanguagePair) -> str:
    name1, name2 = language_name(pair.source), language_name(pair.target)
    return (
        f"Analyze this text and determine if it's written in {name1} or {name2}. "
        f'Respond with only "{pair.source}" for {name1} or "{pair.target}" for {name2}. '
        "Do not add any other text or markdown.\n\n"
        f'Text: "{text}"'
    )


def translation_prompt(text: str, source_language: str, target_language: str) -> str:
    return (
        f"Translate the following text from {language_name(source_language)} to "
        f"{language_name(target_language)}. Only provide the translation, no additional "
        f'text or explanation:\n\n"{text}"'
    )


class SpeechService:
    def __init__(
        self,
        gemini: GeminiClient | None = None,
        elevenlabs: ElevenLabsClient | None = None,
    ):
        self.gemini = gemini or GeminiClient()
        self.elevenlabs = elevenlabs or ElevenLabsClient()

    async def audio_to_translated_text(
        self,
        audio: bytes,
        source_language: str,
        target_language: str,
        model: str,
        pair: LanguagePair | None = None,
    ) -> DirectTranslation:
        """Translate speech in one model call, without an intermediate transcript."""
        prompt = direct_translation_prompt(source_language, target_language, pair)
        started = time.perf_counter()
        try:
            text = await self.gemini.generate_text(model, prompt, audio=audio)
        except _CLIENT_ERRORS as e:
            logger.error(f"Direct audio translation failed: {e}", exc_info=True)
            raise TranslationPipelineError(DIRECT_TRANSLATION_FAILED) from e
        duration = _elapsed_ms(started)

        if not text:
            logger.error("Direct audio translation returned no text.")
            raise TranslationPipelineError(DIRECT_TRANSLATION_FAILED)

        logger.info(f"Direct audio translation done in {duration:.0f}ms")
        return DirectTranslation(
            translated_text=text, target_language=target_language, duration_ms=duration
        )

    async def speech_to_text(
        self,
        audio: bytes,
        language: str,
        model: str,
        pair: LanguagePair | None = None,
    ) -> Transcription:
        """
        Transcribe ``audio``. With ``language="auto"`` and a language pair, a
        second call decides which of the two languages was spoken.

        Raises:
            NoSpeechDetectedError: the model heard nothing to transcribe.
            TranslationPipelineError: the transcription call failed.
        """
        started = time.perf_counter()
        try:
            transcript = await self.gemini.generate_text(
                model, transcription_prompt(language, pair), audio=audio
            )
        except _CLIENT_ERRORS as e:
            logger.error(f"Speech-to-text failed: {e}", exc_info=True)
            raise TranslationPipelineError(TRANSCRIPTION_FAILED) from e
        duration = _elapsed_ms(started)

        if not transcript:
            logger.info("Speech-to-text returned an empty transcript.")
            raise NoSpeechDetectedError(NO_SPEECH_DETECTED)

        logger.debug(f"Transcript: '{sanitize_for_log(transcript, 200)}'")

        detected: str | None = None
        detection_duration = 0.0
        if language == AUTO_DETECT and pair:
            detected, detection_duration = await self.detect_language(transcript, pair)

        return Transcription(
            text=transcript,
            detected_language=detected,
            duration_ms=duration,
            detection_duration_ms=detection_duration,
        )

    async def detect_language(self, text: str, pair: LanguagePair) -> tuple[str | None, float]:
        """Pick ``pair.source`` or ``pair.target`` for ``text``. Never raises; returns None when unsure."""
        started = time.perf_counter()
        try:
            answer = await self.gemini.generate_text(DETECTION_MODEL, detection_prompt(text, pair))
        except _CLIENT_ERRORS as e:
            logger.warning(f"Language detection failed: {e}")
            return None, 0.0
        duration = _elapsed_ms(started)

        answer = answer.strip().lower()
        if answer in (pair.source, pair.target):
            return answer, duration

        logger.warning(
            f"Language detection could not choose between {pair.source} and {pair.target}. "
            f"Answer was: '{sanitize_for_log(answer, 50)}'"
        )
        return None, duration

    async def translate_text(
        self, text: str, source_language: str, target_language: str, model: str | None = None
    ) -> tuple[str, float]:
        """Translate ``text``; returns ``(translation, duration_ms)``."""
        if source_language == target_language:
            return text, 0.0

        started = time.perf_counter()
        try:
            translated = await self.gemini.generate_text(
                model or settings.GEMINI_DEFAULT_MODEL,
                translation_prompt(text, source_language, target_language),
            )
        except _CLIENT_ERRORS as e:
            logger.error(f"Text translation failed: {e}", exc_info=True)
            raise TranslationPipelineError(TRANSLATION_FAILED) from e
        duration = _elapsed_ms(started)

        if not translated:
            logger.error("Text translation returned an empty response.")
            raise TranslationPipelineError(TRANSLATION_FAILED)
        return strip_wrapping_quotes(translated), duration

    async def text_to_speech(
        self,
        text: str,
        voice_name: str = DEFAULT_VOICE,
        cloned_voice_id: str | None = None,
    ) -> SynthesizedSpeech:
        voice_id = cloned_voice_id or voice_id_for(voice_name)
        logger.debug(f"TTS with voice {sanitize_for_log(voice_name)} -> {voice_id}")
        started = time.perf_counter()
        try:
            audio = await self.elevenlabs.text_to_speech(text, voice_id)
        except _CLIENT_ERRORS as e:
            if isinstance(e, ElevenLabsAPIError) and e.unsupported_language:
                logger.warning(f"Text-to-speech rejected the target language: {e}")
                raise SpeechLanguageUnsupportedError(TTS_LANGUAGE_UNSUPPORTED) from e
            logger.error(f"Text-to-speech failed: {e}", exc_info=True)
            raise TranslationPipelineError(TTS_FAILED) from e
        duration = _elapsed_ms(started)
        logger.info(f"TTS generated {len(audio)} bytes in {duration:.0f}ms")
        return SynthesizedSpeech(audio=audio, duration_ms=duration)

    async def clone_voice(self, audio: bytes, voice_name: str) -> str:
        try:
            voice_id = await self.elevenlabs.add_voice(audio, voice_name)
        except _CLIENT_ERRORS as e:
            logger.error(f"Voice cloning failed: {e}", exc_info=True)
            raise TranslationPipelineError(VOICE_CLONE_FAILED) from e
        logger.info(f"Voice '{sanitize_for_log(voice_name)}' cloned as {voice_id}")
        return voice_id

# backend/voicelink/services/translation_pipeline.py
"""
Voice translation: audio in, translated text and speech out.

The pipeline only talks to the AI services and the upload directory. Quota
checks, usage recording and persistence are done by the caller around
``TranslationPipeline.run`` so that a failed run never consumes quota.
"""

import logging
from dataclasses import dataclass

from voicelink.core.log_utils import sanitize_for_log
from voicelink.exceptions import SpeechLanguageUnsupportedError, TranslationPipelineError
from voicelink.schemas.translation import TranslateRequest, TranslationSettings
from voicelink.services.audio_storage import decode_audio_payload, save_audio
from voicelink.services.languages import AUTO_DETECT, fallback_target, language_name
from voicelink.services.speech import LanguagePair, SpeechService

logger = logging.getLogger(__name__)

SUPER_FAST_PLACEHOLDER = "[Audio processed in super fast mode]"
TTS_UNAVAILABLE = "Speech synthesis temporarily unavailable. Please try again later."


def tts_language_unavailable(language: str) -> str:
    return f"Speech synthesis is not available for {language_name(language)} at this time."


@dataclass
class TranslationOutcome:
    original_text: str
    translated_text: str
    original_language: str
    target_language: str
    original_audio_url: str | None = None
    translated_audio_url: str | None = None
    tts_available: bool = True
    tts_error: str | None = None
    transcription_duration: float = 0.0
    translation_duration: float = 0.0
    tts_duration: float = 0.0


def adjust_target_language(
    requested_source: str,
    detected: str | None,
    requested_target: str,
    pair: LanguagePair | None,
) -> str:
    """
    Swap the target when auto-detection heard the requested target language.

    With a selected pair the other side of the pair is used; otherwise
    Kinyarwanda and English map to each other and anything else goes to English.
    """
    if requested_source != AUTO_DETECT or not detected or detected != requested_target:
        return requested_target
    if pair:
        return pair.target if detected == pair.source else pair.source
    return fallback_target(detected)


class TranslationPipeline:
    def __init__(self, speech: SpeechService):
        self.speech = speech

    async def run(self, payload: TranslateRequest) -> TranslationOutcome:
        """
        Raises:
            InvalidAudioError: ``audioData`` is not valid base64.
            NoSpeechDetectedError: the transcript came back empty.
            TranslationPipelineError: transcription or translation failed.
        """
        options = payload.settings or TranslationSettings()
        pair = (
            LanguagePair(payload.selected_languages.source, payload.selected_languages.target)
            if payload.selected_languages
            else None
        )

        audio = decode_audio_payload(payload.audio_data)
        original_audio_url = await save_audio(audio, "wav")

        if options.super_fast_mode:
            outcome = await self._run_super_fast(payload, options, pair, audio)
        else:
            outcome = await self._run_standard(payload, options, pair, audio)
        outcome.original_audio_url = original_audio_url

        await self._synthesize(outcome, options)
        return outcome

    async def _run_super_fast(
        self,
        payload: TranslateRequest,
        options: TranslationSettings,
        pair: LanguagePair | None,
        audio: bytes,
    ) -> TranslationOutcome:
        logger.info("Super fast mode: translating audio directly.")
        direct = await self.speech.audio_to_translated_text(
            audio, payload.source_language, payload.target_language, options.model, pair
        )
        return TranslationOutcome(
            original_text=SUPER_FAST_PLACEHOLDER,
            translated_text=direct.translated_text,
            original_language=payload.source_language,
            target_language=direct.target_language,
            transcription_duration=direct.duration_ms,
        )

    async def _run_standard(
        self,
        payload: TranslateRequest,
        options: TranslationSettings,
        pair: LanguagePair | None,
        audio: bytes,
    ) -> TranslationOutcome:
        transcription = await self.speech.speech_to_text(
            audio, payload.source_language, options.model, pair
        )
        detected = transcription.detected_language
        source = detected or payload.source_language
        target = adjust_target_language(
            payload.source_language, detected, payload.target_language, pair
        )
        if target != payload.target_language:
            logger.info(f"Auto-detected {detected}; target adjusted to {target}")

        translated, translation_ms = await self.speech.translate_text(
            transcription.text, source, target
        )
        logger.debug(
            f"Translated {source}->{target}: '{sanitize_for_log(translated, 200)}'"
        )
        return TranslationOutcome(
            original_text=transcription.text,
            translated_text=translated,
            original_language=source,
            target_language=target,
            transcription_duration=(
                transcription.duration_ms + transcription.detection_duration_ms
            ),
            translation_duration=translation_ms,
        )

    async def _synthesize(self, outcome: TranslationOutcome, options: TranslationSettings) -> None:
        """Attach translated speech; a failure here leaves the text result intact."""
        cloned_voice_id = options.cloned_voice_id if options.use_cloned_voice else None
        try:
            speech = await self.speech.text_to_speech(
                outcome.translated_text, options.voice, cloned_voice_id
            )
        except SpeechLanguageUnsupportedError:
            logger.info(f"No speech synthesis for {outcome.target_language}, returning text only")
            outcome.tts_available = False
            outcome.tts_error = tts_language_unavailable(outcome.target_language)
            return
        except TranslationPipelineError as e:
            logger.warning(
                f"TTS unavailable for {outcome.target_language}, returning text only: {e}"
            )
            outcome.tts_available = False
            outcome.tts_error = TTS_UNAVAILABLE
            return

        outcome.translated_audio_url = await save_audio(speech.audio, "mp3")
        outcome.tts_duration = speech.duration_ms

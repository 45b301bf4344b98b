# backend/voicelink/services/languages.py
from typing import Literal

AUTO_DETECT = "auto"

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ar": "Arabic",
    "hi": "Hindi",
    "pt": "Portuguese",
    "ru": "Russian",
    "it": "Italian",
    "rw": "Kinyarwanda",
    "sw": "Swahili",
    "am": "Amharic",
    "yo": "Yoruba",
    "ha": "Hausa",
    "ig": "Igbo",
}

LanguageCode = Literal[
    "en", "es", "fr", "de", "zh", "ja", "ko", "ar", "hi",
    "pt", "ru", "it", "rw", "sw", "am", "yo", "ha", "ig",
]  # fmt: skip
SourceLanguageCode = LanguageCode | Literal["auto"]


def language_name(code: str) -> str:
    """Display name for a language code; unknown codes are returned unchanged."""
    return LANGUAGE_NAMES.get(code, code)


def fallback_target(detected: str) -> str:
    """Target used when the detected language equals the requested target and no pair was chosen."""
    if detected == "rw":
        return "en"
    if detected == "en":
        return "rw"
    return "en"

class StorageUnavailableError(Exception):
    """Base exception for a backing store that could not be read or written."""

    pass


class UsageStorageUnavailableError(StorageUnavailableError):
    """Raised when the usage store fails during a limit check or usage increment."""

    pass


class GuestSessionStorageError(StorageUnavailableError):
    """Raised when a guest session cannot be looked up or created."""

    pass


class TranslationPipelineError(Exception):
    """Raised when an external AI call fails. The message is safe to show to users."""

    pass


class NoSpeechDetectedError(TranslationPipelineError):
    """Raised when transcription returns no text."""

    pass


class InvalidAudioError(TranslationPipelineError):
    """Raised when the submitted audio payload cannot be decoded."""

    pass


class ExternalServiceNotConfiguredError(TranslationPipelineError):
    """Raised when an API key for an external AI service is missing."""

    pass


class SpeechLanguageUnsupportedError(TranslationPipelineError):
    """Raised when the speech provider cannot voice the target language."""

    pass

# backend/voicelink/services/audio_storage.py
import asyncio
import base64
import binascii
import logging
import uuid
from pathlib import Path

from voicelink.core.config import settings
from voicelink.exceptions import InvalidAudioError

logger = logging.getLogger(__name__)

AUDIO_URL_PREFIX = "/uploads/audio"


def decode_audio_payload(audio_data: str, max_bytes: int | None = None) -> bytes:
    """
    Decode the base64 audio sent by the client.

    Data URLs (``data:audio/wav;base64,...``) are accepted as well as bare base64.
    """
    max_bytes = max_bytes or settings.MAX_AUDIO_UPLOAD_BYTES
    payload = audio_data.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]

    try:
        audio = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidAudioError("Invalid audio data. Expected base64-encoded audio.") from e

    if not audio:
        raise InvalidAudioError("Audio data is empty.")
    if len(audio) > max_bytes:
        raise InvalidAudioError(
            f"Audio is too large ({len(audio)} bytes, limit is {max_bytes} bytes)."
        )
    return audio


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def save_audio(data: bytes, extension: str, directory: Path | None = None) -> str:
    """Write ``data`` under the audio upload directory and return its public URL."""
    directory = directory or settings.AUDIO_UPLOAD_DIR
    filename = f"{uuid.uuid4()}.{extension.lstrip('.')}"
    await asyncio.to_thread(_write_file, directory / filename, data)
    logger.debug(f"Saved {len(data)} bytes of audio to {directory / filename}")
    return f"{AUDIO_URL_PREFIX}/{filename}"

# backend/voicelink/api/routers/voices.py
import logging
import time

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status

from voicelink.api.deps import get_speech_service
from voicelink.core.config import settings
from voicelink.core.rate_limit import limiter
from voicelink.core.users import current_active_user
from voicelink.db.models.user import User
from voicelink.schemas.voice import VoiceCloneResponse, VoiceOption
from voicelink.services.speech import SpeechService
from voicelink.services.voice_mapping import ELEVENLABS_VOICES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Voices"])


@router.get("/voices", response_model=list[VoiceOption], summary="List preset voices")
async def list_voices() -> list[VoiceOption]:
    return [
        VoiceOption(value=name, label=name, voice_id=voice_id)
        for name, voice_id in ELEVENLABS_VOICES.items()
    ]


@router.post(
    "/clone-voice",
    response_model=VoiceCloneResponse,
    summary="Clone the caller's voice from a recorded sample",
)
@limiter.limit("3/hour")
async def clone_voice(
    request: Request,
    audio: UploadFile = File(...),
    voice_name: str | None = Form(default=None, alias="voiceName", max_length=100),
    current_user: User = Depends(current_active_user),
    speech: SpeechService = Depends(get_speech_service),
) -> VoiceCloneResponse:
    sample = await audio.read()
    if not sample:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No audio file provided")
    if len(sample) > settings.MAX_AUDIO_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Audio sample is too large",
        )

    name = (voice_name or "").strip() or f"Voice_{current_user.id}_{int(time.time())}"
    voice_id = await speech.clone_voice(sample, name)

    return VoiceCloneResponse(
        voice_id=voice_id,
        voice_name=name,
        message=f'Voice "{name}" cloned successfully!',
    )

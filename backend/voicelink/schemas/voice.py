# backend/voicelink/schemas/voice.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class VoiceOption(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    value: str
    label: str
    voice_id: str


class VoiceCloneResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    voice_id: str
    voice_name: str
    message: str

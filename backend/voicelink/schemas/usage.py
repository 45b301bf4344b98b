# backend/voicelink/schemas/usage.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UsageLimitResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    can_translate: bool
    remaining_translations: int  # -1 means unlimited
    is_authenticated: bool
    limit_message: str | None = None


class LimitExceededResponse(BaseModel):
    """Body of the 429 returned when a guest has used up the day's translations."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    can_translate: bool = False
    remaining_translations: int
    is_authenticated: bool

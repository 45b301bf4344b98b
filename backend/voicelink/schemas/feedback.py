# backend/voicelink/schemas/feedback.py
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FeedbackCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    star_rating: int = Field(..., ge=1, le=5)
    feedback_message: str | None = Field(default=None, max_length=1000)


class FeedbackAuthor(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    first_name: str | None = None
    last_name: str | None = None


class FeedbackRead(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: uuid.UUID
    star_rating: int
    feedback_message: str | None = None
    created_at: datetime
    user: FeedbackAuthor | None = None


class FeedbackSubmitted(BaseModel):
    message: str
    feedback: FeedbackRead


class FeedbackCreateInternal(BaseModel):
    user_id: uuid.UUID | None = None
    star_rating: int
    feedback_message: str | None = None

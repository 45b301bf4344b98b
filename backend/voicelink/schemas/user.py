# backend/voicelink/schemas/user.py
import uuid
from datetime import datetime

from fastapi_users import schemas
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

# Profile fields travel in camelCase on the wire, e.g. ``firstName``.
_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRead(schemas.BaseUser[uuid.UUID]):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    first_name: str | None = None
    last_name: str | None = None
    country: str | None = None
    current_country_of_resident: str | None = None
    how_they_heard: str | None = None
    organization: str | None = None
    what_they_do: str | None = None
    profile_image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreate(schemas.BaseUserCreate):
    """Signup payload. Privilege flags are not accepted from the client."""

    model_config = _CAMEL

    password: str = Field(..., min_length=8, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    country: str = Field(..., min_length=1, max_length=100)
    current_country_of_resident: str = Field(..., min_length=1, max_length=100)
    how_they_heard: str = Field(..., min_length=1, max_length=200)
    organization: str | None = Field(default=None, max_length=100)
    what_they_do: str = Field(..., min_length=1, max_length=200)


class UserUpdate(schemas.BaseUserUpdate):
    model_config = _CAMEL

    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    country: str | None = Field(default=None, min_length=1, max_length=100)
    current_country_of_resident: str | None = Field(default=None, min_length=1, max_length=100)
    how_they_heard: str | None = Field(default=None, min_length=1, max_length=200)
    organization: str | None = Field(default=None, max_length=100)
    what_they_do: str | None = Field(default=None, min_length=1, max_length=200)


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    country: str = Field(..., min_length=1, max_length=100)
    current_country_of_resident: str = Field(..., min_length=1, max_length=100)
    how_they_heard: str = Field(..., min_length=1, max_length=200)
    organization: str | None = Field(default=None, max_length=100)
    what_they_do: str = Field(..., min_length=1, max_length=200)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    model_config = _CAMEL

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=100)
    confirm_password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self

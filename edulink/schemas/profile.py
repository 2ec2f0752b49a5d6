from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileOut(BaseModel):
    id: str
    role: str
    name: str
    email: str | None = None
    phone: str | None = None
    country: str | None = None
    subject: str | None = None
    qualification: str | None = None
    experience: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    email_notifications: bool = True
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublicProfileOut(BaseModel):
    id: str
    role: str
    name: str
    country: str | None = None
    subject: str | None = None
    qualification: str | None = None
    experience: str | None = None
    bio: str | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    country: str | None = Field(default=None, max_length=100)
    subject: str | None = Field(default=None, max_length=100)
    qualification: str | None = Field(default=None, max_length=255)
    experience: str | None = Field(default=None, max_length=255)
    bio: str | None = None
    avatar_url: str | None = Field(default=None, max_length=1024)
    email_notifications: bool | None = None


class CompleteSignupIn(BaseModel):
    # `role` comes from the signup URL, `stored_role` from the client's local storage.
    role: str | None = None
    stored_role: str | None = None

    @field_validator("role", "stored_role")
    @staticmethod
    def _normalize_role(value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None


class CompleteSignupOut(BaseModel):
    profile: ProfileOut
    created: bool
    role_changed: bool
    redirect_to: str

"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    """The caller's own profile."""

    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    display_name: str
    is_pro: bool = False
    is_admin: bool = False
    points: int = 0
    login_streak: int = 0
    badges_earned: int = 0
    created_at: datetime | None = None
    last_login: datetime | None = None


class ProfileUpdateRequest(BaseModel):
    """Update profile fields. Omitted fields are left unchanged."""

    first_name: str | None = Field(None, min_length=1, max_length=64)
    last_name: str | None = Field(None, min_length=1, max_length=64)

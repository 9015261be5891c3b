"""Pydantic schemas for the admin console."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from g15.pro.schemas import UpgradeRequestResponse


class AdminUserResponse(BaseModel):
    id: int
    email: str
    display_name: str
    is_pro: bool
    is_admin: bool
    is_banned: bool
    points: int
    created_at: datetime
    last_login: datetime | None = None


class AdminUserListResponse(BaseModel):
    users: list[AdminUserResponse]
    total: int
    page: int
    per_page: int


class AdminUpgradeRequestResponse(UpgradeRequestResponse):
    user_email: str
    user_name: str


class RejectRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)

"""Pydantic schemas for notification and showcase endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


# --- Notifications ---


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str | None = None
    action_url: str | None = None
    read: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    page: int
    per_page: int


class UnreadCountResponse(BaseModel):
    unread_count: int


# --- Showcase ---


class CreateShowcaseRequest(BaseModel):
    content: str = Field(..., max_length=1000)
    badge_id: int | None = None
    goal_id: int | None = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Content cannot be empty")
        return v


class ShowcaseBadge(BaseModel):
    id: int
    name: str
    icon: str
    description: str
    points: int


class ShowcaseGoal(BaseModel):
    id: int
    name: str
    target_amount: float
    current_amount: float
    completed_at: datetime | None = None


class ShowcaseItemResponse(BaseModel):
    id: int
    user_id: int
    author_name: str
    content: str
    badge: ShowcaseBadge | None = None
    goal: ShowcaseGoal | None = None
    created_at: datetime


class ShowcaseListResponse(BaseModel):
    items: list[ShowcaseItemResponse]
    total: int
    page: int
    per_page: int


class ShowcaseCreatedResponse(ShowcaseItemResponse):
    new_badges: list[str] = []

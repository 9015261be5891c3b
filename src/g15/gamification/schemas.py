"""Pydantic response models for badge endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class BadgeResponse(BaseModel):
    id: int
    slug: str
    name: str
    description: str
    icon: str
    points: int
    condition_type: str
    condition_value: int
    is_secret: bool = False
    earned: bool = False


class BadgeCatalogResponse(BaseModel):
    badges: list[BadgeResponse]
    total_available: int
    total_earned: int


class EarnedBadgeResponse(BaseModel):
    badge: BadgeResponse
    earned_at: datetime
    is_public: bool


class UserBadgesResponse(BaseModel):
    earned: list[EarnedBadgeResponse]
    total_earned: int
    points: int


class BadgeVisibilityRequest(BaseModel):
    is_public: bool

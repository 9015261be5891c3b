"""Pydantic schemas for Pro upgrades and admin review."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class QuoteResponse(BaseModel):
    regular_price: float
    points_to_use: int
    discount: float
    final_price: float
    available_points: int


class CheckoutRequest(BaseModel):
    points_to_use: int = Field(0, ge=0)


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    started_at: datetime
    expires_at: datetime
    points_used: int
    amount_paid: float


class CheckoutResponse(BaseModel):
    subscription: SubscriptionResponse
    is_pro: bool
    points: int
    new_badges: list[str] = []


class UpgradeRequestCreate(BaseModel):
    notes: str | None = Field(None, max_length=1000)


class UpgradeRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: str
    notes: str | None = None
    created_at: datetime
    approved_by: int | None = None
    approved_at: datetime | None = None


class PendingRequestResponse(BaseModel):
    pending: bool
    request: UpgradeRequestResponse | None = None

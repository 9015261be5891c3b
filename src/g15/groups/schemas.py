"""Pydantic schemas for groups, invitations, shared transactions and settlement."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field

# --- Groups ---


class CreateGroupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    description: str | None = Field(None, max_length=256)


class UpdateGroupRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=64)
    description: str | None = Field(None, max_length=256)


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    created_by: int | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
    member_count: int
    role: str
    new_badges: list[str] = []


class GroupMemberResponse(BaseModel):
    user_id: int
    name: str
    email: str
    role: str
    joined_at: dt.datetime


class GroupDetailResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    created_by: int | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
    role: str
    members: list[GroupMemberResponse]


class LeaveGroupResponse(BaseModel):
    status: str
    group_deleted: bool


# --- Invitations ---


class CreateInvitationRequest(BaseModel):
    email: EmailStr | None = None


class InvitationResponse(BaseModel):
    id: int
    group_id: int
    invited_by: int
    email: str | None = None
    invitation_code: str
    status: str
    created_at: dt.datetime
    expires_at: dt.datetime
    responded_at: dt.datetime | None = None
    invite_url: str


class InvitationPreviewResponse(BaseModel):
    group_id: int
    group_name: str
    owner_name: str | None = None
    member_count: int
    status: str
    expires_at: dt.datetime


class JoinResponse(BaseModel):
    group_id: int
    group_name: str
    role: str


# --- Group transactions ---


class CreateGroupTransactionRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=255)
    date: dt.date | None = None
    is_expense: bool = True
    category: str | None = Field(None, max_length=64)
    member_ids: list[int] | None = None


class GroupTransactionResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    payer_name: str
    amount: float
    description: str
    date: dt.date
    is_expense: bool
    category: str | None = None
    participant_count: int
    created_at: dt.datetime


class ParticipantResponse(BaseModel):
    user_id: int
    name: str
    email: str


# --- Settlement ---


class SettlementTransfer(BaseModel):
    from_user_id: int
    from_user_name: str
    to_user_id: int
    to_user_name: str
    amount: float


class MemberBalance(BaseModel):
    user_id: int
    name: str
    balance: float


class SettlementResponse(BaseModel):
    settlements: list[SettlementTransfer]
    balances: list[MemberBalance]

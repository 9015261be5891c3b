"""Group API endpoints: groups, members, invitations, shared transactions, settlement."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from g15.auth.dependencies import get_current_user
from g15.database import get_session
from g15.db.models import Group, GroupInvitation, User
from g15.gamification.trigger_engine import fire_event
from g15.groups.expense_service import (
    add_group_transaction,
    delete_group_transaction,
    get_transaction_members,
    list_group_transactions,
)
from g15.groups.group_service import (
    create_group,
    delete_group,
    get_group_members,
    join_group,
    leave_group,
    list_user_groups,
    remove_member,
    require_member,
    update_group,
)
from g15.groups.invitation_service import (
    create_invitation,
    decline_invitation,
    effective_status,
    invite_url,
    join_group_by_code,
    list_invitations,
    preview_invitation,
)
from g15.groups.schemas import (
    CreateGroupRequest,
    CreateGroupTransactionRequest,
    CreateInvitationRequest,
    GroupDetailResponse,
    GroupMemberResponse,
    GroupResponse,
    GroupTransactionResponse,
    InvitationPreviewResponse,
    InvitationResponse,
    JoinResponse,
    LeaveGroupResponse,
    ParticipantResponse,
    SettlementResponse,
    UpdateGroupRequest,
)
from g15.groups.settlement import get_group_settlement

router = APIRouter(prefix="/api/v1/groups", tags=["Groups"])
invitations_router = APIRouter(prefix="/api/v1/invitations", tags=["Groups"])


def _http_error(e: Exception) -> HTTPException:
    """Map service exceptions to HTTP errors."""
    if isinstance(e, LookupError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _group_response(group: Group, role: str, member_count: int) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        created_by=group.created_by,
        created_at=group.created_at,
        updated_at=group.updated_at,
        member_count=member_count,
        role=role,
    )


def _invitation_response(invitation: GroupInvitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        group_id=invitation.group_id,
        invited_by=invitation.invited_by,
        email=invitation.email,
        invitation_code=invitation.invitation_code,
        status=effective_status(invitation),
        created_at=invitation.created_at,
        expires_at=invitation.expires_at,
        responded_at=invitation.responded_at,
        invite_url=invite_url(invitation.invitation_code),
    )


# --- Groups ---


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group_endpoint(
    body: CreateGroupRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GroupResponse:
    try:
        group = await create_group(db, user.id, body.name, body.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    response = _group_response(group, "owner", 1)
    response.new_badges = await fire_event(db, user.id, "group_created")
    return response


@router.get("", response_model=list[GroupResponse])
async def list_groups_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[GroupResponse]:
    """Groups the caller belongs to."""
    return [
        _group_response(group, role, count)
        for group, role, count in await list_user_groups(db, user.id)
    ]


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GroupDetailResponse:
    try:
        group, membership = await require_member(db, group_id, user.id)
    except LookupError as e:
        raise _http_error(e) from e

    members = await get_group_members(db, group_id)
    return GroupDetailResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        created_by=group.created_by,
        created_at=group.created_at,
        updated_at=group.updated_at,
        role=membership.role,
        members=[
            GroupMemberResponse(
                user_id=u.id,
                name=u.display_name,
                email=u.email,
                role=m.role,
                joined_at=m.joined_at,
            )
            for m, u in members
        ],
    )


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group_endpoint(
    group_id: int,
    body: UpdateGroupRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GroupResponse:
    try:
        group = await update_group(db, group_id, user.id, body.name, body.description)
    except (LookupError, PermissionError, ValueError) as e:
        raise _http_error(e) from e
    count = len(await get_group_members(db, group_id))
    await db.commit()
    return _group_response(group, "owner", count)


@router.delete("/{group_id}", status_code=204)
async def delete_group_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    try:
        await delete_group(db, group_id, user.id)
    except (LookupError, PermissionError) as e:
        raise _http_error(e) from e
    await db.commit()


@router.post("/{group_id}/join", response_model=JoinResponse)
async def join_group_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> JoinResponse:
    try:
        member = await join_group(db, group_id, user.id)
        group, _ = await require_member(db, group_id, user.id)
    except (LookupError, ValueError) as e:
        raise _http_error(e) from e
    await db.commit()
    return JoinResponse(group_id=group.id, group_name=group.name, role=member.role)


@router.post("/{group_id}/leave", response_model=LeaveGroupResponse)
async def leave_group_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> LeaveGroupResponse:
    """Leave a group. Ownership passes on; the last member out deletes the group."""
    try:
        deleted = await leave_group(db, group_id, user.id)
    except LookupError as e:
        raise _http_error(e) from e
    await db.commit()
    return LeaveGroupResponse(status="left", group_deleted=deleted)


@router.delete("/{group_id}/members/{member_user_id}", status_code=204)
async def remove_member_endpoint(
    group_id: int,
    member_user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    try:
        await remove_member(db, group_id, user.id, member_user_id)
    except (LookupError, PermissionError, ValueError) as e:
        raise _http_error(e) from e
    await db.commit()


# --- Invitations ---


@router.post("/{group_id}/invitations", response_model=InvitationResponse, status_code=201)
async def create_invitation_endpoint(
    group_id: int,
    body: CreateInvitationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> InvitationResponse:
    try:
        invitation = await create_invitation(db, group_id, user.id, body.email)
    except LookupError as e:
        raise _http_error(e) from e
    await db.commit()
    return _invitation_response(invitation)


@router.get("/{group_id}/invitations", response_model=list[InvitationResponse])
async def list_invitations_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[InvitationResponse]:
    try:
        invitations = await list_invitations(db, group_id, user.id)
    except LookupError as e:
        raise _http_error(e) from e
    return [_invitation_response(i) for i in invitations]


@invitations_router.get("/{code}", response_model=InvitationPreviewResponse)
async def preview_invitation_endpoint(
    code: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> InvitationPreviewResponse:
    try:
        preview = await preview_invitation(db, code)
    except LookupError as e:
        raise _http_error(e) from e
    return InvitationPreviewResponse(**preview)


@invitations_router.post("/{code}/accept", response_model=JoinResponse)
async def accept_invitation_endpoint(
    code: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> JoinResponse:
    try:
        group, member = await join_group_by_code(db, user.id, code)
    except (LookupError, ValueError) as e:
        raise _http_error(e) from e
    await db.commit()
    return JoinResponse(group_id=group.id, group_name=group.name, role=member.role)


@invitations_router.post("/{code}/decline", response_model=InvitationResponse)
async def decline_invitation_endpoint(
    code: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> InvitationResponse:
    try:
        invitation = await decline_invitation(db, code)
    except (LookupError, ValueError) as e:
        raise _http_error(e) from e
    await db.commit()
    return _invitation_response(invitation)


# --- Shared transactions ---


@router.post("/{group_id}/transactions", response_model=GroupTransactionResponse, status_code=201)
async def add_transaction_endpoint(
    group_id: int,
    body: CreateGroupTransactionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GroupTransactionResponse:
    try:
        tx, participants = await add_group_transaction(
            db,
            group_id,
            user.id,
            amount=body.amount,
            description=body.description,
            tx_date=body.date,
            is_expense=body.is_expense,
            category=body.category,
            member_ids=body.member_ids,
        )
    except (LookupError, ValueError) as e:
        raise _http_error(e) from e
    await db.commit()
    return GroupTransactionResponse(
        id=tx.id,
        group_id=tx.group_id,
        user_id=tx.user_id,
        payer_name=user.display_name,
        amount=float(tx.amount),
        description=tx.description,
        date=tx.date,
        is_expense=tx.is_expense,
        category=tx.category,
        participant_count=len(participants),
        created_at=tx.created_at,
    )


@router.get("/{group_id}/transactions", response_model=list[GroupTransactionResponse])
async def list_transactions_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[GroupTransactionResponse]:
    try:
        rows = await list_group_transactions(db, group_id, user.id)
    except LookupError as e:
        raise _http_error(e) from e
    return [
        GroupTransactionResponse(
            id=tx.id,
            group_id=tx.group_id,
            user_id=tx.user_id,
            payer_name=payer_name,
            amount=float(tx.amount),
            description=tx.description,
            date=tx.date,
            is_expense=tx.is_expense,
            category=tx.category,
            participant_count=count,
            created_at=tx.created_at,
        )
        for tx, payer_name, count in rows
    ]


@router.get("/{group_id}/transactions/{tx_id}/members", response_model=list[ParticipantResponse])
async def transaction_members_endpoint(
    group_id: int,
    tx_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[ParticipantResponse]:
    try:
        users = await get_transaction_members(db, group_id, user.id, tx_id)
    except LookupError as e:
        raise _http_error(e) from e
    return [ParticipantResponse(user_id=u.id, name=u.display_name, email=u.email) for u in users]


@router.delete("/{group_id}/transactions/{tx_id}", status_code=204)
async def delete_transaction_endpoint(
    group_id: int,
    tx_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    try:
        await delete_group_transaction(db, group_id, user.id, tx_id)
    except (LookupError, PermissionError) as e:
        raise _http_error(e) from e
    await db.commit()


# --- Settlement ---


@router.get("/{group_id}/settlement", response_model=SettlementResponse)
async def settlement_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SettlementResponse:
    """Net balances and the fewest greedy transfers that settle the group."""
    try:
        await require_member(db, group_id, user.id)
    except LookupError as e:
        raise _http_error(e) from e
    return SettlementResponse(**await get_group_settlement(db, group_id))

"""Admin endpoints. Every route requires an admin account."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from g15.admin.schemas import (
    AdminUpgradeRequestResponse,
    AdminUserListResponse,
    AdminUserResponse,
    RejectRequest,
)
from g15.admin.service import (
    approve_upgrade_request,
    grant_pro,
    list_upgrade_requests,
    list_users,
    reject_upgrade_request,
    revoke_pro,
)
from g15.auth.dependencies import get_current_admin
from g15.database import get_session
from g15.db.models import UpgradeRequest, User
from g15.gamification.trigger_engine import fire_event

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


def _user_response(user: User) -> AdminUserResponse:
    return AdminUserResponse(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        is_pro=user.is_pro,
        is_admin=user.is_admin,
        is_banned=user.is_banned,
        points=user.points,
        created_at=user.created_at,
        last_login=user.last_login,
    )


def _request_response(request: UpgradeRequest, user: User) -> AdminUpgradeRequestResponse:
    return AdminUpgradeRequestResponse(
        id=request.id,
        user_id=request.user_id,
        status=request.status,
        notes=request.notes,
        created_at=request.created_at,
        approved_by=request.approved_by,
        approved_at=request.approved_at,
        user_email=user.email,
        user_name=user.display_name,
    )


@router.get("/users", response_model=AdminUserListResponse)
async def admin_list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminUserListResponse:
    users, total = await list_users(db, page, per_page, search)
    return AdminUserListResponse(
        users=[_user_response(u) for u in users],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/upgrade-requests", response_model=list[AdminUpgradeRequestResponse])
async def admin_list_requests(
    status: str | None = Query(None),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> list[AdminUpgradeRequestResponse]:
    try:
        rows = await list_upgrade_requests(db, status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return [_request_response(r, u) for r, u in rows]


@router.post("/upgrade-requests/{request_id}/approve", response_model=AdminUpgradeRequestResponse)
async def admin_approve_request(
    request_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminUpgradeRequestResponse:
    try:
        request, user = await approve_upgrade_request(db, admin, request_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    response = _request_response(request, user)
    await fire_event(db, user.id, "pro_upgraded")
    return response


@router.post("/upgrade-requests/{request_id}/reject", response_model=AdminUpgradeRequestResponse)
async def admin_reject_request(
    request_id: int,
    body: RejectRequest | None = None,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminUpgradeRequestResponse:
    try:
        request, user = await reject_upgrade_request(
            db, admin, request_id, body.notes if body else None
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _request_response(request, user)


@router.post("/users/{user_id}/grant-pro", response_model=AdminUserResponse)
async def admin_grant_pro(
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminUserResponse:
    try:
        user = await grant_pro(db, admin, user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    response = _user_response(user)
    await fire_event(db, user.id, "pro_upgraded")
    return response


@router.post("/users/{user_id}/revoke-pro", response_model=AdminUserResponse)
async def admin_revoke_pro(
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminUserResponse:
    try:
        user = await revoke_pro(db, admin, user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _user_response(user)

"""Pro upgrade endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from g15.auth.dependencies import get_current_user
from g15.database import get_session
from g15.db.models import User
from g15.gamification.trigger_engine import fire_event
from g15.pro.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PendingRequestResponse,
    QuoteResponse,
    SubscriptionResponse,
    UpgradeRequestCreate,
    UpgradeRequestResponse,
)
from g15.pro.service import (
    build_quote,
    cancel_upgrade_request,
    checkout,
    get_pending_request,
    latest_subscription,
    request_pro_upgrade,
)

router = APIRouter(prefix="/api/v1/upgrade", tags=["Upgrade"])


@router.get("/quote", response_model=QuoteResponse)
async def quote(
    points: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
) -> QuoteResponse:
    """Price of one Pro month after redeeming points."""
    q = build_quote(user.points, points)
    return QuoteResponse(
        regular_price=float(q["regular_price"]),
        points_to_use=q["points_to_use"],
        discount=float(q["discount"]),
        final_price=float(q["final_price"]),
        available_points=q["available_points"],
    )


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout_endpoint(
    body: CheckoutRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CheckoutResponse:
    try:
        subscription = await checkout(db, user, body.points_to_use)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    response = CheckoutResponse(
        subscription=SubscriptionResponse.model_validate(subscription),
        is_pro=user.is_pro,
        points=user.points,
    )
    response.new_badges = await fire_event(db, user.id, "pro_upgraded")
    return response


@router.post("/requests", response_model=UpgradeRequestResponse, status_code=201)
async def create_request(
    body: UpgradeRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UpgradeRequestResponse:
    """Ask an admin to upgrade the account."""
    try:
        request = await request_pro_upgrade(db, user, body.notes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return UpgradeRequestResponse.model_validate(request)


@router.get("/requests/pending", response_model=PendingRequestResponse)
async def pending_request(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PendingRequestResponse:
    request = await get_pending_request(db, user.id)
    return PendingRequestResponse(
        pending=request is not None,
        request=UpgradeRequestResponse.model_validate(request) if request else None,
    )


@router.post("/requests/cancel", response_model=UpgradeRequestResponse)
async def cancel_request(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UpgradeRequestResponse:
    try:
        request = await cancel_upgrade_request(db, user.id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return UpgradeRequestResponse.model_validate(request)


@router.get("/subscription", response_model=SubscriptionResponse | None)
async def subscription(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SubscriptionResponse | None:
    sub = await latest_subscription(db, user.id)
    return SubscriptionResponse.model_validate(sub) if sub else None

"""Dashboard and report endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from g15.auth.dependencies import get_current_user
from g15.dashboard.schemas import DashboardResponse, ReportResponse
from g15.dashboard.service import get_dashboard, get_report
from g15.database import get_session
from g15.dependencies import get_optional_redis

router = APIRouter(prefix="/api/v1", tags=["Dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_optional_redis),
) -> dict:
    """Balances, recent activity, goals and badges (briefly cached in Redis)."""
    return await get_dashboard(db, redis, user)


@router.get("/reports", response_model=ReportResponse)
async def reports(
    duration: Literal["7days", "30days", "90days", "year"] = Query("30days"),
    user=Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Income and spending report for the chosen period."""
    return await get_report(db, user.id, duration)

"""Dashboard and report Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel


class DashboardSummary(BaseModel):
    total_income: float
    total_expenses: float
    balance: float


class DashboardTransaction(BaseModel):
    id: int
    amount: float
    type: str
    category: str | None = None
    date: str
    description: str | None = None


class DashboardGoal(BaseModel):
    id: int
    name: str
    target_amount: float
    current_amount: float
    progress: float
    completed_at: str | None = None


class DashboardResponse(BaseModel):
    """Everything the home screen needs in one call."""

    summary: DashboardSummary
    recent_transactions: list[DashboardTransaction]
    top_goals: list[DashboardGoal]
    unread_notifications: int
    badges_earned: int
    points: int
    is_pro: bool


class DailyPoint(BaseModel):
    date: str
    income: float
    expenses: float


class CategoryBreakdown(BaseModel):
    category: str
    amount: float
    percentage: float


class ReportTotals(BaseModel):
    income: float
    expenses: float
    net: float
    avg_daily_spending: float


class ReportResponse(BaseModel):
    duration: str
    start_date: str
    end_date: str
    daily: list[DailyPoint]
    categories: list[CategoryBreakdown]
    totals: ReportTotals

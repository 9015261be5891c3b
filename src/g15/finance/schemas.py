"""Pydantic schemas for transactions, goals and budget categories."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

TransactionType = Literal["income", "expense"]


def _clean_optional(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


# --- Transactions ---


class CreateTransactionRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    type: TransactionType
    category: str | None = Field(None, max_length=64)
    date: dt.date | None = None
    description: str | None = Field(None, max_length=255)

    clean_text = field_validator("category", "description")(_clean_optional)


class UpdateTransactionRequest(BaseModel):
    amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    type: TransactionType | None = None
    category: str | None = Field(None, max_length=64)
    date: dt.date | None = None
    description: str | None = Field(None, max_length=255)

    clean_text = field_validator("category", "description")(_clean_optional)


class TransactionResponse(BaseModel):
    id: int
    amount: float
    type: str
    category: str | None = None
    date: dt.date
    description: str | None = None
    created_at: dt.datetime


class TransactionCreatedResponse(TransactionResponse):
    new_badges: list[str] = []


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    next_cursor: str | None = None


class BalanceSummary(BaseModel):
    total_income: float
    total_expenses: float
    balance: float


# --- Goals ---


class CreateGoalRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    target_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    current_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)


class UpdateGoalRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    target_amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    current_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)


class ContributeRequest(BaseModel):
    """Add to (or, with a negative amount, withdraw from) a goal."""

    amount: Decimal = Field(..., max_digits=12, decimal_places=2)

    @field_validator("amount")
    @classmethod
    def non_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("Amount must not be zero")
        return v


class GoalResponse(BaseModel):
    id: int
    name: str
    target_amount: float
    current_amount: float
    progress: float
    completed_at: dt.datetime | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
    new_badges: list[str] = []


# --- Budget categories ---

_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CreateBudgetCategoryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    budget_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    color: str = Field("#3B82F6", pattern=_COLOR_PATTERN)


class UpdateBudgetCategoryRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=64)
    budget_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    color: str | None = Field(None, pattern=_COLOR_PATTERN)


class BudgetCategoryResponse(BaseModel):
    id: int
    name: str
    budget_amount: float
    color: str
    spent: float = 0.0
    remaining: float = 0.0
    percentage: float = 0.0
    created_at: dt.datetime
    new_badges: list[str] = []


class BudgetCategoryListResponse(BaseModel):
    categories: list[BudgetCategoryResponse]
    total_budget: float
    total_spent: float


class BudgetSuggestion(BaseModel):
    categoryId: int  # noqa: N815
    suggestedBudget: float  # noqa: N815


class BudgetSuggestionsResponse(BaseModel):
    suggestions: list[BudgetSuggestion]

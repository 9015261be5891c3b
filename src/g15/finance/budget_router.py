"""Budget category API endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from g15.assistant.llm import LLMError, LLMRateLimitError, get_llm_provider
from g15.assistant.prompts import BUSY_MESSAGE
from g15.assistant.service import suggest_budgets
from g15.auth.dependencies import get_current_pro_user, get_current_user
from g15.database import get_session
from g15.db.models import BudgetCategory, User
from g15.finance.budget_service import (
    category_spending,
    create_category,
    delete_category,
    list_categories,
    spending_summary,
    update_category,
)
from g15.finance.schemas import (
    BudgetCategoryListResponse,
    BudgetCategoryResponse,
    BudgetSuggestion,
    BudgetSuggestionsResponse,
    CreateBudgetCategoryRequest,
    UpdateBudgetCategoryRequest,
)
from g15.finance.transaction_service import list_transactions
from g15.gamification.trigger_engine import fire_event

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/budget", tags=["Budget"])

SUGGESTION_TRANSACTION_LIMIT = 50


def to_category_response(category: BudgetCategory, spent: Decimal) -> BudgetCategoryResponse:
    return BudgetCategoryResponse(
        id=category.id,
        name=category.name,
        budget_amount=float(category.budget_amount),
        color=category.color,
        created_at=category.created_at,
        **spending_summary(category, spent),
    )


@router.get("/categories", response_model=BudgetCategoryListResponse)
async def list_categories_endpoint(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BudgetCategoryListResponse:
    """Budget categories with what was spent against each."""
    categories = await list_categories(db, user.id)
    spending = await category_spending(db, user.id, start_date, end_date)

    items = [
        to_category_response(c, spending.get(c.name.lower(), Decimal("0")))
        for c in categories
    ]
    return BudgetCategoryListResponse(
        categories=items,
        total_budget=float(sum((Decimal(c.budget_amount) for c in categories), Decimal("0"))),
        total_spent=sum(i.spent for i in items),
    )


@router.post("/categories", response_model=BudgetCategoryResponse, status_code=201)
async def create_category_endpoint(
    body: CreateBudgetCategoryRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BudgetCategoryResponse:
    try:
        category = await create_category(db, user.id, body.name, body.budget_amount, body.color)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    spent = (await category_spending(db, user.id)).get(category.name.lower(), Decimal("0"))
    await db.commit()

    response = to_category_response(category, spent)
    response.new_badges = await fire_event(db, user.id, "budget_created")
    return response


@router.patch("/categories/{category_id}", response_model=BudgetCategoryResponse)
async def update_category_endpoint(
    category_id: int,
    body: UpdateBudgetCategoryRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BudgetCategoryResponse:
    try:
        category = await update_category(db, user.id, category_id, body.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    spent = (await category_spending(db, user.id)).get(category.name.lower(), Decimal("0"))
    await db.commit()
    return to_category_response(category, spent)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category_endpoint(
    category_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    try:
        await delete_category(db, user.id, category_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()


@router.post("/suggestions", response_model=BudgetSuggestionsResponse)
async def budget_suggestions(
    user: User = Depends(get_current_pro_user),
    db: AsyncSession = Depends(get_session),
) -> BudgetSuggestionsResponse:
    """Ask the assistant for budget amounts based on recent spending."""
    categories = await list_categories(db, user.id)
    if not categories:
        return BudgetSuggestionsResponse(suggestions=[])

    expenses, _ = await list_transactions(
        db, user.id, limit=SUGGESTION_TRANSACTION_LIMIT, type_="expense"
    )
    try:
        suggestions = await suggest_budgets(
            get_llm_provider(),
            categories=[
                {"id": c.id, "name": c.name, "budget_amount": float(c.budget_amount)}
                for c in categories
            ],
            transactions=[
                {
                    "date": tx.date.isoformat(),
                    "amount": float(tx.amount),
                    "category": tx.category,
                    "type": tx.type,
                }
                for tx in expenses
            ],
        )
    except LLMRateLimitError as e:
        raise HTTPException(status_code=503, detail=BUSY_MESSAGE) from e
    except LLMError as e:
        logger.warning("budget_suggestions_failed", user_id=user.id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to generate response") from e

    return BudgetSuggestionsResponse(suggestions=[BudgetSuggestion(**s) for s in suggestions])

"""Transaction API endpoints."""

from __future__ import annotations

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from g15.auth.dependencies import get_current_user
from g15.database import get_session
from g15.db.models import Transaction, User
from g15.finance.schemas import (
    BalanceSummary,
    CreateTransactionRequest,
    TransactionCreatedResponse,
    TransactionListResponse,
    TransactionResponse,
    UpdateTransactionRequest,
)
from g15.finance.transaction_service import (
    create_transaction,
    delete_transaction,
    get_balance_summary,
    get_transaction,
    list_transactions,
    update_transaction,
)
from g15.gamification.trigger_engine import fire_event

router = APIRouter(prefix="/api/v1/transactions", tags=["Transactions"])


def to_transaction_response(tx: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=tx.id,
        amount=float(tx.amount),
        type=tx.type,
        category=tx.category,
        date=tx.date,
        description=tx.description,
        created_at=tx.created_at,
    )


@router.get("", response_model=TransactionListResponse)
async def list_transactions_endpoint(
    type: Literal["income", "expense"] | None = Query(None),  # noqa: A002
    category: str | None = Query(None, max_length=64),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    search: str | None = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=100),
    cursor: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TransactionListResponse:
    """List transactions, newest first, with keyset pagination."""
    try:
        items, next_cursor = await list_transactions(
            db,
            user.id,
            limit=limit,
            cursor=cursor,
            type_=type,
            category=category,
            start_date=start_date,
            end_date=end_date,
            search=search,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return TransactionListResponse(
        transactions=[to_transaction_response(tx) for tx in items],
        next_cursor=next_cursor,
    )


@router.get("/summary", response_model=BalanceSummary)
async def transaction_summary(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BalanceSummary:
    totals = await get_balance_summary(db, user.id, start_date, end_date)
    return BalanceSummary(**{k: float(v) for k, v in totals.items()})


@router.post("", response_model=TransactionCreatedResponse, status_code=201)
async def create_transaction_endpoint(
    body: CreateTransactionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TransactionCreatedResponse:
    try:
        tx = await create_transaction(
            db,
            user.id,
            amount=body.amount,
            type_=body.type,
            category=body.category,
            tx_date=body.date,
            description=body.description,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    response = TransactionCreatedResponse(**to_transaction_response(tx).model_dump())
    response.new_badges = await fire_event(db, user.id, "transaction_created")
    return response


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction_endpoint(
    transaction_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TransactionResponse:
    try:
        tx = await get_transaction(db, user.id, transaction_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return to_transaction_response(tx)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction_endpoint(
    transaction_id: int,
    body: UpdateTransactionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TransactionResponse:
    try:
        tx = await update_transaction(db, user.id, transaction_id, body.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return to_transaction_response(tx)


@router.delete("/{transaction_id}", status_code=204)
async def delete_transaction_endpoint(
    transaction_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    try:
        await delete_transaction(db, user.id, transaction_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()

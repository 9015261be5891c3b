"""Shared group transactions and their participants."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import GroupMember, GroupTransaction, GroupTransactionMember, User
from g15.groups.group_service import require_member
from g15.social.notification_service import notify_group_members

logger = logging.getLogger(__name__)


async def add_group_transaction(
    db: AsyncSession,
    group_id: int,
    user_id: int,
    amount: Decimal,
    description: str,
    tx_date: date | None = None,
    is_expense: bool = True,
    category: str | None = None,
    member_ids: list[int] | None = None,
) -> tuple[GroupTransaction, list[int]]:
    """Record a transaction paid by the caller and split among participants.

    Participants default to every current member.
    """
    group, _ = await require_member(db, group_id, user_id)
    if amount <= 0:
        raise ValueError("Amount must be greater than zero")
    description = description.strip()
    if not description:
        raise ValueError("Description cannot be empty")

    result = await db.execute(select(GroupMember.user_id).where(GroupMember.group_id == group_id))
    current_members = set(result.scalars())

    if member_ids:
        participants = sorted(set(member_ids))
        outsiders = [uid for uid in participants if uid not in current_members]
        if outsiders:
            raise ValueError(f"Not group members: {', '.join(str(u) for u in outsiders)}")
    else:
        participants = sorted(current_members)

    now = datetime.now(timezone.utc)
    tx = GroupTransaction(
        group_id=group_id,
        user_id=user_id,
        amount=amount,
        description=description,
        date=tx_date or now.date(),
        is_expense=is_expense,
        category=category,
        created_at=now,
    )
    db.add(tx)
    await db.flush()
    db.add_all([GroupTransactionMember(transaction_id=tx.id, member_id=uid) for uid in participants])
    group.updated_at = now
    await db.flush()

    payer = await db.get(User, user_id)
    kind = "expense" if is_expense else "income"
    await notify_group_members(
        db,
        group_id,
        "group_transaction",
        title=f'New {kind} in "{group.name}"',
        message=f"{payer.display_name if payer else 'A member'} added {description} (${amount:.2f}).",
        exclude_user_id=user_id,
    )
    logger.info("Group transaction %d added to group %d by user %d", tx.id, group_id, user_id)
    return tx, participants


async def list_group_transactions(
    db: AsyncSession, group_id: int, user_id: int
) -> list[tuple[GroupTransaction, str, int]]:
    """Transactions newest first as (transaction, payer_name, participant_count)."""
    await require_member(db, group_id, user_id)

    counts = (
        select(
            GroupTransactionMember.transaction_id,
            func.count().label("participant_count"),
        )
        .group_by(GroupTransactionMember.transaction_id)
        .subquery()
    )
    result = await db.execute(
        select(GroupTransaction, User, counts.c.participant_count)
        .join(User, GroupTransaction.user_id == User.id)
        .outerjoin(counts, counts.c.transaction_id == GroupTransaction.id)
        .where(GroupTransaction.group_id == group_id)
        .order_by(
            GroupTransaction.date.desc(),
            GroupTransaction.created_at.desc(),
            GroupTransaction.id.desc(),
        )
    )
    return [
        (row.GroupTransaction, row.User.display_name, row.participant_count or 0)
        for row in result
    ]


async def _get_group_transaction(db: AsyncSession, group_id: int, tx_id: int) -> GroupTransaction:
    result = await db.execute(
        select(GroupTransaction).where(
            GroupTransaction.id == tx_id,
            GroupTransaction.group_id == group_id,
        )
    )
    tx = result.scalar_one_or_none()
    if tx is None:
        raise LookupError("Transaction not found")
    return tx


async def get_transaction_members(
    db: AsyncSession, group_id: int, user_id: int, tx_id: int
) -> list[User]:
    await require_member(db, group_id, user_id)
    await _get_group_transaction(db, group_id, tx_id)
    result = await db.execute(
        select(User)
        .join(GroupTransactionMember, GroupTransactionMember.member_id == User.id)
        .where(GroupTransactionMember.transaction_id == tx_id)
        .order_by(User.id)
    )
    return list(result.scalars().all())


async def delete_group_transaction(db: AsyncSession, group_id: int, user_id: int, tx_id: int) -> None:
    """Payer or group owner only."""
    _, membership = await require_member(db, group_id, user_id)
    tx = await _get_group_transaction(db, group_id, tx_id)
    if tx.user_id != user_id and membership.role != "owner":
        raise PermissionError("Only the payer or the group owner can delete this transaction")

    await db.execute(
        delete(GroupTransactionMember).where(GroupTransactionMember.transaction_id == tx_id)
    )
    await db.delete(tx)
    await db.flush()
    logger.info("Group transaction %d deleted from group %d by user %d", tx_id, group_id, user_id)

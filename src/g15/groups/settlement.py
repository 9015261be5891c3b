"""Group settlement: net balances and the transfers that clear them.

All arithmetic is done in integer cents so balances always sum to zero.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import GroupMember, GroupTransaction, GroupTransactionMember, User


@dataclass(frozen=True)
class SplitEntry:
    payer_id: int
    amount: Decimal
    participant_ids: Sequence[int]
    is_expense: bool = True


@dataclass(frozen=True)
class Transfer:
    from_user_id: int
    to_user_id: int
    cents: int

    @property
    def amount(self) -> Decimal:
        return Decimal(self.cents) / 100


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_cents(total_cents: int, participant_ids: Iterable[int]) -> dict[int, int]:
    """Split equally; leftover cents go one each to the lowest user ids."""
    ids = sorted(set(participant_ids))
    if not ids:
        return {}
    base, remainder = divmod(total_cents, len(ids))
    return {uid: base + (1 if i < remainder else 0) for i, uid in enumerate(ids)}


def net_balances(entries: Iterable[SplitEntry]) -> dict[int, int]:
    """Net position per user in cents. Positive means the group owes the user."""
    balances: dict[int, int] = defaultdict(int)
    for entry in entries:
        shares = split_cents(to_cents(entry.amount), entry.participant_ids)
        if not shares:
            continue
        sign = 1 if entry.is_expense else -1
        balances[entry.payer_id] += sign * sum(shares.values())
        for uid, share in shares.items():
            balances[uid] -= sign * share
    return dict(balances)


def settle(balances: dict[int, int]) -> list[Transfer]:
    """Greedy settlement.

    Repeatedly pays the largest creditor from the largest debtor (ties by
    lowest user id). Each step clears at least one side, so n users need
    at most n-1 transfers.
    """
    remaining = {uid: cents for uid, cents in balances.items() if cents != 0}
    transfers: list[Transfer] = []
    while remaining:
        debtor = min((uid for uid, c in remaining.items() if c < 0), key=lambda u: (remaining[u], u), default=None)
        creditor = min((uid for uid, c in remaining.items() if c > 0), key=lambda u: (-remaining[u], u), default=None)
        if debtor is None or creditor is None:
            raise ValueError("Balances do not sum to zero")

        cents = min(-remaining[debtor], remaining[creditor])
        transfers.append(Transfer(from_user_id=debtor, to_user_id=creditor, cents=cents))
        remaining[debtor] += cents
        remaining[creditor] -= cents
        for uid in (debtor, creditor):
            if remaining[uid] == 0:
                del remaining[uid]
    return transfers


def compute_settlement(entries: Iterable[SplitEntry]) -> tuple[dict[int, int], list[Transfer]]:
    balances = net_balances(entries)
    return balances, settle(balances)


async def get_group_settlement(db: AsyncSession, group_id: int) -> dict:
    """Balances for every member (and former participant) plus the transfers to settle up."""
    tx_result = await db.execute(
        select(GroupTransaction).where(GroupTransaction.group_id == group_id)
    )
    transactions = list(tx_result.scalars())

    participants: dict[int, list[int]] = defaultdict(list)
    if transactions:
        part_result = await db.execute(
            select(GroupTransactionMember).where(
                GroupTransactionMember.transaction_id.in_([t.id for t in transactions])
            )
        )
        for row in part_result.scalars():
            participants[row.transaction_id].append(row.member_id)

    entries = [
        SplitEntry(
            payer_id=t.user_id,
            amount=t.amount,
            participant_ids=participants.get(t.id, []),
            is_expense=t.is_expense,
        )
        for t in transactions
    ]
    balances, transfers = compute_settlement(entries)

    member_result = await db.execute(
        select(GroupMember.user_id).where(GroupMember.group_id == group_id)
    )
    user_ids = set(member_result.scalars()) | set(balances)
    names: dict[int, str] = {}
    if user_ids:
        user_result = await db.execute(select(User).where(User.id.in_(user_ids)))
        names = {u.id: u.display_name for u in user_result.scalars()}

    return {
        "settlements": [
            {
                "from_user_id": t.from_user_id,
                "from_user_name": names.get(t.from_user_id, "Unknown"),
                "to_user_id": t.to_user_id,
                "to_user_name": names.get(t.to_user_id, "Unknown"),
                "amount": float(t.amount),
            }
            for t in transfers
        ],
        "balances": [
            {
                "user_id": uid,
                "name": names.get(uid, "Unknown"),
                "balance": float(Decimal(balances.get(uid, 0)) / 100),
            }
            for uid in sorted(user_ids)
        ],
    }

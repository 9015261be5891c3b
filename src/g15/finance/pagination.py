"""Cursor-based pagination for transaction history.

Uses keyset pagination (not OFFSET) so pages stay stable while new
transactions are being recorded. The cursor encodes (date, id) as base64 JSON.
"""

from __future__ import annotations

import base64
import json
from datetime import date

from sqlalchemy import Select, and_, or_

from g15.db.models import Transaction


def encode_cursor(tx_date: date, tx_id: int) -> str:
    """Encode a cursor from transaction fields."""
    payload = {"date": tx_date.isoformat(), "id": tx_id}
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def decode_cursor(cursor: str) -> tuple[date, int]:
    """Decode a cursor into (date, id).

    Raises:
        ValueError: If cursor is malformed.
    """
    try:
        raw = base64.urlsafe_b64decode(cursor.encode())
        data = json.loads(raw)
        return date.fromisoformat(data["date"]), int(data["id"])
    except Exception as e:
        msg = f"Invalid cursor: {e}"
        raise ValueError(msg) from e


def apply_cursor(query: Select, cursor: str | None) -> Select:  # type: ignore[type-arg]
    """Apply keyset cursor to a transaction query.

    Assumes the query is already ordered by (date DESC, id DESC).
    """
    if cursor is None:
        return query

    cursor_date, cursor_id = decode_cursor(cursor)
    return query.where(
        or_(
            Transaction.date < cursor_date,
            and_(Transaction.date == cursor_date, Transaction.id < cursor_id),
        )
    )

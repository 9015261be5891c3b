"""Invitation code generation for groups.

Codes are 8-character alphanumeric (A-Z, 0-9), generated server-side
with a cryptographic random source.
"""

from __future__ import annotations

import secrets
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import GroupInvitation

INVITE_CHARSET = string.ascii_uppercase + string.digits  # A-Z, 0-9
INVITE_LENGTH = 8
MAX_ATTEMPTS = 10


def generate_invite_code() -> str:
    """Generate a cryptographically random 8-character invitation code."""
    return "".join(secrets.choice(INVITE_CHARSET) for _ in range(INVITE_LENGTH))


def normalize_invite_code(code: str) -> str:
    """Normalize a code to uppercase for case-insensitive lookup."""
    return code.strip().upper()


def is_well_formed(code: str) -> bool:
    code = normalize_invite_code(code)
    return len(code) == INVITE_LENGTH and all(c in INVITE_CHARSET for c in code)


async def generate_unique_invite_code(db: AsyncSession) -> str:
    """Generate a code no existing invitation uses."""
    for _ in range(MAX_ATTEMPTS):
        code = generate_invite_code()
        existing = await db.execute(
            select(GroupInvitation.id).where(GroupInvitation.invitation_code == code)
        )
        if existing.scalar_one_or_none() is None:
            return code
    raise RuntimeError(f"Failed to generate unique invitation code after {MAX_ATTEMPTS} attempts")

"""Test helpers shared across test packages."""

from __future__ import annotations

from httpx import AsyncClient
from sqlalchemy import update

from g15.assistant.llm import BaseLLMProvider
from g15.database import get_session
from g15.db.models import User

DEFAULT_PASSWORD = "SecureP@ss1"


class FakeLLMProvider(BaseLLMProvider):
    """Scripted provider: returns queued replies, or raises ``error`` when set."""

    def __init__(self) -> None:
        self.replies: list[str] = []
        self.default_reply = "Keep tracking your spending and you will reach your goals."
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return self.default_reply


def auth_headers(user: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {user['access_token']}"}


async def register_user(
    client: AsyncClient,
    email: str = "alice@example.com",
    password: str = DEFAULT_PASSWORD,
    first_name: str | None = "Alice",
    last_name: str | None = None,
) -> dict:
    """Register a user via the API. Returns credentials, tokens and id."""
    body: dict = {"email": email, "password": password}
    if first_name:
        body["first_name"] = first_name
    if last_name:
        body["last_name"] = last_name
    response = await client.post("/api/v1/auth/register", json=body)
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "email": email,
        "password": password,
        "user_id": data["user"]["id"],
        "access_token": data["access_token"],
        "refresh_token": data["refresh_token"],
    }


async def set_user_flags(user_id: int, **values: object) -> None:
    """Flip account flags (is_pro, is_admin, is_banned, points) directly."""
    async for session in get_session():
        await session.execute(update(User).where(User.id == user_id).values(**values))
        await session.commit()
        break

"""Shared test fixtures."""

from __future__ import annotations

import os

# g15.main builds the app at import time; configure it first.
os.environ["G15_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["G15_REDIS_URL"] = ""
os.environ["G15_JWT_SECRET"] = "test-secret-0123456789abcdef0123456789abcdef"
os.environ["G15_SEED_BADGES_ON_STARTUP"] = "false"
os.environ["G15_GEMINI_API_KEY"] = ""
os.environ["G15_LOG_FORMAT"] = "console"

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from g15.assistant.llm import reset_llm_provider, set_llm_provider  # noqa: E402
from g15.config import get_settings  # noqa: E402
from g15.database import close_db, create_tables, get_session, init_db  # noqa: E402
from g15.gamification.seed import seed_badges  # noqa: E402
from g15.main import create_app  # noqa: E402
from tests.helpers import FakeLLMProvider, register_user, set_user_flags  # noqa: E402


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client backed by a fresh in-memory database."""
    get_settings.cache_clear()
    settings = get_settings()
    app = create_app()

    await init_db(settings.database_url)
    await create_tables()
    async for session in get_session():
        await seed_badges(session)
        break

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()
    reset_llm_provider()


@pytest_asyncio.fixture
async def db_session(client: AsyncClient) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for test setup and assertions."""
    async for session in get_session():
        yield session
        break


@pytest.fixture
def fake_llm() -> FakeLLMProvider:
    """Install a scripted LLM provider for the duration of a test."""
    provider = FakeLLMProvider()
    set_llm_provider(provider)
    return provider


@pytest_asyncio.fixture
async def registered_user(client: AsyncClient) -> dict:
    return await register_user(client)


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, registered_user: dict) -> AsyncClient:
    """Client authenticated as a free-tier user."""
    client.headers["Authorization"] = f"Bearer {registered_user['access_token']}"
    return client


@pytest_asyncio.fixture
async def pro_client(authed_client: AsyncClient, registered_user: dict) -> AsyncClient:
    """Client authenticated as a Pro user."""
    await set_user_flags(registered_user["user_id"], is_pro=True)
    return authed_client


@pytest_asyncio.fixture
async def admin_user(client: AsyncClient) -> dict:
    user = await register_user(client, email="admin@example.com", first_name="Ada")
    await set_user_flags(user["user_id"], is_admin=True)
    return user

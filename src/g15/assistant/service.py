"""
Finance assistant service.

Conversations are append-only message logs. Each chat turn builds the
user's financial context server-side, asks the LLM provider and stores
both sides of the exchange.
"""

from __future__ import annotations

import json
import math
import re
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.assistant.llm import BaseLLMProvider, LLMError
from g15.assistant.markers import enhance_response
from g15.assistant.prompts import (
    WELCOME_MESSAGE,
    WELCOME_SUGGESTIONS,
    build_budget_suggestion_prompt,
    build_system_prompt,
    format_financial_context,
)
from g15.db.models import AIConversation, AIMessage, BudgetCategory, Goal, Transaction

logger = structlog.get_logger()

DEFAULT_TITLE = "New Conversation"
TITLE_LENGTH = 30
CONTEXT_GOALS = 5
CONTEXT_TRANSACTIONS = 15

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


# --- Conversations ---


async def create_conversation(db: AsyncSession, user_id: int) -> tuple[AIConversation, AIMessage]:
    """Start a conversation with the assistant's welcome message."""
    now = datetime.now(timezone.utc)
    conversation = AIConversation(user_id=user_id, title=DEFAULT_TITLE, created_at=now, updated_at=now)
    db.add(conversation)
    await db.flush()

    welcome = AIMessage(
        conversation_id=conversation.id,
        role="assistant",
        content=WELCOME_MESSAGE,
        visual_data=[{"type": "suggestion", "data": list(WELCOME_SUGGESTIONS)}],
        timestamp=now,
    )
    db.add(welcome)
    await db.flush()
    logger.info("ai_conversation_created", user_id=user_id, conversation_id=conversation.id)
    return conversation, welcome


async def list_conversations(db: AsyncSession, user_id: int) -> list[AIConversation]:
    result = await db.execute(
        select(AIConversation)
        .where(AIConversation.user_id == user_id)
        .order_by(AIConversation.updated_at.desc(), AIConversation.id.desc())
    )
    return list(result.scalars().all())


async def get_conversation(db: AsyncSession, user_id: int, conversation_id: int) -> AIConversation:
    result = await db.execute(
        select(AIConversation).where(
            AIConversation.id == conversation_id,
            AIConversation.user_id == user_id,
        )
    )
    conversation = result.scalar_one_or_none()
    if conversation is None:
        raise LookupError("Conversation not found")
    return conversation


async def list_messages(db: AsyncSession, user_id: int, conversation_id: int) -> list[AIMessage]:
    await get_conversation(db, user_id, conversation_id)
    result = await db.execute(
        select(AIMessage)
        .where(AIMessage.conversation_id == conversation_id)
        .order_by(AIMessage.timestamp, AIMessage.id)
    )
    return list(result.scalars().all())


async def delete_conversation(db: AsyncSession, user_id: int, conversation_id: int) -> None:
    conversation = await get_conversation(db, user_id, conversation_id)
    await db.delete(conversation)
    await db.flush()


# --- Context ---


async def build_user_context(db: AsyncSession, user_id: int) -> dict[str, list[dict[str, Any]]]:
    """Latest goals and transactions plus every budget category, as plain dicts."""
    goals = await db.execute(
        select(Goal)
        .where(Goal.user_id == user_id)
        .order_by(Goal.created_at.desc(), Goal.id.desc())
        .limit(CONTEXT_GOALS)
    )
    transactions = await db.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .limit(CONTEXT_TRANSACTIONS)
    )
    categories = await db.execute(
        select(BudgetCategory).where(BudgetCategory.user_id == user_id).order_by(BudgetCategory.name)
    )
    return {
        "goals": [
            {
                "name": g.name,
                "current_amount": float(g.current_amount),
                "target_amount": float(g.target_amount),
            }
            for g in goals.scalars()
        ],
        "categories": [
            {"id": c.id, "name": c.name, "budget_amount": float(c.budget_amount)}
            for c in categories.scalars()
        ],
        "transactions": [
            {
                "date": t.date.isoformat(),
                "type": t.type,
                "amount": float(t.amount),
                "category": t.category,
            }
            for t in transactions.scalars()
        ],
    }


async def generate_reply(
    provider: BaseLLMProvider,
    message: str,
    financial_context: dict[str, Any] | None = None,
) -> str:
    """Ask the provider to answer a message given the user's financial context."""
    context = financial_context or {}
    context_text = format_financial_context(
        goals=context.get("goals") or [],
        categories=context.get("categories") or [],
        transactions=context.get("transactions") or [],
    )
    return await provider.generate(build_system_prompt(context_text), message)


# --- Chat ---


async def chat(
    db: AsyncSession,
    provider: BaseLLMProvider,
    user_id: int,
    message: str,
    conversation_id: int | None = None,
) -> tuple[AIConversation, AIMessage, AIMessage]:
    """Run one chat turn and store both messages.

    Nothing is written when the provider fails.

    Raises:
        LookupError: Unknown conversation.
        LLMError: Provider failure (LLMRateLimitError on HTTP 429).
    """
    message = message.strip()
    if not message:
        raise ValueError("Message is required")

    conversation = None
    if conversation_id is not None:
        conversation = await get_conversation(db, user_id, conversation_id)

    context = await build_user_context(db, user_id)
    raw_reply = await generate_reply(provider, message, context)
    text, visuals = enhance_response(raw_reply)

    if conversation is None:
        conversation, _ = await create_conversation(db, user_id)

    user_messages = await db.execute(
        select(AIMessage.id).where(
            AIMessage.conversation_id == conversation.id,
            AIMessage.role == "user",
        ).limit(1)
    )
    if conversation.title == DEFAULT_TITLE and user_messages.first() is None:
        conversation.title = message[:TITLE_LENGTH] + "..."

    now = datetime.now(timezone.utc)
    user_message = AIMessage(
        conversation_id=conversation.id, role="user", content=message, timestamp=now
    )
    db.add(user_message)
    await db.flush()
    assistant_message = AIMessage(
        conversation_id=conversation.id,
        role="assistant",
        content=text,
        visual_data=visuals or None,
        timestamp=now,
    )
    db.add(assistant_message)
    conversation.updated_at = now
    await db.flush()
    logger.info("ai_chat_turn", user_id=user_id, conversation_id=conversation.id, visuals=len(visuals))
    return conversation, user_message, assistant_message


# --- Budget suggestions ---


def parse_budget_suggestions(text: str, valid_ids: set[int]) -> list[dict[str, Any]]:
    """Parse the model's JSON array of {categoryId, suggestedBudget}.

    Code fences are tolerated, unknown category ids are dropped and
    negative or non-finite amounts are rejected.
    """
    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    start, end = cleaned.find("["), cleaned.rfind("]")
    if start == -1 or end < start:
        msg = "Budget suggestions were not a JSON array"
        raise LLMError(msg)
    try:
        items = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        msg = f"Budget suggestions were not valid JSON: {e}"
        raise LLMError(msg) from e

    suggestions: list[dict[str, Any]] = []
    seen: set[int] = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            category_id = int(item["categoryId"])
            amount = float(item["suggestedBudget"])
        except (KeyError, TypeError, ValueError):
            continue
        if category_id not in valid_ids or category_id in seen:
            continue
        if not math.isfinite(amount) or amount < 0:
            continue
        seen.add(category_id)
        suggestions.append({"categoryId": category_id, "suggestedBudget": round(amount, 2)})
    return suggestions


async def suggest_budgets(
    provider: BaseLLMProvider,
    categories: list[dict[str, Any]],
    transactions: list[dict[str, Any]] | None = None,
) -> list[dict[str, Any]]:
    """Ask the model for a budget amount per category."""
    valid_ids = set()
    for category in categories:
        try:
            valid_ids.add(int(category["id"]))
        except (KeyError, TypeError, ValueError):
            continue
    if not valid_ids:
        return []

    prompt = build_budget_suggestion_prompt(categories, transactions or [])
    reply = await provider.generate(prompt, "")
    return parse_budget_suggestions(reply, valid_ids)

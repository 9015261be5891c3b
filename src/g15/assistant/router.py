"""Finance assistant API endpoints (Pro only)."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from g15.assistant.llm import LLMError, LLMRateLimitError, get_llm_provider
from g15.assistant.prompts import BUSY_MESSAGE
from g15.assistant.schemas import (
    ChatRequest,
    ChatResponse,
    ConversationCreatedResponse,
    ConversationResponse,
    MessageResponse,
)
from g15.assistant.service import (
    chat,
    create_conversation,
    delete_conversation,
    generate_reply,
    list_conversations,
    list_messages,
    suggest_budgets,
)
from g15.auth.dependencies import get_current_pro_user
from g15.database import get_session
from g15.db.models import User

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/ai", tags=["Assistant"])

GENERATION_FAILED = "Failed to generate response"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/finance-assistant")
async def finance_assistant(
    request: Request,
    user: User = Depends(get_current_pro_user),
) -> JSONResponse:
    """Stateless assistant call.

    Replies use ``{"generatedText"}`` / ``{"suggestions"}`` and failures
    ``{"error"}`` so existing clients keep working.
    """
    try:
        body: Any = await request.json()
    except ValueError:
        return _error(400, "Invalid JSON body")
    if not isinstance(body, dict):
        return _error(400, "Invalid JSON body")

    action = body.get("action")
    provider = get_llm_provider()
    try:
        if action is not None:
            if action != "suggest_budgets":
                return _error(400, f"Unknown action: {action}")
            payload = body.get("payload") or {}
            if not isinstance(payload, dict):
                return _error(400, "payload must be an object")
            categories = payload.get("categories") or []
            if not isinstance(categories, list):
                return _error(400, "categories must be a list")
            suggestions = await suggest_budgets(
                provider, categories, payload.get("transactions") or []
            )
            return JSONResponse(content={"suggestions": suggestions})

        message = body.get("message")
        if not message or not isinstance(message, str) or not message.strip():
            return _error(400, "Message is required")
        context = body.get("financialContext")
        text = await generate_reply(provider, message, context if isinstance(context, dict) else None)
    except LLMRateLimitError:
        return _error(503, BUSY_MESSAGE)
    except LLMError as e:
        logger.warning("finance_assistant_failed", user_id=user.id, error=str(e))
        return _error(500, GENERATION_FAILED)

    return JSONResponse(content={"generatedText": text})


@router.post("/conversations", response_model=ConversationCreatedResponse, status_code=201)
async def create_conversation_endpoint(
    user: User = Depends(get_current_pro_user),
    db: AsyncSession = Depends(get_session),
) -> ConversationCreatedResponse:
    conversation, welcome = await create_conversation(db, user.id)
    await db.commit()
    return ConversationCreatedResponse(
        conversation=ConversationResponse.model_validate(conversation),
        messages=[MessageResponse.model_validate(welcome)],
    )


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations_endpoint(
    user: User = Depends(get_current_pro_user),
    db: AsyncSession = Depends(get_session),
) -> list[ConversationResponse]:
    return [ConversationResponse.model_validate(c) for c in await list_conversations(db, user.id)]


@router.get("/conversations/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages_endpoint(
    conversation_id: int,
    user: User = Depends(get_current_pro_user),
    db: AsyncSession = Depends(get_session),
) -> list[MessageResponse]:
    try:
        messages = await list_messages(db, user.id, conversation_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return [MessageResponse.model_validate(m) for m in messages]


@router.delete("/conversations/{conversation_id}", status_code=204)
async def delete_conversation_endpoint(
    conversation_id: int,
    user: User = Depends(get_current_pro_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    try:
        await delete_conversation(db, user.id, conversation_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()


@router.post("/chat", response_model=ChatResponse)
async def chat_endpoint(
    body: ChatRequest,
    user: User = Depends(get_current_pro_user),
    db: AsyncSession = Depends(get_session),
) -> ChatResponse:
    """Send a message; starts a new conversation when none is given."""
    try:
        conversation, user_message, assistant_message = await chat(
            db, get_llm_provider(), user.id, body.message, body.conversation_id
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except LLMRateLimitError as e:
        raise HTTPException(status_code=503, detail=BUSY_MESSAGE) from e
    except LLMError as e:
        logger.warning("ai_chat_failed", user_id=user.id, error=str(e))
        raise HTTPException(status_code=500, detail=GENERATION_FAILED) from e

    await db.commit()
    return ChatResponse(
        conversation=ConversationResponse.model_validate(conversation),
        user_message=MessageResponse.model_validate(user_message),
        assistant_message=MessageResponse.model_validate(assistant_message),
    )

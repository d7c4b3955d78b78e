"""Web chat endpoints.

The chat UI posts one message at a time and receives a single
structured reply.  Conversations are keyed by the client's session id
(or user id), falling back to a fresh id for anonymous first messages.
"""

from __future__ import annotations

from uuid import uuid4

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from config.languages import get_supported_languages
from src.models.enums import ChannelType
from src.models.payload import ChatPayload

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class ChatMessageRequest(BaseModel):
    """Body for the POST /api/chat/message endpoint."""

    message: str = Field(default="", max_length=2000)
    language: str = Field(default="auto", description="Language code, or 'auto' to detect")
    user_id: str | None = None
    session_id: str | None = None


class LanguageOption(BaseModel):
    code: str
    name: str
    native_name: str


class LanguageListResponse(BaseModel):
    success: bool = True
    languages: list[LanguageOption]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/message", response_model=ChatPayload)
async def chat_message(body: ChatMessageRequest, request: Request) -> ChatPayload:
    """Route one chat message and return the composed reply."""
    if not body.message.strip():
        raise HTTPException(status_code=400, detail="Message is required.")

    session_id = body.session_id or body.user_id or uuid4().hex
    payload = await request.app.state.message_router.handle_inbound_message(
        ChannelType.WEB,
        session_id,
        body.message,
        body.language,
        session_id=session_id,
    )
    return payload


@router.get("/languages", response_model=LanguageListResponse)
async def list_languages() -> LanguageListResponse:
    """Languages the assistant can reply in."""
    return LanguageListResponse(
        languages=[
            LanguageOption(code=lang.code, name=lang.name_english, native_name=lang.name_native)
            for lang in get_supported_languages()
        ]
    )

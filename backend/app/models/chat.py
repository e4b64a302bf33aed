# chat models: virtual companion sessions and messages
# mirrors the client's chatService.ts types

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from app.config import settings
from app.models.crisis import CrisisAlert


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class ChatSession(BaseModel):
    id: str
    user_id: str = Field(..., alias="userId")
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: datetime = Field(..., alias="createdAt")
    last_message_at: datetime = Field(..., alias="lastMessageAt")
    title: str = "New Conversation"
    is_active: bool = Field(True, alias="isActive")

    model_config = {"populate_by_name": True}


class ChatRequest(BaseModel):
    message: str = Field(..., max_length=settings.CHAT_MESSAGE_MAX_LENGTH)
    session_id: Optional[str] = Field(None, alias="sessionId")

    model_config = {"populate_by_name": True}


class ChatResponse(BaseModel):
    session_id: str = Field(..., alias="sessionId")
    message: str
    timestamp: datetime
    crisis: Optional[CrisisAlert] = None

    model_config = {"populate_by_name": True}

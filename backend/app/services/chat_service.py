# chat service: supportive virtual companion backed by gemini
# sessions live in the chat_sessions collection, deletes are soft (is_active=false)

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from langchain_core.messages import AIMessage, HumanMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from app.config import settings
from app.models.chat import ChatResponse
from app.models.crisis import CrisisAlert
from app.services import crisis_service
from app.services.db import Database
from app.services.llm import get_llm
from app.services.resilience import DATABASE, LLM, call_with_retry

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 50

SYSTEM_PROMPT = """You are a compassionate and empathetic virtual mental health support companion. Your role is to:

1. Listen actively and validate the user's feelings without judgment
2. Provide emotional support and encouragement
3. Help users reflect on their thoughts and emotions
4. Suggest healthy coping strategies and self-care practices
5. Recognize signs of crisis and provide appropriate resources

Important guidelines:
- You are NOT a replacement for professional therapy or medical advice
- Always encourage users to seek professional help for serious concerns
- If a user expresses thoughts of self-harm or suicide, provide crisis resources immediately
- Maintain a warm, supportive, and non-judgmental tone
- Ask open-ended questions to help users explore their feelings
- Validate emotions while gently challenging negative thought patterns
- Respect boundaries and user autonomy

Remember: Your goal is to provide support and encouragement, not to diagnose or treat mental health conditions."""

CHAT_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    MessagesPlaceholder("history"),
])

_chat_chain = None


class SessionNotFoundError(LookupError):
    """session does not exist, belongs to another user, or was deleted"""


class CompanionUnavailableError(RuntimeError):
    """the reply could not be generated. carries the crisis alert for the message, if any"""

    def __init__(self, message: str, crisis: Optional[CrisisAlert] = None):
        super().__init__(message)
        self.crisis = crisis


def get_chat_chain():
    """get or create the companion chat chain"""
    global _chat_chain
    if _chat_chain is None:
        _chat_chain = CHAT_PROMPT | get_llm(temperature=0.7, max_output_tokens=1024) | StrOutputParser()
    return _chat_chain


def generate_session_title(first_message: str) -> str:
    title = first_message.strip()
    if len(title) > TITLE_MAX_LENGTH:
        return title[:TITLE_MAX_LENGTH - 3] + "..."
    return title


def _to_langchain_messages(messages: list[dict]) -> list:
    history = []
    for m in messages:
        if m["role"] == "user":
            history.append(HumanMessage(content=m["content"]))
        else:
            history.append(AIMessage(content=m["content"]))
    return history


def _doc_to_session(doc: dict) -> dict:
    session = {k: v for k, v in doc.items() if k != "_id"}
    session["messages"] = list(session.get("messages", []))
    session["id"] = session["session_id"]
    return session


async def generate_reply(context: list[dict]) -> str:
    chain = get_chat_chain()
    reply = await call_with_retry(LLM, chain.ainvoke, {"history": _to_langchain_messages(context)})
    return reply.strip()


async def get_session(db: Database, user_id: str, session_id: str) -> Optional[dict]:
    doc = await call_with_retry(
        DATABASE,
        db.chat_sessions.find_one,
        {"session_id": session_id, "user_id": user_id, "is_active": True},
    )
    return _doc_to_session(doc) if doc else None


async def get_user_sessions(db: Database, user_id: str) -> list[dict]:
    """active sessions, most recent first"""

    async def _fetch():
        cursor = db.chat_sessions.find({"user_id": user_id, "is_active": True}).sort("last_message_at", -1)
        return await cursor.to_list(length=None)

    try:
        docs = await call_with_retry(DATABASE, _fetch)
    except Exception as e:
        logger.error(f"Error retrieving chat sessions for user {user_id}: {e}")
        raise
    return [_doc_to_session(d) for d in docs]


async def delete_session(db: Database, user_id: str, session_id: str) -> None:
    """soft delete, a no-op for unknown sessions"""
    result = await call_with_retry(
        DATABASE,
        db.chat_sessions.update_one,
        {"session_id": session_id, "user_id": user_id},
        {"$set": {"is_active": False}},
    )
    if result.modified_count:
        logger.info(f"Chat session {session_id} deleted for user {user_id}")


async def send_message(db: Database, user_id: str, message: str, session_id: Optional[str] = None) -> ChatResponse:
    """append a user message, get the companion's reply and persist both"""
    if not user_id:
        raise ValueError("User ID cannot be null or empty")
    if not message or not message.strip():
        raise ValueError("Message cannot be null or empty")

    now = datetime.now(timezone.utc)
    if session_id:
        session = await get_session(db, user_id, session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
    else:
        session = {
            "session_id": str(uuid.uuid4()),
            "user_id": user_id,
            "messages": [],
            "created_at": now,
            "title": generate_session_title(message),
            "is_active": True,
        }

    session["messages"].append({"role": "user", "content": message, "timestamp": now})
    context = session["messages"][-settings.CHAT_CONTEXT_MESSAGES:]

    reply, assessment = await asyncio.gather(
        generate_reply(context),
        crisis_service.assess(message),
        return_exceptions=True,
    )
    if isinstance(assessment, Exception):
        logger.warning(f"Crisis check failed for user {user_id}, using keyword scan: {assessment}")
        assessment = crisis_service.keyword_assessment(message)
    crisis = crisis_service.to_alert(assessment)

    if isinstance(reply, Exception):
        logger.error(f"Error processing chat message for user {user_id}: {reply}")
        raise CompanionUnavailableError(str(reply), crisis) from reply

    replied_at = datetime.now(timezone.utc)
    session["messages"].append({"role": "assistant", "content": reply, "timestamp": replied_at})
    session["last_message_at"] = replied_at

    stored = {k: v for k, v in session.items() if k != "id"}
    await call_with_retry(
        DATABASE,
        db.chat_sessions.update_one,
        {"session_id": stored["session_id"], "user_id": user_id},
        {"$set": stored},
        upsert=True,
    )
    logger.info(f"Chat message processed for user {user_id} in session {stored['session_id']}")

    return ChatResponse(
        sessionId=stored["session_id"],
        message=reply,
        timestamp=replied_at,
        crisis=crisis,
    )

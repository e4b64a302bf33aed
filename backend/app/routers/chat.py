# chat router: conversations with the virtual support companion
# sessions belong to the authenticated user, deletes are soft

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.dependencies import get_current_user
from app.models.chat import ChatMessage, ChatRequest, ChatResponse, ChatSession
from app.services import chat_service
from app.services.chat_service import CompanionUnavailableError, SessionNotFoundError
from app.services.db import Database, get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/chat", tags=["chat"])

COMPANION_UNAVAILABLE = "The companion is unavailable right now, please try again"


def _to_session(session: dict) -> ChatSession:
    return ChatSession(
        id=session["session_id"],
        userId=session["user_id"],
        messages=[ChatMessage(**m) for m in session.get("messages", [])],
        createdAt=session["created_at"],
        lastMessageAt=session.get("last_message_at", session["created_at"]),
        title=session.get("title", "New Conversation"),
        isActive=session.get("is_active", True),
    )


@router.post("/message", response_model=ChatResponse)
async def send_message(
    body: ChatRequest,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """send a message, starting a new session when no sessionId is given"""
    if not body.message or not body.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message cannot be empty")

    try:
        return await chat_service.send_message(db, current_user["id"], body.message, body.session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat session not found")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CompanionUnavailableError as e:
        logger.error(f"Chat reply failed for user {current_user['id']}: {e}")
        if e.crisis is None:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=COMPANION_UNAVAILABLE)
        # still surface hotline resources when the reply could not be generated
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": COMPANION_UNAVAILABLE, "crisis": e.crisis.model_dump(mode="json", by_alias=True)},
        )
    except Exception as e:
        logger.error(f"Chat reply failed for user {current_user['id']}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=COMPANION_UNAVAILABLE)


@router.get("/session/{session_id}", response_model=ChatSession)
async def get_session(
    session_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    session = await chat_service.get_session(db, current_user["id"], session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat session not found")
    return _to_session(session)


@router.get("/sessions", response_model=list[ChatSession])
async def list_sessions(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """active sessions, most recent first"""
    sessions = await chat_service.get_user_sessions(db, current_user["id"])
    return [_to_session(s) for s in sessions]


@router.delete("/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    await chat_service.delete_session(db, current_user["id"], session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# journal router: write, analyse, browse and export journal entries
# every endpoint is scoped to the authenticated user's own entries

import asyncio
import calendar
import logging
import uuid
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status

from app.config import settings
from app.dependencies import get_current_user
from app.models.journal import (
    CalendarDay,
    CalendarEntrySummary,
    JournalEntryCreate,
    JournalEntryResponse,
    JournalEntryUpdate,
    StreakResponse,
    VoiceTranscriptionResponse,
)
from app.services import (
    analysis_service,
    blob_service,
    crisis_service,
    export_service,
    journal_store,
    speech_service,
    streak_service,
)
from app.services.db import Database, get_db
from app.services.streak_service import utc_date

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/journal", tags=["journal"])

EXPORT_FORMATS = {
    "json": "application/json",
    "csv": "text/csv",
}


def _doc_to_entry(doc: dict, crisis=None) -> JournalEntryResponse:
    """convert a mongodb entry document to the response model"""
    return JournalEntryResponse(
        id=doc["entry_id"],
        userId=doc["user_id"],
        timestamp=doc["timestamp"],
        text=doc.get("text", ""),
        isVoiceEntry=doc.get("is_voice_entry", False),
        audioBlobUrl=doc.get("audio_blob_url"),
        sentiment=doc.get("sentiment", ""),
        sentimentScore=doc.get("sentiment_score", 0.0),
        keyPhrases=doc.get("key_phrases", []),
        summary=doc.get("summary", ""),
        affirmation=doc.get("affirmation", ""),
        updatedAt=doc.get("updated_at"),
        crisis=crisis,
    )


async def _analyze_with_crisis_check(text: str):
    """run text analysis and crisis detection side by side"""
    try:
        return await asyncio.gather(
            analysis_service.analyze(text),
            crisis_service.assess(text),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Journal analysis failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to analyze journal entry",
        )


async def _refresh_streak(db: Database, user_id: str):
    """recompute cached streaks after entries change. failures only log."""
    try:
        await streak_service.update_user_streak(db, user_id, force=True)
    except Exception as e:
        logger.warning(f"Could not refresh streak for user {user_id}: {e}")


@router.get("", response_model=list[JournalEntryResponse])
async def list_entries(
    limit: int = Query(100, ge=1, le=500),
    skip: int = Query(0, ge=0),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """list the user's entries, newest first"""
    entries = await journal_store.get_entries_for_user(db, current_user["id"], limit=limit, skip=skip)
    return [_doc_to_entry(doc) for doc in entries]


@router.post("/analyze", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def analyze_entry(
    body: JournalEntryCreate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """analyse and save a new entry, typed or transcribed from voice"""
    if not body.text or not body.text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No text or audio provided.")

    user_id = current_user["id"]
    analysis, assessment = await _analyze_with_crisis_check(body.text)

    timestamp = body.timestamp or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    doc = {
        "entry_id": str(uuid.uuid4()),
        "user_id": user_id,
        "timestamp": timestamp,
        "text": body.text,
        "is_voice_entry": body.is_voice_entry,
        "audio_blob_url": body.audio_blob_url,
        "sentiment": analysis.sentiment,
        "sentiment_score": analysis.sentiment_score,
        "key_phrases": analysis.key_phrases,
        "summary": analysis.summary,
        "affirmation": analysis.affirmation,
        "updated_at": None,
    }
    await journal_store.save_entry(db, doc)
    await _refresh_streak(db, user_id)

    return _doc_to_entry(doc, crisis_service.to_alert(assessment))


@router.post("/voice", response_model=VoiceTranscriptionResponse)
async def transcribe_voice(
    audio: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
):
    """store a voice recording and return its transcription for review"""
    data = await audio.read() if audio is not None else b""
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Audio file is required.")

    content_type = audio.content_type or ""
    if not content_type.startswith("audio/"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported audio type: {content_type or 'unknown'}",
        )

    if len(data) > settings.AUDIO_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Audio file exceeds the {settings.AUDIO_MAX_BYTES // (1024 * 1024)} MB limit",
        )

    try:
        audio_url, transcription = await asyncio.gather(
            blob_service.upload_audio(data, audio.filename, content_type, current_user["id"]),
            speech_service.transcribe(data, content_type),
        )
    except Exception as e:
        logger.error(f"Voice processing failed for user {current_user['id']}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to process voice recording",
        )

    return VoiceTranscriptionResponse(transcription=transcription, audioBlobUrl=audio_url)


@router.get("/calendar", response_model=list[CalendarDay])
async def get_calendar(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """entries grouped by utc day, defaults to the current month"""
    now = datetime.now(timezone.utc)
    if start_date is None:
        start_date = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if end_date is None:
        last_day = calendar.monthrange(start_date.year, start_date.month)[1]
        end_date = start_date.replace(day=last_day, hour=0, minute=0, second=0, microsecond=0)

    # naive query params are utc
    if start_date.tzinfo is None:
        start_date = start_date.replace(tzinfo=timezone.utc)
    if end_date.tzinfo is None:
        end_date = end_date.replace(tzinfo=timezone.utc)

    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Start date must be before end date",
        )

    # the calendar works in whole days, so the end day is included up to midnight
    end_before = datetime.combine(utc_date(end_date) + timedelta(days=1), time.min, tzinfo=timezone.utc)
    entries = await journal_store.get_entries_in_range(db, current_user["id"], start_date, end_before)

    days: dict[str, list[CalendarEntrySummary]] = {}
    for doc in entries:
        day = utc_date(doc["timestamp"]).isoformat()
        days.setdefault(day, []).append(CalendarEntrySummary(
            id=doc["entry_id"],
            timestamp=doc["timestamp"],
            sentiment=doc.get("sentiment", ""),
            sentimentScore=doc.get("sentiment_score", 0.0),
            summary=doc.get("summary", ""),
        ))

    return [
        CalendarDay(date=day, count=len(items), entries=items)
        for day, items in sorted(days.items())
    ]


@router.get("/streak", response_model=StreakResponse)
async def get_streak(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """current and longest consecutive-day streaks"""
    current, longest = await streak_service.calculate_user_streaks(db, current_user["id"])
    return StreakResponse(
        currentStreak=current,
        longestStreak=longest,
        calculatedAt=datetime.now(timezone.utc),
    )


@router.get("/export/{export_format}")
async def export_entries(
    export_format: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """download every entry as json or csv"""
    export_format = export_format.lower()
    if export_format not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid export format. Use 'json' or 'csv'.",
        )

    if export_format == "json":
        content = await export_service.export_json(db, current_user["id"])
    else:
        content = await export_service.export_csv(db, current_user["id"])

    filename = f"journal-export-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}.{export_format}"
    return Response(
        content=content,
        media_type=EXPORT_FORMATS[export_format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{entry_id}", response_model=JournalEntryResponse)
async def get_entry(
    entry_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    doc = await journal_store.get_entry(db, current_user["id"], entry_id)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")
    return _doc_to_entry(doc)


@router.put("/{entry_id}", response_model=JournalEntryResponse)
async def update_entry(
    entry_id: str,
    body: JournalEntryUpdate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """replace an entry's text and re-run its analysis"""
    user_id = current_user["id"]
    if not body.text or not body.text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Journal text cannot be empty")

    # check ownership before paying for analysis
    if await journal_store.get_entry(db, user_id, entry_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")

    analysis, assessment = await _analyze_with_crisis_check(body.text)
    doc = await journal_store.update_entry(db, user_id, entry_id, {
        "text": body.text,
        "sentiment": analysis.sentiment,
        "sentiment_score": analysis.sentiment_score,
        "key_phrases": analysis.key_phrases,
        "summary": analysis.summary,
        "affirmation": analysis.affirmation,
        "updated_at": datetime.now(timezone.utc),
    })
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")

    return _doc_to_entry(doc, crisis_service.to_alert(assessment))


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user_id = current_user["id"]
    if not await journal_store.delete_entry(db, user_id, entry_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")
    await _refresh_streak(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

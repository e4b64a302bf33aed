# journal models: entry submission, analysis, calendar and streak schemas
# mirrors the client's JournalEntry / CalendarEntry / StreakData types

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.config import settings
from app.models.crisis import CrisisAlert


class JournalEntryCreate(BaseModel):
    """payload for a new entry. voice entries send the transcription as text."""
    text: str = Field("", max_length=settings.JOURNAL_MAX_LENGTH, description="journal entry text")
    timestamp: Optional[datetime] = Field(None, description="entry time, defaults to now (utc)")
    is_voice_entry: bool = Field(False, alias="isVoiceEntry")
    audio_blob_url: Optional[str] = Field(None, alias="audioBlobUrl")

    model_config = {"populate_by_name": True}


class JournalEntryUpdate(BaseModel):
    text: str = Field(..., max_length=settings.JOURNAL_MAX_LENGTH)


class JournalAnalysisResult(BaseModel):
    """output of sentiment, key phrase and affirmation analysis"""
    sentiment: str
    sentiment_score: float = Field(..., alias="sentimentScore")
    key_phrases: list[str] = Field(default_factory=list, alias="keyPhrases")
    summary: str = ""
    affirmation: str = ""

    model_config = {"populate_by_name": True}


class JournalEntryResponse(BaseModel):
    """stored journal entry with its analysis"""
    id: str
    user_id: str = Field(..., alias="userId")
    timestamp: datetime
    text: str = ""
    is_voice_entry: bool = Field(False, alias="isVoiceEntry")
    audio_blob_url: Optional[str] = Field(None, alias="audioBlobUrl")
    sentiment: str = ""
    sentiment_score: float = Field(0.0, alias="sentimentScore")
    key_phrases: list[str] = Field(default_factory=list, alias="keyPhrases")
    summary: str = ""
    affirmation: str = ""
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    crisis: Optional[CrisisAlert] = None

    model_config = {"populate_by_name": True}


class VoiceTranscriptionResponse(BaseModel):
    transcription: str
    audio_blob_url: str = Field(..., alias="audioBlobUrl")

    model_config = {"populate_by_name": True}


class CalendarEntrySummary(BaseModel):
    id: str
    timestamp: datetime
    sentiment: str = ""
    sentiment_score: float = Field(0.0, alias="sentimentScore")
    summary: str = ""

    model_config = {"populate_by_name": True}


class CalendarDay(BaseModel):
    """all entries written on one utc calendar date"""
    date: str
    count: int
    entries: list[CalendarEntrySummary] = Field(default_factory=list)


class StreakResponse(BaseModel):
    current_streak: int = Field(..., alias="currentStreak")
    longest_streak: int = Field(..., alias="longestStreak")
    calculated_at: datetime = Field(..., alias="calculatedAt")

    model_config = {"populate_by_name": True}

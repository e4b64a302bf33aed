# export service: a user's journal as a json or csv download

import csv
import io
import json
import logging
from datetime import datetime, timezone

from app.services import journal_store, user_service
from app.services.db import Database

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Entry ID", "Date", "Text", "Is Voice Entry", "Audio URL",
    "Sentiment", "Sentiment Score", "Key Phrases", "Summary", "Affirmation",
]


def _isoformat(value) -> str:
    return value.isoformat() if isinstance(value, datetime) else str(value or "")


def _flatten(value) -> str:
    """single-line text for csv cells"""
    if not value:
        return ""
    return str(value).replace("\r", "").replace("\n", " ")


async def export_json(db: Database, user_id: str) -> str:
    logger.info(f"Exporting data to JSON for user {user_id}")
    user = await user_service.get_user_by_id(db, user_id) or {}
    entries = await journal_store.get_entries_for_user(db, user_id)

    export = {
        "exportDate": datetime.now(timezone.utc).isoformat(),
        "user": {
            "userId": user_id,
            "username": user.get("username"),
            "email": user.get("email"),
        },
        "totalEntries": len(entries),
        "entries": [
            {
                "id": e["entry_id"],
                "date": _isoformat(e.get("timestamp")),
                "text": e.get("text", ""),
                "isVoiceEntry": e.get("is_voice_entry", False),
                "audioBlobUrl": e.get("audio_blob_url"),
                "sentiment": e.get("sentiment", ""),
                "sentimentConfidence": e.get("sentiment_score", 0.0),
                "keyPhrases": e.get("key_phrases", []),
                "summary": e.get("summary", ""),
                "affirmation": e.get("affirmation", ""),
            }
            for e in entries
        ],
    }
    logger.info(f"Successfully exported {len(entries)} entries to JSON for user {user_id}")
    return json.dumps(export, indent=2)


async def export_csv(db: Database, user_id: str) -> str:
    logger.info(f"Exporting data to CSV for user {user_id}")
    entries = await journal_store.get_entries_for_user(db, user_id)

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for e in entries:
        ts = e.get("timestamp")
        writer.writerow([
            e["entry_id"],
            ts.strftime("%Y-%m-%d %H:%M:%S") if isinstance(ts, datetime) else _isoformat(ts),
            _flatten(e.get("text")),
            str(bool(e.get("is_voice_entry", False))),
            e.get("audio_blob_url") or "",
            e.get("sentiment", ""),
            f"{e.get('sentiment_score', 0.0):.4f}",
            "; ".join(e.get("key_phrases", [])),
            _flatten(e.get("summary")),
            _flatten(e.get("affirmation")),
        ])

    logger.info(f"Successfully exported {len(entries)} entries to CSV for user {user_id}")
    return buffer.getvalue()

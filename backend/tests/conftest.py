# shared fixtures for backend api tests
# provides mock db, test users, auth tokens, and httpx test client

import os

# test settings, must be in place before app.config is imported
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ["RETRY_BACKOFF_SCALE"] = "0"

import copy
import re

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from datetime import datetime, timezone, timedelta
from bson import ObjectId

from httpx import AsyncClient, ASGITransport

from app.main import app
from app.services.db import get_db
from app.services.auth_service import create_access_token
from app.dependencies import get_current_user


# test ids
USER_OID = ObjectId("665f1c2e8b3e4a0012345601")
USER_2_OID = ObjectId("665f1c2e8b3e4a0012345602")
USER_ID = str(USER_OID)
USER_2_ID = str(USER_2_OID)

NOW = datetime.now(timezone.utc)


# test user documents (as they'd appear from mongodb)

USER_DOC = {
    "_id": USER_OID,
    "email": "alex.rivera@email.com",
    "name": "Alex Rivera",
    "username": "alex_writes",
    "profile_picture_url": "https://lh3.googleusercontent.com/a/alex",
    "provider": "google",
    "provider_id": "google-sub-alex",
    "created_at": datetime(2025, 6, 1, tzinfo=timezone.utc),
    "last_login_at": datetime(2025, 6, 10, tzinfo=timezone.utc),
    "current_streak": 0,
    "longest_streak": 0,
}

USER_2_DOC = {
    "_id": USER_2_OID,
    "email": "jordan.kim@email.com",
    "name": "Jordan Kim",
    "username": "jordan",
    "profile_picture_url": None,
    "provider": "google",
    "provider_id": "google-sub-jordan",
    "created_at": datetime(2025, 5, 15, tzinfo=timezone.utc),
    "last_login_at": datetime(2025, 6, 9, tzinfo=timezone.utc),
    "current_streak": 0,
    "longest_streak": 0,
}


# sample data

SAMPLE_ENTRY = {
    "_id": ObjectId(),
    "entry_id": "0f8a4c1e-1111-4a7b-9c1d-000000000001",
    "user_id": USER_ID,
    "timestamp": NOW - timedelta(days=1),
    "text": "Today I felt really anxious about my work deadline.\nThe pressure is overwhelming.",
    "is_voice_entry": False,
    "audio_blob_url": None,
    "sentiment": "negative",
    "sentiment_score": 0.2,
    "key_phrases": ["work deadline", "pressure"],
    "summary": "This entry shows some challenging emotions with 80% confidence. Remember that difficult feelings are temporary.",
    "affirmation": "You are handling more than you realise.",
    "updated_at": None,
}

SAMPLE_ENTRY_2 = {
    "_id": ObjectId(),
    "entry_id": "0f8a4c1e-2222-4a7b-9c1d-000000000002",
    "user_id": USER_ID,
    "timestamp": NOW,
    "text": "Feeling much better today. The walk in the park really helped.",
    "is_voice_entry": True,
    "audio_blob_url": f"https://journal-audio.s3.amazonaws.com/{USER_ID}/walk.webm",
    "sentiment": "positive",
    "sentiment_score": 0.9,
    "key_phrases": ["walk", "park"],
    "summary": "This entry reflects a positive mindset with 90% confidence. You seem to be in good spirits.",
    "affirmation": "Small steps like this matter.",
    "updated_at": None,
}

OTHER_USER_ENTRY = {
    "_id": ObjectId(),
    "entry_id": "0f8a4c1e-3333-4a7b-9c1d-000000000003",
    "user_id": USER_2_ID,
    "timestamp": NOW,
    "text": "Someone else's private entry.",
    "is_voice_entry": False,
    "audio_blob_url": None,
    "sentiment": "neutral",
    "sentiment_score": 0.5,
    "key_phrases": [],
    "summary": "",
    "affirmation": "",
    "updated_at": None,
}

SAMPLE_SESSION = {
    "_id": ObjectId(),
    "session_id": "5e55e55e-aaaa-4bbb-8ccc-000000000001",
    "user_id": USER_ID,
    "messages": [
        {"role": "user", "content": "I had a rough day.", "timestamp": NOW - timedelta(hours=2)},
        {"role": "assistant", "content": "I'm sorry to hear that. What happened?", "timestamp": NOW - timedelta(hours=2)},
    ],
    "created_at": NOW - timedelta(hours=2),
    "last_message_at": NOW - timedelta(hours=2),
    "title": "I had a rough day.",
    "is_active": True,
}

DELETED_SESSION = {
    "_id": ObjectId(),
    "session_id": "5e55e55e-aaaa-4bbb-8ccc-000000000002",
    "user_id": USER_ID,
    "messages": [],
    "created_at": NOW - timedelta(days=3),
    "last_message_at": NOW - timedelta(days=3),
    "title": "Old conversation",
    "is_active": False,
}


# async cursor mock

class AsyncCursorMock:
    """mock for motor's async cursor, supports async for and chained methods"""

    def __init__(self, data=None):
        self._data = list(data or [])
        self._index = 0

    def sort(self, key, direction=1):
        self._data = sorted(self._data, key=lambda d: d.get(key), reverse=direction == -1)
        return self

    def skip(self, n):
        self._data = self._data[n:]
        return self

    def limit(self, n):
        if n:
            self._data = self._data[:n]
        return self

    def __aiter__(self):
        self._index = 0
        return self

    async def __anext__(self):
        if self._index >= len(self._data):
            raise StopAsyncIteration
        item = self._data[self._index]
        self._index += 1
        return item

    async def to_list(self, length=None):
        if length is not None:
            return self._data[:length]
        return self._data


class MockCollection:
    """mock for a motor collection with async methods"""

    def __init__(self, data=None):
        self._data = data or []
        self.inserted = []

    def find(self, query=None, projection=None):
        # basic query filtering
        results = self._data
        if query:
            results = [d for d in results if self._matches(d, query)]
        return AsyncCursorMock(results)

    async def find_one(self, query=None, projection=None):
        if not query:
            return self._data[0] if self._data else None
        for doc in self._data:
            if self._matches(doc, query):
                return doc
        return None

    async def insert_one(self, doc):
        oid = doc.get("_id", ObjectId())
        doc["_id"] = oid
        self._data.append(doc)
        self.inserted.append(doc)
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def count_documents(self, query=None):
        if not query:
            return len(self._data)
        return len([d for d in self._data if self._matches(d, query)])

    async def update_one(self, query, update, upsert=False):
        result = MagicMock()
        result.matched_count = 0
        result.modified_count = 0
        result.upserted_id = None
        for doc in self._data:
            if self._matches(doc, query):
                if "$set" in update:
                    doc.update(update["$set"])
                result.matched_count = 1
                result.modified_count = 1
                return result
        if upsert:
            doc = {k: v for k, v in query.items() if not k.startswith("$")}
            doc.update(update.get("$set", {}))
            doc["_id"] = ObjectId()
            self._data.append(doc)
            result.upserted_id = doc["_id"]
        return result

    async def delete_one(self, query):
        result = MagicMock()
        result.deleted_count = 0
        for i, doc in enumerate(self._data):
            if self._matches(doc, query):
                del self._data[i]
                result.deleted_count = 1
                break
        return result

    async def create_index(self, *args, **kwargs):
        return "mock_index"

    def _matches(self, doc, query):
        """basic mongodb query matching for tests"""
        for key, value in query.items():
            if key == "$or":
                if not any(self._matches(doc, cond) for cond in value):
                    return False
                continue
            doc_val = doc.get(key)
            if isinstance(value, dict):
                if "$in" in value and doc_val not in value["$in"]:
                    return False
                if "$gte" in value and (doc_val is None or doc_val < value["$gte"]):
                    return False
                if "$lte" in value and (doc_val is None or doc_val > value["$lte"]):
                    return False
                if "$lt" in value and (doc_val is None or doc_val >= value["$lt"]):
                    return False
                if "$regex" in value:
                    flags = re.IGNORECASE if value.get("$options") == "i" else 0
                    if doc_val is None or not re.search(value["$regex"], str(doc_val), flags):
                        return False
            elif doc_val != value:
                return False
        return True


class MockDatabase:
    """mock database that mimics the Database class"""

    def __init__(self):
        self.users = MockCollection([
            copy.deepcopy(USER_DOC),
            copy.deepcopy(USER_2_DOC),
        ])
        self.journal_entries = MockCollection([
            copy.deepcopy(SAMPLE_ENTRY),
            copy.deepcopy(SAMPLE_ENTRY_2),
            copy.deepcopy(OTHER_USER_ENTRY),
        ])
        self.chat_sessions = MockCollection([
            copy.deepcopy(SAMPLE_SESSION),
            copy.deepcopy(DELETED_SESSION),
        ])

    async def connect(self):
        pass

    async def close(self):
        pass


@pytest.fixture
def mock_db():
    """create a fresh mock database for each test"""
    return MockDatabase()


def _user_dict():
    """return the test user as get_current_user would return it"""
    doc = copy.deepcopy(USER_DOC)
    doc["id"] = str(doc.pop("_id"))
    return doc


@pytest.fixture
def user_token():
    """jwt access token for the test user"""
    return create_access_token(_user_dict())


@pytest_asyncio.fixture
async def client(mock_db):
    """httpx async test client with mocked db, real token auth"""

    async def override_get_db():
        return mock_db

    app.dependency_overrides[get_db] = override_get_db
    # don't override get_current_user, tests send real bearer tokens

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user_client(mock_db):
    """client authenticated as the test user"""

    async def override_get_db():
        return mock_db

    async def override_get_current_user():
        return _user_dict()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

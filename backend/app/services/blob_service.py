# blob service: stores voice recordings in s3, one prefix per user

import io
import logging
import uuid
from pathlib import PurePath
from typing import Optional

import boto3

from app.config import settings
from app.services.resilience import BLOB_STORAGE, run_blocking

logger = logging.getLogger(__name__)

_s3_client = None


def get_s3_client():
    """s3 client using the default aws credential chain"""
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client("s3", region_name=settings.AWS_REGION)
    return _s3_client


def build_blob_name(user_id: str, filename: Optional[str]) -> str:
    extension = PurePath(filename or "").suffix.lower()
    return f"{user_id}/{uuid.uuid4()}{extension}"


def _upload(data: bytes, key: str, content_type: str) -> None:
    get_s3_client().upload_fileobj(
        io.BytesIO(data),
        settings.AUDIO_BUCKET,
        key,
        ExtraArgs={"ContentType": content_type or "application/octet-stream"},
    )


async def upload_audio(data: bytes, filename: Optional[str], content_type: str, user_id: str) -> str:
    """upload a recording and return its url"""
    if not data:
        raise ValueError("Audio file is null or empty")

    key = build_blob_name(user_id, filename)
    logger.info(f"Uploading audio file to blob storage: {key}")
    try:
        await run_blocking(BLOB_STORAGE, _upload, data, key, content_type)
    except Exception as e:
        logger.error(f"Error uploading audio file to blob storage for user {user_id}: {e}")
        raise

    url = f"https://{settings.AUDIO_BUCKET}.s3.amazonaws.com/{key}"
    logger.info(f"Successfully uploaded audio file to blob storage: {url}")
    return url

# backend configuration
# loads env vars for mongodb, jwt, google sign-in, gemini, speech, s3 and retries

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent.parent / ".env")


class Settings(BaseSettings):
    # mongodb
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "mental_health_journal")

    # jwt session tokens (issued after google sign-in)
    JWT_SECRET: str = os.getenv("JWT_SECRET", "journal-dev-secret-change-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = os.getenv("JWT_ISSUER", "mental-health-journal")
    JWT_AUDIENCE: str = os.getenv("JWT_AUDIENCE", "mental-health-journal-client")
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # google identity provider
    GOOGLE_CLIENT_ID: str = os.getenv("GOOGLE_CLIENT_ID", "")

    # gemini (affirmations, chat, crisis detection)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # google cloud speech-to-text
    SPEECH_LANGUAGE: str = os.getenv("SPEECH_LANGUAGE", "en-US")

    # s3 bucket for voice recordings
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
    AUDIO_BUCKET: str = os.getenv("AUDIO_BUCKET", "journal-audio")
    AUDIO_MAX_BYTES: int = 25 * 1024 * 1024

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # request limits
    JOURNAL_MAX_LENGTH: int = 10000
    CHAT_MESSAGE_MAX_LENGTH: int = 4000
    CHAT_CONTEXT_MESSAGES: int = 10

    # retry policy for external services
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BACKOFF_SCALE: float = 1.0

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()

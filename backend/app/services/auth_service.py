# auth service: google id token validation and jwt session tokens
# google verifies who the user is, we issue our own short-lived bearer token

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from jose import JWTError, jwt
from app.config import settings

logger = logging.getLogger(__name__)


class GoogleAuthNotConfigured(RuntimeError):
    """raised when GOOGLE_CLIENT_ID is missing"""


async def verify_google_token(token: str) -> dict:
    """validate a google id token against our client id and return its claims.

    raises ValueError for an invalid, expired or wrong-audience token.
    """
    if not settings.GOOGLE_CLIENT_ID:
        raise GoogleAuthNotConfigured("Google Client ID not configured")
    if not token:
        raise ValueError("Empty Google token")

    # google-auth is synchronous (fetches google's certs over http)
    claims = await asyncio.to_thread(
        id_token.verify_oauth2_token,
        token,
        google_requests.Request(),
        settings.GOOGLE_CLIENT_ID,
    )
    if not claims.get("sub"):
        raise ValueError("Google token missing subject")
    return claims


def create_access_token(user: dict, expires_delta: Optional[timedelta] = None) -> str:
    """create a jwt access token for a stored user document"""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    )
    to_encode = {
        "sub": user["id"],
        "email": user.get("email", ""),
        "name": user.get("name", ""),
        "provider": user.get("provider", "google"),
        "provider_id": user.get("provider_id", ""),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """decode and validate a jwt token, returns payload or none"""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
        return payload
    except JWTError as e:
        logger.warning(f"Token decode failed: {e}")
        return None

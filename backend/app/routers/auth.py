# auth router: google sign-in, current user, username management
# google proves identity, we hand back our own jwt for every other call

import logging
import re

from fastapi import APIRouter, Depends, HTTPException, status, Query
from google.auth.exceptions import GoogleAuthError

from app.models.user import (
    AuthResponse,
    GoogleTokenRequest,
    UserResponse,
    UsernameAvailability,
    UsernameUpdate,
)
from app.services import user_service
from app.services.auth_service import GoogleAuthNotConfigured, create_access_token, verify_google_token
from app.services.db import Database, get_db
from app.dependencies import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])

USERNAME_RE = re.compile(r"^[a-z0-9_]{3,20}$")


def _to_user_response(user: dict) -> UserResponse:
    return UserResponse(
        id=user["id"],
        email=user.get("email", ""),
        name=user.get("name", ""),
        username=user.get("username"),
        profilePictureUrl=user.get("profile_picture_url"),
        provider=user.get("provider", "google"),
        createdAt=user.get("created_at"),
        lastLoginAt=user.get("last_login_at"),
        currentStreak=user.get("current_streak", 0),
        longestStreak=user.get("longest_streak", 0),
    )


@router.post("/google", response_model=AuthResponse)
async def google_login(body: GoogleTokenRequest, db: Database = Depends(get_db)):
    """exchange a google id token for our session token, creating the user on first sign-in"""
    try:
        claims = await verify_google_token(body.id_token)
    except GoogleAuthNotConfigured:
        logger.error("Google sign-in attempted but GOOGLE_CLIENT_ID is not set")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Google authentication is not configured",
        )
    except (ValueError, GoogleAuthError) as e:
        logger.warning(f"Google token validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Google token",
        )

    provider_id = claims["sub"]
    user = await user_service.get_user_by_provider_id(db, provider_id)
    if user is None:
        user = {
            "email": claims.get("email", ""),
            "name": claims.get("name", ""),
            "profile_picture_url": claims.get("picture"),
            "provider": "google",
            "provider_id": provider_id,
            "current_streak": 0,
            "longest_streak": 0,
        }
        logger.info(f"First Google sign-in for {claims.get('email', provider_id)}")

    user = await user_service.create_or_update_user(db, user)
    token = create_access_token(user)
    logger.info(f"User logged in: {user['id']}")

    return AuthResponse(token=token, user=_to_user_response(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: dict = Depends(get_current_user)):
    """return the authenticated user's profile"""
    return _to_user_response(current_user)


@router.put("/username", response_model=UserResponse)
async def update_username(
    body: UsernameUpdate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """set or change the caller's username"""
    username = body.username

    if not username or not username.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username cannot be empty")

    if len(username) < 3 or len(username) > 20:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username must be between 3 and 20 characters",
        )

    if not USERNAME_RE.match(username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username can only contain lowercase letters, numbers, and underscores",
        )

    if not await user_service.is_username_available(db, username, current_user["id"]):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is already taken")

    current_user["username"] = username
    user = await user_service.create_or_update_user(db, current_user)
    logger.info(f"Username updated for user {user['id']}")
    return _to_user_response(user)


@router.get("/username/check", response_model=UsernameAvailability)
async def check_username(
    username: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """whether a username is free (or already the caller's)"""
    available = await user_service.is_username_available(db, username, current_user["id"])
    return UsernameAvailability(available=available)

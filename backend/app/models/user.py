# user models: google sign-in, profile and username schemas
# mirrors the client's authService.ts User type

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


# auth

class GoogleTokenRequest(BaseModel):
    id_token: str = Field(..., alias="idToken", description="google id token from the client sign-in flow")

    model_config = {"populate_by_name": True}


class UserResponse(BaseModel):
    id: str
    email: str = ""
    name: str = ""
    username: Optional[str] = None
    profile_picture_url: Optional[str] = Field(None, alias="profilePictureUrl")
    provider: str = "google"
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    last_login_at: Optional[datetime] = Field(None, alias="lastLoginAt")
    current_streak: int = Field(0, alias="currentStreak")
    longest_streak: int = Field(0, alias="longestStreak")

    model_config = {"populate_by_name": True}


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


# username

class UsernameUpdate(BaseModel):
    username: str = ""


class UsernameAvailability(BaseModel):
    available: bool

# tests for auth service: google id token validation and jwt session tokens
# unit tests for app/services/auth_service.py

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from jose import jwt

from app.config import settings
from app.services.auth_service import (
    GoogleAuthNotConfigured,
    create_access_token,
    decode_token,
    verify_google_token,
)

USER = {
    "id": "665f1c2e8b3e4a0012345678",
    "email": "alex.rivera@email.com",
    "name": "Alex Rivera",
    "provider": "google",
    "provider_id": "google-sub-alex",
}


class TestGoogleTokenValidation:
    """google id token verification"""

    async def test_valid_token_returns_claims(self):
        claims = {"sub": "google-sub-alex", "email": "alex.rivera@email.com", "name": "Alex Rivera"}
        with patch("app.services.auth_service.id_token.verify_oauth2_token", return_value=claims) as verify:
            result = await verify_google_token("google-id-token")
        assert result["sub"] == "google-sub-alex"
        # audience is our client id
        assert verify.call_args.args[0] == "google-id-token"
        assert verify.call_args.args[2] == settings.GOOGLE_CLIENT_ID

    async def test_invalid_token_raises_value_error(self):
        with patch(
            "app.services.auth_service.id_token.verify_oauth2_token",
            side_effect=ValueError("Token used too late"),
        ):
            with pytest.raises(ValueError):
                await verify_google_token("expired-token")

    async def test_token_without_subject_rejected(self):
        with patch("app.services.auth_service.id_token.verify_oauth2_token", return_value={"email": "x@y.z"}):
            with pytest.raises(ValueError):
                await verify_google_token("google-id-token")

    async def test_empty_token_rejected(self):
        with pytest.raises(ValueError):
            await verify_google_token("")

    async def test_missing_client_id(self):
        with patch.object(settings, "GOOGLE_CLIENT_ID", ""):
            with pytest.raises(GoogleAuthNotConfigured):
                await verify_google_token("google-id-token")


class TestJWTTokens:
    """jwt token creation and validation"""

    def test_create_access_token(self):
        token = create_access_token(USER)
        assert isinstance(token, str)
        assert len(token) > 0

    def test_decode_access_token(self):
        payload = decode_token(create_access_token(USER))
        assert payload is not None
        assert payload["sub"] == USER["id"]
        assert payload["email"] == USER["email"]
        assert payload["name"] == USER["name"]
        assert payload["provider"] == "google"
        assert payload["provider_id"] == "google-sub-alex"

    def test_token_has_issuer_and_audience(self):
        payload = decode_token(create_access_token(USER))
        assert payload["iss"] == settings.JWT_ISSUER
        assert payload["aud"] == settings.JWT_AUDIENCE

    def test_default_expiry_is_seven_days(self):
        payload = decode_token(create_access_token(USER))
        expires = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        remaining = expires - datetime.now(timezone.utc)
        assert timedelta(days=6, hours=23) < remaining <= timedelta(days=7)

    def test_custom_expiry(self):
        token = create_access_token(USER, expires_delta=timedelta(minutes=5))
        payload = decode_token(token)
        assert payload is not None
        assert payload["sub"] == USER["id"]

    def test_expired_token_rejected(self):
        token = create_access_token(USER, expires_delta=timedelta(seconds=-10))
        assert decode_token(token) is None

    def test_wrong_audience_rejected(self):
        token = jwt.encode(
            {
                "sub": USER["id"],
                "iss": settings.JWT_ISSUER,
                "aud": "some-other-app",
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        assert decode_token(token) is None

    def test_wrong_issuer_rejected(self):
        token = jwt.encode(
            {
                "sub": USER["id"],
                "iss": "someone-else",
                "aud": settings.JWT_AUDIENCE,
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        assert decode_token(token) is None

    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": USER["id"], "iss": settings.JWT_ISSUER, "aud": settings.JWT_AUDIENCE},
            "not-the-secret",
            algorithm=settings.JWT_ALGORITHM,
        )
        assert decode_token(token) is None

    def test_decode_invalid_token(self):
        assert decode_token("invalid.token.here") is None

    def test_decode_empty_token(self):
        assert decode_token("") is None

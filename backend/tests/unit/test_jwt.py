"""Tests for auth.jwt: create/decode tokens, expiry, type validation."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest
from fastapi import HTTPException

from auth.jwt import (
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from config import settings


def _payload(token: str) -> dict:
    return pyjwt.decode(token, settings.app_secret_key, algorithms=[ALGORITHM])


def _signed(**claims) -> str:
    return pyjwt.encode(claims, settings.app_secret_key, algorithm=ALGORITHM)


class TestCreateTokens:
    def test_access_token_claims(self):
        uid = uuid.uuid4()
        payload = _payload(create_access_token(uid))
        assert payload["sub"] == str(uid)
        assert payload["type"] == "access"
        exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        expected = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        assert abs((exp - expected).total_seconds()) < 5

    def test_refresh_token_claims(self):
        uid = uuid.uuid4()
        payload = _payload(create_refresh_token(uid))
        assert payload["type"] == "refresh"
        exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        expected = datetime.now(timezone.utc) + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
        assert abs((exp - expected).total_seconds()) < 5


class TestDecodeToken:
    def test_access_token_round_trip(self):
        uid = uuid.uuid4()
        assert decode_token(create_access_token(uid), expected_type="access") == uid

    def test_wrong_type_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token(create_access_token(uuid.uuid4()), expected_type="refresh")
        assert exc_info.value.status_code == 401
        assert "token type" in exc_info.value.detail.lower()

    def test_expired_token_raises_401(self):
        token = _signed(
            sub=str(uuid.uuid4()),
            exp=datetime.now(timezone.utc) - timedelta(seconds=10),
            type="access",
        )
        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401
        assert "expired" in exc_info.value.detail.lower()

    def test_bad_signature_raises_401(self):
        token = pyjwt.encode(
            {"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(hours=1), "type": "access"},
            "wrong-secret",
            algorithm=ALGORITHM,
        )
        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    def test_missing_sub_raises_401(self):
        token = _signed(exp=datetime.now(timezone.utc) + timedelta(hours=1), type="access")
        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    def test_invalid_uuid_in_sub_raises_401(self):
        token = _signed(sub="not-a-uuid", exp=datetime.now(timezone.utc) + timedelta(hours=1), type="access")
        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

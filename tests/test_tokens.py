"""
tests/test_tokens.py -- Unit tests for auth.tokens.SessionTokens.

Covers:
  - issued token verifies back to the account id
  - 24-hour default expiry, exp - iat matches expire_seconds
  - expired, tampered, foreign-key, and subject-less tokens raise AuthenticationError
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from conftest import TEST_SECRET_KEY, make_settings
from jose import jwt

from auth.tokens import SessionTokens
from core.errors import AuthenticationError


@pytest.fixture
def tokens() -> SessionTokens:
    return SessionTokens(TEST_SECRET_KEY)


class TestIssueVerify:
    def test_round_trip(self, tokens: SessionTokens) -> None:
        assert tokens.verify(tokens.issue("account-1")) == "account-1"

    def test_default_expiry_is_24_hours(self, tokens: SessionTokens) -> None:
        claims = jwt.get_unverified_claims(tokens.issue("account-1"))
        assert claims["exp"] - claims["iat"] == 24 * 60 * 60
        assert claims["sub"] == "account-1"

    def test_from_settings(self) -> None:
        tokens = SessionTokens.from_settings(make_settings(token_expire_seconds=60))
        claims = jwt.get_unverified_claims(tokens.issue("account-1"))
        assert claims["exp"] - claims["iat"] == 60


class TestRejection:
    def test_expired_token(self, tokens: SessionTokens) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=25)
        token = jwt.encode(
            {"sub": "account-1", "iat": past, "exp": past + timedelta(hours=24)},
            TEST_SECRET_KEY,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            tokens.verify(token)

    def test_wrong_signing_key(self, tokens: SessionTokens) -> None:
        other = SessionTokens("another-secret-key-0123456789abcdef0123456789")
        with pytest.raises(AuthenticationError):
            tokens.verify(other.issue("account-1"))

    def test_tampered_token(self, tokens: SessionTokens) -> None:
        token = tokens.issue("account-1")
        header, payload, signature = token.split(".")
        forged = jwt.encode({"sub": "account-2"}, "x" * 32, algorithm="HS256").split(".")[1]
        with pytest.raises(AuthenticationError):
            tokens.verify(f"{header}.{forged}.{signature}")

    def test_missing_subject(self, tokens: SessionTokens) -> None:
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(hours=1)}, TEST_SECRET_KEY, algorithm="HS256"
        )
        with pytest.raises(AuthenticationError):
            tokens.verify(token)

    @pytest.mark.parametrize("junk", ["", "not.a.jwt", "abc"])
    def test_garbage(self, tokens: SessionTokens, junk: str) -> None:
        with pytest.raises(AuthenticationError):
            tokens.verify(junk)

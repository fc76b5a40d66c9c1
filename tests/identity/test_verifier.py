"""
Token Verifier Tests.
"""

import time

import jwt
import pytest

from identity.verifier import InvalidCredentialError, JWTTokenVerifier


SECRET = "test-secret-with-enough-length-for-hs256"


def make_token(claims, secret=SECRET, algorithm="HS256"):
    return jwt.encode(claims, secret, algorithm=algorithm)


@pytest.fixture
def verifier():
    return JWTTokenVerifier(key=SECRET)


class TestJWTTokenVerifier:
    """Tests for JWTTokenVerifier."""

    @pytest.mark.asyncio
    async def test_valid_token_returns_subject(self, verifier):
        token = make_token({"sub": "user-123", "exp": int(time.time()) + 60})

        assert await verifier.verify(token) == "user-123"

    @pytest.mark.asyncio
    async def test_uid_claim_accepted(self, verifier):
        token = make_token({"uid": "firebase-uid"})

        assert await verifier.verify(token) == "firebase-uid"

    @pytest.mark.asyncio
    async def test_expired_token(self, verifier):
        token = make_token({"sub": "user-123", "exp": int(time.time()) - 60})

        with pytest.raises(InvalidCredentialError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.reason == "expired"

    @pytest.mark.asyncio
    async def test_wrong_secret(self, verifier):
        token = make_token({"sub": "user-123"}, secret="another-secret-with-enough-length")

        with pytest.raises(InvalidCredentialError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.reason == "invalid"

    @pytest.mark.asyncio
    async def test_garbage_token(self, verifier):
        with pytest.raises(InvalidCredentialError):
            await verifier.verify("not-a-jwt")

    @pytest.mark.asyncio
    async def test_missing_subject(self, verifier):
        token = make_token({"role": "admin"})

        with pytest.raises(InvalidCredentialError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.reason == "no_subject"

    @pytest.mark.asyncio
    async def test_empty_token(self, verifier):
        with pytest.raises(InvalidCredentialError) as exc_info:
            await verifier.verify("")

        assert exc_info.value.reason == "empty"

    @pytest.mark.asyncio
    async def test_no_key_rejects_everything(self):
        verifier = JWTTokenVerifier(key=None)
        token = make_token({"sub": "user-123"})

        with pytest.raises(InvalidCredentialError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.reason == "no_key"

    @pytest.mark.asyncio
    async def test_audience_enforced(self):
        verifier = JWTTokenVerifier(key=SECRET, audience="dashboard")

        assert await verifier.verify(make_token({"sub": "u", "aud": "dashboard"})) == "u"
        with pytest.raises(InvalidCredentialError):
            await verifier.verify(make_token({"sub": "u", "aud": "elsewhere"}))

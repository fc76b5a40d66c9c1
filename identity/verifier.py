"""
Identity - bearer token verification.

The proxy only needs "token -> subject id or failure". Token issuance
lives elsewhere; this module verifies signed JWTs with PyJWT.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import jwt


logger = logging.getLogger(__name__)


class InvalidCredentialError(Exception):
    """Token missing, malformed, expired or wrongly signed."""

    def __init__(self, message: str, reason: Optional[str] = None):
        self.message = message
        self.reason = reason
        super().__init__(self.message)


class TokenVerifier(ABC):
    """Verifies an opaque bearer credential."""

    @abstractmethod
    async def verify(self, token: str) -> str:
        """
        Return the verified subject id.

        Raises:
            InvalidCredentialError: if the token cannot be trusted
        """
        pass


class JWTTokenVerifier(TokenVerifier):
    """
    Verify HMAC/RSA signed JWTs.

    The subject is read from ``sub``, then ``uid`` / ``user_id`` (Firebase
    style tokens). With no key configured every token is rejected.
    """

    SUBJECT_CLAIMS = ("sub", "uid", "user_id")

    def __init__(
        self,
        key: Optional[str],
        algorithms: Sequence[str] = ("HS256",),
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
        leeway: float = 0,
    ) -> None:
        self._key = key
        self._algorithms = list(algorithms)
        self._audience = audience
        self._issuer = issuer
        self._leeway = leeway

    async def verify(self, token: str) -> str:
        if not token:
            raise InvalidCredentialError("Empty token", reason="empty")
        if not self._key:
            raise InvalidCredentialError("Token verification is not configured", reason="no_key")

        try:
            claims = jwt.decode(
                token,
                self._key,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                leeway=self._leeway,
                options={"verify_aud": self._audience is not None},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidCredentialError("Token has expired", reason="expired")
        except jwt.InvalidTokenError as e:
            raise InvalidCredentialError(f"Invalid token: {e}", reason="invalid")

        subject = self._subject(claims)
        if not subject:
            raise InvalidCredentialError("Token has no subject", reason="no_subject")
        return subject

    def _subject(self, claims: dict[str, Any]) -> Optional[str]:
        for claim in self.SUBJECT_CLAIMS:
            value = claims.get(claim)
            if value:
                return str(value)
        return None

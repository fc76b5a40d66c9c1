"""
Identity Package - bearer credential verification.
"""

from identity.verifier import InvalidCredentialError, JWTTokenVerifier, TokenVerifier


__all__ = [
    "TokenVerifier",
    "JWTTokenVerifier",
    "InvalidCredentialError",
]

"""
Authorization error taxonomy

Every failure the core can produce is one of these kinds and is surfaced to
the caller unchanged. Permission denial is not an error: check and listing
operations return ``False`` or an empty page instead.
"""

from __future__ import annotations

from typing import Any


class AuthzError(Exception):
    """Base exception for the authorization core

    Attributes:
        code: Stable error code for mapping onto a transport status
        message: Human-readable description
        retryable: Whether the same call may succeed if retried later
        details: Additional context as keyword arguments
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal authorization error occurred"
    retryable: bool = False

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


# ---- Credential verification -------------------------------------------------


class TokenVerificationError(AuthzError):
    """The presented credential cannot be accepted; the caller must re-authenticate"""

    code = "TOKEN_INVALID"
    message = "Could not validate credentials"


class MalformedToken(TokenVerificationError):
    """Structurally invalid credential or claims"""

    code = "MALFORMED"
    message = "Malformed access token"


class SignatureInvalid(TokenVerificationError):
    """Signature does not validate against the configured key"""

    code = "SIGNATURE_INVALID"
    message = "Access token signature is invalid"


class TokenExpired(TokenVerificationError):
    """Credential is past its expiry; the caller must refresh it"""

    code = "EXPIRED"
    message = "Access token expired"


# ---- Storage -------------------------------------------------------------------


class StorageError(AuthzError):
    """Resource or grant store failure"""

    code = "STORAGE_ERROR"
    message = "Authorization store failure"
    retryable = True


class StorageUnavailable(StorageError):
    """Store unreachable or connection lost; safe to retry with backoff"""

    code = "STORAGE_UNAVAILABLE"
    message = "Authorization store unavailable"


class StorageTimeout(StorageError):
    """Store did not answer in time; never reported as an empty result"""

    code = "STORAGE_TIMEOUT"
    message = "Authorization store timed out"


# ---- Programming errors --------------------------------------------------------


class InvalidResourcePath(AuthzError, ValueError):
    """Resource path with empty or malformed segments"""

    code = "INVALID_RESOURCE_PATH"
    message = "Invalid resource path"


__all__ = [
    "AuthzError",
    "TokenVerificationError",
    "MalformedToken",
    "SignatureInvalid",
    "TokenExpired",
    "StorageError",
    "StorageUnavailable",
    "StorageTimeout",
    "InvalidResourcePath",
]

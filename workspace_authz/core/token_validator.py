"""
Access token verification.

Tokens are compact HMAC-signed JWTs issued elsewhere; this module only
verifies them. Group memberships are embedded in the token, so a change of
membership becomes visible only when the holder's token is replaced. The
configured maximum token lifetime is therefore the upper bound on how long a
revoked membership keeps working.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey
from joserfc.jws import extract_compact
from joserfc.errors import BadSignatureError, JoseError, UnsupportedAlgorithmError
import structlog

from workspace_authz.core.config import TOKEN_CONFIG
from workspace_authz.core.exceptions import MalformedToken, SignatureInvalid, TokenExpired
from workspace_authz.core.permissions import GroupSet

logger = structlog.get_logger()

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True)
class AccessToken:
    identity: UUID
    groups: GroupSet
    issued_at: datetime
    expires_at: datetime
    issuer: str


def _epoch(now: Optional[datetime]) -> int:
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return int(now.timestamp())


def _int_claim(claims: dict[str, Any], name: str) -> int:
    value = claims.get(name)
    # bool is an int subclass and is never a timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedToken(f"Claim '{name}' must be an integer timestamp", claim=name)
    return value


class AccessTokenCodec:
    """Verifies signed access tokens and decodes identity plus groups.

    Pure function of (raw token, current time, key): no I/O and no shared
    mutable state, so one instance serves every request concurrently.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str,
        issuer: str,
        max_lifetime_seconds: int,
        leeway_seconds: int = 0,
    ) -> None:
        self._key = OctKey.import_key(secret_key)
        self._algorithm = algorithm
        self._issuer = issuer
        self._max_lifetime = max_lifetime_seconds
        self._leeway = leeway_seconds

    @property
    def max_lifetime_seconds(self) -> int:
        return self._max_lifetime

    def verify(self, raw: str, *, now: Optional[datetime] = None) -> AccessToken:
        """
        Verify a raw credential

        Args:
            raw: Compact serialized token
            now: Verification time (defaults to the current UTC time)

        Returns:
            Decoded access token

        Raises:
            MalformedToken: Structurally invalid token or claims
            TokenExpired: Current time is at or past ``exp``
            SignatureInvalid: Signature does not validate against the key
        """
        current = _epoch(now)
        claims = self._unverified_claims(raw)

        expires = _int_claim(claims, "exp")
        if current >= expires:
            logger.warning("Access token expired", subject=claims.get("sub"), exp=expires)
            raise TokenExpired()

        self._check_signature(raw, subject=claims.get("sub"))
        return self._decode_claims(claims, expires=expires, current=current)

    def _unverified_claims(self, raw: str) -> dict[str, Any]:
        if not isinstance(raw, str) or not raw.strip():
            raise MalformedToken("Empty access token")
        try:
            compact = extract_compact(raw.strip().encode("ascii"))
            claims = json.loads(compact.payload)
        except (JoseError, ValueError, TypeError) as exc:
            logger.warning("Malformed access token", error=str(exc))
            raise MalformedToken() from exc
        if not isinstance(claims, dict):
            raise MalformedToken("Access token payload is not a claims object")
        return claims

    def _check_signature(self, raw: str, *, subject: Any) -> None:
        try:
            jose_jwt.decode(raw.strip(), self._key, algorithms=[self._algorithm])
        except (BadSignatureError, UnsupportedAlgorithmError) as exc:
            logger.warning(
                "Access token signature rejected",
                security_event=True,
                subject=subject,
                error=str(exc),
            )
            raise SignatureInvalid() from exc
        except (JoseError, ValueError) as exc:
            logger.warning("Malformed access token", error=str(exc))
            raise MalformedToken() from exc

    def _decode_claims(self, claims: dict[str, Any], *, expires: int, current: int) -> AccessToken:
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            logger.warning("Invalid token type", expected=ACCESS_TOKEN_TYPE, actual=claims.get("type"))
            raise MalformedToken("Invalid token type")

        if claims.get("iss") != self._issuer:
            logger.warning("Untrusted token issuer", issuer=claims.get("iss"))
            raise MalformedToken("Untrusted token issuer")

        issued = _int_claim(claims, "iat")
        if issued > current + self._leeway:
            raise MalformedToken("Token issued in the future")
        if expires - issued > self._max_lifetime:
            logger.warning(
                "Token lifetime exceeds configured maximum",
                lifetime=expires - issued,
                max_lifetime=self._max_lifetime,
            )
            raise MalformedToken("Token lifetime exceeds configured maximum")

        try:
            identity = UUID(str(claims["sub"]))
        except (KeyError, ValueError) as exc:
            raise MalformedToken("Invalid token: missing or invalid subject") from exc

        raw_groups = claims.get("groups", [])
        if not isinstance(raw_groups, list) or not all(isinstance(g, str) for g in raw_groups):
            raise MalformedToken("Claim 'groups' must be a list of group ids")
        try:
            groups = GroupSet.of(raw_groups)
        except ValueError as exc:
            raise MalformedToken("Claim 'groups' contains an invalid group id") from exc

        logger.debug(
            "Token verified successfully",
            subject=str(identity),
            group_count=len(groups),
            super_admin=groups.is_super_admin,
        )
        return AccessToken(
            identity=identity,
            groups=groups,
            issued_at=datetime.fromtimestamp(issued, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
            issuer=self._issuer,
        )


token_codec = AccessTokenCodec(
    secret_key=TOKEN_CONFIG["secret_key"],
    algorithm=TOKEN_CONFIG["algorithm"],
    issuer=TOKEN_CONFIG["issuer"],
    max_lifetime_seconds=TOKEN_CONFIG["max_lifetime_seconds"],
    leeway_seconds=TOKEN_CONFIG["leeway_seconds"],
)

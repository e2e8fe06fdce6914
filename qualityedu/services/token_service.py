"""Bearer token issue/decode (HS256).

One codec for every caller: the authenticator issues through it and the
identity middleware decodes through it, so the claim schema and the
error taxonomy live in exactly one place.

Claims:
  sub            principal email
  principalId    principal id (string)
  principalType  STUDENT | TEACHER | SUPERVISOR
  iat, exp       integer epoch seconds; exp = iat + ttl
  firstName, lastName, ...   display claims, optional

PyJWT exceptions are translated to TokenExpired / InvalidSignature /
MalformedToken here; nothing outside this module catches ``jwt.*``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import jwt

from qualityedu.core.config import SETTINGS, validate_jwt_secret
from qualityedu.core.errors import (
    ConfigError,
    InvalidSignature,
    MalformedToken,
    TokenError,
    TokenExpired,
)

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
_RESERVED = frozenset({"sub", "principalId", "principalType", "iat", "exp"})


@dataclass(frozen=True, slots=True)
class TokenClaims:
    subject: str
    principal_id: str | None
    principal_type: str | None
    issued_at: int
    expires_at: int
    display: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        """Optional display claim lookup; absent claims give ``default``."""
        return self.display.get(name, default)


class TokenCodec:
    def __init__(self, secret: str, ttl_seconds: int) -> None:
        self._secret = validate_jwt_secret(secret)
        if ttl_seconds <= 0:
            raise ConfigError(f"token ttl must be positive (got {ttl_seconds!r})")
        self._ttl = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def issue(
        self,
        *,
        subject: str,
        principal_id: str,
        principal_type: str,
        display: dict[str, Any] | None = None,
        ttl: int | None = None,
        now: int | None = None,
    ) -> str:
        issued_at = int(now if now is not None else time.time())
        lifetime = self._ttl if ttl is None else ttl
        if lifetime <= 0:
            raise ValueError("ttl must be positive")

        payload: dict[str, Any] = {
            k: v for k, v in (display or {}).items() if k not in _RESERVED
        }
        payload.update(
            {
                "sub": subject,
                "principalId": principal_id,
                "principalType": principal_type,
                "iat": issued_at,
                "exp": issued_at + lifetime,
            }
        )
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> TokenClaims:
        """Verify signature and expiry and return the claims.

        Pins the algorithm to HS256 so a token cannot choose its own
        (``alg: none`` or a key-confusion swap).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired() from None
        except jwt.InvalidSignatureError:
            raise InvalidSignature() from None
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"Malformed token: {e}") from None

        display = {k: v for k, v in payload.items() if k not in _RESERVED}
        principal_id = payload.get("principalId")
        principal_type = payload.get("principalType")
        return TokenClaims(
            subject=str(payload["sub"]),
            principal_id=str(principal_id) if principal_id is not None else None,
            principal_type=str(principal_type) if principal_type is not None else None,
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
            display=display,
        )

    def is_valid(self, token: str) -> bool:
        try:
            self.decode(token)
        except TokenError:
            return False
        return True


# Built at import from validated settings: a bad secret never gets this far.
token_codec = TokenCodec(SETTINGS.jwt_secret, SETTINGS.jwt_ttl_seconds)

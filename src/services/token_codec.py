"""Signed, self-describing tokens (HS256 JWT)."""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any

import jwt

from config import TOKEN_SECRET

from .database import utc_now
from .errors import ExpiredTokenError, InvalidTokenError

_ALGORITHM = "HS256"
_RESERVED_CLAIMS = ("iat", "exp", "jti")


class TokenCodec:
    """Stateless signer keyed by a process-wide secret."""

    def __init__(self, secret: str | None = None) -> None:
        self._secret = secret or TOKEN_SECRET

    def issue(self, claims: dict[str, Any], ttl: timedelta | None = None) -> str:
        payload = {k: v for k, v in claims.items() if k not in _RESERVED_CLAIMS}
        now = utc_now()
        payload["iat"] = now
        payload["jti"] = uuid.uuid4().hex
        if ttl is not None:
            payload["exp"] = now + ttl
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> dict[str, Any]:
        if not token:
            raise InvalidTokenError("Invalid token.")
        try:
            data: dict = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError("Token expired.") from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError("Invalid token.") from exc

        return {k: v for k, v in data.items() if k not in _RESERVED_CLAIMS}

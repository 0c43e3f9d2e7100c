"""Single-use invitation tokens bound to an email address."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from config import INVITE_TTL_HOURS

from .database import Database, normalize_email, now_iso
from .errors import InvalidTokenError, ValidationError
from .token_codec import TokenCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Invitation:
    email: str
    token: str
    created_at: str


class InvitationManager:
    """Owns the ``invitations`` table (at most one row per email)."""

    def __init__(
        self,
        db: Database,
        codec: TokenCodec,
        *,
        ttl_hours: int | None = None,
    ) -> None:
        self._db = db
        self._codec = codec
        hours = INVITE_TTL_HOURS if ttl_hours is None else int(ttl_hours)
        self._ttl = timedelta(hours=hours) if hours > 0 else None

    def issue(self, email: str) -> str:
        """Mint a token for ``email``, superseding any pending invitation."""
        email_norm = normalize_email(email)
        if not email_norm:
            raise ValidationError("Email is required.")

        token = self._codec.issue({"email": email_norm}, ttl=self._ttl)
        with self._db.connect() as conn:
            conn.execute(
                """
                INSERT INTO invitations (email, token, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(email) DO UPDATE SET
                    token = excluded.token,
                    created_at = excluded.created_at
                """,
                (email_norm, token, now_iso()),
            )
        logger.info("Issued invitation for %s", email_norm)
        return token

    def pending(self, email: str) -> Invitation | None:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT email, token, created_at FROM invitations WHERE email = ?",
                (normalize_email(email),),
            ).fetchone()
            if not row:
                return None
            return Invitation(email=row["email"], token=row["token"], created_at=row["created_at"])

    def redeem(self, token: str, *, email: str | None = None) -> str:
        """Consume ``token`` and return the invited email.

        A good signature is not enough: the token must still be the pending
        one for its email. If ``email`` is given it must match, and a
        mismatch is rejected without consuming the invitation.
        """
        claims = self._codec.verify(token)
        invited = normalize_email(claims.get("email"))
        if not invited:
            raise InvalidTokenError("Invalid token.")
        if email is not None and normalize_email(email) != invited:
            raise InvalidTokenError("Invitation was issued for a different email.")

        with self._db.connect() as conn:
            cur = conn.execute(
                "DELETE FROM invitations WHERE email = ? AND token = ?",
                (invited, token),
            )
            if cur.rowcount != 1:
                raise InvalidTokenError("Invalid token.")

        logger.info("Redeemed invitation for %s", invited)
        return invited

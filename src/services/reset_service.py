"""Single-use, time-limited password reset tokens bound to a username."""

from __future__ import annotations

import logging
from datetime import timedelta

from config import RESET_TOKEN_TTL_HOURS

from .credential_store import CredentialStore
from .database import Database, now_iso, parse_iso, utc_now
from .errors import (
    ExpiredTokenError,
    FederatedAccountError,
    InvalidTokenError,
    NotFoundError,
)
from .token_codec import TokenCodec

logger = logging.getLogger(__name__)


class ResetManager:
    """Owns the ``password_resets`` table (at most one row per username)."""

    def __init__(
        self,
        db: Database,
        codec: TokenCodec,
        users: CredentialStore,
        *,
        ttl_hours: int | None = None,
    ) -> None:
        self._db = db
        self._codec = codec
        self._users = users
        self._ttl = timedelta(hours=RESET_TOKEN_TTL_HOURS if ttl_hours is None else int(ttl_hours))

    def issue(self, username: str) -> str:
        user = self._users.find_by_username(username)
        if user is None:
            raise NotFoundError("User not found.")
        if user.oauth_linked:
            raise FederatedAccountError("User has logged in with google.")

        token = self._codec.issue({"username": user.username}, ttl=self._ttl)
        now = utc_now()
        with self._db.connect() as conn:
            conn.execute(
                """
                INSERT INTO password_resets (username, token, expire_at, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(username) DO UPDATE SET
                    token = excluded.token,
                    expire_at = excluded.expire_at,
                    created_at = excluded.created_at
                """,
                (user.username, token, (now + self._ttl).isoformat(), now.isoformat()),
            )
        logger.info("Issued password reset for %s", user.username)
        return token

    def redeem(self, token: str, new_password: str) -> None:
        """Set a new password and consume the token, or change nothing."""
        if not token:
            raise InvalidTokenError("Invalid token.")

        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT username, expire_at FROM password_resets WHERE token = ?",
                (token,),
            ).fetchone()
        if not row:
            raise InvalidTokenError("Invalid token.")

        # Expired rows stay put; only purge_expired() removes them.
        if parse_iso(row["expire_at"]) < utc_now():
            raise ExpiredTokenError("Token expired.")

        self._codec.verify(token)

        user = self._users.find_by_username(row["username"])
        if user is None:
            raise NotFoundError("User does not exist.")

        # Claim the row and write the password in one transaction; a failed
        # write rolls back and the token stays redeemable.
        with self._db.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            cur = conn.execute("DELETE FROM password_resets WHERE token = ?", (token,))
            if cur.rowcount != 1:
                # Another redemption of the same token got here first.
                raise InvalidTokenError("Invalid token.")
            if not self._users.set_password(user.id, new_password, conn=conn):
                raise NotFoundError("User does not exist.")

        logger.info("Password reset completed for %s", user.username)

    def purge_expired(self) -> int:
        with self._db.connect() as conn:
            cur = conn.execute(
                "DELETE FROM password_resets WHERE expire_at < ?",
                (now_iso(),),
            )
            return int(cur.rowcount or 0)

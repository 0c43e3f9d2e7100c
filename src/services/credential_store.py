"""User records + password hashing (SQLite)."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from .database import Database, normalize_email, now_iso
from .errors import ConflictError

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, username, email, password_hash, created_at"


@dataclass(frozen=True)
class User:
    id: str
    username: str | None
    email: str
    password_hash: str | None
    created_at: str

    @property
    def oauth_linked(self) -> bool:
        return self.password_hash is None

    def public(self) -> dict[str, Any]:
        """Fields safe to hand back to clients (never the hash)."""
        return {"id": self.id, "username": self.username, "email": self.email}


class CredentialStore:
    """Owns the ``users`` table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            created_at=row["created_at"],
        )

    def _fetch_one(self, where: str, params: tuple[Any, ...]) -> User | None:
        with self._db.connect() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE {where} LIMIT 1",
                params,
            ).fetchone()
            return self._row_to_user(row) if row else None

    def get_user(self, user_id: str) -> User | None:
        if not user_id:
            return None
        return self._fetch_one("id = ?", (user_id,))

    def find_by_username(self, username: str) -> User | None:
        if not username:
            return None
        return self._fetch_one("username = ?", (username,))

    def find_by_email(self, email: str) -> User | None:
        email_norm = normalize_email(email)
        if not email_norm:
            return None
        return self._fetch_one("email = ?", (email_norm,))

    def find_by_username_or_email(self, username: str | None, email: str | None) -> User | None:
        return self._fetch_one(
            "username = ? OR email = ?",
            (username or None, normalize_email(email) or None),
        )

    def list_users(self) -> list[User]:
        with self._db.connect() as conn:
            rows = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at"
            ).fetchall()
            return [self._row_to_user(r) for r in rows]

    # ---------------------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------------------

    def create(self, username: str | None, email: str, password: str | None = None) -> User:
        """Insert a user. The UNIQUE constraints are the last word on collisions."""
        email_norm = normalize_email(email)
        user = User(
            id=str(uuid.uuid4()),
            username=(username or "").strip() or None,
            email=email_norm,
            password_hash=generate_password_hash(password) if password else None,
            created_at=now_iso(),
        )
        try:
            with self._db.connect() as conn:
                conn.execute(
                    f"INSERT INTO users ({_USER_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                    (user.id, user.username, user.email, user.password_hash, user.created_at),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError(
                "A user with that e-mail or username already exists."
            ) from exc

        logger.info("Created user id=%s username=%s", user.id, user.username)
        return user

    def verify_password(self, user: User, password: str | None) -> bool:
        if not user.password_hash or not password:
            return False
        return check_password_hash(user.password_hash, password)

    def set_password(
        self,
        user_id: str,
        password: str,
        *,
        conn: sqlite3.Connection | None = None,
    ) -> bool:
        """Replace the password hash; ``conn`` joins the caller's transaction."""
        password_hash = generate_password_hash(password)
        if conn is not None:
            cur = conn.execute(
                "UPDATE users SET password_hash = ? WHERE id = ?",
                (password_hash, user_id),
            )
            return cur.rowcount > 0
        with self._db.connect() as own_conn:
            cur = own_conn.execute(
                "UPDATE users SET password_hash = ? WHERE id = ?",
                (password_hash, user_id),
            )
            return cur.rowcount > 0

    def link_username(self, user: User, username: str) -> User:
        """Attach ``username`` if the account has none; never overwrites."""
        if user.username:
            return user
        try:
            with self._db.connect() as conn:
                conn.execute(
                    "UPDATE users SET username = ? WHERE id = ? AND username IS NULL",
                    (username, user.id),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("That username is already taken.") from exc

        # A concurrent link may have won; report what is actually stored.
        return self.get_user(user.id) or user

    def delete(self, user_id: str) -> bool:
        with self._db.connect() as conn:
            cur = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted user id=%s", user_id)
        return deleted

"""SQLite storage shared by the credential, invitation and reset services.

One database file, three tables. Uniqueness lives in the schema so that
concurrent writers are serialized by SQLite rather than by the application.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from config import DB_PATH

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return utc_now().isoformat()


def parse_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class Database:
    """Connection factory + schema owner for the auth DB."""

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = Path(db_path) if db_path is not None else DB_PATH
        self._ensure_parent_dir()
        self._init_db()

    @property
    def path(self) -> Path:
        return self._db_path

    def _ensure_parent_dir(self) -> None:
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            logger.warning("Cannot create directory for %s", self._db_path)

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self.connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT UNIQUE,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )

            # One pending invitation per email: supersession is an upsert.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS invitations (
                    email TEXT PRIMARY KEY,
                    token TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL
                )
                """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS password_resets (
                    username TEXT PRIMARY KEY,
                    token TEXT NOT NULL UNIQUE,
                    expire_at TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
        logger.debug("Auth database ready at %s", self._db_path)

"""SQLite-backed persistence for registered users."""
from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from .models import User

logger = logging.getLogger("registration.database")


class UniqueConstraintViolation(Exception):
    """Raised when a username or email is already taken by a live record."""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "users.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Database:
    """Simple wrapper around SQLite for persisting users.

    Each public method opens its own connection and commits before returning,
    so an acknowledged write is on disk. Mutations are serialised through a
    per-instance lock to keep the uniqueness check and the insert together when
    requests are handled on a thread pool.
    """

    def __init__(self, path: Path) -> None:
        path = Path(path)
        _ensure_directory(path)
        self._path = path
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA synchronous = FULL")
        return conn

    def _execute_write(self, query: str, params: tuple = ()) -> Tuple[Optional[int], int]:
        """Run a single mutating statement and commit it, returning (lastrowid, rowcount)."""

        with self._write_lock:
            conn = self._connect()
            try:
                with conn:
                    cursor = conn.execute(query, params)
                return cursor.lastrowid, cursor.rowcount
            finally:
                conn.close()

    def initialize(self) -> None:
        """Create the users table if it does not already exist."""

        conn = self._connect()
        try:
            with conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        username TEXT NOT NULL UNIQUE,
                        email TEXT NOT NULL UNIQUE,
                        age INTEGER NOT NULL,
                        created_at TEXT NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at);
                    """
                )
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(self, username: str, email: str, age: int) -> User:
        """Insert a new user and return the stored record."""

        created_at = _current_timestamp()
        try:
            user_id, _ = self._execute_write(
                "INSERT INTO users (username, email, age, created_at) VALUES (?, ?, ?, ?)",
                (username, email, int(age), _serialize_datetime(created_at)),
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" not in str(exc).upper():
                raise
            raise UniqueConstraintViolation("Username or email already exists") from exc

        logger.info("Stored user %s (%s)", user_id, username)
        return User(
            id=int(user_id),
            username=username,
            email=email,
            age=int(age),
            created_at=created_at,
        )

    def get_user(self, user_id: int) -> Optional[User]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_user_by_username(self, username: str) -> Optional[User]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT * FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_users(self) -> List[User]:
        """Return every live user, newest first."""

        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM users ORDER BY created_at DESC, id DESC"
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_user(row) for row in rows]

    def count_users(self) -> int:
        conn = self._connect()
        try:
            row = conn.execute("SELECT COUNT(*) AS total FROM users").fetchone()
        finally:
            conn.close()
        return int(row["total"])

    def delete_user(self, user_id: int) -> bool:
        """Delete a user by id. Unknown ids are not an error."""

        _, rowcount = self._execute_write("DELETE FROM users WHERE id = ?", (user_id,))
        deleted = rowcount > 0
        if deleted:
            logger.info("Deleted user %s", user_id)
        return deleted

    def delete_all_users(self) -> int:
        _, rowcount = self._execute_write("DELETE FROM users")
        logger.info("Deleted %s user(s)", rowcount)
        return rowcount

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            username=str(row["username"]),
            email=str(row["email"]),
            age=int(row["age"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["Database", "UniqueConstraintViolation", "resolve_database_path"]

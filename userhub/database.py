"""SQLite-backed persistence for user records."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

from .models import User

logger = logging.getLogger("userhub.database")

_USER_COLUMNS = "id, name, email, created_at, updated_at"


class DatabaseError(RuntimeError):
    """Raised when the underlying store rejects a statement or connection."""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "userhub.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Database:
    """Simple wrapper around SQLite for persisting user records.

    A short-lived connection is opened for every operation, so a single
    instance can be shared by all request handlers of the process.
    """

    def __init__(self, path: Path, *, busy_timeout: float = 5.0) -> None:
        _ensure_directory(path)
        self._path = path
        self._busy_timeout = busy_timeout

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, timeout=self._busy_timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _store_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to {action}: {exc}") from exc

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._store_errors("initialise the database"), self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(self, name: str, email: str) -> User:
        """Insert a new user and return the stored record.

        Both timestamps come from a single clock reading so a fresh record
        always has ``created_at == updated_at``.
        """

        created_at = _current_timestamp()
        serialized = _serialize_datetime(created_at)

        with self._store_errors("create user"), self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO users (name, email, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (name, email, serialized, serialized),
            )
            user_id = cursor.lastrowid

        if user_id is None:
            raise DatabaseError("Failed to create user: no identifier was assigned")

        return User(
            id=int(user_id),
            name=name,
            email=email,
            created_at=created_at,
            updated_at=created_at,
        )

    def update_user(self, user_id: int, *, name: str, email: str) -> Optional[User]:
        """Overwrite the name and email of a user and return the persisted row.

        ``created_at`` is never assigned here. The row is re-read after the
        update has been committed; ``None`` means no such user exists.
        """

        updated_at = _serialize_datetime(_current_timestamp())

        with self._store_errors("update user"), self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET name = ?, email = ?, updated_at = ? WHERE id = ?",
                (name, email, updated_at, user_id),
            )
            affected = cursor.rowcount

        if affected == 0:
            logger.debug("Update of user %s matched no rows", user_id)

        return self.get_user(user_id)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._store_errors("load user"), self._connect() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_users(self) -> List[User]:
        with self._store_errors("list users"), self._connect() as conn:
            rows = conn.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY id").fetchall()
        return [self._row_to_user(row) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            created_at=_parse_datetime(str(row["created_at"])),
            updated_at=_parse_datetime(str(row["updated_at"])),
        )


__all__ = ["Database", "DatabaseError", "resolve_database_path"]

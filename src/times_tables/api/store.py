"""
SQLite Store for the HTTP server.

Provides persistence for:
- User accounts (passlib-hashed passwords)
- Bearer session tokens with expiry
- One serialized scheduling engine per user

Database location: ~/.times_tables/server.db (configurable)
"""

from __future__ import annotations

import json
import secrets
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path

from loguru import logger
from passlib.context import CryptContext

from ..core import EngineStateError, SchedulingEngine
from ..core.engine import Clock
from ..core.stats import utc_now

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class UsernameTakenError(Exception):
    """A user with that name already exists."""


# =============================================================================
# Store
# =============================================================================


class Store:
    """
    SQLite-backed accounts, sessions and progress.

    Concurrent requests for the same user are serialized through a
    per-user lock held for the whole load → mutate → save cycle.
    """

    def __init__(
        self,
        db_path: Path,
        session_ttl_days: int = 30,
        clock: Clock | None = None,
    ):
        """
        Initialize the store.

        Args:
            db_path: SQLite file (parent directories are created)
            session_ttl_days: Lifetime of new login tokens
            clock: Time source for token expiry and for loaded engines
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.session_ttl = timedelta(days=session_ttl_days)
        self.clock = clock or utc_now

        self._conn: sqlite3.Connection | None = None
        self._db_lock = threading.RLock()
        self._user_locks: dict[int, threading.Lock] = {}
        self._user_locks_guard = threading.Lock()
        self._init_schema()

        logger.info(f"Store initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
        return self._conn

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._db_lock:
            cursor = self.conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL
                )
            """)

            # One JSON engine document per user
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS progress (
                    user_id INTEGER PRIMARY KEY REFERENCES users(id),
                    data TEXT NOT NULL
                )
            """)

            # expires_at is a UNIX timestamp
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    token TEXT PRIMARY KEY,
                    user_id INTEGER NOT NULL REFERENCES users(id),
                    expires_at REAL NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_user
                ON sessions(user_id)
            """)

            self.conn.commit()

    # =========================================================================
    # Users
    # =========================================================================

    def create_user(self, username: str, password: str) -> int:
        """
        Register a new user.

        Returns:
            The new user id

        Raises:
            UsernameTakenError: If the username is already registered
        """
        password_hash = pwd_context.hash(password)

        with self._db_lock:
            try:
                cursor = self.conn.execute(
                    "INSERT INTO users (username, password_hash) VALUES (?, ?)",
                    (username, password_hash),
                )
                self.conn.commit()
            except sqlite3.IntegrityError as e:
                self.conn.rollback()
                raise UsernameTakenError(username) from e

        logger.info(f"Registered user {username!r}")
        return cursor.lastrowid

    def verify_user(self, username: str, password: str) -> int | None:
        """
        Check credentials.

        Returns:
            The user id, or None if the name or password is wrong
        """
        with self._db_lock:
            row = self.conn.execute(
                "SELECT id, password_hash FROM users WHERE username = ?",
                (username,),
            ).fetchone()

        if row is None or not pwd_context.verify(password, row["password_hash"]):
            return None
        return row["id"]

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, user_id: int) -> str:
        """Issue a new bearer token for ``user_id``."""
        token = secrets.token_hex(32)
        expires_at = (self.clock() + self.session_ttl).timestamp()

        with self._db_lock:
            self.conn.execute(
                "INSERT INTO sessions (token, user_id, expires_at) VALUES (?, ?, ?)",
                (token, user_id, expires_at),
            )
            self.conn.commit()
        return token

    def user_for_token(self, token: str) -> int | None:
        """Resolve an unexpired token to its user id."""
        with self._db_lock:
            row = self.conn.execute(
                "SELECT user_id FROM sessions WHERE token = ? AND expires_at > ?",
                (token, self.clock().timestamp()),
            ).fetchone()
        return row["user_id"] if row else None

    def delete_session(self, token: str) -> None:
        with self._db_lock:
            self.conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
            self.conn.commit()

    def purge_expired_sessions(self) -> int:
        """Delete expired tokens. Returns the number removed."""
        with self._db_lock:
            cursor = self.conn.execute(
                "DELETE FROM sessions WHERE expires_at <= ?",
                (self.clock().timestamp(),),
            )
            self.conn.commit()
        return cursor.rowcount

    # =========================================================================
    # Progress
    # =========================================================================

    def load_engine(self, user_id: int) -> SchedulingEngine:
        """
        Load a user's engine.

        A missing row gives a fresh engine. A corrupt row is logged and
        also replaced by a fresh engine.
        """
        with self._db_lock:
            row = self.conn.execute(
                "SELECT data FROM progress WHERE user_id = ?", (user_id,)
            ).fetchone()

        if row is None:
            return SchedulingEngine(clock=self.clock)

        try:
            return SchedulingEngine.from_dict(json.loads(row["data"]), clock=self.clock)
        except (json.JSONDecodeError, EngineStateError) as e:
            logger.warning(f"Corrupt progress for user {user_id}: {e}; starting fresh")
            return SchedulingEngine(clock=self.clock)

    def save_engine(self, user_id: int, engine: SchedulingEngine) -> None:
        data = json.dumps(engine.to_dict())

        with self._db_lock:
            self.conn.execute(
                """
                INSERT INTO progress (user_id, data) VALUES (?, ?)
                ON CONFLICT(user_id) DO UPDATE SET data = excluded.data
                """,
                (user_id, data),
            )
            self.conn.commit()

    def reset_progress(self, user_id: int) -> SchedulingEngine:
        """Replace a user's engine with a fresh one."""
        with self._user_lock(user_id):
            engine = SchedulingEngine(clock=self.clock)
            self.save_engine(user_id, engine)

        logger.info(f"Progress reset for user {user_id}")
        return engine

    @contextmanager
    def progress_scope(self, user_id: int) -> Iterator[SchedulingEngine]:
        """
        Load, yield for mutation, then save a user's engine.

        Holds the user's lock for the whole cycle. Nothing is saved if
        the block raises.
        """
        with self._user_lock(user_id):
            engine = self.load_engine(user_id)
            yield engine
            self.save_engine(user_id, engine)

    def _user_lock(self, user_id: int) -> threading.Lock:
        with self._user_locks_guard:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = self._user_locks[user_id] = threading.Lock()
            return lock

    def close(self) -> None:
        """Close the database connection."""
        with self._db_lock:
            if self._conn:
                self._conn.close()
                self._conn = None

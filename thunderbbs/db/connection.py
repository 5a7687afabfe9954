"""
ThunderBBS Database Connection Manager

Single SQLite connection; statements run in submission order.
"""

import sqlite3
import logging
import time
from pathlib import Path
from contextlib import contextmanager
from typing import Optional, Generator

logger = logging.getLogger(__name__)

GENERAL_BOARD = "General"
GENERAL_FILE_AREA = "General Files"


class Database:
    """
    SQLite database manager for ThunderBBS.

    All access goes through one connection owned by the event loop thread,
    so multi-step sequences never interleave with another command's writes.
    """

    def __init__(self, path: str):
        """
        Initialize database connection.

        Args:
            path: Path to SQLite database file, or ":memory:"
        """
        self.path = path
        self._conn: Optional[sqlite3.Connection] = None
        self._initialized = False

    def initialize(self):
        """Initialize database connection and schema."""
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(
            self.path,
            check_same_thread=False,
            isolation_level=None  # Autocommit mode
        )

        self._conn.execute("PRAGMA foreign_keys=ON")

        # Use Row factory for dict-like access
        self._conn.row_factory = sqlite3.Row

        self._run_migrations()
        self._seed_defaults()

        self._initialized = True
        logger.info(f"Database initialized: {self.path}")

    def _run_migrations(self):
        """Run database migrations."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY,
                name TEXT UNIQUE NOT NULL,
                applied_at INTEGER NOT NULL
            )
        """)

        applied = {
            row[0] for row in
            self._conn.execute("SELECT name FROM _migrations").fetchall()
        }

        migrations = [
            ("001_initial", self._migration_001_initial),
        ]

        for name, func in migrations:
            if name not in applied:
                logger.info(f"Running migration: {name}")
                func()
                self._conn.execute(
                    "INSERT INTO _migrations (name, applied_at) VALUES (?, ?)",
                    (name, int(time.time() * 1_000_000))
                )

    def _migration_001_initial(self):
        """Initial database schema."""
        self._conn.executescript("""
            -- Accounts
            CREATE TABLE IF NOT EXISTS users (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                username          TEXT UNIQUE NOT NULL,
                password_hash     TEXT NOT NULL,
                registration_date TEXT NOT NULL,
                role              TEXT DEFAULT 'user' NOT NULL
            );

            -- Boards
            CREATE TABLE IF NOT EXISTS boards (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                name            TEXT UNIQUE NOT NULL,
                description     TEXT
            );

            -- Public posts
            CREATE TABLE IF NOT EXISTS messages (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                board_id        INTEGER REFERENCES boards(id),
                user_id         INTEGER NOT NULL REFERENCES users(id),
                body            TEXT NOT NULL,
                timestamp       TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_messages_board ON messages(board_id, timestamp);

            -- Private mail
            CREATE TABLE IF NOT EXISTS private_messages (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                sender_id       INTEGER NOT NULL REFERENCES users(id),
                recipient_id    INTEGER NOT NULL REFERENCES users(id),
                subject         TEXT NOT NULL,
                body            TEXT NOT NULL,
                timestamp       TEXT NOT NULL,
                is_read         INTEGER DEFAULT 0
            );
            CREATE INDEX IF NOT EXISTS idx_private_messages_recipient ON private_messages(recipient_id);

            -- File areas
            CREATE TABLE IF NOT EXISTS file_areas (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                name            TEXT UNIQUE NOT NULL,
                description     TEXT
            );

            -- File listings (metadata only)
            CREATE TABLE IF NOT EXISTS file_listings (
                id               INTEGER PRIMARY KEY AUTOINCREMENT,
                area_id          INTEGER NOT NULL REFERENCES file_areas(id),
                filename         TEXT NOT NULL,
                description      TEXT,
                uploader_user_id INTEGER NOT NULL REFERENCES users(id),
                upload_date      TEXT NOT NULL,
                download_count   INTEGER DEFAULT 0,
                UNIQUE(area_id, filename)
            );

            -- Display preferences
            CREATE TABLE IF NOT EXISTS user_preferences (
                user_id                INTEGER PRIMARY KEY NOT NULL REFERENCES users(id),
                color_prompt           TEXT,
                color_username_output  TEXT,
                color_timestamp_output TEXT
            );
        """)

    def _seed_defaults(self):
        """Insert the default board and file area if they are missing."""
        cursor = self._conn.execute(
            "INSERT OR IGNORE INTO boards (name, description) VALUES (?, ?)",
            (GENERAL_BOARD, "General discussion and announcements")
        )
        if cursor.rowcount > 0:
            logger.info(f"Default '{GENERAL_BOARD}' board inserted")

        cursor = self._conn.execute(
            "INSERT OR IGNORE INTO file_areas (name, description) VALUES (?, ?)",
            (GENERAL_FILE_AREA, "Miscellaneous files and utilities")
        )
        if cursor.rowcount > 0:
            logger.info(f"Default '{GENERAL_FILE_AREA}' area inserted")

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database transactions."""
        self._conn.execute("BEGIN")
        try:
            yield self._conn
            self._conn.execute("COMMIT")
        except Exception:
            self._conn.execute("ROLLBACK")
            raise

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute SQL query."""
        return self._conn.execute(sql, params)

    def fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Execute query and fetch one result."""
        return self._conn.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Execute query and fetch all results."""
        return self._conn.execute(sql, params).fetchall()

    def close(self):
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            logger.info("Database connection closed")

    # === Utility Methods ===

    def count_users(self) -> int:
        """Count total registered users."""
        row = self.fetchone("SELECT COUNT(*) FROM users")
        return row[0] if row else 0

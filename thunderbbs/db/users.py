"""
ThunderBBS User Database Operations

CRUD operations for accounts and display preferences.
"""

import logging
from typing import Optional

from .connection import Database
from .models import User, Role, UserPreference
from ..utils.formatting import utc_timestamp

logger = logging.getLogger(__name__)

# Preference element -> user_preferences column
PREFERENCE_COLUMNS = {
    "prompt": "color_prompt",
    "username": "color_username_output",
    "timestamp": "color_timestamp_output",
}


class UserRepository:
    """Repository for account-related database operations."""

    def __init__(self, db: Database):
        self.db = db

    def create_user(
        self,
        username: str,
        password_hash: str,
        role: Role = Role.USER
    ) -> User:
        """Create a new account. Usernames are stored exactly as given."""
        registration_date = utc_timestamp()

        cursor = self.db.execute("""
            INSERT INTO users (username, password_hash, registration_date, role)
            VALUES (?, ?, ?, ?)
        """, (username, password_hash, registration_date, role.value))

        return User(
            id=cursor.lastrowid,
            username=username,
            password_hash=password_hash,
            registration_date=registration_date,
            role=role
        )

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Get user by username (case-sensitive)."""
        row = self.db.fetchone(
            "SELECT * FROM users WHERE username = ?",
            (username,)
        )
        return self._row_to_user(row) if row else None

    def set_role(self, username: str, role: Role) -> bool:
        """Change an account's role."""
        cursor = self.db.execute(
            "UPDATE users SET role = ? WHERE username = ?",
            (role.value, username)
        )
        return cursor.rowcount > 0

    def list_users(self, limit: int = 50, offset: int = 0) -> list[User]:
        """List users with pagination."""
        rows = self.db.fetchall(
            "SELECT * FROM users ORDER BY id LIMIT ? OFFSET ?",
            (limit, offset)
        )
        return [self._row_to_user(row) for row in rows]

    def _row_to_user(self, row) -> User:
        """Convert database row to User object."""
        try:
            role = Role(row["role"])
        except ValueError:
            logger.warning(f"Unknown role {row['role']!r} for user {row['id']}, treating as user")
            role = Role.USER

        return User(
            id=row["id"],
            username=row["username"],
            password_hash=row["password_hash"],
            registration_date=row["registration_date"],
            role=role
        )


class PreferenceRepository:
    """Repository for per-user display preferences."""

    def __init__(self, db: Database):
        self.db = db

    def get_preferences(self, user_id: int) -> Optional[UserPreference]:
        """Get a user's preference row, or None if they never set one."""
        row = self.db.fetchone(
            "SELECT * FROM user_preferences WHERE user_id = ?",
            (user_id,)
        )
        if not row:
            return None

        return UserPreference(
            user_id=row["user_id"],
            color_prompt=row["color_prompt"],
            color_username_output=row["color_username_output"],
            color_timestamp_output=row["color_timestamp_output"]
        )

    def set_color(self, user_id: int, element: str, color: str):
        """Insert or update one color column for a user."""
        column = PREFERENCE_COLUMNS[element]

        # Column name comes from the fixed mapping above
        self.db.execute(f"""
            INSERT INTO user_preferences (user_id, {column}) VALUES (?, ?)
            ON CONFLICT(user_id) DO UPDATE SET {column} = excluded.{column}
        """, (user_id, color))

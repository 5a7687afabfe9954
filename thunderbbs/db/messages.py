"""
ThunderBBS Message Database Operations

CRUD operations for public board posts and private mail.
"""

import logging
from typing import Optional

from .connection import Database
from .models import Post, PrivateMessage
from ..utils.formatting import utc_timestamp

logger = logging.getLogger(__name__)


class PostRepository:
    """Repository for public board posts (the `messages` table)."""

    def __init__(self, db: Database):
        self.db = db

    def create_post(self, board_id: int, user_id: int, body: str) -> Post:
        """Create a new post on a board."""
        timestamp = utc_timestamp()

        cursor = self.db.execute("""
            INSERT INTO messages (board_id, user_id, body, timestamp)
            VALUES (?, ?, ?, ?)
        """, (board_id, user_id, body, timestamp))

        return Post(
            id=cursor.lastrowid,
            board_id=board_id,
            user_id=user_id,
            body=body,
            timestamp=timestamp
        )

    def get_recent_posts(self, board_id: int, limit: int = 10) -> list[Post]:
        """Get the newest posts on a board, newest first, with author names."""
        rows = self.db.fetchall("""
            SELECT m.*, u.username
            FROM messages m
            JOIN users u ON m.user_id = u.id
            WHERE m.board_id = ?
            ORDER BY m.timestamp DESC, m.id DESC
            LIMIT ?
        """, (board_id, limit))
        return [self._row_to_post(row) for row in rows]

    def update_body(self, post_id: int, body: str) -> bool:
        """Replace a post's body, regardless of board."""
        cursor = self.db.execute(
            "UPDATE messages SET body = ? WHERE id = ?",
            (body, post_id)
        )
        return cursor.rowcount > 0

    def delete_post(self, post_id: int) -> bool:
        """Delete a post, regardless of board."""
        cursor = self.db.execute("DELETE FROM messages WHERE id = ?", (post_id,))
        return cursor.rowcount > 0

    def _row_to_post(self, row) -> Post:
        """Convert database row to Post object."""
        return Post(
            id=row["id"],
            board_id=row["board_id"],
            user_id=row["user_id"],
            body=row["body"],
            timestamp=row["timestamp"],
            username=row["username"] if "username" in row.keys() else None
        )


class PrivateMessageRepository:
    """Repository for private mail."""

    def __init__(self, db: Database):
        self.db = db

    def create_message(
        self,
        sender_id: int,
        recipient_id: int,
        subject: str,
        body: str
    ) -> PrivateMessage:
        """Store a new, unread private message."""
        timestamp = utc_timestamp()

        cursor = self.db.execute("""
            INSERT INTO private_messages (
                sender_id, recipient_id, subject, body, timestamp, is_read
            ) VALUES (?, ?, ?, ?, ?, 0)
        """, (sender_id, recipient_id, subject, body, timestamp))

        return PrivateMessage(
            id=cursor.lastrowid,
            sender_id=sender_id,
            recipient_id=recipient_id,
            subject=subject,
            body=body,
            timestamp=timestamp,
            is_read=False
        )

    def get_user_mail(self, recipient_id: int) -> list[PrivateMessage]:
        """Get all mail received by a user, newest first."""
        rows = self.db.fetchall("""
            SELECT pm.*, u.username AS sender_username
            FROM private_messages pm
            JOIN users u ON pm.sender_id = u.id
            WHERE pm.recipient_id = ?
            ORDER BY pm.timestamp DESC, pm.id DESC
        """, (recipient_id,))
        return [self._row_to_message(row) for row in rows]

    def get_message_for_recipient(
        self,
        message_id: int,
        recipient_id: int
    ) -> Optional[PrivateMessage]:
        """Get a message only if it was addressed to the given user."""
        row = self.db.fetchone("""
            SELECT pm.*, u.username AS sender_username
            FROM private_messages pm
            JOIN users u ON pm.sender_id = u.id
            WHERE pm.id = ? AND pm.recipient_id = ?
        """, (message_id, recipient_id))
        return self._row_to_message(row) if row else None

    def count_unread_mail(self, recipient_id: int) -> int:
        """Count unread mail for a user."""
        row = self.db.fetchone("""
            SELECT COUNT(*) FROM private_messages
            WHERE recipient_id = ? AND is_read = 0
        """, (recipient_id,))
        return row[0] if row else 0

    def mark_as_read(self, message_id: int):
        """Mark a message as read."""
        self.db.execute(
            "UPDATE private_messages SET is_read = 1 WHERE id = ?",
            (message_id,)
        )

    def delete_for_recipient(self, message_id: int, recipient_id: int) -> bool:
        """Delete a message owned by the recipient."""
        cursor = self.db.execute(
            "DELETE FROM private_messages WHERE id = ? AND recipient_id = ?",
            (message_id, recipient_id)
        )
        return cursor.rowcount > 0

    def _row_to_message(self, row) -> PrivateMessage:
        """Convert database row to PrivateMessage object."""
        return PrivateMessage(
            id=row["id"],
            sender_id=row["sender_id"],
            recipient_id=row["recipient_id"],
            subject=row["subject"],
            body=row["body"],
            timestamp=row["timestamp"],
            is_read=bool(row["is_read"]),
            sender_username=row["sender_username"]
        )

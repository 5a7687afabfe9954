"""
ThunderBBS Message Boards

Board lookup, switching, and public posts.
"""

import logging
from typing import Optional, TYPE_CHECKING

from ..db.models import Board, Post
from ..db.messages import PostRepository
from ..utils.formatting import parse_id

if TYPE_CHECKING:
    from .bbs import ThunderBBS

logger = logging.getLogger(__name__)

# LOOK shows at most this many posts
RECENT_POST_LIMIT = 10


class BoardRepository:
    """Repository for board-related database operations."""

    def __init__(self, db):
        self.db = db

    def get_all_boards(self) -> list[Board]:
        """Get all boards ordered by id."""
        rows = self.db.fetchall("SELECT * FROM boards ORDER BY id")
        return [self._row_to_board(row) for row in rows]

    def get_board_by_name(self, name: str) -> Optional[Board]:
        """Get board by exact name."""
        row = self.db.fetchone("SELECT * FROM boards WHERE name = ?", (name,))
        return self._row_to_board(row) if row else None

    def get_board_by_id(self, board_id: int) -> Optional[Board]:
        """Get board by ID."""
        row = self.db.fetchone("SELECT * FROM boards WHERE id = ?", (board_id,))
        return self._row_to_board(row) if row else None

    def find_board(self, ref: str) -> Optional[Board]:
        """Resolve a board by numeric id or exact name."""
        board_id = parse_id(ref)
        if board_id is not None:
            return self.get_board_by_id(board_id)
        return self.get_board_by_name(ref)

    def create_board(self, name: str, description: str = "") -> Board:
        """Create a new board."""
        cursor = self.db.execute(
            "INSERT INTO boards (name, description) VALUES (?, ?)",
            (name, description)
        )
        return Board(id=cursor.lastrowid, name=name, description=description)

    def _row_to_board(self, row) -> Board:
        """Convert database row to Board object."""
        return Board(
            id=row["id"],
            name=row["name"],
            description=row["description"]
        )


class BoardService:
    """
    Message board service for ThunderBBS.

    Boards are public; anyone may read, logged-in users may post, and
    sysops may edit or delete any post by id.
    """

    def __init__(self, bbs: "ThunderBBS"):
        self.bbs = bbs
        self.boards = BoardRepository(bbs.db)
        self.posts = PostRepository(bbs.db)

    def list_boards(self) -> list[Board]:
        """All boards ordered by id."""
        return self.boards.get_all_boards()

    def find_board(self, ref: str) -> tuple[Optional[Board], str]:
        """
        Resolve a board reference.

        Returns:
            (Board, "") on success
            (None, error_message) on failure
        """
        board = self.boards.find_board(ref.strip())
        if not board:
            return None, "Board not found."
        return board, ""

    def recent_posts(self, board_id: int) -> list[Post]:
        """Newest posts on a board, newest first."""
        return self.posts.get_recent_posts(board_id, limit=RECENT_POST_LIMIT)

    def create_post(self, board_id: int, user_id: int, body: str) -> tuple[Optional[Post], str]:
        """Post on a board. Body is trimmed and must not be empty."""
        body = body.strip()
        if not body:
            return None, "Message cannot be empty. Usage: SAY <message>"

        post = self.posts.create_post(board_id, user_id, body)
        logger.debug(f"Post {post.id} created on board {board_id} by user {user_id}")
        return post, ""

    def edit_post(self, post_id: int, body: str) -> tuple[bool, str]:
        """Replace a post's body."""
        if not self.posts.update_body(post_id, body):
            return False, "Message not found."
        logger.info(f"Post {post_id} edited")
        return True, ""

    def delete_post(self, post_id: int) -> tuple[bool, str]:
        """Delete a post."""
        if not self.posts.delete_post(post_id):
            return False, "Message not found on board."
        logger.info(f"Post {post_id} deleted")
        return True, ""

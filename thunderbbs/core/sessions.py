"""
ThunderBBS Session Store

In-memory sessions keyed by an opaque random id. One session per web
client or Telnet connection.
"""

import sqlite3
import logging
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TYPE_CHECKING

from ..db.connection import GENERAL_BOARD
from ..db.models import Role
from .colors import default_colors

if TYPE_CHECKING:
    from .broadcast import BroadcastQueue
    from .boards import BoardRepository
    from ..games.router import GameRouter

logger = logging.getLogger(__name__)

# Used when the default board could not be loaded at startup
FALLBACK_BOARD_ID = 1
FALLBACK_BOARD_NAME = GENERAL_BOARD


class ConnectionKind(Enum):
    """Transport a session arrived on."""
    WEB = "web"
    TELNET = "telnet"


@dataclass
class Session:
    """Per-connection state."""
    id: str
    connection: ConnectionKind
    username: str = "guest"
    logged_in: bool = False
    user_id: Optional[int] = None
    role: Optional[Role] = None
    board_id: int = FALLBACK_BOARD_ID
    board_name: str = FALLBACK_BOARD_NAME
    last_broadcast_index: int = -1
    game: Optional[object] = None
    prefs: dict[str, str] = field(default_factory=default_colors)

    @property
    def is_sysop(self) -> bool:
        return self.logged_in and self.role == Role.SYSOP

    @property
    def is_telnet(self) -> bool:
        return self.connection == ConnectionKind.TELNET


class SessionStore:
    """
    Owns all live sessions.

    Accessed only from the event loop thread; no locking.
    """

    def __init__(self, broadcasts: "BroadcastQueue", games: "GameRouter"):
        self.broadcasts = broadcasts
        self.games = games
        self._sessions: dict[str, Session] = {}
        self._default_board: Optional[tuple[int, str]] = None

    def load_default_board(self, board_repo: "BoardRepository"):
        """Resolve and cache the default board. Called once at startup."""
        try:
            board = board_repo.get_board_by_name(GENERAL_BOARD)
        except sqlite3.Error as e:
            logger.error(f"Error fetching '{GENERAL_BOARD}' board: {e}")
            return

        if board is None:
            logger.error(f"Default '{GENERAL_BOARD}' board not found in database")
            return

        self._default_board = (board.id, board.name)
        logger.info(f"Default board cached: {board.name} (id {board.id})")

    @property
    def default_board(self) -> tuple[int, str]:
        """Default board id and name, or the fallback pair."""
        if self._default_board is None:
            logger.error(
                f"Default board cache empty, using fallback id {FALLBACK_BOARD_ID}"
            )
            return FALLBACK_BOARD_ID, FALLBACK_BOARD_NAME
        return self._default_board

    def create(self, connection: ConnectionKind) -> str:
        """Create a guest session and return its id."""
        session_id = secrets.token_hex(16)
        while session_id in self._sessions:
            session_id = secrets.token_hex(16)

        board_id, board_name = self.default_board
        session = Session(
            id=session_id,
            connection=connection,
            board_id=board_id,
            board_name=board_name,
            last_broadcast_index=self.broadcasts.tail_index,
        )
        self._sessions[session_id] = session

        logger.info(f"Session created: {session_id[:8]} ({connection.value}), board: {board_name}")
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        """Look up a session."""
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def end(self, session_id: str) -> bool:
        """Remove a session, cleaning up any active game first."""
        session = self._sessions.get(session_id)
        if session is None:
            return False

        self.games.cleanup(session)
        del self._sessions[session_id]
        logger.info(f"Session ended: {session_id[:8]}")
        return True

    def items(self) -> list[tuple[str, Session]]:
        """Snapshot of (session_id, session) pairs in creation order."""
        return list(self._sessions.items())

    def logged_in(self) -> list[Session]:
        """Sessions currently logged in."""
        return [s for s in self._sessions.values() if s.logged_in]

    def reset_board(self, session: Session):
        """Put the session back on the default board."""
        session.board_id, session.board_name = self.default_board

    def reset_identity(self, session: Session):
        """Return a session to the guest state (logout)."""
        self.games.cleanup(session)
        session.username = "guest"
        session.logged_in = False
        session.user_id = None
        session.role = None
        session.prefs = default_colors()
        self.reset_board(session)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

"""
Tests for ThunderBBS Sessions, Broadcast Queue and Colors
"""

from unittest.mock import MagicMock

from thunderbbs.core.broadcast import BroadcastQueue
from thunderbbs.core.colors import (
    ANSI_RESET,
    COLOR_CODES,
    DEFAULT_COLORS,
    highlight,
    paint,
    resolve_color,
)
from thunderbbs.core.sessions import (
    FALLBACK_BOARD_ID,
    ConnectionKind,
    Session,
    SessionStore,
)
from thunderbbs.db.models import Board, Role
from thunderbbs.games.number_guess import NumberGuessState
from thunderbbs.games.router import GameRouter


class TestBroadcastQueue:
    """Tests for the append-only broadcast log."""

    def setup_method(self):
        self.queue = BroadcastQueue()

    def test_empty_queue(self):
        assert len(self.queue) == 0
        assert self.queue.tail_index == -1
        assert self.queue.since(-1) == []

    def test_since_returns_unseen_in_order(self):
        self.queue.append("one")
        self.queue.append("two")
        self.queue.append("three")

        assert [b.text for b in self.queue.since(-1)] == ["one", "two", "three"]
        assert [b.text for b in self.queue.since(0)] == ["two", "three"]
        assert self.queue.since(2) == []
        assert self.queue.tail_index == 2


class TestSessionStore:
    """Tests for SessionStore."""

    def setup_method(self):
        self.broadcasts = BroadcastQueue()
        self.store = SessionStore(self.broadcasts, GameRouter())

        board_repo = MagicMock()
        board_repo.get_board_by_name.return_value = Board(id=7, name="General")
        self.store.load_default_board(board_repo)

    def test_create_defaults(self):
        session_id = self.store.create(ConnectionKind.WEB)
        session = self.store.get(session_id)

        assert session.id == session_id
        assert session.username == "guest"
        assert not session.logged_in
        assert session.user_id is None
        assert session.role is None
        assert session.board_id == 7
        assert session.board_name == "General"
        assert session.game is None
        assert session.prefs == DEFAULT_COLORS
        assert session.last_broadcast_index == -1

    def test_ids_are_unique(self):
        ids = {self.store.create(ConnectionKind.TELNET) for _ in range(50)}
        assert len(ids) == 50
        assert len(self.store) == 50

    def test_new_session_skips_old_broadcasts(self):
        self.broadcasts.append("before you arrived")
        session = self.store.get(self.store.create(ConnectionKind.WEB))
        assert session.last_broadcast_index == 0
        assert self.broadcasts.since(session.last_broadcast_index) == []

    def test_fallback_board_when_cache_empty(self):
        store = SessionStore(self.broadcasts, GameRouter())
        session = store.get(store.create(ConnectionKind.WEB))
        assert session.board_id == FALLBACK_BOARD_ID
        assert session.board_name == "General"

    def test_get_unknown(self):
        assert self.store.get("nope") is None
        assert self.store.get(None) is None

    def test_end_clears_game(self):
        session_id = self.store.create(ConnectionKind.TELNET)
        session = self.store.get(session_id)
        session.game = NumberGuessState(target=10)

        assert self.store.end(session_id) is True
        assert session.game is None
        assert session_id not in self.store
        assert self.store.end(session_id) is False

    def test_logged_in(self):
        a = self.store.get(self.store.create(ConnectionKind.WEB))
        self.store.create(ConnectionKind.WEB)
        a.logged_in = True
        a.username = "alice"

        assert [s.username for s in self.store.logged_in()] == ["alice"]

    def test_reset_identity(self):
        session = self.store.get(self.store.create(ConnectionKind.TELNET))
        session.username = "alice"
        session.logged_in = True
        session.user_id = 3
        session.role = Role.SYSOP
        session.board_id, session.board_name = 2, "Other"
        session.prefs["prompt"] = "red"
        session.game = NumberGuessState(target=1)

        self.store.reset_identity(session)

        assert session.username == "guest"
        assert not session.logged_in
        assert session.user_id is None
        assert session.role is None
        assert (session.board_id, session.board_name) == (7, "General")
        assert session.prefs == DEFAULT_COLORS
        assert session.game is None


class TestColors:
    """Tests for color resolution."""

    def _session(self, connection=ConnectionKind.TELNET) -> Session:
        return Session(id="x", connection=connection)

    def test_defaults(self):
        session = self._session()
        assert resolve_color(session, "prompt") == "green"
        assert resolve_color(session, "username") == "bright_yellow"
        assert resolve_color(session, "timestamp") == "cyan"

    def test_preference_wins(self):
        session = self._session()
        session.prefs["username"] = "red"
        assert resolve_color(session, "username") == "red"

    def test_unknown_color_falls_back_to_white(self):
        session = self._session()
        session.prefs["prompt"] = "plaid"
        assert resolve_color(session, "prompt") == "white"

    def test_paint_on_telnet(self):
        session = self._session()
        assert paint(session, "username", "bob") == f"{COLOR_CODES['bright_yellow']}bob{ANSI_RESET}"

    def test_web_is_plain_text(self):
        session = self._session(ConnectionKind.WEB)
        assert paint(session, "username", "bob") == "bob"
        assert highlight(session, "red", "hi") == "hi"

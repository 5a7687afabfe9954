"""
ThunderBBS Mini-Game Router

While a session has an active game, every input line goes to the game
instead of the command dispatcher. The bare words "quit" and "exit"
always leave the game.
"""

import logging
from typing import TYPE_CHECKING

from .number_guess import NumberGuessGame

if TYPE_CHECKING:
    from ..core.sessions import Session

logger = logging.getLogger(__name__)

QUIT_WORDS = {"quit", "exit"}


class GameRouter:
    """Starts, routes input to, and tears down per-session games."""

    def __init__(self, games=None):
        # Game name (upper case) -> game handler
        self._games = {}
        for game in games or [NumberGuessGame()]:
            self.register(game)

    def register(self, game):
        """Register a game handler under its name."""
        self._games[game.name.upper()] = game

    @property
    def game_names(self) -> list[str]:
        return list(self._games)

    def is_known(self, name: str) -> bool:
        return name.upper() in self._games

    def start(self, session: "Session", name: str) -> str:
        """Start a game for the session. Callers check for an active game first."""
        game = self._games[name.upper()]
        state, text = game.start()
        session.game = state
        logger.info(f"Session {session.id[:8]} started {game.name}")
        return text

    def route(self, session: "Session", raw: str) -> str:
        """Deliver one raw input line to the session's active game."""
        if raw.strip().lower() in QUIT_WORDS:
            return self.quit(session)

        game = self._games.get(session.game.name)
        if game is None:
            logger.warning(f"Session {session.id[:8]} had unknown game {session.game.name!r}")
            session.game = None
            return "Unknown game state cleared. Back to the BBS."

        response, finished = game.handle(session.game, raw)
        if finished:
            session.game = None
        return response

    def quit(self, session: "Session") -> str:
        """Leave the active game."""
        if session.game is None:
            return "You are not currently in a game."

        game = self._games.get(session.game.name)
        session.game = None
        title = game.title if game else "the"
        return f"Exited {title} game."

    def cleanup(self, session: "Session"):
        """Drop any game state attached to a session being torn down."""
        if session.game is not None:
            logger.debug(f"Cleaning up {session.game.name} for session {session.id[:8]}")
            session.game = None

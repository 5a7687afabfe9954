"""
ThunderBBS Main BBS Class

Central orchestrator for the BBS system.
"""

import asyncio
import logging
import signal
import threading
import time
from typing import Optional

from ..config import Config
from .broadcast import BroadcastQueue
from .crypto import PasswordManager
from .sessions import ConnectionKind, SessionStore
from ..games.router import GameRouter

logger = logging.getLogger(__name__)

SESSION_INVALID = "Session invalid. Please reconnect."

# Seconds between periodic stats log lines
STATS_INTERVAL = 300


class ThunderBBS:
    """
    Main ThunderBBS class - orchestrates all BBS components.

    Responsibilities:
    - Initialize and manage the database connection
    - Own the session store, broadcast queue and game router
    - Run the Telnet server on the event loop
    - Run the web API in a server thread that hands commands to the loop
    - Handle graceful shutdown
    """

    def __init__(self, config: Config):
        """
        Initialize ThunderBBS with configuration.

        Args:
            config: Loaded configuration object
        """
        self.config = config
        self.running = False

        # Core components
        self.crypto = PasswordManager(
            time_cost=config.crypto.argon2_time_cost,
            memory_cost_kb=config.crypto.argon2_memory_kb,
            parallelism=config.crypto.argon2_parallelism
        )
        self.broadcasts = BroadcastQueue()
        self.games = GameRouter()
        self.sessions = SessionStore(self.broadcasts, self.games)

        # These will be initialized in setup()
        self.db = None
        self.dispatcher = None
        self.mail_service = None
        self.board_service = None
        self.file_service = None

        # Transports
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._telnet = None
        self._web_server = None
        self._web_thread: Optional[threading.Thread] = None

        # Statistics
        self.stats = BBSStats()

        logger.info(f"ThunderBBS initialized: {config.bbs.name}")

    def setup(self):
        """
        Initialize all components.

        Called before run() to set up the database and services.
        """
        logger.info("Setting up ThunderBBS components...")

        # Initialize database
        from ..db.connection import Database
        self.db = Database(self.config.database.path)
        self.db.initialize()

        from .boards import BoardService
        self.board_service = BoardService(self)

        from .mail import MailService
        self.mail_service = MailService(self)

        from .files import FileService
        self.file_service = FileService(self)

        self.sessions.load_default_board(self.board_service.boards)

        # Initialize command dispatcher
        from ..commands.dispatcher import CommandDispatcher
        self.dispatcher = CommandDispatcher(self)

        logger.info("ThunderBBS setup complete")

    # === Session entry points ===

    def open_session(self, connection: ConnectionKind) -> str:
        """Create a guest session for a new client."""
        self.stats.sessions_created += 1
        return self.sessions.create(connection)

    def close_session(self, session_id: str) -> bool:
        """Tear down a session; unknown ids are ignored."""
        return self.sessions.end(session_id)

    def process_input(self, session_id: str, line: str) -> str:
        """
        Run one line of input for a session.

        Must be called on the event loop thread (or with no loop running).
        """
        session = self.sessions.get(session_id)
        if session is None:
            return SESSION_INVALID
        return self.dispatcher.dispatch(session_id, session, line)

    def web_command(self, session_id: Optional[str], command: str) -> tuple[str, str]:
        """
        Run a web API command.

        A missing or unknown session id gets a fresh web session.

        Returns:
            (response, session_id)
        """
        if not session_id or session_id not in self.sessions:
            session_id = self.open_session(ConnectionKind.WEB)
        return self.process_input(session_id, command), session_id

    def call_in_loop(self, func, *args):
        """
        Run func(*args) on the event loop thread and wait for the result.

        Called from web server threads. Without a running loop the call is
        made directly.
        """
        loop = self._loop
        if loop is None or not loop.is_running():
            return func(*args)

        async def _call():
            return func(*args)

        return asyncio.run_coroutine_threadsafe(_call(), loop).result()

    # === Lifecycle ===

    def run(self):
        """
        Main run loop - starts the BBS.

        Starts the enabled transports and runs until shutdown.
        """
        self.setup()
        self.running = True

        logger.info(f"Starting {self.config.bbs.name}...")

        try:
            asyncio.run(self._main_loop())
        except Exception as e:
            logger.error(f"Error in main loop: {e}")
            raise
        finally:
            self.shutdown()

    async def _main_loop(self):
        """Main async event loop."""
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()

        # Register signal handlers for graceful shutdown
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        if self.config.telnet.enabled:
            from ..transport.telnet import TelnetServer
            self._telnet = TelnetServer(self)
            await self._telnet.start(self.config.telnet.host, self.config.telnet.port)

        if self.config.web.enabled:
            self._start_web()

        logger.info(f"{self.config.bbs.name} is now running")

        while self.running:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=STATS_INTERVAL)
            except asyncio.TimeoutError:
                logger.info(f"Stats: {self.stats}, sessions={len(self.sessions)}")

        if self._web_server:
            await self._loop.run_in_executor(None, self._web_server.shutdown)

        if self._telnet:
            await self._telnet.close()

        self._loop = None

    def _start_web(self):
        """Serve the web API from a background thread."""
        from werkzeug.serving import make_server
        from ..transport.web import create_app

        host, port = self.config.web.host, self.config.web.port
        app = create_app(self)
        self._web_server = make_server(host, port, app, threaded=True)
        self._web_thread = threading.Thread(
            target=self._web_server.serve_forever,
            name="thunderbbs-web",
            daemon=True
        )
        self._web_thread.start()
        logger.info(f"Web API listening on http://{host}:{port}/api/command")

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, initiating shutdown...")
        loop = self._loop
        if loop is not None:
            loop.call_soon_threadsafe(self.stop)
        else:
            self.running = False

    def stop(self):
        """Ask the main loop to exit. Must run on the loop thread."""
        self.running = False
        if self._stop_event is not None:
            self._stop_event.set()

    def shutdown(self):
        """Graceful shutdown."""
        logger.info("Shutting down ThunderBBS...")

        self.running = False

        if self._web_thread:
            self._web_thread.join(timeout=5)
            self._web_thread = None

        # Close database
        if self.db:
            self.db.close()

        logger.info(f"Final stats: {self.stats}")
        logger.info("ThunderBBS shutdown complete")


class BBSStats:
    """Statistics tracking for BBS."""

    def __init__(self):
        self.sessions_created: int = 0
        self.commands_processed: int = 0
        self.users_registered: int = 0
        self.logins: int = 0
        self.errors: int = 0
        self.start_time: float = time.time()

    def __str__(self) -> str:
        return (
            f"sessions={self.sessions_created}, cmds={self.commands_processed}, "
            f"registered={self.users_registered}, logins={self.logins}, "
            f"errs={self.errors}, up={int(time.time() - self.start_time)}s"
        )

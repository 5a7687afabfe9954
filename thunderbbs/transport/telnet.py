"""
ThunderBBS Telnet Server

Line-oriented Telnet access on the BBS event loop. Each connection gets
its own session; output uses ANSI colors and CRLF line endings.
"""

import asyncio
import logging
from typing import Optional, TYPE_CHECKING

from ..core.colors import ANSI_RESET, color_code, resolve_color
from ..core.sessions import ConnectionKind

if TYPE_CHECKING:
    from ..core.bbs import ThunderBBS

logger = logging.getLogger(__name__)

# Telnet protocol bytes
IAC = 255
SB = 250
SE = 240
WILL, WONT, DO, DONT = 251, 252, 253, 254

SESSION_INVALID = "Session invalid. Please reconnect."
COMMAND_ERROR = "An internal error occurred while processing your command. Please try again."

_BRIGHT_CYAN = "\x1b[1;36m"
_CYAN = "\x1b[36m"
_BLUE = "\x1b[34m"
_MAGENTA = "\x1b[35m"
_YELLOW = "\x1b[33m"
_BRIGHT = "\x1b[1m"
_GREEN = "\x1b[32m"

BANNER_LINES = [
    f"   {_BRIGHT_CYAN}■  ▐▌█  ▐▌▄▄▄▄     ▐▌▗▞▀▚▖ ▄▄▄ ▗▖   ▄  ▄▄▄ ▐▌{ANSI_RESET}",
    f"  {_CYAN}▗▄▟▙▄▖▐▌▀▄▄▞▘█   █    ▐▌▐▛▀▀▘█    ▐▌   ▄ █    ▐▌{ANSI_RESET}",
    f"    {_BLUE}▐▌  ▐▛▀▚▖  █   █ ▗▞▀▜▌▝▚▄▄▖█    ▐▛▀▚▖█ █ ▗▞▀▜▌{ANSI_RESET}",
    f"    {_BLUE}▐▌  ▐▌ ▐▌        ▝▚▄▟▌          ▐▙▄▞▘█   ▝▚▄▟▌{ANSI_RESET}",
    f"    {_MAGENTA}▐▌                                          {ANSI_RESET}",
    "",
    f"{_YELLOW}           ┌───────────────────────┐{ANSI_RESET}",
    f"{_YELLOW}           │ {_BRIGHT}NO FEDS // NO COWARDS{ANSI_RESET}{_YELLOW} │{ANSI_RESET}",
    f"{_YELLOW}           └───────────────────────┘{ANSI_RESET}",
    "",
    f"{_GREEN}       Welcome to THUNDERBIRD BBS (Telnet)!{ANSI_RESET}",
]


def welcome_banner(motd: str = "") -> str:
    """ANSI banner written on connect, with the optional MOTD below it."""
    lines = list(BANNER_LINES)
    if motd:
        lines.extend(["", motd])
    return "\r\n".join(lines) + "\r\n\r\n"


def strip_iac(data: bytes) -> bytes:
    """Remove Telnet negotiation sequences from raw input."""
    out = bytearray()
    i = 0
    n = len(data)
    while i < n:
        byte = data[i]
        if byte != IAC:
            out.append(byte)
            i += 1
            continue

        if i + 1 >= n:
            break
        command = data[i + 1]
        if command == IAC:
            # Escaped 0xFF data byte
            out.append(IAC)
            i += 2
        elif command in (WILL, WONT, DO, DONT):
            i += 3
        elif command == SB:
            end = data.find(bytes([IAC, SE]), i + 2)
            i = n if end == -1 else end + 2
        else:
            i += 2
    return bytes(out)


def clean_line(data: bytes) -> str:
    """Decode one received line, dropping negotiation bytes and whitespace."""
    return strip_iac(data).decode("utf-8", errors="replace").strip()


def to_crlf(text: str) -> str:
    """Normalize line endings for Telnet output."""
    return text.replace("\r\n", "\n").replace("\n", "\r\n")


class TelnetServer:
    """Telnet front end for a ThunderBBS instance."""

    def __init__(self, bbs: "ThunderBBS"):
        self.bbs = bbs
        self._server: Optional[asyncio.AbstractServer] = None
        self._writers: set[asyncio.StreamWriter] = set()

    async def start(self, host: str, port: int):
        """Start listening."""
        self._server = await asyncio.start_server(self.handle_client, host, port)
        logger.info(f"Telnet server listening on {host}:{port}")

    @property
    def sockets(self):
        return self._server.sockets if self._server else []

    async def close(self):
        """Stop listening and drop every open connection."""
        if self._server is None:
            return

        self._server.close()
        for writer in list(self._writers):
            writer.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Telnet server stopped")

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Serve one Telnet connection until it closes or QUITs."""
        peer = writer.get_extra_info("peername")
        session_id = self.bbs.open_session(ConnectionKind.TELNET)
        self._writers.add(writer)
        logger.info(f"Telnet client connected from {peer} (session {session_id[:8]})")

        try:
            writer.write(welcome_banner(self.bbs.config.bbs.motd).encode("utf-8"))
            await self._prompt(writer, session_id)

            while True:
                data = await reader.readline()
                if not data:
                    break

                session = self.bbs.sessions.get(session_id)
                if session is None:
                    await self._send(writer, SESSION_INVALID)
                    break

                line = clean_line(data)
                if not line:
                    await self._prompt(writer, session_id)
                    continue

                if line.upper() == "QUIT":
                    await self._send(writer, "Goodbye!")
                    break

                try:
                    response = self.bbs.process_input(session_id, line)
                except Exception:
                    logger.exception(f"Error processing command for session {session_id[:8]}")
                    self.bbs.stats.errors += 1
                    response = COMMAND_ERROR

                if response:
                    await self._send(writer, response)
                await self._prompt(writer, session_id)

        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logger.debug(f"Telnet connection {session_id[:8]} dropped: {e}")
        except ValueError as e:
            # readline() raises this when a line exceeds the stream limit
            logger.warning(f"Telnet session {session_id[:8]} sent an oversized line: {e}")
        finally:
            self._writers.discard(writer)
            self.bbs.close_session(session_id)
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass
            logger.info(f"Telnet client {peer} disconnected (session {session_id[:8]})")

    async def _send(self, writer: asyncio.StreamWriter, text: str):
        writer.write((to_crlf(text) + "\r\n").encode("utf-8"))
        await writer.drain()

    async def _prompt(self, writer: asyncio.StreamWriter, session_id: str):
        session = self.bbs.sessions.get(session_id)
        code = color_code(resolve_color(session, "prompt")) if session else ""
        writer.write(f"\r\n{code}> {ANSI_RESET}".encode("utf-8"))
        await writer.drain()

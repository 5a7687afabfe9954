"""
Tests for ThunderBBS Telnet Server
"""

import asyncio
from unittest.mock import patch

import pytest

from thunderbbs.config import Config, CryptoConfig
from thunderbbs.core.bbs import ThunderBBS
from thunderbbs.core.colors import ANSI_RESET
from thunderbbs.transport.telnet import (
    COMMAND_ERROR, TelnetServer, clean_line, strip_iac, to_crlf, welcome_banner,
)

PROMPT_END = f"> {ANSI_RESET}".encode()


def make_bbs() -> ThunderBBS:
    """BBS on an in-memory database with cheap Argon2 settings."""
    config = Config()
    config.database.path = ":memory:"
    config.crypto = CryptoConfig(argon2_time_cost=1, argon2_memory_kb=8192, argon2_parallelism=1)
    bbs = ThunderBBS(config)
    bbs.setup()
    return bbs


class TestLineHandling:
    """Tests for raw input cleanup."""

    def test_strip_negotiation(self):
        data = bytes([255, 251, 1]) + b"LOOK" + bytes([255, 253, 3]) + b"\r\n"
        assert strip_iac(data) == b"LOOK\r\n"

    def test_strip_subnegotiation(self):
        data = bytes([255, 250, 24, 0]) + b"xterm" + bytes([255, 240]) + b"WHO"
        assert strip_iac(data) == b"WHO"

    def test_escaped_iac_kept(self):
        assert strip_iac(bytes([65, 255, 255, 66])) == bytes([65, 255, 66])

    def test_clean_line(self):
        assert clean_line(b"  say hi \r\n") == "say hi"
        assert clean_line(bytes([255, 252, 1]) + b"\r\n") == ""

    def test_crlf(self):
        assert to_crlf("a\nb\r\nc") == "a\r\nb\r\nc"

    def test_banner(self):
        banner = welcome_banner("Be nice.")
        assert "Welcome to THUNDERBIRD BBS (Telnet)!" in banner
        assert "NO FEDS // NO COWARDS" in banner
        assert "Be nice." in banner
        assert banner.endswith("\r\n\r\n")


class TestTelnetServer:
    """End-to-end tests over a real socket."""

    def setup_method(self):
        self.bbs = make_bbs()

    async def _connect(self):
        self.server = TelnetServer(self.bbs)
        await self.server.start("127.0.0.1", 0)
        port = self.server.sockets[0].getsockname()[1]
        self.reader, self.writer = await asyncio.open_connection("127.0.0.1", port)
        return await self._read_prompt()

    async def _read_prompt(self) -> str:
        data = await asyncio.wait_for(self.reader.readuntil(PROMPT_END), timeout=5)
        return data.decode("utf-8")

    async def _send(self, line: bytes) -> str:
        self.writer.write(line + b"\r\n")
        await self.writer.drain()
        return await self._read_prompt()

    async def _wait_for_sessions(self, count: int):
        for _ in range(100):
            if len(self.bbs.sessions) == count:
                return
            await asyncio.sleep(0.01)
        raise AssertionError(f"expected {count} sessions, have {len(self.bbs.sessions)}")

    async def _close(self):
        self.writer.close()
        await self.server.close()

    @pytest.mark.asyncio
    async def test_banner_and_prompt(self):
        greeting = await self._connect()
        try:
            assert "Welcome to THUNDERBIRD BBS (Telnet)!" in greeting
            assert greeting.endswith(PROMPT_END.decode())
            assert len(self.bbs.sessions) == 1
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_command_round_trip(self):
        await self._connect()
        try:
            output = await self._send(b"who")
            assert output.startswith("No users currently logged in.\r\n")

            output = await self._send(b"HELP")
            assert "\r\nLOOK - " in output
            assert "\n" not in output.replace("\r\n", "")
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_negotiation_bytes_ignored(self):
        await self._connect()
        try:
            output = await self._send(bytes([255, 251, 1]) + b"WHO")
            assert output.startswith("No users currently logged in.")
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_empty_line_reprompts(self):
        await self._connect()
        try:
            output = await self._send(b"   ")
            assert output == f"\r\n\x1b[32m> {ANSI_RESET}"
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_quit(self):
        await self._connect()
        try:
            self.writer.write(b"quit\r\n")
            await self.writer.drain()
            rest = await asyncio.wait_for(self.reader.read(), timeout=5)
            assert rest == b"Goodbye!\r\n"
            await self._wait_for_sessions(0)
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_quit_during_game_disconnects(self):
        await self._connect()
        try:
            await self._send(b"GAME NUMBERGUESS START")
            self.writer.write(b"QUIT\r\n")
            await self.writer.drain()
            rest = await asyncio.wait_for(self.reader.read(), timeout=5)
            assert rest == b"Goodbye!\r\n"
            await self._wait_for_sessions(0)
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_exit_during_game_leaves_game(self):
        await self._connect()
        try:
            await self._send(b"GAME NUMBERGUESS START")
            output = await self._send(b"exit")
            assert output.startswith("Exited Number Guess game.")
            assert len(self.bbs.sessions) == 1
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_command_error_keeps_connection(self):
        await self._connect()
        try:
            with patch.object(self.bbs, "process_input", side_effect=RuntimeError("boom")):
                output = await self._send(b"LOOK")
            assert output.startswith(COMMAND_ERROR + "\r\n")
            assert output.endswith(PROMPT_END.decode())
            assert self.bbs.stats.errors == 1

            output = await self._send(b"WHO")
            assert output.startswith("No users currently logged in.")
            assert len(self.bbs.sessions) == 1
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_kicked_session_is_disconnected(self):
        await self._connect()
        try:
            session_id, _ = self.bbs.sessions.items()[0]
            self.bbs.close_session(session_id)

            self.writer.write(b"LOOK\r\n")
            await self.writer.drain()
            rest = await asyncio.wait_for(self.reader.read(), timeout=5)
            assert rest == b"Session invalid. Please reconnect.\r\n"
        finally:
            await self._close()

    @pytest.mark.asyncio
    async def test_disconnect_ends_session(self):
        await self._connect()
        try:
            self.writer.close()
            await self._wait_for_sessions(0)
        finally:
            await self.server.close()

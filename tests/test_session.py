"""Tests for TelnetSession against an in-process scripted telnet server."""

import asyncio
import socket

import pytest

from telnetexp.collectors.session import SessionState, TelnetSession
from telnetexp.errors import CommandError, HostConnectionError
from telnetexp.models.config import Host


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _host(port: int, **kwargs) -> Host:
    kwargs.setdefault("connect_timeout", 1)
    return Host(name="127.0.0.1", port=port, **kwargs)


class TestConnect:
    """Tests for connection establishment and the login handshake."""

    @pytest.mark.asyncio
    async def test_login_handshake(self, telnet_server, scripted, fast_session):
        """Username and password are sent when a login prompt appears."""
        received = []
        handler = scripted(
            greeting=bytes([255, 251, 1]) + b"Router login: ",
            responses={"admin": b"Password: ", "secret": b"\r\nrouter#"},
            received=received,
        )

        async with telnet_server(handler) as port:
            session = TelnetSession(_host(port, username="admin", password="secret"))
            await session.connect()
            assert session.state is SessionState.READY
            await session.close()

        assert received[0].endswith(b"admin\n")
        assert received[0].startswith(bytes([255, 254, 1]))
        assert received[1] == b"secret\n"
        assert session.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_prompt_without_login(self, telnet_server, scripted, fast_session):
        received = []
        handler = scripted(greeting=b"router>", responses={}, received=received)

        async with telnet_server(handler) as port:
            async with TelnetSession(_host(port, prompt=">")) as session:
                assert session.state is SessionState.READY

        assert received == []

    @pytest.mark.asyncio
    async def test_failed_handshake_still_ready(self, telnet_server, scripted, fast_session):
        """Handshake errors are tolerated; the session proceeds."""
        received = []
        handler = scripted(greeting=b"login: ", responses={}, received=received)

        async with telnet_server(handler) as port:
            async with TelnetSession(_host(port, username="admin", password="wrong")) as session:
                assert session.state is SessionState.READY

        assert [line.strip() for line in received] == [b"admin", b"wrong"]

    @pytest.mark.asyncio
    async def test_unreachable_host(self, fast_session):
        session = TelnetSession(_host(_free_port()))

        with pytest.raises(HostConnectionError) as exc_info:
            await session.connect()

        assert exc_info.value.host == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_silent_host_is_connection_failure(self, telnet_server, scripted, fast_session):
        handler = scripted(greeting=b"", responses={}, received=[])

        async with telnet_server(handler) as port:
            session = TelnetSession(_host(port))
            with pytest.raises(HostConnectionError):
                await session.connect()

        assert session.state is SessionState.CLOSED


class TestSendCommand:
    """Tests for command execution."""

    @pytest.mark.asyncio
    async def test_reads_until_prompt(self, telnet_server, scripted, fast_session):
        handler = scripted(
            greeting=b"router#",
            responses={"show temp": b"show temp\r\nTemp: 42.5 C\r\nrouter#"},
            received=[],
        )

        async with telnet_server(handler) as port:
            async with TelnetSession(_host(port)) as session:
                output = await session.send_command("show temp")

        assert "Temp: 42.5 C" in output
        assert output.endswith("#")

    @pytest.mark.asyncio
    async def test_timeout_is_command_error(self, telnet_server, scripted, fast_session):
        handler = scripted(
            greeting=b"router#",
            responses={"slow": b"working..."},
            received=[],
        )

        async with telnet_server(handler) as port:
            async with TelnetSession(_host(port)) as session:
                with pytest.raises(CommandError) as exc_info:
                    await session.send_command("slow")

        assert exc_info.value.command == "slow"
        assert exc_info.value.output == "working..."

    @pytest.mark.asyncio
    async def test_empty_prompt_does_not_read(self, telnet_server, scripted, fast_session):
        received = []
        handler = scripted(
            greeting=b"router#",
            responses={"reload": b"Proceed?"},
            received=received,
        )

        async with telnet_server(handler) as port:
            async with TelnetSession(_host(port, prompt="")) as session:
                output = await session.send_command("reload")
            # let the server handler drain the line before shutting down
            await asyncio.sleep(0.2)

        assert output == ""
        assert received == [b"reload\n"]

    @pytest.mark.asyncio
    async def test_send_without_connect(self):
        session = TelnetSession(_host(23))

        with pytest.raises(CommandError):
            await session.send_command("show version")

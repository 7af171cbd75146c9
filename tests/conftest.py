"""
Pytest configuration and shared fixtures for the telnet exporter test suite.

Provides fake asyncio streams, an in-process scripted Telnet server,
session doubles for orchestrator tests and a small YAML config builder.
"""

import asyncio
import logging
import re
import textwrap
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Set

import pytest

from telnetexp.collectors.session import SessionState, TelnetSession
from telnetexp.errors import CommandError, HostConnectionError
from telnetexp.models.config import parse_config

IAC_SEQUENCE = re.compile(rb"\xff[\xfb-\xfe].")


# ============================================================================
# Stream doubles
# ============================================================================


class FakeWriter:
    """Minimal StreamWriter double that records every write."""

    def __init__(self):
        self.writes: List[bytes] = []
        self.closed = False

    def write(self, data: bytes):
        self.writes.append(bytes(data))

    async def drain(self):
        pass

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass


@pytest.fixture
def fake_writer():
    return FakeWriter()


@pytest.fixture
def make_reader():
    """Factory for StreamReaders pre-fed with data (call inside a running loop)."""

    def _make(data: bytes, eof: bool = True) -> asyncio.StreamReader:
        reader = asyncio.StreamReader()
        reader.feed_data(data)
        if eof:
            reader.feed_eof()
        return reader

    return _make


# ============================================================================
# Scripted Telnet server
# ============================================================================


def scripted_handler(greeting: bytes, responses: Dict[str, bytes], received: List[bytes]):
    """
    Build a server handler that sends a greeting, then answers each
    received line from the responses mapping (negotiation bytes stripped).
    """

    async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        if greeting:
            writer.write(greeting)
            await writer.drain()

        while True:
            line = await reader.readline()
            if not line:
                break
            received.append(line)
            key = IAC_SEQUENCE.sub(b"", line).strip().decode("utf-8", errors="replace")
            reply = responses.get(key)
            if reply:
                writer.write(reply)
                await writer.drain()

    return handler


@pytest.fixture
def scripted():
    """Expose scripted_handler to tests."""
    return scripted_handler


@pytest.fixture
def telnet_server():
    """Async context manager factory: serve a handler on 127.0.0.1 and yield the port."""

    @asynccontextmanager
    async def _serve(handler):
        async def _handle(reader, writer):
            try:
                await handler(reader, writer)
            except ConnectionError:
                pass
            finally:
                writer.close()

        server = await asyncio.start_server(_handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            yield port
        finally:
            server.close()
            await server.wait_closed()

    return _serve


@pytest.fixture
def fast_session(monkeypatch):
    """Shrink the fixed session timings so tests run quickly."""
    monkeypatch.setattr(TelnetSession, "SETTLE_INTERVAL", 0.01)
    monkeypatch.setattr(TelnetSession, "COMMAND_READ_TIMEOUT", 0.5)
    monkeypatch.setattr(TelnetSession, "INITIAL_READ_TIMEOUT", 0.5)
    return TelnetSession


# ============================================================================
# Session doubles
# ============================================================================


class SessionTracker:
    """Shared state for FakeSession instances created by one factory."""

    def __init__(
        self,
        outputs: Dict[str, Dict[str, str]],
        unreachable: Set[str],
        failing: Set[str],
        delay: float
    ):
        self.outputs = outputs
        self.unreachable = unreachable
        self.failing = failing
        self.delay = delay
        self.open_per_host: Dict[str, int] = defaultdict(int)
        self.sessions_per_host: Dict[str, int] = defaultdict(int)
        self.commands: List[tuple] = []
        self.open_total = 0
        self.max_open_total = 0


class FakeSession:
    """
    TelnetSession double.

    Fails loudly if two sessions are ever open to the same host at once.
    """

    def __init__(self, host, tracker: SessionTracker):
        self.host = host
        self.tracker = tracker
        self.state = SessionState.DISCONNECTED

    async def connect(self):
        tracker = self.tracker
        await asyncio.sleep(tracker.delay)
        if self.host.name in tracker.unreachable:
            raise HostConnectionError(self.host.name, "connection refused")

        tracker.open_per_host[self.host.name] += 1
        if tracker.open_per_host[self.host.name] > 1:
            raise AssertionError(f"two sessions open to {self.host.name}")
        tracker.sessions_per_host[self.host.name] += 1
        tracker.open_total += 1
        tracker.max_open_total = max(tracker.max_open_total, tracker.open_total)
        self.state = SessionState.READY

    async def send_command(self, command: str, prompt: Optional[str] = None) -> str:
        await asyncio.sleep(self.tracker.delay)
        self.tracker.commands.append((self.host.name, command))
        if command in self.tracker.failing:
            raise CommandError(command, "read timeout", "partial")
        return self.tracker.outputs.get(self.host.name, {}).get(command, "")

    async def close(self):
        if self.state is SessionState.READY:
            self.tracker.open_per_host[self.host.name] -= 1
            self.tracker.open_total -= 1
        self.state = SessionState.CLOSED


@pytest.fixture
def session_factory():
    """
    Build (factory, tracker) pairs for TelnetCollector(session_factory=...).

    Usage: factory, tracker = session_factory(outputs={...}, unreachable={...})
    """

    def _build(
        outputs: Optional[Dict[str, Dict[str, str]]] = None,
        unreachable: Optional[Set[str]] = None,
        failing: Optional[Set[str]] = None,
        delay: float = 0.01
    ):
        tracker = SessionTracker(outputs or {}, unreachable or set(), failing or set(), delay)
        return (lambda host: FakeSession(host, tracker)), tracker

    return _build


# ============================================================================
# Configuration helpers
# ============================================================================


@pytest.fixture
def make_config():
    """Parse a dedented YAML string into an ExporterConfig."""

    def _make(content: str):
        return parse_config(textwrap.dedent(content))

    return _make


@pytest.fixture
def restore_logging():
    """Restore root logger handlers/level after tests that reconfigure logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)

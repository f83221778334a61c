from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from unittest.mock import patch

import pytest

from hostshell import Endpoint, SSHClient
from hostshell.errors import ConnectionClosedError


class FakeSession:
    """In-memory stand-in for hostshell.transport.Session."""

    def __init__(self, server: FakeServer) -> None:
        self.server = server
        self.command: str | None = None
        self.written = bytearray()
        self.stdin_closed = False
        self.closed = False

    def combined_output(self, command: str) -> tuple[bytes, int]:
        self.command = command
        self.server.commands.append(command)
        return self.server.respond(command)

    def start(self, command: str) -> None:
        if self.server.start_error is not None:
            raise self.server.start_error
        self.command = command
        self.server.commands.append(command)

    def write(self, data: bytes) -> None:
        if self.server.write_error is not None:
            raise self.server.write_error
        self.written.extend(data)

    def close_stdin(self) -> None:
        self.stdin_closed = True

    def wait(self) -> tuple[int, bytes]:
        return self.server.copy_status, self.server.copy_reply

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """In-memory stand-in for hostshell.transport.Connection."""

    def __init__(self, server: FakeServer) -> None:
        self.server = server
        self.closed = False
        self.url = "10.0.0.1:22"

    @contextmanager
    def session(self) -> Iterator[FakeSession]:
        if self.closed:
            raise ConnectionClosedError("closed")
        session = FakeSession(self.server)
        self.server.sessions.append(session)
        try:
            yield session
        finally:
            session.close()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.server.closes += 1


class FakeServer:
    """Records everything the library asks of the remote host."""

    def __init__(self) -> None:
        self.commands: list[str] = []
        self.sessions: list[FakeSession] = []
        self.connections: list[FakeConnection] = []
        self.dials = 0
        self.closes = 0
        self.outputs: dict[str, bytes] = {}
        self.failures: dict[str, tuple[int, bytes]] = {}
        self.dial_error: Exception | None = None
        self.write_error: Exception | None = None
        self.start_error: Exception | None = None
        self.copy_status = 0
        self.copy_reply = b"\x00\x00\x00"

    def fail(self, command: str, status: int = 1, output: bytes = b"boom\n") -> None:
        self.failures[command] = (status, output)

    def respond(self, command: str) -> tuple[bytes, int]:
        if command in self.failures:
            status, output = self.failures[command]
            return output, status
        return self.outputs.get(command, f"ran {command}\n".encode()), 0

    def dial(self, endpoint: Endpoint, verifier: object = None) -> FakeConnection:
        if self.dial_error is not None:
            raise self.dial_error
        self.dials += 1
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn

    def connection(self) -> FakeConnection:
        """A connection that was not dialed through hostshell."""
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn

    @property
    def copies(self) -> list[tuple[str, bytes]]:
        return [
            (s.command, bytes(s.written))
            for s in self.sessions
            if s.command is not None and s.command.startswith("scp -t")
        ]


@pytest.fixture
def server() -> Iterator[FakeServer]:
    srv = FakeServer()
    with patch("hostshell.transport.dial", srv.dial):
        yield srv


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint.with_password("10.0.0.1", "root", "secret")


@pytest.fixture
def client(endpoint: Endpoint, server: FakeServer) -> SSHClient:
    return SSHClient(endpoint)


@pytest.fixture
def tree(tmp_path):
    """Small local tree::

        src/
          a.txt
          b/
            c.txt
          d.sh
    """
    root = tmp_path / "src"
    (root / "b").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha")
    (root / "b" / "c.txt").write_bytes(b"charlie\n")
    (root / "d.sh").write_bytes(b"#!/bin/sh\necho d\r\n")
    return root

"""paramiko-backed connection and session lifecycle.

A ``Connection`` owns one authenticated ``paramiko.SSHClient``. Sessions are
channels opened on it and scoped with ``Connection.session()``; closing a
session never closes the connection. The connection itself is closed by the
``connect()`` scope that dialed it.

Example:
    >>> with connect(endpoint) as conn, conn.session() as session:
    ...     output, status = session.combined_output("uname -a")
"""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import paramiko
from loguru import logger
from paramiko.pkey import UnknownKeyType

from hostshell.endpoint import Auth, Endpoint, KeyFileAuth, PasswordAuth
from hostshell.errors import (
    AuthParseError,
    ConnectionClosedError,
    DialError,
    UnsupportedModeError,
)
from hostshell.protocols import HostKeyVerifier

READ_CHUNK = 32 * 1024

# =============================================================================
# Host key verification
# =============================================================================


def fingerprint(key: paramiko.PKey) -> str:
    """OpenSSH-style SHA256 fingerprint of a host key."""
    digest = hashlib.sha256(key.asbytes()).digest()
    return "SHA256:" + base64.b64encode(digest).decode().rstrip("=")


def _bare_hostname(hostname: str) -> str:
    # paramiko reports non-default ports as "[host]:port"
    if hostname.startswith("["):
        return hostname[1:].split("]", 1)[0]
    return hostname


class AcceptAnyHostKey:
    """Trust every host key. No verification is performed."""

    def verify(self, hostname: str, key: paramiko.PKey) -> bool:
        return True


class PinnedHostKeys:
    """Accept only host keys whose fingerprint is pinned for that host.

    Args:
        fingerprints: Mapping of hostname to one or more ``SHA256:...``
            fingerprints. Hosts missing from the mapping are rejected.
    """

    def __init__(self, fingerprints: Mapping[str, str | Iterable[str]]) -> None:
        self._pins: dict[str, frozenset[str]] = {
            host: frozenset([fps] if isinstance(fps, str) else fps)
            for host, fps in fingerprints.items()
        }

    def verify(self, hostname: str, key: paramiko.PKey) -> bool:
        return fingerprint(key) in self._pins.get(_bare_hostname(hostname), frozenset())


class _VerifierPolicy(paramiko.MissingHostKeyPolicy):
    """Bridge a HostKeyVerifier into paramiko's missing-host-key hook."""

    def __init__(self, verifier: HostKeyVerifier) -> None:
        self._verifier = verifier

    def missing_host_key(self, client: paramiko.SSHClient, hostname: str, key: paramiko.PKey) -> None:
        if not self._verifier.verify(hostname, key):
            raise paramiko.SSHException(
                f"Host key for {hostname} rejected ({key.get_name()} {fingerprint(key)})"
            )


# =============================================================================
# Session
# =============================================================================


class Session:
    """One channel on a Connection, used for exactly one operation."""

    __slots__ = ("_channel",)

    def __init__(self, channel: paramiko.Channel) -> None:
        self._channel = channel

    def combined_output(self, command: str) -> tuple[bytes, int]:
        """Run command with stderr merged into stdout.

        Returns:
            Tuple of (output, exit_status).
        """
        self._channel.set_combine_stderr(True)
        self._channel.exec_command(command)
        self._channel.shutdown_write()
        output = self._read_all()
        return output, self._channel.recv_exit_status()

    def start(self, command: str) -> None:
        """Start command without waiting for it."""
        self._channel.exec_command(command)

    def write(self, data: bytes) -> None:
        self._channel.sendall(data)

    def close_stdin(self) -> None:
        self._channel.shutdown_write()

    def wait(self) -> tuple[int, bytes]:
        """Drain output until EOF and return (exit_status, output)."""
        reply = self._read_all()
        return self._channel.recv_exit_status(), reply

    def close(self) -> None:
        self._channel.close()

    def _read_all(self) -> bytes:
        chunks: list[bytes] = []
        while chunk := self._channel.recv(READ_CHUNK):
            chunks.append(chunk)
        return b"".join(chunks)


# =============================================================================
# Connection
# =============================================================================


class Connection:
    """A live authenticated SSH connection.

    Not safe for concurrent use: run one operation at a time.
    """

    __slots__ = ("_client", "_url", "_closed")

    def __init__(self, client: paramiko.SSHClient, url: str) -> None:
        self._client = client
        self._url = url
        self._closed = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a session that is closed when the block exits."""
        if self._closed:
            raise ConnectionClosedError(f"Connection to {self._url} is closed")
        transport = self._client.get_transport()
        if transport is None or not transport.is_active():
            raise ConnectionClosedError(f"Connection to {self._url} is no longer active")

        session = Session(transport.open_session())
        try:
            yield session
        finally:
            session.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._client.close()
        logger.debug("SSH: closed {url}", url=self._url)

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


# =============================================================================
# Dial
# =============================================================================


def load_private_key(path: str, passphrase: str | None = None) -> paramiko.PKey:
    """Read and parse a private key file.

    Raises:
        AuthParseError: If the file cannot be read or is not a usable key.
    """
    try:
        return paramiko.PKey.from_path(path, passphrase=passphrase)
    except OSError as e:
        raise AuthParseError(path, e.strerror or str(e)) from e
    except paramiko.PasswordRequiredException as e:
        raise AuthParseError(path, "key is encrypted and no passphrase was given") from e
    except UnknownKeyType as e:
        raise AuthParseError(path, "unsupported key type") from e
    except (paramiko.SSHException, ValueError, TypeError) as e:
        raise AuthParseError(path, str(e) or "not a valid private key") from e


def _auth_kwargs(auth: Auth) -> dict[str, Any]:
    match auth:
        case PasswordAuth(password=password):
            return {"password": password}
        case KeyFileAuth(path=path, passphrase=passphrase):
            return {"pkey": load_private_key(path, passphrase)}
        case _:
            raise UnsupportedModeError(auth)


def dial(endpoint: Endpoint, verifier: HostKeyVerifier | None = None) -> Connection:
    """Open one authenticated connection to endpoint.

    Raises:
        UnsupportedModeError: If endpoint.auth is not a known variant.
        AuthParseError: If the key file cannot be loaded.
        DialError: If connecting, host key verification or auth fails.
    """
    auth = _auth_kwargs(endpoint.auth)

    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(_VerifierPolicy(verifier or AcceptAnyHostKey()))

    logger.debug(
        "SSH: connecting to {url} ({user})", url=endpoint.url, user=endpoint.user,
    )
    try:
        client.connect(
            endpoint.host,
            port=endpoint.port,
            username=endpoint.user,
            timeout=endpoint.timeout,
            look_for_keys=False,
            allow_agent=False,
            **auth,
        )
    except paramiko.AuthenticationException as e:
        client.close()
        raise DialError(endpoint.url, f"authentication failed: {e}") from e
    except (paramiko.SSHException, OSError) as e:
        client.close()
        raise DialError(endpoint.url, str(e) or type(e).__name__) from e

    logger.debug("SSH: connected to {url}", url=endpoint.url)
    return Connection(client, endpoint.url)


@contextmanager
def connect(endpoint: Endpoint, verifier: HostKeyVerifier | None = None) -> Iterator[Connection]:
    """Dial endpoint and close the connection when the block exits."""
    conn = dial(endpoint, verifier)
    try:
        yield conn
    finally:
        conn.close()

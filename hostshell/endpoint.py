"""Remote endpoint description and authentication variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias

DEFAULT_PORT = 22
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True, slots=True)
class PasswordAuth:
    """Authenticate with a plain password."""

    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class KeyFileAuth:
    """Authenticate with a private key read from ``path``."""

    path: str
    passphrase: str | None = field(default=None, repr=False)


Auth: TypeAlias = PasswordAuth | KeyFileAuth


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Network location and credentials of one remote host.

    Example:
        >>> ep = Endpoint.with_password("10.0.0.1", "root", "secret")
        >>> ep.url
        '10.0.0.1:22'
    """

    host: str
    user: str
    auth: Auth
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def with_password(
        cls,
        host: str,
        user: str,
        password: str,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Endpoint:
        return cls(host=host, user=user, auth=PasswordAuth(password), port=port, timeout=timeout)

    @classmethod
    def with_key_file(
        cls,
        host: str,
        user: str,
        key_path: str,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
        passphrase: str | None = None,
    ) -> Endpoint:
        return cls(
            host=host,
            user=user,
            auth=KeyFileAuth(key_path, passphrase),
            port=port,
            timeout=timeout,
        )

    @property
    def url(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def ip(self) -> str:
        return self.host

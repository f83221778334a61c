"""Protocols shared by the local and SSH backends."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    import paramiko

T = TypeVar("T")


# =============================================================================
# Command Protocols
# =============================================================================


@runtime_checkable
class CommandRunner(Protocol):
    """Operations available on a host, whether local, remote or transactional.

    Usage:
        def deploy(host: CommandRunner) -> None:
            host.send_dir("./dist", "/opt/app")
            host.run_command("systemctl restart app")
    """

    def run_command(self, cmd: str) -> str:
        """Run cmd and return its combined stdout/stderr.

        Raises:
            CommandError: If cmd exits with a non-zero status.
        """
        ...

    def run_commands(self, *cmds: str) -> list[str]:
        """Run cmds in order, stopping at the first failure."""
        ...

    def send_file(self, local_path: str, remote_path: str) -> None:
        """Copy one file. remote_path must include the file name."""
        ...

    def send_dir(self, local_dir: str, remote_dir: str) -> None:
        """Copy the contents of local_dir into remote_dir."""
        ...

    def run_shell(self, file_path: str, remote_path: str, *params: str) -> list[str]:
        """Upload a .sh script into remote_path, run it with params, remove it."""
        ...


@runtime_checkable
class Command(CommandRunner, Protocol):
    """A host addressable by URL that can also group operations."""

    @property
    def url(self) -> str: ...

    @property
    def ip(self) -> str: ...

    def run_transaction(self, do: Callable[[CommandRunner], T]) -> T:
        """Run do with a runner that reuses one connection for every call."""
        ...


# =============================================================================
# Host Key Verification
# =============================================================================


@runtime_checkable
class HostKeyVerifier(Protocol):
    """Decides whether a remote host key is trusted."""

    def verify(self, hostname: str, key: paramiko.PKey) -> bool:
        """Return True to accept key for hostname."""
        ...

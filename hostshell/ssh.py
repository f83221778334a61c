"""SSH implementation of the Command protocol.

``SSHClient`` dials a fresh connection for every call. ``run_transaction``
and ``transaction`` dial once and hand out a ``TransactionContext`` whose
calls all share that connection.

Example:
    >>> client = SSHClient(Endpoint.with_password("10.0.0.1", "root", "secret"))
    >>> client.run_command("uptime")
    >>> def deploy(tx: CommandRunner) -> list[str]:
    ...     tx.send_dir("./dist", "/opt/app")
    ...     return tx.run_shell("./install.sh", "/tmp/", "--force")
    >>> client.run_transaction(deploy)
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import TypeVar
from dataclasses import dataclass, field

from loguru import logger

from hostshell import operations, transport
from hostshell.endpoint import Endpoint
from hostshell.errors import TransactionClosedError
from hostshell.protocols import CommandRunner, HostKeyVerifier
from hostshell.transport import AcceptAnyHostKey, Connection

T = TypeVar("T")


@dataclass
class SSHClient:
    """Run commands and copy files on one remote host.

    Every method opens its own connection and closes it before returning.
    Independent calls share no state and may run from different threads.

    Attributes:
        endpoint: Host, port, user and credentials.
        verifier: Host key policy. Defaults to accepting any key.
    """

    endpoint: Endpoint
    verifier: HostKeyVerifier = field(default_factory=AcceptAnyHostKey)

    @property
    def url(self) -> str:
        return self.endpoint.url

    @property
    def ip(self) -> str:
        return self.endpoint.ip

    def _connect(self) -> AbstractContextManager[Connection]:
        return transport.connect(self.endpoint, self.verifier)

    def run_command(self, cmd: str) -> str:
        with self._connect() as conn:
            return operations.run_command(conn, cmd)

    def run_commands(self, *cmds: str) -> list[str]:
        with self._connect() as conn:
            return operations.run_commands(conn, *cmds)

    def send_file(self, local_path: str, remote_path: str) -> None:
        """Copy one file. remote_path must include the file name."""
        with self._connect() as conn:
            operations.send_file(conn, local_path, remote_path)

    def send_dir(self, local_dir: str, remote_dir: str) -> None:
        """Copy the contents of local_dir into remote_dir.

        local_dir itself is not recreated remotely: ``send_dir("./scripts",
        "/opt/s")`` puts ``./scripts/a.sh`` at ``/opt/s/a.sh``.
        """
        with self._connect() as conn:
            operations.send_dir(conn, local_dir, remote_dir)

    def run_shell(self, file_path: str, remote_path: str, *params: str) -> list[str]:
        """Upload and run a .sh script. Connection failures are raised."""
        operations.check_script(file_path)
        with self._connect() as conn:
            return operations.run_shell(conn, file_path, remote_path, *params)

    def run_transaction(self, do: Callable[[CommandRunner], T]) -> T:
        """Call do with a context that reuses one connection, return its result."""
        with self.transaction() as tx:
            return do(tx)

    @contextmanager
    def transaction(self) -> Iterator[TransactionContext]:
        """Dial once and yield a context bound to that connection."""
        with self._connect() as conn:
            logger.debug("SSH: transaction started on {url}", url=conn.url)
            tx = TransactionContext(conn)
            try:
                yield tx
            finally:
                tx._invalidate()
                logger.debug("SSH: transaction finished on {url}", url=conn.url)


class TransactionContext:
    """Command runner bound to one connection for the life of a transaction.

    Remote side effects are not rolled back when a later step fails.
    """

    __slots__ = ("_conn",)

    def __init__(self, conn: Connection) -> None:
        self._conn: Connection | None = conn

    def _require_connection(self) -> Connection:
        if self._conn is None:
            raise TransactionClosedError("Transaction context used after the transaction ended")
        return self._conn

    def _invalidate(self) -> None:
        self._conn = None

    def run_command(self, cmd: str) -> str:
        return operations.run_command(self._require_connection(), cmd)

    def run_commands(self, *cmds: str) -> list[str]:
        return operations.run_commands(self._require_connection(), *cmds)

    def send_file(self, local_path: str, remote_path: str) -> None:
        operations.send_file(self._require_connection(), local_path, remote_path)

    def send_dir(self, local_dir: str, remote_dir: str) -> None:
        operations.send_dir(self._require_connection(), local_dir, remote_dir)

    def run_shell(self, file_path: str, remote_path: str, *params: str) -> list[str]:
        return operations.run_shell(self._require_connection(), file_path, remote_path, *params)

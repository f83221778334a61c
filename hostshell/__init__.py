"""hostshell - Run commands and push files to local or SSH hosts.

Example:

    from hostshell import Endpoint, SSHClient

    client = SSHClient(Endpoint.with_key_file("10.0.0.1", "deploy", "~/.ssh/id_ed25519"))

    client.send_file("build/app.tar.gz", "/opt/app/app.tar.gz")
    client.run_command("tar -xzf /opt/app/app.tar.gz -C /opt/app")

    # One connection for several operations
    def deploy(tx):
        tx.send_dir("./conf", "/etc/app")
        return tx.run_shell("./install.sh", "/tmp/", "--force")

    outputs = client.run_transaction(deploy)
"""

from hostshell.logging import LogConfig, logging_enabled, setup_logging, teardown_logging
from hostshell.endpoint import Auth, Endpoint, KeyFileAuth, PasswordAuth
from hostshell.errors import (
    AuthParseError,
    CommandError,
    ConnectionClosedError,
    CopyProtocolError,
    DialError,
    FormatError,
    HostShellError,
    TransactionClosedError,
    UnsupportedModeError,
)
from hostshell.protocols import Command, CommandRunner, HostKeyVerifier
from hostshell.paths import PathEntry, list_paths
from hostshell.transport import (
    AcceptAnyHostKey,
    Connection,
    PinnedHostKeys,
    Session,
    connect,
    dial,
    fingerprint,
)
from hostshell.scp import copy, copy_path
from hostshell.ssh import SSHClient, TransactionContext
from hostshell.local import LocalShell
from hostshell.config import load_config, resolve_endpoint

__version__ = "0.1.0"

__all__ = [
    "LogConfig",
    "logging_enabled",
    "setup_logging",
    "teardown_logging",
    "Auth",
    "Endpoint",
    "KeyFileAuth",
    "PasswordAuth",
    "AuthParseError",
    "CommandError",
    "ConnectionClosedError",
    "CopyProtocolError",
    "DialError",
    "FormatError",
    "HostShellError",
    "TransactionClosedError",
    "UnsupportedModeError",
    "Command",
    "CommandRunner",
    "HostKeyVerifier",
    "PathEntry",
    "list_paths",
    "AcceptAnyHostKey",
    "Connection",
    "PinnedHostKeys",
    "Session",
    "connect",
    "dial",
    "fingerprint",
    "copy",
    "copy_path",
    "SSHClient",
    "TransactionContext",
    "LocalShell",
    "load_config",
    "resolve_endpoint",
]

"""Exception hierarchy for hostshell.

Failures detected by hostshell derive from HostShellError; wrapped
transport failures keep the original exception as ``__cause__``. Channel
errors from opening a session or executing a command on an already open
connection propagate unchanged as ``paramiko.SSHException``.
"""

from __future__ import annotations


class HostShellError(Exception):
    """Base class for all hostshell errors."""


class DialError(HostShellError):
    """Connecting or authenticating to the remote host failed."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to connect to {url}: {reason}")


class AuthParseError(HostShellError):
    """Private key material could not be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load private key {path}: {reason}")


class UnsupportedModeError(HostShellError):
    """Authentication mode is not one of the supported variants."""

    def __init__(self, mode: object) -> None:
        self.mode = mode
        super().__init__(f"Unsupported authentication mode: {mode!r}")


class CommandError(HostShellError):
    """Remote command exited with a non-zero status.

    Attributes:
        command: The command line that failed.
        exit_status: Exit status reported by the remote side.
        output: Combined stdout/stderr captured before exit.
        outputs: For batches, outputs of the commands that ran, ending
            with the failing command's own output.
    """

    def __init__(self, command: str, exit_status: int, output: str = "") -> None:
        self.command = command
        self.exit_status = exit_status
        self.output = output
        self.outputs: list[str] = [output]
        super().__init__(f"Command failed ({exit_status}): {command}")


class CopyProtocolError(HostShellError):
    """An scp sink exchange could not be completed."""


class FormatError(HostShellError):
    """A local file does not have the expected format."""


class ConnectionClosedError(HostShellError):
    """Operation attempted on a connection that was already closed."""


class TransactionClosedError(HostShellError):
    """Transaction context used outside of its scope."""

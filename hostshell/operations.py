"""Operations bound to one open Connection.

Each function opens its own session(s) on the connection it is given and
never closes the connection. Both the per-call facade and transactions are
built on these.
"""

from __future__ import annotations

import os
import shlex

from loguru import logger

from hostshell.errors import CommandError, FormatError
from hostshell.paths import list_paths, remote_parent, to_slash
from hostshell.scp import copy_path
from hostshell.transport import Connection

SCRIPT_SUFFIX = ".sh"


def run_command(conn: Connection, cmd: str) -> str:
    """Run cmd in a fresh session and return its combined output.

    Raises:
        CommandError: If cmd exits with a non-zero status. The error
            carries whatever output was captured.
    """
    with conn.session() as session:
        raw, status = session.combined_output(cmd)
    output = raw.decode(errors="replace")
    logger.debug("SSH: {cmd} -> exit_code={code}", cmd=_preview(cmd), code=status)
    if status != 0:
        raise CommandError(cmd, status, output)
    return output


def run_commands(conn: Connection, *cmds: str) -> list[str]:
    """Run cmds in order, one session each, stopping at the first failure.

    Raises:
        CommandError: From the first failing command. Its ``outputs`` holds
            the outputs collected so far followed by the failing output.
    """
    outputs: list[str] = []
    for cmd in cmds:
        try:
            outputs.append(run_command(conn, cmd))
        except CommandError as e:
            e.outputs = [*outputs, e.output]
            raise
    return outputs


def make_dirs(conn: Connection, remote_dir: str) -> None:
    run_command(conn, f"mkdir -p {shlex.quote(remote_dir)}")


def copy_file(conn: Connection, local_path: str, remote_path: str) -> None:
    """Copy one local file to remote_path. The parent must already exist."""
    with conn.session() as session:
        copy_path(local_path, remote_path, session)


def send_file(conn: Connection, local_path: str, remote_path: str) -> None:
    """Create the remote parent directory, then copy local_path to remote_path."""
    remote_path = to_slash(remote_path)
    parent = remote_parent(remote_path)
    if parent:
        make_dirs(conn, parent)
    copy_file(conn, local_path, remote_path)


def send_dir(conn: Connection, local_dir: str, remote_dir: str) -> None:
    """Mirror local_dir under remote_dir.

    Entries are processed in enumeration order. The first failure aborts
    the transfer and whatever was already copied stays on the remote host.
    """
    root, entries = list_paths(local_dir)
    logger.debug(
        "SSH: sending {count} entries from {root} to {dest}",
        count=len(entries), root=root, dest=remote_dir,
    )
    for entry in entries:
        remote_path = to_slash(remote_dir + entry.path[len(root):])
        if entry.is_dir:
            make_dirs(conn, remote_path)
        else:
            copy_file(conn, entry.path, remote_path)


def check_script(file_path: str) -> None:
    if not file_path.endswith(SCRIPT_SUFFIX):
        raise FormatError(f"Not a {SCRIPT_SUFFIX} script: {file_path}")


def script_commands(remote_file: str, *params: str) -> list[str]:
    """The batch that prepares, runs and removes an uploaded script."""
    quoted = shlex.quote(remote_file)
    invocation = " ".join([remote_file, *params])
    return [
        f"chmod a+x {quoted}",
        f"sed -i 's/\\r$//' {quoted}",
        invocation,
        f"rm -f {quoted}",
    ]


def run_shell(conn: Connection, file_path: str, remote_path: str, *params: str) -> list[str]:
    """Upload a script into remote_path, run it with params, then remove it.

    remote_path is used as a prefix and must already exist, usually with a
    trailing ``/``. If any step of the batch fails the removal does not run
    and the script is left on the remote host.

    Raises:
        FormatError: If file_path does not end with ``.sh``.
        CommandError: From the first failing step of the batch.
    """
    check_script(file_path)
    remote_file = to_slash(remote_path) + os.path.basename(file_path)
    copy_file(conn, file_path, remote_file)
    return run_commands(conn, *script_commands(remote_file, *params))


def _preview(cmd: str) -> str:
    return cmd[:80] + "..." if len(cmd) > 80 else cmd

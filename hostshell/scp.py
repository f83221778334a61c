"""Sender side of the scp sink protocol.

The remote ``scp -t <destination>`` process reads one record per file::

    C<mode> <size> <name> \\n
    <size raw bytes>
    \\0

Only the sending half is implemented. Acknowledgement bytes from the sink
are never awaited mid-stream; they are drained in the background together
with the exit status and only inspected when the sink fails.
"""

from __future__ import annotations

import os
import shlex
import stat
from concurrent.futures import ThreadPoolExecutor
from typing import BinaryIO

import paramiko
from loguru import logger

from hostshell.errors import CopyProtocolError
from hostshell.transport import Session

CHUNK_SIZE = 32 * 1024
TERMINATOR = b"\x00"


def header(size: int, mode: int, file_name: str) -> bytes:
    """Encode the ``C`` record announcing one file."""
    return f"C{mode:04o} {size} {file_name} \n".encode()


def copy(
    size: int,
    mode: int,
    file_name: str,
    contents: BinaryIO,
    destination: str,
    session: Session,
) -> None:
    """Push exactly size bytes from contents into destination.

    The destination's parent directory must already exist.

    Raises:
        CopyProtocolError: If the sink cannot be started, contents is shorter
            than size, the stream is interrupted, or the sink exits with a
            non-zero status.
    """
    record = header(size, mode, file_name)
    logger.debug("SCP: {record!r} -> {dest}", record=record, dest=destination)

    try:
        session.start(shlex.join(["scp", "-t", destination]))
    except (OSError, paramiko.SSHException) as e:
        session.close()
        raise CopyProtocolError(f"Cannot start scp sink for {destination}: {e}") from e

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="scp-wait") as pool:
        waiter = pool.submit(session.wait)
        try:
            session.write(record)
            _stream(session, size, contents)
            session.write(TERMINATOR)
            session.close_stdin()
        except CopyProtocolError:
            session.close()
            raise
        except (OSError, paramiko.SSHException) as e:
            session.close()
            raise CopyProtocolError(f"Copy to {destination} interrupted: {e}") from e
        status, reply = waiter.result()

    if status != 0:
        raise CopyProtocolError(
            f"Copy to {destination} failed ({status}): {_reply_text(reply) or 'no reply'}"
        )


def copy_path(file_path: str, destination: str, session: Session) -> None:
    """Copy a local file, taking size and permission bits from the file itself."""
    with open(file_path, "rb") as f:
        st = os.fstat(f.fileno())
        copy(
            st.st_size,
            stat.S_IMODE(st.st_mode) & 0o777,
            os.path.basename(file_path),
            f,
            destination,
            session,
        )


def _stream(session: Session, size: int, contents: BinaryIO) -> None:
    remaining = size
    while remaining > 0:
        chunk = contents.read(min(CHUNK_SIZE, remaining))
        if not chunk:
            raise CopyProtocolError(
                f"Content ended {remaining} bytes short of declared size {size}"
            )
        session.write(chunk)
        remaining -= len(chunk)


def _reply_text(reply: bytes) -> str:
    # Sink replies are prefixed with \0 (ok), \1 (warning) or \2 (fatal)
    return reply.translate(None, b"\x00\x01\x02").decode(errors="replace").strip()

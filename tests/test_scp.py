from __future__ import annotations

import io
import os
import threading

import paramiko
import pytest

from hostshell.errors import CopyProtocolError
from hostshell.scp import copy, copy_path, header
from tests.conftest import FakeServer, FakeSession

pytestmark = [pytest.mark.unit]


class TestHeader:
    def test_format_has_trailing_space(self):
        assert header(5, 0o644, "a.txt") == b"C0644 5 a.txt \n"

    def test_mode_is_padded_to_four_octal_digits(self):
        assert header(0, 0o7, "x").startswith(b"C0007 ")

    def test_wide_mode_is_not_truncated(self):
        assert header(1, 0o4755, "suid").startswith(b"C4755 1 ")


class TestCopy:
    def test_writes_header_content_and_terminator(self):
        srv = FakeServer()
        session = FakeSession(srv)
        copy(5, 0o644, "a.txt", io.BytesIO(b"hello"), "/remote/a.txt", session)

        assert session.command == "scp -t /remote/a.txt"
        assert bytes(session.written) == b"C0644 5 a.txt \nhello\x00"
        assert session.stdin_closed

    def test_sends_exactly_declared_size(self):
        srv = FakeServer()
        session = FakeSession(srv)
        payload = os.urandom(100_000)
        copy(len(payload), 0o600, "blob", io.BytesIO(payload + b"extra"), "/r/blob", session)

        record, rest = bytes(session.written).split(b"\n", 1)
        assert record == f"C0600 {len(payload)} blob ".encode()
        assert rest[:-1] == payload
        assert rest[-1:] == b"\x00"

    def test_empty_file(self):
        srv = FakeServer()
        session = FakeSession(srv)
        copy(0, 0o644, "empty", io.BytesIO(b""), "/r/empty", session)
        assert bytes(session.written) == b"C0644 0 empty \n\x00"

    def test_destination_is_quoted(self):
        srv = FakeServer()
        session = FakeSession(srv)
        copy(1, 0o644, "a b", io.BytesIO(b"x"), "/remote/a b", session)
        assert session.command == "scp -t '/remote/a b'"

    def test_short_content_raises_before_terminator(self):
        srv = FakeServer()
        session = FakeSession(srv)
        with pytest.raises(CopyProtocolError, match="3 bytes short"):
            copy(5, 0o644, "a.txt", io.BytesIO(b"he"), "/remote/a.txt", session)

        assert not bytes(session.written).endswith(b"\x00")
        assert session.closed

    def test_write_failure_is_wrapped(self):
        srv = FakeServer()
        srv.write_error = OSError("Socket is closed")
        session = FakeSession(srv)
        with pytest.raises(CopyProtocolError, match="interrupted") as exc_info:
            copy(1, 0o644, "a", io.BytesIO(b"x"), "/remote/a", session)

        assert isinstance(exc_info.value.__cause__, OSError)
        assert session.closed

    def test_sink_failure_carries_reply(self):
        srv = FakeServer()
        srv.copy_status = 1
        srv.copy_reply = b"\x01scp: /nope/a: No such file or directory\n"
        session = FakeSession(srv)
        with pytest.raises(CopyProtocolError, match="No such file or directory"):
            copy(1, 0o644, "a", io.BytesIO(b"x"), "/nope/a", session)


    def test_sink_start_failure_is_wrapped(self):
        srv = FakeServer()
        srv.start_error = paramiko.ChannelException(1, "Administratively prohibited")
        session = FakeSession(srv)
        with pytest.raises(CopyProtocolError, match="Cannot start") as exc_info:
            copy(1, 0o644, "a", io.BytesIO(b"x"), "/remote/a", session)

        assert isinstance(exc_info.value.__cause__, paramiko.SSHException)
        assert session.written == b""
        assert session.closed

    def test_waiter_runs_while_bytes_are_written(self):
        waiting = threading.Event()
        seen_by_write: list[bool] = []

        class WaitTrackingSession(FakeSession):
            def wait(self) -> tuple[int, bytes]:
                waiting.set()
                return super().wait()

            def write(self, data: bytes) -> None:
                seen_by_write.append(waiting.wait(timeout=2))
                super().write(data)

        session = WaitTrackingSession(FakeServer())
        copy(3, 0o644, "a", io.BytesIO(b"abc"), "/remote/a", session)

        assert seen_by_write
        assert all(seen_by_write)
        assert bytes(session.written) == b"C0644 3 a \nabc\x00"


class TestCopyPath:
    def test_uses_local_size_mode_and_basename(self, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"0123456789")
        os.chmod(local, 0o640)
        srv = FakeServer()
        session = FakeSession(srv)

        copy_path(str(local), "/remote/dir/a.txt", session)

        assert session.command == "scp -t /remote/dir/a.txt"
        assert bytes(session.written) == b"C0640 10 a.txt \n0123456789\x00"

    def test_missing_file_raises_before_starting_sink(self, tmp_path):
        srv = FakeServer()
        session = FakeSession(srv)
        with pytest.raises(FileNotFoundError):
            copy_path(str(tmp_path / "missing"), "/remote/missing", session)
        assert session.command is None

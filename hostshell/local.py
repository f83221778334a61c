"""Local machine implementation of the Command protocol.

Commands run through ``bash -c`` (``powershell`` on Windows). Directory
sends, scripts and transactions are not implemented for the local host.
"""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Callable
from typing import TypeVar

from loguru import logger

from hostshell.errors import CommandError
from hostshell.protocols import CommandRunner

T = TypeVar("T")

LOCALHOST = "localhost"


class LocalShell:
    """Run commands on this machine."""

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform or sys.platform

    @property
    def url(self) -> str:
        return LOCALHOST

    @property
    def ip(self) -> str:
        return LOCALHOST

    def _argv(self, cmd: str) -> list[str]:
        if self.platform.startswith("win"):
            return ["powershell", cmd]
        return ["bash", "-c", cmd]

    def run_command(self, cmd: str) -> str:
        proc = subprocess.run(
            self._argv(cmd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
        output = proc.stdout.decode(errors="replace")
        logger.debug("Local: {cmd} -> exit_code={code}", cmd=cmd, code=proc.returncode)
        if proc.returncode != 0:
            raise CommandError(cmd, proc.returncode, output)
        return output

    def run_commands(self, *cmds: str) -> list[str]:
        outputs: list[str] = []
        for cmd in cmds:
            try:
                outputs.append(self.run_command(cmd))
            except CommandError as e:
                e.outputs = [*outputs, e.output]
                raise
        return outputs

    def send_file(self, local_path: str, remote_path: str) -> None:
        """Copy local_path to remote_path on this machine with mode 0644."""
        local_path = os.path.normpath(local_path)
        remote_path = os.path.normpath(remote_path)
        with open(local_path, "rb") as f:
            data = f.read()
        with open(remote_path, "wb") as f:
            f.write(data)
        os.chmod(remote_path, 0o644)

    def send_dir(self, local_dir: str, remote_dir: str) -> None:
        raise NotImplementedError("send_dir is not supported on the local host")

    def run_shell(self, file_path: str, remote_path: str, *params: str) -> list[str]:
        raise NotImplementedError("run_shell is not supported on the local host")

    def run_transaction(self, do: Callable[[CommandRunner], T]) -> T:
        raise NotImplementedError("Transactions are not supported on the local host")

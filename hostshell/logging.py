"""loguru setup for hostshell.

The library logs dials, closes, every command with its exit status and every
scp header at DEBUG. Nothing is emitted until the application opts in.

Example:
    from hostshell import LogConfig, SSHClient, logging_enabled

    with logging_enabled(LogConfig(level="DEBUG", file="deploy.log")):
        SSHClient(endpoint).send_dir("./conf", "/etc/app")
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

from loguru import logger

PACKAGE = "hostshell"

logger.disable(PACKAGE)

LogLevel: TypeAlias = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module} - {message}"


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Where hostshell logs go.

    Attributes:
        level: Minimum level for every handler.
        file: Append to this file in addition to (or instead of) stderr.
        console: Whether to log to stderr.
    """

    level: LogLevel = "INFO"
    file: str | None = None
    console: bool = True


def _handler_options(config: LogConfig) -> dict[str, Any]:
    # Commands and passwords may sit in frame locals
    return {
        "level": config.level,
        "format": FORMAT,
        "filter": PACKAGE,
        "backtrace": False,
        "diagnose": False,
    }


def setup_logging(config: LogConfig) -> list[int]:
    """Enable hostshell logging and return handler IDs for teardown_logging."""
    logger.enable(PACKAGE)
    options = _handler_options(config)
    handler_ids: list[int] = []
    if config.console:
        handler_ids.append(logger.add(sys.stderr, colorize=True, **options))
    if config.file:
        handler_ids.append(logger.add(config.file, enqueue=True, **options))
    return handler_ids


def teardown_logging(handler_ids: list[int]) -> None:
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable(PACKAGE)


@contextmanager
def logging_enabled(config: LogConfig | None = None) -> Iterator[None]:
    handler_ids = setup_logging(config or LogConfig())
    try:
        yield
    finally:
        teardown_logging(handler_ids)

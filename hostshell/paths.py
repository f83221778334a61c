"""Local tree enumeration and remote path helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PathEntry:
    """One absolute local path produced by ``list_paths``."""

    path: str
    is_dir: bool


def list_paths(directory: str) -> tuple[str, list[PathEntry]]:
    """Enumerate a local directory tree.

    Entries are produced depth-first, root first, with each directory's
    children visited in name order. Symlinks are reported as files.

    Returns:
        Tuple of (absolute root, entries).

    Raises:
        OSError: If the root or any subdirectory cannot be read.
    """
    root = os.path.abspath(directory)
    entries: list[PathEntry] = []
    _walk(root, entries)
    return root, entries


def _walk(path: str, entries: list[PathEntry]) -> None:
    if not os.path.isdir(path) or os.path.islink(path):
        if not os.path.lexists(path):
            raise FileNotFoundError(2, "No such file or directory", path)
        entries.append(PathEntry(path, False))
        return

    entries.append(PathEntry(path, True))
    with os.scandir(path) as it:
        children = sorted(it, key=lambda e: e.name)
    for child in children:
        if child.is_dir(follow_symlinks=False):
            _walk(child.path, entries)
        else:
            entries.append(PathEntry(child.path, False))


def to_slash(path: str) -> str:
    """Convert the local separator to ``/``."""
    if os.sep == "/":
        return path
    return path.replace(os.sep, "/")


def remote_parent(remote_path: str) -> str:
    """Text before the last ``/`` of a remote path, or "" if there is none."""
    head, sep, _ = remote_path.rpartition("/")
    return head if sep else ""

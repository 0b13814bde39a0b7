"""Recursive listing of the regular files under a root directory."""

import logging
import os
import threading
from enum import Enum
from pathlib import Path

from progress_hasher.core.errors import EnumerationError, HashingCancelledError

logger = logging.getLogger(__name__)


class SymlinkPolicy(str, Enum):
    """How symbolic links met during the walk are treated."""

    SKIP = "skip"
    FOLLOW = "follow"


def enumerate_files(
    root: Path | str,
    symlink_policy: SymlinkPolicy = SymlinkPolicy.SKIP,
    cancel_event: threading.Event | None = None,
) -> list[Path]:
    """
    List every regular file under root.

    Entries are visited depth-first, sorted by name within each directory,
    so an unchanged tree always yields the same list. Filesystem boundaries
    are crossed.

    With SKIP, symbolic links are neither listed nor descended into. With
    FOLLOW, links are resolved; each directory is walked once (tracked by
    device and inode) so link cycles terminate, and broken links are
    ignored. A root that is itself a link to a directory is always entered.

    Args:
        root: Directory to walk
        symlink_policy: SKIP or FOLLOW
        cancel_event: Checked before each directory is read; when set,
            the walk stops

    Returns:
        Paths of all regular files, rooted at the absolute form of root

    Raises:
        EnumerationError: If root is missing or not a directory, or if any
            directory below it cannot be read. The walk is aborted; no
            partial list is returned.
        HashingCancelledError: If cancel_event was set during the walk
    """
    root = Path(root).absolute()
    policy = SymlinkPolicy(symlink_policy)
    follow = policy is SymlinkPolicy.FOLLOW

    if not root.exists():
        raise EnumerationError(f"Root does not exist: {root}", root)
    if not root.is_dir():
        raise EnumerationError(f"Root is not a directory: {root}", root)

    files: list[Path] = []
    visited: set[tuple[int, int]] = set()
    stack = [root]

    while stack:
        if cancel_event is not None and cancel_event.is_set():
            raise HashingCancelledError(f"Cancelled while walking {root}")

        directory = stack.pop()

        try:
            stat = directory.stat()
            key = (stat.st_dev, stat.st_ino)
            if key in visited:
                logger.debug(f"Skipping already visited directory {directory}")
                continue
            visited.add(key)

            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            raise EnumerationError(f"Cannot read directory {directory}: {e}", directory) from e

        subdirs = []
        for entry in entries:
            try:
                if entry.is_symlink() and not follow:
                    continue
                if entry.is_dir(follow_symlinks=follow):
                    subdirs.append(Path(entry.path))
                elif entry.is_file(follow_symlinks=follow):
                    files.append(Path(entry.path))
            except OSError as e:
                raise EnumerationError(f"Cannot inspect {entry.path}: {e}", Path(entry.path)) from e

        # Reversed so the stack pops subdirectories in name order
        stack.extend(reversed(subdirs))

    logger.debug(f"Enumerated {len(files)} files under {root}")
    return files


class PathEnumerator:
    """Walks directory trees with a fixed symlink policy."""

    def __init__(self, symlink_policy: SymlinkPolicy = SymlinkPolicy.SKIP):
        self.symlink_policy = SymlinkPolicy(symlink_policy)

    def enumerate(self, root: Path | str) -> list[Path]:
        """List regular files under root, see enumerate_files."""
        return enumerate_files(root, self.symlink_policy)

"""
Leaf-first directory walking for safe bulk deletion.

Some filesystems corrupt a directory iteration when entries are removed, or
subdirectories are opened, while the parent's handle is still open. Every
walk here closes the directory handle before it recurses or hands a path to
the caller, so callers are free to delete what they are given.
"""

import logging
import os
from typing import Callable, Collection, List, Optional, Tuple

from seqfile_queue.exceptions import PathTooLongError
from seqfile_queue.models import DEFAULT_MAX_PATH_LEN, LeafEntry


logger = logging.getLogger(__name__)

LeafCallback = Callable[[str, bool], Optional[bool]]


def _join(base: str, name: str, max_path_len: int) -> str:
    path = f"{base}/{name}"
    if len(path) > max_path_len:
        raise PathTooLongError(path, max_path_len)
    return path


def find_leaf_entry(
    base: str,
    max_path_len: int = DEFAULT_MAX_PATH_LEN,
    skip: Collection[str] = ()
) -> Optional[LeafEntry]:
    """
    Find one leaf below a directory.

    Reads a single usable entry, closes the directory, then descends into it
    if it is a directory. A directory with nothing usable below it, or one
    that cannot be listed, is itself returned as the leaf, so the caller can
    remove it or add it to skip. Symlinks are never followed.

    Args:
        base: Directory to search
        max_path_len: Longest path that may be built
        skip: Paths to pass over (e.g. entries that could not be removed)

    Returns:
        LeafEntry, or None if the directory has no usable entries

    Raises:
        PathTooLongError: If a path directly under base would exceed max_path_len
        OSError: If base itself cannot be opened
    """
    child = None

    with os.scandir(base) as it:
        for entry in it:
            path = _join(base, entry.name, max_path_len)
            if path in skip:
                continue
            child = (path, entry.is_dir(follow_symlinks=False))
            break

    if child is None:
        return None

    path, is_dir = child
    if is_dir:
        try:
            leaf = find_leaf_entry(path, max_path_len, skip)
        except OSError as e:
            # An unlistable directory is its own leaf
            logger.warning(f"Cannot descend into {path}: {e}")
            return LeafEntry(path, True)
        if leaf is not None:
            return leaf

    return LeafEntry(path, is_dir)


def walk_leaf_entries(
    base: str,
    callback: LeafCallback,
    max_path_len: int = DEFAULT_MAX_PATH_LEN
) -> int:
    """
    Call back for every file below a directory, depth first.

    Each directory's listing is read in full and its handle closed before
    any recursion or callback, so the callback may unlink the path it gets.

    Args:
        base: Directory to walk
        callback: Called as callback(path, is_dir); returning False stops the walk
        max_path_len: Longest path that may be built

    Returns:
        Number of leaves passed to the callback

    Raises:
        PathTooLongError: If a child path would exceed max_path_len
    """
    visited, _ = _walk(base, callback, max_path_len)
    return visited


def _walk(base: str, callback: LeafCallback, max_path_len: int) -> Tuple[int, bool]:
    with os.scandir(base) as it:
        entries: List[Tuple[str, bool]] = [
            (entry.name, entry.is_dir(follow_symlinks=False)) for entry in it
        ]

    visited = 0
    for name, is_dir in entries:
        path = _join(base, name, max_path_len)

        if is_dir:
            count, stopped = _walk(path, callback, max_path_len)
            visited += count
            if stopped:
                return visited, True
            continue

        visited += 1
        if callback(path, False) is False:
            logger.debug(f"Walk stopped at {path}")
            return visited, True

    return visited, False

"""
Sequential file queue.

Maintains a directory of numbered files as a FIFO queue. The directory
listing is the durable record; an in-memory deque mirrors it for ordered
access and is rebuilt from disk by a lazy, one-time scan.

Typical use:
    queue = SequentialFileQueue("/var/spool/readings", extension="json")

    # producer
    file_num = queue.reserve_file()
    write_reading(queue.get_path_for_file_num(file_num))
    queue.add_file_to_queue(file_num)

    # consumer
    file_num = queue.get_file_from_queue(remove=False)
    if file_num and upload(queue.get_path_for_file_num(file_num)):
        queue.get_file_from_queue()
        queue.remove_file_num(file_num)
"""

from __future__ import annotations

import logging
import os
import threading
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional, Set, Union, TYPE_CHECKING

from seqfile_queue.exceptions import ConfigurationError, PathTooLongError
from seqfile_queue.models import DEFAULT_MAX_PATH_LEN, QueueConfig
from seqfile_queue.naming import (
    DEFAULT_PATTERN,
    NumericPattern,
    compile_pattern,
    name_with_optional_ext,
)
from seqfile_queue.scanner import AdmissionHook, DirectoryScanner, accept_all
from seqfile_queue.walker import find_leaf_entry, walk_leaf_entries


logger = logging.getLogger(__name__)

# Returned when the queue is empty; 0 is never an allocated file number
EMPTY = 0


class SequentialFileQueue:
    """
    A directory of numbered files used as a FIFO queue.

    Thread-safe within one process: the in-memory queue, high-water mark and
    scan flag are guarded by a per-instance lock, and scans are serialized by
    a second lock. Neither lock is held while the admission hook runs.
    The hook must not call methods that trigger a scan.
    """

    def __init__(
        self,
        dir_path: Union[str, Path, None] = None,
        extension: Optional[str] = None,
        pattern: str = DEFAULT_PATTERN,
        *,
        config: Optional[QueueConfig] = None,
        admission_hook: Optional[AdmissionHook] = None,
        registry: Optional[QueueRegistry] = None,
        sort_on_scan: bool = True,
        max_path_len: int = DEFAULT_MAX_PATH_LEN
    ):
        """
        Initialize queue.

        Args:
            dir_path: Queue directory. May be set later with with_dir_path()
            extension: Filename extension without the dot
            pattern: printf-style numeric filename pattern
            config: Complete QueueConfig; overrides the individual arguments
            admission_hook: Called as hook(file_num, path) during scans
            registry: Registry to join; the queue leaves it on close()
            sort_on_scan: Order scanned entries by file number
            max_path_len: Longest path a removal walk may build
        """
        if config is None:
            config = QueueConfig(
                dir_path=dir_path,
                extension=extension,
                pattern=pattern,
                sort_on_scan=sort_on_scan,
                max_path_len=max_path_len,
            )
        self.config = config
        self.admission_hook = admission_hook or accept_all

        self._lock = threading.Lock()
        self._scan_lock = threading.Lock()
        self._queue: Deque[int] = deque()
        self._last_file_num = 0
        self._scan_completed = False

        self._registry = registry
        if registry is not None:
            registry.register(self)

    # Configuration

    @property
    def dir_path(self) -> str:
        """Queue directory, never with a trailing separator."""
        return self.config.dir_path

    @property
    def pattern(self) -> str:
        return self.config.pattern

    @property
    def extension(self) -> str:
        return self.config.extension

    @property
    def numeric_pattern(self) -> NumericPattern:
        return compile_pattern(self.config.pattern)

    def _reconfigure(self, **changes) -> SequentialFileQueue:
        if self._scan_completed:
            raise ConfigurationError(
                f"Queue {self.dir_path} cannot be reconfigured after it has been scanned"
            )
        data = self.config.model_dump()
        data.update(changes)
        self.config = QueueConfig(**data)
        return self

    def with_dir_path(self, dir_path: Union[str, Path]) -> SequentialFileQueue:
        """Set the queue directory. Only one directory level is ever created."""
        return self._reconfigure(dir_path=dir_path)

    def with_pattern(self, pattern: str) -> SequentialFileQueue:
        """Set the numeric filename pattern (default %08d)."""
        return self._reconfigure(pattern=pattern)

    def with_filename_extension(self, extension: Optional[str]) -> SequentialFileQueue:
        """Set the filename extension (default: none)."""
        return self._reconfigure(extension=extension)

    # Scanning

    @property
    def scan_completed(self) -> bool:
        with self._lock:
            return self._scan_completed

    @property
    def last_file_num(self) -> int:
        """High-water mark: largest file number seen or reserved."""
        with self._lock:
            return self._last_file_num

    def scan_dir(self) -> bool:
        """
        Rebuild the in-memory queue from the queue directory.

        Creates the directory if it does not exist. Usually called implicitly
        by the first queue operation.

        Returns:
            True on success, False on a configuration or filesystem error
        """
        with self._scan_lock:
            return self._scan_locked()

    def _scan_locked(self) -> bool:
        scanner = DirectoryScanner(
            pattern=self.config.pattern,
            extension=self.config.extension,
            sort=self.config.sort_on_scan,
        )
        result = scanner.scan(self.config.dir_path, self.admission_hook)
        if result is None:
            return False

        with self._lock:
            self._queue = deque(result.file_nums)
            if result.max_file_num > self._last_file_num:
                self._last_file_num = result.max_file_num
            self._scan_completed = True

        logger.debug(
            f"Scanned {self.dir_path}: {len(result.file_nums)} queued, "
            f"{len(result.rejected)} rejected, last file number {result.max_file_num}"
        )
        return True

    def _ensure_scanned(self) -> None:
        if self._scan_completed:
            return
        with self._scan_lock:
            if not self._scan_completed:
                self._scan_locked()

    # File numbers

    def reserve_file(self) -> int:
        """
        Reserve the next file number.

        The reservation is held in memory only. Create the file at
        get_path_for_file_num() and/or call add_file_to_queue(); a reservation
        lost to a restart just leaves a gap in the numbering.
        """
        self._ensure_scanned()

        with self._lock:
            self._last_file_num += 1
            return self._last_file_num

    def add_file_to_queue(self, file_num: int) -> None:
        """Append a file number to the end of the queue."""
        self._ensure_scanned()

        with self._lock:
            if file_num > self._last_file_num:
                self._last_file_num = file_num
            self._queue.append(file_num)

    def get_file_from_queue(self, remove: bool = True) -> int:
        """
        Get the file number at the head of the queue.

        Args:
            remove: Pop the entry; pass False to peek

        Returns:
            File number, or EMPTY (0) if the queue is empty
        """
        self._ensure_scanned()

        with self._lock:
            if not self._queue:
                return EMPTY
            file_num = self._queue.popleft() if remove else self._queue[0]

        logger.debug(f"get_file_from_queue returned {file_num}")
        return file_num

    def peek_file_from_queue(self) -> int:
        """Get the head of the queue without removing it."""
        return self.get_file_from_queue(remove=False)

    def remove_second_file_in_queue(self) -> int:
        """
        Remove the entry behind the head of the queue.

        Lets a consumer drop the next entry without disturbing the one it is
        currently working on.

        Returns:
            The removed file number, or EMPTY if fewer than two entries are queued
        """
        self._ensure_scanned()

        with self._lock:
            if len(self._queue) < 2:
                return EMPTY
            file_num = self._queue[1]
            del self._queue[1]

        logger.debug(f"remove_second_file_in_queue returned {file_num}")
        return file_num

    def get_queue_len(self) -> int:
        """Number of entries in the in-memory queue."""
        with self._lock:
            return len(self._queue)

    def __len__(self) -> int:
        return self.get_queue_len()

    def get_queue_snapshot(self) -> List[int]:
        """Copy of the queued file numbers, head first."""
        with self._lock:
            return list(self._queue)

    # Naming

    def get_name_for_file_num(self, file_num: int, override_ext: Optional[str] = None) -> str:
        """
        Filename for a file number.

        Args:
            file_num: File number
            override_ext: Extension to use instead of the configured one; "" for none

        Raises:
            PatternError: If the pattern cannot render file_num
        """
        name = self.numeric_pattern.format(file_num)
        ext = self.config.extension if override_ext is None else override_ext.lstrip(".")
        return name_with_optional_ext(name, ext)

    def get_path_for_file_num(self, file_num: int, override_ext: Optional[str] = None) -> str:
        """Full path for a file number, see get_name_for_file_num()."""
        return f"{self.config.dir_path}/{self.get_name_for_file_num(file_num, override_ext)}"

    # Removal

    def remove_file_num(self, file_num: int, all_extensions: bool = False) -> int:
        """
        Delete the file(s) for a file number from disk.

        The in-memory queue is not changed.

        Args:
            file_num: File number to delete
            all_extensions: Delete every file with this number whatever its
                extension (walks the directory); otherwise only the file with
                the configured extension

        Returns:
            Number of files deleted
        """
        if not all_extensions:
            path = self.get_path_for_file_num(file_num)
            try:
                os.unlink(path)
            except OSError as e:
                logger.debug(f"Could not remove {path}: {e}")
                return 0
            logger.debug(f"Removed {path}")
            return 1

        pattern = self.numeric_pattern
        removed = 0

        def remove_matching(path: str, is_dir: bool) -> bool:
            nonlocal removed
            if pattern.parse(os.path.basename(path)) != file_num:
                return True
            try:
                os.unlink(path)
            except OSError as e:
                logger.error(f"Failed to remove {path}: {e}")
                return True
            removed += 1
            logger.debug(f"Removed {path}")
            return True

        try:
            walk_leaf_entries(self.config.dir_path, remove_matching, self.config.max_path_len)
        except PathTooLongError as e:
            logger.error(f"Stopped removing file {file_num}: {e}")
        except OSError as e:
            logger.error(f"Could not walk {self.dir_path}: {e}")

        return removed

    def remove_all(self, remove_dir: bool = False) -> bool:
        """
        Delete everything in the queue directory and reset the queue.

        Removes all files and subdirectories, including files that do not
        match the pattern. One leaf is found and deleted at a time, with no
        directory handle held across the deletion.

        Args:
            remove_dir: Also remove the queue directory itself

        Returns:
            True if the directory was emptied (or did not exist). The queue is
            reset either way once the walk has started.
        """
        dir_path = self.config.dir_path
        if len(dir_path) <= 1:
            logger.error(f"Unconfigured queue directory {dir_path!r}")
            return False
        if len(dir_path) > self.config.max_path_len:
            logger.error(f"Path {dir_path} over {self.config.max_path_len} characters")
            return False

        failed: Set[str] = set()
        stopped = False
        while True:
            try:
                leaf = find_leaf_entry(dir_path, self.config.max_path_len, failed)
            except FileNotFoundError:
                break
            except OSError as e:
                logger.error(f"Stopped removing files in {dir_path}: {e}")
                stopped = True
                break

            if leaf is None:
                break

            try:
                if leaf.is_dir:
                    os.rmdir(leaf.path)
                else:
                    os.unlink(leaf.path)
            except OSError as e:
                logger.error(f"Failed to remove {leaf.path}: {e}")
                failed.add(leaf.path)

        with self._lock:
            self._queue.clear()
            self._last_file_num = 0
            self._scan_completed = False

        if remove_dir:
            try:
                os.rmdir(dir_path)
            except OSError as e:
                logger.debug(f"Did not remove {dir_path}: {e}")

        if stopped or failed:
            return False

        logger.debug(f"Removed all files in {dir_path}")
        return True

    # Lifetime

    def close(self) -> None:
        """Leave the registry this queue was registered with."""
        registry, self._registry = self._registry, None
        if registry is not None:
            registry.unregister(self)

    def __enter__(self) -> SequentialFileQueue:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"SequentialFileQueue({self.dir_path!r}, extension={self.extension!r})"


if TYPE_CHECKING:
    from seqfile_queue.registry import QueueRegistry

"""
Shared queue instances.

A producer and a consumer working on the same queue directory must share
one SequentialFileQueue; two instances would keep diverging in-memory
queues. A QueueRegistry hands out one instance per directory path.
"""

import logging
import os
import threading
from pathlib import Path
from typing import List, Optional, Union

from seqfile_queue.queue import SequentialFileQueue


logger = logging.getLogger(__name__)


class QueueRegistry:
    """
    Maps queue directory paths to shared queue instances.

    The registry does not own the queues: whoever creates a queue (directly
    or through get_instance) closes it, which removes it from the registry.
    Lookups are a linear scan; only a handful of queues are expected.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._queues: List[SequentialFileQueue] = []

    def get_instance(
        self,
        dir_path: Union[str, Path],
        extension: Optional[str] = None,
        **kwargs
    ) -> SequentialFileQueue:
        """
        Get the queue for a directory, creating it if there is none yet.

        Args:
            dir_path: Queue directory (matched exactly, trailing separators ignored)
            extension: Filename extension, only used when creating the queue
            **kwargs: Further SequentialFileQueue arguments for creation

        Returns:
            The shared SequentialFileQueue
        """
        key = _normalize(dir_path)
        kwargs.pop("registry", None)

        with self._lock:
            queue = self._find_locked(key)
            if queue is not None:
                return queue

            queue = SequentialFileQueue(key, extension, **kwargs)
            queue._registry = self
            self._queues.append(queue)

        logger.debug(f"Created shared queue for {key}")
        return queue

    def find(self, dir_path: Union[str, Path]) -> Optional[SequentialFileQueue]:
        """Get the registered queue for a directory, if any."""
        with self._lock:
            return self._find_locked(_normalize(dir_path))

    def register(self, queue: SequentialFileQueue) -> None:
        """
        Add a queue to the registry.

        Raises:
            ValueError: If another queue is registered for the same directory
        """
        with self._lock:
            existing = self._find_locked(queue.dir_path)
            if existing is queue:
                return
            if existing is not None:
                raise ValueError(f"A queue is already registered for {queue.dir_path}")
            self._queues.append(queue)

    def unregister(self, queue: SequentialFileQueue) -> bool:
        """Remove a queue from the registry. Returns False if it was not registered."""
        with self._lock:
            for i, registered in enumerate(self._queues):
                if registered is queue:
                    self._queues.pop(i)
                    return True
        return False

    def close_all(self) -> None:
        """Close every registered queue."""
        with self._lock:
            queues = list(self._queues)

        for queue in queues:
            queue.close()

    def _find_locked(self, key: str) -> Optional[SequentialFileQueue]:
        for queue in self._queues:
            if queue.dir_path == key:
                return queue
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._queues)

    def __contains__(self, dir_path: Union[str, Path]) -> bool:
        return self.find(dir_path) is not None


def _normalize(dir_path: Union[str, Path]) -> str:
    return os.fspath(dir_path).rstrip("/")

"""
Exception types for seqfile-queue.

Runtime conditions (empty queue, missing file, unconfigured directory) are
reported through return values and the log; these exceptions cover
programmer errors and the bounded-path walk.
"""

import errno


class SeqFileError(Exception):
    """Base class for all seqfile-queue errors."""


class ConfigurationError(SeqFileError, ValueError):
    """Raised when a queue is reconfigured after it has been used."""


class PatternError(SeqFileError, ValueError):
    """Raised for an unusable numeric filename pattern."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid filename pattern {pattern!r}: {reason}")


class PathTooLongError(SeqFileError, OSError):
    """Raised when a path built during a directory walk exceeds the limit."""

    def __init__(self, path: str, limit: int) -> None:
        super().__init__(
            errno.ENAMETOOLONG,
            f"Path exceeds {limit} characters",
            path,
        )
        self.limit = limit

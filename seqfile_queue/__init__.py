"""
seqfile-queue - A directory of numbered files used as a FIFO queue.

Built for store-and-forward buffering where the only durable medium is a
local filesystem.

Architecture: No state file - the directory listing is the source of truth.
- <dir>/00000001[.ext]  - one file (or group of files) per queue entry
- the in-memory queue   - rebuilt by scanning the directory on first use
"""

__version__ = "1.0.0"

from seqfile_queue.exceptions import (
    SeqFileError,
    ConfigurationError,
    PatternError,
    PathTooLongError,
)

from seqfile_queue.models import QueueConfig, ScanResult, LeafEntry
from seqfile_queue.naming import DEFAULT_PATTERN, NumericPattern, compile_pattern
from seqfile_queue.scanner import DirectoryScanner, create_dir_if_necessary
from seqfile_queue.queue import SequentialFileQueue, EMPTY
from seqfile_queue.registry import QueueRegistry

__all__ = [
    # Errors
    "SeqFileError",
    "ConfigurationError",
    "PatternError",
    "PathTooLongError",
    # Models
    "QueueConfig",
    "ScanResult",
    "LeafEntry",
    # Naming
    "DEFAULT_PATTERN",
    "NumericPattern",
    "compile_pattern",
    # Components
    "DirectoryScanner",
    "create_dir_if_necessary",
    "SequentialFileQueue",
    "EMPTY",
    "QueueRegistry",
]

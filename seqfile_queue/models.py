"""
Data models for seqfile-queue.

Defines Pydantic models for queue configuration and scan results.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import List, NamedTuple, Optional, Union

from pydantic import BaseModel, Field, field_validator

from seqfile_queue.naming import DEFAULT_PATTERN, compile_pattern


# Deliberately below PATH_MAX (4096) to fit constrained buffers
DEFAULT_MAX_PATH_LEN = 255


class QueueConfig(BaseModel):
    """
    Configuration for a single queue directory.

    An empty dir_path means the queue is unconfigured; that is reported
    when the queue is first scanned, not at construction.
    """

    dir_path: str = Field(default="", description="Queue directory, no trailing separator")
    pattern: str = Field(default=DEFAULT_PATTERN, description="printf-style pattern with one integer conversion")
    extension: str = Field(default="", description="Filename extension without the leading dot")
    sort_on_scan: bool = Field(default=True, description="Sort scanned entries by file number")
    max_path_len: int = Field(default=DEFAULT_MAX_PATH_LEN, gt=1, description="Longest path a directory walk may build")

    @field_validator("dir_path", mode="before")
    @classmethod
    def normalize_dir_path(cls, v: Union[str, Path, None]) -> str:
        """Accept path-like values and strip trailing separators."""
        if v is None:
            return ""
        path = os.fspath(v)
        return path.rstrip("/")

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Pattern must hold exactly one integer conversion."""
        compile_pattern(v)
        return v

    @field_validator("extension", mode="before")
    @classmethod
    def normalize_extension(cls, v: Optional[str]) -> str:
        """Strip a leading dot; None means no extension."""
        if v is None:
            return ""
        return v.lstrip(".")


class ScanResult(BaseModel):
    """
    Outcome of scanning a queue directory.

    file_nums holds the admitted entries in queue order; max_file_num covers
    every matching file, including those the admission hook rejected.
    """

    dir_path: str
    file_nums: List[int] = Field(default_factory=list)
    rejected: List[int] = Field(default_factory=list)
    max_file_num: int = 0
    scanned_at: str = Field(default_factory=lambda: datetime.now().isoformat())


class LeafEntry(NamedTuple):
    """A file, or a directory with nothing left to descend into."""

    path: str
    is_dir: bool

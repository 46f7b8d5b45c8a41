"""Test fixtures for seqfile-queue tests."""

import pytest
import tempfile
import shutil
from pathlib import Path

from seqfile_queue.queue import SequentialFileQueue
from seqfile_queue.registry import QueueRegistry


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def queue_dir(temp_dir):
    """Path of a queue directory that does not exist yet."""
    return temp_dir / "queue"


@pytest.fixture
def populated_dir(temp_dir):
    """Queue directory holding two entries plus things the scanner must ignore."""
    path = temp_dir / "queue"
    path.mkdir()
    (path / "00000003").write_text("three")
    (path / "00000007").write_text("seven")
    (path / "notanumber.txt").write_text("ignored")
    (path / "00000009").mkdir()
    return path


@pytest.fixture
def queue(queue_dir):
    """A queue on an empty directory."""
    return SequentialFileQueue(queue_dir)


@pytest.fixture
def registry():
    """An empty queue registry."""
    registry = QueueRegistry()
    yield registry
    registry.close_all()


@pytest.fixture
def tree_dir(temp_dir):
    """Queue directory with a nested tree of oddly named files and directories."""
    root = temp_dir / "queue"
    root.mkdir()
    (root / "a" / "b" / "c").mkdir(parents=True)
    (root / "empty" / "deeper").mkdir(parents=True)
    (root / "with space").mkdir()
    (root / "00000001").write_text("1")
    (root / "00000001.sha1").write_text("1")
    (root / "notes.txt").write_text("x")
    (root / "a" / "00000002").write_text("2")
    (root / "a" / "b" / ".hidden").write_text("h")
    (root / "a" / "b" / "c" / "leaf.bin").write_bytes(b"\x00")
    (root / "with space" / "file name").write_text("s")
    return root

"""
Queue directory scanner.

Rebuilds a queue's entries from the directory listing, which is the
durable record of what is queued.
"""

import logging
import os
import stat
from typing import Callable, List, Optional, Tuple

from seqfile_queue.models import ScanResult
from seqfile_queue.naming import DEFAULT_PATTERN, compile_pattern, matches_extension


logger = logging.getLogger(__name__)

# Called as hook(file_num, path); return False to leave the file out of the queue
AdmissionHook = Callable[[int, str], bool]


def accept_all(file_num: int, path: str) -> bool:
    """Default admission hook."""
    return True


def create_dir_if_necessary(path: str) -> bool:
    """
    Make sure path is a directory, creating the last component if needed.

    A non-directory occupying the path is deleted first. Parent directories
    are not created.

    Args:
        path: Directory path

    Returns:
        True if the directory exists afterwards
    """
    try:
        st = os.stat(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"stat failed for {path}: {e}")
        return False
    else:
        if stat.S_ISDIR(st.st_mode):
            logger.debug(f"{path} exists and is a directory")
            return True

        logger.warning(f"File in the way, deleting {path}")
        try:
            os.unlink(path)
        except OSError as e:
            logger.error(f"Could not delete {path}: {e}")
            return False

    try:
        os.mkdir(path, 0o777)
    except OSError as e:
        logger.error(f"mkdir failed for {path}: {e}")
        return False

    logger.info(f"Created dir {path}")
    return True


class DirectoryScanner:
    """
    Scans a queue directory for numbered entry files.

    Only regular files directly inside the directory are considered; a file
    is a candidate when its name parses with the numeric pattern and carries
    the configured extension.
    """

    def __init__(
        self,
        pattern: str = DEFAULT_PATTERN,
        extension: str = "",
        sort: bool = True
    ):
        """
        Initialize directory scanner.

        Args:
            pattern: printf-style numeric filename pattern
            extension: Required filename extension, empty for any
            sort: Return entries in ascending file number order instead of listing order
        """
        self.pattern = compile_pattern(pattern)
        self.extension = extension
        self.sort = sort

    def scan(self, dir_path: str, hook: Optional[AdmissionHook] = None) -> Optional[ScanResult]:
        """
        Scan a queue directory, creating it if absent.

        Args:
            dir_path: Queue directory
            hook: Admission hook consulted for each candidate

        Returns:
            ScanResult, or None on a configuration or filesystem error
        """
        if len(dir_path) <= 1:
            logger.error(f"Unconfigured queue directory {dir_path!r}")
            return None

        if not create_dir_if_necessary(dir_path):
            return None

        logger.debug(f"Scanning {dir_path} with pattern {self.pattern.pattern}")

        try:
            candidates = self._find_candidates(dir_path)
        except OSError as e:
            logger.error(f"Could not read directory {dir_path}: {e}")
            return None

        if hook is None:
            hook = accept_all

        result = ScanResult(dir_path=dir_path)

        for file_num, name in candidates:
            if file_num > result.max_file_num:
                result.max_file_num = file_num

            path = f"{dir_path}/{name}"
            if hook(file_num, path):
                logger.debug(f"Adding to queue {file_num} {name}")
                result.file_nums.append(file_num)
            else:
                logger.debug(f"Admission hook rejected {name}")
                result.rejected.append(file_num)

        if self.sort:
            result.file_nums.sort()

        return result

    def _find_candidates(self, dir_path: str) -> List[Tuple[int, str]]:
        """
        List matching entry files.

        The directory handle is closed before this returns, so the admission
        hook can safely delete files.
        """
        candidates = []

        with os.scandir(dir_path) as it:
            for entry in it:
                if not entry.is_file(follow_symlinks=False):
                    continue

                file_num = self.pattern.parse(entry.name)
                if file_num is None:
                    continue

                if not matches_extension(entry.name, self.extension):
                    continue

                candidates.append((file_num, entry.name))

        return candidates

"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Lazy recursive traversal producing regular-file paths.
Features:
- Generator: paths are yielded as they are discovered, nothing is buffered
- Deterministic order (sorted names per directory)
- Symbolic links below the root are never yielded, so already-linked locations are
  not re-processed; a root that is itself a link to a directory is followed
- Excluded directories (the store) are pruned before os.walk enters them
- Unreadable entries are skipped silently
"""

import os
import stat
import logging
from typing import Iterator, List, Optional, Callable
from pathlib import Path

from dedlink.core.errors import ScanIOError
from dedlink.core.interfaces import FileScanner

logger = logging.getLogger(__name__)


class FileScannerImpl(FileScanner):
    """
    Walks `root` and yields every regular file under it.

    Attributes:
        root: File or directory to scan
        excluded_dirs: Directories never entered (always includes the store)
    """

    def __init__(self, root: str, excluded_dirs: Optional[List[str]] = None):
        self.root = root
        self.excluded_dirs = [os.path.realpath(d) for d in excluded_dirs] if excluded_dirs else []

    def scan(self, stopped_flag: Optional[Callable[[], bool]] = None) -> Iterator[str]:
        root_path = Path(self.root)
        logger.debug(f"Starting scan of {self.root}")

        if not os.path.lexists(self.root):
            raise ScanIOError(f"Path does not exist: {self.root}", path=self.root)

        # A linked root directory is followed, like os.walk does for its top
        if not root_path.is_dir():
            if self._is_regular_file(str(root_path)):
                yield str(root_path)
            return

        def on_error(error: OSError):
            logger.debug(f"Skipping unreadable entry: {error}")

        for root, dirs, files in os.walk(str(root_path), onerror=on_error):
            if stopped_flag and stopped_flag():
                logger.debug("Scan interrupted by user")
                return

            # Pre-filter subdirectories BEFORE os.walk enters them
            dirs[:] = sorted(d for d in dirs if not self._is_excluded(os.path.join(root, d)))

            for filename in sorted(files):
                path = os.path.join(root, filename)
                if self._is_regular_file(path):
                    yield path

    def _is_excluded(self, path: str) -> bool:
        absolute = os.path.realpath(path)
        for excluded in self.excluded_dirs:
            if absolute == excluded or absolute.startswith(excluded + os.sep):
                logger.debug(f"Skipping excluded directory: {path}")
                return True
        return False

    @staticmethod
    def _is_regular_file(path: str) -> bool:
        try:
            mode = os.lstat(path).st_mode
        except OSError as e:
            logger.debug(f"Could not stat {path}: {e}")
            return False
        if stat.S_ISLNK(mode):
            logger.debug(f"Skipping symbolic link: {path}")
            return False
        if not stat.S_ISREG(mode):
            logger.debug(f"Skipping non-regular file: {path}")
            return False
        if not os.access(path, os.R_OK):
            logger.debug(f"Skipping unreadable file: {path}")
            return False
        return True

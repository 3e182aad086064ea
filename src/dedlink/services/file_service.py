"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Filesystem mutations used by the replace phase: rename into the store,
removal of duplicates (optionally via the system trash) and relative symlinks.
"""
import os
import shutil
import logging
from pathlib import Path
from send2trash import send2trash

logger = logging.getLogger(__name__)


class FileService:
    """
    Thin wrapper around the few destructive operations the engine performs.
    Kept separate so tests can patch a single seam.
    """

    @staticmethod
    def move(source: str, destination: str):
        """Renames source to destination. Raises OSError (e.g. EXDEV across devices)."""
        os.rename(source, destination)
        logger.debug(f"Moved {source} -> {destination}")

    @staticmethod
    def replace(source: str, destination: str):
        """Atomically renames source over destination, which may already exist."""
        os.replace(source, destination)
        logger.debug(f"Replaced {destination} with {source}")

    @staticmethod
    def copy(source: str, destination: str):
        """Copies file content and metadata."""
        shutil.copy2(source, destination)
        logger.debug(f"Copied {source} -> {destination}")

    @staticmethod
    def remove(file_path: str, use_trash: bool = False):
        """Removes a file, or sends it to the system trash when use_trash is set."""
        if use_trash:
            FileService.move_to_trash(file_path)
        else:
            os.unlink(file_path)
        logger.debug(f"Removed {file_path} (trash={use_trash})")

    @staticmethod
    def create_symlink(target: str, link_path: str):
        """Creates link_path pointing at target (stored verbatim, so relative stays relative)."""
        os.symlink(target, link_path)
        logger.debug(f"Linked {link_path} -> {target}")

    @staticmethod
    def move_to_trash(file_path: str):
        """Moves a file to the system trash."""
        path = Path(file_path).absolute()

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        try:
            send2trash(str(path))
        except Exception as e:
            raise RuntimeError(f"Failed to move to trash: {e}") from e

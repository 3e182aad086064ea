"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/store.py
Content-addressed store: one regular file per distinct content,
named by the lowercase hex of its SHA-512 hash.

Entries are created by rename only. Once created, an entry is never rewritten during
a run; it is only read back for verification. Entries left by earlier runs are reused.
"""

import os
import logging
from typing import Iterator, Optional
from dedlink.core.models import ContentHash, DuplicateGroup, MemberState
from dedlink.core.errors import StoreIOError
from dedlink.services.file_service import FileService

logger = logging.getLogger(__name__)


class ContentStore:
    """
    Owns the canonical copy of every deduplicated content.

    Attributes:
        root: Absolute path of the store directory
    """

    def __init__(self, root: str, file_service: FileService = None):
        self.root = os.path.abspath(root)
        self.file_service = file_service or FileService()

    def path_for(self, content_hash: ContentHash) -> str:
        """Deterministic `<root>/<hex>` path. No I/O."""
        return os.path.join(self.root, content_hash.hex)

    def contains(self, content_hash: ContentHash) -> bool:
        return os.path.lexists(self.path_for(content_hash))

    def ensure_root(self) -> None:
        """Creates the store directory. Failure is fatal to the whole run."""
        try:
            os.makedirs(self.root, exist_ok=True)
        except OSError as e:
            raise StoreIOError(f"Cannot create store directory {self.root}: {e}", path=self.root) from e
        if not os.path.isdir(self.root):
            raise StoreIOError(f"Store path is not a directory: {self.root}", path=self.root)

    def ensure_canonical(self, group: DuplicateGroup, source: Optional[str] = None) -> MemberState:
        """
        Makes sure the store holds the canonical copy for the group.

        Args:
            group: Group whose hash names the entry
            source: Member to move into the store (defaults to the canonical source)

        Returns:
            ALREADY_MOVED if `source` was renamed into the store,
            STILL_PRESENT if an entry already existed and `source` was left in place.

        Raises:
            StoreIOError: If the rename fails (cross-device, permission, ...)
        """
        source = source or group.canonical_source
        entry = self.path_for(group.content_hash)

        if self.contains(group.content_hash):
            logger.debug(f"Store entry already present: {entry}")
            return MemberState.STILL_PRESENT

        try:
            self.file_service.move(source, entry)
        except OSError as e:
            raise StoreIOError(f"Cannot move {source} into store: {e}", path=source) from e

        logger.info(f"Stored canonical copy {group.content_hash.short()} from {source}")
        return MemberState.ALREADY_MOVED

    def restore(self, content_hash: ContentHash, destination: str) -> None:
        """Moves an entry back out of the store (undo of ensure_canonical)."""
        entry = self.path_for(content_hash)
        try:
            self.file_service.move(entry, destination)
        except OSError as e:
            raise StoreIOError(f"Cannot restore {entry} to {destination}: {e}", path=destination) from e
        logger.warning(f"Restored {destination} from store")

    def entries(self) -> Iterator[str]:
        """Hex names of entries currently in the store."""
        if not os.path.isdir(self.root):
            return
        for name in sorted(os.listdir(self.root)):
            if os.path.isfile(os.path.join(self.root, name)):
                yield name

    def __repr__(self):
        return f"<ContentStore root={self.root}>"

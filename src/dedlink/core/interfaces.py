"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the deduplication system.
These protocols enforce structural typing using Python's `typing.Protocol` so that
components can be swapped in tests without inheritance.

Key Components:
---------------
- HashAlgorithm: Factory for streaming digest objects (SHA-512 by default).
- Fingerprinter: Computes the ContentHash of a file.
- FileScanner: Lazily yields regular-file paths under a root.
- Replacer: Turns one duplicate group into links to a single canonical copy.
"""

from typing import Protocol, Iterator, Optional, Callable
from dedlink.core.models import ContentHash, DuplicateGroup, GroupResult


class Digest(Protocol):
    """Minimal streaming digest API (matches hashlib objects)."""
    def update(self, data: bytes) -> None: ...
    def digest(self) -> bytes: ...


class HashAlgorithm(Protocol):
    """
    Interface for cryptographic hash algorithms.

    Returns a fresh digest object per file so files can be hashed concurrently.
    """
    @staticmethod
    def new() -> Digest:
        ...


class Fingerprinter(Protocol):
    """Interface for computing the content hash of a file."""
    def compute(self, path: str) -> ContentHash:
        """
        Stream the file at `path` through the digest.

        Raises:
            ScanIOError: If the file cannot be opened or read.
        """
        ...


class FileScanner(Protocol):
    """
    Interface for traversing the file system.

    Methods:
        scan: Lazily yields regular-file paths; unreadable entries are skipped.
    """
    def scan(self, stopped_flag: Optional[Callable[[], bool]] = None) -> Iterator[str]:
        ...


class Replacer(Protocol):
    """
    Interface for the destructive step of the pipeline.

    Never called in dry-run mode.
    """
    def replace_group(self, group: DuplicateGroup) -> GroupResult:
        """
        Move the canonical copy into the store and link every member to it.

        Returns:
            GroupResult with per-member failures and any group-fatal error.
        """
        ...

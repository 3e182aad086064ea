"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Error hierarchy for the scan and replace phases.

Scope of each error:
- ScanIOError: aborts the whole run (grouping would be incomplete)
- StoreIOError: aborts one group; aborts the run only when the store root cannot be created
- PathRelativizationError, ReplaceIOError, HashCollisionError: one file only
- IntegrityMismatchError: aborts one group, always reported loudly
"""

from typing import Optional


class DedupError(Exception):
    """Base class for all deduplication errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ScanIOError(DedupError):
    """A file could not be read while computing its fingerprint."""


class StoreIOError(DedupError):
    """Store directory creation or canonical rename failed."""


class PathRelativizationError(DedupError):
    """No relative path exists from a file's directory to the store entry."""


class ReplaceIOError(DedupError):
    """Removing a duplicate or creating its link failed."""


class HashCollisionError(DedupError):
    """Files share a hash but their bytes differ."""


class IntegrityMismatchError(DedupError):
    """Reading through a link does not reproduce the expected hash."""

    def __init__(self, message: str, path: Optional[str] = None,
                 expected: Optional[object] = None, actual: Optional[object] = None):
        super().__init__(message, path)
        self.expected = expected
        self.actual = actual


class OperationCancelled(DedupError):
    """The run was stopped by the user."""

"""
dedlink — content-addressed file deduplication with relative symlinks.

Core features:
- SHA-512 fingerprints computed in a bounded thread pool
- One canonical copy per distinct content in a store directory named by hash
- Every duplicate location becomes a relative symbolic link to that copy
- Post-replacement integrity check by re-hashing through each link
- Dry-run mode that touches nothing; optional byte comparison and trash-based removal
"""

# Get version
try:
    from importlib.metadata import version as _version
    __version__ = _version("dedlink")
except Exception:
    __version__ = "0.1.0"

# Public API: only what users should import directly
from dedlink.commands import DeduplicationCommand
from dedlink.core import (
    DeduplicationParams, DeduplicationEngine, DeduplicationReport, ContentHash,
    DuplicateGroup, GroupOutcome, DedupError)
from dedlink.utils.convert_utils import ConvertUtils
from dedlink.services.file_service import FileService

__all__ = [
    "DeduplicationCommand",
    "DeduplicationParams",
    "DeduplicationEngine",
    "DeduplicationReport",
    "ContentHash",
    "DuplicateGroup",
    "GroupOutcome",
    "DedupError",
    "ConvertUtils",
    "FileService",
    "__version__",
]

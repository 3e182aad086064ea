"""
Core deduplication engine: scanner, fingerprinter, grouper, store, replacer and orchestrator.

This package contains the whole content-addressed deduplication logic:
- FileScannerImpl: lazy recursive traversal yielding regular files
- FingerprinterImpl + Sha512AlgorithmImpl: streaming SHA-512 content hashes
- HashGrouper: hash → group mapping in discovery order
- ContentStore: directory of canonical copies named by hex hash
- ReplacerImpl: moves one canonical copy per group and links every member to it
- DeduplicationEngine: scan phase → replace phase with bounded worker pools
- Models: ContentHash, DuplicateGroup, reports and configuration objects

No console or CLI dependencies; suitable for library use.
"""

from .scanner import FileScannerImpl
from .grouper import HashGrouper
from .hasher import FingerprinterImpl, Sha512AlgorithmImpl
from .store import ContentStore
from .replacer import ReplacerImpl
from .engine import DeduplicationEngine
from .models import (
    ContentHash, DuplicateGroup, DeduplicationParams, DeduplicationReport,
    DeduplicationStats, GroupOutcome, GroupResult, MemberState, DEFAULT_STORE_DIR)
from .errors import (
    DedupError, ScanIOError, StoreIOError, PathRelativizationError, ReplaceIOError,
    HashCollisionError, IntegrityMismatchError, OperationCancelled)

__all__ = [
    "FileScannerImpl",
    "HashGrouper",
    "FingerprinterImpl",
    "Sha512AlgorithmImpl",
    "ContentStore",
    "ReplacerImpl",
    "DeduplicationEngine",
    "ContentHash",
    "DuplicateGroup",
    "DeduplicationParams",
    "DeduplicationReport",
    "DeduplicationStats",
    "GroupOutcome",
    "GroupResult",
    "MemberState",
    "DEFAULT_STORE_DIR",
    "DedupError",
    "ScanIOError",
    "StoreIOError",
    "PathRelativizationError",
    "ReplaceIOError",
    "HashCollisionError",
    "IntegrityMismatchError",
    "OperationCancelled",
]

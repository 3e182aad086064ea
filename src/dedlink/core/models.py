"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models and domain logic for content-addressed deduplication.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Union, Callable
from enum import Enum
import os
import logging

logger = logging.getLogger(__name__)

DEFAULT_STORE_DIR = ".dedlink"
DEFAULT_WORKERS = min(32, (os.cpu_count() or 1) * 4)
HASH_SIZE = 64  # SHA-512 digest length in bytes


# =============================
# Enums
# =============================

class MemberState(Enum):
    """
    State of a group member right before it is turned into a link.
    ALREADY_MOVED: bytes were renamed into the store, only the link is missing.
    STILL_PRESENT: the original file is still there and the link is renamed over it.
    """
    ALREADY_MOVED = "already-moved"
    STILL_PRESENT = "still-present"

    def __repr__(self) -> str:
        return self.value


class GroupOutcome(Enum):
    DEDUPLICATED = "deduplicated"
    SKIPPED_UNIQUE = "skipped-unique"
    PARTIAL = "partial"
    FAILED = "failed"
    PLANNED = "planned"  # dry run: would be deduplicated

    @property
    def display_name(self) -> str:
        """Human-readable name for report output."""
        mapping = {
            GroupOutcome.PLANNED: "Would deduplicate",
            GroupOutcome.DEDUPLICATED: "Deduplicated",
            GroupOutcome.SKIPPED_UNIQUE: "Skipped (unique)",
            GroupOutcome.PARTIAL: "Partially deduplicated",
            GroupOutcome.FAILED: "Failed",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True, order=True)
class ContentHash:
    """Fixed-width SHA-512 digest of a file's full byte stream."""
    digest: bytes

    def __post_init__(self):
        if not isinstance(self.digest, bytes):
            raise ValueError("Digest must be bytes")
        if len(self.digest) != HASH_SIZE:
            raise ValueError(f"Digest must be {HASH_SIZE} bytes, got {len(self.digest)}")

    @property
    def hex(self) -> str:
        """Lowercase hex form, used as the store file name."""
        return self.digest.hex()

    @staticmethod
    def from_hex(value: str) -> 'ContentHash':
        return ContentHash(bytes.fromhex(value))

    def short(self, length: int = 12) -> str:
        return self.hex[:length]

    def __str__(self) -> str:
        return self.hex

    def __repr__(self):
        return f"<ContentHash {self.short()}...>"


@dataclass
class DuplicateGroup:
    """
    Files sharing one ContentHash, in discovery order.
    The first file is the canonical source whose bytes move into the store.
    """
    content_hash: ContentHash
    files: List[str] = field(default_factory=list)
    size: Optional[int] = None  # in bytes, when known

    @property
    def canonical_source(self) -> str:
        if not self.files:
            raise ValueError("Empty group has no canonical source")
        return self.files[0]

    @property
    def duplicate_count(self) -> int:
        """How many files are in this group."""
        return len(self.files)

    def add_file(self, path: str) -> None:
        self.files.append(path)

    def is_duplicate(self) -> bool:
        """True if this group contains at least two files."""
        return self.duplicate_count >= 2

    def __repr__(self):
        return f"<DuplicateGroup hash={self.content_hash.short()}, count={len(self.files)}>"


@dataclass
class MemberFailure:
    path: str
    error: Exception

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass
class GroupResult:
    """Outcome of processing one group during the replace phase."""
    group: DuplicateGroup
    outcome: GroupOutcome
    linked: List[str] = field(default_factory=list)
    failures: List[MemberFailure] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.outcome in (GroupOutcome.FAILED, GroupOutcome.PARTIAL)

    @property
    def bytes_saved(self) -> int:
        """Space regained: every linked member except the one kept in the store."""
        if not self.group.size or not self.linked:
            return 0
        return self.group.size * (len(self.linked) - 1)

    @property
    def reason(self) -> Optional[str]:
        if self.error is not None:
            return f"{type(self.error).__name__}: {self.error}"
        if self.failures:
            return "; ".join(f.reason for f in self.failures)
        return None


@dataclass
class DeduplicationReport:
    """Every group's outcome for one run, in processing order."""
    results: List[GroupResult] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False  # some duplicate groups were never started

    def add(self, result: GroupResult) -> None:
        self.results.append(result)

    @property
    def planned_count(self) -> int:
        return self._count(GroupOutcome.PLANNED)

    def _count(self, outcome: GroupOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def deduplicated_count(self) -> int:
        return self._count(GroupOutcome.DEDUPLICATED)

    @property
    def unique_count(self) -> int:
        return self._count(GroupOutcome.SKIPPED_UNIQUE)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def bytes_saved(self) -> int:
        return sum(r.bytes_saved for r in self.results)

    @property
    def potential_bytes_saved(self) -> int:
        """Space a real run would regain for the planned groups."""
        return sum(
            r.group.size * (r.group.duplicate_count - 1)
            for r in self.results
            if r.outcome == GroupOutcome.PLANNED and r.group.size
        )

    @property
    def has_failures(self) -> bool:
        return self.failed_count > 0

    def __repr__(self):
        return (f"<DeduplicationReport groups={len(self.results)}, "
                f"failed={self.failed_count}, dry_run={self.dry_run}>")


@dataclass
class DeduplicationStats:
    """
    Statistics collected during the scan and replace phases.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}
        self._listeners: List[Callable[[str, Dict], None]] = []

    def add_listener(self, listener: Callable[[str, Dict], None]):
        """Adds a listener to receive updates when stats are updated."""
        self._listeners.append(listener)

    def update_stage(
            self,
            stage_name: str,
            groups_found: int,
            files_processed: int,
            duration: float
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "groups": 0,
                "files": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["groups"] += groups_found
        self.stage_stats[stage_name]["files"] += files_processed
        self.stage_stats[stage_name]["time"] += duration

        for listener in self._listeners:
            try:
                listener(stage_name, self.stage_stats[stage_name])
            except Exception as e:
                logger.warning(f"Error in stats event handler: {e}")

    def print_summary(self) -> str:
        labels = {
            "scan": "🔍 Scan (hash groups)",
            "replace": "🔗 Replace (duplicate groups)",
        }

        lines = [
            "📊 Deduplication Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s\n",
            "Stage: GROUPS / FILES / TIME"
        ]

        for stage, data in self.stage_stats.items():
            label = labels.get(stage.lower(), stage.title())
            lines.append(f"{label}: {data['groups']} / {data['files']} / {data['time']:.3f}s")

        return "\n".join(lines)


"""
DTO for deduplication parameters with built-in validation.
Interface-agnostic: built by the CLI, consumed by the command and engine.
"""

@dataclass
class DeduplicationParams:
    """Parameters for one deduplication run with validation."""
    root: str
    store_root: str = DEFAULT_STORE_DIR
    dry_run: bool = False
    verify_content: bool = False
    use_trash: bool = False
    workers: int = DEFAULT_WORKERS

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if not self.root:
            raise ValueError("Root path cannot be empty")

        if not self.store_root:
            raise ValueError("Store directory cannot be empty")

        if self.workers < 1:
            raise ValueError("Worker count must be at least 1")

        self.root = os.fspath(self.root)
        self.store_root = os.fspath(self.store_root)

    def resolved(self) -> 'DeduplicationParams':
        """Copy with root and store paths made absolute against the current directory."""
        return DeduplicationParams(
            root=os.path.abspath(self.root),
            store_root=os.path.abspath(self.store_root),
            dry_run=self.dry_run,
            verify_content=self.verify_content,
            use_trash=self.use_trash,
            workers=self.workers,
        )

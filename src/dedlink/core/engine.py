"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

engine.py
Two-phase deduplication pipeline:
    - scan: fingerprint every file (bounded thread pool) → hash groups
    - replace: for each group with 2+ members → canonical copy + relative links

The replace phase only starts once the scan has finished, so every group is final
before anything is moved. Groups are disjoint, so they are replaced concurrently.
"""
import os
import time
import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed, Future
from typing import Deque, Dict, Iterable, Optional, Callable, Tuple

from dedlink.core.models import (
    ContentHash, DuplicateGroup, DeduplicationParams, DeduplicationReport,
    DeduplicationStats, GroupOutcome, GroupResult, DEFAULT_WORKERS)
from dedlink.core.errors import ScanIOError, OperationCancelled
from dedlink.core.grouper import HashGrouper, duplicates
from dedlink.core.hasher import FingerprinterImpl
from dedlink.core.interfaces import Fingerprinter, Replacer
from dedlink.core.replacer import ReplacerImpl
from dedlink.core.store import ContentStore
from dedlink.services.file_service import FileService

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, Optional[int]], None]
StoppedFlag = Callable[[], bool]
GroupMapping = Dict[ContentHash, DuplicateGroup]


# =============================
# Main Engine Class
# =============================
class DeduplicationEngine:
    """
    Owns the hash → group mapping for one run and drives scan → replace.

    Attributes:
        fingerprinter: Content hash producer shared by scan and verification
        workers: Upper bound on concurrent fingerprint / replace tasks
    """

    def __init__(
        self,
        fingerprinter: Fingerprinter = None,
        workers: int = DEFAULT_WORKERS,
        file_service: FileService = None,
    ):
        if workers < 1:
            raise ValueError("Worker count must be at least 1")
        self.fingerprinter = fingerprinter or FingerprinterImpl()
        self.workers = workers
        self.file_service = file_service or FileService()

    # -----------------------------
    # Scan phase
    # -----------------------------
    def scan(
        self,
        paths: Iterable[str],
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> GroupMapping:
        """
        Fingerprints every path and groups them by content hash.

        Results are merged in discovery order by this thread only; at most
        `workers * 4` fingerprints are in flight at any time.

        Raises:
            ScanIOError: If any file cannot be read (the whole run must abort)
            OperationCancelled: If stopped_flag returns True before the scan completes
        """
        grouper = HashGrouper()
        pending: Deque[Future] = deque()
        window = self.workers * 4
        processed = 0

        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="dedlink-hash")
        try:
            for path in paths:
                if stopped_flag and stopped_flag():
                    raise OperationCancelled("Scan cancelled by user")
                pending.append(executor.submit(self._fingerprint, path))
                if len(pending) >= window:
                    grouper.record(*pending.popleft().result())
                    processed += 1
                    if progress_callback:
                        progress_callback("scan", processed, None)

            while pending:
                grouper.record(*pending.popleft().result())
                processed += 1
                if progress_callback:
                    progress_callback("scan", processed, None)

            # Traversal may end early on cancellation; a partial mapping is never returned
            if stopped_flag and stopped_flag():
                raise OperationCancelled("Scan cancelled by user")
        except BaseException:
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        groups = grouper.finalize()
        logger.info(f"Scanned {processed} files into {len(groups)} hash groups")
        return groups

    def _fingerprint(self, path: str) -> Tuple[str, ContentHash, int]:
        try:
            size = os.stat(path).st_size
        except OSError as e:
            raise ScanIOError(f"Failed to stat {path}: {e}", path=path) from e
        return path, self.fingerprinter.compute(path), size

    # -----------------------------
    # Replace phase
    # -----------------------------
    def plan(self, groups: GroupMapping) -> DeduplicationReport:
        """Dry-run report: what `replace` would act on, without touching anything."""
        report = DeduplicationReport(dry_run=True)
        for group in groups.values():
            outcome = GroupOutcome.PLANNED if group.is_duplicate() else GroupOutcome.SKIPPED_UNIQUE
            report.add(GroupResult(group=group, outcome=outcome))
        return report

    def replace(
        self,
        groups: GroupMapping,
        replacer: Replacer,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DeduplicationReport:
        """
        Runs the replacer on every group with two or more members.

        Errors inside a group are captured in its GroupResult and never stop other
        groups. On cancellation, groups not yet started are left untouched and
        omitted from the report.
        """
        duplicate_groups = list(duplicates(groups).values())
        total = len(duplicate_groups)
        results: Dict[ContentHash, GroupResult] = {}
        cancelled = False

        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="dedlink-replace")
        try:
            futures = {
                executor.submit(self._replace_one, replacer, group, stopped_flag): group
                for group in duplicate_groups
            }
            for done, future in enumerate(as_completed(futures), 1):
                result = future.result()
                if result is None:
                    cancelled = True
                else:
                    results[futures[future].content_hash] = result
                if progress_callback:
                    progress_callback("replace", done, total)
        except BaseException:
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        report = DeduplicationReport(cancelled=cancelled)
        for content_hash, group in groups.items():
            if not group.is_duplicate():
                report.add(GroupResult(group=group, outcome=GroupOutcome.SKIPPED_UNIQUE))
            elif content_hash in results:
                report.add(results[content_hash])
        return report

    @staticmethod
    def _replace_one(
        replacer: Replacer,
        group: DuplicateGroup,
        stopped_flag: Optional[StoppedFlag]
    ) -> Optional[GroupResult]:
        if stopped_flag and stopped_flag():
            return None
        try:
            return replacer.replace_group(group)
        except Exception as e:
            logger.exception(f"Unexpected error in group {group.content_hash.short()}")
            return GroupResult(group=group, outcome=GroupOutcome.FAILED, error=e)

    # -----------------------------
    # Full run
    # -----------------------------
    def run(
        self,
        paths: Iterable[str],
        params: DeduplicationParams,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None,
        on_scanned: Optional[Callable[[GroupMapping], None]] = None
    ) -> Tuple[GroupMapping, DeduplicationReport, DeduplicationStats]:
        """
        Scan, report, then (unless dry run) replace.

        Args:
            paths: Lazy sequence of file paths from traversal
            params: Run configuration (store location, dry run, options)
            stopped_flag: Returns True when the run should stop
            progress_callback: (phase, current, total) updates
            on_scanned: Receives the full mapping once the scan is complete

        Returns:
            Tuple of (hash → group mapping, report, statistics)

        Raises:
            ScanIOError: A file could not be read during the scan
            StoreIOError: The store directory could not be created
            OperationCancelled: The scan was stopped
        """
        stats = DeduplicationStats()
        total_start_time = time.time()

        start_time = time.time()
        groups = self.scan(paths, stopped_flag=stopped_flag, progress_callback=progress_callback)
        stats.update_stage(
            "scan",
            groups_found=len(groups),
            files_processed=sum(g.duplicate_count for g in groups.values()),
            duration=time.time() - start_time
        )

        if on_scanned:
            on_scanned(groups)

        start_time = time.time()
        if params.dry_run:
            logger.info("Dry run: store and files left untouched")
            report = self.plan(groups)
        else:
            store = ContentStore(params.store_root, file_service=self.file_service)
            store.ensure_root()
            replacer = ReplacerImpl(
                store,
                fingerprinter=self.fingerprinter,
                file_service=self.file_service,
                verify_content=params.verify_content,
                use_trash=params.use_trash,
            )
            report = self.replace(
                groups, replacer, stopped_flag=stopped_flag, progress_callback=progress_callback)

        duplicate_groups = list(duplicates(groups).values())
        stats.update_stage(
            "replace",
            groups_found=len(duplicate_groups),
            files_processed=sum(g.duplicate_count for g in duplicate_groups),
            duration=time.time() - start_time
        )
        stats.total_time = time.time() - total_start_time

        return groups, report, stats

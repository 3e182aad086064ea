"""
Unified command orchestrator for deduplication.
This is the SINGLE source of truth for the workflow; the CLI and library users go through it.
"""
from typing import Dict, List, Optional, Callable, Tuple
from dedlink.core.models import (
    ContentHash, DuplicateGroup, DeduplicationParams, DeduplicationReport, DeduplicationStats)
from dedlink.core.scanner import FileScannerImpl
from dedlink.core.engine import DeduplicationEngine


class DeduplicationCommand:
    """
    Orchestrates the entire deduplication workflow:
    1. Resolve root and store paths
    2. Traverse the root, skipping the store itself
    3. Scan → (report) → replace through the engine

    Usage:
        params = DeduplicationParams(root="~/Downloads", dry_run=True)
        command = DeduplicationCommand()
        groups, report, stats = command.execute(
            params,
            progress_callback=cli_progress_printer,
            stopped_flag=signal_handler_check,
            on_scanned=print_groups
        )
    """

    def __init__(self, engine: Optional[DeduplicationEngine] = None):
        self._engine = engine
        self._groups: Dict[ContentHash, DuplicateGroup] = {}

    def execute(
            self,
            params: DeduplicationParams,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
            stopped_flag: Optional[Callable[[], bool]] = None,
            on_scanned: Optional[Callable[[Dict[ContentHash, DuplicateGroup]], None]] = None
    ) -> Tuple[Dict[ContentHash, DuplicateGroup], DeduplicationReport, DeduplicationStats]:
        """
        Execute deduplication with given parameters.

        Args:
            params: Validated deduplication parameters
            progress_callback: (phase: str, current: int, total: Optional[int]) -> None
            stopped_flag: () -> bool (returns True if operation should stop)
            on_scanned: receives the hash → group mapping before any file is touched

        Returns:
            Tuple of (hash groups, report, statistics)

        Raises:
            ScanIOError: If the root is missing or a file becomes unreadable
            StoreIOError: If the store directory cannot be created
            OperationCancelled: If the scan was stopped
        """
        resolved = params.resolved()
        engine = self._engine or DeduplicationEngine(workers=resolved.workers)

        scanner = FileScannerImpl(
            root=resolved.root,
            excluded_dirs=[resolved.store_root]
        )

        self._groups, report, stats = engine.run(
            scanner.scan(stopped_flag=stopped_flag),
            resolved,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback,
            on_scanned=on_scanned
        )
        return self._groups, report, stats

    def get_duplicate_groups(self) -> List[DuplicateGroup]:
        """Groups with 2+ members from the last execution."""
        return [g for g in self._groups.values() if g.is_duplicate()]

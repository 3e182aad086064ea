#!/usr/bin/env python3
"""
dedlink CLI — command line interface for content-addressed deduplication.
Identical files are moved once into a store and every original location
becomes a relative symbolic link to that copy.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import signal
import sys
import os
import time
from pathlib import Path
from typing import Dict, List, Optional, NoReturn
import logging

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

from dedlink.core.models import (
    ContentHash, DuplicateGroup, DeduplicationParams, DeduplicationReport,
    GroupOutcome, DEFAULT_STORE_DIR, DEFAULT_WORKERS)
from dedlink.core.errors import DedupError, OperationCancelled, ScanIOError, StoreIOError
from dedlink.commands import DeduplicationCommand
from dedlink.utils.convert_utils import ConvertUtils
from dedlink.aliases import STORE_HELP_TEXT, DRY_RUN_HELP_TEXT, VERIFY_HELP_TEXT, EPILOG_TEXT


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self._stop_requested: bool = False

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse and validate command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="dedlink",
            description="dedlink — deduplicate files by symlinking them to a central store",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        # Required arguments
        parser.add_argument(
            "--input", "-i", "--files", "-f",
            required=True,
            type=str,
            dest="input",
            help="File or directory to deduplicate"
        )

        parser.add_argument(
            "--store", "--deduplication-folder",
            default=DEFAULT_STORE_DIR,
            type=str,
            dest="store",
            metavar="DIR",
            help=STORE_HELP_TEXT
        )

        # Actions
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help=DRY_RUN_HELP_TEXT
        )
        parser.add_argument(
            "--verify-content",
            action="store_true",
            help=VERIFY_HELP_TEXT
        )
        parser.add_argument(
            "--trash",
            action="store_true",
            help="Move replaced duplicates to the system trash instead of deleting them"
        )
        parser.add_argument(
            "--workers", "-w",
            default=DEFAULT_WORKERS,
            type=int,
            metavar="N",
            help=f"Concurrent hashing/replacing tasks. Default: {DEFAULT_WORKERS}"
        )

        # Output options
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show every hash group, progress and statistics"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.verbose and args.quiet:
            self.error_exit("--verbose and --quiet cannot be used together")

        if args.workers < 1:
            self.error_exit("--workers must be at least 1")

        root_path = Path(args.input)
        if not os.path.lexists(root_path):
            self.error_exit(f"Path not found: {args.input}")

        store_path = Path(args.store)
        if store_path.exists() and not store_path.is_dir():
            self.error_exit(f"Store path is not a directory: {args.store}")

        if args.trash and args.dry_run:
            self.warning("--trash has no effect with --dry-run")

    def create_params(self, args: argparse.Namespace) -> DeduplicationParams:
        """Create DeduplicationParams from CLI arguments."""
        try:
            return DeduplicationParams(
                root=args.input,
                store_root=args.store,
                dry_run=args.dry_run,
                verify_content=args.verify_content,
                use_trash=args.trash,
                workers=args.workers,
            ).resolved()
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def configure_logging(self) -> None:
        if self.verbose:
            level = logging.INFO
        elif self.quiet:
            level = logging.ERROR
        else:
            level = logging.WARNING
        logging.getLogger().setLevel(level)

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
        sys.stderr.flush()

    def stopped_flag(self) -> bool:
        """Polled by the engine between files and between groups."""
        return self._stop_requested

    def request_stop(self, signum=None, frame=None) -> None:
        """First Ctrl+C: finish the groups in progress, then stop. Second: abort now."""
        if self._stop_requested:
            raise KeyboardInterrupt
        self._stop_requested = True
        self.warning("Stopping after the groups in progress (press Ctrl+C again to abort)")

    def output_groups(self, groups: Dict[ContentHash, DuplicateGroup]) -> None:
        """Print hash groups found by the scan (duplicates only unless verbose)."""
        if self.quiet:
            return

        if self.verbose:
            sys.stderr.write("\n")

        shown: List[DuplicateGroup] = [
            g for g in groups.values() if self.verbose or g.is_duplicate()
        ]
        if not shown:
            print("No duplicate groups found.")
            return

        duplicates = sum(1 for g in groups.values() if g.is_duplicate())
        print(f"\nFound {len(groups)} distinct contents, {duplicates} with duplicates")
        for group in shown:
            size_str = ConvertUtils.bytes_to_human(group.size or 0)
            print(f"\nHash {group.content_hash.hex}: [{size_str}]")
            for path in group.files:
                print(f"|--  {path}")

    def output_report(self, report: DeduplicationReport) -> None:
        """Print every group's outcome and the totals."""
        if self.quiet and not report.has_failures:
            return

        acted_on = [r for r in report.results if r.outcome != GroupOutcome.SKIPPED_UNIQUE]
        if acted_on:
            print()
        for result in acted_on:
            if self.quiet and not result.failed:
                continue
            group = result.group
            marker = "✅" if result.outcome in (GroupOutcome.DEDUPLICATED, GroupOutcome.PLANNED) else "⚠️ "
            print(f"{marker} {result.outcome.display_name}: {group.content_hash.short()} "
                  f"({group.duplicate_count} files)")
            if result.error is not None:
                print(f"     Reason: {type(result.error).__name__}: {result.error}")
            for failure in result.failures:
                print(f"     {ConvertUtils.shorten_path(failure.path)}: {failure.reason}")

        if self.quiet:
            return

        print("=" * 60)
        if report.dry_run:
            print(f"Dry run: {report.planned_count} groups would be deduplicated, "
                  f"{report.unique_count} unique files left untouched")
            print(f"Space that would be saved: {ConvertUtils.bytes_to_human(report.potential_bytes_saved)}")
        else:
            print(f"Summary: {report.deduplicated_count} deduplicated, {report.failed_count} failed, "
                  f"{report.unique_count} unique files left untouched")
            print(f"Total space saved: {ConvertUtils.bytes_to_human(report.bytes_saved)}")
        if report.cancelled:
            print("⚠️  Run was cancelled: remaining groups were left untouched")

    def run_deduplication(self, params: DeduplicationParams) -> DeduplicationReport:
        """Execute deduplication workflow."""
        command = DeduplicationCommand()
        previous_handler = signal.signal(signal.SIGINT, self.request_stop)
        try:
            _, report, stats = command.execute(
                params,
                progress_callback=self.progress_callback if self.verbose else None,
                stopped_flag=self.stopped_flag,
                on_scanned=self.output_groups if (self.verbose or params.dry_run) else None
            )
        except OperationCancelled:
            raise
        except ScanIOError as e:
            self.error_exit(f"Scan aborted: {e}")
        except StoreIOError as e:
            self.error_exit(f"Store unavailable: {e}")
        except DedupError as e:
            self.error_exit(f"Deduplication failed: {e}")
        finally:
            signal.signal(signal.SIGINT, previous_handler)

        if self.verbose:
            sys.stderr.write("\n")
            print("\n" + stats.print_summary())

        return report

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> int:
        """Main entry point. Returns the process exit code."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        self.configure_logging()

        self.validate_args(args)
        params = self.create_params(args)

        if not self.quiet:
            mode = " (dry run)" if params.dry_run else ""
            print(f"Scanning: {params.root}{mode}")
            if not params.dry_run:
                print(f"Store: {params.store_root}")

        report = self.run_deduplication(params)
        self.output_report(report)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")

        if report.has_failures:
            return 1
        return 130 if report.cancelled else 0


def main(argv=None) -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        code = app.run(argv)
    except (KeyboardInterrupt, OperationCancelled):
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()

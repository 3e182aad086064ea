"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/replacer.py
Replaces every member of a duplicate group with a relative symlink to the
group's canonical copy in the store.

ALGORITHM
---------
1. Compute a relative link target for each member (per-file failure on error)
2. Check a pre-existing store entry still hashes to the group hash
3. Move the canonical source into the store, unless an entry already exists
4. Per member, by MemberState:
     ALREADY_MOVED  → create the link
     STILL_PRESENT  → (optional byte comparison) create the link beside the file,
                      then rename it over the file
5. Re-hash each link through the fingerprinter and compare with the group hash

A failure on one member does not stop the others, except an integrity mismatch,
which stops the group.
"""

import os
import filecmp
import uuid
import logging
from typing import Dict
from dedlink.core.models import (
    DuplicateGroup, GroupResult, GroupOutcome, MemberFailure, MemberState)
from dedlink.core.errors import (
    StoreIOError, PathRelativizationError, ReplaceIOError,
    HashCollisionError, IntegrityMismatchError, ScanIOError)
from dedlink.core.interfaces import Replacer, Fingerprinter
from dedlink.core.hasher import FingerprinterImpl
from dedlink.core.store import ContentStore
from dedlink.services.file_service import FileService

logger = logging.getLogger(__name__)


def device_id(path: str) -> int:
    """Device number of the filesystem holding path."""
    return os.stat(path).st_dev


def temporary_link_path(path: str) -> str:
    """Hidden sibling name used while a link is being put in place."""
    directory, name = os.path.split(path)
    return os.path.join(directory, f".{name}.{uuid.uuid4().hex[:8]}.dedlink-tmp")


def relative_link_target(target: str, link_path: str, store_device: int = None) -> str:
    """
    Relative path from link_path's parent directory to target.

    Both sides are resolved with realpath: the kernel follows a relative link from the
    directory it physically lives in, not from the spelling of link_path.

    Raises:
        PathRelativizationError: If the paths share no common root (e.g. different
            drives) or, when store_device is given, the link's directory lives on a
            different filesystem than the store.
    """
    parent = os.path.realpath(os.path.dirname(os.path.abspath(link_path)))
    if store_device is not None:
        try:
            parent_device = device_id(parent)
        except OSError as e:
            raise PathRelativizationError(f"Cannot stat {parent}: {e}", path=link_path) from e
        if parent_device != store_device:
            raise PathRelativizationError(
                f"{link_path} is on a different filesystem than the store", path=link_path)
    try:
        return os.path.relpath(os.path.realpath(target), start=parent)
    except ValueError as e:
        raise PathRelativizationError(
            f"No relative path from {parent} to {target}: {e}", path=link_path) from e


class ReplacerImpl(Replacer):
    """
    Destructive half of the pipeline. Must never be called in dry-run mode.

    Attributes:
        store: Content store holding canonical copies
        fingerprinter: Used to check store entries and links after replacement
        verify_content: Compare bytes before removing a duplicate
        use_trash: Send removed duplicates to the system trash
    """

    def __init__(
        self,
        store: ContentStore,
        fingerprinter: Fingerprinter = None,
        file_service: FileService = None,
        verify_content: bool = False,
        use_trash: bool = False,
    ):
        self.store = store
        self.fingerprinter = fingerprinter or FingerprinterImpl()
        self.file_service = file_service or store.file_service
        self.verify_content = verify_content
        self.use_trash = use_trash

    def replace_group(self, group: DuplicateGroup) -> GroupResult:
        if not group.is_duplicate():
            return GroupResult(group=group, outcome=GroupOutcome.SKIPPED_UNIQUE)

        result = GroupResult(group=group, outcome=GroupOutcome.FAILED)
        entry = self.store.path_for(group.content_hash)

        try:
            store_device = device_id(self.store.root)
        except OSError as e:
            result.error = StoreIOError(f"Cannot stat store {self.store.root}: {e}", path=self.store.root)
            return result

        targets: Dict[str, str] = {}
        for path in group.files:
            try:
                targets[path] = relative_link_target(entry, path, store_device)
            except PathRelativizationError as e:
                logger.warning(f"Skipping {path}: {e}")
                result.failures.append(MemberFailure(path, e))

        members = [p for p in group.files if p in targets]
        if not members:
            return result

        # First relativizable member in discovery order holds the bytes
        source = members[0]
        try:
            if self.store.contains(group.content_hash):
                self._check_entry(group, entry)
            source_state = self.store.ensure_canonical(group, source=source)
        except IntegrityMismatchError as e:
            logger.error(f"❌ Store entry {entry} is corrupt: {e}")
            result.error = e
            return result
        except StoreIOError as e:
            logger.warning(f"Group {group.content_hash.short()} failed: {e}")
            result.error = e
            return result

        for path in members:
            state = source_state if path == source else MemberState.STILL_PRESENT
            try:
                self._link_member(group, path, targets[path], state)
            except IntegrityMismatchError as e:
                logger.error(f"❌ Integrity check failed for {path}: {e}")
                result.error = e
                break
            except StoreIOError as e:
                logger.warning(f"Group {group.content_hash.short()} failed: {e}")
                result.error = e
                break
            except (ReplaceIOError, HashCollisionError) as e:
                logger.warning(f"Skipping {path}: {e}")
                result.failures.append(MemberFailure(path, e))
                continue
            result.linked.append(path)

        result.outcome = self._outcome(result)
        logger.info(
            f"Group {group.content_hash.short()}: {result.outcome.value} "
            f"({len(result.linked)}/{group.duplicate_count} linked)")
        return result

    def _link_member(self, group: DuplicateGroup, path: str, target: str, state: MemberState) -> None:
        entry = self.store.path_for(group.content_hash)

        if state is MemberState.ALREADY_MOVED:
            try:
                self.file_service.create_symlink(target, path)
            except OSError as e:
                # Put the bytes back so the location is not left empty
                self.store.restore(group.content_hash, path)
                raise StoreIOError(f"Cannot link {path}, original restored: {e}", path=path) from e
            try:
                self._verify_link(group, path)
            except IntegrityMismatchError:
                # The rename over the link puts the original bytes back in place
                try:
                    self.store.restore(group.content_hash, path)
                except StoreIOError as e:
                    logger.error(f"❌ {e}")
                raise
            return

        if self.verify_content:
            try:
                same = filecmp.cmp(path, entry, shallow=False)
            except OSError as e:
                raise ReplaceIOError(f"Cannot compare {path} with {entry}: {e}", path=path) from e
            if not same:
                raise HashCollisionError(f"{path} shares a hash with {entry} but differs", path=path)

        self._swap_in_link(path, target, entry)
        self._verify_link(group, path)

    def _swap_in_link(self, path: str, target: str, entry: str) -> None:
        """
        Replaces the file at path with a link to target.

        The link is created beside the file first and renamed over it, so the file is
        only gone once its link is in place. In trash mode the file is trashed between
        the two steps; if the final rename then fails, a copy of the entry is put back.
        """
        staging = temporary_link_path(path)
        try:
            self.file_service.create_symlink(target, staging)
        except OSError as e:
            raise ReplaceIOError(f"Cannot link {path}: {e}", path=path) from e

        trashed = False
        try:
            if self.use_trash and os.path.lexists(path):
                self.file_service.remove(path, use_trash=True)
                trashed = True
            self.file_service.replace(staging, path)
        except (OSError, RuntimeError) as e:
            self._discard(staging)
            if trashed:
                self._recover_copy(entry, path)
            raise ReplaceIOError(f"Cannot replace {path}: {e}", path=path) from e

    def _discard(self, staging: str) -> None:
        try:
            if os.path.lexists(staging):
                os.unlink(staging)
        except OSError as e:
            logger.warning(f"Could not remove temporary link {staging}: {e}")

    def _recover_copy(self, entry: str, path: str) -> None:
        try:
            self.file_service.copy(entry, path)
        except OSError as e:
            raise ReplaceIOError(
                f"{path} was trashed and could not be restored from {entry}: {e}", path=path) from e
        logger.warning(f"Restored {path} from store after a failed replace")

    def _verify_link(self, group: DuplicateGroup, path: str) -> None:
        """Reading through the new link must reproduce the group hash."""
        try:
            actual = self.fingerprinter.compute(path)
        except ScanIOError as e:
            raise IntegrityMismatchError(
                f"Cannot read through link {path}: {e}", path=path,
                expected=group.content_hash) from e
        if actual != group.content_hash:
            raise IntegrityMismatchError(
                f"{path} resolves to {actual.short()}..., expected {group.content_hash.short()}...",
                path=path, expected=group.content_hash, actual=actual)

    def _check_entry(self, group: DuplicateGroup, entry: str) -> None:
        """A reused store entry must still hold the content it is named after."""
        try:
            actual = self.fingerprinter.compute(entry)
        except ScanIOError as e:
            raise IntegrityMismatchError(
                f"Cannot read store entry {entry}: {e}", path=entry,
                expected=group.content_hash) from e
        if actual != group.content_hash:
            raise IntegrityMismatchError(
                f"Store entry {entry} hashes to {actual.short()}...", path=entry,
                expected=group.content_hash, actual=actual)

    @staticmethod
    def _outcome(result: GroupResult) -> GroupOutcome:
        if result.error is not None or not result.linked:
            return GroupOutcome.FAILED
        if result.failures:
            return GroupOutcome.PARTIAL
        return GroupOutcome.DEDUPLICATED



"""
Unit tests for ContentStore.
Verifies entry naming, rename-only canonicalization and reuse of existing entries.
"""
import os
from unittest import mock
import pytest
from dedlink.core.store import ContentStore
from dedlink.core.models import DuplicateGroup, MemberState
from dedlink.core.errors import StoreIOError
from dedlink.services.file_service import FileService
from conftest import sha512_of


class TestPathFor:
    def test_entry_is_named_by_hex_hash(self, tmp_path):
        store = ContentStore(str(tmp_path / "store"))
        h = sha512_of(b"hello")

        assert store.path_for(h) == os.path.join(str(tmp_path / "store"), h.hex)

    def test_path_for_does_no_io(self, tmp_path):
        """Computing a path must not create the store."""
        store = ContentStore(str(tmp_path / "store"))
        store.path_for(sha512_of(b"x"))

        assert not (tmp_path / "store").exists()

    def test_relative_root_is_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        store = ContentStore(".dedlink")

        assert store.root == os.path.join(str(tmp_path), ".dedlink")


class TestEnsureRoot:
    def test_creates_nested_directories(self, tmp_path):
        store = ContentStore(str(tmp_path / "a" / "b" / "store"))
        store.ensure_root()

        assert (tmp_path / "a" / "b" / "store").is_dir()

    def test_existing_root_is_fine(self, tmp_path):
        store = ContentStore(str(tmp_path))
        store.ensure_root()
        store.ensure_root()

    def test_file_in_the_way_raises_store_error(self, tmp_path):
        blocker = tmp_path / "store"
        blocker.write_text("not a directory")

        with pytest.raises(StoreIOError):
            ContentStore(str(blocker)).ensure_root()


class TestEnsureCanonical:
    def _setup(self, tmp_path, content=b"hello"):
        a = tmp_path / "a.txt"
        b = tmp_path / "b.txt"
        a.write_bytes(content)
        b.write_bytes(content)
        store = ContentStore(str(tmp_path / "store"))
        store.ensure_root()
        group = DuplicateGroup(sha512_of(content), [str(a), str(b)], len(content))
        return store, group, a, b

    def test_moves_canonical_source_into_store(self, tmp_path):
        store, group, a, b = self._setup(tmp_path)
        inode = os.stat(a).st_ino

        state = store.ensure_canonical(group)

        assert state is MemberState.ALREADY_MOVED
        assert not a.exists()
        assert b.exists()
        entry = store.path_for(group.content_hash)
        assert open(entry, "rb").read() == b"hello"
        # Renamed, not copied
        assert os.stat(entry).st_ino == inode

    def test_explicit_source_is_moved_instead(self, tmp_path):
        store, group, a, b = self._setup(tmp_path)

        store.ensure_canonical(group, source=str(b))

        assert a.exists()
        assert not b.exists()

    def test_existing_entry_is_left_untouched(self, tmp_path):
        """Entries from an earlier run are reused; the source stays where it is."""
        store, group, a, b = self._setup(tmp_path)
        entry = store.path_for(group.content_hash)
        with open(entry, "wb") as f:
            f.write(b"hello")
        inode = os.stat(entry).st_ino

        state = store.ensure_canonical(group)

        assert state is MemberState.STILL_PRESENT
        assert a.exists()
        assert os.stat(entry).st_ino == inode
        assert sorted(store.entries()) == [group.content_hash.hex]

    def test_rename_failure_raises_store_error(self, tmp_path):
        store, group, a, b = self._setup(tmp_path)

        with mock.patch.object(FileService, "move", side_effect=OSError(18, "Invalid cross-device link")):
            with pytest.raises(StoreIOError) as exc_info:
                store.ensure_canonical(group)

        assert exc_info.value.path == str(a)
        assert a.exists()
        assert not store.contains(group.content_hash)

    def test_restore_moves_entry_back(self, tmp_path):
        store, group, a, b = self._setup(tmp_path)
        store.ensure_canonical(group)

        store.restore(group.content_hash, str(a))

        assert a.read_bytes() == b"hello"
        assert not store.contains(group.content_hash)

    def test_entries_lists_hex_names(self, tmp_path):
        store, group, a, b = self._setup(tmp_path)
        assert list(store.entries()) == []

        store.ensure_canonical(group)

        assert list(store.entries()) == [group.content_hash.hex]

    def test_entries_of_missing_store_is_empty(self, tmp_path):
        assert list(ContentStore(str(tmp_path / "nope")).entries()) == []

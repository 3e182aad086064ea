"""
Tests for file service — the only place files are renamed, removed or linked.
"""
import os
from unittest import mock
import pytest
from dedlink.services import file_service as file_service_module
from dedlink.services.file_service import FileService


class TestMove:
    def test_rename_keeps_inode(self, tmp_path):
        source = tmp_path / "a.txt"
        source.write_bytes(b"data")
        inode = os.stat(source).st_ino

        FileService.move(str(source), str(tmp_path / "b.txt"))

        assert not source.exists()
        assert os.stat(tmp_path / "b.txt").st_ino == inode

    def test_missing_source_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            FileService.move(str(tmp_path / "missing"), str(tmp_path / "b.txt"))


class TestCreateSymlink:
    def test_relative_target_is_stored_verbatim(self, tmp_path):
        (tmp_path / "store").mkdir()
        (tmp_path / "store" / "entry").write_bytes(b"data")
        link = tmp_path / "link.txt"

        FileService.create_symlink(os.path.join("store", "entry"), str(link))

        assert os.readlink(link) == os.path.join("store", "entry")
        assert link.read_bytes() == b"data"

    def test_existing_path_raises(self, tmp_path):
        occupied = tmp_path / "occupied"
        occupied.write_bytes(b"x")

        with pytest.raises(FileExistsError):
            FileService.create_symlink("anything", str(occupied))


class TestRemove:
    def test_unlinks_file(self, tmp_path):
        victim = tmp_path / "dup.txt"
        victim.write_bytes(b"x")

        FileService.remove(str(victim))

        assert not victim.exists()

    def test_trash_mode_uses_send2trash(self, tmp_path):
        victim = tmp_path / "dup.txt"
        victim.write_bytes(b"x")

        with mock.patch.object(file_service_module, "send2trash") as mock_trash:
            FileService.remove(str(victim), use_trash=True)

        mock_trash.assert_called_once_with(str(victim.absolute()))


class TestMoveToTrash:
    def test_nonexistent_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="File not found"):
            FileService.move_to_trash(str(tmp_path / "does_not_exist.txt"))

    def test_send2trash_failure_is_wrapped(self, tmp_path):
        victim = tmp_path / "dup.txt"
        victim.write_bytes(b"x")

        with mock.patch.object(file_service_module, "send2trash", side_effect=OSError("no trash")):
            with pytest.raises(RuntimeError, match="Failed to move to trash"):
                FileService.move_to_trash(str(victim))

        assert victim.exists()


class TestReplace:
    def test_link_takes_the_place_of_a_file(self, tmp_path):
        (tmp_path / "entry").write_bytes(b"data")
        victim = tmp_path / "dup.txt"
        victim.write_bytes(b"data")
        staging = tmp_path / ".dup.txt.tmp"
        os.symlink("entry", staging)

        FileService.replace(str(staging), str(victim))

        assert victim.is_symlink()
        assert os.readlink(victim) == "entry"
        assert not os.path.lexists(staging)

    def test_missing_source_keeps_destination(self, tmp_path):
        victim = tmp_path / "dup.txt"
        victim.write_bytes(b"data")

        with pytest.raises(OSError):
            FileService.replace(str(tmp_path / "missing"), str(victim))

        assert victim.read_bytes() == b"data"


class TestCopy:
    def test_copies_bytes_and_keeps_source(self, tmp_path):
        source = tmp_path / "entry"
        source.write_bytes(b"data")

        FileService.copy(str(source), str(tmp_path / "restored.txt"))

        assert (tmp_path / "restored.txt").read_bytes() == b"data"
        assert source.exists()

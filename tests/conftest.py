"""
Shared fixtures for deduplication tests.
Creates isolated temporary directories with controlled test files.
"""
import hashlib
import os
import pytest
import tempfile
from pathlib import Path
from typing import Dict
import sys

# Make the src/ layout importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from dedlink.core.models import ContentHash


def sha512_of(content: bytes) -> ContentHash:
    return ContentHash(hashlib.sha512(content).digest())


def snapshot(root: Path) -> Dict[str, tuple]:
    """(kind, content or link target) for every entry under root."""
    state = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            path = os.path.join(dirpath, name)
            rel = os.path.relpath(path, root)
            if os.path.islink(path):
                state[rel] = ("link", os.readlink(path))
            elif os.path.isdir(path):
                state[rel] = ("dir", None)
            else:
                state[rel] = ("file", Path(path).read_bytes())
    return state


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def tree(temp_dir) -> Dict[str, Path]:
    """
    Example tree:
    - a.txt and b/c.txt share content "hello"
    - d.txt is unique ("world")
    Store lives outside the scanned root.
    """
    root = temp_dir / "root"
    (root / "b").mkdir(parents=True)

    files = {
        "root": root,
        "store": temp_dir / "store",
        "a": root / "a.txt",
        "c": root / "b" / "c.txt",
        "d": root / "d.txt",
    }
    files["a"].write_bytes(b"hello")
    files["c"].write_bytes(b"hello")
    files["d"].write_bytes(b"world")
    return files


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Larger tree for engine scenarios:
    - 3 copies of 1KB of 'A' (one in a subdirectory)
    - 2 copies of 2KB of 'B'
    - 2 unique files
    - 2 empty files (they are duplicates of each other too)
    """
    files = {}

    content_a = b"A" * 1024
    files["dup1_a"] = temp_dir / "dup1_a.txt"
    files["dup1_b"] = temp_dir / "dup1_b.txt"
    files["dup1_a"].write_bytes(content_a)
    files["dup1_b"].write_bytes(content_a)

    content_b = b"B" * 2048
    files["dup2_a"] = temp_dir / "dup2_a.bin"
    files["dup2_b"] = temp_dir / "dup2_b.bin"
    files["dup2_a"].write_bytes(content_b)
    files["dup2_b"].write_bytes(content_b)

    files["unique1"] = temp_dir / "unique1.txt"
    files["unique1"].write_bytes(b"C" * 1500)
    files["unique2"] = temp_dir / "unique2.txt"
    files["unique2"].write_bytes(b"D" * 2500)

    files["empty1"] = temp_dir / "empty1.txt"
    files["empty1"].write_bytes(b"")
    files["empty2"] = temp_dir / "empty2.txt"
    files["empty2"].write_bytes(b"")

    subdir = temp_dir / "subdir" / "deeper"
    subdir.mkdir(parents=True)
    files["sub_dup"] = subdir / "dup_in_subdir.txt"
    files["sub_dup"].write_bytes(content_a)

    return files

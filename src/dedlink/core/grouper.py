"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Aggregates (path, hash) pairs into duplicate groups.
"""

from typing import Dict, Optional, Set
from dedlink.core.models import ContentHash, DuplicateGroup


class HashGrouper:
    """
    Builds the hash → group mapping in discovery order.
    Not thread-safe: a single owner (the engine's merge loop) records all results.
    """

    def __init__(self):
        self._groups: Dict[ContentHash, DuplicateGroup] = {}
        self._seen: Set[str] = set()
        self._finalized = False

    def record(self, path: str, content_hash: ContentHash, size: Optional[int] = None) -> None:
        """Appends path to the group for content_hash, creating it if absent."""
        if self._finalized:
            raise RuntimeError("Cannot record into a finalized grouper")
        if path in self._seen:
            raise ValueError(f"Path recorded twice: {path}")
        self._seen.add(path)

        group = self._groups.get(content_hash)
        if group is None:
            group = DuplicateGroup(content_hash=content_hash, size=size)
            self._groups[content_hash] = group
        group.add_file(path)

    def finalize(self) -> Dict[ContentHash, DuplicateGroup]:
        """Returns the full mapping; the grouper accepts no more records afterwards."""
        self._finalized = True
        return dict(self._groups)

    def __len__(self) -> int:
        return len(self._seen)


def duplicates(groups: Dict[ContentHash, DuplicateGroup]) -> Dict[ContentHash, DuplicateGroup]:
    """Groups with two or more members."""
    return {h: g for h, g in groups.items() if g.is_duplicate()}

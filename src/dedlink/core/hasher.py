"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Implements file fingerprinting with pluggable hash algorithms.

Files are streamed through the digest in fixed-size chunks, so memory use does not
depend on file size.
"""

import hashlib
import logging
from dedlink.core.models import ContentHash
from dedlink.core.errors import ScanIOError
from dedlink.core.interfaces import Fingerprinter, HashAlgorithm, Digest

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 64 * 1024


# Use the same way to implement and use any other 512-bit algorithm
class Sha512AlgorithmImpl(HashAlgorithm):
    @staticmethod
    def new() -> Digest:
        return hashlib.sha512()


class FingerprinterImpl(Fingerprinter):
    """
    A fingerprinter that supports any algorithm via the HashAlgorithm interface.
    Symbolic links are followed, so a link hashes like its target.
    """

    def __init__(self, algorithm: HashAlgorithm = None, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size <= 0:
            raise ValueError("Buffer size must be positive")
        self.algorithm = algorithm or Sha512AlgorithmImpl()
        self.buffer_size = buffer_size

    def compute(self, path: str) -> ContentHash:
        digest = self.algorithm.new()
        try:
            with open(path, 'rb') as f:
                while True:
                    chunk = f.read(self.buffer_size)
                    if not chunk:
                        break
                    digest.update(chunk)
        except OSError as e:
            raise ScanIOError(f"Failed to read {path}: {e}", path=path) from e
        return ContentHash(digest.digest())

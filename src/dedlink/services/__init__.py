"""Filesystem services used by the replace phase."""

from .file_service import FileService

__all__ = ["FileService"]

"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.5KB, 3.2MB).
        """
        if size_bytes < 0:
            return "0B"

        units = ["B", "KB", "MB", "GB", "TB", "PB"]
        for unit in units:
            if size_bytes < 1024:
                return f"{size_bytes:.2f}{unit}"
            size_bytes /= 1024
        return f"{size_bytes:.2f}EB"

    @staticmethod
    def shorten_path(path: str, max_length: int = 60) -> str:
        """Keep the tail of long paths for one-line report output."""
        if max_length < 4 or len(path) <= max_length:
            return path
        return "..." + path[-(max_length - 3):]

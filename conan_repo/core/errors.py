from __future__ import annotations

from typing import Optional


class RepositoryError(Exception):
    """Base class for errors raised by the repository core and storage."""


class NotFoundError(RepositoryError):
    def __init__(self, key: str):
        super().__init__(f"Key not found: {key}")
        self.key = key


class CorruptIndexError(RepositoryError):
    """
    A revision index blob holds content that is not a sorted list of
    non-negative decimal integers.
    """

    def __init__(self, key: str, line_no: int, line: str, reason: Optional[str] = None):
        message = f"Corrupt revision index {key} at line {line_no}: {line!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.key = key
        self.line_no = line_no
        self.line = line


class StorageIOError(RepositoryError):
    def __init__(self, key: str, message: str = "storage operation failed"):
        super().__init__(f"{message}: {key}")
        self.key = key

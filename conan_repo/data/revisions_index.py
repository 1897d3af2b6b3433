"""
Revision index stored as a text blob.

Format: one non-negative decimal integer per line, strictly ascending, every
line newline-terminated. A missing key or an empty blob is the empty index.
"""
from __future__ import annotations

import bisect
import re
from typing import List, Optional

from conan_repo.core.errors import CorruptIndexError, NotFoundError
from conan_repo.storage.base import Storage, normalize_key
from conan_repo.storage.locks import KeyLocks

_REVISION_LINE = re.compile(r"[0-9]+")


def parse_revisions(key: str, data: bytes) -> List[int]:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CorruptIndexError(key, 0, repr(data[:32]), "not valid UTF-8") from e

    revisions: List[int] = []
    for line_no, line in enumerate(text.split("\n"), start=1):
        line = line.strip(" \t\r")
        if not line:
            continue
        if not _REVISION_LINE.fullmatch(line):
            raise CorruptIndexError(key, line_no, line, "not a non-negative integer")
        try:
            rev = int(line)
        except ValueError as e:
            # Longer than the interpreter's int conversion limit.
            raise CorruptIndexError(key, line_no, line[:32] + "...", str(e)) from e
        if revisions and rev <= revisions[-1]:
            raise CorruptIndexError(key, line_no, line, "revisions not strictly ascending")
        revisions.append(rev)
    return revisions


def format_revisions(revisions: List[int]) -> bytes:
    return "".join(f"{rev}\n" for rev in revisions).encode("utf-8")


def _check_revision(rev: int) -> None:
    if isinstance(rev, bool) or not isinstance(rev, int):
        raise ValueError(f"Revision must be an integer, got {rev!r}")
    if rev < 0:
        raise ValueError(f"Revision must be non-negative, got {rev}")
    try:
        str(rev)
    except ValueError as e:
        raise ValueError(f"Revision is too large to be stored: {e}") from None


class RevisionsIndex:
    """
    Sorted, duplicate-free revision list kept under one storage key.

    Mutations on the same key are serialized through a per-key lock, so
    concurrent additions and removals never lose each other's updates.
    Mutations on different keys run independently.
    """

    def __init__(self, storage: Storage, locks: Optional[KeyLocks] = None):
        self.storage = storage
        self.locks = locks if locks is not None else KeyLocks()

    async def get_revisions(self, key: str) -> List[int]:
        key = normalize_key(key)
        try:
            data = await self.storage.value(key)
        except NotFoundError:
            return []
        return parse_revisions(key, data)

    async def get_last_rev(self, key: str) -> int:
        revisions = await self.get_revisions(key)
        if not revisions:
            return -1
        return revisions[-1]

    async def add_to_revdata(self, rev: int, key: str) -> None:
        key = normalize_key(key)
        _check_revision(rev)
        async with self.locks.hold(key):
            revisions = await self.get_revisions(key)
            pos = bisect.bisect_left(revisions, rev)
            if pos < len(revisions) and revisions[pos] == rev:
                return
            revisions.insert(pos, rev)
            await self.storage.save(key, format_revisions(revisions))

    async def remove_revision(self, rev: int, key: str) -> None:
        key = normalize_key(key)
        _check_revision(rev)
        async with self.locks.hold(key):
            revisions = await self.get_revisions(key)
            remaining = [r for r in revisions if r != rev]
            if len(remaining) == len(revisions):
                return
            await self.storage.save(key, format_revisions(remaining))

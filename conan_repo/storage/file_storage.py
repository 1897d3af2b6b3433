from __future__ import annotations

import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import List

import aiofiles
import aiofiles.os

from conan_repo.core.errors import NotFoundError, StorageIOError
from conan_repo.storage.base import Storage, normalize_key

logger = logging.getLogger(__name__)

# Suffix of in-flight writes; such files are never reported as keys.
_PARTIAL_SUFFIX = ".part"


class FileStorage(Storage):
    """
    Storage backed by a directory tree: key "a/b/c.txt" lives at <root>/a/b/c.txt.

    Writes go to a hidden temporary file next to the target and are moved into
    place with os.replace, so readers see either the old or the new content.
    """

    def __init__(self, root: Path):
        self._root = Path(root)
        if not self._root.exists():
            self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        return self._root.joinpath(*key.split("/")) if key else self._root

    async def exists(self, key: str) -> bool:
        key = normalize_key(key)
        if not key:
            return False
        return await aiofiles.os.path.isfile(self._path(key))

    async def value(self, key: str) -> bytes:
        key = normalize_key(key)
        path = self._path(key)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise NotFoundError(key) from None
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageIOError(key, f"read failed ({e})") from e

    async def save(self, key: str, data: bytes) -> None:
        key = normalize_key(key)
        if not key:
            raise ValueError("Cannot save under an empty key")
        path = self._path(key)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}{_PARTIAL_SUFFIX}")
        try:
            try:
                await self._write(path, tmp_path, data)
            except FileNotFoundError:
                # A concurrent delete pruned the parent directory; recreate it once.
                logger.debug(f"Parent of {key} vanished during save, retrying")
                await self._write(path, tmp_path, data)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise StorageIOError(key, f"write failed ({e})") from e
        logger.debug(f"Saved {len(data)} bytes to {key}")

    async def _write(self, path: Path, tmp_path: Path, data: bytes) -> None:
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)
        await aiofiles.os.replace(tmp_path, path)

    async def list(self, prefix: str) -> List[str]:
        prefix = normalize_key(prefix)
        try:
            return await asyncio.to_thread(self._list_sync, prefix)
        except OSError as e:
            logger.error(f"Failed to list {prefix!r}: {e}")
            raise StorageIOError(prefix, f"list failed ({e})") from e

    def _list_sync(self, prefix: str) -> List[str]:
        base = self._path(prefix)
        if base.is_file():
            return [prefix]
        if not base.is_dir():
            return []

        keys: List[str] = []
        for dirpath, _dirnames, filenames in os.walk(base):
            rel_dir = Path(dirpath).relative_to(self._root)
            for name in filenames:
                if name.startswith(".") and name.endswith(_PARTIAL_SUFFIX):
                    continue
                keys.append((rel_dir / name).as_posix())
        keys.sort()
        return keys

    async def delete(self, key: str) -> None:
        key = normalize_key(key)
        path = self._path(key)
        try:
            await aiofiles.os.remove(path)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise NotFoundError(key) from None
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            raise StorageIOError(key, f"delete failed ({e})") from e

        # Drop directories left empty by the removal, up to the root.
        parent = path.parent
        while parent != self._root and self._root in parent.parents:
            try:
                await aiofiles.os.rmdir(parent)
            except OSError:
                break
            parent = parent.parent

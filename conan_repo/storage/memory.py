from __future__ import annotations

from typing import Dict, List, Optional

from conan_repo.core.errors import NotFoundError
from conan_repo.storage.base import Storage, is_under, normalize_key


class InMemoryStorage(Storage):
    """Dict-backed storage, used for tests and throwaway repositories."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = {}
        for key, data in (initial or {}).items():
            self._data[normalize_key(key)] = bytes(data)

    async def exists(self, key: str) -> bool:
        return normalize_key(key) in self._data

    async def value(self, key: str) -> bytes:
        key = normalize_key(key)
        try:
            return self._data[key]
        except KeyError:
            raise NotFoundError(key) from None

    async def save(self, key: str, data: bytes) -> None:
        key = normalize_key(key)
        if not key:
            raise ValueError("Cannot save under an empty key")
        self._data[key] = bytes(data)

    async def list(self, prefix: str) -> List[str]:
        prefix = normalize_key(prefix)
        return sorted(k for k in self._data if is_under(k, prefix))

    async def delete(self, key: str) -> None:
        key = normalize_key(key)
        if key not in self._data:
            raise NotFoundError(key)
        del self._data[key]

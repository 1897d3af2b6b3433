from __future__ import annotations

from typing import List

from conan_repo.storage.base import Storage, normalize_key


class PackageList:
    """
    Directory-style listing over a flat key space.

    Given a prefix such as "zlib/1.2.11/_/_/0/package", returns the distinct
    path segments found right below it (the binary package ids), in the order
    storage lists the keys.
    """

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get(self, prefix: str) -> List[str]:
        prefix = normalize_key(prefix)
        start = len(prefix) + 1 if prefix else 0

        seen = set()
        names: List[str] = []
        for key in await self.storage.list(prefix):
            if prefix and not key.startswith(prefix + "/"):
                continue
            name = key[start:].split("/", 1)[0]
            if name and name not in seen:
                seen.add(name)
                names.append(name)
        return names
